# WebSocket 连接集合 ChannelHub

from __future__ import annotations
import logging
import random
from typing import Any, Callable, List, Optional, Set

from fastapi import WebSocket

from chat_relay.dispatcher import broadcast_channel
from chat_relay.models import ChatMessage, SystemNotice
from chat_relay.payloads import ParseStatus, chat_payload, dumps, error_payload, parse_inbound

logger = logging.getLogger(__name__)

# 收到合法聊天消息后的回调（通常是机器人回复模拟器），参数为去空白后的文本
ChatHook = Callable[[str], Any]


class ChannelHub:
    """
    维护当前打开的 WebSocket 连接，并处理它们的生命周期：
      - on_open    : 接受握手、登记、只给该连接发 system 通知
      - on_message : 解析 → 广播 chat（含发送者自己）→ 触发 on_chat
      - on_close   : 立刻移出集合，不等待未完成的写
    """

    def __init__(self, on_chat: Optional[ChatHook] = None, rng: Optional[random.Random] = None) -> None:
        self._sockets: Set[WebSocket] = set()
        self._on_chat = on_chat
        self._rng = rng

    def connections(self) -> List[WebSocket]:
        return list(self._sockets)

    def __len__(self) -> int:
        return len(self._sockets)

    async def on_open(self, ws: WebSocket) -> None:
        await ws.accept()
        self._sockets.add(ws)
        logger.info("WebSocket client %s connected (total=%d)", ws.client, len(self._sockets))
        await ws.send_text(SystemNotice(text="WebSocket connected").to_json())

    async def on_message(self, ws: WebSocket, raw: str | bytes) -> Optional[ChatMessage]:
        """处理一帧入站消息；广播成功时返回对应的 ChatMessage，否则返回 None。"""
        result = parse_inbound(raw)

        if result.status is ParseStatus.MALFORMED:
            logger.warning("malformed message from %s: %s", ws.client, result.reason)
            await ws.send_text(dumps(error_payload()))
            return None

        if result.status is ParseStatus.EMPTY:
            return None

        message = chat_payload(result.message, self._rng)
        await broadcast_channel(self, message.to_dict())
        if self._on_chat is not None:
            self._on_chat(message.text)
        return message

    def on_close(self, ws: WebSocket) -> None:
        self._sockets.discard(ws)
        logger.info("WebSocket client %s closed (total=%d)", ws.client, len(self._sockets))
