# 广播分发：每种传输一个 fan-out 函数

from __future__ import annotations
import logging
from typing import TYPE_CHECKING, Any

from starlette.websockets import WebSocketDisconnect, WebSocketState

from chat_relay.payloads import dumps, sse_frame

if TYPE_CHECKING:
    from chat_relay.hub import ChannelHub
    from chat_relay.registry import PushRegistry

logger = logging.getLogger(__name__)


async def broadcast_channel(hub: "ChannelHub", payload: Any) -> int:
    """
    把 payload 序列化一次，发给 hub 中所有处于 OPEN 状态的 WebSocket：
      - 非 OPEN 的连接直接跳过；
      - 单个连接写失败只记 debug 日志，不影响其它连接，也不重试。
    返回成功写出的连接数。
    """
    message = dumps(payload)
    sent = 0
    for ws in hub.connections():
        if ws.client_state != WebSocketState.CONNECTED or ws.application_state != WebSocketState.CONNECTED:
            continue
        try:
            await ws.send_text(message)
            sent += 1
        except (WebSocketDisconnect, RuntimeError, OSError) as e:
            logger.debug("skip stale websocket during broadcast: %r", e)
    return sent


def broadcast_push(registry: "PushRegistry", event_name: str, payload: Any) -> int:
    """
    把 payload 序列化一次，以 `event:` + `data:` 帧写给登记表里的每个 SSE 连接。
    只覆盖调用时刻已登记的连接；不做逐连接错误处理。返回写入的连接数。
    """
    frame = sse_frame(event_name, dumps(payload))
    targets = registry.connections()
    for conn in targets:
        conn.write(frame)
    return len(targets)
