# ChatRelay：把登记表、连接集合、回复模拟器、心跳装配在一起

from __future__ import annotations
import random
from typing import Any, Optional

from chat_relay.bot import BotReplySimulator
from chat_relay.dispatcher import broadcast_push
from chat_relay.heartbeat import Heartbeat
from chat_relay.hub import ChannelHub
from chat_relay.registry import PushRegistry
from chat_relay.settings import CHUNK_INTERVAL_SEC, HEARTBEAT_INTERVAL_SEC


class ChatRelay:
    """
    进程生命周期内唯一的中继状态，挂在 app.state.relay 上：
      - registry  : SSE 连接（只读客户端）
      - hub       : WebSocket 连接（可发言）
      - bot       : 回复模拟器，结果只推给 SSE
      - heartbeat : 心跳，只推给 SSE
    """

    def __init__(
        self,
        *,
        rng: Optional[random.Random] = None,
        chunk_interval: float = CHUNK_INTERVAL_SEC,
        heartbeat_interval: float = HEARTBEAT_INTERVAL_SEC,
    ) -> None:
        self.registry = PushRegistry()
        self.bot = BotReplySimulator(self.push, interval=chunk_interval, rng=rng)
        self.hub = ChannelHub(on_chat=self.bot.stream_reply, rng=rng)
        self.heartbeat = Heartbeat(self.push, interval=heartbeat_interval)

    def push(self, event_name: str, payload: Any) -> int:
        return broadcast_push(self.registry, event_name, payload)

    async def start(self) -> None:
        self.heartbeat.start()

    async def stop(self) -> None:
        await self.heartbeat.stop()
