# SSE 心跳定时器
from __future__ import annotations
import asyncio
import logging
from contextlib import suppress
from typing import Any, Callable, Optional

from commons.normalizers import now_ms
from chat_relay.models import HeartbeatEvent
from chat_relay.settings import HEARTBEAT_INTERVAL_SEC

logger = logging.getLogger(__name__)


class Heartbeat:
    """
    进程级心跳：每 interval 秒向所有 SSE 连接广播一次 heartbeat 事件。
    同一次 tick 里所有订阅者收到的是同一个 timestamp。
    """

    def __init__(self, push: Callable[[str, Any], Any], interval: float = HEARTBEAT_INTERVAL_SEC) -> None:
        self._push = push
        self.interval = interval
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name="relay-heartbeat")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with suppress(asyncio.CancelledError):
            await self._task
        self._task = None

    def tick(self) -> HeartbeatEvent:
        event = HeartbeatEvent(timestamp=now_ms())
        count = self._push("heartbeat", event.to_dict())
        logger.debug("heartbeat %d sent to %s client(s)", event.timestamp, count)
        return event

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            self.tick()
