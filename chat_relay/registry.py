# SSE 连接登记表 PushRegistry

from __future__ import annotations
import asyncio
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from chat_relay.models import SseHello
from chat_relay.payloads import sse_frame

logger = logging.getLogger(__name__)


@dataclass
class PushConnection:
    """
    一个 SSE 订阅：
      - id 由登记表单调分配，进程内永不复用；
      - stream 是该连接的“可写流”，写入的是已组装好的 SSE 帧文本，
        由 HTTP 层的生成器取出并发给客户端。
    """
    id: int
    stream: asyncio.Queue[str] = field(default_factory=asyncio.Queue)

    def write(self, frame: str) -> None:
        # 无界队列，put_nowait 不会阻塞；不做背压
        self.stream.put_nowait(frame)

    async def next_frame(self, timeout: Optional[float] = None) -> Optional[str]:
        """取下一帧；超时返回 None（HTTP 层借机检查客户端是否已断开）。"""
        try:
            return await asyncio.wait_for(self.stream.get(), timeout=timeout)
        except asyncio.TimeoutError:
            return None


class PushRegistry:
    """
    SSE 连接登记表：
      - subscribe() 分配新 id、登记并立即写入 system 事件；
      - unsubscribe() 幂等移除；
      - connections() 返回调用时刻的快照，供广播使用。
    所有修改都在事件循环的同一轮内同步完成，无需加锁。
    """

    def __init__(self) -> None:
        self._clients: Dict[int, PushConnection] = {}
        self._last_id = 0

    def subscribe(self) -> PushConnection:
        self._last_id += 1
        conn = PushConnection(id=self._last_id)
        self._clients[conn.id] = conn
        conn.write(sse_frame("system", SseHello(message="SSE connected", client_id=conn.id).to_json()))
        logger.info("SSE client %d connected (total=%d)", conn.id, len(self._clients))
        return conn

    def unsubscribe(self, client_id: int) -> None:
        if self._clients.pop(client_id, None) is not None:
            logger.info("SSE client %d disconnected (total=%d)", client_id, len(self._clients))

    def connections(self) -> List[PushConnection]:
        return list(self._clients.values())

    def __contains__(self, client_id: int) -> bool:
        return client_id in self._clients

    def __len__(self) -> int:
        return len(self._clients)
