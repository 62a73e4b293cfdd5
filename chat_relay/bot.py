# ────────────────────────────────────────────────────────────────
# 模块用途：模拟机器人“逐段输出”的流式回复
# 说明：
#   - compose_reply : 空输入随机挑一句兜底语，否则套模板复述用户原话；
#   - split_chunks  : 按空白切词，每 4 个词一组；
#   - BotReplySimulator.stream_reply : 为每个分块登记一个 call_later 定时器，
#     第 i 块在 600ms × (i+1) 后经 SSE 推送 bot-chunk 事件；
#   - 定时器句柄按回复序列保存，但从不取消：连接关闭不影响已排程的分块。
# ────────────────────────────────────────────────────────────────
from __future__ import annotations
import asyncio
import logging
import random
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional

from commons.normalizers import new_message_id, now_ms
from chat_relay.models import BotChunk
from chat_relay.settings import BOT_NAME, CHUNK_INTERVAL_SEC, CHUNK_WORDS

logger = logging.getLogger(__name__)

FALLBACK_REPLIES = (
    "我已经收到你的消息，正在处理中。",
    "这是一个模拟回复，展示 SSE 流式输出的效果。",
    "你可以继续输入内容，我会一直保持在线。",
)

ECHO_TEMPLATE = "你刚才说的是「{text}」，我会根据这个内容继续和你交流。这个示例演示了 Server-Sent Events 如何逐段推送数据。"

# SSE 推送函数签名：push(event_name, payload)
PushFunc = Callable[[str, Any], Any]


def compose_reply(user_text: str = "", rng: Optional[random.Random] = None) -> str:
    if not user_text:
        return (rng or random).choice(FALLBACK_REPLIES)
    return ECHO_TEMPLATE.format(text=user_text.strip())


def split_chunks(reply: str, size: int = CHUNK_WORDS) -> List[str]:
    """按空白切词、每 size 个词拼成一块；切不出词时整句作为唯一一块。"""
    words = reply.split()
    chunks = [" ".join(words[i:i + size]) for i in range(0, len(words), size)]
    return chunks or [reply]


@dataclass
class ReplySequence:
    """一次回复的全部分块及其已排程的定时器。"""
    message_id: str
    chunks: List[str]
    interval: float = CHUNK_INTERVAL_SEC
    handles: List[asyncio.TimerHandle] = field(default_factory=list)

    @property
    def delays(self) -> List[float]:
        return [self.interval * (i + 1) for i in range(len(self.chunks))]


class BotReplySimulator:
    """无状态的回复模拟器：每条触发消息独立生成、独立排程。"""

    def __init__(
        self,
        push: PushFunc,
        *,
        interval: float = CHUNK_INTERVAL_SEC,
        author: str = BOT_NAME,
        rng: Optional[random.Random] = None,
    ) -> None:
        self._push = push
        self._interval = interval
        self._author = author
        self._rng = rng

    def plan(self, source_text: str = "") -> ReplySequence:
        reply = compose_reply(source_text, self._rng)
        return ReplySequence(
            message_id=new_message_id(self._rng),
            chunks=split_chunks(reply),
            interval=self._interval,
        )

    def stream_reply(self, source_text: str = "") -> ReplySequence:
        """排程一条回复；必须在事件循环内调用。立即返回，不等待分块发完。"""
        loop = asyncio.get_running_loop()
        seq = self.plan(source_text)
        last = len(seq.chunks) - 1
        for index, (chunk, delay) in enumerate(zip(seq.chunks, seq.delays)):
            seq.handles.append(
                loop.call_later(delay, self._deliver, seq.message_id, chunk, index == last)
            )
        logger.debug("scheduled reply %s with %d chunk(s)", seq.message_id, len(seq.chunks))
        return seq

    def _deliver(self, message_id: str, chunk: str, is_final: bool) -> None:
        payload = BotChunk(
            message_id=message_id,
            author=self._author,
            chunk=chunk,
            is_final=is_final,
            timestamp=now_ms(),
        )
        self._push("bot-chunk", payload.to_dict())
