from __future__ import annotations

import enum
import json
import random
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

from commons.normalizers import new_message_id, now_ms
from chat_relay.models import ChatMessage, ErrorNotice, InboundChat
from chat_relay.settings import MALFORMED_MESSAGE

# =========================
# JSON 序列化
# =========================


def dumps(payload: Any) -> str:
    """紧凑 JSON，保留中文；两种传输统一用它序列化。"""
    return json.dumps(payload, ensure_ascii=False, separators=(",", ":"))


def sse_frame(event_name: str, data: str) -> str:
    """组装一帧 SSE：event 行 + data 行 + 空行结束。data 需是已序列化好的单行文本。"""
    return f"event: {event_name}\ndata: {data}\n\n"


# =========================
# 入站消息解析：返回判别结果，不用异常做控制流
# =========================


class ParseStatus(enum.Enum):
    OK = "ok"
    MALFORMED = "malformed"   # 不是 JSON，或没有可用的 text 字段 → 回错误给发送方
    EMPTY = "empty"           # text 去空白后为空 → 静默丢弃


@dataclass(frozen=True)
class ParseResult:
    status: ParseStatus
    message: Optional[InboundChat] = None
    reason: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status is ParseStatus.OK


def parse_inbound(raw: Union[str, bytes, bytearray]) -> ParseResult:
    """
    解析 WebSocket 客户端发来的原始帧：
    - 非 JSON（含嵌套过深）/ 顶层不是对象 / text 缺失或不是字符串 → MALFORMED
    - text 去首尾空白后为空 → EMPTY（与 MALFORMED 区分，调用方不回错误）
    - 其它 → OK，message 为已清洗的 InboundChat
    """
    if isinstance(raw, (bytes, bytearray)):
        raw = bytes(raw).decode("utf-8", errors="replace")

    try:
        data = json.loads(raw)
    except (ValueError, RecursionError) as e:
        # RecursionError: 嵌套过深的数组 / 对象
        return ParseResult(ParseStatus.MALFORMED, reason=f"invalid json: {type(e).__name__}")

    if not isinstance(data, dict):
        return ParseResult(ParseStatus.MALFORMED, reason=f"expected object, got {type(data).__name__}")

    text = data.get("text")
    if not isinstance(text, str):
        return ParseResult(ParseStatus.MALFORMED, reason="missing text")

    if not text.strip():
        return ParseResult(ParseStatus.EMPTY, reason="empty text")

    return ParseResult(ParseStatus.OK, message=InboundChat.from_dict(data))


# =========================
# 出站载荷
# =========================


def chat_payload(inbound: InboundChat, rng: Optional[random.Random] = None) -> ChatMessage:
    """由入站消息生成服务端赋 id / timestamp 的聊天广播。"""
    return ChatMessage(
        id=new_message_id(rng),
        author=inbound.author,
        text=inbound.text,
        timestamp=now_ms(),
    )


def error_payload(message: str = MALFORMED_MESSAGE) -> Dict[str, Any]:
    return ErrorNotice(message=message).to_dict()
