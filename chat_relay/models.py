# 数据模型：聊天中继在两种传输上收发的全部载荷
from __future__ import annotations
from dataclasses import dataclass
from typing import Any, ClassVar, Dict

from commons.base_dataclasses import BaseDataClass
from chat_relay.settings import BOT_NAME, GUEST_NAME


def _author_or_guest(value: Any) -> str:
    """客户端没给作者（或给了空值）时使用访客占位名。"""
    if not value:
        return GUEST_NAME
    return value if isinstance(value, str) else str(value)


@dataclass(slots=True)
class InboundChat(BaseDataClass):
    """WebSocket 客户端发来的消息：{ "text": str, "author"?: str }，text 已去首尾空白。"""
    text: str
    author: str = GUEST_NAME

    CONVERTERS: ClassVar[Dict[str, Any]] = {
        "text": lambda s: s.strip(),
        "author": _author_or_guest,
    }


@dataclass(slots=True, kw_only=True)
class ChatMessage(BaseDataClass):
    """广播给所有 WebSocket 客户端的聊天消息（只广播一次，不落地）。"""
    type: str = "chat"
    id: str
    author: str
    text: str
    timestamp: int                # 毫秒


@dataclass(slots=True)
class BotChunk(BaseDataClass):
    """模拟流式回复的一个分块，经 SSE 的 bot-chunk 事件推送。"""
    message_id: str               # 同一条回复的所有分块共享
    chunk: str
    is_final: bool
    timestamp: int                # 发送时刻（毫秒）
    author: str = BOT_NAME

    FIELD_MAPPING: ClassVar[Dict[str, str]] = {
        "messageId": "message_id",
        "isFinal": "is_final",
    }


@dataclass(slots=True)
class HeartbeatEvent(BaseDataClass):
    """SSE 心跳载荷。"""
    timestamp: int


@dataclass(slots=True, kw_only=True)
class SystemNotice(BaseDataClass):
    """WebSocket 建连后发给该连接的系统通知。"""
    type: str = "system"
    text: str


@dataclass(slots=True, kw_only=True)
class ErrorNotice(BaseDataClass):
    """只回给发送方的错误通知。"""
    type: str = "error"
    message: str


@dataclass(slots=True)
class SseHello(BaseDataClass):
    """SSE 订阅成功后立即推送的 system 事件载荷。"""
    message: str
    client_id: int

    FIELD_MAPPING: ClassVar[Dict[str, str]] = {"clientId": "client_id"}
