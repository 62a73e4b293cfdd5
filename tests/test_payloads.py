import json

import pytest

from chat_relay.models import BotChunk, ChatMessage, InboundChat, SseHello
from chat_relay.payloads import (
    ParseStatus,
    chat_payload,
    dumps,
    error_payload,
    parse_inbound,
    sse_frame,
)
from chat_relay.settings import GUEST_NAME, MALFORMED_MESSAGE


def test_parse_valid_trims_text_and_keeps_author():
    result = parse_inbound('{"text": "  你好  ", "author": "Alice"}')
    assert result.ok
    assert result.message == InboundChat(text="你好", author="Alice")


@pytest.mark.parametrize("author", [None, ""])
def test_parse_defaults_author_to_guest(author):
    raw = json.dumps({"text": "hi", "author": author}) if author is not None else '{"text": "hi"}'
    result = parse_inbound(raw)
    assert result.ok
    assert result.message.author == GUEST_NAME


def test_parse_accepts_bytes():
    result = parse_inbound('{"text": "二进制帧"}'.encode("utf-8"))
    assert result.ok
    assert result.message.text == "二进制帧"


@pytest.mark.parametrize("raw", [
    "not json",
    "{",
    "null",
    "[1, 2]",
    '"just a string"',
    '{"author": "Alice"}',      # 缺 text
    '{"text": null}',
    '{"text": 42}',
])
def test_parse_malformed(raw):
    result = parse_inbound(raw)
    assert result.status is ParseStatus.MALFORMED
    assert result.message is None
    assert not result.ok
@pytest.mark.parametrize("raw", ["[" * 100000, "{\"a\":" * 100000])
def test_parse_deeply_nested_json_is_malformed(raw):
    result = parse_inbound(raw)
    assert result.status is ParseStatus.MALFORMED
    assert result.message is None


@pytest.mark.parametrize("raw", ['{"text": ""}', '{"text": "   \\n\\t "}'])
def test_parse_empty_text_is_dropped_not_malformed(raw):
    result = parse_inbound(raw)
    assert result.status is ParseStatus.EMPTY
    assert result.message is None


def test_dumps_is_compact_and_keeps_chinese():
    assert dumps({"status": "ok", "text": "你好"}) == '{"status":"ok","text":"你好"}'


def test_sse_frame_layout():
    assert sse_frame("heartbeat", '{"timestamp":1}') == 'event: heartbeat\ndata: {"timestamp":1}\n\n'


def test_error_payload_message():
    assert error_payload() == {"type": "error", "message": MALFORMED_MESSAGE}
    assert json.loads(dumps(error_payload()))["message"] == '消息格式不正确，必须是 JSON，例如 { "text": "你好" }'


def test_chat_payload_assigns_id_and_timestamp():
    msg = chat_payload(InboundChat(text="你好", author="Bob"))
    d = msg.to_dict()
    assert list(d) == ["type", "id", "author", "text", "timestamp"]
    assert d["type"] == "chat"
    assert d["author"] == "Bob"
    assert d["text"] == "你好"
    assert isinstance(d["timestamp"], int)
    assert msg.id


def test_bot_chunk_uses_camel_case_on_the_wire():
    chunk = BotChunk(message_id="1-a", chunk="你好", is_final=True, timestamp=5)
    d = chunk.to_dict()
    assert d == {"messageId": "1-a", "chunk": "你好", "isFinal": True, "timestamp": 5, "author": "智能助手"}
    assert BotChunk.from_dict(d) == chunk


def test_sse_hello_json():
    assert SseHello(message="SSE connected", client_id=3).to_json() == '{"message":"SSE connected","clientId":3}'


def test_chat_message_requires_fields():
    with pytest.raises(TypeError):
        ChatMessage.from_dict({"text": "x"})
