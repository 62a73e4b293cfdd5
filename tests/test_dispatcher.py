import asyncio

from conftest import FakeWebSocket, drain
from starlette.websockets import WebSocketState

from chat_relay.dispatcher import broadcast_channel, broadcast_push
from chat_relay.hub import ChannelHub
from chat_relay.registry import PushRegistry


def test_broadcast_push_reaches_every_registered_connection():
    registry = PushRegistry()
    a, b = registry.subscribe(), registry.subscribe()
    drain(a), drain(b)

    count = broadcast_push(registry, "bot-chunk", {"chunk": "你好"})

    assert count == 2
    assert drain(a) == [("bot-chunk", {"chunk": "你好"})]
    assert drain(b) == [("bot-chunk", {"chunk": "你好"})]


def test_broadcast_push_skips_unsubscribed_and_late_joiners():
    registry = PushRegistry()
    gone = registry.subscribe()
    registry.unsubscribe(gone.id)
    drain(gone)

    broadcast_push(registry, "heartbeat", {"timestamp": 1})
    late = registry.subscribe()

    assert drain(gone) == []
    # 后加入的连接只收到自己的 system 事件，拿不到之前的广播
    assert [event for event, _ in drain(late)] == ["system"]


def test_broadcast_push_with_no_connections_is_noop():
    assert broadcast_push(PushRegistry(), "heartbeat", {"timestamp": 1}) == 0


def test_broadcast_channel_skips_closed_and_survives_failures():
    async def scenario():
        hub = ChannelHub()
        ok, broken, closed = FakeWebSocket(name="ok"), FakeWebSocket(name="broken"), FakeWebSocket(name="closed")
        for ws in (ok, broken, closed):
            await hub.on_open(ws)
            ws.sent.clear()
        broken.fail = True
        closed.client_state = WebSocketState.DISCONNECTED

        sent = await broadcast_channel(hub, {"type": "chat", "text": "大家好"})
        return sent, ok, broken, closed

    sent, ok, broken, closed = asyncio.run(scenario())
    assert sent == 1
    assert ok.sent == ['{"type":"chat","text":"大家好"}']
    assert closed.sent == []
