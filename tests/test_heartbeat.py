import asyncio

from conftest import drain

from chat_relay.heartbeat import Heartbeat
from chat_relay.relay import ChatRelay
from chat_relay.settings import HEARTBEAT_INTERVAL_SEC


def test_default_interval_is_25_seconds():
    assert Heartbeat(lambda *_: 0).interval == HEARTBEAT_INTERVAL_SEC == 25.0


def test_tick_sends_same_payload_to_every_subscriber():
    relay = ChatRelay()
    early = relay.registry.subscribe()
    late = relay.registry.subscribe()
    drain(early), drain(late)

    event = relay.heartbeat.tick()

    expected = [("heartbeat", {"timestamp": event.timestamp})]
    assert drain(early) == expected
    assert drain(late) == expected


def test_heartbeat_runs_until_stopped():
    async def scenario():
        relay = ChatRelay(heartbeat_interval=0.02)
        conn = relay.registry.subscribe()
        drain(conn)
        await relay.start()
        assert relay.heartbeat.running
        await asyncio.sleep(0.11)
        await relay.stop()
        beats = drain(conn)
        await asyncio.sleep(0.05)
        return relay, beats, drain(conn)

    relay, beats, after_stop = asyncio.run(scenario())
    assert len(beats) >= 2
    assert all(event == "heartbeat" for event, _ in beats)
    assert after_stop == []
    assert not relay.heartbeat.running
