import json

from starlette.websockets import WebSocketState


class FakeWebSocket:
    """最小可用的 WebSocket 替身：记录 send_text，必要时模拟写失败。"""

    def __init__(self, fail: bool = False, name: str = "fake"):
        self.client = (name, 0)
        self.client_state = WebSocketState.CONNECTED
        self.application_state = WebSocketState.CONNECTING
        self.fail = fail
        self.sent = []

    async def accept(self):
        self.application_state = WebSocketState.CONNECTED

    async def send_text(self, data: str):
        if self.fail:
            raise RuntimeError("socket already closed")
        self.sent.append(data)

    def messages(self):
        return [json.loads(s) for s in self.sent]


def parse_frame(frame: str):
    """把一帧 SSE 文本拆成 (event, data_dict)。"""
    assert frame.endswith("\n\n")
    event_line, data_line = frame[:-2].split("\n")
    assert event_line.startswith("event: ")
    assert data_line.startswith("data: ")
    return event_line[len("event: "):], json.loads(data_line[len("data: "):])


def drain(conn):
    """取出某个 SSE 连接队列里当前积压的全部帧。"""
    frames = []
    while not conn.stream.empty():
        frames.append(parse_frame(conn.stream.get_nowait()))
    return frames
