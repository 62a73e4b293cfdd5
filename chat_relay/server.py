# ────────────────────────────────────────────────────────────────
# 模块用途：构建并启动聊天中继的 FastAPI 服务
# 说明：
#   - GET /health  : 健康检查，列出支持的传输方式；
#   - GET /events  : SSE 订阅，接收 bot-chunk / heartbeat 推送（只读）；
#   - WS  /chat    : WebSocket 聊天，消息广播给所有 WebSocket 客户端；
#   - 三者共用同一个监听端口；中继状态挂在 app.state.relay 上；
#   - 心跳随 lifespan 启停。
# ────────────────────────────────────────────────────────────────

from __future__ import annotations
import asyncio
import logging
from contextlib import asynccontextmanager, suppress
from dataclasses import dataclass
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import StreamingResponse

from commons.base_logger import BaseLogger
from chat_relay.relay import ChatRelay
from chat_relay.settings import CHAT_WS_PATH, TRANSPORTS, RelayConfig

logger = logging.getLogger(__name__)

SSE_HEADERS = {
    "Cache-Control": "no-cache, no-transform",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


# ────────────────────────────────────────────────────────────────
# 构建 FastAPI 实例
# ────────────────────────────────────────────────────────────────
def build_relay_app(config: Optional[RelayConfig] = None, relay: Optional[ChatRelay] = None) -> FastAPI:
    config = config or RelayConfig.from_env()
    relay = relay or ChatRelay()
    BaseLogger(name="chat_relay", level=config.log_level, to_file=config.log_to_file)

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        await relay.start()
        try:
            yield
        finally:
            await relay.stop()

    app = FastAPI(title="Chat Relay", version="1.0.0", lifespan=lifespan)
    app.state.relay = relay
    app.state.config = config

    # 允许跨域（前端在不同端口时必须加）
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(config.cors_origins),
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health")
    async def _health():
        """健康检查：用于存活探测"""
        return {"status": "ok", "transport": list(TRANSPORTS)}

    @app.get("/events")
    async def _events(request: Request):
        conn = relay.registry.subscribe()

        async def gen():
            try:
                while True:
                    frame = await conn.next_frame(timeout=config.sse_poll_sec)
                    if frame is None:
                        # 空闲时顺便探测客户端是否已经走了
                        if await request.is_disconnected():
                            break
                        continue
                    yield frame.encode("utf-8")
            finally:
                relay.registry.unsubscribe(conn.id)

        return StreamingResponse(gen(), media_type="text/event-stream", headers=SSE_HEADERS)

    @app.websocket(CHAT_WS_PATH)
    async def _chat(websocket: WebSocket):
        try:
            await relay.hub.on_open(websocket)
            while True:
                message = await websocket.receive()
                if message["type"] == "websocket.disconnect":
                    break
                raw = message.get("text")
                if raw is None:
                    raw = message.get("bytes") or b""
                await relay.hub.on_message(websocket, raw)
        except WebSocketDisconnect:
            # 发送途中对端断开，属于正常收尾
            pass
        finally:
            relay.hub.on_close(websocket)

    return app


# ────────────────────────────────────────────────────────────────
# 启动与停止
# ────────────────────────────────────────────────────────────────
STARTUP_TIMEOUT_SEC = 10.0
SHUTDOWN_TIMEOUT_SEC = 5.0
GRACEFUL_SHUTDOWN_SEC = 2.0  # 超时后 uvicorn 取消仍未结束的 SSE 长连接


def run_relay(config: Optional[RelayConfig] = None) -> None:
    """前台运行（阻塞），供命令行入口使用；端口绑定失败时以退出码 1 结束。"""
    config = config or RelayConfig.from_env()
    with suppress(KeyboardInterrupt):
        asyncio.run(_serve_until_exit(config))


async def _serve_until_exit(config: RelayConfig) -> None:
    handle = await start_relay_background(config)
    if not handle.started:
        await stop_relay_background(handle)
        raise SystemExit(1)
    await handle.task


@dataclass
class RelayServerHandle:
    server: uvicorn.Server
    task: asyncio.Task

    @property
    def started(self) -> bool:
        """uvicorn 是否已绑定端口并开始接受连接"""
        return self.server.started


async def start_relay_background(
    config: Optional[RelayConfig] = None,
    startup_timeout: float = STARTUP_TIMEOUT_SEC,
) -> RelayServerHandle:
    """
    后台启动中继服务。
    - 不阻塞调用方的事件循环，但会等到端口绑定成功或启动失败再返回；
    - 端口占用等启动失败只记日志，不拖垮宿主程序，句柄的 started 为 False；
    - 返回句柄，供 stop_relay_background 关闭。
    """
    config = config or RelayConfig.from_env()
    app = build_relay_app(config)
    server = uvicorn.Server(uvicorn.Config(app=app, host=config.host, port=config.port,
                                           loop="asyncio", log_level=config.log_level,
                                           timeout_graceful_shutdown=GRACEFUL_SHUTDOWN_SEC))

    async def _serve():
        try:
            await server.serve()
        except SystemExit:
            # uvicorn 绑定端口失败时 sys.exit(1)，这里吞掉，只留日志
            logger.error("relay failed to start on %s:%d", config.host, config.port)

    task = asyncio.create_task(_serve(), name=f"chat-relay:{config.port}")
    handle = RelayServerHandle(server, task)

    loop = asyncio.get_running_loop()
    deadline = loop.time() + startup_timeout
    while not server.started and not task.done() and loop.time() < deadline:
        await asyncio.sleep(0.05)

    if handle.started:
        logger.info("Realtime server ready on http://localhost:%d", config.port)
    elif not task.done():
        logger.warning("relay on port %d not ready after %.1fs", config.port, startup_timeout)
    return handle


async def stop_relay_background(
    handle: Optional[RelayServerHandle],
    timeout: float = SHUTDOWN_TIMEOUT_SEC,
) -> None:
    """关闭后台中继服务：先请求 uvicorn 正常退出，超时再取消任务"""
    if not handle:
        return
    handle.server.should_exit = True
    try:
        await asyncio.wait_for(handle.task, timeout)
    except asyncio.TimeoutError:
        logger.warning("relay on port %d did not stop within %.1fs, cancelled",
                       handle.server.config.port, timeout)
    except asyncio.CancelledError:
        if not handle.task.cancelled():
            raise
