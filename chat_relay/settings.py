# ──────────────────────────────────────────────────────────────────────────────
# 模块用途：集中管理聊天中继的运行配置（YAML 默认值 + 环境变量 → dataclass）
# 说明：
#   - 可调项来自 config/relay.yaml 的 relay 段，环境变量优先；
#   - 协议常量（路径、机器人名、分块节奏、心跳间隔）固定不可配置。
# ──────────────────────────────────────────────────────────────────────────────
from __future__ import annotations
import os
from dataclasses import dataclass
from typing import Tuple

from tools.config_loader import load_config

CONFIG_FILE = os.path.join("config", "relay.yaml")

DEFAULT_PORT = 4000
CHAT_WS_PATH = "/chat"
BOT_NAME = "智能助手"
GUEST_NAME = "访客"
CHUNK_WORDS = 4                      # 每个 bot-chunk 最多几个词
CHUNK_INTERVAL_SEC = 0.6             # 相邻 bot-chunk 的间隔（秒）
HEARTBEAT_INTERVAL_SEC = 25.0        # SSE 心跳间隔（秒）
TRANSPORTS = ("websocket", "sse")
MALFORMED_MESSAGE = '消息格式不正确，必须是 JSON，例如 { "text": "你好" }'


def _as_bool(value) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in {"1", "true", "yes", "y"}


@dataclass(frozen=True)
class RelayConfig:
    """中继的运行配置（不可变 dataclass）"""
    host: str = "0.0.0.0"
    port: int = DEFAULT_PORT
    log_level: str = "info"
    log_to_file: bool = False
    cors_origins: Tuple[str, ...] = ("*",)
    sse_poll_sec: float = 15.0           # 空闲 SSE 流检查断开的周期

    @staticmethod
    def from_env(file_path: str = CONFIG_FILE) -> "RelayConfig":
        """先读 YAML（可缺省），再用环境变量覆盖。"""
        cfg = load_config("relay", file_path, optional=True)
        origins = os.getenv("RELAY_CORS_ORIGINS", str(cfg.get("cors_origins", "*")))
        return RelayConfig(
            host=os.getenv("RELAY_HOST", str(cfg.get("host", "0.0.0.0"))),
            port=int(os.getenv("PORT", cfg.get("port", DEFAULT_PORT))),
            log_level=os.getenv("RELAY_LOG_LEVEL", str(cfg.get("log_level", "info"))).lower(),
            log_to_file=_as_bool(os.getenv("RELAY_LOG_TO_FILE", cfg.get("log_to_file", False))),
            cors_origins=tuple(o.strip() for o in origins.split(",") if o.strip()) or ("*",),
            sse_poll_sec=max(0.05, float(os.getenv("RELAY_SSE_POLL_SEC", cfg.get("sse_poll_sec", 15.0)))),
        )
