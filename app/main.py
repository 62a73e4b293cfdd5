import argparse
import dataclasses

from chat_relay.server import build_relay_app, run_relay
from chat_relay.settings import RelayConfig


def create_app():
    """供 `uvicorn --factory app.main:create_app` 加载；导入本模块本身不建 app、不配日志。"""
    return build_relay_app()


def main():
    """
    命令行入口：
    1. 读取 config/relay.yaml + 环境变量（PORT 等）
    2. 命令行参数可再覆盖 host / port
    3. 前台启动 uvicorn，端口绑定成功后才打印就绪日志
    """
    config = RelayConfig.from_env()
    parser = argparse.ArgumentParser(description="实时聊天中继（WebSocket + SSE）")
    parser.add_argument("--host", default=config.host, help=f"监听地址 (default: {config.host})")
    parser.add_argument("-p", "--port", type=int, default=config.port, help=f"监听端口 (default: {config.port})")
    args = parser.parse_args()

    run_relay(dataclasses.replace(config, host=args.host, port=args.port))


if __name__ == "__main__":
    main()
