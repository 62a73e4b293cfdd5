import logging
import os
from logging.handlers import TimedRotatingFileHandler


class BaseLogger:
    """
    基础日志类：
    - 控制台 + 按天轮转文件输出
    - 统一格式化输出（含时间、文件名、函数、线程）
    - 通常只在进程入口为顶层 logger（如 "chat_relay"）配置一次，
      各模块用 logging.getLogger(__name__) 取子 logger，自动向上冒泡
    """

    FORMAT = (
        "%(asctime)s | %(name)s | %(levelname)s | "
        "[%(filename)s:%(lineno)d %(funcName)s] | %(threadName)s | %(message)s"
    )

    def __init__(
        self,
        name: str = "chat_relay",
        level: int | str = logging.INFO,
        to_file: bool = False,
        file_path: str | None = None,
        file_level: int = logging.ERROR,
    ):
        """
        初始化日志系统。

        :param name: logger 名称
        :param level: 控制台日志级别（int 或 "info" / "DEBUG" 这类名字）
        :param to_file: 是否启用文件日志
        :param file_path: 日志文件路径（可选）
        :param file_level: 文件日志的最低级别（默认 ERROR，仅错误写入）
        """
        level = self.resolve_level(level)

        self.logger = logging.getLogger(name)
        self.logger.setLevel(level)
        self.logger.propagate = False  # 防止重复输出

        # 若尚未配置 handler，防止重复添加
        if not self.logger.handlers:
            formatter = logging.Formatter(self.FORMAT)

            ch = logging.StreamHandler()
            ch.setLevel(level)
            ch.setFormatter(formatter)
            self.logger.addHandler(ch)

            if to_file:
                # 若未指定路径，默认 logs/xxx.log
                if file_path is None:
                    project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
                    log_dir = os.path.join(project_root, "logs")
                    os.makedirs(log_dir, exist_ok=True)
                    file_path = os.path.join(log_dir, f"{self.logger.name}.log")

                fh = TimedRotatingFileHandler(
                    filename=file_path,
                    when="midnight",  # 每天轮转
                    interval=1,
                    backupCount=7,  # 保留 7 天
                    encoding="utf-8",
                )
                fh.setLevel(file_level)
                fh.setFormatter(formatter)
                self.logger.addHandler(fh)

    @staticmethod
    def resolve_level(level: int | str) -> int:
        """把 "info" / "WARNING" 等名字转换为 logging 的整型级别；未知名字回退 INFO。"""
        if isinstance(level, int):
            return level
        resolved = logging.getLevelName(str(level).strip().upper())
        return resolved if isinstance(resolved, int) else logging.INFO
