# -*- coding: utf-8 -*-  # 指定 UTF-8 编码
# commons/normalizers.py  # 文件路径说明
from __future__ import annotations  # 允许前向引用注解

"""
normalizers
-----------
时间戳 / 消息 ID 小工具。
"""

import random  # 生成消息 ID 的随机后缀
import time  # 毫秒时间戳
from typing import Optional


def now_ms() -> int:
    """当前 Unix 时间戳（毫秒，int）。"""
    return int(time.time() * 1000)


def new_message_id(rng: Optional[random.Random] = None) -> str:
    """
    生成 "<毫秒时间戳>-<随机十六进制>" 形式的消息 ID：
    - 同一毫秒内碰撞概率很低，但不保证全局唯一
    - rng 可注入，便于测试复现
    """
    rng = rng or random
    return f"{now_ms()}-{rng.getrandbits(52):x}"
