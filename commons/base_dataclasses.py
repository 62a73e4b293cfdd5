# -*- coding: utf-8 -*-
"""
BaseDataClass
-------------
为聊天中继里的 dataclass 载荷提供统一的构造与序列化能力。
流程：字段映射 -> 字段转换 -> 构造实例 -> 序列化。

约定：
- 子类必须使用 @dataclass 装饰。
- FIELD_MAPPING 描述“线上字段名 -> 内部字段名”，例如 {"messageId": "message_id"}；
  from_dict 按它把外部输入映射进来，to_dict / to_json 反向输出线上字段名。
- CONVERTERS 建议为纯函数。
- to_json 默认输出紧凑 JSON，且保留中文（ensure_ascii=False）。
"""
from __future__ import annotations

import dataclasses
import json
import logging
from typing import Any, Callable, ClassVar, Dict, Mapping, Type, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T", bound="BaseDataClass")
Converter = Callable[[Any], Any]

COMPACT_SEPARATORS = (",", ":")


class BaseDataClass:
    """dataclass 子类的通用基类：映射、转换、序列化。"""

    FIELD_MAPPING: ClassVar[Dict[str, str]] = {}
    CONVERTERS: ClassVar[Dict[str, Converter]] = {}

    # ---------------- 构造 ----------------
    @classmethod
    def from_dict(cls: Type[T], data: Mapping[str, Any]) -> T:
        """从单个字典构造实例：映射 -> 转换 -> 构造。

        未声明的字段被忽略；缺少必填字段时抛 TypeError（由调用方决定如何处理）。
        """
        if not isinstance(data, Mapping):
            raise TypeError(f"from_dict 需要 Mapping，实际得到: {type(data).__name__}")

        try:
            dc_names = {f.name for f in dataclasses.fields(cls)}
        except TypeError:
            raise TypeError(f"{cls.__name__} 必须使用 @dataclass 装饰")

        # 1) 字段映射（外键 -> 内部字段名）
        mapped: Dict[str, Any] = {}
        for ext_key, val in data.items():
            internal = cls.FIELD_MAPPING.get(ext_key, ext_key)
            if internal in dc_names:
                mapped[internal] = val

        # 2) 字段级转换
        for key, fn in cls.CONVERTERS.items():
            if key in mapped:
                mapped[key] = fn(mapped[key])

        # 3) 构造 dataclass 实例
        try:
            return cls(**mapped)  # type: ignore[arg-type]
        except TypeError as e:
            missing = [f.name for f in dataclasses.fields(cls) if f.name not in mapped]
            logger.warning("构造 %s 失败: %s; 缺失=%r", cls.__name__, e, missing)
            raise

    # ---------------- 序列化 ----------------
    @classmethod
    def _wire_names(cls) -> Dict[str, str]:
        """内部字段名 -> 线上字段名（FIELD_MAPPING 的反向视图）。"""
        return {internal: ext for ext, internal in cls.FIELD_MAPPING.items()}

    def to_dict(self) -> Dict[str, Any]:
        """导出为 dict（使用线上字段名）。"""
        if not dataclasses.is_dataclass(self):
            raise TypeError(f"{type(self).__name__} 不是 dataclass，无法 asdict")
        wire = self._wire_names()
        return {wire.get(f.name, f.name): getattr(self, f.name) for f in dataclasses.fields(self)}

    def to_json(self, *, ensure_ascii: bool = False) -> str:
        """导出紧凑 JSON 文本；ensure_ascii=False 保留中文。"""
        return json.dumps(self.to_dict(), ensure_ascii=ensure_ascii, separators=COMPACT_SEPARATORS)
