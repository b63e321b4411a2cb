"""
formats/interface.py

解码器（Decoder）的公共接口：字节流 -> Python 内置结构值。

Public interface for decoders: byte stream -> structured value built from
Python built-ins (dict / list / str / int / float / bool / None).

Design principles:
- 格式由 identifier 后缀约定决定，不嗅探内容（convention over detection）
- 解码器只负责语法；选哪个解码器由 FormatDispatcher 决定
- 解码失败直接抛出解析库自己的异常（JSONDecodeError / YAMLError / ParseError）
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, BinaryIO, Sequence

# ============================================================
# JSON-compatible value types
# ============================================================

JsonScalar = str | int | float | bool | None
JsonValue = JsonScalar | list["JsonValue"] | dict[str, "JsonValue"]

# ============================================================
# Format tag
# ============================================================

TAG_SEPARATOR: str = "."


def format_tag(identifier: str) -> str:
    """
    @brief identifier 最后一个 "." 之后的部分，转小写；没有 "." 时是整个 identifier。
    @brief Text after the last "." of identifier, lower-cased; the whole identifier if there is no ".".

    "a.JSON" -> "json", "s3://b/k.tar.YML" -> "yml", "noext" -> "noext", "x." -> "".
    """
    return identifier.rsplit(TAG_SEPARATOR, 1)[-1].lower()

# ============================================================
# Decoder interface
# ============================================================


class Decoder(ABC):
    """
    @brief Decoder：BinaryIO -> 结构值
    @brief Decoder: BinaryIO -> structured value
    """

    name: str
    version: str = "0.1.0"
    #: 默认认领的后缀（小写）/ Suffixes claimed by default (lower-case).
    tags: Sequence[str] = ()

    @abstractmethod
    def decode(self, stream: BinaryIO) -> Any:
        """
        @brief 读完整个 stream 并返回解码后的值
        @brief Consume the stream and return the decoded value

        @raises 解析库自身的异常 / the parser's own exception type
        """
        ...

    def describe(self) -> str:
        return f"{getattr(self, 'name', type(self).__name__)}@{self.version}"
