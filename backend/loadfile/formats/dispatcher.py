# backend/loadfile/formats/dispatcher.py
"""
/**
 * @file dispatcher.py
 * @brief FormatDispatcher：按 identifier 后缀选解码器（精确匹配 -> 默认解码器），解码并填充目标。
 *        FormatDispatcher: pick a decoder by identifier suffix (exact match -> default decoder),
 *        decode, and populate the target.
 *
 * 约束 / Invariants:
 * - 每次 decode 恰好选中一个解码器；未知后缀（含无后缀）永远落到默认解码器，选择阶段不会失败。
 *   Exactly one decoder per call; unknown or missing suffixes always fall back, selection never fails.
 * - decode 返回时 stream 已被读完（成功或失败都是）；失败时的补读不会掩盖解码异常。
 *   The stream is fully consumed when decode returns, success or not; draining after a
 *   failure never masks the decode error.
 * - 解码失败不保证原子性：into 可能已被部分填充。
 *   No atomicity on failure: `into` may be partially populated.
 */
"""

from __future__ import annotations

from types import MappingProxyType
from typing import (
    Any,
    BinaryIO,
    Iterable,
    Mapping,
    MutableMapping,
    MutableSequence,
    Optional,
)

from loadfile.errors import note_identifier
from loadfile.formats.interface import Decoder, format_tag
from loadfile.utils.logger import get_logger


_LOG = get_logger(__name__)

_DRAIN_CHUNK: int = 64 * 1024


def _drain(stream: BinaryIO) -> int:
    """
    /**
     * @brief 读完 stream 剩余部分并丢弃 / Read and discard the rest of stream.
     *
     * @return 丢弃的字节数 / Number of bytes discarded.
     */
    """
    total = 0
    while True:
        chunk = stream.read(_DRAIN_CHUNK)
        if not chunk:
            return total
        total += len(chunk)


def populate(into: Any, value: Any) -> None:
    """
    /**
     * @brief 把解码值写入目标：mapping 用 update，list 用 extend，其余对象逐字段 setattr。
     *        Write a decoded value into a target: mappings are updated, lists extended,
     *        other objects get one setattr per key.
     *
     * @throws TypeError
     *         值的形状与目标不符 / The value shape does not fit the target.
     */
    """
    if isinstance(into, MutableMapping):
        if not isinstance(value, Mapping):
            raise TypeError(
                f"cannot decode {type(value).__name__} into a mapping target"
            )
        into.update(value)
        return

    if isinstance(into, MutableSequence) and not isinstance(into, (str, bytes, bytearray)):
        if not isinstance(value, list):
            raise TypeError(
                f"cannot decode {type(value).__name__} into a sequence target"
            )
        into.extend(value)
        return

    if not isinstance(value, Mapping):
        raise TypeError(
            f"cannot decode {type(value).__name__} into {type(into).__name__} attributes"
        )
    for k, v in value.items():
        if not isinstance(k, str) or not k.isidentifier():
            raise TypeError(
                f"cannot set key {k!r} as an attribute of {type(into).__name__}"
            )
        setattr(into, k, v)


class FormatDispatcher:
    """
    /**
     * @brief 后缀 -> 解码器映射 + 默认解码器（不可变）/ Suffix -> decoder mapping + default decoder (immutable).
     *
     * @param decoders
     *        FormatTag -> Decoder；key 会被转小写 / FormatTag -> Decoder; keys are lower-cased.
     * @param default
     *        未命中时使用的解码器 / Decoder used when no tag matches.
     */
    """

    __slots__ = ("_decoders", "_default")

    def __init__(self, decoders: Mapping[str, Decoder], default: Decoder) -> None:
        if not isinstance(default, Decoder):
            raise TypeError(f"default must be a Decoder, got {type(default).__name__}")

        table: dict[str, Decoder] = {}
        for tag, decoder in decoders.items():
            if not isinstance(decoder, Decoder):
                raise TypeError(
                    f"decoder for tag {tag!r} must be a Decoder, got {type(decoder).__name__}"
                )
            table[str(tag).lower()] = decoder

        self._decoders: Mapping[str, Decoder] = MappingProxyType(table)
        self._default: Decoder = default

    @classmethod
    def from_decoders(
        cls, decoders: Iterable[Decoder], *, default: Decoder
    ) -> "FormatDispatcher":
        """
        /**
         * @brief 用每个解码器自带的 tags 建表；同一 tag 先到先得。
         *        Build the table from each decoder's own tags; the first claim of a tag wins.
         */
        """
        table: dict[str, Decoder] = {}
        for decoder in decoders:
            for tag in decoder.tags:
                table.setdefault(tag.lower(), decoder)
        return cls(table, default)

    @property
    def decoders(self) -> Mapping[str, Decoder]:
        return self._decoders

    @property
    def default(self) -> Decoder:
        return self._default

    def select(self, identifier: str) -> Decoder:
        return self._decoders.get(format_tag(identifier), self._default)

    def decode(
        self, identifier: str, stream: BinaryIO, into: Optional[Any] = None
    ) -> Any:
        """
        /**
         * @brief 选解码器、解码 stream、（可选）填充 into，并返回解码值。
         *        Pick a decoder, decode stream, optionally populate into, return the value.
         *
         * @param identifier
         *        用于取后缀的 identifier / Identifier whose suffix selects the decoder.
         * @param stream
         *        已打开的字节流（本方法不关闭它）/ Open byte stream (not closed here).
         * @param into
         *        可选目标（dict / list / 任意对象）/ Optional target (dict / list / any object).
         *
         * @note
         *        解码异常原样上抛，只附加 identifier。
         *        Decode errors propagate with their own type; only the identifier is attached.
         */
        """
        decoder = self.select(identifier)
        _LOG.debug(
            "decoder selected: identifier=%s tag=%s decoder=%s",
            identifier,
            format_tag(identifier),
            decoder.describe(),
        )

        try:
            value = decoder.decode(stream)
            if into is not None:
                populate(into, value)
        except Exception as e:
            note_identifier(e, identifier)
            try:
                _drain(stream)
            except Exception as drain_err:
                _LOG.debug(
                    "drain after decode failure also failed: identifier=%s error=%s",
                    identifier,
                    drain_err,
                )
            raise

        leftover = _drain(stream)
        if leftover:
            _LOG.debug(
                "decoder left %d unread bytes: identifier=%s", leftover, identifier
            )
        return value

    def __repr__(self) -> str:
        inner = ", ".join(f"{t}->{d.describe()}" for t, d in sorted(self._decoders.items()))
        return f"FormatDispatcher([{inner}], default={self._default.describe()})"
