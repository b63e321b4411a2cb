# backend/loadfile/sources/registry.py
"""
/**
 * @file registry.py
 * @brief SourceRegistry：按注册顺序匹配 pattern，选出唯一的数据源；都不匹配时走 fallback。
 *        SourceRegistry: match patterns in registration order to pick exactly one source;
 *        fall back when none matches.
 *
 * 约束 / Invariants:
 * - bindings 是有序 tuple（不是 dict），先注册者优先；重叠 pattern 是预期情况。
 *   Bindings are an ordered tuple (never a dict); earlier wins; overlapping patterns are expected.
 * - 构造后不可变；with_binding()/with_fallback() 返回新对象，可跨线程共享无需加锁。
 *   Immutable after construction; with_binding()/with_fallback() return new registries,
 *   so one instance can be shared across threads without locking.
 * - 数据源抛出的异常原样上抛，只附加 identifier。
 *   Provider failures propagate unchanged, only the identifier is attached.
 */
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, Iterable, Optional, Sequence, Tuple, Union

from loadfile.errors import NoProviderMatchedError, note_identifier
from loadfile.sources.interface import SourceProvider, StreamHandle
from loadfile.utils.logger import get_logger


_LOG = get_logger(__name__)


@dataclass(frozen=True)
class Pattern:
    """
    /**
     * @brief identifier 匹配器：正则 + 命名分组抽取 / Identifier matcher: regex + named-group extraction.
     */
    """

    regex: re.Pattern[str]

    @classmethod
    def compile(cls, expr: Union[str, re.Pattern[str]]) -> "Pattern":
        if isinstance(expr, re.Pattern):
            return cls(regex=expr)
        return cls(regex=re.compile(expr))

    @property
    def expr(self) -> str:
        return self.regex.pattern

    def match(self, identifier: str) -> Optional[Dict[str, str]]:
        """
        /**
         * @brief 匹配 identifier（re.search 语义，锚点由表达式自己决定）。
         *        Test identifier (re.search semantics; anchoring is up to the expression).
         *
         * @return
         *        不匹配返回 None；匹配返回命名分组（未参与匹配的分组省略）。
         *        None when no match; otherwise the named groups that participated.
         */
        """
        m = self.regex.search(identifier)
        if m is None:
            return None
        return {k: v for k, v in m.groupdict().items() if v is not None}


@dataclass(frozen=True)
class SourceBinding:
    pattern: Pattern
    provider: SourceProvider


BindingLike = Union[
    SourceBinding, Tuple[Union[str, re.Pattern[str], Pattern], SourceProvider]
]


def _coerce_binding(b: BindingLike) -> SourceBinding:
    if isinstance(b, SourceBinding):
        return b
    pattern, provider = b
    if not isinstance(pattern, Pattern):
        pattern = Pattern.compile(pattern)
    if not isinstance(provider, SourceProvider):
        raise TypeError(
            f"binding provider must be a SourceProvider, got {type(provider).__name__}"
        )
    return SourceBinding(pattern=pattern, provider=provider)


class SourceRegistry:
    """
    /**
     * @brief 有序 (pattern, provider) 绑定 + 可选 fallback / Ordered (pattern, provider) bindings + optional fallback.
     */
    """

    __slots__ = ("_bindings", "_fallback")

    def __init__(
        self,
        bindings: Iterable[BindingLike] = (),
        fallback: Optional[SourceProvider] = None,
    ) -> None:
        if fallback is not None and not isinstance(fallback, SourceProvider):
            raise TypeError(
                f"fallback must be a SourceProvider, got {type(fallback).__name__}"
            )
        self._bindings: Tuple[SourceBinding, ...] = tuple(
            _coerce_binding(b) for b in bindings
        )
        self._fallback: Optional[SourceProvider] = fallback

    @property
    def bindings(self) -> Sequence[SourceBinding]:
        return self._bindings

    @property
    def fallback(self) -> Optional[SourceProvider]:
        return self._fallback

    def with_binding(
        self, pattern: Union[str, re.Pattern[str], Pattern], provider: SourceProvider
    ) -> "SourceRegistry":
        """Return a new registry with one more binding appended (lowest precedence)."""
        return SourceRegistry(
            (*self._bindings, _coerce_binding((pattern, provider))), self._fallback
        )

    def with_fallback(self, provider: Optional[SourceProvider]) -> "SourceRegistry":
        return SourceRegistry(self._bindings, provider)

    def select(
        self, identifier: str
    ) -> Optional[Tuple[SourceProvider, Dict[str, str]]]:
        """
        /**
         * @brief 选出数据源：第一个匹配的 binding，否则 fallback，否则 None。
         *        Pick a source: first matching binding, else the fallback, else None.
         *
         * @return
         *        (provider, parts) 或 None / (provider, parts) or None.
         */
        """
        for binding in self._bindings:
            parts = binding.pattern.match(identifier)
            if parts is not None:
                return binding.provider, parts
        if self._fallback is not None:
            return self._fallback, {}
        return None

    def resolve(self, identifier: str) -> StreamHandle:
        """
        /**
         * @brief 把 identifier 解析为 StreamHandle，所有权交给调用方。
         *        Resolve identifier to a StreamHandle; ownership passes to the caller.
         *
         * @throws NoProviderMatchedError
         *         没有 binding 匹配且未配置 fallback / No binding matched and there is no fallback.
         * @note
         *         数据源自己的异常原样上抛（附 identifier note）。
         *         Provider errors propagate with their own type (identifier note attached).
         */
        """
        if not isinstance(identifier, str):
            raise TypeError(f"identifier must be str, got {type(identifier).__name__}")

        selected = self.select(identifier)
        if selected is None:
            raise NoProviderMatchedError(identifier)
        provider, parts = selected

        _LOG.debug(
            "source selected: identifier=%s provider=%s parts=%s",
            identifier,
            provider.describe(),
            parts,
        )

        try:
            handle = provider.get_stream(identifier, parts=parts)
        except Exception as e:
            note_identifier(e, identifier)
            raise

        if not isinstance(handle, StreamHandle):
            close = getattr(handle, "close", None)
            if callable(close):
                close()
            raise TypeError(
                f"{provider.describe()}.get_stream must return StreamHandle, "
                f"got {type(handle).__name__}"
            )
        return handle

    def __repr__(self) -> str:
        inner = ", ".join(
            f"{b.pattern.expr!r}->{b.provider.describe()}" for b in self._bindings
        )
        fb = self._fallback.describe() if self._fallback is not None else None
        return f"SourceRegistry([{inner}], fallback={fb})"
