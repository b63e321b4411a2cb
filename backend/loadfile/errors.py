# backend/loadfile/errors.py
"""
/**
 * @brief 加载层异常分类 / Error taxonomy of the loading layer.
 *
 * @note
 * - 数据源与解码器自身的异常（OSError / JSONDecodeError / YAMLError ...）原样上抛，
 *   只通过 add_note 附加 identifier；这里只定义本层自己产生的错误。
 *   Provider and decoder failures propagate with their own type (identifier attached
 *   via add_note); only errors raised by this layer itself live here.
 */
"""

from __future__ import annotations

from typing import Optional


class LoadError(RuntimeError):
    """
    /**
     * @brief 加载层通用异常，携带 identifier / Base loading error carrying the identifier.
     */
    """

    def __init__(self, message: str, *, identifier: Optional[str] = None) -> None:
        super().__init__(message)
        self.identifier = identifier


class NoProviderMatchedError(LoadError):
    """No pattern matched the identifier and no fallback source is configured."""

    def __init__(self, identifier: str) -> None:
        super().__init__(
            f"no source provider matched identifier={identifier!r}",
            identifier=identifier,
        )


class SourceError(LoadError):
    """A source provider rejected the identifier it was given."""


class ReleaseError(LoadError):
    """Releasing a closeable stream handle failed."""


def note_identifier(exc: BaseException, identifier: str) -> None:
    """
    /**
     * @brief 给异常附加 identifier 诊断信息（不改变异常类型）。
     *        Attach the identifier to an exception for diagnostics (type unchanged).
     *
     * @note 幂等：同一 identifier 只附加一次 / Idempotent per identifier.
     */
    """
    note = f"identifier={identifier!r}"
    if note not in getattr(exc, "__notes__", ()):
        exc.add_note(note)
