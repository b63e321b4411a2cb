# backend/loadfile/sources/interface.py
from __future__ import annotations

"""
/**
 * @brief 数据源接口：identifier -> StreamHandle（字节流 + 显式的可关闭标记）。
 *        Source interface: identifier -> StreamHandle (byte stream + explicit closeable flag).
 *
 * 设计要点 / Design notes:
 * - 可关闭性是 StreamHandle 的显式字段，而不是运行时探测 stream 是否有 close()。
 *   Closeability is an explicit field of the handle, not a runtime probe for close().
 * - 一个 handle 只被读一次、释放一次；release() 重复调用是空操作。
 *   A handle is read once and released once; calling release() again is a no-op.
 * - Source 只负责“给出字节流”，不解析格式；格式属于 loadfile.formats。
 *   Sources only hand out bytes; parsing belongs to loadfile.formats.
 */
"""

import io
import threading
from abc import ABC, abstractmethod
from types import TracebackType
from typing import BinaryIO, Mapping, Optional, Type

from loadfile.errors import ReleaseError
from loadfile.utils.logger import get_logger


_LOG = get_logger(__name__)


class StreamHandle:
    """
    /**
     * @brief 数据源产出的字节流句柄 / Byte-stream handle produced by a source.
     *
     * @param stream
     *        可读二进制流 / Readable binary stream.
     * @param closeable
     *        True：句柄拥有资源，release() 会 close()；False：借用的流，release() 不关闭。
     *        True: the handle owns the resource and release() closes it;
     *        False: a borrowed stream that release() leaves open.
     * @param identifier
     *        产生该句柄的 identifier（诊断用）/ Identifier that produced it (diagnostics).
     */
    """

    __slots__ = ("_stream", "_closeable", "_identifier", "_released", "_lock")

    def __init__(self, stream: BinaryIO, *, closeable: bool, identifier: str = "") -> None:
        if not callable(getattr(stream, "read", None)):
            raise TypeError(f"stream must be readable, got {type(stream).__name__}")
        self._stream = stream
        self._closeable = bool(closeable)
        self._identifier = identifier
        self._released = False
        self._lock = threading.Lock()

    @classmethod
    def closing(cls, stream: BinaryIO, *, identifier: str = "") -> "StreamHandle":
        """Handle that owns ``stream``: releasing it closes the stream."""
        return cls(stream, closeable=True, identifier=identifier)

    @classmethod
    def borrowed(cls, stream: BinaryIO, *, identifier: str = "") -> "StreamHandle":
        """Handle over a stream it does not own: releasing it never closes the stream."""
        return cls(stream, closeable=False, identifier=identifier)

    @property
    def stream(self) -> BinaryIO:
        return self._stream

    @property
    def closeable(self) -> bool:
        return self._closeable

    @property
    def identifier(self) -> str:
        return self._identifier

    @property
    def released(self) -> bool:
        return self._released

    def read(self, size: int = -1) -> bytes:
        return self._stream.read(size)

    def release(self) -> None:
        """
        /**
         * @brief 释放句柄：closeable 时 close() 一次；否则只标记已释放。
         *        Release: close() once when closeable, otherwise only mark released.
         *
         * @throws ReleaseError
         *         close() 失败（原异常作为 __cause__）/ close() failed (original error as __cause__).
         */
        """
        with self._lock:
            if self._released:
                return
            self._released = True

        if not self._closeable:
            return

        try:
            self._stream.close()
        except Exception as e:
            raise ReleaseError(
                f"failed to release stream: {e}", identifier=self._identifier or None
            ) from e

    def release_after_failure(self, primary: BaseException) -> None:
        """
        /**
         * @brief 在已有主异常时释放：release 失败只记日志并附到主异常上，不覆盖主异常。
         *        Release while a primary failure is in flight: a release failure is
         *        logged and attached as a note, never replacing the primary error.
         */
        """
        try:
            self.release()
        except ReleaseError as e:
            _LOG.warning(
                "release failed after earlier error: identifier=%s error=%s primary=%s",
                self._identifier,
                e.__cause__,
                type(primary).__name__,
            )
            primary.add_note(f"also failed to release stream: {e.__cause__!r}")

    def __enter__(self) -> BinaryIO:
        return self._stream

    def __exit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        if exc is None:
            self.release()
        else:
            self.release_after_failure(exc)

    def __repr__(self) -> str:
        kind = "closing" if self._closeable else "borrowed"
        return f"StreamHandle({kind}, identifier={self._identifier!r}, released={self._released})"


class SourceProvider(ABC):
    """
    /**
     * @brief 数据源接口：把 identifier 变成 StreamHandle，失败则抛异常。
     *        Source interface: turn an identifier into a StreamHandle, or raise.
     *
     * @note
     * - 实现可以阻塞（打开文件、网络往返）；本层不加超时。
     *   Implementations may block (file open, network round-trip); no timeout is imposed here.
     * - 实现若要被并发使用，需自行保证线程安全。
     *   Implementations must be thread-safe themselves if shared across threads.
     */
    """

    name: str = "source"

    @abstractmethod
    def get_stream(
        self, identifier: str, *, parts: Mapping[str, str]
    ) -> StreamHandle:
        """
        /**
         * @brief 打开 identifier 对应的字节流 / Open the byte stream for identifier.
         *
         * @param identifier
         *        原始 identifier（不做规范化）/ Raw identifier (no normalization).
         * @param parts
         *        匹配 pattern 时抽取的命名分组；fallback 调用时为空。
         *        Named groups extracted by the matching pattern; empty for the fallback.
         */
        """
        ...

    def describe(self) -> str:
        return type(self).__name__


class NopCloseReader(io.RawIOBase):
    """
    /**
     * @brief 借用流的只读包装：close() 只关闭包装本身，不碰底层流。
     *        Read-only wrapper over a borrowed stream: close() only closes the wrapper.
     */
    """

    def __init__(self, stream: BinaryIO) -> None:
        super().__init__()
        self._inner = stream

    def readable(self) -> bool:
        return True

    def read(self, size: int = -1) -> bytes:
        self._checkClosed()
        return self._inner.read(size)

    def readinto(self, buffer) -> int:  # type: ignore[no-untyped-def]
        self._checkClosed()
        data = self._inner.read(len(buffer))
        n = len(data)
        buffer[:n] = data
        return n


def as_reader(handle: StreamHandle) -> BinaryIO:
    """
    /**
     * @brief 把 handle 变成“总是可以 close()”的 reader：可关闭的直接返回，借用的包一层。
     *        Turn a handle into a reader that is always safe to close(): owned streams
     *        are returned as-is, borrowed ones are wrapped.
     */
    """
    if handle.closeable:
        return handle.stream
    return NopCloseReader(handle.stream)  # type: ignore[return-value]


__all__ = [
    "NopCloseReader",
    "SourceProvider",
    "StreamHandle",
    "as_reader",
]
