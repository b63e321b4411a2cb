# backend/loadfile/loader.py
from __future__ import annotations

"""
/**
 * @brief Loader 门面：SourceRegistry（identifier -> 字节流）+ FormatDispatcher（字节流 -> 值）。
 *        Loader facade: SourceRegistry (identifier -> byte stream) + FormatDispatcher (bytes -> value).
 *
 * 用法 / Usage:
 *
 *     from loadfile.loader import load, resolve
 *
 *     cfg = load("configs/app.yaml")              # 本地文件 / local file
 *     doc = load("s3://bucket/path/doc.json")     # S3 对象 / S3 object
 *     with resolve("s3://bucket/raw.bin") as fh:  # 只要字节流 / raw stream only
 *         head = fh.read(16)
 *
 * 核心约束 / Core constraints:
 * - Loader 不可变，构造后可跨线程共享；default_loader() 只是一个记忆化的构造函数，不是可变全局。
 *   A Loader is immutable and shareable across threads; default_loader() is a memoized
 *   constructor, not a mutable global.
 * - load() 在每条退出路径上恰好释放一次已获得的 handle；释放失败不掩盖更早的主异常。
 *   load() releases an acquired handle exactly once on every exit path; a release
 *   failure never masks an earlier primary failure.
 */
"""

from functools import lru_cache
from typing import Any, BinaryIO, Optional

from loadfile.formats.dispatcher import FormatDispatcher
from loadfile.formats.json_payload import JsonPayloadDecoder
from loadfile.formats.xml_payload import XmlPayloadDecoder
from loadfile.formats.yaml_payload import YamlPayloadDecoder
from loadfile.sources.interface import StreamHandle, as_reader
from loadfile.sources.local_fs import LocalFileSource
from loadfile.sources.registry import SourceRegistry
from loadfile.sources.s3 import S3_PATTERN, S3Source
from loadfile.utils.logger import get_logger


_LOG = get_logger(__name__)


class Loader:
    """
    /**
     * @brief 两段分派的组合：先选数据源，再选解码器 / Two-stage dispatch: pick a source, then a decoder.
     */
    """

    __slots__ = ("_sources", "_formats")

    def __init__(self, sources: SourceRegistry, formats: FormatDispatcher) -> None:
        self._sources = sources
        self._formats = formats

    @property
    def sources(self) -> SourceRegistry:
        return self._sources

    @property
    def formats(self) -> FormatDispatcher:
        return self._formats

    def resolve(self, identifier: str) -> StreamHandle:
        """
        /**
         * @brief 只取字节流，不解码；调用方负责 release()（或用 with）。
         *        Raw stream only, no decoding; the caller releases it (or uses `with`).
         */
        """
        return self._sources.resolve(identifier)

    def open_reader(self, identifier: str) -> BinaryIO:
        """
        /**
         * @brief 取一个总能安全 close() 的 reader；借用的流被包装，close() 不会关到底层。
         *        Get a reader that is always safe to close(); borrowed streams are wrapped
         *        so close() never reaches the underlying stream.
         */
        """
        return as_reader(self._sources.resolve(identifier))

    def load(self, identifier: str, into: Optional[Any] = None) -> Any:
        """
        /**
         * @brief 解析数据源 + 按后缀解码（+ 可选填充 into），并返回解码值。
         *        Resolve the source, decode by suffix (optionally populating into), return the value.
         *
         * @param identifier
         *        本地路径或 s3://bucket/key 等 / Local path, s3://bucket/key, ...
         * @param into
         *        可选目标：dict / list / 任意对象 / Optional target: dict / list / any object.
         * @return
         *        解码后的值 / The decoded value.
         *
         * @throws NoProviderMatchedError
         *         没有匹配的数据源 / No source matched.
         * @throws ReleaseError
         *         解码成功但释放失败 / Decoding succeeded but releasing failed.
         * @note
         *         数据源与解码器的异常原样上抛（附 identifier note）。
         *         Source and decoder errors propagate with their own type (identifier note attached).
         */
        """
        handle = self._sources.resolve(identifier)

        try:
            value = self._formats.decode(identifier, handle.stream, into)
        except BaseException as e:
            handle.release_after_failure(e)
            raise

        handle.release()
        return value

    def __repr__(self) -> str:
        return f"Loader({self._sources!r}, {self._formats!r})"


def default_sources() -> SourceRegistry:
    """s3://bucket/key -> S3Source; everything else -> LocalFileSource."""
    return SourceRegistry([(S3_PATTERN, S3Source())], fallback=LocalFileSource())


def default_formats() -> FormatDispatcher:
    """json / xml / yml+yaml, with JSON as the default decoder."""
    json_decoder = JsonPayloadDecoder()
    return FormatDispatcher.from_decoders(
        [json_decoder, XmlPayloadDecoder(), YamlPayloadDecoder()],
        default=json_decoder,
    )


@lru_cache(maxsize=1)
def default_loader() -> Loader:
    """
    /**
     * @brief 默认配置的 Loader（记忆化；Loader 本身不可变）。
     *        Loader with the default configuration (memoized; the Loader itself is immutable).
     */
    """
    loader = Loader(default_sources(), default_formats())
    _LOG.debug("default loader built: %r", loader)
    return loader


def load(identifier: str, into: Optional[Any] = None, *, loader: Optional[Loader] = None) -> Any:
    return (loader or default_loader()).load(identifier, into)


def resolve(identifier: str, *, loader: Optional[Loader] = None) -> StreamHandle:
    return (loader or default_loader()).resolve(identifier)


def open_reader(identifier: str, *, loader: Optional[Loader] = None) -> BinaryIO:
    return (loader or default_loader()).open_reader(identifier)
