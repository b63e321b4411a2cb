# backend/loadfile/sources/local_fs.py
"""
/**
 * @brief 本地文件数据源：直接 open(identifier, "rb")，不做存在性预检查。
 *        Local filesystem source: plain open(identifier, "rb"), no existence pre-check.
 *
 * @note
 *        文件不存在时由 open() 抛出 FileNotFoundError，本层不另造 "not found"。
 *        A missing file surfaces as FileNotFoundError from open(); no separate "not found" check.
 */
"""

from __future__ import annotations

import os
from typing import Mapping, Optional

from loadfile.sources.interface import SourceProvider, StreamHandle
from loadfile.wiring import register_source


@register_source("local")
class LocalFileSource(SourceProvider):
    """
    /**
     * @brief 本地文件数据源 / Local file source.
     *
     * @param base_dir
     *        可选：相对路径的基准目录；绝对路径不受影响。
     *        Optional base directory for relative identifiers; absolute paths are untouched.
     * @param buffering
     *        传给 open() 的缓冲大小 / Buffer size passed to open().
     */
    """

    name: str = "local"

    def __init__(self, base_dir: Optional[str] = None, buffering: int = -1) -> None:
        self._base_dir = base_dir
        self._buffering = buffering

    def path_for(self, identifier: str) -> str:
        if self._base_dir:
            return os.path.join(self._base_dir, identifier)
        return identifier

    def get_stream(
        self, identifier: str, *, parts: Mapping[str, str]
    ) -> StreamHandle:
        fh = open(self.path_for(identifier), "rb", buffering=self._buffering)
        return StreamHandle.closing(fh, identifier=identifier)

    def describe(self) -> str:
        if self._base_dir:
            return f"LocalFileSource(base_dir={self._base_dir!r})"
        return "LocalFileSource"
