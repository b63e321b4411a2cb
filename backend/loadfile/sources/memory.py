"""MemorySource - serve identifiers from an in-memory mapping of bytes."""

from __future__ import annotations

import io
from types import MappingProxyType
from typing import Mapping, Union

from loadfile.sources.interface import SourceProvider, StreamHandle
from loadfile.wiring import register_source


@register_source("memory")
class MemorySource(SourceProvider):
    """Serve fixed payloads keyed by identifier.

    Handles are borrowed: each call gets a fresh ``BytesIO`` that needs no
    closing, so ``release()`` leaves it alone. ``str`` payloads are stored as
    UTF-8. Unknown identifiers raise ``FileNotFoundError`` like a missing file.
    """

    name: str = "memory"

    def __init__(self, payloads: Mapping[str, Union[bytes, str]] | None = None) -> None:
        data: dict[str, bytes] = {}
        for key, value in (payloads or {}).items():
            if isinstance(value, str):
                value = value.encode("utf-8")
            if not isinstance(value, (bytes, bytearray)):
                raise TypeError(
                    f"payload for {key!r} must be bytes or str, got {type(value).__name__}"
                )
            data[str(key)] = bytes(value)
        self._payloads: Mapping[str, bytes] = MappingProxyType(data)

    @property
    def payloads(self) -> Mapping[str, bytes]:
        return self._payloads

    def get_stream(
        self, identifier: str, *, parts: Mapping[str, str]
    ) -> StreamHandle:
        try:
            payload = self._payloads[identifier]
        except KeyError:
            raise FileNotFoundError(f"no in-memory payload for {identifier!r}") from None
        return StreamHandle.borrowed(io.BytesIO(payload), identifier=identifier)

    def describe(self) -> str:
        return f"MemorySource(entries={len(self._payloads)})"
