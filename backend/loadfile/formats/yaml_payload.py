"""
/**
 * @file yaml_payload.py
 * @brief YAML 解码器（PyYAML safe_load）：先完整缓冲 stream，再解析。
 *        YAML decoder (PyYAML safe_load): buffers the whole stream, then parses.
 */
"""

from __future__ import annotations

from typing import Any, BinaryIO, Sequence

import yaml

from loadfile.formats.interface import Decoder
from loadfile.wiring import register_decoder


@register_decoder("yaml")
class YamlPayloadDecoder(Decoder):
    """
    /**
     * @brief YAML 解码器；空文档解码为 None，解析失败抛 yaml.YAMLError。
     *        YAML decoder; an empty document decodes to None, failures raise yaml.YAMLError.
     */
    """

    name: str = "yaml"
    version: str = "0.1.0"
    tags: Sequence[str] = ("yml", "yaml")

    def decode(self, stream: BinaryIO) -> Any:
        payload = stream.read()
        return yaml.safe_load(payload)
