"""
/**
 * @file json_payload.py
 * @brief JSON 解码器：bytes -> JSON 值；也是默认解码器（无后缀 / 未知后缀）。
 *        JSON decoder: bytes -> JSON value; also the default decoder (no / unknown suffix).
 *
 * 设计要点 / Design notes:
 * - 只做解析，不做结构校验与清洗。
 *   Parse only; no schema validation or cleaning.
 * - 只取第一个 JSON 值，其后的内容被忽略（与流式解码器一致）。
 *   Only the first JSON value is decoded; anything after it is ignored, as a
 *   streaming decoder would.
 * - 解析失败直接抛 json.JSONDecodeError（不包装），编码错误抛 UnicodeDecodeError。
 *   Failures raise json.JSONDecodeError unwrapped; bad encoding raises UnicodeDecodeError.
 */
"""

from __future__ import annotations

import json
from typing import Any, BinaryIO, Sequence

from loadfile.formats.interface import Decoder
from loadfile.wiring import register_decoder


@register_decoder("json")
class JsonPayloadDecoder(Decoder):
    """
    /**
     * @brief JSON 解码器 / JSON decoder.
     *
     * @param encoding
     *        payload 文本编码（默认 utf-8）/ Text encoding of the payload (default utf-8).
     * @param decode_errors
     *        bytes.decode 的 errors 参数 / `errors` argument for bytes.decode.
     */
    """

    name: str = "json"
    version: str = "0.1.0"
    tags: Sequence[str] = ("json",)

    def __init__(self, encoding: str = "utf-8", decode_errors: str = "strict") -> None:
        self._encoding = encoding.strip() or "utf-8"
        self._decode_errors = decode_errors
        self._decoder = json.JSONDecoder()

    def decode(self, stream: BinaryIO) -> Any:
        text = stream.read().decode(self._encoding, errors=self._decode_errors)

        # 常见容错：去 UTF-8 BOM
        if text.startswith("\ufeff"):
            text = text[1:]

        value, _end = self._decoder.raw_decode(text.lstrip())
        return value
