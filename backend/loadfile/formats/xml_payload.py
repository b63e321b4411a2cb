"""
/**
 * @file xml_payload.py
 * @brief XML 解码器：ElementTree 增量解析，再投影为 dict / list / str。
 *        XML decoder: incremental ElementTree parse, projected onto dict / list / str.
 *
 * 投影规则 / Projection rules:
 * - 结果为 {根标签: 内容} / Result is {root_tag: content}.
 * - 属性 -> "@name"；有子元素或属性时的文本 -> "#text"。
 *   Attributes -> "@name"; text next to children or attributes -> "#text".
 * - 重复的子标签 -> list（按文档顺序）/ Repeated child tags -> list (document order).
 * - 无属性叶子 -> 去空白的文本；空叶子 -> None。
 *   Leaf without attributes -> stripped text; empty leaf -> None.
 */
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from typing import Any, BinaryIO, Sequence

from loadfile.formats.interface import Decoder, JsonValue
from loadfile.wiring import register_decoder


ATTR_PREFIX: str = "@"
TEXT_KEY: str = "#text"


def element_to_value(el: ET.Element) -> JsonValue:
    children = list(el)
    text = (el.text or "").strip()

    if not children and not el.attrib:
        return text or None

    out: dict[str, JsonValue] = {}
    for k, v in el.attrib.items():
        out[f"{ATTR_PREFIX}{k}"] = v

    repeated: set[str] = set()
    for child in children:
        value = element_to_value(child)
        tag = child.tag
        if tag not in out:
            out[tag] = value
        elif tag in repeated:
            out[tag].append(value)  # type: ignore[union-attr]
        else:
            out[tag] = [out[tag], value]
            repeated.add(tag)

    if text:
        out[TEXT_KEY] = text
    return out


@register_decoder("xml")
class XmlPayloadDecoder(Decoder):
    """
    /**
     * @brief XML 解码器；解析失败抛 xml.etree.ElementTree.ParseError。
     *        XML decoder; failures raise xml.etree.ElementTree.ParseError.
     */
    """

    name: str = "xml"
    version: str = "0.1.0"
    tags: Sequence[str] = ("xml",)

    def decode(self, stream: BinaryIO) -> Any:
        root = ET.parse(stream).getroot()
        return {root.tag: element_to_value(root)}
