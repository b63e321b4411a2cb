"""
/**
 * @file wiring.py
 * @brief loadfile 的命名注册表装配点 / Named registry wiring for loadfile.
 *
 * 本模块只做一件事：
 * - 声明两个扩展点（数据源 / 解码器），各自一个 Registry
 * - 暴露标准注册入口（decorator / function）
 *
 * 注意：
 * - 本模块不 import 任何具体实现（local_fs / s3 / yaml ...）
 * - 实现模块通过 import + decorator 显式注册；配置文件按名字引用它们
 *   Implementations register themselves on import; loader configs refer to them by name.
 */
"""

from __future__ import annotations

from loadfile.formats.interface import Decoder
from loadfile.sources.interface import SourceProvider
from loadfile.utils.registry import Registry

# ============================================================
# Sources registry / 数据源注册表
# ============================================================

#: All SourceProvider implementations, by config name.
#: 所有 SourceProvider 实现（按配置名）。
SOURCES: Registry[SourceProvider] = Registry(
    namespace="sources",
    base=SourceProvider,
)

register_source = SOURCES.register

# ============================================================
# Decoders registry / 解码器注册表
# ============================================================

#: All Decoder implementations, by config name.
#: 所有 Decoder 实现（按配置名）。
DECODERS: Registry[Decoder] = Registry(
    namespace="decoders",
    base=Decoder,
)

register_decoder = DECODERS.register

#: Modules whose import registers the built-in implementations.
#: import 即注册内置实现的模块列表。
BUILTIN_PLUGINS: tuple[str, ...] = (
    "loadfile.sources.local_fs",
    "loadfile.sources.s3",
    "loadfile.sources.memory",
    "loadfile.formats.json_payload",
    "loadfile.formats.yaml_payload",
    "loadfile.formats.xml_payload",
)
