from __future__ import annotations

"""
/**
 * @file runtime.py
 * @brief 插件 import + 按配置组装 Loader。
 *
 * 本模块的职责：
 * - 确保内置实现与配置中声明的插件模块被 import（触发注册副作用）
 * - 通过 wiring registries 按名字实例化数据源/解码器，组装 Loader
 *
 * 注意：
 * - 本模块不管理 registry 本身，也不持有任何运行时对象
 * - Loader 组装完成后不可变
 *
 * Makes plugin imports explicit and turns a LoaderConfig into a Loader.
 */
"""

import importlib
import threading
from typing import Iterable

from loadfile.formats.dispatcher import FormatDispatcher
from loadfile.formats.interface import Decoder
from loadfile.loader import Loader
from loadfile.sources.registry import SourceBinding, Pattern, SourceRegistry
from loadfile.utils.logger import get_logger
from .configs import LoadedConfig, LoaderConfig

_LOG = get_logger(__name__)

# 进程级去重，避免重复 import
_import_lock = threading.Lock()
_imported_plugins: set[str] = set()


def ensure_plugins_loaded(loaded: LoadedConfig | None = None) -> None:
    """
    @brief 确保内置实现与配置中的插件被 import
           Ensure built-in implementations and configured plugins are imported.
    """
    from loadfile.wiring import BUILTIN_PLUGINS

    modules: list[str] = list(BUILTIN_PLUGINS)
    if loaded is not None:
        modules.extend(loaded.config.plugins)
    _ensure_modules_imported(modules)


def _ensure_modules_imported(modules: Iterable[str]) -> None:
    """
    @brief import 一组模块名（幂等）
           Import a sequence of module names (idempotent).
    """
    with _import_lock:
        for module_name in modules:
            if module_name in _imported_plugins:
                continue

            _LOG.debug("import plugin: %s", module_name)
            importlib.import_module(module_name)
            _imported_plugins.add(module_name)


def build_loader(config: LoaderConfig) -> Loader:
    """
    @brief 按配置组装 Loader（调用前需 ensure_plugins_loaded）
           Build a Loader from config (call ensure_plugins_loaded first).

    @raises loadfile.utils.registry.NotFoundError 未注册的名字 / unknown name
    @raises TypeError 配置参数与构造函数不符 / config kwargs do not fit the constructor
    """
    from loadfile.wiring import DECODERS, SOURCES

    bindings = [
        SourceBinding(
            pattern=Pattern.compile(b.pattern),
            provider=SOURCES.create(b.source.name, b.source.config),
        )
        for b in config.sources.bindings
    ]
    fb = config.sources.fallback
    fallback = None if fb is None else SOURCES.create(fb.name, fb.config)
    sources = SourceRegistry(bindings, fallback=fallback)

    table: dict[str, Decoder] = {}
    by_name: dict[str, Decoder] = {}
    for d in config.formats.decoders:
        decoder = DECODERS.create(d.name, d.config)
        by_name.setdefault(d.name.lower(), decoder)
        for tag in d.tags if d.tags is not None else decoder.tags:
            # 同一 tag 先到先得，与 FormatDispatcher.from_decoders 一致
            table.setdefault(tag.lower(), decoder)

    dflt = config.formats.default
    default = by_name.get(dflt.name.lower()) if not dflt.config else None
    if default is None:
        default = DECODERS.create(dflt.name, dflt.config)

    loader = Loader(sources, FormatDispatcher(table, default))
    _LOG.info("loader built: %r", loader)
    return loader
