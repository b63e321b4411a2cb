# backend/loadfile/cli/configs.py
"""
/**
 * @file configs.py
 * @brief Loader 配置解析：把配置文档解析为强类型规格（数据源绑定 + 解码器表 + 插件）。
 *        Loader config parsing: turn a config document into typed specs
 *        (source bindings + decoder table + plugins).
 *
 * 设计边界 / Boundaries:
 * - 这里只做“形状解析 + 基础校验”，不做 registry require，不 import 具体实现。
 *   Shape parsing + basic validation only; no registry lookups, no concrete impl imports.
 * - 配置文档本身用默认 Loader 读取：JSON / YAML，本地路径或 s3://。
 *   The document itself is read with the default Loader: JSON / YAML, local path or s3://.
 */
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from loadfile.formats.interface import JsonValue


# ============================================================
# Exceptions / 异常
# ============================================================

class ConfigError(ValueError):
    """Anything wrong with a loader config document."""


class ConfigFileNotFoundError(ConfigError):
    """The config identifier points at nothing."""


class ConfigSchemaError(ConfigError):
    """The document decoded, but its shape or types are wrong."""


# ============================================================
# Data models / 数据模型
# ============================================================

SUPPORTED_VERSIONS: tuple[int, ...] = (1,)


@dataclass(frozen=True)
class ImplConfig:
    name: str
    config: Mapping[str, JsonValue]


@dataclass(frozen=True)
class BindingConfig:
    pattern: str
    source: ImplConfig


@dataclass(frozen=True)
class SourcesConfig:
    bindings: tuple[BindingConfig, ...]
    fallback: Optional[ImplConfig]


@dataclass(frozen=True)
class DecoderConfig:
    name: str
    tags: Optional[tuple[str, ...]]  # None: use the decoder's own tags
    config: Mapping[str, JsonValue]


@dataclass(frozen=True)
class FormatsConfig:
    decoders: tuple[DecoderConfig, ...]
    default: ImplConfig


@dataclass(frozen=True)
class LoaderConfig:
    version: int
    log_level: Optional[str]  # None: keep --log-level / LOADFILE_LOG_LEVEL / WARNING
    plugins: tuple[str, ...]
    sources: SourcesConfig
    formats: FormatsConfig


@dataclass(frozen=True)
class LoadedConfig:
    config: LoaderConfig
    config_path: Optional[str]  # None: built-in default


#: 与 loadfile.loader.default_loader() 等价的配置文档。
#: Config document equivalent to loadfile.loader.default_loader().
DEFAULT_CONFIG: Mapping[str, Any] = {
    "version": 1,
    "plugins": [],
    "sources": {
        "bindings": [
            {
                "pattern": r"^s3://(?P<bucket>[^/]+)/(?P<key>.*)$",
                "source": {"name": "s3"},
            }
        ],
        "fallback": {"name": "local"},
    },
    "formats": {
        "decoders": [{"name": "json"}, {"name": "xml"}, {"name": "yaml"}],
        "default": "json",
    },
}


# ============================================================
# Public API
# ============================================================

def default_config() -> LoadedConfig:
    return LoadedConfig(config=parse_loader_config(DEFAULT_CONFIG), config_path=None)


def load_config_file(identifier: str) -> LoadedConfig:
    # 延迟 import：configs 不应在 import-time 拉起 loader 与具体实现
    import yaml

    from loadfile.loader import load

    try:
        data = load(identifier)
    except FileNotFoundError as e:
        raise ConfigFileNotFoundError(f"config file not found: {identifier}") from e
    except (ValueError, SyntaxError, yaml.YAMLError) as e:
        # JSONDecodeError 是 ValueError，xml ParseError 是 SyntaxError
        raise ConfigSchemaError(f"cannot decode config {identifier}: {e}") from e

    return LoadedConfig(config=parse_loader_config(data), config_path=identifier)


def parse_loader_config(obj: Any) -> LoaderConfig:
    if not isinstance(obj, Mapping):
        raise ConfigSchemaError("config must be an object")

    version = _integer(obj, "version")
    if version not in SUPPORTED_VERSIONS:
        raise ConfigSchemaError(
            f"unsupported config version {version}; supported={list(SUPPORTED_VERSIONS)}"
        )

    return LoaderConfig(
        version=version,
        log_level=None if obj.get("log_level") is None else _text(obj, "log_level"),
        plugins=_parse_plugins(obj.get("plugins") or []),
        sources=_parse_sources(_object(obj, "sources")),
        formats=_parse_formats(_object(obj, "formats")),
    )


# ============================================================
# Parsing helpers
# ============================================================

def _parse_plugins(items: Any) -> tuple[str, ...]:
    if not isinstance(items, list):
        raise ConfigSchemaError("field 'plugins' must be a list")

    seen: set[str] = set()
    out: list[str] = []

    for i, v in enumerate(items):
        if not isinstance(v, str) or not v.strip():
            raise ConfigSchemaError(f"plugins[{i}] must be a non-empty string")
        name = v.strip()
        if name not in seen:
            seen.add(name)
            out.append(name)

    return tuple(out)


def _parse_sources(m: Mapping[str, Any]) -> SourcesConfig:
    items = m.get("bindings") or []
    if not isinstance(items, list):
        raise ConfigSchemaError("field 'bindings' must be a list")

    bindings: list[BindingConfig] = []
    for i, it in enumerate(items):
        if not isinstance(it, Mapping):
            raise ConfigSchemaError(f"bindings[{i}] must be an object")
        pattern = _text(it, "pattern")
        try:
            re.compile(pattern)
        except re.error as e:
            raise ConfigSchemaError(f"bindings[{i}].pattern is not a valid regex: {e}") from e
        bindings.append(
            BindingConfig(
                pattern=pattern,
                source=_parse_impl(it.get("source"), where=f"bindings[{i}].source"),
            )
        )

    fb = m.get("fallback")
    fallback = None if fb is None else _parse_impl(fb, where="sources.fallback")

    return SourcesConfig(bindings=tuple(bindings), fallback=fallback)


def _parse_formats(m: Mapping[str, Any]) -> FormatsConfig:
    items = m.get("decoders") or []
    if not isinstance(items, list):
        raise ConfigSchemaError("field 'decoders' must be a list")

    decoders: list[DecoderConfig] = []
    for i, it in enumerate(items):
        impl = _parse_impl(it, where=f"decoders[{i}]")
        decoders.append(
            DecoderConfig(
                name=impl.name,
                tags=_parse_tags(it.get("tags"), where=f"decoders[{i}].tags"),
                config=impl.config,
            )
        )

    if "default" not in m:
        raise ConfigSchemaError("field 'formats.default' is required")

    return FormatsConfig(
        decoders=tuple(decoders),
        default=_parse_impl(m["default"], where="formats.default"),
    )


def _parse_impl(v: Any, *, where: str) -> ImplConfig:
    # "json" 是 {"name": "json"} 的简写 / "json" is shorthand for {"name": "json"}
    if isinstance(v, str):
        if not v.strip():
            raise ConfigSchemaError(f"{where} must be a non-empty string")
        return ImplConfig(name=v.strip(), config={})
    if not isinstance(v, Mapping):
        raise ConfigSchemaError(f"{where} must be a name or an object")
    return ImplConfig(
        name=_text(v, "name"),
        config=_object(v, "config", required=False),
    )


def _parse_tags(v: Any, *, where: str) -> Optional[tuple[str, ...]]:
    if v is None:
        return None
    if not isinstance(v, list) or not all(isinstance(t, str) and t.strip() for t in v):
        raise ConfigSchemaError(f"{where} must be a list of non-empty strings")
    return tuple(t.strip().lower() for t in v)


# ============================================================
# Field readers
# ============================================================

def _object(m: Mapping[str, Any], key: str, *, required: bool = True) -> Mapping[str, Any]:
    v = m.get(key)
    if v is None and not required:
        return {}
    if not isinstance(v, Mapping):
        raise ConfigSchemaError(f"'{key}' must be an object, got {type(v).__name__}")
    return dict(v)


def _text(m: Mapping[str, Any], key: str, *, default: Optional[str] = None) -> str:
    v = m.get(key, default)
    if not isinstance(v, str) or not v.strip():
        raise ConfigSchemaError(f"'{key}' must be a non-empty string")
    return v.strip()


def _integer(m: Mapping[str, Any], key: str) -> int:
    v = m.get(key)
    # bool 是 int 的子类，要单独排除
    if isinstance(v, bool) or not isinstance(v, int):
        raise ConfigSchemaError(f"'{key}' must be an integer, got {v!r}")
    return v
