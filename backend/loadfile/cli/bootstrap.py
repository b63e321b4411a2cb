# backend/loadfile/cli/bootstrap.py
"""
/**
 * @file bootstrap.py
 * @brief CLI 启动：配置 logging、加载内置插件、自检 registries（无业务逻辑）。
 *        CLI bootstrap: configure logging, load built-in plugins, check registries (no business logic).
 */
"""

from __future__ import annotations

from dataclasses import dataclass


class BootstrapError(RuntimeError):
    """/**
    * @brief 启动阶段通用异常 / Generic bootstrap error.
    */"""


class PreflightCheckError(BootstrapError):
    """/**
    * @brief 自检失败 / Preflight check failed.
    */"""


@dataclass(frozen=True)
class BootstrapConfig:
    """/**
    * @brief 启动配置：日志等级（None 表示取环境变量）、是否严格检查注册表。
    *        Bootstrap config: log level (None reads the environment), strict registry check.
    */"""

    log_level: str | None = None
    strict_registry: bool = True


@dataclass(frozen=True)
class BootstrapResult:
    diagnostics: dict[str, str]


def _check_python_version(*, min_major: int = 3, min_minor: int = 11) -> None:
    """/**
    * @brief 校验 Python 版本下限（异常 add_note 需要 3.11）/ Check minimum Python version (exception notes need 3.11).
    */"""

    import sys

    v = sys.version_info
    if (v.major, v.minor) < (min_major, min_minor):
        raise PreflightCheckError(
            f"Python>={min_major}.{min_minor} required, got {v.major}.{v.minor}"
        )


def _configure_logging(level: str | None) -> None:
    """/**
    * @brief 唯一允许进行全局 logging 初始化的地方 / The only place that initializes logging.
    *
    * @note
    *        CLI 下所有日志都走 stderr：stdout 留给 cat / show 的输出。
    *        Under the CLI every record goes to stderr; stdout carries cat / show output.
    */"""

    import sys

    from loadfile.utils.logger import configure_logging

    configure_logging(level=level, stdout=sys.stderr, stderr=sys.stderr, force=True)


def _preflight_registry(*, strict: bool) -> dict[str, str]:
    """/**
    * @brief 自检 wiring registries；strict 模式下要求非空。
    *        Check wiring registries; in strict mode they must be populated.
    */"""

    from loadfile import wiring

    diags: dict[str, str] = {}
    registries = {
        "sources": wiring.SOURCES,
        "decoders": wiring.DECODERS,
    }

    for name, reg in registries.items():
        count = len(reg)
        diags[f"registry.{name}.count"] = str(count)
        diags[f"registry.{name}.names"] = ",".join(reg.keys())

        if strict and count == 0:
            raise PreflightCheckError(
                f"registry '{name}' is empty. did the built-in plugin modules fail to import?"
            )

    return diags


def bootstrap(*, cfg: BootstrapConfig | None = None) -> BootstrapResult:
    """/**
    * @brief CLI 启动入口 / CLI bootstrap entry.
    */"""

    cfg0 = cfg or BootstrapConfig()

    # 日志必须最早配置
    _configure_logging(cfg0.log_level)
    _check_python_version()

    from .runtime import ensure_plugins_loaded

    ensure_plugins_loaded()

    return BootstrapResult(diagnostics=_preflight_registry(strict=cfg0.strict_registry))
