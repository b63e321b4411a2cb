"""
/**
 * @file main.py
 * @brief loadfile CLI 主入口 / Main entry point for the loadfile CLI.
 *
 * ============================================================
 * 使用方法 / Usage
 * ============================================================
 *
 * 1) 输出原始字节（不解码）：
 *
 *    $ loadfile cat s3://bucket/path/raw.bin > raw.bin
 *
 * 2) 解码并以 JSON 打印：
 *
 *    $ loadfile show configs/app.yaml --indent 2
 *
 * 3) 组装 Loader 并打印绑定、fallback 与解码器表：
 *
 *    $ loadfile doctor --config configs/loader.yaml
 *
 * 4) 列出当前已注册的数据源与解码器：
 *
 *    $ loadfile list
 *
 * 所有子命令都接受 --config（JSON/YAML，本地或 s3://）；缺省时使用内置默认配置。
 * Every subcommand takes --config (JSON/YAML, local or s3://); defaults apply otherwise.
 *
 * 退出码 / Exit codes: 0 ok, 2 usage, 3 load failure, 4 fatal.
 */
"""

from __future__ import annotations

import argparse
import json
import os
import shutil
import sys
import traceback
from typing import List, Optional

from loadfile.cli.bootstrap import bootstrap
from loadfile.cli.configs import LoadedConfig, default_config, load_config_file
from loadfile.cli.runtime import build_loader, ensure_plugins_loaded
from loadfile.loader import Loader
from loadfile.utils.logger import LEVEL_ENV_VAR, get_logger, set_log_level
from loadfile.wiring import DECODERS, SOURCES

logger = get_logger(__name__)

EXIT_OK = 0
EXIT_LOAD_FAILED = 3
EXIT_FATAL = 4


# ============================================================
# CLI parsing
# ============================================================


def build_parser() -> argparse.ArgumentParser:
    """
    @brief 构建 CLI 参数解析器 / Build CLI argument parser.
    """
    parser = argparse.ArgumentParser(
        prog="loadfile",
        description="Load local or object-storage content and decode it by suffix",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Minimum log level (default: LOADFILE_LOG_LEVEL, then config log_level, then WARNING)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    def add_config_arg(p: argparse.ArgumentParser) -> None:
        p.add_argument(
            "--config",
            default=None,
            help="Loader config file (JSON/YAML, local path or s3://)",
        )

    cat_parser = subparsers.add_parser("cat", help="Copy raw bytes to stdout")
    cat_parser.add_argument("identifier", help="Local path or s3://bucket/key")
    add_config_arg(cat_parser)

    show_parser = subparsers.add_parser("show", help="Decode and print as JSON")
    show_parser.add_argument("identifier", help="Local path or s3://bucket/key")
    show_parser.add_argument("--indent", type=int, default=2, help="JSON indent")
    add_config_arg(show_parser)

    doctor_parser = subparsers.add_parser(
        "doctor", help="Build the loader and print its bindings and decoders"
    )
    add_config_arg(doctor_parser)

    subparsers.add_parser("list", help="List registered sources and decoders")

    return parser


# ============================================================
# Helpers
# ============================================================


def _loaded_config(args: argparse.Namespace) -> LoadedConfig:
    path = getattr(args, "config", None)
    loaded = default_config() if path is None else load_config_file(path)
    # 优先级：--log-level > LOADFILE_LOG_LEVEL > 配置文件 log_level
    level = loaded.config.log_level
    if level is not None and args.log_level is None and not os.environ.get(LEVEL_ENV_VAR, "").strip():
        set_log_level(level)
    return loaded


def _make_loader(args: argparse.Namespace) -> Loader:
    loaded = _loaded_config(args)
    ensure_plugins_loaded(loaded)
    return build_loader(loaded.config)


# ============================================================
# Command handlers
# ============================================================


def cmd_cat(args: argparse.Namespace) -> int:
    """
    @brief 原样输出字节流 / Copy the raw stream to stdout.
    """
    loader = _make_loader(args)
    try:
        with loader.resolve(args.identifier) as stream:
            shutil.copyfileobj(stream, sys.stdout.buffer)
        sys.stdout.buffer.flush()
    except Exception as e:
        logger.error("cat failed: %s: %s", type(e).__name__, e)
        logger.debug(traceback.format_exc())
        return EXIT_LOAD_FAILED
    return EXIT_OK


def cmd_show(args: argparse.Namespace) -> int:
    """
    @brief 解码并打印 JSON / Decode and print as JSON.
    """
    loader = _make_loader(args)
    try:
        value = loader.load(args.identifier)
    except Exception as e:
        logger.error("load failed: %s: %s", type(e).__name__, e)
        logger.debug(traceback.format_exc())
        return EXIT_LOAD_FAILED

    indent = args.indent if args.indent and args.indent > 0 else None
    print(json.dumps(value, indent=indent, ensure_ascii=False, default=str))
    return EXIT_OK


def cmd_doctor(args: argparse.Namespace) -> int:
    """
    @brief 组装 Loader 并打印其配置 / Build the loader and print its configuration.
    """
    loaded = _loaded_config(args)
    ensure_plugins_loaded(loaded)
    loader = build_loader(loaded.config)

    print("config:", loaded.config_path or "<built-in default>")
    for i, b in enumerate(loader.sources.bindings):
        print(f"binding[{i}]: {b.pattern.expr} -> {b.provider.describe()}")
    fb = loader.sources.fallback
    print("fallback:", fb.describe() if fb is not None else "<none>")
    for tag, decoder in sorted(loader.formats.decoders.items()):
        print(f"decoder[{tag}]: {decoder.describe()}")
    print("default decoder:", loader.formats.default.describe())
    return EXIT_OK


def cmd_list() -> int:
    """
    @brief 列出当前已注册的插件 / List registered plugins.
    """
    print("Sources:", ", ".join(SOURCES.keys()))
    print("Decoders:", ", ".join(DECODERS.keys()))
    return EXIT_OK


# ============================================================
# Main entry
# ============================================================


def main(argv: Optional[List[str]] = None) -> int:
    """
    @brief CLI 主入口 / CLI main entry.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        # 日志系统必须最早初始化
        bootstrap()
        if args.log_level is not None:
            set_log_level(args.log_level)

        if args.command == "cat":
            return cmd_cat(args)
        if args.command == "show":
            return cmd_show(args)
        if args.command == "doctor":
            return cmd_doctor(args)
        if args.command == "list":
            return cmd_list()
    except Exception as e:
        logger.error("Fatal error: %s", e)
        logger.debug(traceback.format_exc())
        return EXIT_FATAL

    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
