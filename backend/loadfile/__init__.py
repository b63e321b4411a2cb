"""
/**
 * @file __init__.py
 * @brief loadfile 包标识与元信息（无副作用）/ Package marker & metadata (no side effects).
 *
 * 约束 / Constraints:
 * - 不在此处 import 子模块，避免 import-time 副作用（如 boto3 / yaml）与循环依赖。
 *   Do NOT import submodules here; keeps boto3 / yaml and registrations out of import time.
 * - 入口请使用 loadfile.loader（load / resolve / open_reader）。
 *   Use loadfile.loader as the entry point (load / resolve / open_reader).
 */
"""

from __future__ import annotations

__all__: list[str] = []

__version__: str = "0.1.0"
