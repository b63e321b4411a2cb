# backend/loadfile/utils/logger.py
"""
/**
 * @brief loadfile 统一日志工具：get_logger(__name__) 获取模块 logger；stdout/stderr 分流；
 *        等级可由 LOADFILE_LOG_LEVEL 环境变量或 set_log_level() 控制；编码安全输出。
 *        Unified logging for loadfile: get_logger(__name__) per module; stdout/stderr split;
 *        level from LOADFILE_LOG_LEVEL or set_log_level(); encoding-safe output.
 *
 * @note
 *        只挂在 "loadfile" logger 上，不碰 root logger，库被嵌入时不抢宿主的 handler。
 *        Handlers attach to the "loadfile" logger only, never root, so embedding
 *        applications keep control of their own logging.
 */
"""

from __future__ import annotations

import logging
import os
import sys
from dataclasses import dataclass, field
from typing import Optional, TextIO


LOGGER_NAMESPACE: str = "loadfile"
LEVEL_ENV_VAR: str = "LOADFILE_LOG_LEVEL"

_LEVELS: dict[str, int] = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "WARN": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
    "FATAL": logging.CRITICAL,
}


def _stream_encoding(stream: TextIO) -> str:
    return getattr(stream, "encoding", None) or "utf-8"


class _EncodingSafeStreamHandler(logging.StreamHandler):
    """
    /**
     * @brief 编码安全 StreamHandler：不可编码字符以 \\uXXXX 输出，避免 UnicodeEncodeError。
     *        Encoding-safe StreamHandler: unencodable chars become \\uXXXX instead of raising.
     */
    """

    def emit(self, record: logging.LogRecord) -> None:
        try:
            msg = self.format(record)
            enc = _stream_encoding(self.stream)
            safe_msg = msg.encode(enc, errors="backslashreplace").decode(enc)
            self.stream.write(safe_msg + self.terminator)
            self.flush()
        except Exception:
            self.handleError(record)


class _MaxLevelFilter(logging.Filter):
    """Let through records with level <= max_level (DEBUG/INFO to stdout)."""

    def __init__(self, max_level: int) -> None:
        super().__init__()
        self._max_level = max_level

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno <= self._max_level


@dataclass
class LoggingState:
    """
    /**
     * @brief 进程级日志状态：是否已配置、当前等级、两路 handler。
     *        Process-wide logging state: configured flag, current level, both handlers.
     */
    """

    configured: bool = False
    level: int = logging.WARNING
    handlers: list[logging.Handler] = field(default_factory=list)
    fmt: str = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
    datefmt: str = "%Y-%m-%d %H:%M:%S"


_STATE = LoggingState()


def parse_level(level: str | int | None, *, default: int = logging.WARNING) -> int:
    """
    /**
     * @brief 解析日志等级（名字或整数），无法识别时返回 default。
     *        Parse a level name or int; unknown names give default.
     */
    """
    if level is None:
        return default
    if isinstance(level, int):
        return level
    return _LEVELS.get(str(level).strip().upper(), default)


def _env_level() -> Optional[int]:
    raw = os.environ.get(LEVEL_ENV_VAR)
    if raw is None or not raw.strip():
        return None
    return parse_level(raw)


def configure_logging(
    *,
    level: str | int | None = None,
    stdout: Optional[TextIO] = None,
    stderr: Optional[TextIO] = None,
    force: bool = False,
) -> None:
    """
    /**
     * @brief 配置 "loadfile" logger：stdout/stderr 分流 + 等级过滤。
     *        Configure the "loadfile" logger: stdout/stderr split + level filtering.
     *
     * @param level
     *        最小等级；None 时取 LOADFILE_LOG_LEVEL，再退回 WARNING。
     *        Minimum level; None reads LOADFILE_LOG_LEVEL, then falls back to WARNING.
     * @param stdout
     *        DEBUG/INFO 输出流 / Stream for DEBUG/INFO.
     * @param stderr
     *        WARNING+ 输出流 / Stream for WARNING and above.
     * @param force
     *        替换已有 handler / Replace handlers installed earlier.
     */
    """
    if level is None:
        env = _env_level()
        lvl = env if env is not None else _STATE.level
    else:
        lvl = parse_level(level)

    if _STATE.configured and not force:
        set_log_level(lvl)
        return

    logger = logging.getLogger(LOGGER_NAMESPACE)
    for h in _STATE.handlers:
        logger.removeHandler(h)

    formatter = logging.Formatter(fmt=_STATE.fmt, datefmt=_STATE.datefmt)

    stdout_handler = _EncodingSafeStreamHandler(stream=stdout or sys.stdout)
    stdout_handler.setFormatter(formatter)
    stdout_handler.addFilter(_MaxLevelFilter(logging.INFO))

    stderr_handler = _EncodingSafeStreamHandler(stream=stderr or sys.stderr)
    stderr_handler.setFormatter(formatter)
    stderr_handler.setLevel(logging.WARNING)

    logger.addHandler(stdout_handler)
    logger.addHandler(stderr_handler)
    # 不向 root 冒泡，避免重复输出 / Do not bubble to root (no duplicate lines).
    logger.propagate = False

    _STATE.handlers = [stdout_handler, stderr_handler]
    _STATE.configured = True
    set_log_level(lvl)


def set_log_level(level: str | int) -> None:
    """
    /**
     * @brief 动态设置最小日志等级 / Set the minimum log level at runtime.
     */
    """
    lvl = parse_level(level, default=_STATE.level)
    _STATE.level = lvl
    logging.getLogger(LOGGER_NAMESPACE).setLevel(lvl)


def get_logger(name: str) -> logging.Logger:
    """
    /**
     * @brief 获取模块 logger，推荐 get_logger(__name__)。
     *        Get a module logger; use get_logger(__name__).
     *
     * @note
     *        首次调用时按默认值（或环境变量）自动配置。
     *        The first call auto-configures with defaults (or the environment variable).
     */
    """
    if not _STATE.configured:
        configure_logging()
    return logging.getLogger(name)
