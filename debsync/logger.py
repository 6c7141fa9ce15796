"""
日志模块

使用 loguru 输出同步过程，支持控制台与可选的日志文件。
"""

import os
import sys
from typing import Optional

from loguru import logger

LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {message}"


def _resolve_level(level: Optional[str]) -> str:
    if level:
        return level.upper()
    return "DEBUG" if os.environ.get("DEBSYNC_DEBUG", "0") == "1" else "INFO"


def setup_logger(
    level: Optional[str] = None,
    sink=sys.stdout,
    log_file: Optional[str] = None,
    enqueue: bool = True,
    colorize: bool = True,
) -> None:
    """
    设置日志记录器

    Args:
        level: 日志级别，未指定时读取 DEBSYNC_DEBUG 环境变量
        sink: 控制台输出目标
        log_file: 额外写入的日志文件（按 10 MB 轮转）
        enqueue: 是否启用队列（线程安全）
        colorize: 控制台是否启用颜色
    """
    level = _resolve_level(level)
    debug_mode = level == "DEBUG"

    logger.remove()
    logger.add(
        sink=sink,
        format=LOG_FORMAT,
        enqueue=enqueue,
        level=level,
        colorize=colorize,
        backtrace=debug_mode,
        diagnose=debug_mode,
    )

    if log_file:
        logger.add(
            log_file,
            format=LOG_FORMAT,
            enqueue=enqueue,
            level=level,
            rotation="10 MB",
            encoding="utf-8",
        )

    if debug_mode:
        logger.debug("DEBUG 模式已启用")


__all__ = ["logger", "setup_logger", "LOG_FORMAT"]
