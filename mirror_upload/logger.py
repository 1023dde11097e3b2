"""
日志模块

使用 loguru 输出到标准输出。
"""

import os
import sys
from typing import Optional

from loguru import logger


def setup_logger(level: Optional[str] = None):
    """
    设置日志记录器

    Args:
        level: 日志级别，未指定时由 MIRROR_UPLOAD_DEBUG 环境变量决定
    """
    if level is None:
        level = "DEBUG" if os.environ.get("MIRROR_UPLOAD_DEBUG", "0") == "1" else "INFO"
    debug_mode = level == "DEBUG"

    logger.remove()
    logger.add(
        sink=sys.stdout,
        format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {message}",
        level=level,
        colorize=True,
        backtrace=debug_mode,
        diagnose=debug_mode,
    )
    if debug_mode:
        logger.debug("DEBUG 模式已启用")
