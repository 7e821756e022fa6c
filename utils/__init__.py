"""通用工具函数"""

import logging
import sys
from typing import Optional

DEFAULT_LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_logger(
    name: str = "multi_edit",
    level: str = "INFO",
    fmt: Optional[str] = None,
) -> logging.Logger:
    """
    配置并返回命名 logger

    重复调用不会叠加 handler。

    Args:
        name: logger 名称
        level: 日志级别（DEBUG / INFO / WARNING / ERROR）
        fmt: 日志格式，默认 DEFAULT_LOG_FORMAT

    Returns:
        配置好的 logging.Logger
    """
    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, str(level).upper(), logging.INFO))

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(fmt or DEFAULT_LOG_FORMAT))
        logger.addHandler(handler)

    return logger


__all__ = ["setup_logger", "DEFAULT_LOG_FORMAT"]
