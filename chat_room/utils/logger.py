"""Chat Room 日志系统

本模块提供统一的日志接口，支持标准日志和富文本日志。
只有包根日志器 ``chat_room`` 需要配置 handler，各模块的子日志器通过继承获得配置。
"""

import logging
import sys
from typing import Optional

from rich.logging import RichHandler

ROOT_LOGGER_NAME = "chat_room"

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(
    name: Optional[str] = ROOT_LOGGER_NAME,
    level: Optional[str] = "info",
    log_file: Optional[str] = None,
    enable_rich: Optional[bool] = True,
    log_format: Optional[str] = None,
) -> logging.Logger:
    """设置日志器

    创建并配置一个日志器实例。支持控制台输出和文件输出。

    Args:
        name: 日志器名称，默认为包根日志器
        level: 日志级别
        log_file: 日志文件路径，为 None 时不写文件
        enable_rich: 是否使用 rich 控制台输出
        log_format: 标准控制台和文件输出的格式

    Returns:
        配置好的日志器
    """
    level = (level or "INFO").upper()
    log_format = log_format or DEFAULT_FORMAT
    enable_rich = enable_rich if enable_rich is not None else True

    logger = logging.getLogger(name)
    logger.setLevel(level)

    # 清除现有处理器
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    if enable_rich:
        rich_handler = RichHandler(
            rich_tracebacks=True, show_time=True, show_level=True, show_path=False
        )
        rich_handler.setLevel(level)
        logger.addHandler(rich_handler)
    else:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(level)
        console_handler.setFormatter(logging.Formatter(log_format))
        logger.addHandler(console_handler)

    # 文件处理器（如果指定了日志文件）
    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(level)
        file_handler.setFormatter(logging.Formatter(log_format))
        logger.addHandler(file_handler)

    return logger


def get_logger(name: str = ROOT_LOGGER_NAME) -> logging.Logger:
    """获取日志器

    子日志器（如 ``chat_room.hub``）不单独配置 handler，
    输出由 ``configure_logging`` 配置的根日志器负责。

    Args:
        name: 日志器名称

    Returns:
        日志器实例
    """
    return logging.getLogger(name)
