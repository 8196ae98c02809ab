# src/common/__init__.py
"""
Логгер и перечисления, общие для всех слоёв.
"""

from src.common.constants import ApiErrorCode, MotionType, OutputFormat, TypeMsg
from src.common.logger import get_logger, log_debug, log_error, log_info, log_warning, setup_logging

__all__ = [
    "ApiErrorCode",
    "MotionType",
    "OutputFormat",
    "TypeMsg",
    "get_logger",
    "log_debug",
    "log_error",
    "log_info",
    "log_warning",
    "setup_logging",
]
