from .error_log import SkipLogBuffer
from .init import get_logger, log_summary, reset_logging, setup_logging

__all__ = [
    "SkipLogBuffer",
    "get_logger",
    "log_summary",
    "reset_logging",
    "setup_logging",
]
