# medroute/common/__init__.py
"""
Общие утилиты, константы, исключения и логгер.
"""

from medroute.common.logger import get_logger, log_info, log_error, log_warning, log_debug
from medroute.common.constants import TypeMsg
from medroute.common.localization import get_text, load_lang_dict

__all__ = [
    "get_logger",
    "log_info",
    "log_error",
    "log_warning",
    "log_debug",
    "TypeMsg",
    "get_text",
    "load_lang_dict",
]
