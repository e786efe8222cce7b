"""Configuração de logging estruturado.

Uso:
    from config.logging import configure_logging, get_logger

    configure_logging(level="INFO", service_name="gsuite_source_controller")
    logger = get_logger(__name__)
"""

from config.logging.config import configure_logging, get_logger
from config.logging.filters import SENSITIVE_LOG_FIELDS, SourceContextFilter
from config.logging.formatters import (
    FIELD_RENAME_MAP,
    REQUIRED_LOG_FIELDS,
    create_json_formatter,
)

__all__ = [
    "FIELD_RENAME_MAP",
    "REQUIRED_LOG_FIELDS",
    "SENSITIVE_LOG_FIELDS",
    "SourceContextFilter",
    "configure_logging",
    "create_json_formatter",
    "get_logger",
]
