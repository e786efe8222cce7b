"""Configuração centralizada de logging.

Controller e adapter usam o mesmo formato JSON, com:
- Campos obrigatórios (correlation_id, service, provider, source_key, level,
  logger, message)
- Nível configurável por ambiente (LOG_LEVEL)

Uso:
    from config.logging import configure_logging, get_logger

    configure_logging(level="INFO", service_name="gsuite_source_adapter")
    logger = get_logger(__name__)
    logger.info("event_sent", extra={"event_type": "...", "latency_ms": 42})

Tokens de canal e material de credencial nunca entram nos logs.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from config.logging.filters import SourceContextFilter
from config.logging.formatters import create_json_formatter

if TYPE_CHECKING:
    from collections.abc import Callable

VALID_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})

DEFAULT_SERVICE_NAME = "gsuite_source"

# Bibliotecas ruidosas em DEBUG (descoberta do googleapiclient, urllib3 do kubernetes)
_NOISY_LOGGERS = ("googleapiclient.discovery_cache", "urllib3", "kubernetes.client.rest")


def configure_logging(
    level: str = "INFO",
    service_name: str = DEFAULT_SERVICE_NAME,
    correlation_id_getter: Callable[[], str] | None = None,
    *,
    provider: str = "",
    source_key: str = "",
) -> None:
    """Configura logging JSON estruturado para o processo.

    Deve ser chamada uma vez na inicialização (app/bootstrap/).

    Args:
        level: Nível de log (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        service_name: Nome do serviço para identificação nos logs.
        correlation_id_getter: Função opcional que retorna o correlation_id
            do contexto atual (ex: de ContextVar).
        provider: Provider fixo do processo, quando houver um só (adapter).
        source_key: `namespace/name` da Source atendida pelo processo.

    Raises:
        ValueError: Se o nível de log for inválido.
    """
    level_upper = level.upper()
    if level_upper not in VALID_LOG_LEVELS:
        raise ValueError(
            f"Nível de log inválido: {level}. "
            f"Válidos: {', '.join(sorted(VALID_LOG_LEVELS))}"
        )

    handler = logging.StreamHandler()
    handler.setLevel(level_upper)
    handler.setFormatter(create_json_formatter())
    handler.addFilter(
        SourceContextFilter(
            service_name,
            correlation_id_getter,
            provider=provider,
            source_key=source_key,
        )
    )

    root = logging.getLogger()
    root.setLevel(level_upper)
    # Substituir handlers existentes para evitar duplicação
    root.handlers = [handler]

    for noisy in _NOISY_LOGGERS:
        logging.getLogger(noisy).setLevel(max(logging.WARNING, root.level))


def get_logger(name: str) -> logging.Logger:
    """Retorna logger para o módulo especificado.

    O filter injeta service, correlation_id, provider e source_key.
    """
    return logging.getLogger(name)
