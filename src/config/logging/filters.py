"""Filters de logging para injeção de contexto da Source.

Campos injetados:
- correlation_id: request do webhook ou chave do passe de reconciliação
- service: processo (controller ou adapter)
- provider / source_key: Source atendida pelo processo; o adapter atende uma
  única Source, o controller informa por record via `extra`

Campos sensíveis (token do canal, JSON de credenciais) são mascarados.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable

REDACTED = "[redacted]"

SENSITIVE_LOG_FIELDS = frozenset({"webhook_token", "channel_token", "credentials_json"})


class SourceContextFilter(logging.Filter):
    """Enriquece cada record com o contexto do processo e da Source.

    Args:
        service_name: Nome do serviço para identificação nos logs.
        correlation_id_getter: Função que retorna o correlation_id atual.
        provider: Provider fixo do processo (adapter); vazio no controller.
        source_key: `namespace/name` fixo do processo (adapter).
    """

    def __init__(
        self,
        service_name: str,
        correlation_id_getter: Callable[[], str] | None = None,
        *,
        provider: str = "",
        source_key: str = "",
    ) -> None:
        super().__init__()
        self._service_name = service_name
        self._get_correlation_id = correlation_id_getter or (lambda: "")
        self._provider = provider
        self._source_key = source_key

    def filter(self, record: logging.LogRecord) -> bool:
        """Valores passados via `extra` têm precedência sobre os do processo."""
        existing = getattr(record, "correlation_id", None)
        record.correlation_id = existing if existing else self._get_correlation_id()
        record.service = self._service_name
        if not getattr(record, "provider", None):
            record.provider = self._provider
        if not getattr(record, "source_key", None):
            record.source_key = self._source_key
        for field in SENSITIVE_LOG_FIELDS:
            if getattr(record, field, None):
                setattr(record, field, REDACTED)
        return True
