"""Evento canonico entregue ao sink."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

SPEC_VERSION = "1.0"


@dataclass(frozen=True, slots=True)
class CanonicalEvent:
    """Notificacao normalizada, independente do sink.

    Attributes:
        id: Identificador do evento
        source: URI de proveniencia (recurso observado)
        type: Tipo fixo por provider
        subject: Assunto opcional (estado do recurso)
        data: Payload opaco; vazio e normal
        extensions: Metadados extras (ex.: resourceid)
    """

    id: str
    source: str
    type: str
    subject: str | None = None
    data: bytes = b""
    content_type: str | None = None
    extensions: dict[str, str] = field(default_factory=dict)
    time: datetime = field(default_factory=lambda: datetime.now(UTC))

    def to_log_dict(self) -> dict[str, Any]:
        """Representacao segura para logs (sem payload)."""
        return {
            "event_id": self.id,
            "event_type": self.type,
            "event_source": self.source,
            "event_subject": self.subject,
            "payload_size": len(self.data),
        }
