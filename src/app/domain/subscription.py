"""Modelos de dominio dos canais de push (watch channels) do provider."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta


@dataclass(frozen=True, slots=True)
class SubscriptionRequest:
    """Parametros de criacao de um canal.

    Attributes:
        channel_id: Id novo do canal (uuid)
        token: Segredo compartilhado ecoado em X-Goog-Channel-Token
        callback_url: Endereco HTTPS do adapter
        credentials_json: JSON da service account (material do secret)
        subject: Identidade impersonada (opcional)
        target: Recurso observado (calendarId/spreadsheetId)
        ttl_seconds: TTL solicitado ao provider
    """

    channel_id: str
    token: str
    callback_url: str
    credentials_json: str
    subject: str | None = None
    target: str | None = None
    ttl_seconds: int | None = None


@dataclass(frozen=True, slots=True)
class WebhookSubscription:
    """Canal registrado no provider; precisa ser cancelado explicitamente."""

    id: str
    token: str
    address: str
    resource_id: str | None = None
    expiration: datetime | None = None

    def expires_within(self, lead: timedelta, *, now: datetime | None = None) -> bool:
        """True se o canal expira dentro da antecedencia informada."""
        if self.expiration is None:
            return False
        current = now or datetime.now(UTC)
        return current >= self.expiration - lead
