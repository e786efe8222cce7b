"""Parse e validação inicial das notificações push do Google (sem segredos em log).

A ordem das checagens é fixa: método, presença do token, igualdade do
token, marcador de sync. O token é sempre validado antes de qualquer
outra inspeção dos headers.
"""

from __future__ import annotations

import hmac
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping

HEADER_CHANNEL_TOKEN = "x-goog-channel-token"
HEADER_CHANNEL_ID = "x-goog-channel-id"
HEADER_CHANNEL_EXPIRATION = "x-goog-channel-expiration"
HEADER_MESSAGE_NUMBER = "x-goog-message-number"
HEADER_RESOURCE_ID = "x-goog-resource-id"
HEADER_RESOURCE_URI = "x-goog-resource-uri"
HEADER_RESOURCE_STATE = "x-goog-resource-state"
HEADER_CHANGED = "x-goog-changed"

SYNC_STATE = "sync"


class ParseFailure(StrEnum):
    """Motivos de descarte de uma notificação."""

    INVALID_METHOD = "InvalidMethod"
    MISSING_TOKEN = "MissingToken"
    TOKEN_MISMATCH = "TokenMismatch"
    SYNC_MESSAGE = "SyncMessage"


class WebhookRequestError(ValueError):
    """Erro base para falhas de webhook."""

    reason: ParseFailure
    status_code: int = 400


class InvalidMethodError(WebhookRequestError):
    """Método diferente de POST."""

    reason = ParseFailure.INVALID_METHOD
    status_code = 405


class MissingTokenError(WebhookRequestError):
    """Header X-Goog-Channel-Token ausente."""

    reason = ParseFailure.MISSING_TOKEN
    status_code = 401


class TokenMismatchError(WebhookRequestError):
    """Token diferente do registrado na criação do canal."""

    reason = ParseFailure.TOKEN_MISMATCH
    status_code = 403


class SyncMessageError(WebhookRequestError):
    """Ping de handshake do canal; no-op, não é falha."""

    reason = ParseFailure.SYNC_MESSAGE
    status_code = 200


@dataclass(frozen=True, slots=True)
class PushNotification:
    """Notificação validada, pronta para normalização."""

    resource_id: str
    resource_uri: str
    resource_state: str
    channel_id: str = ""
    message_number: str = ""
    channel_expiration: str = ""
    changed: str = ""
    body: bytes = b""
    content_type: str | None = None


def parse_push_request(
    method: str,
    headers: Mapping[str, str],
    body: bytes,
    expected_token: str | None,
) -> PushNotification:
    """Valida a notificação push e extrai os metadados dos headers.

    Args:
        method: Método HTTP do request
        headers: Headers recebidos (qualquer capitalização)
        body: Corpo já lido por completo (vazio é normal)
        expected_token: Token registrado no canal; None rejeita tudo

    Raises:
        InvalidMethodError: Método diferente de POST
        MissingTokenError: Token ausente
        TokenMismatchError: Token divergente
        SyncMessageError: Mensagem de sync (no-op)

    Returns:
        PushNotification com os metadados do recurso
    """
    if method.upper() != "POST":
        raise InvalidMethodError(f"invalid_method:{method.upper()}")

    normalized = {key.lower(): value for key, value in headers.items()}
    token = normalized.get(HEADER_CHANNEL_TOKEN, "")
    if not token:
        raise MissingTokenError("missing_channel_token")
    if not expected_token or not hmac.compare_digest(token.encode(), expected_token.encode()):
        raise TokenMismatchError("channel_token_mismatch")

    state = normalized.get(HEADER_RESOURCE_STATE, "")
    if state.lower() == SYNC_STATE:
        raise SyncMessageError("sync_message")

    return PushNotification(
        resource_id=normalized.get(HEADER_RESOURCE_ID, ""),
        resource_uri=normalized.get(HEADER_RESOURCE_URI, ""),
        resource_state=state,
        channel_id=normalized.get(HEADER_CHANNEL_ID, ""),
        message_number=normalized.get(HEADER_MESSAGE_NUMBER, ""),
        channel_expiration=normalized.get(HEADER_CHANNEL_EXPIRATION, ""),
        changed=normalized.get(HEADER_CHANGED, ""),
        body=body,
        content_type=normalized.get("content-type") or None,
    )
