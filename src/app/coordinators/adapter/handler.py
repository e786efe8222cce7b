"""Adapter webhook -> evento canônico.

Valida a notificação contra o token do canal, normaliza e entrega ao
sink. Falha de entrega nunca volta para o provider: o ack é sempre 200.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from api.connectors.google.webhook import (
    HEADER_CHANNEL_TOKEN,
    SyncMessageError,
    WebhookRequestError,
    parse_push_request,
)
from app.observability import get_correlation_id
from utils.errors import DeliveryError

if TYPE_CHECKING:
    from collections.abc import Mapping

    from api.connectors.google.webhook import PushNotification
    from api.normalizers.google import GooglePushNormalizer
    from app.protocols import ChannelTokenSourceProtocol, EventSenderProtocol

logger = logging.getLogger(__name__)


class WebhookAdapter:
    """Runtime do adapter; o sender chega pronto (construído no startup)."""

    __slots__ = ("_normalizer", "_provider", "_sender", "_token_source")

    def __init__(
        self,
        *,
        provider: str,
        normalizer: GooglePushNormalizer,
        sender: EventSenderProtocol,
        token_source: ChannelTokenSourceProtocol,
    ) -> None:
        self._provider = provider
        self._normalizer = normalizer
        self._sender = sender
        self._token_source = token_source

    async def parse_request(
        self,
        method: str,
        headers: Mapping[str, str],
        body: bytes,
    ) -> PushNotification:
        """Valida o request; levanta WebhookRequestError com o motivo."""
        presented = _presented_token(headers)
        expected = await self._token_source.expected_token(presented=presented)
        try:
            notification = parse_push_request(method, headers, body, expected)
        except SyncMessageError:
            logger.info(
                "webhook_sync_message",
                extra={"provider": self._provider, "correlation_id": get_correlation_id()},
            )
            raise
        except WebhookRequestError as exc:
            logger.warning(
                "webhook_request_rejected",
                extra={
                    "provider": self._provider,
                    "reason": str(exc.reason),
                    "status_code": exc.status_code,
                    "correlation_id": get_correlation_id(),
                },
            )
            raise
        logger.info(
            "webhook_notification_accepted",
            extra={
                "provider": self._provider,
                "resource_state": notification.resource_state,
                "message_number": notification.message_number,
                "payload_size": len(notification.body),
                "correlation_id": get_correlation_id(),
            },
        )
        return notification

    async def handle_event(self, notification: PushNotification) -> bool:
        """Normaliza e envia; retorna se a entrega teve sucesso."""
        event = self._normalizer.normalize(notification)
        try:
            await self._sender.send(event)
        except DeliveryError as exc:
            logger.error(
                "webhook_event_delivery_failed",
                extra={
                    "provider": self._provider,
                    "status_code": exc.status_code,
                    "error": str(exc),
                    "correlation_id": get_correlation_id(),
                    **event.to_log_dict(),
                },
            )
            return False
        logger.info(
            "webhook_event_delivered",
            extra={
                "provider": self._provider,
                "correlation_id": get_correlation_id(),
                **event.to_log_dict(),
            },
        )
        return True


def _presented_token(headers: Mapping[str, str]) -> str | None:
    for key, value in headers.items():
        if key.lower() == HEADER_CHANNEL_TOKEN:
            return value or None
    return None
