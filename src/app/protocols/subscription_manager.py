"""Contrato dos gerenciadores de canais de push do provider."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from app.domain.subscription import SubscriptionRequest, WebhookSubscription


@runtime_checkable
class SubscriptionManagerProtocol(Protocol):
    """Cria e cancela canais; qualquer falha vira SubscriptionError."""

    async def create_subscription(self, request: SubscriptionRequest) -> WebhookSubscription: ...

    async def cancel_subscription(
        self,
        subscription_id: str,
        resource_id: str | None,
        *,
        credentials_json: str,
        subject: str | None = None,
    ) -> None: ...
