"""Contrato de envio de evento canonico ao sink."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from app.domain.event import CanonicalEvent


@runtime_checkable
class EventSenderProtocol(Protocol):
    """Envia um evento; levanta DeliveryError em falha."""

    async def send(self, event: CanonicalEvent) -> None: ...


@runtime_checkable
class ChannelTokenSourceProtocol(Protocol):
    """Origem do token esperado em X-Goog-Channel-Token."""

    async def expected_token(self, *, presented: str | None = None) -> str | None:
        """Retorna o token vigente; `presented` permite refresh em divergencia."""
        ...
