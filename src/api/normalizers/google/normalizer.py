"""Normalizer Google: converte notificação push em evento canônico."""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import uuid4

from app.domain.event import CanonicalEvent

if TYPE_CHECKING:
    from api.connectors.google.webhook import PushNotification
    from app.domain.source import ProviderKind

RESOURCE_ID_EXTENSION = "resourceid"

_FALLBACK_SOURCES = {
    "calendar": "https://www.googleapis.com/calendar/v3",
    "drive": "https://www.googleapis.com/drive/v3",
    "sheets": "https://www.googleapis.com/drive/v3",
}


def build_event_id(notification: PushNotification) -> str:
    """Id do evento: resource id + número da mensagem; uuid sem resource id."""
    if not notification.resource_id:
        return str(uuid4())
    if notification.message_number:
        return f"{notification.resource_id}-{notification.message_number}"
    return notification.resource_id


class GooglePushNormalizer:
    """Normaliza notificações de um provider para `CanonicalEvent`."""

    __slots__ = ("_event_type", "_provider")

    def __init__(self, provider: ProviderKind, *, event_type: str | None = None) -> None:
        self._provider = provider
        self._event_type = event_type or provider.event_type

    @property
    def event_type(self) -> str:
        return self._event_type

    def normalize(self, notification: PushNotification) -> CanonicalEvent:
        extensions: dict[str, str] = {}
        if notification.resource_id:
            extensions[RESOURCE_ID_EXTENSION] = notification.resource_id
        return CanonicalEvent(
            id=build_event_id(notification),
            source=notification.resource_uri or _FALLBACK_SOURCES[self._provider.value],
            type=self._event_type,
            subject=notification.resource_state or None,
            data=notification.body,
            content_type=notification.content_type,
            extensions=extensions,
        )
