"""Webhook Google: validação de token e parsing das notificações push."""

from .receive import (
    HEADER_CHANNEL_TOKEN,
    InvalidMethodError,
    MissingTokenError,
    ParseFailure,
    PushNotification,
    SyncMessageError,
    TokenMismatchError,
    WebhookRequestError,
    parse_push_request,
)

__all__ = [
    "HEADER_CHANNEL_TOKEN",
    "InvalidMethodError",
    "MissingTokenError",
    "ParseFailure",
    "PushNotification",
    "SyncMessageError",
    "TokenMismatchError",
    "WebhookRequestError",
    "parse_push_request",
]
