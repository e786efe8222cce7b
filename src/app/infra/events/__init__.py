"""Entrega de eventos canonicos."""

from app.infra.events.http_sender import (
    HttpEventSender,
    HttpSenderConfig,
    build_binary_headers,
    create_http_client,
)

__all__ = [
    "HttpEventSender",
    "HttpSenderConfig",
    "build_binary_headers",
    "create_http_client",
]
