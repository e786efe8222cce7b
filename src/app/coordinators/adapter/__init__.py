"""Coordenador do adapter webhook (validação, normalização, entrega)."""

from .handler import WebhookAdapter

__all__ = ["WebhookAdapter"]
