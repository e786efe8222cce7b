"""Exceções utilitárias compartilhadas."""

from .exceptions import (
    ConfigurationError,
    DeliveryError,
    ExternalAPIError,
    GSuiteSourceError,
    SecretKeyNotFoundError,
    SecretNotFoundError,
    SecretStoreError,
    SubscriptionError,
    TransientResolutionError,
)

__all__ = [
    "ConfigurationError",
    "DeliveryError",
    "ExternalAPIError",
    "GSuiteSourceError",
    "SecretKeyNotFoundError",
    "SecretNotFoundError",
    "SecretStoreError",
    "SubscriptionError",
    "TransientResolutionError",
]
