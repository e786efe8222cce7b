"""Protocolos e contratos do core da aplicação."""

from .event_sender import ChannelTokenSourceProtocol, EventSenderProtocol
from .secret_store import SecretStoreProtocol
from .serving_client import ServingClientProtocol
from .sink_resolver import SinkResolverProtocol
from .source_store import SourceStoreProtocol
from .subscription_manager import SubscriptionManagerProtocol

__all__ = [
    "ChannelTokenSourceProtocol",
    "EventSenderProtocol",
    "SecretStoreProtocol",
    "ServingClientProtocol",
    "SinkResolverProtocol",
    "SourceStoreProtocol",
    "SubscriptionManagerProtocol",
]
