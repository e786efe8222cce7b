"""Rotas do adapter webhook."""

from .router import router
from .runtime_tasks import DeliveryContext, DeliveryTaskPool

__all__ = ["DeliveryContext", "DeliveryTaskPool", "router"]
