"""Factories: criação das implementações concretas de cada processo.

Referência: app/bootstrap é o único lugar que conhece infra concreta.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from api.normalizers.google import GooglePushNormalizer
from app.coordinators.adapter import WebhookAdapter
from app.domain.source import ProviderKind
from app.infra.events import HttpEventSender
from app.infra.google import CalendarWatchManager, DriveWatchManager, SheetsWatchManager
from app.infra.kubernetes import (
    KnativeServingClient,
    KubernetesSecretStore,
    KubernetesSinkResolver,
    KubernetesSourceStore,
    SourceStatusTokenSource,
    StaticTokenSource,
    core_api,
    custom_objects_api,
)
from app.use_cases.reconcile import ReconcileSourceUseCase, build_strategies

if TYPE_CHECKING:
    import httpx

    from app.protocols import (
        ChannelTokenSourceProtocol,
        SourceStoreProtocol,
        SubscriptionManagerProtocol,
    )
    from config.settings import AdapterSettings, ControllerSettings

logger = logging.getLogger(__name__)


# ──────────────────────────────────────────────────────────────────────────────
# Controller
# ──────────────────────────────────────────────────────────────────────────────


def create_subscription_managers(
    settings: ControllerSettings,
) -> dict[ProviderKind, SubscriptionManagerProtocol]:
    """Um manager de canal por provider, com timeout e TTL configurados."""
    options = {
        "timeout_seconds": settings.google_timeout_seconds,
        "default_ttl_seconds": settings.channel_ttl_seconds,
    }
    return {
        ProviderKind.CALENDAR: CalendarWatchManager(**options),
        ProviderKind.DRIVE: DriveWatchManager(**options),
        ProviderKind.SHEETS: SheetsWatchManager(**options),
    }


def create_source_store(timeout_seconds: float) -> KubernetesSourceStore:
    return KubernetesSourceStore(custom_objects_api(), timeout_seconds=timeout_seconds)


def create_reconciler(settings: ControllerSettings) -> ReconcileSourceUseCase:
    """Monta o engine de reconciliação com clientes do cluster."""
    timeout = settings.kubernetes_timeout_seconds
    custom_api = custom_objects_api()
    reconciler = ReconcileSourceUseCase(
        strategies=build_strategies(settings, create_subscription_managers(settings)),
        secret_store=KubernetesSecretStore(core_api(), timeout_seconds=timeout),
        sink_resolver=KubernetesSinkResolver(custom_api, core_api(), timeout_seconds=timeout),
        serving=KnativeServingClient(custom_api, timeout_seconds=timeout),
        source_store=KubernetesSourceStore(custom_api, timeout_seconds=timeout),
        settings=settings,
    )
    logger.info(
        "reconciler_created",
        extra={
            "component": "bootstrap",
            "renewal_lead_seconds": settings.renewal_lead_seconds,
            "channel_ttl_seconds": settings.channel_ttl_seconds,
        },
    )
    return reconciler


# ──────────────────────────────────────────────────────────────────────────────
# Adapter
# ──────────────────────────────────────────────────────────────────────────────


def create_token_source(
    settings: AdapterSettings,
    *,
    source_store: SourceStoreProtocol | None = None,
) -> ChannelTokenSourceProtocol:
    """Token fixo do env ou lido do status da Source via Kubernetes."""
    if settings.webhook_token:
        return StaticTokenSource(settings.webhook_token)
    store = source_store or create_source_store(timeout_seconds=5.0)
    return SourceStatusTokenSource(
        store,
        provider=ProviderKind(settings.provider),
        namespace=settings.source_namespace,
        name=settings.source_name,
        ttl_seconds=settings.token_cache_ttl_seconds,
        refresh_interval_seconds=settings.token_refresh_interval_seconds,
    )


def create_webhook_adapter(
    settings: AdapterSettings,
    http_client: httpx.AsyncClient,
    *,
    token_source: ChannelTokenSourceProtocol | None = None,
) -> WebhookAdapter:
    """Monta o adapter com o cliente de entrega já construído."""
    provider = ProviderKind(settings.provider)
    return WebhookAdapter(
        provider=provider.value,
        normalizer=GooglePushNormalizer(provider),
        sender=HttpEventSender(http_client, sink_uri=settings.sink_uri, provider=provider.value),
        token_source=token_source or create_token_source(settings),
    )
