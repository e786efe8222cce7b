"""Passos do passe de reconciliacao.

Cada passo devolve um `StepResult`; nenhum passo escreve em estado
compartilhado. O engine agrega os resultados no snapshot do passe.
"""

from __future__ import annotations

import logging
import secrets
from typing import TYPE_CHECKING, Any
from uuid import uuid4

from app.domain.conditions import ConditionType
from app.domain.subscription import SubscriptionRequest, WebhookSubscription
from app.infra.kubernetes.resources import domain_from_service, make_service
from app.observability import get_correlation_id
from utils.errors import (
    ConfigurationError,
    ExternalAPIError,
    SecretKeyNotFoundError,
    SecretNotFoundError,
    SubscriptionError,
)

from ._results import StepResult
from .strategies import PARAMS_INVALID_REASON

if TYPE_CHECKING:
    from app.domain.source import Source
    from app.protocols import (
        SecretStoreProtocol,
        ServingClientProtocol,
        SinkResolverProtocol,
        SourceStoreProtocol,
    )
    from config.settings import ControllerSettings

    from ._results import PassContext

logger = logging.getLogger(__name__)

_TOKEN_BYTES = 32


def existing_subscription(source: Source) -> WebhookSubscription | None:
    """Assinatura registrada no status do passe anterior."""
    status = source.status
    if not status.webhook_id:
        return None
    return WebhookSubscription(
        id=status.webhook_id,
        token=status.webhook_token,
        address="",
        resource_id=status.webhook_resource_id or None,
        expiration=status.webhook_expiration,
    )


class ReconcileStepsMixin:
    """Passos individuais; depende dos colaboradores injetados no engine."""

    _secret_store: SecretStoreProtocol
    _sink_resolver: SinkResolverProtocol
    _serving: ServingClientProtocol
    _source_store: SourceStoreProtocol
    _settings: ControllerSettings

    async def _resolve_secrets(self, ctx: PassContext) -> StepResult[str]:
        kind = ConditionType.SECRETS_PROVIDED
        source = ctx.source
        try:
            value = await self._secret_store.get_secret_value(
                source.metadata.namespace,
                source.spec.credentials,
            )
        except SecretNotFoundError as exc:
            return StepResult.failed(kind, "GcpCredsSecretNotFound", exc)
        except SecretKeyNotFoundError as exc:
            return StepResult.failed(kind, "GcpCredsKeyNotFound", exc)
        except ExternalAPIError as exc:
            return StepResult.failed(kind, "GcpCredsReadFailed", exc)
        return StepResult.ok(kind, value)

    async def _resolve_sink(self, ctx: PassContext) -> StepResult[str]:
        kind = ConditionType.SINK_PROVIDED
        source = ctx.source
        try:
            uri = await self._sink_resolver.resolve_uri(source.metadata.namespace, source.spec.sink)
        except ConfigurationError as exc:
            return StepResult.failed(kind, "SinkNotFound", exc)
        except ExternalAPIError as exc:
            return StepResult.failed(kind, "SinkResolveFailed", exc)
        if not uri:
            return StepResult.waiting(kind, "SinkEmpty", "sink ainda sem endereco publicado")
        return StepResult.ok(kind, uri)

    async def _ensure_service(self, ctx: PassContext, sink_uri: str) -> StepResult[dict[str, Any]]:
        kind = ConditionType.SERVICE_PROVIDED
        source = ctx.source
        namespace = source.metadata.namespace
        try:
            owned = await self._serving.list_owned(namespace, source.metadata.uid)
        except ExternalAPIError as exc:
            return StepResult.failed(kind, "ServiceListFailed", exc)

        if owned:
            if len(owned) > 1:
                logger.warning(
                    "reconcile_multiple_owned_services",
                    extra={
                        "source_key": source.key,
                        "count": len(owned),
                        "correlation_id": get_correlation_id(),
                    },
                )
            # Reutilizado sem modificacao; ServiceProvided so fica True com dominio
            return StepResult.ok(None, owned[0])

        body = make_service(source, image=ctx.strategy.adapter_image, sink_uri=sink_uri)
        try:
            created = await self._serving.create(namespace, body)
        except ExternalAPIError as exc:
            return StepResult.failed(kind, "ServiceCreateFailed", exc)
        logger.info(
            "reconcile_service_created",
            extra={
                "source_key": source.key,
                "service_name": (created.get("metadata") or {}).get("name"),
                "correlation_id": get_correlation_id(),
            },
        )
        return StepResult.ok(None, created)

    def _resolve_domain(self, service: dict[str, Any]) -> StepResult[str]:
        kind = ConditionType.SERVICE_PROVIDED
        domain = domain_from_service(service)
        if not domain:
            name = (service.get("metadata") or {}).get("name", "")
            return StepResult.waiting(
                kind,
                "ServiceDomainNotFound",
                f"dominio nao encontrado para o service {name!r}",
            )
        return StepResult.ok(kind, domain)

    async def _ensure_webhook(
        self,
        ctx: PassContext,
        credentials_json: str,
        domain: str,
    ) -> StepResult[WebhookSubscription]:
        kind = ConditionType.WEBHOOK_PROVIDED
        source = ctx.source
        current = existing_subscription(source)
        if current is not None and not current.expires_within(
            self._settings.renewal_lead,
            now=ctx.now,
        ):
            return StepResult.ok(kind, current)

        try:
            params = ctx.strategy.subscription_params(source.spec)
        except ConfigurationError as exc:
            return StepResult.failed(kind, PARAMS_INVALID_REASON, exc)

        try:
            await self._ensure_finalizer(ctx)
        except ExternalAPIError as exc:
            return StepResult.failed(kind, "WebHookCreateFailed", exc)

        request = SubscriptionRequest(
            channel_id=str(uuid4()),
            token=secrets.token_urlsafe(_TOKEN_BYTES),
            callback_url=f"https://{domain}/",
            credentials_json=credentials_json,
            subject=params.subject,
            target=params.target,
            ttl_seconds=self._settings.channel_ttl_seconds,
        )
        try:
            subscription = await ctx.strategy.subscription_manager.create_subscription(request)
        except ConfigurationError as exc:
            return StepResult.failed(kind, PARAMS_INVALID_REASON, exc)
        except SubscriptionError as exc:
            return StepResult.failed(kind, "WebHookCreateFailed", exc)

        if current is not None:
            logger.info(
                "reconcile_webhook_renewed",
                extra={
                    "source_key": source.key,
                    "old_channel_id": current.id,
                    "channel_id": subscription.id,
                    "correlation_id": get_correlation_id(),
                },
            )
            ctx.retired = current
        return StepResult.ok(kind, subscription)

    async def _ensure_finalizer(self, ctx: PassContext) -> None:
        """Persiste o finalizer antes de criar recurso externo."""
        name = self._settings.finalizer_name
        if name in ctx.finalizers:
            return
        finalizers = [*ctx.finalizers, name]
        await self._source_store.patch_finalizers(ctx.source, finalizers)
        ctx.finalizers = finalizers

    async def _cancel_best_effort(
        self,
        ctx: PassContext,
        subscription: WebhookSubscription,
        credentials_json: str,
    ) -> bool:
        """Cancela o canal; falha e logada e nunca propagada."""
        try:
            await ctx.strategy.subscription_manager.cancel_subscription(
                subscription.id,
                subscription.resource_id,
                credentials_json=credentials_json,
                subject=ctx.source.spec.email_address or None,
            )
        except SubscriptionError as exc:
            logger.warning(
                "reconcile_webhook_cancel_failed",
                extra={
                    "source_key": ctx.source.key,
                    "channel_id": subscription.id,
                    "error_type": type(exc).__name__,
                    "status_code": exc.status_code,
                    "correlation_id": get_correlation_id(),
                },
            )
            return False
        return True
