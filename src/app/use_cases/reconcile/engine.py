"""Use case de reconciliacao de Sources.

Um passe leva a Source de nao configurada ate operacional:
secrets -> sink -> service -> dominio -> webhook. O primeiro passo que
falha decide a condicao correspondente e encerra o passe; o proximo
trigger tenta de novo. Com `deletionTimestamp` o passe vira finalize.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from app.domain.conditions import ConditionSet, ConditionStatus, ConditionType
from app.domain.source import SourceStatus
from app.observability import get_correlation_id, record_reconcile
from fsm import ReconcilePhase, create_fsm
from utils.errors import ConfigurationError, ExternalAPIError

from ._results import PassContext, ReconcileResult
from ._steps import ReconcileStepsMixin, existing_subscription

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    from app.domain.source import ProviderKind, Source
    from app.domain.subscription import WebhookSubscription
    from app.protocols import (
        SecretStoreProtocol,
        ServingClientProtocol,
        SinkResolverProtocol,
        SourceStoreProtocol,
    )
    from config.settings import ControllerSettings
    from fsm import ReconcileStateMachine

    from ._results import StepResult
    from .strategies import ProviderStrategy

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class ReconcileSourceUseCase(ReconcileStepsMixin):
    """Esqueleto de orquestracao compartilhado pelos providers."""

    def __init__(
        self,
        *,
        strategies: Mapping[ProviderKind, ProviderStrategy],
        secret_store: SecretStoreProtocol,
        sink_resolver: SinkResolverProtocol,
        serving: ServingClientProtocol,
        source_store: SourceStoreProtocol,
        settings: ControllerSettings,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._strategies = dict(strategies)
        self._secret_store = secret_store
        self._sink_resolver = sink_resolver
        self._serving = serving
        self._source_store = source_store
        self._settings = settings
        self._clock = clock

    async def execute(self, source: Source) -> ReconcileResult:
        """Executa um passe; idempotente para a mesma Source."""
        strategy = self._strategies.get(source.provider)
        if strategy is None:
            raise ConfigurationError(f"provider sem estrategia registrada: {source.provider}")
        ctx = PassContext(
            source=source,
            strategy=strategy,
            now=self._clock(),
            finalizers=list(source.metadata.finalizers),
        )
        if source.is_deleting:
            result = await self._finalize(ctx)
        else:
            result = await self._reconcile(ctx)
        ready = result.status.get_condition(ConditionType.READY)
        record_reconcile(
            provider=source.provider.value,
            phase=str(result.phase),
            ready=str(ready.status) if ready else str(ConditionStatus.UNKNOWN),
            correlation_id=get_correlation_id(),
        )
        return result

    async def _reconcile(self, ctx: PassContext) -> ReconcileResult:
        source = ctx.source
        fsm = create_fsm(source.key)
        conditions = ConditionSet.initialize(source.status.conditions, now=ctx.now)
        snapshot = _carry_forward(source)

        secret = await self._resolve_secrets(ctx)
        conditions = secret.apply(conditions, ctx.now)
        if not secret.succeeded:
            return await self._abort(ctx, fsm, conditions, snapshot, secret)
        _advance(fsm, ReconcilePhase.SECRETS_RESOLVED, "resolve_secrets")

        sink = await self._resolve_sink(ctx)
        conditions = sink.apply(conditions, ctx.now)
        if not sink.succeeded:
            return await self._abort(ctx, fsm, conditions, snapshot, sink)
        snapshot = snapshot.model_copy(update={"sink_uri": sink.value})
        _advance(fsm, ReconcilePhase.SINK_RESOLVED, "resolve_sink")

        service = await self._ensure_service(ctx, sink.value or "")
        conditions = service.apply(conditions, ctx.now)
        if not service.succeeded:
            return await self._abort(ctx, fsm, conditions, snapshot, service)
        _advance(fsm, ReconcilePhase.SERVICE_PROVISIONED, "ensure_service")

        domain = self._resolve_domain(service.value or {})
        conditions = domain.apply(conditions, ctx.now)
        if not domain.succeeded:
            return await self._abort(ctx, fsm, conditions, snapshot, domain)
        _advance(fsm, ReconcilePhase.SERVICE_READY, "resolve_domain", {"domain": domain.value})

        webhook = await self._ensure_webhook(ctx, secret.value or "", domain.value or "")
        conditions = webhook.apply(conditions, ctx.now)
        if not webhook.succeeded:
            return await self._abort(ctx, fsm, conditions, snapshot, webhook)
        subscription = webhook.value
        if subscription is not None:
            snapshot = snapshot.model_copy(
                update={
                    "webhook_id": subscription.id,
                    "webhook_resource_id": subscription.resource_id or "",
                    "webhook_token": subscription.token,
                    "webhook_expiration": subscription.expiration,
                }
            )
        _advance(fsm, ReconcilePhase.READY, "ensure_webhook", {"channel_id": snapshot.webhook_id})
        result = await self._complete(ctx, fsm, conditions, snapshot, requeue=False, error=None)
        await self._retire_replaced_channel(ctx, result, secret.value or "")
        return result

    async def _abort(
        self,
        ctx: PassContext,
        fsm: ReconcileStateMachine,
        conditions: ConditionSet,
        snapshot: SourceStatus,
        step: StepResult,
    ) -> ReconcileResult:
        if step.status == ConditionStatus.UNKNOWN:
            # Espera por consistencia eventual; nao e erro
            _advance(fsm, ReconcilePhase.WAITING, step.reason)
            logger.info(
                "reconcile_waiting",
                extra={
                    "source_key": ctx.source.key,
                    "reason": step.reason,
                    "correlation_id": get_correlation_id(),
                },
            )
        else:
            _advance(fsm, ReconcilePhase.FAILED, step.reason)
            logger.warning(
                "reconcile_step_failed",
                extra={
                    "source_key": ctx.source.key,
                    "condition": str(step.condition),
                    "reason": step.reason,
                    "error_type": type(step.error).__name__,
                    "correlation_id": get_correlation_id(),
                },
            )
        return await self._complete(
            ctx,
            fsm,
            conditions,
            snapshot,
            requeue=True,
            error=step.error,
        )

    async def _complete(
        self,
        ctx: PassContext,
        fsm: ReconcileStateMachine,
        conditions: ConditionSet,
        snapshot: SourceStatus,
        *,
        requeue: bool,
        error: Exception | None,
    ) -> ReconcileResult:
        status = snapshot.model_copy(update={"conditions": conditions.as_tuple()})
        persisted = False
        if status != ctx.source.status:
            try:
                await self._source_store.patch_status(ctx.source, status)
                persisted = True
            except ExternalAPIError as exc:
                logger.error(
                    "reconcile_status_patch_failed",
                    extra={
                        "source_key": ctx.source.key,
                        "status_code": exc.status_code,
                        "correlation_id": get_correlation_id(),
                    },
                )
                requeue = True
                error = error or exc
        logger.info(
            "reconcile_pass_completed",
            extra={
                "source_key": ctx.source.key,
                "provider": ctx.source.provider.value,
                "phase": str(fsm.current_phase),
                "ready": str(conditions.ready.status),
                "transitions": len(fsm.history),
                "status_persisted": persisted,
                "correlation_id": get_correlation_id(),
            },
        )
        return ReconcileResult(
            status=status,
            phase=fsm.current_phase,
            finalizers=tuple(ctx.finalizers),
            requeue=requeue,
            error=error,
            status_persisted=persisted,
        )

    async def _retire_replaced_channel(
        self,
        ctx: PassContext,
        result: ReconcileResult,
        credentials_json: str,
    ) -> None:
        """Cancela o canal antigo depois que o status aponta para o novo."""
        retired = ctx.retired
        if retired is None:
            return
        if not result.status_persisted:
            # Status ainda aponta para o canal antigo; o adapter continua validando o token dele
            logger.warning(
                "reconcile_webhook_retire_deferred",
                extra={
                    "source_key": ctx.source.key,
                    "old_channel_id": retired.id,
                    "correlation_id": get_correlation_id(),
                },
            )
            return
        await self._cancel_best_effort(ctx, retired, credentials_json)

    async def _finalize(self, ctx: PassContext) -> ReconcileResult:
        """Cancela o canal (best-effort) e remove o finalizer sempre."""
        source = ctx.source
        fsm = create_fsm(source.key)
        _advance(fsm, ReconcilePhase.FINALIZING, "deletion_timestamp")

        subscription = existing_subscription(source)
        if subscription is None:
            logger.info(
                "finalize_no_webhook",
                extra={"source_key": source.key, "correlation_id": get_correlation_id()},
            )
        else:
            await self._cancel_on_finalize(ctx, subscription)

        error: ExternalAPIError | None = None
        name = self._settings.finalizer_name
        if name in ctx.finalizers:
            remaining = [f for f in ctx.finalizers if f != name]
            try:
                await self._source_store.patch_finalizers(source, remaining)
                ctx.finalizers = remaining
            except ExternalAPIError as exc:
                error = exc
        if error is None:
            _advance(fsm, ReconcilePhase.FINALIZED, "remove_finalizer")
        logger.info(
            "finalize_completed",
            extra={
                "source_key": source.key,
                "finalizer_removed": name not in ctx.finalizers,
                "correlation_id": get_correlation_id(),
            },
        )
        return ReconcileResult(
            status=source.status,
            phase=fsm.current_phase,
            finalizers=tuple(ctx.finalizers),
            requeue=error is not None,
            error=error,
        )

    async def _cancel_on_finalize(
        self,
        ctx: PassContext,
        subscription: WebhookSubscription,
    ) -> None:
        source = ctx.source
        try:
            credentials_json = await self._secret_store.get_secret_value(
                source.metadata.namespace,
                source.spec.credentials,
            )
        except (ConfigurationError, ExternalAPIError) as exc:
            # Sem credencial nao ha como cancelar; o canal expira sozinho no TTL
            logger.warning(
                "finalize_webhook_cancel_skipped",
                extra={
                    "source_key": source.key,
                    "error_type": type(exc).__name__,
                    "correlation_id": get_correlation_id(),
                },
            )
            return
        await self._cancel_best_effort(ctx, subscription, credentials_json)


def _carry_forward(source: Source) -> SourceStatus:
    """Snapshot inicial do passe: identificadores do canal seguem adiante."""
    previous = source.status
    return SourceStatus(
        webhook_id=previous.webhook_id,
        webhook_resource_id=previous.webhook_resource_id,
        webhook_token=previous.webhook_token,
        webhook_expiration=previous.webhook_expiration,
        observed_generation=source.metadata.generation,
    )


def _advance(
    fsm: ReconcileStateMachine,
    target: ReconcilePhase,
    trigger: str,
    metadata: dict[str, object] | None = None,
) -> None:
    result = fsm.transition(target, trigger, metadata)
    if not result.success:
        raise RuntimeError(result.error_reason or f"transicao rejeitada para {target}")
