"""Entrypoint do controller (operator kopf) do gsuite-source.

Registra handlers para as três Sources (Calendar/Drive/Sheets). Cada
evento ou tick do timer de resync roda um passe do engine de
reconciliação, serializado por chave `namespace/name`.

Uso (produção):
    kopf run -m app.operator --all-namespaces

Uso (desenvolvimento):
    python -m app.operator
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping, MutableMapping
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any, NoReturn

import kopf
from pydantic import ValidationError

from app.bootstrap import initialize_app, validate_runtime_settings
from app.bootstrap.factories import create_reconciler
from app.domain.conditions import ConditionSet, ConditionType
from app.domain.source import API_GROUP, API_VERSION, ProviderKind, Source
from app.observability import reset_correlation_id, set_correlation_id
from config.settings import FINALIZER_NAME, get_controller_settings

if TYPE_CHECKING:
    from collections.abc import Callable

    from app.use_cases.reconcile import ReconcileResult, ReconcileSourceUseCase

logger = logging.getLogger(__name__)

PROGRESS_PREFIX = API_GROUP

INVALID_SPEC_REASON = "InvalidSpec"


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _summarize_validation(exc: ValidationError, limit: int = 3) -> str:
    parts = [
        f"{'.'.join(str(loc) for loc in error['loc'])}: {error['msg']}"
        for error in exc.errors()[:limit]
    ]
    return "; ".join(parts)


class OperatorRuntime:
    """Estado do processo: engine montado no startup e locks por Source."""

    def __init__(
        self,
        reconciler: ReconcileSourceUseCase,
        *,
        retry_delay_seconds: float,
        finalizer_name: str = FINALIZER_NAME,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.reconciler = reconciler
        self.retry_delay_seconds = retry_delay_seconds
        self.finalizer_name = finalizer_name
        self._clock = clock
        self._locks: dict[str, asyncio.Lock] = {}

    def lock_for(self, key: str) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock

    def forget(self, key: str) -> None:
        lock = self._locks.get(key)
        if lock is not None and not lock.locked():
            del self._locks[key]

    async def run_pass(
        self,
        body: Mapping[str, Any],
        *,
        trigger: str,
        patch: MutableMapping[str, Any] | None = None,
    ) -> ReconcileResult:
        """Executa um passe para o body recebido.

        Args:
            body: Custom object cru entregue pelo kopf.
            trigger: Origem do passe (create, update, delete, resync...).
            patch: Patch do handler kopf; recebe o status de uma spec inválida.

        Raises:
            kopf.TemporaryError: passe terminou com erro ou pedindo requeue.
            kopf.PermanentError: body não valida como Source.
        """
        try:
            source = Source.from_k8s(body)
        except ValidationError as exc:
            self._reject_invalid_spec(body, exc, patch)
        token = set_correlation_id(source.key)
        try:
            async with self.lock_for(source.key):
                logger.debug(
                    "reconcile_pass_started",
                    extra={
                        "source_key": source.key,
                        "trigger": trigger,
                        "generation": source.metadata.generation,
                    },
                )
                result = await self.reconciler.execute(source)
            if source.is_deleting and not result.requeue:
                self.forget(source.key)
        finally:
            reset_correlation_id(token)

        if result.error is not None or result.requeue:
            reason = result.error or f"passe em {result.phase}"
            raise kopf.TemporaryError(str(reason), delay=self.retry_delay_seconds)
        return result

    def _reject_invalid_spec(
        self,
        body: Mapping[str, Any],
        exc: ValidationError,
        patch: MutableMapping[str, Any] | None,
    ) -> NoReturn:
        """Publica SecretsProvided=False/InvalidSpec e encerra sem retry.

        Em deleção o finalizer é liberado: sem spec válida não há como
        resolver credenciais para cancelar o canal.
        """
        metadata = body.get("metadata") or {}
        key = f"{metadata.get('namespace', '')}/{metadata.get('name', '')}"
        message = _summarize_validation(exc)
        deleting = bool(metadata.get("deletionTimestamp"))
        finalizers = list(metadata.get("finalizers") or [])
        logger.warning(
            "reconcile_invalid_spec",
            extra={
                "source_key": key,
                "kind": body.get("kind", ""),
                "error_count": exc.error_count(),
                "detail": message,
                "deleting": deleting,
            },
        )
        if patch is not None:
            now = self._clock()
            conditions = ConditionSet.initialize(now=now).mark_false(
                ConditionType.SECRETS_PROVIDED, INVALID_SPEC_REASON, message, now=now
            )
            status = patch.setdefault("status", {})
            status["conditions"] = [
                condition.model_dump(by_alias=True, mode="json")
                for condition in conditions.as_tuple()
            ]
            generation = metadata.get("generation")
            if isinstance(generation, int):
                status["observedGeneration"] = generation
            if deleting and self.finalizer_name in finalizers:
                patch.setdefault("metadata", {})["finalizers"] = [
                    name for name in finalizers if name != self.finalizer_name
                ]
                logger.warning(
                    "reconcile_finalizer_released_invalid_spec",
                    extra={
                        "source_key": key,
                        "webhook_id": (body.get("status") or {}).get("webhookId", ""),
                    },
                )
        raise kopf.PermanentError(f"{INVALID_SPEC_REASON}: {message}")


_runtime: OperatorRuntime | None = None


def get_runtime() -> OperatorRuntime:
    if _runtime is None:
        raise RuntimeError("operator não inicializado")
    return _runtime


def set_runtime(runtime: OperatorRuntime | None) -> None:
    global _runtime
    _runtime = runtime


@kopf.on.startup()
async def configure(settings: kopf.OperatorSettings, **_: Any) -> None:
    """Configura o kopf e monta o engine de reconciliação."""
    validate_runtime_settings("controller")
    controller_settings = get_controller_settings()
    # Progresso em annotations: o status pertence só ao engine
    settings.persistence.progress_storage = kopf.AnnotationsProgressStorage(
        prefix=PROGRESS_PREFIX
    )
    settings.persistence.diffbase_storage = kopf.AnnotationsDiffBaseStorage(
        prefix=PROGRESS_PREFIX
    )
    settings.posting.level = logging.WARNING
    set_runtime(
        OperatorRuntime(
            create_reconciler(controller_settings),
            retry_delay_seconds=controller_settings.retry_delay_seconds,
            finalizer_name=controller_settings.finalizer_name,
        )
    )
    logger.info(
        "operator_starting",
        extra={
            "component": "operator",
            "group": API_GROUP,
            "version": API_VERSION,
            "resync_interval_seconds": controller_settings.resync_interval_seconds,
        },
    )


@kopf.on.cleanup()
async def cleanup(**_: Any) -> None:
    logger.info("operator_stopping", extra={"component": "operator"})
    set_runtime(None)


async def reconcile_source(
    body: kopf.Body, patch: kopf.Patch, reason: str | None = None, **_: Any
) -> None:
    """Handler de create/update/resume: um passe completo."""
    await get_runtime().run_pass(body, trigger=str(reason or "event"), patch=patch)


async def finalize_source(body: kopf.Body, patch: kopf.Patch, **_: Any) -> None:
    """Handler de delete; o finalizer é do engine, não do kopf."""
    await get_runtime().run_pass(body, trigger="delete", patch=patch)


async def resync_source(body: kopf.Body, patch: kopf.Patch, **_: Any) -> None:
    """Timer de resync: recupera falhas e renova canais perto de expirar."""
    await get_runtime().run_pass(body, trigger="resync", patch=patch)


def register_handlers(resync_interval_seconds: float) -> None:
    """Registra os handlers das três Sources no registry global do kopf."""
    for provider in ProviderKind:
        resource = (API_GROUP, API_VERSION, provider.plural)
        kopf.on.create(*resource, id="reconcile_on_create")(reconcile_source)
        kopf.on.update(*resource, id="reconcile_on_update")(reconcile_source)
        kopf.on.resume(*resource, id="reconcile_on_resume")(reconcile_source)
        kopf.on.delete(*resource, id="finalize", optional=True)(finalize_source)
        kopf.timer(
            *resource,
            id="resync",
            interval=resync_interval_seconds,
            initial_delay=resync_interval_seconds,
        )(resync_source)


register_handlers(get_controller_settings().resync_interval_seconds)


def main() -> None:
    """Entrypoint para execução direta do controller."""
    initialize_app("controller")
    kopf.run(clusterwide=True)


if __name__ == "__main__":
    main()
