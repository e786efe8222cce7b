"""Tipos de resultado dos passos e do passe de reconciliacao."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from app.domain.conditions import ConditionStatus, ConditionType

if TYPE_CHECKING:
    from datetime import datetime

    from app.domain.conditions import ConditionSet
    from app.domain.source import Source, SourceStatus
    from app.domain.subscription import WebhookSubscription
    from fsm import ReconcilePhase
    from utils.errors import GSuiteSourceError

    from .strategies import ProviderStrategy

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class StepResult(Generic[T]):
    """Resultado explicito de um passo.

    Attributes:
        condition: Condicao afetada (None quando o passo nao decide nenhuma)
        status: Novo status da condicao
        value: Valor produzido pelo passo quando bem-sucedido
        reason: Codigo de motivo para status nao True
        message: Mensagem legivel
        error: Erro que abortou o passe (None para espera)
    """

    condition: ConditionType | None
    status: ConditionStatus
    value: T | None = None
    reason: str = ""
    message: str = ""
    error: GSuiteSourceError | None = None

    @classmethod
    def ok(cls, condition: ConditionType | None, value: T | None = None) -> StepResult[T]:
        return cls(condition=condition, status=ConditionStatus.TRUE, value=value)

    @classmethod
    def failed(
        cls,
        condition: ConditionType,
        reason: str,
        error: GSuiteSourceError,
    ) -> StepResult[T]:
        return cls(
            condition=condition,
            status=ConditionStatus.FALSE,
            reason=reason,
            message=str(error),
            error=error,
        )

    @classmethod
    def waiting(cls, condition: ConditionType, reason: str, message: str) -> StepResult[T]:
        return cls(
            condition=condition,
            status=ConditionStatus.UNKNOWN,
            reason=reason,
            message=message,
        )

    @property
    def succeeded(self) -> bool:
        return self.status == ConditionStatus.TRUE

    def apply(self, conditions: ConditionSet, now: datetime) -> ConditionSet:
        """Aplica o resultado ao conjunto de condicoes do passe."""
        if self.condition is None:
            return conditions
        if self.status == ConditionStatus.TRUE:
            return conditions.mark_true(self.condition, now=now)
        if self.status == ConditionStatus.FALSE:
            return conditions.mark_false(self.condition, self.reason, self.message, now=now)
        return conditions.mark_unknown(self.condition, self.reason, self.message, now=now)


@dataclass(frozen=True, slots=True)
class ReconcileResult:
    """Resultado de um passe completo (reconcile ou finalize).

    Attributes:
        status: Snapshot de status produzido pelo passe
        phase: Fase terminal alcancada
        finalizers: Finalizers da Source ao final do passe
        requeue: Se o trigger deve reagendar o passe
        error: Erro que abortou o passe, se houve
        status_persisted: Se o status foi gravado neste passe
    """

    status: SourceStatus
    phase: ReconcilePhase
    finalizers: tuple[str, ...] = ()
    requeue: bool = False
    error: GSuiteSourceError | None = None
    status_persisted: bool = False

    def to_log_dict(self) -> dict[str, Any]:
        return {
            "phase": str(self.phase),
            "ready": self.status.is_ready,
            "requeue": self.requeue,
            "error_type": type(self.error).__name__ if self.error else None,
            "status_persisted": self.status_persisted,
        }


@dataclass(slots=True)
class PassContext:
    """Estado local de um passe; nunca compartilhado entre passes.

    Attributes:
        source: Source observada no inicio do passe
        strategy: Estrategia do provider
        now: Instante de referencia do passe
        finalizers: Finalizers correntes (atualizados quando persistidos)
        retired: Canal substituido na renovacao, cancelado so depois que o
            status com o canal novo foi persistido
    """

    source: Source
    strategy: ProviderStrategy
    now: datetime
    finalizers: list[str]
    retired: WebhookSubscription | None = None
