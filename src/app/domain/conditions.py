"""Condições de readiness da Source.

O conjunto é imutável: cada `mark_*` devolve um novo conjunto com `Ready`
recalculado. `Ready` nunca é marcado diretamente; é a conjunção das
condições rastreadas.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ConditionStatus(StrEnum):
    """Tri-estado de uma condição."""

    TRUE = "True"
    FALSE = "False"
    UNKNOWN = "Unknown"


class ConditionType(StrEnum):
    """Tipos de condição publicados no status."""

    READY = "Ready"
    SECRETS_PROVIDED = "SecretsProvided"
    SINK_PROVIDED = "SinkProvided"
    SERVICE_PROVIDED = "ServiceProvided"
    WEBHOOK_PROVIDED = "WebHookProvided"


# Ordem de avaliação dos estágios
TRACKED_CONDITIONS: tuple[ConditionType, ...] = (
    ConditionType.SECRETS_PROVIDED,
    ConditionType.SINK_PROVIDED,
    ConditionType.SERVICE_PROVIDED,
    ConditionType.WEBHOOK_PROVIDED,
)


class Condition(BaseModel):
    """Uma condição no formato do status do Kubernetes."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        alias_generator=to_camel,
        populate_by_name=True,
    )

    type: str = Field(..., description="Tipo da condição.")
    status: ConditionStatus = Field(default=ConditionStatus.UNKNOWN)
    reason: str = Field(default="", description="Código de motivo legível por máquina.")
    message: str = Field(default="", description="Mensagem legível por humanos.")
    last_transition_time: datetime | None = Field(default=None)

    @property
    def is_true(self) -> bool:
        return self.status == ConditionStatus.TRUE


@dataclass(frozen=True, slots=True)
class ConditionSet:
    """Conjunto imutável de condições de um passe.

    Attributes:
        tracked: Condições cuja conjunção define Ready
        conditions: Estado atual de cada condição (inclui Ready)
        previous: Condições do passe anterior, para preservar lastTransitionTime
    """

    tracked: tuple[ConditionType, ...]
    conditions: Mapping[str, Condition]
    previous: Mapping[str, Condition] = field(default_factory=dict, compare=False)

    @classmethod
    def initialize(
        cls,
        previous: Iterable[Condition] = (),
        *,
        tracked: tuple[ConditionType, ...] = TRACKED_CONDITIONS,
        now: datetime | None = None,
    ) -> ConditionSet:
        """Inicia o passe com todas as condições rastreadas em Unknown."""
        previous_map = {condition.type: condition for condition in previous}
        empty = cls(tracked=tracked, conditions={}, previous=previous_map)
        conditions = {
            str(kind): empty._build(kind, ConditionStatus.UNKNOWN, "", "", now)
            for kind in tracked
        }
        return replace(empty, conditions=conditions)._with_ready(now)

    def get(self, kind: ConditionType | str) -> Condition | None:
        """Retorna a condição do tipo informado, ou None."""
        return self.conditions.get(str(kind))

    def mark_true(self, kind: ConditionType, *, now: datetime | None = None) -> ConditionSet:
        return self._mark(kind, ConditionStatus.TRUE, "", "", now)

    def mark_false(
        self,
        kind: ConditionType,
        reason: str,
        message: str = "",
        *,
        now: datetime | None = None,
    ) -> ConditionSet:
        return self._mark(kind, ConditionStatus.FALSE, reason, message, now)

    def mark_unknown(
        self,
        kind: ConditionType,
        reason: str,
        message: str = "",
        *,
        now: datetime | None = None,
    ) -> ConditionSet:
        return self._mark(kind, ConditionStatus.UNKNOWN, reason, message, now)

    @property
    def ready(self) -> Condition:
        ready = self.get(ConditionType.READY)
        if ready is None:
            raise RuntimeError("ConditionSet sem Ready; use ConditionSet.initialize()")
        return ready

    @property
    def is_ready(self) -> bool:
        return self.ready.is_true

    def as_tuple(self) -> tuple[Condition, ...]:
        """Condições em ordem estável: Ready primeiro, depois as rastreadas."""
        ordered = [self.ready]
        ordered.extend(self.conditions[str(kind)] for kind in self.tracked)
        return tuple(ordered)

    def _mark(
        self,
        kind: ConditionType,
        status: ConditionStatus,
        reason: str,
        message: str,
        now: datetime | None,
    ) -> ConditionSet:
        if kind == ConditionType.READY:
            raise ValueError("Ready é derivado e não pode ser marcado diretamente")
        if kind not in self.tracked:
            raise ValueError(f"Condição não rastreada: {kind}")
        conditions = dict(self.conditions)
        conditions[str(kind)] = self._build(kind, status, reason, message, now)
        return replace(self, conditions=conditions)._with_ready(now)

    def _with_ready(self, now: datetime | None) -> ConditionSet:
        statuses = [self.conditions[str(kind)] for kind in self.tracked]
        if all(c.status == ConditionStatus.TRUE for c in statuses):
            ready = self._build(ConditionType.READY, ConditionStatus.TRUE, "", "", now)
        else:
            # Ready espelha a primeira condição não satisfeita
            blocking = next(
                (c for c in statuses if c.status == ConditionStatus.FALSE),
                next(c for c in statuses if c.status != ConditionStatus.TRUE),
            )
            ready = self._build(
                ConditionType.READY,
                blocking.status,
                blocking.reason,
                blocking.message,
                now,
            )
        conditions = dict(self.conditions)
        conditions[str(ConditionType.READY)] = ready
        return replace(self, conditions=conditions)

    def _build(
        self,
        kind: ConditionType,
        status: ConditionStatus,
        reason: str,
        message: str,
        now: datetime | None,
    ) -> Condition:
        before = self.previous.get(str(kind))
        if before is not None and before.status == status and before.last_transition_time:
            transition_time = before.last_transition_time
        else:
            transition_time = (now or datetime.now(UTC)).replace(microsecond=0)
        return Condition(
            type=str(kind),
            status=status,
            reason=reason,
            message=message,
            last_transition_time=transition_time,
        )
