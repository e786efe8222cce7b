"""
Tipos para registro de transições de fase.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from fsm.states.reconcile import ReconcilePhase


@dataclass(frozen=True, slots=True)
class PhaseTransition:
    """
    Registro imutável de uma mudança de fase.

    Attributes:
        from_phase: Fase de origem
        to_phase: Fase de destino
        trigger: Passo que causou a transição (ex: 'resolve_secrets')
        metadata: Dados para auditoria (nunca tokens ou credenciais)
        timestamp: Momento da transição (UTC)
    """

    from_phase: ReconcilePhase
    to_phase: ReconcilePhase
    trigger: str
    metadata: dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    def __post_init__(self) -> None:
        if not self.trigger or not self.trigger.strip():
            raise ValueError("trigger não pode ser vazio")

    def to_log_dict(self) -> dict[str, Any]:
        """Retorna representação segura para logs."""
        return {
            "from_phase": self.from_phase.name,
            "to_phase": self.to_phase.name,
            "trigger": self.trigger,
            "timestamp": self.timestamp.isoformat(),
            "metadata": self.metadata,
        }


@dataclass(frozen=True, slots=True)
class TransitionResult:
    """
    Resultado de uma tentativa de transição.

    Attributes:
        success: Se a transição foi bem-sucedida
        transition: Dados da transição (se success=True)
        error_reason: Motivo da falha (se success=False)
    """

    success: bool
    transition: PhaseTransition | None = None
    error_reason: str | None = None

    def __post_init__(self) -> None:
        if self.success and self.transition is None:
            raise ValueError("Transição bem-sucedida deve incluir transition")
        if not self.success and self.error_reason is None:
            raise ValueError("Transição falha deve incluir error_reason")
