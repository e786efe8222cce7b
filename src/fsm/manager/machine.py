"""
Máquina de fases (ReconcileStateMachine) de um passe de reconciliação.

Uma instância por passe: registra o avanço de estágio em estágio e
rejeita qualquer salto que viole a ordem dos estágios.
"""

from typing import Any

from fsm.rules.guards import GuardResult, evaluate_guards
from fsm.states.reconcile import (
    DEFAULT_INITIAL_PHASE,
    ReconcilePhase,
    is_terminal,
)
from fsm.transitions.rules import get_valid_targets, is_transition_valid
from fsm.types.transition import PhaseTransition, TransitionResult


class ReconcileStateMachine:
    """
    Máquina de fases para um passe de reconciliação.

    Attributes:
        current_phase: Fase atual
        history: Transições realizadas no passe
    """

    __slots__ = ("_current_phase", "_history", "_source_key")

    def __init__(
        self,
        initial_phase: ReconcilePhase | None = None,
        source_key: str = "",
    ) -> None:
        self._current_phase = initial_phase or DEFAULT_INITIAL_PHASE
        self._history: list[PhaseTransition] = []
        self._source_key = source_key

    @property
    def current_phase(self) -> ReconcilePhase:
        """Fase atual da máquina."""
        return self._current_phase

    @property
    def history(self) -> list[PhaseTransition]:
        """Histórico de transições (cópia para evitar mutação externa)."""
        return list(self._history)

    @property
    def source_key(self) -> str:
        """Chave `namespace/name` da Source."""
        return self._source_key

    @property
    def is_terminal(self) -> bool:
        """Verifica se o passe terminou."""
        return is_terminal(self._current_phase)

    def can_transition_to(self, target: ReconcilePhase) -> bool:
        """Verifica se pode transitar para a fase alvo."""
        if not is_transition_valid(self._current_phase, target):
            return False
        return evaluate_guards(self._current_phase, target).allowed

    def get_valid_targets(self) -> frozenset[ReconcilePhase]:
        """Retorna fases de destino válidas a partir da fase atual."""
        return get_valid_targets(self._current_phase)

    def transition(
        self,
        target: ReconcilePhase,
        trigger: str,
        metadata: dict[str, Any] | None = None,
    ) -> TransitionResult:
        """
        Tenta avançar para a fase alvo.

        Args:
            target: Fase de destino
            trigger: Passo que causou a transição
            metadata: Dados adicionais para auditoria

        Returns:
            TransitionResult com sucesso/falha e dados da transição
        """
        if not is_transition_valid(self._current_phase, target):
            return TransitionResult(
                success=False,
                error_reason=(
                    f"Transição inválida: {self._current_phase.name} → {target.name}"
                ),
            )

        guard_result: GuardResult = evaluate_guards(self._current_phase, target)
        if not guard_result.allowed:
            return TransitionResult(success=False, error_reason=guard_result.reason)

        transition = PhaseTransition(
            from_phase=self._current_phase,
            to_phase=target,
            trigger=trigger,
            metadata=metadata or {},
        )
        self._current_phase = target
        self._history.append(transition)
        return TransitionResult(success=True, transition=transition)

    def get_history_summary(self) -> list[dict[str, Any]]:
        """Retorna histórico em formato seguro para logs."""
        return [t.to_log_dict() for t in self._history]


def create_fsm(
    source_key: str,
    initial_phase: ReconcilePhase | None = None,
) -> ReconcileStateMachine:
    """Factory da máquina de um passe."""
    return ReconcileStateMachine(initial_phase=initial_phase, source_key=source_key)
