"""
Guards aplicados antes de cada transição de fase.

Um guard pode bloquear a transição mesmo quando o mapa a permite.
"""

from collections.abc import Callable

from fsm.states.reconcile import TERMINAL_PHASES, ReconcilePhase


class GuardResult:
    """
    Resultado da avaliação de um guard.

    Attributes:
        allowed: Se a transição é permitida
        reason: Motivo do bloqueio (se allowed=False)
    """

    __slots__ = ("allowed", "reason")

    def __init__(self, allowed: bool, reason: str | None = None) -> None:
        self.allowed = allowed
        self.reason = reason

    @classmethod
    def allow(cls) -> "GuardResult":
        """Cria resultado permitindo a transição."""
        return cls(allowed=True)

    @classmethod
    def deny(cls, reason: str) -> "GuardResult":
        """Cria resultado negando a transição."""
        return cls(allowed=False, reason=reason)


Guard = Callable[[ReconcilePhase, ReconcilePhase], GuardResult]


def guard_valid_phase(from_phase: ReconcilePhase, to_phase: ReconcilePhase) -> GuardResult:
    """Guard: ambas as fases precisam ser membros do enum."""
    if not isinstance(from_phase, ReconcilePhase):
        return GuardResult.deny(f"Fase de origem inválida: {from_phase}")
    if not isinstance(to_phase, ReconcilePhase):
        return GuardResult.deny(f"Fase de destino inválida: {to_phase}")
    return GuardResult.allow()


def guard_terminal_phase(from_phase: ReconcilePhase, to_phase: ReconcilePhase) -> GuardResult:
    """Guard: fases terminais não permitem saída."""
    if from_phase in TERMINAL_PHASES:
        return GuardResult.deny(f"Fase {from_phase.name} é terminal, não permite transição")
    return GuardResult.allow()


def guard_same_phase(from_phase: ReconcilePhase, to_phase: ReconcilePhase) -> GuardResult:
    """Guard: nenhum estágio se repete dentro do mesmo passe."""
    if from_phase == to_phase:
        return GuardResult.deny(
            f"Transição reflexiva não permitida: {from_phase.name} → {to_phase.name}"
        )
    return GuardResult.allow()


# Todos devem retornar allow() para a transição prosseguir
DEFAULT_GUARDS: list[Guard] = [
    guard_valid_phase,
    guard_terminal_phase,
    guard_same_phase,
]


def evaluate_guards(
    from_phase: ReconcilePhase,
    to_phase: ReconcilePhase,
    guards: list[Guard] | None = None,
) -> GuardResult:
    """
    Avalia os guards em ordem.

    Returns:
        GuardResult do primeiro guard que negar, ou allow() se todos passarem
    """
    guards_to_apply = guards if guards is not None else DEFAULT_GUARDS

    for guard in guards_to_apply:
        result = guard(from_phase, to_phase)
        if not result.allowed:
            return result

    return GuardResult.allow()
