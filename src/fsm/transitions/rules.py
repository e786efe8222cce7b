"""
Regras de transição válidas entre fases de reconciliação.

O mapa codifica a precondição de cada estágio: um estágio só é alcançado
a partir do sucesso do anterior.
"""

from fsm.states.reconcile import TERMINAL_PHASES, ReconcilePhase

TransitionMap = dict[ReconcilePhase, frozenset[ReconcilePhase]]

# Chave: fase de origem / Valor: fases de destino permitidas
VALID_TRANSITIONS: TransitionMap = {
    ReconcilePhase.PENDING: frozenset({
        ReconcilePhase.SECRETS_RESOLVED,
        ReconcilePhase.FAILED,
        ReconcilePhase.FINALIZING,
    }),
    ReconcilePhase.SECRETS_RESOLVED: frozenset({
        ReconcilePhase.SINK_RESOLVED,
        ReconcilePhase.WAITING,  # sink resolveu vazio
        ReconcilePhase.FAILED,
    }),
    ReconcilePhase.SINK_RESOLVED: frozenset({
        ReconcilePhase.SERVICE_PROVISIONED,
        ReconcilePhase.FAILED,
    }),
    ReconcilePhase.SERVICE_PROVISIONED: frozenset({
        ReconcilePhase.SERVICE_READY,
        ReconcilePhase.WAITING,  # rota ainda não pronta
        ReconcilePhase.FAILED,
    }),
    ReconcilePhase.SERVICE_READY: frozenset({
        ReconcilePhase.READY,
        ReconcilePhase.FAILED,
    }),
    ReconcilePhase.FINALIZING: frozenset({
        ReconcilePhase.FINALIZED,
    }),
    ReconcilePhase.READY: frozenset(),
    ReconcilePhase.WAITING: frozenset(),
    ReconcilePhase.FAILED: frozenset(),
    ReconcilePhase.FINALIZED: frozenset(),
}


def get_valid_targets(phase: ReconcilePhase) -> frozenset[ReconcilePhase]:
    """Retorna as fases de destino válidas (vazio se terminal)."""
    return VALID_TRANSITIONS.get(phase, frozenset())


def is_transition_valid(from_phase: ReconcilePhase, to_phase: ReconcilePhase) -> bool:
    """Verifica se uma transição é válida segundo o mapa."""
    if from_phase in TERMINAL_PHASES:
        return False
    return to_phase in get_valid_targets(from_phase)


def validate_transition_map() -> list[str]:
    """
    Valida a integridade do mapa de transições.

    Verifica:
    - Todas as fases do enum estão no mapa
    - Fases terminais têm conjunto vazio
    - FAILED é alcançável de todo estágio de resolução

    Returns:
        Lista de erros encontrados (vazia se válido)
    """
    errors: list[str] = []

    for phase in ReconcilePhase:
        if phase not in VALID_TRANSITIONS:
            errors.append(f"Fase {phase.name} ausente em VALID_TRANSITIONS")

    for phase in TERMINAL_PHASES:
        targets = VALID_TRANSITIONS.get(phase, frozenset())
        if targets:
            errors.append(f"Fase terminal {phase.name} não deveria ter transições: {targets}")

    for phase, targets in VALID_TRANSITIONS.items():
        if phase in TERMINAL_PHASES or phase == ReconcilePhase.FINALIZING:
            continue
        if ReconcilePhase.FAILED not in targets:
            errors.append(f"Fase {phase.name} não pode falhar")

    return errors
