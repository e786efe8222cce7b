"""
Módulo FSM: fases de um passe de reconciliação de Source.

Estrutura:
    - states/: Fases (ReconcilePhase enum)
    - transitions/: Grafo de transições (VALID_TRANSITIONS)
    - rules/: Guards
    - manager/: Máquina (ReconcileStateMachine)
    - types/: PhaseTransition, TransitionResult
"""

from fsm.manager import (
    ReconcileStateMachine,
    create_fsm,
)
from fsm.rules import (
    GuardResult,
    evaluate_guards,
)
from fsm.states import (
    DEFAULT_INITIAL_PHASE,
    TERMINAL_PHASES,
    ReconcilePhase,
    is_terminal,
    is_valid_phase,
)
from fsm.transitions import (
    VALID_TRANSITIONS,
    get_valid_targets,
    is_transition_valid,
    validate_transition_map,
)
from fsm.types import (
    PhaseTransition,
    TransitionResult,
)

__all__ = [
    "DEFAULT_INITIAL_PHASE",
    "TERMINAL_PHASES",
    "VALID_TRANSITIONS",
    "GuardResult",
    "PhaseTransition",
    "ReconcilePhase",
    "ReconcileStateMachine",
    "TransitionResult",
    "create_fsm",
    "evaluate_guards",
    "get_valid_targets",
    "is_terminal",
    "is_transition_valid",
    "is_valid_phase",
    "validate_transition_map",
]
