"""
Exports públicos do módulo fsm/states.

Fases canônicas de um passe de reconciliação.
"""

from fsm.states.reconcile import (
    DEFAULT_INITIAL_PHASE,
    TERMINAL_PHASES,
    ReconcilePhase,
    is_terminal,
    is_valid_phase,
)

__all__ = [
    "DEFAULT_INITIAL_PHASE",
    "TERMINAL_PHASES",
    "ReconcilePhase",
    "is_terminal",
    "is_valid_phase",
]
