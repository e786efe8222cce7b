"""
Exports públicos do módulo fsm/manager.
"""

from fsm.manager.machine import (
    ReconcileStateMachine,
    create_fsm,
)

__all__ = [
    "ReconcileStateMachine",
    "create_fsm",
]
