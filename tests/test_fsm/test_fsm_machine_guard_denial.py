"""Cobertura adicional para guard denial na ReconcileStateMachine."""

from __future__ import annotations

import fsm.manager.machine as machine_module
from fsm.manager.machine import ReconcileStateMachine
from fsm.rules.guards import GuardResult
from fsm.states import ReconcilePhase


def test_transition_returns_failure_when_guard_blocks_valid_transition(
    monkeypatch,
) -> None:
    def _deny_guard(from_phase: ReconcilePhase, to_phase: ReconcilePhase) -> GuardResult:
        del from_phase, to_phase
        return GuardResult.deny("blocked_by_guard")

    monkeypatch.setattr(machine_module, "evaluate_guards", _deny_guard)

    machine = ReconcileStateMachine(initial_phase=ReconcilePhase.PENDING, source_key="ns/guard")
    result = machine.transition(target=ReconcilePhase.SECRETS_RESOLVED, trigger="test")

    assert result.success is False
    assert result.error_reason == "blocked_by_guard"
    assert machine.current_phase == ReconcilePhase.PENDING
    assert machine.history == []
    assert not machine.can_transition_to(ReconcilePhase.SECRETS_RESOLVED)
