import pytest

from app.core.exceptions import InvalidTransitionError
from app.services.state_machine import (
    MACHINES,
    can_transition,
    get_allowed_transitions,
    is_terminal,
    validate_transition,
)


def test_grn_happy_path():
    validate_transition("grn", "pending", "in-progress")
    validate_transition("grn", "in-progress", "completed")
    validate_transition("grn", "in-progress", "discrepancy")


def test_grn_cannot_skip_counting():
    with pytest.raises(InvalidTransitionError) as exc_info:
        validate_transition("grn", "pending", "completed")
    assert exc_info.value.details["allowed"] == ["in-progress"]
    assert exc_info.value.status_code == 422


def test_terminal_state_message():
    with pytest.raises(InvalidTransitionError, match="terminal state"):
        validate_transition("grn", "completed", "in-progress")


def test_same_status_is_rejected():
    with pytest.raises(InvalidTransitionError):
        validate_transition("exception", "open", "open")


def test_unknown_target_status():
    with pytest.raises(InvalidTransitionError, match="not a valid"):
        validate_transition("warehouse_transfer", "pending", "shipped")


def test_unknown_machine():
    with pytest.raises(ValueError):
        get_allowed_transitions("forklift", "idle")


def test_warehouse_transfer_steps_one_at_a_time():
    assert can_transition("warehouse_transfer", "pending", "loading")
    assert not can_transition("warehouse_transfer", "loading", "completed")
    with pytest.raises(InvalidTransitionError):
        validate_transition("warehouse_transfer", "loading", "completed")


def test_dock_chain():
    assert get_allowed_transitions("dock", "empty") == ["active"]
    assert not can_transition("dock", "empty", "offline")
    assert can_transition("dock", "offline", "active")


def test_exception_shortcut_resolves_from_open():
    assert not can_transition("exception", "open", "resolved")
    assert can_transition("exception_shortcut", "open", "resolved")


def test_terminal_states():
    assert is_terminal("sample", "pass")
    assert is_terminal("leave", "rejected")
    assert not is_terminal("machine", "maintenance")


def test_no_lifecycle_returns_to_its_initial_state():
    for name, (_, transitions) in MACHINES.items():
        if name in ("machine", "dock"):
            continue
        initial = next(iter(transitions))
        for targets in transitions.values():
            assert initial not in targets, name
