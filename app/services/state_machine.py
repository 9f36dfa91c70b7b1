"""
Warehouse State Machines

This module is the SINGLE SOURCE OF TRUTH for every warehouse status
transition. All status changes must go through validate_transition().

Document lifecycles are monotonic: no edge moves an entity back towards its
initial state. Docks and machines are equipment states and cycle.
"""

from typing import Dict, List, Tuple

from app.core.exceptions import InvalidTransitionError


# =============================================================================
# STATUS DEFINITIONS (Single Source of Truth)
# =============================================================================

class GRNStatus:
    """Goods receipt note status constants."""
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    DISCREPANCY = "discrepancy"

    @classmethod
    def all(cls) -> List[str]:
        return [cls.PENDING, cls.IN_PROGRESS, cls.COMPLETED, cls.DISCREPANCY]


class DockStatus:
    EMPTY = "empty"
    ACTIVE = "active"
    OFFLINE = "offline"

    @classmethod
    def all(cls) -> List[str]:
        return [cls.EMPTY, cls.ACTIVE, cls.OFFLINE]


class CycleCountStatus:
    SCHEDULED = "scheduled"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"

    @classmethod
    def all(cls) -> List[str]:
        return [cls.SCHEDULED, cls.IN_PROGRESS, cls.COMPLETED]


class InternalTransferStatus:
    PENDING = "pending"
    IN_TRANSIT = "in-transit"
    COMPLETED = "completed"

    @classmethod
    def all(cls) -> List[str]:
        return [cls.PENDING, cls.IN_TRANSIT, cls.COMPLETED]


class WarehouseTransferStatus:
    PENDING = "pending"
    LOADING = "loading"
    EN_ROUTE = "en-route"
    COMPLETED = "completed"

    @classmethod
    def all(cls) -> List[str]:
        return [cls.PENDING, cls.LOADING, cls.EN_ROUTE, cls.COMPLETED]


class PicklistStatus:
    PENDING = "pending"
    ASSIGNED = "assigned"
    PICKING = "picking"
    COMPLETED = "completed"

    @classmethod
    def all(cls) -> List[str]:
        return [cls.PENDING, cls.ASSIGNED, cls.PICKING, cls.COMPLETED]


class BatchStatus:
    PREPARING = "preparing"
    PICKING = "picking"
    COMPLETED = "completed"

    @classmethod
    def all(cls) -> List[str]:
        return [cls.PREPARING, cls.PICKING, cls.COMPLETED]


class RouteStatus:
    PLANNED = "planned"
    ACTIVE = "active"
    COMPLETED = "completed"

    @classmethod
    def all(cls) -> List[str]:
        return [cls.PLANNED, cls.ACTIVE, cls.COMPLETED]


class ExceptionStatus:
    OPEN = "open"
    INVESTIGATING = "investigating"
    RESOLVED = "resolved"

    @classmethod
    def all(cls) -> List[str]:
        return [cls.OPEN, cls.INVESTIGATING, cls.RESOLVED]


class LeaveStatus:
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"

    @classmethod
    def all(cls) -> List[str]:
        return [cls.PENDING, cls.APPROVED, cls.REJECTED]


class SampleResult:
    PENDING = "pending"
    PASS = "pass"
    FAIL = "fail"

    @classmethod
    def all(cls) -> List[str]:
        return [cls.PENDING, cls.PASS, cls.FAIL]


class MachineStatus:
    OPERATIONAL = "operational"
    IDLE = "idle"
    MAINTENANCE = "maintenance"

    @classmethod
    def all(cls) -> List[str]:
        return [cls.OPERATIONAL, cls.IDLE, cls.MAINTENANCE]


# =============================================================================
# TRANSITION RULES
# =============================================================================

# Format: current_status -> [list of allowed next statuses]
GRN_TRANSITIONS: Dict[str, List[str]] = {
    GRNStatus.PENDING: [GRNStatus.IN_PROGRESS],
    GRNStatus.IN_PROGRESS: [GRNStatus.COMPLETED, GRNStatus.DISCREPANCY],
    GRNStatus.COMPLETED: [],        # Terminal
    GRNStatus.DISCREPANCY: [],      # Resolved manually, outside this service
}

DOCK_TRANSITIONS: Dict[str, List[str]] = {
    DockStatus.EMPTY: [DockStatus.ACTIVE],
    DockStatus.ACTIVE: [DockStatus.EMPTY, DockStatus.OFFLINE],
    DockStatus.OFFLINE: [DockStatus.ACTIVE],
}

CYCLE_COUNT_TRANSITIONS: Dict[str, List[str]] = {
    CycleCountStatus.SCHEDULED: [CycleCountStatus.IN_PROGRESS],
    CycleCountStatus.IN_PROGRESS: [CycleCountStatus.COMPLETED],
    CycleCountStatus.COMPLETED: [],
}

INTERNAL_TRANSFER_TRANSITIONS: Dict[str, List[str]] = {
    InternalTransferStatus.PENDING: [InternalTransferStatus.IN_TRANSIT],
    InternalTransferStatus.IN_TRANSIT: [InternalTransferStatus.COMPLETED],
    InternalTransferStatus.COMPLETED: [],
}

WAREHOUSE_TRANSFER_TRANSITIONS: Dict[str, List[str]] = {
    WarehouseTransferStatus.PENDING: [WarehouseTransferStatus.LOADING],
    WarehouseTransferStatus.LOADING: [WarehouseTransferStatus.EN_ROUTE],
    WarehouseTransferStatus.EN_ROUTE: [WarehouseTransferStatus.COMPLETED],
    WarehouseTransferStatus.COMPLETED: [],
}

PICKLIST_TRANSITIONS: Dict[str, List[str]] = {
    PicklistStatus.PENDING: [PicklistStatus.ASSIGNED],
    PicklistStatus.ASSIGNED: [PicklistStatus.PICKING],
    PicklistStatus.PICKING: [PicklistStatus.COMPLETED],
    PicklistStatus.COMPLETED: [],
}

BATCH_TRANSITIONS: Dict[str, List[str]] = {
    BatchStatus.PREPARING: [BatchStatus.PICKING, BatchStatus.COMPLETED],
    BatchStatus.PICKING: [BatchStatus.COMPLETED],
    BatchStatus.COMPLETED: [],
}

ROUTE_TRANSITIONS: Dict[str, List[str]] = {
    RouteStatus.PLANNED: [RouteStatus.ACTIVE],
    RouteStatus.ACTIVE: [RouteStatus.COMPLETED],
    RouteStatus.COMPLETED: [],
}

EXCEPTION_TRANSITIONS: Dict[str, List[str]] = {
    ExceptionStatus.OPEN: [ExceptionStatus.INVESTIGATING],
    ExceptionStatus.INVESTIGATING: [ExceptionStatus.RESOLVED],
    ExceptionStatus.RESOLVED: [],
}

# rejectShipment / acceptPartial skip the investigation step
EXCEPTION_SHORTCUT_TRANSITIONS: Dict[str, List[str]] = {
    ExceptionStatus.OPEN: [ExceptionStatus.RESOLVED],
    ExceptionStatus.INVESTIGATING: [ExceptionStatus.RESOLVED],
    ExceptionStatus.RESOLVED: [],
}

LEAVE_TRANSITIONS: Dict[str, List[str]] = {
    LeaveStatus.PENDING: [LeaveStatus.APPROVED, LeaveStatus.REJECTED],
    LeaveStatus.APPROVED: [],
    LeaveStatus.REJECTED: [],
}

SAMPLE_TRANSITIONS: Dict[str, List[str]] = {
    SampleResult.PENDING: [SampleResult.PASS, SampleResult.FAIL],
    SampleResult.PASS: [],
    SampleResult.FAIL: [],
}

MACHINE_TRANSITIONS: Dict[str, List[str]] = {
    MachineStatus.OPERATIONAL: [MachineStatus.IDLE, MachineStatus.MAINTENANCE],
    MachineStatus.IDLE: [MachineStatus.OPERATIONAL, MachineStatus.MAINTENANCE],
    MachineStatus.MAINTENANCE: [MachineStatus.IDLE, MachineStatus.OPERATIONAL],
}

MACHINES: Dict[str, Tuple[str, Dict[str, List[str]]]] = {
    "grn": ("GRN", GRN_TRANSITIONS),
    "dock": ("Dock", DOCK_TRANSITIONS),
    "cycle_count": ("Cycle count", CYCLE_COUNT_TRANSITIONS),
    "internal_transfer": ("Internal transfer", INTERNAL_TRANSFER_TRANSITIONS),
    "warehouse_transfer": ("Transfer", WAREHOUSE_TRANSFER_TRANSITIONS),
    "picklist": ("Picklist", PICKLIST_TRANSITIONS),
    "batch": ("Batch", BATCH_TRANSITIONS),
    "route": ("Route", ROUTE_TRANSITIONS),
    "exception": ("Exception", EXCEPTION_TRANSITIONS),
    "exception_shortcut": ("Exception", EXCEPTION_SHORTCUT_TRANSITIONS),
    "leave": ("Leave request", LEAVE_TRANSITIONS),
    "sample": ("Sample", SAMPLE_TRANSITIONS),
    "machine": ("Machine", MACHINE_TRANSITIONS),
}


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def _table(machine: str) -> Tuple[str, Dict[str, List[str]]]:
    try:
        return MACHINES[machine]
    except KeyError:
        raise ValueError(f"Unknown state machine: {machine}")


def get_allowed_transitions(machine: str, current_status: str) -> List[str]:
    """Get list of statuses that can be transitioned to from current status."""
    _, transitions = _table(machine)
    return transitions.get(current_status, [])


def can_transition(machine: str, current_status: str, new_status: str) -> bool:
    """Check if a transition is allowed."""
    return new_status in get_allowed_transitions(machine, current_status)


def is_terminal(machine: str, status: str) -> bool:
    """Is this a terminal (final) state?"""
    return not get_allowed_transitions(machine, status)


def validate_transition(machine: str, current_status: str, new_status: str) -> None:
    """
    Validate a status transition. Raises InvalidTransitionError if invalid.

    Unlike a plain setter, re-applying the current status is rejected too:
    every transition call is a user action that must move the entity.
    """
    label, transitions = _table(machine)
    if current_status not in transitions:
        raise InvalidTransitionError(f"{label} has unknown status '{current_status}'")
    if new_status not in transitions:
        raise InvalidTransitionError(f"'{new_status}' is not a valid {label.lower()} status")

    if not can_transition(machine, current_status, new_status):
        allowed = get_allowed_transitions(machine, current_status)
        if not allowed:
            raise InvalidTransitionError(
                f"{label} in '{current_status}' status cannot be modified. This is a terminal state.",
                {"from": current_status, "to": new_status, "allowed": []},
            )
        raise InvalidTransitionError(
            f"Cannot change {label} from '{current_status}' to '{new_status}'. "
            f"Allowed transitions: {', '.join(allowed)}",
            {"from": current_status, "to": new_status, "allowed": allowed},
        )
