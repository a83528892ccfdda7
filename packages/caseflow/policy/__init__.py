"""Pure policy: state machines and capacity rules."""

from caseflow.policy.capacity import CapacityRules, get_capacity_rules
from caseflow.policy.status import (
    ASSIGNMENT_MACHINE,
    CASE_MACHINE,
    TIME_ENTRY_MACHINE,
    StateMachine,
    can_transition_assignment,
    can_transition_case,
    can_transition_time_entry,
    counts_for_workload,
    is_active,
    is_final,
    next_case_status,
    requires_confirmation,
)

__all__ = [
    "CapacityRules",
    "get_capacity_rules",
    "ASSIGNMENT_MACHINE",
    "CASE_MACHINE",
    "TIME_ENTRY_MACHINE",
    "StateMachine",
    "can_transition_assignment",
    "can_transition_case",
    "can_transition_time_entry",
    "counts_for_workload",
    "is_active",
    "is_final",
    "next_case_status",
    "requires_confirmation",
]
