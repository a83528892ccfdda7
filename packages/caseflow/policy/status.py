"""Status state machines for cases, assignments and time entries.

Each entity has exactly one transition table. Engines ask this module
whether a change is legal before touching any state.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Generic, TypeVar

from caseflow.errors import InvalidTransition
from caseflow.models.assignment import AssignmentStatus
from caseflow.models.case import CaseStatus
from caseflow.models.time_entry import TimeEntryStatus

S = TypeVar("S", bound=Enum)


@dataclass(frozen=True)
class StateMachine(Generic[S]):
    """Directed transition table for one entity type."""

    name: str
    transitions: Mapping[S, frozenset[S]]
    allow_same_state: bool = False
    terminal: frozenset[S] = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(
            self,
            "terminal",
            frozenset(state for state, targets in self.transitions.items() if not targets),
        )

    def allowed_targets(self, current: S) -> frozenset[S]:
        return self.transitions.get(current, frozenset())

    def can_transition(self, current: S, target: S) -> bool:
        if current == target and self.allow_same_state:
            return True
        return target in self.allowed_targets(current)

    def check(self, current: S, target: S) -> None:
        """Raise InvalidTransition if current -> target is not in the table."""
        if not self.can_transition(current, target):
            raise InvalidTransition(self.name, current, target)


CASE_MACHINE: StateMachine[CaseStatus] = StateMachine(
    name="case",
    transitions={
        CaseStatus.OPEN: frozenset(
            {CaseStatus.IN_PROGRESS, CaseStatus.ON_HOLD, CaseStatus.CANCELLED}
        ),
        CaseStatus.IN_PROGRESS: frozenset(
            {
                CaseStatus.ON_HOLD,
                CaseStatus.COMPLETED,
                CaseStatus.CLOSED,
                CaseStatus.CANCELLED,
            }
        ),
        CaseStatus.ON_HOLD: frozenset(
            {CaseStatus.IN_PROGRESS, CaseStatus.CLOSED, CaseStatus.CANCELLED}
        ),
        CaseStatus.COMPLETED: frozenset({CaseStatus.CLOSED}),
        CaseStatus.CLOSED: frozenset(),
        CaseStatus.CANCELLED: frozenset(),
    },
    allow_same_state=True,
)

ASSIGNMENT_MACHINE: StateMachine[AssignmentStatus] = StateMachine(
    name="assignment",
    transitions={
        AssignmentStatus.PENDING: frozenset(
            {AssignmentStatus.ACTIVE, AssignmentStatus.INACTIVE, AssignmentStatus.CANCELLED}
        ),
        AssignmentStatus.ACTIVE: frozenset(
            {
                AssignmentStatus.COMPLETED,
                AssignmentStatus.INACTIVE,
                AssignmentStatus.CANCELLED,
            }
        ),
        AssignmentStatus.INACTIVE: frozenset(
            {AssignmentStatus.ACTIVE, AssignmentStatus.PENDING, AssignmentStatus.CANCELLED}
        ),
        AssignmentStatus.COMPLETED: frozenset({AssignmentStatus.INACTIVE}),
        AssignmentStatus.CANCELLED: frozenset(),
    },
)

TIME_ENTRY_MACHINE: StateMachine[TimeEntryStatus] = StateMachine(
    name="time entry",
    transitions={
        TimeEntryStatus.DRAFT: frozenset({TimeEntryStatus.SUBMITTED}),
        TimeEntryStatus.SUBMITTED: frozenset(
            {TimeEntryStatus.APPROVED, TimeEntryStatus.REJECTED}
        ),
        TimeEntryStatus.APPROVED: frozenset({TimeEntryStatus.BILLED}),
        TimeEntryStatus.REJECTED: frozenset({TimeEntryStatus.DRAFT}),
        TimeEntryStatus.BILLED: frozenset(),
    },
)

ACTIVE_CASE_STATUSES = frozenset(
    {CaseStatus.OPEN, CaseStatus.IN_PROGRESS, CaseStatus.ON_HOLD}
)
FINAL_CASE_STATUSES = frozenset(
    {CaseStatus.COMPLETED, CaseStatus.CLOSED, CaseStatus.CANCELLED}
)
CONFIRMATION_REQUIRED = frozenset({CaseStatus.CANCELLED, CaseStatus.CLOSED})
WORKLOAD_STATUSES = frozenset({AssignmentStatus.ACTIVE, AssignmentStatus.PENDING})
ASSIGNMENT_END_STATUSES = frozenset(
    {AssignmentStatus.COMPLETED, AssignmentStatus.INACTIVE, AssignmentStatus.CANCELLED}
)

_NEXT_CASE_STATUS: dict[CaseStatus, CaseStatus | None] = {
    CaseStatus.OPEN: CaseStatus.IN_PROGRESS,
    CaseStatus.IN_PROGRESS: CaseStatus.COMPLETED,
    CaseStatus.ON_HOLD: CaseStatus.IN_PROGRESS,
    CaseStatus.COMPLETED: CaseStatus.CLOSED,
    CaseStatus.CLOSED: None,
    CaseStatus.CANCELLED: None,
}


def can_transition_case(current: CaseStatus, target: CaseStatus) -> bool:
    return CASE_MACHINE.can_transition(current, target)


def can_transition_assignment(
    current: AssignmentStatus, target: AssignmentStatus
) -> bool:
    return ASSIGNMENT_MACHINE.can_transition(current, target)


def can_transition_time_entry(current: TimeEntryStatus, target: TimeEntryStatus) -> bool:
    return TIME_ENTRY_MACHINE.can_transition(current, target)


def is_active(status: CaseStatus) -> bool:
    """Whether work can still happen on a case in this status."""
    return status in ACTIVE_CASE_STATUSES


def is_final(status: CaseStatus) -> bool:
    """Whether the case is closed to further team changes."""
    return status in FINAL_CASE_STATUSES


def requires_confirmation(target: CaseStatus) -> bool:
    """Advisory flag; the caller decides whether to prompt."""
    return target in CONFIRMATION_REQUIRED


def counts_for_workload(status: AssignmentStatus) -> bool:
    return status in WORKLOAD_STATUSES


def next_case_status(status: CaseStatus) -> CaseStatus | None:
    """Next step in the normal case flow, None once terminal."""
    return _NEXT_CASE_STATUS[status]
