"""Typed failures raised by the engines and repositories.

Every engine operation either completes or raises exactly one of these, and
a raised error means nothing was mutated.
"""

from collections.abc import Iterable
from enum import Enum
from uuid import UUID


class CaseflowError(Exception):
    """Base class for all caseflow business-rule failures."""


class InvalidTransition(CaseflowError):
    """A status change that the entity's state machine does not allow."""

    def __init__(self, entity: str, current: Enum, target: Enum):
        self.entity = entity
        self.current = current
        self.target = target
        super().__init__(
            f"Cannot move {entity} from '{current.value}' to '{target.value}'"
        )


class CapacityExceeded(CaseflowError):
    """The case team is already at its effective maximum."""

    def __init__(self, case_id: UUID, maximum: int):
        self.case_id = case_id
        self.maximum = maximum
        super().__init__(f"Case {case_id} already has the maximum of {maximum} lawyers")


class CaseNotModifiable(CaseflowError):
    """The case is in a final status."""

    def __init__(self, case_id: UUID, status: Enum):
        self.case_id = case_id
        self.status = status
        super().__init__(f"Case {case_id} is '{status.value}' and cannot be modified")


class InvalidDuration(CaseflowError):
    """Logged hours must be positive."""


class MissingReason(CaseflowError):
    """A rejection needs a non-empty reason."""


class NotBillable(CaseflowError):
    """One or more entries in a billing batch cannot be invoiced."""

    def __init__(self, entry_ids: Iterable[UUID]):
        self.entry_ids = list(entry_ids)
        ids = ", ".join(str(entry_id) for entry_id in self.entry_ids)
        super().__init__(f"Entries not approved and billable: {ids}")


class NotFound(CaseflowError):
    """No aggregate with the requested identifier."""

    def __init__(self, entity: str, entity_id: UUID):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} not found")


class DuplicateAssignment(CaseflowError):
    """The lawyer already holds a seat on this case team."""

    def __init__(self, case_id: UUID, lawyer_id: UUID):
        self.case_id = case_id
        self.lawyer_id = lawyer_id
        super().__init__(f"Lawyer {lawyer_id} is already assigned to case {case_id}")


class LawyerOverloaded(CaseflowError):
    """The lawyer has reached the per-lawyer workload limit."""

    def __init__(self, lawyer_id: UUID, workload: int, limit: int):
        self.lawyer_id = lawyer_id
        self.workload = workload
        self.limit = limit
        super().__init__(
            f"Lawyer {lawyer_id} already carries {workload} assignments (limit {limit})"
        )


class TeamIncomplete(CaseflowError):
    """The team does not yet meet the case's effective minimum."""

    def __init__(self, case_id: UUID, team_size: int, minimum: int):
        self.case_id = case_id
        self.team_size = team_size
        self.minimum = minimum
        super().__init__(
            f"Case {case_id} has {team_size} lawyers, at least {minimum} required"
        )


class InvalidLead(CaseflowError):
    """Only an assignment that holds a seat on the team can lead it."""

    def __init__(self, case_id: UUID, assignment_id: UUID):
        self.case_id = case_id
        self.assignment_id = assignment_id
        super().__init__(
            f"Assignment {assignment_id} holds no seat on case {case_id} and cannot lead it"
        )


class InvalidBounds(CaseflowError):
    """Effective minimum exceeds effective maximum."""


class InvalidInvoiceReference(CaseflowError):
    """Billing needs a non-empty invoice reference."""


class ConcurrencyConflict(CaseflowError):
    """The stored aggregate changed since it was loaded."""

    def __init__(self, entity: str, entity_id: UUID, expected_version: int):
        self.entity = entity
        self.entity_id = entity_id
        self.expected_version = expected_version
        super().__init__(
            f"{entity} {entity_id} was modified concurrently "
            f"(expected version {expected_version})"
        )
