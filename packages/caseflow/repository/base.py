"""Persistence collaborator interface."""

from abc import ABC, abstractmethod
from collections.abc import Sequence
from uuid import UUID

from caseflow.models.assignment import CaseLawyerAssignment
from caseflow.models.case import LegalCase
from caseflow.models.time_entry import TimeEntry

Aggregate = LegalCase | TimeEntry


class CaseRepository(ABC):
    """Abstract store for case and time-entry aggregates.

    Saves are optimistic: an aggregate carries the version it was loaded
    at, and a save against a newer stored version fails instead of
    overwriting it. A successful save bumps the aggregate's version.
    """

    @abstractmethod
    def get_case(self, case_id: UUID) -> LegalCase:
        """Load a case with its assignments.

        Raises:
            NotFound: If no case has this id
        """

    @abstractmethod
    def get_assignment(self, assignment_id: UUID) -> CaseLawyerAssignment:
        """Load a single assignment.

        Raises:
            NotFound: If no assignment has this id
        """

    @abstractmethod
    def get_time_entry(self, entry_id: UUID) -> TimeEntry:
        """Load a time entry.

        Raises:
            NotFound: If no entry has this id
        """

    @abstractmethod
    def save(self, aggregate: Aggregate) -> None:
        """Insert or update one aggregate.

        Raises:
            ConcurrencyConflict: If the stored version differs
        """

    @abstractmethod
    def save_all(self, entries: Sequence[TimeEntry]) -> None:
        """Persist a batch of time entries in one transaction.

        Either every entry is written or none is.

        Raises:
            ConcurrencyConflict: If any stored version differs
        """

    @abstractmethod
    def list_time_entries(
        self, case_id: UUID | None = None, lawyer_id: UUID | None = None
    ) -> list[TimeEntry]:
        """List time entries, optionally filtered by case and/or lawyer."""

    @abstractmethod
    def count_lawyer_workload(
        self, lawyer_id: UUID, exclude_case_id: UUID | None = None
    ) -> int:
        """Count a lawyer's active and pending assignments across cases."""
