"""Dict-backed repository."""

from collections.abc import Sequence
from uuid import UUID

from caseflow.errors import ConcurrencyConflict, NotFound
from caseflow.models.assignment import CaseLawyerAssignment
from caseflow.models.case import LegalCase
from caseflow.models.time_entry import TimeEntry

from .base import Aggregate, CaseRepository


class InMemoryRepository(CaseRepository):
    """Process-local store holding deep copies of saved aggregates.

    Loads hand out fresh copies, so two callers never share an instance and
    version checks behave the way they do against a database.
    """

    def __init__(self) -> None:
        self._cases: dict[UUID, LegalCase] = {}
        self._entries: dict[UUID, TimeEntry] = {}

    def get_case(self, case_id: UUID) -> LegalCase:
        case = self._cases.get(case_id)
        if case is None:
            raise NotFound("case", case_id)
        return case.model_copy(deep=True)

    def get_assignment(self, assignment_id: UUID) -> CaseLawyerAssignment:
        for case in self._cases.values():
            assignment = case.find_assignment(assignment_id)
            if assignment is not None:
                return assignment.model_copy(deep=True)
        raise NotFound("assignment", assignment_id)

    def get_time_entry(self, entry_id: UUID) -> TimeEntry:
        entry = self._entries.get(entry_id)
        if entry is None:
            raise NotFound("time entry", entry_id)
        return entry.model_copy(deep=True)

    def save(self, aggregate: Aggregate) -> None:
        store = self._store_for(aggregate)
        self._check_version(store, aggregate)
        aggregate.version += 1
        store[aggregate.id] = aggregate.model_copy(deep=True)

    def save_all(self, entries: Sequence[TimeEntry]) -> None:
        # Check the whole batch before writing any of it
        for entry in entries:
            self._check_version(self._entries, entry)
        for entry in entries:
            entry.version += 1
            self._entries[entry.id] = entry.model_copy(deep=True)

    def list_time_entries(
        self, case_id: UUID | None = None, lawyer_id: UUID | None = None
    ) -> list[TimeEntry]:
        return [
            entry.model_copy(deep=True)
            for entry in self._entries.values()
            if (case_id is None or entry.case_id == case_id)
            and (lawyer_id is None or entry.lawyer_id == lawyer_id)
        ]

    def count_lawyer_workload(
        self, lawyer_id: UUID, exclude_case_id: UUID | None = None
    ) -> int:
        return sum(
            1
            for case in self._cases.values()
            if case.id != exclude_case_id
            for assignment in case.assignments
            if assignment.lawyer_id == lawyer_id and assignment.counts_toward_workload
        )

    def _store_for(self, aggregate: Aggregate) -> dict:
        if isinstance(aggregate, LegalCase):
            return self._cases
        if isinstance(aggregate, TimeEntry):
            return self._entries
        raise TypeError(f"Unsupported aggregate: {type(aggregate).__name__}")

    @staticmethod
    def _check_version(store: dict, aggregate: Aggregate) -> None:
        stored = store.get(aggregate.id)
        if stored is not None and stored.version != aggregate.version:
            entity = "case" if isinstance(aggregate, LegalCase) else "time entry"
            raise ConcurrencyConflict(entity, aggregate.id, aggregate.version)
