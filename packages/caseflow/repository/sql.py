"""SQLAlchemy-backed repository."""

from collections.abc import Sequence
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session, sessionmaker

from caseflow.database import models as db
from caseflow.errors import ConcurrencyConflict, NotFound
from caseflow.models.assignment import CaseLawyerAssignment
from caseflow.models.case import LegalCase
from caseflow.models.time_entry import TimeEntry
from caseflow.policy.status import WORKLOAD_STATUSES

from .base import Aggregate, CaseRepository


class SqlRepository(CaseRepository):
    """Repository over the caseflow tables.

    Updates are issued as ``UPDATE ... WHERE id = :id AND version = :v`` so a
    stale aggregate never overwrites a newer row, and batch saves run inside
    a single transaction.
    """

    def __init__(self, session_factory: sessionmaker[Session]):
        self._session_factory = session_factory

    def get_case(self, case_id: UUID) -> LegalCase:
        with self._session_factory() as session:
            row = session.get(db.LegalCase, case_id)
            if row is None:
                raise NotFound("case", case_id)
            return LegalCase.model_validate(row)

    def get_assignment(self, assignment_id: UUID) -> CaseLawyerAssignment:
        with self._session_factory() as session:
            row = session.get(db.CaseLawyerAssignment, assignment_id)
            if row is None:
                raise NotFound("assignment", assignment_id)
            return CaseLawyerAssignment.model_validate(row)

    def get_time_entry(self, entry_id: UUID) -> TimeEntry:
        with self._session_factory() as session:
            row = session.get(db.TimeEntry, entry_id)
            if row is None:
                raise NotFound("time entry", entry_id)
            return TimeEntry.model_validate(row)

    def save(self, aggregate: Aggregate) -> None:
        with self._session_factory.begin() as session:
            self._write(session, aggregate)
        aggregate.version += 1

    def save_all(self, entries: Sequence[TimeEntry]) -> None:
        with self._session_factory.begin() as session:
            for entry in entries:
                self._write(session, entry)
        for entry in entries:
            entry.version += 1

    def list_time_entries(
        self, case_id: UUID | None = None, lawyer_id: UUID | None = None
    ) -> list[TimeEntry]:
        query = select(db.TimeEntry).order_by(db.TimeEntry.work_date)
        if case_id is not None:
            query = query.where(db.TimeEntry.case_id == case_id)
        if lawyer_id is not None:
            query = query.where(db.TimeEntry.lawyer_id == lawyer_id)

        with self._session_factory() as session:
            rows = session.scalars(query).all()
            return [TimeEntry.model_validate(row) for row in rows]

    def count_lawyer_workload(
        self, lawyer_id: UUID, exclude_case_id: UUID | None = None
    ) -> int:
        query = (
            select(func.count())
            .select_from(db.CaseLawyerAssignment)
            .where(
                db.CaseLawyerAssignment.lawyer_id == lawyer_id,
                db.CaseLawyerAssignment.status.in_(tuple(WORKLOAD_STATUSES)),
            )
        )
        if exclude_case_id is not None:
            query = query.where(db.CaseLawyerAssignment.case_id != exclude_case_id)

        with self._session_factory() as session:
            return session.scalar(query) or 0

    def _write(self, session: Session, aggregate: Aggregate) -> None:
        if isinstance(aggregate, LegalCase):
            self._write_versioned(
                session,
                db.LegalCase,
                "case",
                aggregate,
                aggregate.model_dump(exclude={"assignments", "version", "created_at"}),
            )
            for assignment in aggregate.assignments:
                self._write_assignment(session, assignment)
        elif isinstance(aggregate, TimeEntry):
            self._write_versioned(
                session,
                db.TimeEntry,
                "time entry",
                aggregate,
                aggregate.model_dump(exclude={"version"}),
            )
        else:
            raise TypeError(f"Unsupported aggregate: {type(aggregate).__name__}")

    @staticmethod
    def _write_versioned(
        session: Session,
        table: type[db.Base],
        entity: str,
        aggregate: Aggregate,
        values: dict,
    ) -> None:
        """Version-checked update, falling back to insert for new rows."""
        result = session.execute(
            update(table)
            .where(table.id == aggregate.id, table.version == aggregate.version)
            .values(**values, version=aggregate.version + 1)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount:
            return

        if session.get(table, aggregate.id) is not None:
            raise ConcurrencyConflict(entity, aggregate.id, aggregate.version)
        session.add(table(**values, version=aggregate.version + 1))
        session.flush()

    @staticmethod
    def _write_assignment(session: Session, assignment: CaseLawyerAssignment) -> None:
        values = assignment.model_dump()
        row = session.get(db.CaseLawyerAssignment, assignment.id)
        if row is None:
            session.add(db.CaseLawyerAssignment(**values))
        else:
            for name, value in values.items():
                setattr(row, name, value)
