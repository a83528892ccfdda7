"""SQLAlchemy database models."""

import uuid
from datetime import date, datetime, timezone
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    TypeDecorator,
    Uuid,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from caseflow.models.assignment import AssignmentStatus
from caseflow.models.case import CaseComplexity, CaseStatus
from caseflow.models.time_entry import TimeEntryStatus


def _values(enum_cls: type) -> list[str]:
    return [member.value for member in enum_cls]


class UtcDateTime(TypeDecorator):
    """Timestamp stored as UTC and always loaded timezone-aware.

    Backends without timezone support (SQLite) hand back naive values; those
    are the stored UTC wall time.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect) -> datetime | None:
        if value is not None and value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value

    def process_result_value(self, value: datetime | None, dialect) -> datetime | None:
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


class LegalCase(Base):
    """Legal case row."""

    __tablename__ = "legal_cases"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    case_number: Mapped[str | None] = mapped_column(String(50), index=True)
    title: Mapped[str] = mapped_column(String(255), default="")
    client_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, index=True)
    status: Mapped[CaseStatus] = mapped_column(
        Enum(CaseStatus, name="case_status_enum", values_callable=_values),
        default=CaseStatus.OPEN,
        index=True,
    )
    complexity: Mapped[CaseComplexity] = mapped_column(
        Enum(CaseComplexity, name="case_complexity_enum", values_callable=_values),
        default=CaseComplexity.MEDIUM,
    )
    minimum_lawyers_required: Mapped[int | None] = mapped_column(Integer)
    maximum_lawyers_allowed: Mapped[int | None] = mapped_column(Integer)
    team_assigned: Mapped[bool] = mapped_column(Boolean, default=False)
    actual_completion_date: Mapped[datetime | None] = mapped_column(
        UtcDateTime()
    )
    version: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[datetime] = mapped_column(
        UtcDateTime(), server_default=func.now()
    )
    updated_at: Mapped[datetime | None] = mapped_column(UtcDateTime())

    # Relationships
    assignments: Mapped[list["CaseLawyerAssignment"]] = relationship(
        lazy="selectin", order_by="CaseLawyerAssignment.assigned_date"
    )


class CaseLawyerAssignment(Base):
    """Lawyer-to-case assignment row."""

    __tablename__ = "case_lawyer_assignments"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    case_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("legal_cases.id", ondelete="CASCADE"), index=True
    )
    lawyer_id: Mapped[uuid.UUID] = mapped_column(Uuid, index=True)
    status: Mapped[AssignmentStatus] = mapped_column(
        Enum(AssignmentStatus, name="assignment_status_enum", values_callable=_values),
        default=AssignmentStatus.PENDING,
        index=True,
    )
    role: Mapped[str] = mapped_column(String(100), default="ASSOCIATE")
    assigned_specialty: Mapped[str | None] = mapped_column(String(100))
    assigned_date: Mapped[datetime | None] = mapped_column(UtcDateTime())
    start_date: Mapped[datetime | None] = mapped_column(UtcDateTime())
    end_date: Mapped[datetime | None] = mapped_column(UtcDateTime())
    estimated_hours: Mapped[Decimal] = mapped_column(Numeric(8, 2), default=0)
    actual_hours: Mapped[Decimal] = mapped_column(Numeric(8, 2), default=0)
    notes: Mapped[str | None] = mapped_column(Text)


class TimeEntry(Base):
    """Time entry row."""

    __tablename__ = "time_entries"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    case_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("legal_cases.id", ondelete="CASCADE"), index=True
    )
    lawyer_id: Mapped[uuid.UUID] = mapped_column(Uuid, index=True)
    work_date: Mapped[date] = mapped_column(Date, index=True)
    description: Mapped[str] = mapped_column(Text, default="")
    task_category: Mapped[str | None] = mapped_column(String(100))
    duration: Mapped[Decimal] = mapped_column(Numeric(8, 2))
    hourly_rate: Mapped[Decimal] = mapped_column(Numeric(19, 2))
    billable: Mapped[bool] = mapped_column(Boolean, default=True)
    billed: Mapped[bool] = mapped_column(Boolean, default=False)
    discount_percentage: Mapped[Decimal] = mapped_column(Numeric(5, 2), default=0)
    status: Mapped[TimeEntryStatus] = mapped_column(
        Enum(TimeEntryStatus, name="time_entry_status_enum", values_callable=_values),
        default=TimeEntryStatus.DRAFT,
        index=True,
    )
    submitted_at: Mapped[datetime | None] = mapped_column(UtcDateTime())
    approved_by: Mapped[str | None] = mapped_column(String(100))
    approved_at: Mapped[datetime | None] = mapped_column(UtcDateTime())
    rejection_reason: Mapped[str | None] = mapped_column(String(500))
    rejected_at: Mapped[datetime | None] = mapped_column(UtcDateTime())
    invoice_ref: Mapped[str | None] = mapped_column(String(100), index=True)
    billed_at: Mapped[datetime | None] = mapped_column(UtcDateTime())
    revision_number: Mapped[int] = mapped_column(Integer, default=1)
    version: Mapped[int] = mapped_column(Integer, default=0)
