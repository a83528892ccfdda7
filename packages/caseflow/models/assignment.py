"""Case-lawyer assignment Pydantic models."""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field


class AssignmentStatus(str, Enum):
    """Lifecycle status of a lawyer's assignment to a case."""

    PENDING = "pending"
    ACTIVE = "active"
    INACTIVE = "inactive"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class CaseLawyerAssignment(BaseModel):
    """One lawyer's place on one case team."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID = Field(default_factory=uuid4)
    case_id: UUID
    lawyer_id: UUID
    status: AssignmentStatus = AssignmentStatus.PENDING
    role: str = "ASSOCIATE"
    assigned_specialty: str | None = None
    assigned_date: datetime | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    estimated_hours: Decimal = Field(default=Decimal("0"), ge=0)
    actual_hours: Decimal = Field(default=Decimal("0"), ge=0)
    notes: str | None = None

    @property
    def counts_toward_workload(self) -> bool:
        """Whether this assignment occupies a seat on the team."""
        from caseflow.policy.status import counts_for_workload

        return counts_for_workload(self.status)

    @property
    def is_overtime(self) -> bool:
        return self.actual_hours > self.estimated_hours

    @property
    def remaining_hours(self) -> Decimal:
        return max(Decimal("0"), self.estimated_hours - self.actual_hours)

    @property
    def is_lead(self) -> bool:
        return self.role.upper() == "LEAD"

    @property
    def has_valid_time_range(self) -> bool:
        if self.start_date is None or self.end_date is None:
            return True
        return self.end_date >= self.start_date
