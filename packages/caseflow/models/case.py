"""Legal case Pydantic models."""

from datetime import datetime
from enum import Enum
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, model_validator

from caseflow.models.assignment import CaseLawyerAssignment


class CaseStatus(str, Enum):
    """Legal case workflow status."""

    OPEN = "open"
    IN_PROGRESS = "in_progress"
    ON_HOLD = "on_hold"
    COMPLETED = "completed"
    CLOSED = "closed"
    CANCELLED = "cancelled"


class CaseComplexity(str, Enum):
    """Complexity tier, drives the default team size."""

    SIMPLE = "simple"
    MEDIUM = "medium"
    COMPLEX = "complex"
    VERY_COMPLEX = "very_complex"


class LegalCase(BaseModel):
    """Legal case aggregate.

    The case owns its assignment list. Lawyer-side views (all assignments of
    one lawyer) are queries answered by the repository, never back-pointers
    stored here.
    """

    model_config = ConfigDict(from_attributes=True)

    id: UUID = Field(default_factory=uuid4)
    case_number: str | None = None
    title: str = ""
    client_id: UUID | None = None
    status: CaseStatus = CaseStatus.OPEN
    complexity: CaseComplexity = CaseComplexity.MEDIUM
    # None means "use the complexity tier"
    minimum_lawyers_required: int | None = Field(default=None, ge=1)
    maximum_lawyers_allowed: int | None = Field(default=None, ge=1)
    assignments: list[CaseLawyerAssignment] = Field(default_factory=list)
    team_assigned: bool = False
    actual_completion_date: datetime | None = None
    version: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @model_validator(mode="after")
    def _check_bounds(self) -> "LegalCase":
        if (
            self.minimum_lawyers_required is not None
            and self.maximum_lawyers_allowed is not None
            and self.minimum_lawyers_required > self.maximum_lawyers_allowed
        ):
            raise ValueError(
                "minimum_lawyers_required must not exceed maximum_lawyers_allowed"
            )
        return self

    @property
    def is_final(self) -> bool:
        from caseflow.policy.status import is_final

        return is_final(self.status)

    @property
    def is_active(self) -> bool:
        from caseflow.policy.status import is_active

        return is_active(self.status)

    @property
    def needs_team_assignment(self) -> bool:
        return not self.team_assigned and not self.assignments

    @property
    def lead(self) -> CaseLawyerAssignment | None:
        """The seated assignment with the LEAD role, if any."""
        for assignment in self.assignments:
            if assignment.is_lead and assignment.counts_toward_workload:
                return assignment
        return None

    def find_assignment(self, assignment_id: UUID) -> CaseLawyerAssignment | None:
        """Return the assignment with the given id, if it belongs to this case."""
        for assignment in self.assignments:
            if assignment.id == assignment_id:
                return assignment
        return None
