"""Value types returned by the policy and engine layers."""

from datetime import date
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from caseflow.models.case import CaseStatus


class DateRange(BaseModel):
    """Inclusive range of calendar days."""

    model_config = ConfigDict(frozen=True)

    start: date
    end: date

    @model_validator(mode="after")
    def _check_order(self) -> "DateRange":
        if self.start > self.end:
            raise ValueError("start must not be after end")
        return self

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end


class CapacityBounds(BaseModel):
    """Lawyer-count bounds for one case."""

    model_config = ConfigDict(frozen=True)

    minimum: int
    recommended: int
    maximum: int


class TeamMetrics(BaseModel):
    """Derived view of a case team."""

    active_count: int
    pending_count: int
    minimum: int
    recommended: int
    maximum: int
    meets_minimum: bool
    can_add_more: bool
    overtime_count: int = 0
    has_lead: bool = False

    @property
    def team_size(self) -> int:
        return self.active_count + self.pending_count


class BillingSummary(BaseModel):
    """Rollup of the entries that are ready to invoice."""

    entry_count: int = 0
    total_hours: Decimal = Field(default=Decimal("0"))
    total_amount: Decimal = Field(default=Decimal("0"))
    total_discounted_amount: Decimal = Field(default=Decimal("0"))


class CaseTransition(BaseModel):
    """Outcome of a case status change."""

    previous: CaseStatus
    current: CaseStatus
    requires_confirmation: bool = False

    @property
    def changed(self) -> bool:
        return self.previous != self.current
