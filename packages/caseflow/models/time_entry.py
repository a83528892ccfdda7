"""Time entry Pydantic models."""

from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, model_validator

CENTS = Decimal("0.01")


class TimeEntryStatus(str, Enum):
    """Approval workflow status of a time entry."""

    DRAFT = "draft"
    SUBMITTED = "submitted"
    APPROVED = "approved"
    BILLED = "billed"
    REJECTED = "rejected"


class TimeEntry(BaseModel):
    """Hours one lawyer logged against one case on one day."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID = Field(default_factory=uuid4)
    case_id: UUID
    lawyer_id: UUID
    work_date: date
    description: str = ""
    task_category: str | None = None
    duration: Decimal = Field(default=Decimal("0"), ge=0)
    hourly_rate: Decimal = Field(default=Decimal("0"), ge=0)
    billable: bool = True
    billed: bool = False
    discount_percentage: Decimal = Field(default=Decimal("0"), ge=0, le=100)
    status: TimeEntryStatus = TimeEntryStatus.DRAFT

    # Workflow stamps
    submitted_at: datetime | None = None
    approved_by: str | None = None
    approved_at: datetime | None = None
    rejection_reason: str | None = None
    rejected_at: datetime | None = None
    invoice_ref: str | None = None
    billed_at: datetime | None = None

    revision_number: int = 1
    version: int = 0

    @model_validator(mode="after")
    def _check_invariants(self) -> "TimeEntry":
        if self.billed and self.status != TimeEntryStatus.BILLED:
            raise ValueError("billed entries must have status 'billed'")
        if self.status != TimeEntryStatus.DRAFT and self.duration <= 0:
            raise ValueError("non-draft entries must have a positive duration")
        return self

    @property
    def amount(self) -> Decimal:
        """Gross amount, duration times hourly rate, rounded to cents."""
        return (self.duration * self.hourly_rate).quantize(CENTS, rounding=ROUND_HALF_UP)

    @property
    def discount_amount(self) -> Decimal:
        return (self.amount * self.discount_percentage / 100).quantize(
            CENTS, rounding=ROUND_HALF_UP
        )

    @property
    def final_amount(self) -> Decimal:
        return self.amount - self.discount_amount

    @property
    def billable_amount(self) -> Decimal:
        return self.final_amount if self.billable else Decimal("0.00")

    @property
    def is_billable_candidate(self) -> bool:
        """Approved, billable and not yet on an invoice."""
        return (
            self.status == TimeEntryStatus.APPROVED and self.billable and not self.billed
        )
