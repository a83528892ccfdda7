"""Time-entry approval workflow and invoice eligibility."""

from collections.abc import Iterable, Sequence
from decimal import ROUND_HALF_UP, Decimal
from uuid import UUID

import structlog

from caseflow.clock import Clock, SystemClock
from caseflow.config.loader import load_billing_config
from caseflow.config.schemas import BillingConfig
from caseflow.errors import (
    InvalidDuration,
    InvalidInvoiceReference,
    MissingReason,
    NotBillable,
)
from caseflow.models.case import LegalCase
from caseflow.models.results import BillingSummary, DateRange
from caseflow.models.time_entry import TimeEntry, TimeEntryStatus
from caseflow.policy.status import TIME_ENTRY_MACHINE
from caseflow.repository.base import CaseRepository
from caseflow.utils.rollback import rollback_on_error

logger = structlog.get_logger()


class BillingEligibilityEngine:
    """Drives entries from draft to billed and rolls up billable time.

    Rollups take the entries to aggregate from the caller, typically the
    repository's by-case or by-lawyer listing.
    """

    def __init__(
        self,
        repository: CaseRepository | None = None,
        clock: Clock | None = None,
        billing_config: BillingConfig | None = None,
    ):
        self.repository = repository
        self.clock = clock or SystemClock()
        self.config = billing_config or BillingConfig()

    def submit(self, entry: TimeEntry) -> TimeEntry:
        """Send a draft entry for approval.

        Raises:
            InvalidTransition: If the entry is not a draft
            InvalidDuration: If no time was logged
        """
        TIME_ENTRY_MACHINE.check(entry.status, TimeEntryStatus.SUBMITTED)
        if entry.duration <= 0:
            raise InvalidDuration(
                f"Time entry {entry.id} needs a positive duration to be submitted"
            )
        return self._apply(
            entry, TimeEntryStatus.SUBMITTED, submitted_at=self.clock.now()
        )

    def approve(self, entry: TimeEntry, reviewer: str) -> TimeEntry:
        """Approve a submitted entry on behalf of a reviewer."""
        TIME_ENTRY_MACHINE.check(entry.status, TimeEntryStatus.APPROVED)
        return self._apply(
            entry,
            TimeEntryStatus.APPROVED,
            approved_by=reviewer,
            approved_at=self.clock.now(),
            rejection_reason=None,
        )

    def reject(self, entry: TimeEntry, reason: str) -> TimeEntry:
        """Send a submitted entry back with a reason.

        Raises:
            InvalidTransition: If the entry is not submitted
            MissingReason: If the reason is blank
        """
        TIME_ENTRY_MACHINE.check(entry.status, TimeEntryStatus.REJECTED)
        if not reason or not reason.strip():
            raise MissingReason(f"Rejecting time entry {entry.id} requires a reason")
        return self._apply(
            entry,
            TimeEntryStatus.REJECTED,
            rejection_reason=reason.strip(),
            rejected_at=self.clock.now(),
            approved_by=None,
            approved_at=None,
        )

    def reopen(self, entry: TimeEntry) -> TimeEntry:
        """Return a rejected entry to draft so it can be corrected and resubmitted."""
        TIME_ENTRY_MACHINE.check(entry.status, TimeEntryStatus.DRAFT)
        return self._apply(
            entry, TimeEntryStatus.DRAFT, revision_number=entry.revision_number + 1
        )

    def mark_billed(self, entries: Sequence[TimeEntry], invoice_ref: str) -> list[TimeEntry]:
        """Put a batch of approved entries on an invoice.

        All or nothing: if any entry fails the check, none is touched, and a
        failed batch save restores every entry.

        Raises:
            InvalidInvoiceReference: If invoice_ref is blank
            NotBillable: If any entry is not approved and billable
        """
        if not invoice_ref or not invoice_ref.strip():
            raise InvalidInvoiceReference("An invoice reference is required")

        rejected = [
            entry.id
            for entry in entries
            if not (entry.status == TimeEntryStatus.APPROVED and entry.billable)
        ]
        if rejected:
            raise NotBillable(rejected)

        now = self.clock.now()
        with rollback_on_error(*entries):
            for entry in entries:
                entry.status = TimeEntryStatus.BILLED
                entry.billed = True
                entry.invoice_ref = invoice_ref.strip()
                entry.billed_at = now
            if self.repository is not None:
                self.repository.save_all(entries)

        logger.info(
            "Time entries billed",
            invoice_ref=invoice_ref.strip(),
            entry_count=len(entries),
        )
        return list(entries)

    def billing_summary(
        self, case: LegalCase, entries: Iterable[TimeEntry], date_range: DateRange
    ) -> BillingSummary:
        """Roll up the case's entries that are ready to invoice.

        Only approved, billable, not yet billed entries dated inside the
        range are counted. No match gives an all-zero summary.
        """
        eligible = [
            entry
            for entry in entries
            if entry.case_id == case.id
            and entry.is_billable_candidate
            and date_range.contains(entry.work_date)
        ]
        if not eligible:
            return BillingSummary()

        places = Decimal(1).scaleb(-self.config.amount_places)
        return BillingSummary(
            entry_count=len(eligible),
            total_hours=sum((entry.duration for entry in eligible), Decimal("0")),
            total_amount=sum(
                (entry.duration * entry.hourly_rate for entry in eligible), Decimal("0")
            ).quantize(places, rounding=ROUND_HALF_UP),
            total_discounted_amount=sum(
                (entry.final_amount for entry in eligible), Decimal("0")
            ).quantize(places, rounding=ROUND_HALF_UP),
        )

    def utilization(
        self, lawyer_id: UUID, entries: Iterable[TimeEntry], date_range: DateRange
    ) -> Decimal:
        """Billable share of the lawyer's logged hours in the range.

        Rejected entries are not counted as logged time. With nothing
        logged the ratio is 0.
        """
        logged = [
            entry
            for entry in entries
            if entry.lawyer_id == lawyer_id
            and entry.status != TimeEntryStatus.REJECTED
            and date_range.contains(entry.work_date)
        ]
        total_hours = sum((entry.duration for entry in logged), Decimal("0"))
        if total_hours == 0:
            return Decimal("0")

        billable_hours = sum(
            (entry.duration for entry in logged if entry.billable), Decimal("0")
        )
        places = Decimal(1).scaleb(-self.config.utilization_places)
        return (billable_hours / total_hours).quantize(places, rounding=ROUND_HALF_UP)

    def _apply(self, entry: TimeEntry, status: TimeEntryStatus, **changes) -> TimeEntry:
        previous = entry.status
        with rollback_on_error(entry):
            entry.status = status
            for name, value in changes.items():
                setattr(entry, name, value)
            if self.repository is not None:
                self.repository.save(entry)

        logger.info(
            "Time entry status changed",
            entry_id=str(entry.id),
            case_id=str(entry.case_id),
            previous=previous.value,
            status=status.value,
        )
        return entry


def get_billing_engine(repository: CaseRepository | None = None) -> BillingEligibilityEngine:
    """Engine using the rounding from billing.yaml."""
    return BillingEligibilityEngine(
        repository=repository, billing_config=load_billing_config()
    )
