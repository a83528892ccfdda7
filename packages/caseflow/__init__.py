"""Case-team assignment and billing-eligibility engine."""

from caseflow.clock import Clock, FixedClock, SystemClock
from caseflow.errors import (
    CapacityExceeded,
    CaseflowError,
    CaseNotModifiable,
    ConcurrencyConflict,
    DuplicateAssignment,
    InvalidBounds,
    InvalidDuration,
    InvalidInvoiceReference,
    InvalidLead,
    InvalidTransition,
    LawyerOverloaded,
    MissingReason,
    NotBillable,
    NotFound,
    TeamIncomplete,
)
from caseflow.log import setup_logging
from caseflow.models import (
    AssignmentStatus,
    BillingSummary,
    CapacityBounds,
    CaseComplexity,
    CaseLawyerAssignment,
    CaseStatus,
    CaseTransition,
    DateRange,
    LegalCase,
    TeamMetrics,
    TimeEntry,
    TimeEntryStatus,
)
from caseflow.policy import CapacityRules
from caseflow.services import BillingEligibilityEngine, TeamAssignmentEngine

__all__ = [
    # Clocks
    "Clock",
    "FixedClock",
    "SystemClock",
    # Errors
    "CapacityExceeded",
    "CaseflowError",
    "CaseNotModifiable",
    "ConcurrencyConflict",
    "DuplicateAssignment",
    "InvalidBounds",
    "InvalidDuration",
    "InvalidInvoiceReference",
    "InvalidLead",
    "InvalidTransition",
    "LawyerOverloaded",
    "MissingReason",
    "NotBillable",
    "NotFound",
    "TeamIncomplete",
    # Models
    "AssignmentStatus",
    "BillingSummary",
    "CapacityBounds",
    "CaseComplexity",
    "CaseLawyerAssignment",
    "CaseStatus",
    "CaseTransition",
    "DateRange",
    "LegalCase",
    "TeamMetrics",
    "TimeEntry",
    "TimeEntryStatus",
    # Engines
    "CapacityRules",
    "BillingEligibilityEngine",
    "TeamAssignmentEngine",
    # Logging
    "setup_logging",
]
