"""Pydantic models for the case-team and billing engine."""

from caseflow.models.assignment import AssignmentStatus, CaseLawyerAssignment
from caseflow.models.case import CaseComplexity, CaseStatus, LegalCase
from caseflow.models.results import (
    BillingSummary,
    CapacityBounds,
    CaseTransition,
    DateRange,
    TeamMetrics,
)
from caseflow.models.time_entry import TimeEntry, TimeEntryStatus

__all__ = [
    "AssignmentStatus",
    "CaseLawyerAssignment",
    "CaseComplexity",
    "CaseStatus",
    "LegalCase",
    "BillingSummary",
    "CapacityBounds",
    "CaseTransition",
    "DateRange",
    "TeamMetrics",
    "TimeEntry",
    "TimeEntryStatus",
]
