"""Engines that apply the policies to case and time-entry aggregates."""

from caseflow.services.billing_eligibility import BillingEligibilityEngine, get_billing_engine
from caseflow.services.team_assignment import (
    TeamAssignmentEngine,
    get_team_assignment_engine,
)

__all__ = [
    "BillingEligibilityEngine",
    "TeamAssignmentEngine",
    "get_billing_engine",
    "get_team_assignment_engine",
]
