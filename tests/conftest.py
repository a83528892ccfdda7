"""Pytest fixtures for testing."""

import os
from datetime import date, datetime, timezone
from decimal import Decimal
from pathlib import Path
from uuid import uuid4

import pytest

# Set test environment
os.environ.setdefault("CASEFLOW_ENVIRONMENT", "test")
os.environ.setdefault("CASEFLOW_DATABASE_URL", "sqlite://")

from caseflow.clock import FixedClock
from caseflow.models import CaseComplexity, LegalCase, TimeEntry
from caseflow.repository import InMemoryRepository
from caseflow.services import BillingEligibilityEngine, TeamAssignmentEngine


@pytest.fixture(scope="session")
def project_root() -> Path:
    """Get the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture(scope="session")
def config_dir(project_root: Path) -> Path:
    """Get the config directory."""
    return project_root / "config"


@pytest.fixture
def clock() -> FixedClock:
    """Clock pinned to 2024-03-01 09:00 UTC."""
    return FixedClock(datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc))


@pytest.fixture
def repository() -> InMemoryRepository:
    """Empty in-memory repository."""
    return InMemoryRepository()


@pytest.fixture
def team_engine(repository: InMemoryRepository, clock: FixedClock) -> TeamAssignmentEngine:
    """Team engine committing to the in-memory repository."""
    return TeamAssignmentEngine(repository=repository, clock=clock)


@pytest.fixture
def billing_engine(
    repository: InMemoryRepository, clock: FixedClock
) -> BillingEligibilityEngine:
    """Billing engine committing to the in-memory repository."""
    return BillingEligibilityEngine(repository=repository, clock=clock)


@pytest.fixture
def make_case():
    """Factory for legal cases."""

    def _make(complexity: CaseComplexity = CaseComplexity.MEDIUM, **kwargs) -> LegalCase:
        kwargs.setdefault("case_number", "LC-2024-001")
        kwargs.setdefault("title", "Acme v. Globex")
        return LegalCase(complexity=complexity, **kwargs)

    return _make


@pytest.fixture
def make_entry():
    """Factory for draft time entries."""

    def _make(case: LegalCase | None = None, **kwargs) -> TimeEntry:
        kwargs.setdefault("case_id", case.id if case else uuid4())
        kwargs.setdefault("lawyer_id", uuid4())
        kwargs.setdefault("work_date", date(2024, 3, 1))
        kwargs.setdefault("description", "Drafted motion to dismiss")
        kwargs.setdefault("duration", Decimal("2"))
        kwargs.setdefault("hourly_rate", Decimal("150"))
        return TimeEntry(**kwargs)

    return _make
