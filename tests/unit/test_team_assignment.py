"""Unit tests for TeamAssignmentEngine."""

from datetime import datetime, timezone
from decimal import Decimal
from uuid import uuid4

import pytest

from caseflow.config.schemas import CapacityConfig
from caseflow.errors import (
    CapacityExceeded,
    CaseNotModifiable,
    ConcurrencyConflict,
    DuplicateAssignment,
    InvalidDuration,
    InvalidLead,
    InvalidTransition,
    LawyerOverloaded,
    NotFound,
    TeamIncomplete,
)
from caseflow.models import AssignmentStatus, CaseComplexity, CaseStatus
from caseflow.policy.capacity import CapacityRules
from caseflow.repository import InMemoryRepository
from caseflow.services import TeamAssignmentEngine


class FailingRepository(InMemoryRepository):
    """Repository whose saves always lose the version race."""

    def save(self, aggregate):
        raise ConcurrencyConflict("case", aggregate.id, aggregate.version)


class TestAddAssignment:
    """Tests for adding lawyers to a case."""

    def test_creates_pending_assignment(self, team_engine, make_case, clock):
        """Test a new assignment is pending and stamped with now."""
        case = make_case()
        lawyer_id = uuid4()

        assignment = team_engine.add_assignment(case, lawyer_id, role="lead")

        assert assignment.status == AssignmentStatus.PENDING
        assert assignment.assigned_date == clock.now()
        assert assignment.case_id == case.id
        assert assignment.lawyer_id == lawyer_id
        assert assignment.is_lead
        assert case.assignments == [assignment]

    def test_persists_case(self, team_engine, repository, make_case):
        """Test the case is committed with its new assignment."""
        case = make_case()
        assignment = team_engine.add_assignment(case, uuid4())

        stored = repository.get_case(case.id)
        assert stored.assignments[0].id == assignment.id
        assert stored.version == case.version == 1

    @pytest.mark.parametrize("complexity", list(CaseComplexity))
    def test_accepts_exactly_up_to_maximum(self, team_engine, make_case, complexity):
        """Test the team fills to the effective maximum and no further."""
        case = make_case(complexity=complexity)
        maximum = team_engine.capacity_rules.effective_bounds(case).maximum

        for _ in range(maximum):
            team_engine.add_assignment(case, uuid4())

        with pytest.raises(CapacityExceeded) as exc_info:
            team_engine.add_assignment(case, uuid4())

        assert exc_info.value.maximum == maximum
        assert len(case.assignments) == maximum

    def test_override_maximum_is_used(self, team_engine, make_case):
        """Test a per-case maximum beats the tier table."""
        case = make_case(complexity=CaseComplexity.VERY_COMPLEX, maximum_lawyers_allowed=2)
        team_engine.add_assignment(case, uuid4())
        team_engine.add_assignment(case, uuid4())

        with pytest.raises(CapacityExceeded):
            team_engine.add_assignment(case, uuid4())

    def test_cancelled_assignments_free_seats(self, team_engine, make_case):
        """Test only active and pending assignments count toward the maximum."""
        case = make_case(complexity=CaseComplexity.SIMPLE)
        first = team_engine.add_assignment(case, uuid4())
        team_engine.add_assignment(case, uuid4())
        team_engine.remove_assignment(case, first)

        third = team_engine.add_assignment(case, uuid4())

        assert third.status == AssignmentStatus.PENDING
        assert len(case.assignments) == 3

    @pytest.mark.parametrize(
        "status", [CaseStatus.COMPLETED, CaseStatus.CLOSED, CaseStatus.CANCELLED]
    )
    def test_final_case_rejected(self, team_engine, make_case, status):
        """Test no lawyers can be added to a finished case."""
        case = make_case(status=status)

        with pytest.raises(CaseNotModifiable):
            team_engine.add_assignment(case, uuid4())
        assert case.assignments == []

    def test_duplicate_lawyer_rejected(self, team_engine, make_case):
        """Test the same lawyer cannot hold two seats on one case."""
        case = make_case()
        lawyer_id = uuid4()
        team_engine.add_assignment(case, lawyer_id)

        with pytest.raises(DuplicateAssignment):
            team_engine.add_assignment(case, lawyer_id)

    @pytest.mark.parametrize("hours", [-1, "many", "NaN"])
    def test_invalid_estimate_rejected(self, team_engine, make_case, hours):
        """Test the estimate must be a non-negative number."""
        case = make_case()

        with pytest.raises(InvalidDuration):
            team_engine.add_assignment(case, uuid4(), estimated_hours=hours)
        assert case.assignments == []
        assert case.version == 0

    def test_lawyer_overloaded(self, repository, clock, make_case):
        """Test the per-lawyer limit counts seats held on other cases."""
        engine = TeamAssignmentEngine(
            repository=repository,
            clock=clock,
            capacity_rules=CapacityRules(
                CapacityConfig(max_active_assignments_per_lawyer=2)
            ),
        )
        lawyer_id = uuid4()
        engine.add_assignment(make_case(case_number="LC-1"), lawyer_id)
        engine.add_assignment(make_case(case_number="LC-2"), lawyer_id)
        case = make_case(case_number="LC-3")

        with pytest.raises(LawyerOverloaded) as exc_info:
            engine.add_assignment(case, lawyer_id)

        assert exc_info.value.workload == 2
        assert case.assignments == []

    def test_without_repository(self, clock, make_case):
        """Test the engine works on bare aggregates with no persistence."""
        engine = TeamAssignmentEngine(clock=clock)
        case = make_case()

        engine.add_assignment(case, uuid4())

        assert len(case.assignments) == 1
        assert case.version == 0

    def test_failed_save_leaves_case_untouched(self, clock, make_case):
        """Test a rejected save rolls the aggregate back."""
        engine = TeamAssignmentEngine(repository=FailingRepository(), clock=clock)
        case = make_case()

        with pytest.raises(ConcurrencyConflict):
            engine.add_assignment(case, uuid4())

        assert case.assignments == []
        assert case.updated_at is None


class TestTransitions:
    """Tests for assignment status changes."""

    def test_activate_sets_start_date_once(self, team_engine, make_case, clock):
        """Test start_date is stamped on first activation only."""
        case = make_case()
        assignment = team_engine.add_assignment(case, uuid4())

        team_engine.activate_assignment(case, assignment)
        started = assignment.start_date
        clock.advance(days=3)
        team_engine.transition_assignment(case, assignment, AssignmentStatus.INACTIVE)
        team_engine.activate_assignment(case, assignment)

        assert started == datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)
        assert assignment.start_date == started
        assert assignment.status == AssignmentStatus.ACTIVE

    @pytest.mark.parametrize(
        "target",
        [AssignmentStatus.COMPLETED, AssignmentStatus.INACTIVE, AssignmentStatus.CANCELLED],
    )
    def test_leaving_team_sets_end_date(self, team_engine, make_case, clock, target):
        """Test end_date is stamped when an assignment leaves the team."""
        case = make_case()
        assignment = team_engine.add_assignment(case, uuid4())
        team_engine.activate_assignment(case, assignment)
        clock.advance(days=10)

        team_engine.transition_assignment(case, assignment, target)

        assert assignment.status == target
        assert assignment.end_date == clock.now()
        assert assignment.has_valid_time_range

    def test_rejoining_clears_end_date(self, team_engine, make_case):
        """Test an inactive assignment coming back has no end date."""
        case = make_case()
        assignment = team_engine.add_assignment(case, uuid4())
        team_engine.transition_assignment(case, assignment, AssignmentStatus.INACTIVE)
        assert assignment.end_date is not None

        team_engine.transition_assignment(case, assignment, AssignmentStatus.PENDING)

        assert assignment.end_date is None

    def test_activate_illegal_from_completed(self, team_engine, make_case):
        """Test completed assignments cannot be activated directly."""
        case = make_case()
        assignment = team_engine.add_assignment(case, uuid4())
        team_engine.activate_assignment(case, assignment)
        team_engine.transition_assignment(case, assignment, AssignmentStatus.COMPLETED)

        with pytest.raises(InvalidTransition):
            team_engine.activate_assignment(case, assignment)
        assert assignment.status == AssignmentStatus.COMPLETED

    @pytest.mark.parametrize("target", list(AssignmentStatus))
    def test_cancelled_assignment_is_final(self, team_engine, make_case, target):
        """Test every transition out of CANCELLED fails without changes."""
        case = make_case()
        assignment = team_engine.add_assignment(case, uuid4())
        team_engine.remove_assignment(case, assignment)
        end_date = assignment.end_date
        version = case.version

        with pytest.raises(InvalidTransition):
            team_engine.transition_assignment(case, assignment, target)

        assert assignment.status == AssignmentStatus.CANCELLED
        assert assignment.end_date == end_date
        assert case.version == version

    def test_rejoining_full_team_rejected(self, team_engine, make_case):
        """Test an inactive lawyer cannot return to a team that filled up."""
        case = make_case(complexity=CaseComplexity.SIMPLE)
        first = team_engine.add_assignment(case, uuid4())
        team_engine.add_assignment(case, uuid4())
        team_engine.transition_assignment(case, first, AssignmentStatus.INACTIVE)
        team_engine.add_assignment(case, uuid4())

        with pytest.raises(CapacityExceeded):
            team_engine.activate_assignment(case, first)
        assert first.status == AssignmentStatus.INACTIVE

    def test_final_case_blocks_transitions(self, team_engine, make_case):
        """Test assignments on a finished case are frozen."""
        case = make_case()
        assignment = team_engine.add_assignment(case, uuid4())
        team_engine.activate_assignment(case, assignment)
        team_engine.transition_case(case, CaseStatus.IN_PROGRESS)
        team_engine.transition_case(case, CaseStatus.COMPLETED)

        with pytest.raises(CaseNotModifiable):
            team_engine.transition_assignment(case, assignment, AssignmentStatus.INACTIVE)
        assert assignment.status == AssignmentStatus.COMPLETED

    def test_foreign_assignment_not_found(self, team_engine, make_case):
        """Test an assignment from another case is rejected."""
        case = make_case(case_number="LC-1")
        other = make_case(case_number="LC-2")
        foreign = team_engine.add_assignment(other, uuid4())

        with pytest.raises(NotFound):
            team_engine.activate_assignment(case, foreign)

    def test_failed_save_restores_assignment(self, clock, make_case):
        """Test a rejected save undoes the status change."""
        case = make_case()
        engine = TeamAssignmentEngine(clock=clock)
        assignment = engine.add_assignment(case, uuid4())
        engine.repository = FailingRepository()

        with pytest.raises(ConcurrencyConflict):
            engine.activate_assignment(case, assignment)

        assert assignment.status == AssignmentStatus.PENDING
        assert assignment.start_date is None


class TestRecordHours:
    """Tests for hour tracking and overtime."""

    def test_overtime_is_reported_not_enforced(self, team_engine, make_case):
        """Test going over the estimate is allowed and flagged."""
        case = make_case()
        assignment = team_engine.add_assignment(case, uuid4(), estimated_hours=10)
        team_engine.activate_assignment(case, assignment)

        team_engine.record_hours(case, assignment, 8)
        assert not assignment.is_overtime
        assert assignment.remaining_hours == Decimal("2")

        team_engine.record_hours(case, assignment, "4.5")
        assert assignment.actual_hours == Decimal("12.5")
        assert assignment.is_overtime
        assert assignment.remaining_hours == 0
        assert team_engine.team_metrics(case).overtime_count == 1

    def test_non_positive_hours_rejected(self, team_engine, make_case):
        """Test zero hours is not a valid entry."""
        case = make_case()
        assignment = team_engine.add_assignment(case, uuid4())

        with pytest.raises(InvalidDuration):
            team_engine.record_hours(case, assignment, 0)
        assert assignment.actual_hours == 0

    @pytest.mark.parametrize("hours", ["abc", "", "-2", "Infinity"])
    def test_unparseable_hours_rejected(self, team_engine, make_case, hours):
        """Test text that is not a positive number raises InvalidDuration."""
        case = make_case()
        assignment = team_engine.add_assignment(case, uuid4())

        with pytest.raises(InvalidDuration):
            team_engine.record_hours(case, assignment, hours)
        assert assignment.actual_hours == 0
        assert case.version == 1


class TestTeamMetrics:
    """Tests for derived team metrics."""

    def test_empty_team(self, team_engine, make_case):
        """Test a fresh case is below minimum with room to grow."""
        metrics = team_engine.team_metrics(make_case(complexity=CaseComplexity.COMPLEX))

        assert metrics.active_count == 0
        assert metrics.pending_count == 0
        assert metrics.minimum == 3
        assert metrics.recommended == 4
        assert metrics.maximum == 6
        assert not metrics.meets_minimum
        assert metrics.can_add_more

    def test_pending_counts_toward_minimum(self, team_engine, make_case):
        """Test pending and active seats together meet the minimum."""
        case = make_case(complexity=CaseComplexity.MEDIUM)
        first = team_engine.add_assignment(case, uuid4())
        team_engine.add_assignment(case, uuid4())
        team_engine.activate_assignment(case, first)

        metrics = team_engine.team_metrics(case)

        assert metrics.active_count == 1
        assert metrics.pending_count == 1
        assert metrics.meets_minimum

    def test_inactive_not_counted(self, team_engine, make_case):
        """Test inactive assignments do not hold a seat."""
        case = make_case(complexity=CaseComplexity.SIMPLE)
        assignment = team_engine.add_assignment(case, uuid4())
        team_engine.transition_assignment(case, assignment, AssignmentStatus.INACTIVE)

        metrics = team_engine.team_metrics(case)

        assert metrics.team_size == 0
        assert not metrics.meets_minimum


class TestMarkTeamAssigned:
    """Tests for flagging a case as staffed."""

    def test_incomplete_team_rejected(self, team_engine, make_case):
        """Test the flag needs the minimum team."""
        case = make_case(complexity=CaseComplexity.MEDIUM)
        team_engine.add_assignment(case, uuid4())

        with pytest.raises(TeamIncomplete) as exc_info:
            team_engine.mark_team_assigned(case)

        assert exc_info.value.minimum == 2
        assert not case.team_assigned

    def test_idempotent(self, team_engine, make_case):
        """Test marking twice changes nothing the second time."""
        case = make_case(complexity=CaseComplexity.SIMPLE)
        team_engine.add_assignment(case, uuid4())

        team_engine.mark_team_assigned(case)
        version = case.version
        team_engine.mark_team_assigned(case)

        assert case.team_assigned
        assert case.version == version

    def test_final_case_rejected(self, team_engine, make_case):
        """Test finished cases cannot be re-flagged."""
        case = make_case(status=CaseStatus.CANCELLED)

        with pytest.raises(CaseNotModifiable):
            team_engine.mark_team_assigned(case)


class TestComplexCaseScenario:
    """End-to-end staffing of a complex case."""

    def test_staff_complex_case(self, team_engine, repository, make_case):
        """Test min 3 / max 6 staffing, then the seventh lawyer is refused."""
        case = make_case(complexity=CaseComplexity.COMPLEX)

        first_three = [team_engine.add_assignment(case, uuid4()) for _ in range(3)]
        for assignment in first_three:
            team_engine.activate_assignment(case, assignment)

        metrics = team_engine.team_metrics(case)
        assert metrics.active_count == 3
        assert metrics.meets_minimum
        team_engine.mark_team_assigned(case)
        assert case.team_assigned

        for _ in range(3):
            assignment = team_engine.add_assignment(case, uuid4())
            team_engine.activate_assignment(case, assignment)

        metrics = team_engine.team_metrics(case)
        assert metrics.active_count == 6
        assert not metrics.can_add_more

        with pytest.raises(CapacityExceeded):
            team_engine.add_assignment(case, uuid4())

        stored = repository.get_case(case.id)
        assert stored.team_assigned
        assert len(stored.assignments) == 6


class TestCaseLifecycle:
    """Tests for case status changes."""

    def test_confirmation_flag(self, team_engine, make_case):
        """Test closing is flagged for confirmation but still applied."""
        case = make_case()
        first = team_engine.transition_case(case, CaseStatus.IN_PROGRESS)
        second = team_engine.transition_case(case, CaseStatus.CLOSED)

        assert not first.requires_confirmation
        assert second.requires_confirmation
        assert case.status == CaseStatus.CLOSED

    def test_same_status_is_noop(self, team_engine, make_case):
        """Test requesting the current status changes nothing."""
        case = make_case()

        result = team_engine.transition_case(case, CaseStatus.OPEN)

        assert not result.changed
        assert case.version == 0

    def test_completion_date_stamped(self, team_engine, make_case, clock):
        """Test completing a case records when."""
        case = make_case()
        team_engine.transition_case(case, CaseStatus.IN_PROGRESS)
        clock.advance(days=30)

        team_engine.transition_case(case, CaseStatus.COMPLETED)

        assert case.actual_completion_date == clock.now()

    def test_closed_case_cannot_reopen(self, team_engine, make_case):
        """Test closed cases stay closed."""
        case = make_case(status=CaseStatus.CLOSED)

        with pytest.raises(InvalidTransition):
            team_engine.transition_case(case, CaseStatus.IN_PROGRESS)
        assert case.status == CaseStatus.CLOSED


class TestSeatRelease:
    """Tests for freeing lawyer seats when a case finishes."""

    @pytest.fixture
    def engine(self, repository, clock):
        """Engine allowing one seated assignment per lawyer."""
        return TeamAssignmentEngine(
            repository=repository,
            clock=clock,
            capacity_rules=CapacityRules(
                CapacityConfig(max_active_assignments_per_lawyer=1)
            ),
        )

    def test_completed_case_frees_lawyer(self, engine, repository, make_case, clock):
        """Test a lawyer on a completed case can take a new one."""
        lawyer_id = uuid4()
        first = make_case(case_number="LC-1")
        assignment = engine.add_assignment(first, lawyer_id)
        engine.activate_assignment(first, assignment)
        engine.transition_case(first, CaseStatus.IN_PROGRESS)
        clock.advance(days=10)

        engine.transition_case(first, CaseStatus.COMPLETED)

        assert assignment.status == AssignmentStatus.COMPLETED
        assert assignment.end_date == clock.now()
        assert repository.count_lawyer_workload(lawyer_id) == 0
        second = make_case(case_number="LC-2")
        assert engine.add_assignment(second, lawyer_id).status == AssignmentStatus.PENDING

    def test_pending_on_completed_case_goes_inactive(self, team_engine, make_case):
        """Test only active lawyers are marked completed with the case."""
        case = make_case()
        active = team_engine.add_assignment(case, uuid4())
        pending = team_engine.add_assignment(case, uuid4())
        team_engine.activate_assignment(case, active)
        team_engine.transition_case(case, CaseStatus.IN_PROGRESS)

        team_engine.transition_case(case, CaseStatus.COMPLETED)

        assert active.status == AssignmentStatus.COMPLETED
        assert pending.status == AssignmentStatus.INACTIVE
        assert team_engine.team_metrics(case).team_size == 0

    @pytest.mark.parametrize("status", [CaseStatus.CLOSED, CaseStatus.CANCELLED])
    def test_closed_or_cancelled_case_releases_seats(
        self, engine, repository, make_case, clock, status
    ):
        """Test every seat goes inactive when a case ends without completing."""
        lawyer_id = uuid4()
        case = make_case()
        active = engine.add_assignment(case, lawyer_id)
        engine.activate_assignment(case, active)
        pending = engine.add_assignment(case, uuid4())
        cancelled = engine.add_assignment(case, uuid4())
        engine.remove_assignment(case, cancelled)
        engine.transition_case(case, CaseStatus.IN_PROGRESS)

        engine.transition_case(case, status)

        assert active.status == AssignmentStatus.INACTIVE
        assert pending.status == AssignmentStatus.INACTIVE
        assert cancelled.status == AssignmentStatus.CANCELLED
        assert active.end_date == pending.end_date == clock.now()
        assert repository.count_lawyer_workload(lawyer_id) == 0
        stored = repository.get_case(case.id)
        assert all(not a.counts_toward_workload for a in stored.assignments)

    def test_hold_keeps_seats(self, team_engine, make_case):
        """Test pausing a case leaves its team in place."""
        case = make_case()
        assignment = team_engine.add_assignment(case, uuid4())
        team_engine.activate_assignment(case, assignment)
        team_engine.transition_case(case, CaseStatus.IN_PROGRESS)

        team_engine.transition_case(case, CaseStatus.ON_HOLD)

        assert assignment.status == AssignmentStatus.ACTIVE
        assert assignment.end_date is None

    def test_failed_save_keeps_seats(self, clock, make_case):
        """Test a rejected save restores the case and its team."""
        case = make_case()
        engine = TeamAssignmentEngine(clock=clock)
        assignment = engine.add_assignment(case, uuid4())
        engine.activate_assignment(case, assignment)
        engine.transition_case(case, CaseStatus.IN_PROGRESS)
        engine.repository = FailingRepository()

        with pytest.raises(ConcurrencyConflict):
            engine.transition_case(case, CaseStatus.COMPLETED)

        assert case.status == CaseStatus.IN_PROGRESS
        assert case.actual_completion_date is None
        assert assignment.status == AssignmentStatus.ACTIVE
        assert assignment.end_date is None


class TestLead:
    """Tests for the team lead role."""

    def test_set_lead_demotes_previous(self, team_engine, make_case):
        """Test only one seated assignment leads at a time."""
        case = make_case()
        first = team_engine.add_assignment(case, uuid4(), role="LEAD")
        second = team_engine.add_assignment(case, uuid4())

        team_engine.set_lead(case, second)

        assert second.is_lead
        assert not first.is_lead
        assert case.lead is second
        assert case.version == 3

    def test_set_lead_is_idempotent(self, team_engine, make_case):
        """Test naming the current lead again changes nothing."""
        case = make_case()
        lead = team_engine.add_assignment(case, uuid4(), role="LEAD")

        team_engine.set_lead(case, lead)

        assert case.lead is lead
        assert case.version == 1

    @pytest.mark.parametrize(
        "status", [AssignmentStatus.CANCELLED, AssignmentStatus.INACTIVE]
    )
    def test_unseated_cannot_lead(self, team_engine, make_case, status):
        """Test an assignment without a seat cannot be made lead."""
        case = make_case()
        assignment = team_engine.add_assignment(case, uuid4())
        team_engine.transition_assignment(case, assignment, status)

        with pytest.raises(InvalidLead):
            team_engine.set_lead(case, assignment)
        assert not assignment.is_lead
        assert case.lead is None

    def test_adding_lead_demotes_existing(self, team_engine, make_case):
        """Test a new LEAD assignment takes the role over."""
        case = make_case()
        first = team_engine.add_assignment(case, uuid4(), role="LEAD")

        second = team_engine.add_assignment(case, uuid4(), role="lead")

        assert second.role == "LEAD"
        assert first.role == "ASSOCIATE"
        assert case.lead is second

    def test_removing_lead_promotes_active_member(self, team_engine, make_case):
        """Test an active lawyer is preferred over an earlier pending one."""
        case = make_case()
        lead = team_engine.add_assignment(case, uuid4(), role="LEAD")
        pending = team_engine.add_assignment(case, uuid4())
        active = team_engine.add_assignment(case, uuid4())
        team_engine.activate_assignment(case, active)

        team_engine.remove_assignment(case, lead)

        assert case.lead is active
        assert not pending.is_lead
        assert team_engine.team_metrics(case).has_lead

    def test_removing_lead_promotes_earliest_pending(self, team_engine, make_case):
        """Test with no active lawyers the earliest seat takes over."""
        case = make_case()
        lead = team_engine.add_assignment(case, uuid4(), role="LEAD")
        earlier = team_engine.add_assignment(case, uuid4())
        team_engine.add_assignment(case, uuid4())

        team_engine.transition_assignment(case, lead, AssignmentStatus.INACTIVE)

        assert case.lead is earlier

    def test_removing_sole_member_leaves_no_lead(self, team_engine, make_case):
        """Test the team can be left without a lead when nobody remains."""
        case = make_case()
        lead = team_engine.add_assignment(case, uuid4(), role="LEAD")

        team_engine.remove_assignment(case, lead)

        assert case.lead is None
        assert not team_engine.team_metrics(case).has_lead

    def test_former_lead_rejoins_as_associate(self, team_engine, make_case):
        """Test a returning lead does not displace the successor."""
        case = make_case()
        lead = team_engine.add_assignment(case, uuid4(), role="LEAD")
        successor = team_engine.add_assignment(case, uuid4())
        team_engine.transition_assignment(case, lead, AssignmentStatus.INACTIVE)

        team_engine.activate_assignment(case, lead)

        assert case.lead is successor
        assert lead.role == "ASSOCIATE"

    def test_failed_save_restores_roles(self, clock, make_case):
        """Test a rejected save undoes the lead change."""
        case = make_case()
        engine = TeamAssignmentEngine(clock=clock)
        first = engine.add_assignment(case, uuid4(), role="LEAD")
        second = engine.add_assignment(case, uuid4())
        engine.repository = FailingRepository()

        with pytest.raises(ConcurrencyConflict):
            engine.set_lead(case, second)

        assert case.lead is first
        assert second.role == "ASSOCIATE"


class TestAssignTeam:
    """Tests for adding several lawyers at once."""

    def test_first_lawyer_leads(self, team_engine, make_case):
        """Test the batch is pending, led by the first lawyer, and saved once."""
        case = make_case()
        lawyer_ids = [uuid4(), uuid4(), uuid4()]

        added = team_engine.assign_team(case, lawyer_ids, estimated_hours="20")

        assert [a.lawyer_id for a in added] == lawyer_ids
        assert all(a.status == AssignmentStatus.PENDING for a in added)
        assert all(a.estimated_hours == Decimal("20") for a in added)
        assert case.lead is added[0]
        assert [a.role for a in added[1:]] == ["ASSOCIATE", "ASSOCIATE"]
        assert case.version == 1
        assert not case.team_assigned

    def test_existing_lead_kept(self, team_engine, make_case):
        """Test a batch joining a led team brings only associates."""
        case = make_case()
        lead = team_engine.add_assignment(case, uuid4(), role="LEAD")

        added = team_engine.assign_team(case, [uuid4(), uuid4()])

        assert case.lead is lead
        assert not any(a.is_lead for a in added)

    def test_over_capacity_adds_nobody(self, team_engine, repository, make_case):
        """Test a batch larger than the free seats is rejected whole."""
        case = make_case(complexity=CaseComplexity.SIMPLE)
        team_engine.add_assignment(case, uuid4())

        with pytest.raises(CapacityExceeded):
            team_engine.assign_team(case, [uuid4(), uuid4()])

        assert len(case.assignments) == 1
        assert len(repository.get_case(case.id).assignments) == 1

    def test_duplicate_in_batch_rejected(self, team_engine, make_case):
        """Test the same lawyer cannot appear twice in one batch."""
        case = make_case()
        lawyer_id = uuid4()

        with pytest.raises(DuplicateAssignment):
            team_engine.assign_team(case, [lawyer_id, uuid4(), lawyer_id])
        assert case.assignments == []

    def test_already_seated_rejected(self, team_engine, make_case):
        """Test a lawyer already on the team fails the batch."""
        case = make_case()
        lawyer_id = uuid4()
        team_engine.add_assignment(case, lawyer_id)

        with pytest.raises(DuplicateAssignment):
            team_engine.assign_team(case, [uuid4(), lawyer_id])
        assert len(case.assignments) == 1

    def test_overloaded_lawyer_fails_batch(self, repository, clock, make_case):
        """Test one lawyer at the limit keeps the others off too."""
        engine = TeamAssignmentEngine(
            repository=repository,
            clock=clock,
            capacity_rules=CapacityRules(
                CapacityConfig(max_active_assignments_per_lawyer=1)
            ),
        )
        busy = uuid4()
        engine.add_assignment(make_case(case_number="LC-1"), busy)
        case = make_case(case_number="LC-2")

        with pytest.raises(LawyerOverloaded):
            engine.assign_team(case, [uuid4(), busy])

        assert case.assignments == []
        assert case.version == 0

    def test_empty_batch(self, team_engine, make_case):
        """Test an empty list adds nothing and saves nothing."""
        case = make_case()

        assert team_engine.assign_team(case, []) == []
        assert case.version == 0

    def test_final_case_rejected(self, team_engine, make_case):
        """Test a finished case takes no batch."""
        case = make_case(status=CaseStatus.CANCELLED)

        with pytest.raises(CaseNotModifiable):
            team_engine.assign_team(case, [uuid4()])


class TestConcurrency:
    """Tests for stale aggregates."""

    def test_stale_case_cannot_overfill(self, repository, clock, make_case):
        """Test two copies of one case cannot both take the last seat."""
        engine = TeamAssignmentEngine(repository=repository, clock=clock)
        case = make_case(complexity=CaseComplexity.SIMPLE)
        engine.add_assignment(case, uuid4())

        copy_a = repository.get_case(case.id)
        copy_b = repository.get_case(case.id)
        engine.add_assignment(copy_a, uuid4())

        with pytest.raises(ConcurrencyConflict):
            engine.add_assignment(copy_b, uuid4())

        assert len(copy_b.assignments) == 1
        assert len(repository.get_case(case.id).assignments) == 2
