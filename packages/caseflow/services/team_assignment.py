"""Case team composition and assignment lifecycle.

The engine works on a case aggregate supplied by the caller. Every rule is
checked before anything is mutated; if the optional repository rejects the
save (for instance on a version conflict) the aggregate is put back the way
it was and the error propagates.
"""

from collections.abc import Iterable
from datetime import datetime
from decimal import Decimal, InvalidOperation
from uuid import UUID

import structlog

from caseflow.clock import Clock, SystemClock
from caseflow.errors import (
    CapacityExceeded,
    CaseNotModifiable,
    DuplicateAssignment,
    InvalidDuration,
    InvalidLead,
    LawyerOverloaded,
    NotFound,
    TeamIncomplete,
)
from caseflow.models.assignment import AssignmentStatus, CaseLawyerAssignment
from caseflow.models.case import CaseStatus, LegalCase
from caseflow.models.results import CaseTransition, TeamMetrics
from caseflow.policy.capacity import CapacityRules, get_capacity_rules
from caseflow.policy.status import (
    ASSIGNMENT_END_STATUSES,
    ASSIGNMENT_MACHINE,
    CASE_MACHINE,
    counts_for_workload,
    is_final,
    requires_confirmation,
)
from caseflow.repository.base import CaseRepository
from caseflow.utils.rollback import rollback_on_error

logger = structlog.get_logger()

ROLE_LEAD = "LEAD"
ROLE_ASSOCIATE = "ASSOCIATE"


def _parse_hours(value: Decimal | int | str, *, allow_zero: bool = False) -> Decimal:
    """Coerce an hour count, raising InvalidDuration for anything unusable."""
    try:
        hours = Decimal(str(value))
    except InvalidOperation as e:
        raise InvalidDuration(f"Not a number of hours: {value!r}") from e
    if not hours.is_finite() or hours < 0 or (hours == 0 and not allow_zero):
        raise InvalidDuration(f"Hours must be positive, got {value!r}")
    return hours


class TeamAssignmentEngine:
    """Adds, transitions and removes lawyer assignments on a case.

    At most one seated assignment carries the LEAD role. When the lead
    leaves the team the longest-serving remaining lawyer takes over.
    """

    def __init__(
        self,
        repository: CaseRepository | None = None,
        clock: Clock | None = None,
        capacity_rules: CapacityRules | None = None,
    ):
        """Initialize the engine.

        Args:
            repository: Where successful changes are committed; without one
                the engine only mutates the aggregates it is handed and
                skips the cross-case lawyer workload check
            clock: Source of "now", SystemClock by default
            capacity_rules: Team-size policy, built-in tier table by default
        """
        self.repository = repository
        self.clock = clock or SystemClock()
        self.capacity_rules = capacity_rules or CapacityRules()

    # ------------------------------------------------------------------
    # Assignment operations
    # ------------------------------------------------------------------

    def add_assignment(
        self,
        case: LegalCase,
        lawyer_id: UUID,
        role: str = ROLE_ASSOCIATE,
        *,
        estimated_hours: Decimal | int | str = 0,
        specialty: str | None = None,
        notes: str | None = None,
    ) -> CaseLawyerAssignment:
        """Propose a lawyer for the case team.

        The new assignment starts PENDING and takes a seat immediately.
        Adding a LEAD demotes the current lead to ASSOCIATE.

        Raises:
            InvalidDuration: If estimated_hours is not a non-negative number
            CaseNotModifiable: If the case is in a final status
            CapacityExceeded: If the team is already at its effective maximum
            DuplicateAssignment: If the lawyer already has a seat on this case
            LawyerOverloaded: If the lawyer is at the per-lawyer limit
        """
        estimated = _parse_hours(estimated_hours, allow_zero=True)
        self._ensure_modifiable(case)
        self._ensure_seat_available(case)
        self._ensure_lawyer_available(case, lawyer_id)

        now = self.clock.now()
        role = role.strip().upper() or ROLE_ASSOCIATE
        assignment = self._new_assignment(
            case, lawyer_id, role, now, estimated, specialty=specialty, notes=notes
        )
        previous_lead = case.lead if role == ROLE_LEAD else None

        with rollback_on_error(case, *_present(previous_lead)):
            if previous_lead is not None:
                previous_lead.role = ROLE_ASSOCIATE
            case.assignments = [*case.assignments, assignment]
            case.updated_at = now
            self._save(case)

        logger.info(
            "Assignment added",
            case_id=str(case.id),
            assignment_id=str(assignment.id),
            lawyer_id=str(lawyer_id),
            role=assignment.role,
        )
        return assignment

    def assign_team(
        self,
        case: LegalCase,
        lawyer_ids: Iterable[UUID],
        *,
        estimated_hours: Decimal | int | str = 0,
        specialty: str | None = None,
    ) -> list[CaseLawyerAssignment]:
        """Add several lawyers in one step, all or nothing.

        Every lawyer is checked before any assignment is created. If the
        case has no lead yet, the first lawyer listed becomes it.

        Raises:
            InvalidDuration: If estimated_hours is not a non-negative number
            CaseNotModifiable: If the case is in a final status
            DuplicateAssignment: If a lawyer is listed twice or already seated
            CapacityExceeded: If the whole batch does not fit on the team
            LawyerOverloaded: If any lawyer is at the per-lawyer limit
        """
        lawyer_ids = list(lawyer_ids)
        estimated = _parse_hours(estimated_hours, allow_zero=True)
        self._ensure_modifiable(case)
        if not lawyer_ids:
            return []

        seen: set[UUID] = set()
        for lawyer_id in lawyer_ids:
            if lawyer_id in seen:
                raise DuplicateAssignment(case.id, lawyer_id)
            seen.add(lawyer_id)

        maximum = self.capacity_rules.effective_bounds(case).maximum
        if self._seated_count(case) + len(lawyer_ids) > maximum:
            raise CapacityExceeded(case.id, maximum)
        for lawyer_id in lawyer_ids:
            self._ensure_lawyer_available(case, lawyer_id)

        now = self.clock.now()
        needs_lead = case.lead is None
        added = [
            self._new_assignment(
                case,
                lawyer_id,
                ROLE_LEAD if needs_lead and index == 0 else ROLE_ASSOCIATE,
                now,
                estimated,
                specialty=specialty,
            )
            for index, lawyer_id in enumerate(lawyer_ids)
        ]

        with rollback_on_error(case):
            case.assignments = [*case.assignments, *added]
            case.updated_at = now
            self._save(case)

        logger.info(
            "Team assigned",
            case_id=str(case.id),
            lawyer_count=len(added),
            lead_assigned=needs_lead,
        )
        return added

    def activate_assignment(
        self, case: LegalCase, assignment: CaseLawyerAssignment
    ) -> CaseLawyerAssignment:
        """Move an assignment to ACTIVE, stamping start_date the first time."""
        return self.transition_assignment(case, assignment, AssignmentStatus.ACTIVE)

    def remove_assignment(
        self, case: LegalCase, assignment: CaseLawyerAssignment
    ) -> CaseLawyerAssignment:
        """Take a lawyer off the team. Assignments are cancelled, never deleted."""
        return self.transition_assignment(case, assignment, AssignmentStatus.CANCELLED)

    def transition_assignment(
        self,
        case: LegalCase,
        assignment: CaseLawyerAssignment,
        new_status: AssignmentStatus,
    ) -> CaseLawyerAssignment:
        """Apply one assignment state-machine step.

        Returns:
            The case's own instance of the assignment, updated

        Raises:
            NotFound: If the assignment is not part of this case
            CaseNotModifiable: If the case is in a final status
            InvalidTransition: If the step is not in the assignment table
            CapacityExceeded: If the step would give the assignment back a
                seat on a full team
        """
        target = self._resolve(case, assignment)
        self._ensure_modifiable(case)
        ASSIGNMENT_MACHINE.check(target.status, new_status)

        previous = target.status
        leaving = counts_for_workload(previous) and not counts_for_workload(new_status)
        rejoining = not counts_for_workload(previous) and counts_for_workload(new_status)
        if rejoining:
            # Re-entering the team takes a seat like a new assignment
            self._ensure_seat_available(case)
            self._ensure_lawyer_available(case, target.lawyer_id)

        successor = self._successor(case, target) if leaving and target.is_lead else None
        yield_lead = rejoining and target.is_lead and case.lead is not None

        now = self.clock.now()
        with rollback_on_error(case, target, *_present(successor)):
            target.status = new_status
            if new_status == AssignmentStatus.ACTIVE and target.start_date is None:
                target.start_date = now
            if new_status in ASSIGNMENT_END_STATUSES:
                target.end_date = now
            elif not counts_for_workload(previous):
                target.end_date = None
            if successor is not None:
                successor.role = ROLE_LEAD
            if yield_lead:
                target.role = ROLE_ASSOCIATE
            case.updated_at = now
            self._save(case)

        logger.info(
            "Assignment status changed",
            case_id=str(case.id),
            assignment_id=str(target.id),
            previous=previous.value,
            status=new_status.value,
            new_lead_id=str(successor.id) if successor else None,
        )
        return target

    def set_lead(
        self, case: LegalCase, assignment: CaseLawyerAssignment
    ) -> CaseLawyerAssignment:
        """Make the assignment the team lead, demoting the current one.

        Raises:
            NotFound: If the assignment is not part of this case
            CaseNotModifiable: If the case is in a final status
            InvalidLead: If the assignment does not hold a seat
        """
        target = self._resolve(case, assignment)
        self._ensure_modifiable(case)
        if not counts_for_workload(target.status):
            raise InvalidLead(case.id, target.id)

        current = case.lead
        if current is not None and current.id == target.id:
            return target

        with rollback_on_error(case, target, *_present(current)):
            if current is not None:
                current.role = ROLE_ASSOCIATE
            target.role = ROLE_LEAD
            case.updated_at = self.clock.now()
            self._save(case)

        logger.info(
            "Lead reassigned",
            case_id=str(case.id),
            assignment_id=str(target.id),
            previous_lead_id=str(current.id) if current else None,
        )
        return target

    def record_hours(
        self,
        case: LegalCase,
        assignment: CaseLawyerAssignment,
        hours: Decimal | int | str,
    ) -> CaseLawyerAssignment:
        """Add worked hours to an assignment.

        Going over the estimate is allowed; it only shows up as is_overtime.

        Raises:
            InvalidDuration: If hours is not a positive number
        """
        hours = _parse_hours(hours)
        target = self._resolve(case, assignment)
        self._ensure_modifiable(case)

        with rollback_on_error(case, target):
            target.actual_hours = target.actual_hours + hours
            case.updated_at = self.clock.now()
            self._save(case)

        logger.info(
            "Assignment hours recorded",
            case_id=str(case.id),
            assignment_id=str(target.id),
            hours=str(hours),
            overtime=target.is_overtime,
        )
        return target

    # ------------------------------------------------------------------
    # Team-level operations
    # ------------------------------------------------------------------

    def team_metrics(self, case: LegalCase) -> TeamMetrics:
        """Seat counts for the case against its effective bounds."""
        bounds = self.capacity_rules.effective_bounds(case)
        active = sum(1 for a in case.assignments if a.status == AssignmentStatus.ACTIVE)
        pending = sum(1 for a in case.assignments if a.status == AssignmentStatus.PENDING)
        team_size = active + pending

        return TeamMetrics(
            active_count=active,
            pending_count=pending,
            minimum=bounds.minimum,
            recommended=bounds.recommended,
            maximum=bounds.maximum,
            meets_minimum=team_size >= bounds.minimum,
            can_add_more=team_size < bounds.maximum,
            overtime_count=sum(1 for a in case.assignments if a.is_overtime),
            has_lead=case.lead is not None,
        )

    def mark_team_assigned(self, case: LegalCase) -> LegalCase:
        """Flag the case as staffed once the team meets its minimum.

        Raises:
            CaseNotModifiable: If the case is in a final status
            TeamIncomplete: If the team is below the effective minimum
        """
        self._ensure_modifiable(case)
        metrics = self.team_metrics(case)
        if not metrics.meets_minimum:
            raise TeamIncomplete(case.id, metrics.team_size, metrics.minimum)
        if case.team_assigned:
            return case

        with rollback_on_error(case):
            case.team_assigned = True
            case.updated_at = self.clock.now()
            self._save(case)

        logger.info("Team marked assigned", case_id=str(case.id), team_size=metrics.team_size)
        return case

    def transition_case(self, case: LegalCase, new_status: CaseStatus) -> CaseTransition:
        """Move the case through its lifecycle.

        Requesting the current status is a no-op. Entering a final status
        releases every seat on the team: active lawyers on a completed case
        are COMPLETED, everyone else still seated goes INACTIVE. The
        returned requires_confirmation flag is advisory; the change has
        already been applied.

        Raises:
            InvalidTransition: If the step is not in the case table
        """
        previous = case.status
        CASE_MACHINE.check(previous, new_status)
        if previous == new_status:
            return CaseTransition(previous=previous, current=previous)

        released = (
            [a for a in case.assignments if counts_for_workload(a.status)]
            if is_final(new_status)
            else []
        )

        now = self.clock.now()
        with rollback_on_error(case, *released):
            case.status = new_status
            if new_status == CaseStatus.COMPLETED:
                case.actual_completion_date = now
            for assignment in released:
                if (
                    new_status == CaseStatus.COMPLETED
                    and assignment.status == AssignmentStatus.ACTIVE
                ):
                    assignment.status = AssignmentStatus.COMPLETED
                else:
                    assignment.status = AssignmentStatus.INACTIVE
                assignment.end_date = now
            case.updated_at = now
            self._save(case)

        logger.info(
            "Case status changed",
            case_id=str(case.id),
            previous=previous.value,
            status=new_status.value,
            released_seats=len(released),
        )
        return CaseTransition(
            previous=previous,
            current=new_status,
            requires_confirmation=requires_confirmation(new_status),
        )

    # ------------------------------------------------------------------
    # Checks
    # ------------------------------------------------------------------

    @staticmethod
    def _resolve(case: LegalCase, assignment: CaseLawyerAssignment) -> CaseLawyerAssignment:
        target = case.find_assignment(assignment.id)
        if target is None:
            raise NotFound("assignment", assignment.id)
        return target

    @staticmethod
    def _ensure_modifiable(case: LegalCase) -> None:
        if is_final(case.status):
            raise CaseNotModifiable(case.id, case.status)

    @staticmethod
    def _seated_count(case: LegalCase) -> int:
        return sum(1 for a in case.assignments if counts_for_workload(a.status))

    @staticmethod
    def _successor(
        case: LegalCase, leaving: CaseLawyerAssignment
    ) -> CaseLawyerAssignment | None:
        """Longest-serving seated lawyer other than the one leaving, ACTIVE first."""
        candidates = [
            (a.status != AssignmentStatus.ACTIVE, index, a)
            for index, a in enumerate(case.assignments)
            if a.id != leaving.id and counts_for_workload(a.status)
        ]
        return min(candidates, key=lambda c: c[:2])[2] if candidates else None

    def _ensure_seat_available(self, case: LegalCase) -> None:
        maximum = self.capacity_rules.effective_bounds(case).maximum
        if self._seated_count(case) >= maximum:
            raise CapacityExceeded(case.id, maximum)

    def _ensure_lawyer_available(self, case: LegalCase, lawyer_id: UUID) -> None:
        on_this_case = sum(
            1
            for a in case.assignments
            if a.lawyer_id == lawyer_id and counts_for_workload(a.status)
        )
        if on_this_case:
            raise DuplicateAssignment(case.id, lawyer_id)

        if self.repository is None:
            return
        workload = self.repository.count_lawyer_workload(lawyer_id, exclude_case_id=case.id)
        if not self.capacity_rules.lawyer_has_capacity(workload):
            raise LawyerOverloaded(
                lawyer_id, workload, self.capacity_rules.max_active_assignments_per_lawyer
            )

    @staticmethod
    def _new_assignment(
        case: LegalCase,
        lawyer_id: UUID,
        role: str,
        now: datetime,
        estimated_hours: Decimal,
        specialty: str | None = None,
        notes: str | None = None,
    ) -> CaseLawyerAssignment:
        return CaseLawyerAssignment(
            case_id=case.id,
            lawyer_id=lawyer_id,
            status=AssignmentStatus.PENDING,
            role=role,
            assigned_specialty=specialty,
            assigned_date=now,
            estimated_hours=estimated_hours,
            notes=notes,
        )

    def _save(self, case: LegalCase) -> None:
        if self.repository is not None:
            self.repository.save(case)


def _present(*models: CaseLawyerAssignment | None) -> list[CaseLawyerAssignment]:
    return [model for model in models if model is not None]


def get_team_assignment_engine(
    repository: CaseRepository | None = None,
) -> TeamAssignmentEngine:
    """Engine using the capacity policy from capacity.yaml."""
    return TeamAssignmentEngine(repository=repository, capacity_rules=get_capacity_rules())
