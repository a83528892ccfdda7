"""Team-size rules: complexity tiers, per-case overrides, lawyer workload."""

from functools import lru_cache

from caseflow.config.loader import load_capacity_config
from caseflow.config.schemas import CapacityConfig
from caseflow.errors import InvalidBounds
from caseflow.models.case import CaseComplexity, LegalCase
from caseflow.models.results import CapacityBounds


class CapacityRules:
    """Resolves how many lawyers a case may and must have.

    Engines always go through effective_bounds(), which honours a case's own
    minimum/maximum overrides before falling back to the complexity tier.
    """

    def __init__(self, config: CapacityConfig | None = None):
        self.config = config or CapacityConfig()

    @property
    def max_active_assignments_per_lawyer(self) -> int:
        return self.config.max_active_assignments_per_lawyer

    def tier_bounds(self, complexity: CaseComplexity) -> CapacityBounds:
        tier = self.config.tiers[complexity]
        return CapacityBounds(
            minimum=tier.minimum,
            recommended=tier.recommended,
            maximum=tier.maximum,
        )

    def effective_bounds(self, case: LegalCase) -> CapacityBounds:
        """Bounds for this case, overrides first.

        A single override pulls the other tier value along with it, so a
        maximum below the tier minimum lowers the minimum too.

        Raises:
            InvalidBounds: If both overrides are set and minimum exceeds maximum
        """
        tier = self.tier_bounds(case.complexity)
        minimum = case.minimum_lawyers_required
        maximum = case.maximum_lawyers_allowed
        if minimum is None and maximum is None:
            minimum, maximum = tier.minimum, tier.maximum
        elif minimum is None:
            minimum = min(tier.minimum, maximum)
        elif maximum is None:
            maximum = max(tier.maximum, minimum)
        if minimum > maximum:
            raise InvalidBounds(
                f"Case {case.id}: effective minimum {minimum} exceeds maximum {maximum}"
            )
        recommended = min(max(tier.recommended, minimum), maximum)
        return CapacityBounds(minimum=minimum, recommended=recommended, maximum=maximum)

    def lawyer_has_capacity(self, current_workload: int) -> bool:
        return current_workload < self.max_active_assignments_per_lawyer


@lru_cache
def get_capacity_rules() -> CapacityRules:
    """Get cached rules built from capacity.yaml."""
    return CapacityRules(load_capacity_config())
