"""Pydantic schemas for configuration files."""

from pydantic import BaseModel, Field, model_validator

from caseflow.models.case import CaseComplexity


class CapacityTierConfig(BaseModel):
    """Lawyer-count bounds for one complexity tier."""

    minimum: int = Field(ge=1)
    recommended: int = Field(ge=1)
    maximum: int = Field(ge=1)

    @model_validator(mode="after")
    def _check_order(self) -> "CapacityTierConfig":
        if not self.minimum <= self.recommended <= self.maximum:
            raise ValueError("expected minimum <= recommended <= maximum")
        return self


def _default_tiers() -> dict[CaseComplexity, CapacityTierConfig]:
    return {
        CaseComplexity.SIMPLE: CapacityTierConfig(minimum=1, recommended=2, maximum=2),
        CaseComplexity.MEDIUM: CapacityTierConfig(minimum=2, recommended=3, maximum=4),
        CaseComplexity.COMPLEX: CapacityTierConfig(minimum=3, recommended=4, maximum=6),
        CaseComplexity.VERY_COMPLEX: CapacityTierConfig(
            minimum=4, recommended=5, maximum=8
        ),
    }


class CapacityConfig(BaseModel):
    """Team-size policy."""

    tiers: dict[CaseComplexity, CapacityTierConfig] = Field(
        default_factory=_default_tiers
    )
    max_active_assignments_per_lawyer: int = Field(default=10, ge=1)

    @model_validator(mode="after")
    def _fill_missing_tiers(self) -> "CapacityConfig":
        defaults = _default_tiers()
        for complexity in CaseComplexity:
            self.tiers.setdefault(complexity, defaults[complexity])
        return self


class BillingConfig(BaseModel):
    """Rounding used by billing rollups."""

    amount_places: int = Field(default=2, ge=0)
    utilization_places: int = Field(default=4, ge=0)
