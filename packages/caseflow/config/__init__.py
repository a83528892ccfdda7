"""Configuration loaders and schemas."""

from caseflow.config.loader import load_billing_config, load_capacity_config
from caseflow.config.schemas import BillingConfig, CapacityConfig, CapacityTierConfig

__all__ = [
    "load_billing_config",
    "load_capacity_config",
    "BillingConfig",
    "CapacityConfig",
    "CapacityTierConfig",
]
