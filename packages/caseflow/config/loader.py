"""Configuration file loaders."""

import os
from functools import lru_cache
from pathlib import Path

import yaml

from caseflow.config.schemas import BillingConfig, CapacityConfig

CONFIG_FILES = ("capacity.yaml", "billing.yaml")


def _get_config_dir() -> Path:
    """Get the config directory path."""
    config_dir = os.environ.get("CASEFLOW_CONFIG_DIR")
    if config_dir:
        return Path(config_dir)

    # Default: nearest ancestor with a config/ dir holding the policy files
    current = Path(__file__).resolve()
    for parent in current.parents:
        config_path = parent / "config"
        if (config_path / CONFIG_FILES[0]).is_file():
            return config_path

    raise FileNotFoundError("Config directory not found")


def _load_yaml(filename: str) -> dict:
    """Load a YAML config file."""
    config_path = _get_config_dir() / filename

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, encoding="utf-8") as f:
        return _expand_env_vars(yaml.safe_load(f) or {})


def _expand_env_vars(data: dict | list | str) -> dict | list | str:
    """Recursively expand environment variables in config values."""
    if isinstance(data, dict):
        return {k: _expand_env_vars(v) for k, v in data.items()}
    if isinstance(data, list):
        return [_expand_env_vars(item) for item in data]
    if isinstance(data, str) and data.startswith("${") and data.endswith("}"):
        env_var = data[2:-1]
        return os.environ.get(env_var, data)
    return data


@lru_cache
def load_capacity_config() -> CapacityConfig:
    """Load the team capacity configuration."""
    data = _load_yaml("capacity.yaml")
    return CapacityConfig(**data)


@lru_cache
def load_billing_config() -> BillingConfig:
    """Load the billing configuration."""
    data = _load_yaml("billing.yaml")
    return BillingConfig(**data)
