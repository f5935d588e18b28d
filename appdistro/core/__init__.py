"""appdistro core - configuration loading and validation."""

from .config_loader import AppDistroConfig, ConfigLoader
from .validator import (
    parse_app_id,
    parse_list,
    validate_app_id,
    validate_testers,
    validate_config,
)

__all__ = [
    "AppDistroConfig",
    "ConfigLoader",
    "parse_app_id",
    "parse_list",
    "validate_app_id",
    "validate_testers",
    "validate_config",
]
