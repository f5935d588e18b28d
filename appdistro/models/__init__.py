"""
appdistro Domain Models

Clean dataclass-based models for type-safe data handling.
"""

from .results import (
    ResultStatus,
    ValidationResult,
    ExecutionResult,
    DistributionResult,
)
from .target import (
    Platform,
    CredentialSettings,
    DistributionSettings,
    TargetConfig,
    DistributionRequest,
)
from .credentials import ServiceAccount

__all__ = [
    # Results
    "ResultStatus",
    "ValidationResult",
    "ExecutionResult",
    "DistributionResult",
    # Targets
    "Platform",
    "CredentialSettings",
    "DistributionSettings",
    "TargetConfig",
    "DistributionRequest",
    # Credentials
    "ServiceAccount",
]
