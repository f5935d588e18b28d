"""
Result Models

Dataclass models for operation results and command outputs.
"""

from dataclasses import dataclass, field
from typing import Optional, Dict, Any
from enum import Enum


class ResultStatus(Enum):
    """Status of an operation result."""

    SUCCESS = "success"
    FAILURE = "failure"
    SKIPPED = "skipped"


@dataclass
class ValidationResult:
    """Result of a validation operation."""

    is_valid: bool = True
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        """Check if validation has errors."""
        return len(self.errors) > 0

    @property
    def has_warnings(self) -> bool:
        """Check if validation has warnings."""
        return len(self.warnings) > 0

    def add_error(self, error: str) -> None:
        """Add an error to the validation result."""
        self.errors.append(error)
        self.is_valid = False

    def add_warning(self, warning: str) -> None:
        """Add a warning to the validation result."""
        self.warnings.append(warning)

    def merge(self, other: "ValidationResult") -> None:
        """Fold another result into this one."""
        for error in other.errors:
            self.add_error(error)
        self.warnings.extend(other.warnings)

    def __repr__(self) -> str:
        return f"ValidationResult(valid={self.is_valid}, errors={len(self.errors)}, warnings={len(self.warnings)})"


@dataclass
class ExecutionResult:
    """Result of a command execution (subprocess)."""

    returncode: int
    stdout: str = ""
    stderr: str = ""
    command: str = ""

    @property
    def is_success(self) -> bool:
        """Check if execution succeeded."""
        return self.returncode == 0

    @property
    def is_failure(self) -> bool:
        """Check if execution failed."""
        return self.returncode != 0

    @property
    def output(self) -> str:
        """Get combined output (stdout + stderr)."""
        return f"{self.stdout}\n{self.stderr}".strip()

    def __repr__(self) -> str:
        return f"ExecutionResult(returncode={self.returncode}, command='{self.command[:50]}...')"


@dataclass
class DistributionResult:
    """Outcome of distributing one artifact to one app."""

    platform: str
    app_id: str
    status: ResultStatus
    artifact: Optional[str] = None
    message: str = ""
    release_name: Optional[str] = None
    console_uri: Optional[str] = None
    testing_uri: Optional[str] = None
    duration_seconds: float = 0.0

    @property
    def is_success(self) -> bool:
        """Check if distribution succeeded."""
        return self.status == ResultStatus.SUCCESS

    @property
    def is_failure(self) -> bool:
        """Check if distribution failed."""
        return self.status == ResultStatus.FAILURE

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON output."""
        return {
            "platform": self.platform,
            "app_id": self.app_id,
            "status": self.status.value,
            "artifact": self.artifact,
            "message": self.message,
            "release_name": self.release_name,
            "console_uri": self.console_uri,
            "testing_uri": self.testing_uri,
            "duration_seconds": round(self.duration_seconds, 2),
        }

    def __repr__(self) -> str:
        return f"DistributionResult(platform={self.platform}, status={self.status.value}, duration={self.duration_seconds:.2f}s)"
