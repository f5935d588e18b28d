"""
Target Models

Dataclass models for build targets and distribution settings.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional, List

from appdistro.constants import (
    ARTIFACT_SUFFIXES,
    BACKEND_CLI,
    DEFAULT_DISTRIBUTE_COMMAND,
    DEFAULT_UPLOAD_TIMEOUT,
    ENV_SERVICE_ACCOUNT,
)


class Platform(Enum):
    """Mobile platform a target builds for."""

    ANDROID = "android"
    IOS = "ios"

    @property
    def artifact_suffixes(self) -> List[str]:
        """Artifact file suffixes accepted for this platform."""
        return ARTIFACT_SUFFIXES[self.value]

    @classmethod
    def from_name(cls, name: str) -> "Platform":
        """Look up a platform by (case-insensitive) name."""
        try:
            return cls(name.strip().lower())
        except ValueError:
            valid = ", ".join(p.value for p in cls)
            raise ValueError(f"Unknown platform '{name}' (expected one of: {valid})")


@dataclass
class CredentialSettings:
    """Where the service account credential is looked up."""

    file: Optional[str] = None
    env_var: str = ENV_SERVICE_ACCOUNT


@dataclass
class DistributionSettings:
    """Global distribution defaults, overridable per target."""

    backend: str = BACKEND_CLI
    command: str = DEFAULT_DISTRIBUTE_COMMAND
    credentials_flag: Optional[str] = None
    groups: List[str] = field(default_factory=list)
    testers: List[str] = field(default_factory=list)
    release_notes: str = ""
    release_notes_file: Optional[str] = None
    timeout: int = DEFAULT_UPLOAD_TIMEOUT
    build_timeout: Optional[int] = None


@dataclass
class TargetConfig:
    """Build and distribution configuration for one platform."""

    platform: Platform
    app_id: str = ""
    artifact: str = ""
    build_command: Optional[str] = None
    groups: Optional[List[str]] = None
    testers: Optional[List[str]] = None
    release_notes: Optional[str] = None

    @property
    def name(self) -> str:
        return self.platform.value

    def effective_groups(self, settings: DistributionSettings) -> List[str]:
        """Target groups, falling back to the global defaults."""
        return list(self.groups) if self.groups is not None else list(settings.groups)

    def effective_testers(self, settings: DistributionSettings) -> List[str]:
        """Target testers, falling back to the global defaults."""
        return (
            list(self.testers) if self.testers is not None else list(settings.testers)
        )


@dataclass
class DistributionRequest:
    """Concrete input for a single upload."""

    platform: Platform
    app_id: str
    artifact: Path
    groups: List[str] = field(default_factory=list)
    testers: List[str] = field(default_factory=list)
    release_notes: str = ""

    def __repr__(self) -> str:
        return f"DistributionRequest(platform={self.platform.value}, artifact={self.artifact.name})"
