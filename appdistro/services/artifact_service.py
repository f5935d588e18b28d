"""
Artifact Service

Runs target build commands and resolves the artifact each one produces.
"""

import os
import subprocess
from pathlib import Path
from typing import Optional

from appdistro.exceptions import ArtifactNotFoundError, BuildError, ValidationError
from appdistro.logger import DistributionLogger, run_with_progress
from appdistro.models import TargetConfig
from appdistro.utils import tail


class ArtifactService:
    """Build step and artifact resolution for targets."""

    def __init__(self, root_dir: Path, build_timeout: Optional[int] = None):
        self.root_dir = Path(root_dir)
        self.build_timeout = build_timeout

    def build(self, target: TargetConfig, logger: DistributionLogger) -> bool:
        """
        Run the build command of a target in the project root.

        Returns:
            True if a build ran, False if the target has no build command

        Raises:
            BuildError: If the build command exits non-zero or times out
        """
        if not target.build_command:
            logger.warning(f"{target.name}: no build command configured, skipping build")
            return False

        try:
            returncode, stdout, stderr = run_with_progress(
                logger,
                target.build_command,
                f"Building {target.name}",
                cwd=self.root_dir,
                env=dict(os.environ),
                timeout=self.build_timeout,
            )
        except subprocess.TimeoutExpired:
            raise BuildError(
                f"{target.name} build timed out after {self.build_timeout}s",
                context=target.build_command,
            )

        if returncode != 0:
            raise BuildError(
                f"{target.name} build failed (exit code {returncode})",
                context=tail(stderr or stdout) or target.build_command,
            )

        logger.success(f"{target.name} build finished")
        return True

    def resolve(self, target: TargetConfig, override: Optional[str] = None) -> Path:
        """
        Resolve the artifact path of a target.

        Glob patterns may match several files; the most recently modified wins.

        Args:
            target: Target whose artifact to find
            override: Explicit artifact path replacing the configured one

        Returns:
            Absolute path to an existing, non-empty artifact

        Raises:
            ArtifactNotFoundError: If nothing matches
            ValidationError: If the file is empty or has the wrong suffix
        """
        pattern = override or target.artifact
        if not pattern:
            raise ArtifactNotFoundError(target.name, "<not configured>")

        candidate = Path(os.path.expanduser(pattern))
        if candidate.is_absolute():
            base, relative = Path(candidate.anchor), str(candidate.relative_to(candidate.anchor))
        else:
            base, relative = self.root_dir, pattern

        if any(char in relative for char in "*?["):
            matches = [path for path in base.glob(relative) if path.is_file()]
        else:
            path = base / relative
            matches = [path] if path.is_file() else []

        if not matches:
            raise ArtifactNotFoundError(target.name, pattern)

        artifact = max(matches, key=lambda path: path.stat().st_mtime)

        if artifact.suffix.lower() not in target.platform.artifact_suffixes:
            raise ValidationError(
                f"{artifact.name} is not a {target.name} artifact",
                context=f"Expected {' or '.join(target.platform.artifact_suffixes)}",
            )

        if artifact.stat().st_size == 0:
            raise ValidationError(f"Artifact is empty: {artifact}")

        return artifact.resolve()

    def count_matches(self, target: TargetConfig) -> int:
        """Number of files matching a target's artifact pattern."""
        if not target.artifact:
            return 0
        if Path(os.path.expanduser(target.artifact)).is_absolute():
            return 1
        return sum(1 for path in self.root_dir.glob(target.artifact) if path.is_file())
