"""
CLI Uploader

Distributes an artifact by shelling out to the distribution CLI.
"""

import os
import re
import shlex
import subprocess
import time
from pathlib import Path
from typing import List, Optional

from appdistro.constants import ENV_GOOGLE_CREDENTIALS, FIREBASE_DEBUG_LOG
from appdistro.exceptions import UploadError
from appdistro.logger import DistributionLogger, run_with_progress
from appdistro.models import (
    DistributionRequest,
    DistributionResult,
    DistributionSettings,
    ResultStatus,
)
from appdistro.utils import tail

CONSOLE_URI_PATTERN = re.compile(r"(https://console\.firebase\.google\.com/\S+)")
TESTING_URI_PATTERN = re.compile(r"(https://appdistribution\.firebase\S*\.google\S*/\S+)")


class CLIUploader:
    """Uploader backend running ``<command> <artifact> --app <id> ...``."""

    def __init__(self, settings: DistributionSettings, root_dir: Path):
        self.settings = settings
        self.root_dir = Path(root_dir)

    def build_command(
        self, request: DistributionRequest, credentials_file: Optional[Path] = None
    ) -> List[str]:
        """
        Build the distribution command line.

        Args:
            request: Upload request
            credentials_file: Key file, passed with credentials_flag when configured

        Returns:
            Argument list
        """
        cmd = shlex.split(self.settings.command)
        cmd += [str(request.artifact), "--app", request.app_id]

        if self.settings.credentials_flag and credentials_file:
            cmd += [self.settings.credentials_flag, str(credentials_file)]
        if request.groups:
            cmd += ["--groups", ",".join(request.groups)]
        if request.testers:
            cmd += ["--testers", ",".join(request.testers)]
        if request.release_notes:
            cmd += ["--release-notes", request.release_notes]

        return cmd

    def _failure_context(self, output: str) -> str:
        context = tail(output)
        debug_log = self.root_dir / FIREBASE_DEBUG_LOG
        if debug_log.is_file():
            context = f"{context}\nSee {debug_log}".strip()
        return context or "no output"

    def upload(
        self,
        request: DistributionRequest,
        credentials_file: Path,
        logger: DistributionLogger,
    ) -> DistributionResult:
        """
        Run the distribution command for one request.

        Raises:
            UploadError: If the command is missing, fails or times out
        """
        cmd = self.build_command(request, credentials_file)
        env = {**os.environ, ENV_GOOGLE_CREDENTIALS: str(credentials_file)}
        started = time.monotonic()

        try:
            returncode, stdout, stderr = run_with_progress(
                logger,
                cmd,
                f"Uploading {request.artifact.name}",
                cwd=self.root_dir,
                env=env,
                timeout=self.settings.timeout,
            )
        except FileNotFoundError:
            raise UploadError(
                f"Distribution command not found: {cmd[0]}",
                context="Install it (npm install -g firebase-tools) or set distribution.command",
            )
        except subprocess.TimeoutExpired:
            raise UploadError(
                f"Upload of {request.artifact.name} timed out after {self.settings.timeout}s"
            )

        output = f"{stdout}\n{stderr}"
        if returncode != 0:
            raise UploadError(
                f"{request.platform.value} upload failed (exit code {returncode})",
                context=self._failure_context(output),
            )

        console_match = CONSOLE_URI_PATTERN.search(output)
        testing_match = TESTING_URI_PATTERN.search(output)

        return DistributionResult(
            platform=request.platform.value,
            app_id=request.app_id,
            status=ResultStatus.SUCCESS,
            artifact=request.artifact.name,
            message="Uploaded via CLI",
            console_uri=console_match.group(1) if console_match else None,
            testing_uri=testing_match.group(1) if testing_match else None,
            duration_seconds=time.monotonic() - started,
        )
