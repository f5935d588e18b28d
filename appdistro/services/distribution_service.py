"""
Distribution Service

Ties the build step, credential loader and uploader together for each target.
"""

import time
from typing import List, Optional

from appdistro.constants import BACKEND_API
from appdistro.core.config_loader import AppDistroConfig
from appdistro.core.validator import parse_list, require_app_id, validate_testers
from appdistro.exceptions import AppDistroError, ValidationError
from appdistro.logger import DistributionLogger
from appdistro.models import (
    DistributionRequest,
    DistributionResult,
    ResultStatus,
    TargetConfig,
)
from appdistro.services.artifact_service import ArtifactService
from appdistro.services.cli_uploader import CLIUploader
from appdistro.services.credential_service import CredentialService
from appdistro.services.release_notes import resolve_release_notes


class DistributionOverrides:
    """Command-line values that replace configured ones for a run."""

    def __init__(
        self,
        artifact: Optional[str] = None,
        app_id: Optional[str] = None,
        groups: Optional[str] = None,
        testers: Optional[str] = None,
        release_notes: Optional[str] = None,
        release_notes_file: Optional[str] = None,
        include_ci_context: bool = True,
    ):
        self.artifact = artifact
        self.app_id = app_id
        self.groups = parse_list(groups) if groups is not None else None
        self.testers = parse_list(testers) if testers is not None else None
        self.release_notes = release_notes
        self.release_notes_file = release_notes_file
        self.include_ci_context = include_ci_context


class DistributionService:
    """
    Per-target build and upload.

    Targets are independent: a failing target is reported and the
    remaining ones still run, unless fail_fast is set.
    """

    def __init__(
        self,
        config: AppDistroConfig,
        credential_service: CredentialService,
        logger: DistributionLogger,
        backend: Optional[str] = None,
    ):
        self.config = config
        self.credential_service = credential_service
        self.logger = logger
        self.backend = backend or config.distribution.backend
        self.artifact_service = ArtifactService(
            config.root_dir, build_timeout=config.distribution.build_timeout
        )

    def prepare(
        self, target: TargetConfig, overrides: DistributionOverrides
    ) -> DistributionRequest:
        """
        Resolve everything a single upload needs.

        Raises:
            ValidationError: If the app ID, testers or artifact are invalid
        """
        settings = self.config.distribution
        app_id = overrides.app_id or target.app_id
        require_app_id(app_id, target.platform)

        groups = (
            overrides.groups
            if overrides.groups is not None
            else target.effective_groups(settings)
        )
        testers = (
            overrides.testers
            if overrides.testers is not None
            else target.effective_testers(settings)
        )
        tester_check = validate_testers(testers)
        if tester_check.has_errors:
            raise ValidationError(
                f"{target.name}: invalid testers", context="; ".join(tester_check.errors)
            )

        artifact = self.artifact_service.resolve(target, overrides.artifact)

        notes = resolve_release_notes(
            target,
            settings,
            self.config.root_dir,
            text=overrides.release_notes,
            notes_file=overrides.release_notes_file,
            include_ci_context=overrides.include_ci_context,
        )

        return DistributionRequest(
            platform=target.platform,
            app_id=app_id,
            artifact=artifact,
            groups=groups,
            testers=testers,
            release_notes=notes,
        )

    def _upload(self, request: DistributionRequest) -> DistributionResult:
        account = self.credential_service.load()
        self.logger.redact(account.private_key, "<private-key>")

        if self.backend == BACKEND_API:
            from appdistro.services.api_uploader import APIUploader

            uploader = APIUploader(self.config.distribution, account)
            return uploader.upload(request, self.logger)

        uploader = CLIUploader(self.config.distribution, self.config.root_dir)
        with self.credential_service.materialize(account) as key_file:
            return uploader.upload(request, key_file, self.logger)

    def distribute_target(
        self,
        target: TargetConfig,
        overrides: DistributionOverrides,
        skip_build: bool = False,
    ) -> DistributionResult:
        """Build, resolve and upload one target, capturing failures in the result."""
        started = time.monotonic()
        self.logger.step(f"Distributing {target.name}")

        try:
            if not skip_build and not overrides.artifact:
                self.artifact_service.build(target, self.logger)
            request = self.prepare(target, overrides)
            self.logger.log(f"Prepared {request!r}")
            result = self._upload(request)
        except AppDistroError as e:
            self.logger.log_error(e.message, context=e.context)
            return DistributionResult(
                platform=target.name,
                app_id=overrides.app_id or target.app_id,
                status=ResultStatus.FAILURE,
                message=e.message,
                duration_seconds=time.monotonic() - started,
            )

        result.duration_seconds = time.monotonic() - started
        self.logger.success(f"{target.name} distributed ({result.duration_seconds:.1f}s)")
        return result

    def distribute(
        self,
        targets: List[TargetConfig],
        overrides: Optional[DistributionOverrides] = None,
        skip_build: bool = False,
        fail_fast: bool = False,
    ) -> List[DistributionResult]:
        """
        Distribute several targets in order.

        Returns:
            One result per target; targets not attempted after a fail_fast
            stop are reported as skipped
        """
        overrides = overrides or DistributionOverrides()
        results: List[DistributionResult] = []
        stopped = False

        for target in targets:
            if stopped:
                results.append(
                    DistributionResult(
                        platform=target.name,
                        app_id=target.app_id,
                        status=ResultStatus.SKIPPED,
                        message="Skipped after earlier failure",
                    )
                )
                continue

            result = self.distribute_target(target, overrides, skip_build=skip_build)
            results.append(result)
            if result.is_failure and fail_fast:
                stopped = True

        return results
