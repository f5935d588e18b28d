"""Tests for per-target distribution orchestration."""

from unittest.mock import MagicMock, patch

import pytest

from appdistro.core import ConfigLoader
from appdistro.exceptions import UploadError, ValidationError
from appdistro.models import DistributionResult, Platform, ResultStatus
from appdistro.services import CredentialService, DistributionOverrides, DistributionService

from tests.conftest import ANDROID_APP_ID


@pytest.fixture
def service(config, logger, service_account_file):
    credentials = CredentialService(
        config.credentials, config.root_dir, explicit_path=str(service_account_file)
    )
    return DistributionService(config, credentials, logger)


def ok(request, *_):
    return DistributionResult(
        platform=request.platform.value,
        app_id=request.app_id,
        status=ResultStatus.SUCCESS,
        artifact=request.artifact.name,
    )


@patch("appdistro.services.release_notes.get_last_commit_message", return_value="Fix login")
def test_prepare_uses_configured_values(_git, service, config, artifacts) -> None:
    request = service.prepare(config.get_target(Platform.ANDROID), DistributionOverrides())

    assert request.app_id == ANDROID_APP_ID
    assert request.artifact == artifacts["android"]
    assert request.groups == ["qa-team", "internal"]
    assert request.testers == []
    assert request.release_notes == "Fix login"


def test_prepare_overrides(service, config, artifacts, tmp_path) -> None:
    other = tmp_path / "other.apk"
    other.write_bytes(b"x")
    overrides = DistributionOverrides(
        artifact=str(other), groups="beta", testers="a@example.com", release_notes="hi",
        include_ci_context=False,
    )

    request = service.prepare(config.get_target(Platform.ANDROID), overrides)

    assert request.artifact == other
    assert request.groups == ["beta"]
    assert request.testers == ["a@example.com"]
    assert request.release_notes == "hi"


def test_prepare_rejects_bad_testers(service, config, artifacts) -> None:
    with pytest.raises(ValidationError):
        service.prepare(
            config.get_target(Platform.ANDROID), DistributionOverrides(testers="not-an-email")
        )


def test_prepare_rejects_app_id_for_other_platform(service, config, artifacts) -> None:
    overrides = DistributionOverrides(app_id="1:1234567890:ios:abcdef012345")

    with pytest.raises(ValidationError):
        service.prepare(config.get_target(Platform.ANDROID), overrides)


@patch("appdistro.services.distribution_service.CLIUploader.upload", autospec=True)
def test_cli_backend_gets_key_file(mock_upload, service, config, artifacts) -> None:
    seen = {}

    def fake_upload(self, request, key_file, logger):
        seen["mode"] = key_file.stat().st_mode & 0o777
        seen["path"] = key_file
        return ok(request)

    mock_upload.side_effect = fake_upload

    results = service.distribute(
        [config.get_target(Platform.IOS)], DistributionOverrides(release_notes="n"), skip_build=True
    )

    assert results[0].is_success
    assert seen["mode"] == 0o600
    assert not seen["path"].exists()


@patch("appdistro.services.api_uploader.APIUploader.upload", autospec=True)
def test_api_backend(mock_upload, config, logger, service_account_file, artifacts) -> None:
    mock_upload.side_effect = lambda self, request, log: ok(request)
    credentials = CredentialService(
        config.credentials, config.root_dir, explicit_path=str(service_account_file)
    )
    service = DistributionService(config, credentials, logger, backend="api")

    results = service.distribute(
        [config.get_target(Platform.IOS)], DistributionOverrides(release_notes="n"), skip_build=True
    )

    assert results[0].is_success
    mock_upload.assert_called_once()


def test_failure_is_captured(service, config, artifacts) -> None:
    with patch.object(
        service, "_upload", side_effect=UploadError("android upload failed (exit code 1)")
    ):
        results = service.distribute(
            [config.get_target(Platform.ANDROID), config.get_target(Platform.IOS)],
            DistributionOverrides(release_notes="n"),
            skip_build=True,
        )

    assert [r.status for r in results] == [ResultStatus.FAILURE, ResultStatus.FAILURE]
    assert results[0].message == "android upload failed (exit code 1)"


def test_fail_fast_skips_remaining(service, config, artifacts) -> None:
    with patch.object(service, "_upload", side_effect=UploadError("boom")) as upload:
        results = service.distribute(
            [config.get_target(Platform.ANDROID), config.get_target(Platform.IOS)],
            DistributionOverrides(release_notes="n"),
            skip_build=True,
            fail_fast=True,
        )

    assert upload.call_count == 1
    assert results[1].status == ResultStatus.SKIPPED
    assert results[1].platform == Platform.IOS.value


def test_build_runs_before_upload(service, config, artifacts) -> None:
    calls = []
    with patch.object(
        service.artifact_service, "build", side_effect=lambda t, log: calls.append("build")
    ), patch.object(
        service, "_upload", side_effect=lambda r: calls.append("upload") or ok(r)
    ):
        results = service.distribute(
            [config.get_target(Platform.ANDROID)], DistributionOverrides(release_notes="n")
        )

    assert results[0].is_success
    assert calls == ["build", "upload"]


def test_artifact_override_skips_build(service, config, artifacts) -> None:
    build = MagicMock()
    with patch.object(service.artifact_service, "build", build), patch.object(
        service, "_upload", side_effect=ok
    ):
        service.distribute(
            [config.get_target(Platform.ANDROID)],
            DistributionOverrides(artifact=str(artifacts["android"]), release_notes="n"),
        )

    build.assert_not_called()


def test_build_timeout_from_config(write_config, logger, service_account_file) -> None:
    config = ConfigLoader().load(
        write_config(
            "distribution:\n  build_timeout: 900\ntargets:\n  android:\n    artifact: a.apk\n"
        )
    )
    credentials = CredentialService(
        config.credentials, config.root_dir, explicit_path=str(service_account_file)
    )

    service = DistributionService(config, credentials, logger)

    assert service.artifact_service.build_timeout == 900
