"""Tests for the doctor health report."""

import os
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from appdistro.main import cli
from appdistro.models import ExecutionResult

from tests.conftest import IOS_APP_ID

INSTALLED = "appdistro.commands.doctor.CommandExecutor.is_installed"
RUN = "appdistro.commands.doctor.CommandExecutor.run_command"
WIDE = {"COLUMNS": "200"}


@pytest.fixture
def gh_authenticated():
    with patch(RUN, return_value=ExecutionResult(returncode=0)) as run:
        yield run


def invoke(*args):
    return CliRunner(env=WIDE).invoke(cli, ["doctor", *args])


def test_healthy_project(write_config, artifacts, service_account_file, gh_authenticated) -> None:
    with patch(INSTALLED, return_value=True) as installed:
        result = invoke("-c", str(write_config()), "--credentials", str(service_account_file))

    assert result.exit_code == 0, result.output
    assert "No problems found" in result.output
    checked = [call.args[0] for call in installed.call_args_list]
    assert checked == ["git", "gh", "firebase", "echo"]
    gh_authenticated.assert_called_once()


def test_missing_tool(write_config, artifacts, service_account_file, gh_authenticated) -> None:
    with patch(INSTALLED, side_effect=lambda tool: tool != "firebase"):
        result = invoke("-c", str(write_config()), "--credentials", str(service_account_file))

    assert result.exit_code == 1
    assert "Install firebase and add it to PATH" in result.output
    assert "1 problem(s) found" in result.output


def test_credentials_and_app_id_problems(write_config, artifacts, gh_authenticated) -> None:
    path = write_config(
        f"""\
targets:
  android:
    app_id: "{IOS_APP_ID}"
    artifact: build/app-release.apk
"""
    )

    with patch(INSTALLED, return_value=True):
        result = invoke("-c", str(path))

    assert result.exit_code == 1
    assert "No service account credential found" in result.output
    assert "belongs to a ios app" in result.output
    assert "2 problem(s) found" in result.output


def test_glob_reports_newest_of_many(
    write_config, artifacts, service_account_file, gh_authenticated
) -> None:
    older = artifacts["ios"].parent / "Old.ipa"
    older.write_bytes(b"old")
    stamp = artifacts["ios"].stat().st_mtime - 60
    os.utime(older, (stamp, stamp))

    with patch(INSTALLED, return_value=True):
        result = invoke("-c", str(write_config()), "--credentials", str(service_account_file))

    assert result.exit_code == 0, result.output
    assert "Runner.ipa (newest of 2)" in result.output


def test_unbuilt_artifact_is_pending(write_config, service_account_file, gh_authenticated) -> None:
    path = write_config(
        """\
targets:
  android:
    app_id: "1:1234567890:android:0a1b2c3d4e5f"
    artifact: build/app-release.apk
    build: ./gradlew assembleRelease
"""
    )

    with patch(INSTALLED, return_value=True):
        result = invoke("-c", str(path), "--credentials", str(service_account_file))

    assert result.exit_code == 0, result.output
    assert "appdistro build -p android" in result.output


def test_unloadable_config(tmp_path, gh_authenticated) -> None:
    (tmp_path / "appdistro.yml").write_text("targets: [unclosed\n")

    with patch(INSTALLED, return_value=True):
        result = invoke("-c", str(tmp_path / "appdistro.yml"))

    assert result.exit_code == 1
    assert "Invalid YAML" in result.output
