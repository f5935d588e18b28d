"""Tests for service account loading and materialization."""

import json
import os
import stat

import pytest

from appdistro.exceptions import CredentialError
from appdistro.models import CredentialSettings
from appdistro.services import CredentialService

from tests.conftest import SERVICE_ACCOUNT_INFO


def make_service(tmp_path, file=None, explicit=None):
    return CredentialService(CredentialSettings(file=file), tmp_path, explicit)


def test_loads_json_blob_from_env(tmp_path, monkeypatch, service_account_json) -> None:
    monkeypatch.setenv("FIREBASE_SERVICE_ACCOUNT", service_account_json)

    account = make_service(tmp_path).load()

    assert account.client_email == SERVICE_ACCOUNT_INFO["client_email"]
    assert account.source == "FIREBASE_SERVICE_ACCOUNT"


def test_env_var_may_hold_a_path(tmp_path, monkeypatch, service_account_file) -> None:
    monkeypatch.setenv("FIREBASE_SERVICE_ACCOUNT", str(service_account_file))
    assert make_service(tmp_path).load().source == str(service_account_file)


def test_explicit_path_wins(tmp_path, monkeypatch, service_account_file) -> None:
    monkeypatch.setenv("FIREBASE_SERVICE_ACCOUNT", "{not json")
    account = make_service(tmp_path, explicit=str(service_account_file)).load()
    assert account.project_id == "demo-project"


def test_config_file_relative_to_root(tmp_path, service_account_file) -> None:
    account = make_service(tmp_path, file="service-account.json").load()
    assert account.source == str(service_account_file)


def test_google_application_credentials_last(
    tmp_path, monkeypatch, service_account_file
) -> None:
    monkeypatch.setenv("GOOGLE_APPLICATION_CREDENTIALS", str(service_account_file))
    assert make_service(tmp_path).load().source == str(service_account_file)


def test_no_source(tmp_path) -> None:
    with pytest.raises(CredentialError) as exc:
        make_service(tmp_path).load()
    assert exc.value.message == "No service account credential found"


def test_missing_file(tmp_path) -> None:
    with pytest.raises(CredentialError) as exc:
        make_service(tmp_path, file="nope.json").load()
    assert "credentials.file" in exc.value.context


def test_invalid_json(tmp_path, monkeypatch) -> None:
    monkeypatch.setenv("FIREBASE_SERVICE_ACCOUNT", "{broken")
    with pytest.raises(CredentialError) as exc:
        make_service(tmp_path).load()
    assert "not valid JSON" in exc.value.message


@pytest.mark.parametrize(
    "overrides,fragment",
    [
        ({"type": "authorized_user"}, "expected 'service_account'"),
        ({"private_key": ""}, "missing fields: private_key"),
        ({"client_email": None, "project_id": ""}, "project_id, client_email"),
    ],
)
def test_rejects_non_service_account_keys(tmp_path, monkeypatch, overrides, fragment) -> None:
    monkeypatch.setenv(
        "FIREBASE_SERVICE_ACCOUNT", json.dumps({**SERVICE_ACCOUNT_INFO, **overrides})
    )
    with pytest.raises(CredentialError) as exc:
        make_service(tmp_path).load()
    assert fragment in exc.value.context


def test_materialize_writes_private_file_and_removes_it(
    tmp_path, monkeypatch, service_account_json
) -> None:
    monkeypatch.setenv("FIREBASE_SERVICE_ACCOUNT", service_account_json)
    service = make_service(tmp_path)

    with service.materialize() as key_file:
        assert json.loads(key_file.read_text()) == SERVICE_ACCOUNT_INFO
        if os.name == "posix":
            assert stat.S_IMODE(key_file.stat().st_mode) == 0o600

    assert not key_file.exists()


def test_materialize_removes_file_on_error(tmp_path, monkeypatch, service_account_json) -> None:
    monkeypatch.setenv("FIREBASE_SERVICE_ACCOUNT", service_account_json)

    with pytest.raises(RuntimeError):
        with make_service(tmp_path).materialize() as key_file:
            raise RuntimeError("upload blew up")

    assert not key_file.exists()


def test_describe_masks_key_id(tmp_path, monkeypatch, service_account_json) -> None:
    monkeypatch.setenv("FIREBASE_SERVICE_ACCOUNT", service_account_json)
    details = make_service(tmp_path).describe()
    assert details["private_key_id"] == "***cdef"
    assert "private_key" not in details
