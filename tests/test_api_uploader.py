"""Tests for the REST API backend."""

from unittest.mock import MagicMock

import pytest
import requests

from appdistro.constants import API_BASE_URL, UPLOAD_BASE_URL
from appdistro.exceptions import UploadError
from appdistro.models import (
    DistributionRequest,
    DistributionSettings,
    Platform,
    ServiceAccount,
)
from appdistro.services.api_uploader import APIUploader

from tests.conftest import ANDROID_APP_ID, SERVICE_ACCOUNT_INFO

OPERATION = f"projects/1234567890/apps/{ANDROID_APP_ID}/releases/-/operations/op1"
RELEASE = f"projects/1234567890/apps/{ANDROID_APP_ID}/releases/rel1"


def response(status=200, body=None):
    resp = MagicMock(spec=requests.Response)
    resp.status_code = status
    resp.content = b"{}" if body is not None else b""
    resp.json.return_value = body
    resp.text = str(body)
    return resp


@pytest.fixture
def account():
    return ServiceAccount.from_dict(SERVICE_ACCOUNT_INFO, source="test")


@pytest.fixture
def request_(tmp_path):
    artifact = tmp_path / "app.apk"
    artifact.write_bytes(b"apk")
    return DistributionRequest(
        platform=Platform.ANDROID,
        app_id=ANDROID_APP_ID,
        artifact=artifact,
        groups=["qa"],
        testers=[],
        release_notes="Notes",
    )


def make_uploader(account, session, **kwargs):
    return APIUploader(
        DistributionSettings(backend="api"),
        account,
        session=session,
        token_provider=lambda _: "token-123",
        sleep=lambda _: None,
        **kwargs,
    )


def test_full_flow(account, request_, logger) -> None:
    session = MagicMock()
    session.request.side_effect = [
        response(body={"name": OPERATION}),
        response(body={"name": OPERATION, "done": False}),
        response(
            body={
                "done": True,
                "response": {
                    "result": "RELEASE_CREATED",
                    "release": {
                        "name": RELEASE,
                        "displayVersion": "1.2.0",
                        "buildVersion": "42",
                        "firebaseConsoleUri": "https://console.firebase.google.com/x",
                        "testingUri": "https://appdistribution.firebase.google.com/y",
                    },
                },
            }
        ),
        response(body={}),
        response(body={}),
    ]

    result = make_uploader(account, session).upload(request_, logger)

    assert result.is_success
    assert result.release_name == RELEASE
    assert result.message == "RELEASE_CREATED"
    assert result.testing_uri == "https://appdistribution.firebase.google.com/y"

    calls = session.request.call_args_list
    method, url = calls[0].args
    assert method == "POST"
    assert url == (
        f"{UPLOAD_BASE_URL}/v1/projects/1234567890/apps/{ANDROID_APP_ID}/releases:upload"
    )
    headers = calls[0].kwargs["headers"]
    assert headers["Authorization"] == "Bearer token-123"
    assert headers["X-Goog-Upload-File-Name"] == "app.apk"

    assert calls[1].args == ("GET", f"{API_BASE_URL}/v1/{OPERATION}")

    assert calls[3].args == ("PATCH", f"{API_BASE_URL}/v1/{RELEASE}")
    assert calls[3].kwargs["json"]["releaseNotes"] == {"text": "Notes"}
    assert calls[3].kwargs["params"] == {"updateMask": "release_notes.text"}

    assert calls[4].args == ("POST", f"{API_BASE_URL}/v1/{RELEASE}:distribute")
    assert calls[4].kwargs["json"] == {"testerEmails": [], "groupAliases": ["qa"]}


def test_skips_notes_and_distribution_when_empty(account, request_, logger) -> None:
    request_.groups = []
    request_.release_notes = ""
    session = MagicMock()
    session.request.side_effect = [
        response(body={"name": OPERATION}),
        response(body={"done": True, "response": {"release": {"name": RELEASE}}}),
    ]

    result = make_uploader(account, session).upload(request_, logger)

    assert result.is_success
    assert session.request.call_count == 2


def test_operation_error(account) -> None:
    session = MagicMock()
    session.request.return_value = response(
        body={"done": True, "error": {"message": "APK is not signed"}}
    )

    with pytest.raises(UploadError) as exc:
        make_uploader(account, session).wait_for_release(OPERATION)

    assert exc.value.context == "APK is not signed"


def test_polling_gives_up(account) -> None:
    session = MagicMock()
    session.request.return_value = response(body={"done": False})
    sleeps = []
    uploader = APIUploader(
        DistributionSettings(),
        account,
        session=session,
        token_provider=lambda _: "t",
        sleep=sleeps.append,
        poll_interval=2,
        poll_max_attempts=3,
    )

    with pytest.raises(UploadError) as exc:
        uploader.wait_for_release(OPERATION)

    assert session.request.call_count == 3
    assert sleeps == [2, 2]
    assert "3 checks" in exc.value.context


def test_http_error_carries_api_message(account, request_) -> None:
    session = MagicMock()
    session.request.return_value = response(
        status=403, body={"error": {"code": 403, "message": "The caller does not have permission"}}
    )

    with pytest.raises(UploadError) as exc:
        make_uploader(account, session).upload_binary(request_, "1234567890")

    assert exc.value.message == "Upload failed: HTTP 403"
    assert exc.value.context == "The caller does not have permission"


def test_network_error(account) -> None:
    session = MagicMock()
    session.request.side_effect = requests.ConnectionError("connection reset")

    with pytest.raises(UploadError) as exc:
        make_uploader(account, session).distribute(RELEASE, ["qa"], [])

    assert exc.value.message == "Distribution failed: network error"


def test_token_fetched_once(account) -> None:
    session = MagicMock()
    session.request.return_value = response(body={})
    tokens = []

    def provider(acc):
        tokens.append(acc.client_email)
        return "t"

    uploader = APIUploader(DistributionSettings(), account, session=session, token_provider=provider)
    uploader.update_release_notes(RELEASE, "a")
    uploader.distribute(RELEASE, ["qa"], [])

    assert tokens == [SERVICE_ACCOUNT_INFO["client_email"]]
