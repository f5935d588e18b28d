"""
API Uploader

Distributes an artifact through the App Distribution REST API:
upload binary, wait for the release operation, set notes, distribute.
"""

import time
from typing import Callable, Dict, List, Optional, Tuple

import requests
import google.auth.exceptions
import google.auth.transport.requests
from google.oauth2 import service_account

from appdistro.constants import (
    API_BASE_URL,
    API_REQUEST_TIMEOUT,
    API_SCOPES,
    POLL_INTERVAL,
    POLL_MAX_ATTEMPTS,
    UPLOAD_BASE_URL,
)
from appdistro.core.validator import require_app_id
from appdistro.exceptions import CredentialError, UploadError
from appdistro.logger import DistributionLogger
from appdistro.models import (
    DistributionRequest,
    DistributionResult,
    DistributionSettings,
    ResultStatus,
    ServiceAccount,
)


def fetch_access_token(account: ServiceAccount) -> str:
    """
    Exchange a service account key for an OAuth access token.

    Raises:
        CredentialError: If the key is rejected
    """
    try:
        credentials = service_account.Credentials.from_service_account_info(
            account.info, scopes=API_SCOPES
        )
        credentials.refresh(google.auth.transport.requests.Request())
    except (ValueError, google.auth.exceptions.GoogleAuthError) as e:
        raise CredentialError(
            f"Could not authenticate as {account.client_email}",
            context=str(e),
        )
    return credentials.token


class APIUploader:
    """Uploader backend talking to the REST API with requests."""

    def __init__(
        self,
        settings: DistributionSettings,
        account: ServiceAccount,
        session: Optional[requests.Session] = None,
        token_provider: Callable[[ServiceAccount], str] = fetch_access_token,
        sleep: Callable[[float], None] = time.sleep,
        poll_interval: float = POLL_INTERVAL,
        poll_max_attempts: int = POLL_MAX_ATTEMPTS,
    ):
        self.settings = settings
        self.account = account
        self.session = session or requests.Session()
        self.token_provider = token_provider
        self.sleep = sleep
        self.poll_interval = poll_interval
        self.poll_max_attempts = poll_max_attempts
        self._token: Optional[str] = None

    def _headers(self, extra: Optional[Dict[str, str]] = None) -> Dict[str, str]:
        if self._token is None:
            self._token = self.token_provider(self.account)
        headers = {"Authorization": f"Bearer {self._token}"}
        headers.update(extra or {})
        return headers

    def _request(self, method: str, url: str, what: str, **kwargs) -> dict:
        """Send a request and decode the JSON body, mapping failures to UploadError."""
        kwargs.setdefault("timeout", API_REQUEST_TIMEOUT)
        try:
            response = self.session.request(method, url, **kwargs)
        except requests.RequestException as e:
            raise UploadError(f"{what} failed: network error", context=str(e))

        if response.status_code >= 400:
            raise UploadError(
                f"{what} failed: HTTP {response.status_code}",
                context=self._error_message(response),
            )

        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError:
            raise UploadError(f"{what} failed: response is not JSON")

    @staticmethod
    def _error_message(response: requests.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.text[:200]
        error = body.get("error") if isinstance(body, dict) else None
        if isinstance(error, dict):
            return error.get("message") or str(error)
        return str(body)[:200]

    def upload_binary(self, request: DistributionRequest, project_number: str) -> str:
        """
        Upload the artifact bytes.

        Returns:
            Name of the long-running operation tracking release processing
        """
        url = (
            f"{UPLOAD_BASE_URL}/v1/projects/{project_number}"
            f"/apps/{request.app_id}/releases:upload"
        )
        with open(request.artifact, "rb") as f:
            body = self._request(
                "POST",
                url,
                "Upload",
                data=f,
                headers=self._headers(
                    {
                        "X-Goog-Upload-Protocol": "raw",
                        "X-Goog-Upload-File-Name": request.artifact.name,
                        "Content-Type": "application/octet-stream",
                    }
                ),
                timeout=self.settings.timeout,
            )

        operation = body.get("name")
        if not operation:
            raise UploadError("Upload failed: no operation returned")
        return operation

    def wait_for_release(self, operation: str) -> Tuple[dict, str]:
        """
        Poll the upload operation until the release exists.

        Returns:
            (release resource, result string such as RELEASE_CREATED)

        Raises:
            UploadError: If the operation reports an error or never finishes
        """
        url = f"{API_BASE_URL}/v1/{operation}"
        for attempt in range(self.poll_max_attempts):
            body = self._request("GET", url, "Release status", headers=self._headers())

            if body.get("done"):
                if "error" in body:
                    error = body["error"] or {}
                    raise UploadError(
                        "Release processing failed",
                        context=error.get("message") or str(error),
                    )
                response = body.get("response") or {}
                release = response.get("release")
                if not release or not release.get("name"):
                    raise UploadError("Release processing finished without a release")
                return release, response.get("result", "")

            if attempt < self.poll_max_attempts - 1:
                self.sleep(self.poll_interval)

        raise UploadError(
            "Release processing did not finish",
            context=f"Gave up after {self.poll_max_attempts} checks on {operation}",
        )

    def update_release_notes(self, release_name: str, notes: str) -> None:
        """Set the release notes of a release (no-op for empty notes)."""
        if not notes:
            return
        self._request(
            "PATCH",
            f"{API_BASE_URL}/v1/{release_name}",
            "Release notes update",
            params={"updateMask": "release_notes.text"},
            json={"name": release_name, "releaseNotes": {"text": notes}},
            headers=self._headers(),
        )

    def distribute(
        self, release_name: str, groups: List[str], testers: List[str]
    ) -> None:
        """Hand the release to groups and testers (no-op when both are empty)."""
        if not groups and not testers:
            return
        self._request(
            "POST",
            f"{API_BASE_URL}/v1/{release_name}:distribute",
            "Distribution",
            json={"testerEmails": testers, "groupAliases": groups},
            headers=self._headers(),
        )

    def upload(
        self,
        request: DistributionRequest,
        logger: DistributionLogger,
    ) -> DistributionResult:
        """Run the full upload flow for one request."""
        project_number = require_app_id(request.app_id, request.platform)
        started = time.monotonic()

        logger.log(f"Uploading {request.artifact} to {request.app_id}")
        operation = self.upload_binary(request, project_number)
        logger.success(f"Uploaded {request.artifact.name}")

        release, outcome = self.wait_for_release(operation)
        release_name = release["name"]
        logger.success(
            f"Release {release.get('displayVersion', '?')} "
            f"({release.get('buildVersion', '?')}): {outcome or 'processed'}"
        )

        self.update_release_notes(release_name, request.release_notes)
        self.distribute(release_name, request.groups, request.testers)
        if request.groups or request.testers:
            logger.success(
                f"Distributed to {len(request.groups)} group(s), {len(request.testers)} tester(s)"
            )

        return DistributionResult(
            platform=request.platform.value,
            app_id=request.app_id,
            status=ResultStatus.SUCCESS,
            artifact=request.artifact.name,
            message=outcome or "Uploaded via API",
            release_name=release_name,
            console_uri=release.get("firebaseConsoleUri"),
            testing_uri=release.get("testingUri"),
            duration_seconds=time.monotonic() - started,
        )
