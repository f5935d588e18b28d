"""
Credential Service

Loads the service account key from CI secrets or files and materializes
it as a short-lived key file for tools that only accept a path.
"""

import json
import os
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from appdistro.constants import ENV_GOOGLE_CREDENTIALS, SECRET_FILE_PERMISSIONS
from appdistro.exceptions import CredentialError
from appdistro.models import CredentialSettings, ServiceAccount
from appdistro.utils import mask_secret


class CredentialService:
    """
    Service account loading with a fixed lookup order.

    1. Explicit path (``--credentials``)
    2. Configured env var (JSON blob, or a path to a key file)
    3. ``credentials.file`` from appdistro.yml
    4. ``GOOGLE_APPLICATION_CREDENTIALS``
    """

    def __init__(
        self,
        settings: CredentialSettings,
        root_dir: Path,
        explicit_path: Optional[str] = None,
    ):
        self.settings = settings
        self.root_dir = Path(root_dir)
        self.explicit_path = explicit_path
        self._account: Optional[ServiceAccount] = None

    def _resolve_path(self, value: str) -> Path:
        path = Path(os.path.expanduser(value))
        if not path.is_absolute():
            path = self.root_dir / path
        return path

    def _load_file(self, value: str, source: str) -> ServiceAccount:
        path = self._resolve_path(value)
        if not path.is_file():
            raise CredentialError(
                f"Credential file not found: {path}",
                context=f"Referenced by {source}",
            )
        try:
            content = path.read_text()
        except OSError as e:
            raise CredentialError(f"Cannot read credential file {path}", context=str(e))
        return self.parse(content, source=str(path))

    @staticmethod
    def parse(content: str, source: str = "") -> ServiceAccount:
        """
        Parse a service account JSON blob.

        Raises:
            CredentialError: If the blob is not valid JSON or not a service account key
        """
        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            raise CredentialError(
                f"Credential from {source or 'input'} is not valid JSON",
                context=f"line {e.lineno}, column {e.colno}",
            )
        try:
            return ServiceAccount.from_dict(data, source=source)
        except ValueError as e:
            raise CredentialError(
                f"Invalid service account credential from {source or 'input'}",
                context=str(e),
            )

    def load(self, force_reload: bool = False) -> ServiceAccount:
        """
        Load the service account, cached after the first call.

        Raises:
            CredentialError: If no credential source is available or it is invalid
        """
        if self._account is not None and not force_reload:
            return self._account

        if self.explicit_path:
            self._account = self._load_file(self.explicit_path, "--credentials")
            return self._account

        env_value = os.environ.get(self.settings.env_var, "").strip()
        if env_value:
            if env_value.startswith("{"):
                self._account = self.parse(env_value, source=self.settings.env_var)
            else:
                self._account = self._load_file(env_value, self.settings.env_var)
            return self._account

        if self.settings.file:
            self._account = self._load_file(self.settings.file, "credentials.file")
            return self._account

        google_path = os.environ.get(ENV_GOOGLE_CREDENTIALS, "").strip()
        if google_path:
            self._account = self._load_file(google_path, ENV_GOOGLE_CREDENTIALS)
            return self._account

        raise CredentialError(
            "No service account credential found",
            context=(
                f"Set {self.settings.env_var} to the key JSON, add credentials.file "
                f"to appdistro.yml, or export {ENV_GOOGLE_CREDENTIALS}"
            ),
        )

    def raw_json(self) -> str:
        """Compact JSON of the loaded key, for secret sync."""
        return json.dumps(self.load().info, separators=(",", ":"))

    @contextmanager
    def materialize(self, account: Optional[ServiceAccount] = None) -> Iterator[Path]:
        """
        Write the key to a private temp file for the duration of the block.

        Yields:
            Path to a 0600 key file, removed on exit
        """
        account = account or self.load()
        fd, name = tempfile.mkstemp(prefix="appdistro-sa-", suffix=".json")
        path = Path(name)
        try:
            os.chmod(path, SECRET_FILE_PERMISSIONS)
            with os.fdopen(fd, "w") as f:
                json.dump(account.info, f)
            yield path
        finally:
            path.unlink(missing_ok=True)

    def describe(self) -> dict:
        """Masked summary of the loaded key, safe for display."""
        account = self.load()
        return {
            "client_email": account.client_email,
            "project_id": account.project_id,
            "private_key_id": mask_secret(account.private_key_id),
            "source": account.source,
        }
