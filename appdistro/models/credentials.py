"""
Credential Models

Dataclass model for a parsed service account key.
"""

from dataclasses import dataclass, field
from typing import Any, Dict


@dataclass
class ServiceAccount:
    """Service account key used for non-interactive API calls."""

    project_id: str
    client_email: str
    private_key: str
    private_key_id: str = ""
    source: str = ""
    info: Dict[str, Any] = field(default_factory=dict, repr=False)

    REQUIRED_FIELDS = ("project_id", "client_email", "private_key")

    @classmethod
    def from_dict(cls, data: Dict[str, Any], source: str = "") -> "ServiceAccount":
        """
        Create from a parsed JSON key.

        Args:
            data: Decoded service account JSON
            source: Human-readable origin (env var or file path)

        Raises:
            ValueError: If the key is not a service account key or misses fields
        """
        if not isinstance(data, dict):
            raise ValueError("Credential must be a JSON object")

        key_type = data.get("type")
        if key_type != "service_account":
            raise ValueError(
                f"Credential type is '{key_type}', expected 'service_account'"
            )

        missing = [name for name in cls.REQUIRED_FIELDS if not data.get(name)]
        if missing:
            raise ValueError(f"Credential is missing fields: {', '.join(missing)}")

        return cls(
            project_id=data["project_id"],
            client_email=data["client_email"],
            private_key=data["private_key"],
            private_key_id=data.get("private_key_id", ""),
            source=source,
            info=dict(data),
        )

    def __repr__(self) -> str:
        return f"ServiceAccount(email={self.client_email}, project={self.project_id})"
