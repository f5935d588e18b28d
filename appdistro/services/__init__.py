"""
appdistro Services Layer

Credential loading, build, upload and secret sync operations.
"""

from .credential_service import CredentialService
from .artifact_service import ArtifactService
from .cli_uploader import CLIUploader
from .distribution_service import DistributionOverrides, DistributionService
from .release_notes import resolve_release_notes

__all__ = [
    "CredentialService",
    "ArtifactService",
    "CLIUploader",
    "DistributionOverrides",
    "DistributionService",
    "resolve_release_notes",
]
