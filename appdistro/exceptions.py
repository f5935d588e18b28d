"""
appdistro Exception Hierarchy

Clean exception hierarchy for consistent error handling across the CLI.
"""

from typing import Optional


class AppDistroError(Exception):
    """Base exception for all appdistro errors."""

    def __init__(self, message: str, context: Optional[str] = None):
        self.message = message
        self.context = context
        super().__init__(self.format_message())

    def format_message(self) -> str:
        """Format error message with optional context."""
        if self.context:
            return f"{self.message}\nContext: {self.context}"
        return self.message


class ConfigurationError(AppDistroError):
    """Raised when configuration is invalid or missing."""

    pass


class ValidationError(AppDistroError):
    """Raised when validation fails."""

    pass


class CredentialError(AppDistroError):
    """Raised when the service account credential cannot be loaded."""

    pass


class BuildError(AppDistroError):
    """Raised when the build command of a target fails."""

    pass


class UploadError(AppDistroError):
    """Raised when uploading or distributing a release fails."""

    pass


class InvalidAppIdError(ValidationError):
    """Raised when an app ID does not match the expected format or platform."""

    def __init__(self, app_id: str, platform: str, reason: str):
        self.app_id = app_id
        self.platform = platform
        message = f"Invalid app ID for {platform}: '{app_id}'"
        super().__init__(message, reason)


class ArtifactNotFoundError(ValidationError):
    """Raised when the build artifact of a target cannot be found."""

    def __init__(self, platform: str, pattern: str):
        self.platform = platform
        self.pattern = pattern
        message = f"No {platform} artifact found at '{pattern}'"
        context = "Check the artifact path in appdistro.yml or run: appdistro build"
        super().__init__(message, context)
