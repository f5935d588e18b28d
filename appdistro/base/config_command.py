"""
Config Command Base Class

Base class for commands that operate on a loaded appdistro.yml.
"""

from pathlib import Path
from typing import Optional

from .base_command import BaseCommand
from appdistro.core import AppDistroConfig, ConfigLoader
from appdistro.services import CredentialService
from appdistro.utils import absolute_path


class ConfigCommand(BaseCommand):
    """
    Base class for config-driven commands.

    Provides:
    - Config discovery and loading
    - Project root set to the config directory
    - Lazy credential service
    """

    def __init__(
        self,
        config_path: Optional[str] = None,
        credentials_path: Optional[str] = None,
        verbose: bool = False,
        json_output: bool = False,
    ):
        super().__init__(verbose=verbose, json_output=json_output)
        self.config_path = Path(config_path) if config_path else None
        self.credentials_path = absolute_path(credentials_path)
        self.config: Optional[AppDistroConfig] = None
        self.credential_service: Optional[CredentialService] = None

    def load_config(self) -> AppDistroConfig:
        """
        Load configuration and point the project root at it.

        Raises:
            ConfigurationError: If the config is missing or invalid
        """
        if self.config is None:
            self.config = ConfigLoader().load(self.config_path)
            self.project_root = self.config.root_dir
        return self.config

    def ensure_credential_service(self) -> CredentialService:
        """
        Ensure CredentialService is initialized.

        Returns:
            CredentialService instance
        """
        if self.credential_service is None:
            config = self.load_config()
            self.credential_service = CredentialService(
                config.credentials, config.root_dir, self.credentials_path
            )
        return self.credential_service
