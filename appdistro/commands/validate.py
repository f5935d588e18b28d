"""appdistro - Validate command"""

import click

from appdistro.base import ConfigCommand
from appdistro.core import validate_config
from appdistro.exceptions import CredentialError
from appdistro.utils import EnvironmentValidator


class ValidateCommand(ConfigCommand):
    """Check appdistro.yml and the service account credential."""

    def __init__(
        self,
        config_path: str = None,
        credentials_path: str = None,
        json_output: bool = False,
    ):
        super().__init__(
            config_path=config_path,
            credentials_path=credentials_path,
            json_output=json_output,
        )

    def execute(self) -> None:
        """Execute validate command."""
        config = self.load_config()
        self.show_header(
            title="Validate",
            project=config.project_name,
            details={"Config": config.config_path},
        )

        result = validate_config(config)

        credential = None
        try:
            credential = self.ensure_credential_service().describe()
        except CredentialError as e:
            result.add_error(e.format_message())

        if self.json_output:
            self.output_json(
                {
                    "valid": result.is_valid,
                    "errors": result.errors,
                    "warnings": result.warnings,
                    "credential": credential,
                },
                exit_code=0 if result.is_valid else 1,
            )
            return

        if credential:
            self.print_dim(
                f"Service account: {credential['client_email']} ({credential['source']})"
            )

        EnvironmentValidator.print_validation_errors(result, console=self.console)

        if result.has_errors:
            raise SystemExit(1)

        self.print_success("Configuration is valid")


@click.command()
@click.option("-c", "--config", "config_path", help="Path to appdistro.yml")
@click.option(
    "--credentials", type=click.Path(dir_okay=False), help="Service account key file"
)
@click.option("--json", "json_output", is_flag=True, help="Output in JSON format")
def validate(config_path, credentials, json_output):
    """
    Validate configuration and credentials

    Checks app IDs, artifact paths, testers and the service account key.
    """
    cmd = ValidateCommand(
        config_path=config_path, credentials_path=credentials, json_output=json_output
    )
    cmd.run()
