"""appdistro - Secret commands (GitHub Actions secrets)"""

import subprocess

import click
from rich.table import Table

from appdistro.base import ConfigCommand
from appdistro.exceptions import ConfigurationError
from appdistro.services.github_secrets import (
    collect_secrets,
    create_github_environment,
    sync_secrets_to_github,
)
from appdistro.utils import is_sensitive_key, mask_secret


class SecretsSyncCommand(ConfigCommand):
    """Push the distribution secrets to GitHub."""

    def __init__(
        self,
        repo: str = None,
        environment: str = None,
        yes: bool = False,
        dry_run: bool = False,
        config_path: str = None,
        credentials_path: str = None,
    ):
        super().__init__(config_path=config_path, credentials_path=credentials_path)
        self.repo = repo
        self.environment = environment
        self.yes = yes
        self.dry_run = dry_run

    def execute(self) -> None:
        """Execute secrets:sync command."""
        config = self.load_config()
        repo = self.repo or config.github_repo
        if not repo:
            raise ConfigurationError(
                "No GitHub repository given",
                context="Pass --repo owner/repo or set github.repo in appdistro.yml",
            )

        self.show_header(
            title="Sync Secrets",
            project=config.project_name,
            details={"Repository": repo, "Environment": self.environment or "-"},
        )

        credential_service = self.ensure_credential_service()
        secrets = collect_secrets(config, credential_service.raw_json())

        table = Table(padding=(0, 1))
        table.add_column("Secret", style="cyan")
        table.add_column("Value", style="dim")
        for key, value in secrets.items():
            shown = mask_secret(value) if is_sensitive_key(key) else value
            table.add_row(key, shown or "[color(208)](empty)[/color(208)]")
        self.console.print(table)
        self.console.print()

        if self.dry_run:
            self.print_dim("Dry run, nothing was pushed")
            return

        if not self.yes and not self.confirm(f"Push {len(secrets)} secret(s) to {repo}?"):
            self.print_warning("Cancelled")
            return

        try:
            subprocess.run(["gh", "--version"], check=True, capture_output=True)
        except (FileNotFoundError, subprocess.CalledProcessError):
            self.exit_with_error("gh CLI not found! Install: https://cli.github.com")

        if self.environment and not create_github_environment(repo, self.environment):
            raise SystemExit(1)

        ok, failed, skipped = sync_secrets_to_github(repo, secrets, self.environment)

        self.console.print()
        if failed:
            self.print_error(f"{failed} secret(s) failed, {ok} synced, {skipped} skipped")
            raise SystemExit(1)
        self.print_success(f"{ok} secret(s) synced, {skipped} skipped")


@click.command(name="secrets:sync")
@click.option("--repo", help="GitHub repository (owner/repo)")
@click.option("-e", "--env", "environment", help="GitHub environment name")
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation")
@click.option("--dry-run", is_flag=True, help="Show what would be pushed")
@click.option(
    "--credentials", type=click.Path(dir_okay=False), help="Service account key file"
)
@click.option("-c", "--config", "config_path", help="Path to appdistro.yml")
def secrets_sync(repo, environment, yes, dry_run, credentials, config_path):
    """
    Sync distribution secrets to GitHub Actions

    Sets FIREBASE_SERVICE_ACCOUNT, the app IDs and FIREBASE_GROUPS
    on the repository (or one of its environments).

    \b
    Examples:
      appdistro secrets:sync --repo acme/mobile
      appdistro secrets:sync -e production --yes
    """
    cmd = SecretsSyncCommand(
        repo=repo,
        environment=environment,
        yes=yes,
        dry_run=dry_run,
        config_path=config_path,
        credentials_path=credentials,
    )
    cmd.run()
