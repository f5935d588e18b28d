"""appdistro - Doctor command"""

import shlex

import click
from rich.table import Table

from appdistro.base import ConfigCommand
from appdistro.constants import BACKEND_CLI, FIREBASE_DEBUG_LOG, REQUIRED_TOOLS
from appdistro.core import validate_app_id
from appdistro.exceptions import AppDistroError
from appdistro.logger import find_latest_log
from appdistro.services import ArtifactService
from appdistro.utils import CommandExecutor


class DoctorCommand(ConfigCommand):
    """Troubleshooting checks for tools, credentials, app IDs and artifacts."""

    def __init__(self, config_path: str = None, credentials_path: str = None):
        super().__init__(config_path=config_path, credentials_path=credentials_path)
        self.table = Table(
            title="Distribution Health Report", title_justify="left", padding=(0, 1)
        )
        self.table.add_column("Check", style="cyan", no_wrap=True)
        self.table.add_column("Status")
        self.table.add_column("Details", style="dim")
        self.problems = 0

    def _ok(self, check: str, status: str, details: str = "") -> None:
        self.table.add_row(f"✅ {check}", f"[green]{status}[/green]", details)

    def _fail(self, check: str, status: str, details: str = "") -> None:
        self.problems += 1
        self.table.add_row(f"❌ {check}", f"[red]{status}[/red]", details)

    def _pending(self, check: str, status: str, details: str = "") -> None:
        self.table.add_row(f"⏳ {check}", f"[yellow]{status}[/yellow]", details)

    def check_tools(self) -> None:
        """Check required tools installation."""
        tools = list(REQUIRED_TOOLS)
        if self.config:
            if self.config.distribution.backend == BACKEND_CLI:
                command_tool = shlex.split(self.config.distribution.command)[0]
                if command_tool not in tools:
                    tools.append(command_tool)
            for target in self.config.targets.values():
                if target.build_command:
                    build_tool = shlex.split(target.build_command)[0]
                    if build_tool not in tools and not build_tool.startswith("./"):
                        tools.append(build_tool)

        for tool in tools:
            if CommandExecutor.is_installed(tool):
                self._ok(tool, "Installed")
            else:
                self._fail(tool, "Missing", f"Install {tool} and add it to PATH")

    def check_github_auth(self) -> None:
        """Check gh authentication (needed for secrets:sync only)."""
        result = CommandExecutor.run_command(["gh", "auth", "status"], timeout=15)
        if result.is_success:
            self._ok("GitHub CLI", "Authenticated")
        else:
            self._pending("GitHub CLI", "Not authenticated", "Run: gh auth login")

    def check_configuration(self) -> bool:
        """Check the config loads. Returns False if it does not."""
        try:
            config = self.load_config()
        except AppDistroError as e:
            self._fail("Config", "Invalid", e.message)
            return False
        self._ok("Config", "Loaded", str(config.config_path))
        return True

    def check_credentials(self) -> None:
        """Check the service account key can be loaded."""
        try:
            details = self.ensure_credential_service().describe()
        except AppDistroError as e:
            self._fail("Credentials", "Unavailable", e.message)
            return
        self._ok("Credentials", "Loaded", details["client_email"])

    def check_targets(self) -> None:
        """Check app IDs and artifacts of every target."""
        artifact_service = ArtifactService(self.config.root_dir)

        for target in self.config.targets.values():
            result = validate_app_id(target.app_id, target.platform)
            if result.has_errors:
                self._fail(f"{target.name} app ID", "Invalid", result.errors[0])
            else:
                self._ok(f"{target.name} app ID", "Valid", target.app_id)

            try:
                artifact = artifact_service.resolve(target)
            except AppDistroError as e:
                if target.build_command:
                    self._pending(
                        f"{target.name} artifact", "Not built", f"Run: appdistro build -p {target.name}"
                    )
                else:
                    self._fail(f"{target.name} artifact", "Missing", e.message)
                continue

            matches = artifact_service.count_matches(target)
            details = artifact.name
            if matches > 1:
                details += f" (newest of {matches})"
            self._ok(f"{target.name} artifact", "Found", details)

    def check_logs(self) -> None:
        """Point at logs worth reading."""
        latest = find_latest_log(self.config.root_dir)
        if latest:
            self._ok("Last log", "Available", str(latest))

        debug_log = self.config.root_dir / FIREBASE_DEBUG_LOG
        if debug_log.exists():
            self._pending("Debug log", "Present", str(debug_log))

    def execute(self) -> None:
        """Execute doctor command."""
        self.show_header(
            title="Diagnostics",
            subtitle="Checking tools, credentials, app IDs and artifacts",
        )

        config_ok = self.check_configuration()
        self.check_tools()
        self.check_github_auth()
        if config_ok:
            self.check_credentials()
            self.check_targets()
            self.check_logs()

        self.console.print(self.table)
        self.console.print()

        if self.problems:
            self.print_error(f"{self.problems} problem(s) found")
            raise SystemExit(1)
        self.print_success("Diagnostics complete! No problems found.")


@click.command()
@click.option("-c", "--config", "config_path", help="Path to appdistro.yml")
@click.option(
    "--credentials", type=click.Path(dir_okay=False), help="Service account key file"
)
def doctor(config_path, credentials):
    """
    Health check & diagnostics

    Checks:
    - Required tools installation
    - Service account credential
    - App ID format and platform
    - Artifact paths
    - Log files to inspect
    """
    cmd = DoctorCommand(config_path=config_path, credentials_path=credentials)
    cmd.run()
