"""appdistro - Distribute command"""

import click

from appdistro.base import ConfigCommand
from appdistro.exceptions import ConfigurationError
from appdistro.services import DistributionOverrides, DistributionService
from appdistro.ui_components import results_table
from appdistro.utils import absolute_path


class DistributeCommand(ConfigCommand):
    """Build targets and upload their artifacts to testers."""

    def __init__(
        self,
        platforms: tuple,
        overrides: DistributionOverrides,
        backend: str = None,
        skip_build: bool = False,
        fail_fast: bool = False,
        config_path: str = None,
        credentials_path: str = None,
        verbose: bool = False,
        json_output: bool = False,
    ):
        super().__init__(
            config_path=config_path,
            credentials_path=credentials_path,
            verbose=verbose,
            json_output=json_output,
        )
        self.platforms = list(platforms)
        self.overrides = overrides
        self.backend = backend
        self.skip_build = skip_build
        self.fail_fast = fail_fast

    def execute(self) -> None:
        """Execute distribute command."""
        config = self.load_config()
        targets = config.select_targets(self.platforms)

        if (self.overrides.artifact or self.overrides.app_id) and len(targets) != 1:
            raise ConfigurationError(
                "--artifact and --app need exactly one target",
                context="Select it with: --platform android (or ios)",
            )

        backend = self.backend or config.distribution.backend
        self.show_header(
            title="Distribute",
            project=config.project_name,
            details={
                "Targets": ", ".join(target.name for target in targets),
                "Backend": backend,
            },
        )

        # Credentials are checked before any build starts
        credential_service = self.ensure_credential_service()
        account = credential_service.load()

        logger = self.init_logger(config.project_name, "distribute")
        logger.log(f"Using service account {account.client_email}")

        service = DistributionService(config, credential_service, logger, backend=backend)
        results = service.distribute(
            targets,
            overrides=self.overrides,
            skip_build=self.skip_build,
            fail_fast=self.fail_fast,
        )

        failed = [result for result in results if result.is_failure]

        if self.json_output:
            self.output_json(
                {"results": [result.to_dict() for result in results]},
                exit_code=1 if failed else 0,
            )
            return

        self.console.print()
        self.console.print(results_table(results))
        self.console.print()

        if failed:
            self.print_error(f"{len(failed)} of {len(results)} target(s) failed")
            self._logs_hint()
            raise SystemExit(1)

        self.print_success(f"{len(results)} target(s) distributed")


@click.command()
@click.option(
    "-p",
    "--platform",
    "platforms",
    multiple=True,
    help="Target platform (android, ios). Repeatable; default: all targets",
)
@click.option("--artifact", help="Upload this file instead of the configured artifact")
@click.option("--app", "app_id", help="Override the app ID of the target")
@click.option("--groups", help="Comma-separated tester groups")
@click.option("--testers", help="Comma-separated tester e-mails")
@click.option("--release-notes", help="Release notes text")
@click.option(
    "--release-notes-file",
    type=click.Path(exists=True, dir_okay=False),
    help="Read release notes from a file",
)
@click.option(
    "--credentials",
    type=click.Path(dir_okay=False),
    help="Service account key file",
)
@click.option(
    "--backend",
    type=click.Choice(["cli", "api"]),
    help="Upload through the distribution CLI or the REST API",
)
@click.option("--skip-build", is_flag=True, help="Upload existing artifacts only")
@click.option("--fail-fast", is_flag=True, help="Stop after the first failing target")
@click.option(
    "--no-ci-context", is_flag=True, help="Do not append CI ref/sha to release notes"
)
@click.option("-c", "--config", "config_path", help="Path to appdistro.yml")
@click.option("--verbose", "-v", is_flag=True, help="Show all command output")
@click.option("--json", "json_output", is_flag=True, help="Output in JSON format")
def distribute(
    platforms,
    artifact,
    app_id,
    groups,
    testers,
    release_notes,
    release_notes_file,
    credentials,
    backend,
    skip_build,
    fail_fast,
    no_ci_context,
    config_path,
    verbose,
    json_output,
):
    """
    Build and distribute artifacts to testers

    \b
    Examples:
      appdistro distribute                          # All targets
      appdistro distribute -p android --groups qa   # Android only, to 'qa'
      appdistro distribute -p ios --skip-build      # Upload existing .ipa
      appdistro distribute -p android --artifact app.apk --app 1:123:android:abc
    """
    if release_notes and release_notes_file:
        raise click.UsageError(
            "Use either --release-notes or --release-notes-file, not both"
        )

    overrides = DistributionOverrides(
        artifact=absolute_path(artifact),
        app_id=app_id,
        groups=groups,
        testers=testers,
        release_notes=release_notes,
        release_notes_file=absolute_path(release_notes_file),
        include_ci_context=not no_ci_context,
    )
    cmd = DistributeCommand(
        platforms,
        overrides,
        backend=backend,
        skip_build=skip_build,
        fail_fast=fail_fast,
        config_path=config_path,
        credentials_path=credentials,
        verbose=verbose,
        json_output=json_output,
    )
    cmd.run()
