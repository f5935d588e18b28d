"""appdistro - Build command"""

import click

from appdistro.base import ConfigCommand
from appdistro.services import ArtifactService


class BuildCommand(ConfigCommand):
    """Run target build commands without uploading."""

    def __init__(self, platforms: tuple, config_path: str = None, verbose: bool = False):
        super().__init__(config_path=config_path, verbose=verbose)
        self.platforms = list(platforms)

    def execute(self) -> None:
        """Execute build command."""
        config = self.load_config()
        targets = config.select_targets(self.platforms)

        self.show_header(
            title="Build",
            project=config.project_name,
            details={"Targets": ", ".join(target.name for target in targets)},
        )

        logger = self.init_logger(config.project_name, "build")
        artifact_service = ArtifactService(
            config.root_dir, build_timeout=config.distribution.build_timeout
        )

        for target in targets:
            logger.step(f"Building {target.name}")
            if artifact_service.build(target, logger):
                artifact = artifact_service.resolve(target)
                logger.success(f"Artifact: {artifact}")

        self.console.print()
        self.print_success("Build complete")


@click.command()
@click.option(
    "-p",
    "--platform",
    "platforms",
    multiple=True,
    help="Target platform (android, ios). Repeatable; default: all targets",
)
@click.option("-c", "--config", "config_path", help="Path to appdistro.yml")
@click.option("--verbose", "-v", is_flag=True, help="Show all command output")
def build(platforms, config_path, verbose):
    """
    Build artifacts without distributing

    \b
    Examples:
      appdistro build              # All targets
      appdistro build -p android   # Android only
    """
    cmd = BuildCommand(platforms, config_path=config_path, verbose=verbose)
    cmd.run()
