"""
Project initialization - writes appdistro.yml and protects credential files
"""

import click
from pathlib import Path

from appdistro.base import BaseCommand
from appdistro.constants import (
    CONFIG_FILENAME,
    DEFAULT_DISTRIBUTE_COMMAND,
    ENV_ANDROID_APP_ID,
    ENV_IOS_APP_ID,
    ENV_SERVICE_ACCOUNT,
    GITIGNORE_ENTRIES,
)

CONFIG_TEMPLATE = """\
project:
  name: {project_name}

credentials:
  # Service account key: JSON in ${env_var}, or a key file
  env: {env_var}
  # file: service-account.json

distribution:
  backend: cli                  # cli | api
  command: {command}
  groups: {groups}
  testers: []
  release_notes: ""

targets:
{targets}
"""

TARGET_TEMPLATE = """\
  {platform}:
    # app_id: 1:<project-number>:{platform}:<hex-id>  (defaults to ${app_id_env})
    artifact: {artifact}
    build: {build}
"""

TOOLCHAIN_DEFAULTS = {
    "flutter": {
        "android": ("build/app/outputs/flutter-apk/app-release.apk", "flutter build apk --release"),
        "ios": ("build/ios/ipa/*.ipa", "flutter build ipa --release"),
    },
    "native": {
        "android": (
            "app/build/outputs/apk/release/app-release.apk",
            "./gradlew assembleRelease",
        ),
        "ios": (
            "build/export/*.ipa",
            "xcodebuild -exportArchive -archivePath build/App.xcarchive "
            "-exportPath build/export -exportOptionsPlist ExportOptions.plist",
        ),
    },
}


def detect_toolchain(root: Path) -> str:
    """Guess the mobile toolchain from files in the project root."""
    if (root / "pubspec.yaml").exists():
        return "flutter"
    return "native"


def render_config(project_name: str, platforms: list, toolchain: str, groups: str) -> str:
    """Render the appdistro.yml scaffold."""
    app_id_envs = {"android": ENV_ANDROID_APP_ID, "ios": ENV_IOS_APP_ID}
    targets = ""
    for platform in platforms:
        artifact, build_cmd = TOOLCHAIN_DEFAULTS[toolchain][platform]
        targets += TARGET_TEMPLATE.format(
            platform=platform,
            app_id_env=app_id_envs[platform],
            artifact=artifact,
            build=build_cmd,
        )

    return CONFIG_TEMPLATE.format(
        project_name=project_name,
        env_var=ENV_SERVICE_ACCOUNT,
        command=DEFAULT_DISTRIBUTE_COMMAND,
        groups=groups or "[]",
        targets=targets.rstrip("\n"),
    )


def update_gitignore(root: Path) -> list:
    """Append missing credential patterns to .gitignore; returns what was added."""
    gitignore = root / ".gitignore"
    existing = gitignore.read_text().splitlines() if gitignore.exists() else []
    missing = [entry for entry in GITIGNORE_ENTRIES if entry not in existing]

    if missing:
        with open(gitignore, "a") as f:
            if existing and existing[-1].strip():
                f.write("\n")
            f.write("# appdistro\n")
            f.write("\n".join(missing) + "\n")

    return missing


class InitCommand(BaseCommand):
    """Scaffold appdistro.yml in the current directory."""

    def __init__(
        self,
        platforms: tuple,
        toolchain: str = None,
        groups: str = None,
        force: bool = False,
        directory: str = None,
    ):
        super().__init__()
        if directory:
            self.project_root = Path(directory).resolve()
        self.platforms = list(platforms) or ["android", "ios"]
        self.toolchain = toolchain
        self.groups = groups
        self.force = force

    def execute(self) -> None:
        """Execute init command."""
        config_path = self.project_root / CONFIG_FILENAME
        self.show_header(title="Initialize", details={"Directory": self.project_root})

        if config_path.exists() and not self.force:
            self.exit_with_error(
                f"{CONFIG_FILENAME} already exists (use --force to overwrite)"
            )

        toolchain = self.toolchain or detect_toolchain(self.project_root)
        content = render_config(
            self.project_root.name, self.platforms, toolchain, self.groups
        )
        config_path.write_text(content)
        self.print_success(f"Created {CONFIG_FILENAME} ({toolchain})")

        added = update_gitignore(self.project_root)
        if added:
            self.print_success(f"Added to .gitignore: {', '.join(added)}")

        self.console.print("\n[bold]Next steps:[/bold]")
        self.console.print(
            f"  [cyan]export {ENV_SERVICE_ACCOUNT}=\"$(cat service-account.json)\"[/cyan]"
        )
        for platform in self.platforms:
            env_name = ENV_ANDROID_APP_ID if platform == "android" else ENV_IOS_APP_ID
            self.console.print(f"  [cyan]export {env_name}=1:...:{platform}:...[/cyan]")
        self.console.print("  [cyan]appdistro validate[/cyan]")
        self.console.print("  [cyan]appdistro secrets:sync --repo owner/repo[/cyan]\n")


@click.command()
@click.option(
    "-p",
    "--platform",
    "platforms",
    multiple=True,
    type=click.Choice(["android", "ios"]),
    help="Platforms to configure (default: both)",
)
@click.option(
    "--toolchain",
    type=click.Choice(sorted(TOOLCHAIN_DEFAULTS)),
    help="Build toolchain (default: detected)",
)
@click.option("--groups", help="Default tester groups (comma-separated)")
@click.option("--force", is_flag=True, help="Overwrite an existing appdistro.yml")
@click.option(
    "-d",
    "--directory",
    type=click.Path(file_okay=False, exists=True),
    help="Project directory (default: current)",
)
def init(platforms, toolchain, groups, force, directory):
    """
    Create appdistro.yml

    \b
    Examples:
      appdistro init
      appdistro init -p android --groups qa-team
    """
    cmd = InitCommand(
        platforms, toolchain=toolchain, groups=groups, force=force, directory=directory
    )
    cmd.run()
