"""
GitHub Secret Sync

Pushes the secrets the CI workflow consumes to a GitHub repository
(or one of its environments) through the gh CLI.
"""

import subprocess
from typing import Dict, Optional, Tuple

from rich.console import Console

from appdistro.constants import (
    APP_ID_ENV_VARS,
    ENV_GROUPS,
    ENV_SERVICE_ACCOUNT,
    GH_COMMAND_TIMEOUT,
)
from appdistro.core.config_loader import AppDistroConfig

console = Console()


def collect_secrets(config: AppDistroConfig, service_account_json: str) -> Dict[str, str]:
    """
    Build the secret map consumed by the distribution workflow.

    Args:
        config: Loaded configuration (app IDs and groups)
        service_account_json: Raw key JSON

    Returns:
        Secret name -> value (values may be empty and are skipped on sync)
    """
    secrets = {ENV_SERVICE_ACCOUNT: service_account_json}

    for target in config.targets.values():
        secrets[APP_ID_ENV_VARS[target.name]] = target.app_id

    secrets[ENV_GROUPS] = ",".join(config.distribution.groups)
    return secrets


def create_github_environment(repo: str, env_name: str) -> bool:
    """
    Create GitHub environment if it doesn't exist

    Args:
        repo: GitHub repository (owner/repo)
        env_name: Environment name

    Returns:
        True if the environment exists afterwards
    """
    result = subprocess.run(
        ["gh", "api", f"repos/{repo}/environments/{env_name}"],
        capture_output=True,
        text=True,
        check=False,
    )
    if result.returncode == 0:
        console.print(f"  [dim]Environment '{env_name}' already exists[/dim]")
        return True

    try:
        subprocess.run(
            ["gh", "api", f"repos/{repo}/environments/{env_name}", "-X", "PUT"],
            check=True,
            capture_output=True,
            text=True,
        )
    except subprocess.CalledProcessError as e:
        console.print(f"  [red]✗[/red] Failed to create environment: {e.stderr}")
        return False

    console.print(f"  [green]✓[/green] Created environment: {env_name}")
    return True


def sync_secrets_to_github(
    repo: str, secrets: Dict[str, str], env_name: Optional[str] = None
) -> Tuple[int, int, int]:
    """
    Sync secrets to a GitHub repository or environment

    Args:
        repo: GitHub repository (owner/repo)
        secrets: Secrets to sync
        env_name: Environment name (repository secrets if None)

    Returns:
        (success_count, fail_count, skip_count)
    """
    target = f"{repo} ({env_name})" if env_name else repo
    console.print(f"[dim]Setting secrets for {target}...[/dim]")

    success_count = 0
    fail_count = 0
    skip_count = 0

    for key, value in secrets.items():
        if not value:
            console.print(
                f"  [color(208)]⊘[/color(208)] [dim]{key} (empty, skipped)[/dim]"
            )
            skip_count += 1
            continue

        cmd = ["gh", "secret", "set", key, "-R", repo]
        if env_name:
            cmd += ["-e", env_name]

        try:
            # Value goes through stdin so it never shows up in the process list
            subprocess.run(
                cmd,
                input=value,
                check=True,
                capture_output=True,
                text=True,
                timeout=GH_COMMAND_TIMEOUT,
            )
            console.print(f"  [green]✓[/green] {key}")
            success_count += 1
        except subprocess.TimeoutExpired:
            console.print(f"  [red]✗[/red] {key}: timeout ({GH_COMMAND_TIMEOUT}s)")
            fail_count += 1
        except subprocess.CalledProcessError as e:
            error_msg = e.stderr or e.stdout or "unknown error"
            console.print(f"  [red]✗[/red] {key}: {error_msg.strip()[:80]}")
            fail_count += 1

    return (success_count, fail_count, skip_count)
