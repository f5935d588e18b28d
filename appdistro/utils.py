"""
CLI Utilities

Core utility functions and classes for appdistro.
"""

import os
import shutil
import subprocess
from pathlib import Path
from typing import Optional, Dict, List
from rich.console import Console

from appdistro.constants import SENSITIVE_KEYWORDS
from appdistro.models.results import ExecutionResult, ValidationResult


class EnvironmentValidator:
    """Console reporting for validation results."""

    @staticmethod
    def print_validation_errors(
        result: ValidationResult, console: Optional[Console] = None
    ) -> None:
        """
        Print validation errors to console.

        Args:
            result: ValidationResult with errors
            console: Rich console (creates new if not provided)
        """
        if console is None:
            console = Console()

        if result.has_errors:
            console.print("[red]✗ Validation failed:[/red]")
            for error in result.errors:
                console.print(f"  • {error}")

        if result.has_warnings:
            console.print("[yellow]⚠ Warnings:[/yellow]")
            for warning in result.warnings:
                console.print(f"  • {warning}")


class CommandExecutor:
    """Executes commands with error handling."""

    @staticmethod
    def run_command(
        cmd: List[str],
        cwd: Optional[Path] = None,
        env: Optional[Dict[str, str]] = None,
        timeout: Optional[int] = None,
    ) -> ExecutionResult:
        """
        Run a command and capture its output.

        Args:
            cmd: Command argument list
            cwd: Working directory
            env: Extra environment variables
            timeout: Seconds before the command is killed

        Returns:
            ExecutionResult (returncode 127 if the executable is missing)
        """
        display = subprocess.list2cmdline(cmd)
        try:
            result = subprocess.run(
                cmd,
                cwd=cwd,
                env={**os.environ, **(env or {})},
                capture_output=True,
                text=True,
                timeout=timeout,
            )
        except FileNotFoundError:
            return ExecutionResult(
                returncode=127, stderr=f"{cmd[0]}: command not found", command=display
            )
        except subprocess.TimeoutExpired:
            return ExecutionResult(
                returncode=124, stderr=f"timeout ({timeout}s)", command=display
            )

        return ExecutionResult(
            returncode=result.returncode,
            stdout=result.stdout or "",
            stderr=result.stderr or "",
            command=display,
        )

    @staticmethod
    def is_installed(tool_name: str) -> bool:
        """Check if a tool is on PATH."""
        return shutil.which(tool_name) is not None


def mask_secret(value: str, show_chars: int = 4) -> str:
    """
    Mask secret value for safe display.

    Args:
        value: Secret value to mask
        show_chars: Number of characters to show at end

    Returns:
        Masked string (e.g., "***abcd")
    """
    if not value or len(value) <= show_chars:
        return "***"

    return f"***{value[-show_chars:]}"


def is_sensitive_key(key: str) -> bool:
    """Check if a key name suggests a secret value."""
    return any(keyword in key.upper() for keyword in SENSITIVE_KEYWORDS)


def tail(text: str, lines: int = 10) -> str:
    """Last few non-empty lines of command output."""
    kept = [line for line in (text or "").splitlines() if line.strip()]
    return "\n".join(kept[-lines:])


def get_last_commit_message(cwd: Path) -> Optional[str]:
    """Message of the HEAD commit, or None outside a git checkout."""
    result = CommandExecutor.run_command(
        ["git", "log", "-1", "--pretty=%B"], cwd=cwd, timeout=10
    )
    if result.is_failure:
        return None
    message = result.stdout.strip()
    return message or None


def absolute_path(value: Optional[str]) -> Optional[str]:
    """
    Anchor a path given on the command line to the current directory.

    Config values resolve against the config root; CLI values must not.
    """
    if not value:
        return value
    return str(Path(os.path.expanduser(value)).resolve())
