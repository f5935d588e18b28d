"""
Logging system for appdistro
Provides real-time logging to files with clean console output
"""

import os
import re
import signal
import subprocess
import threading
from pathlib import Path
from datetime import datetime
from typing import Dict, Optional, TextIO
from rich.console import Console
from rich.live import Live
from rich.spinner import Spinner
from rich.text import Text
from rich.padding import Padding

from appdistro.constants import LOG_DATE_FORMAT, LOG_TIME_FORMAT, LOGS_DIR, STATE_DIR

console = Console()

ANSI_ESCAPE = re.compile(r"\x1B(?:[@-Z\\-_]|\[[0-?]*[ -/]*[@-~])")


class DistributionLogger:
    """
    Manages logging for build and distribution operations
    - Writes all output to log files in real-time
    - Shows clean progress UI in console (unless verbose)
    - Captures errors with context
    """

    def __init__(
        self,
        root_dir: Path,
        scope: str,
        operation: str,
        verbose: bool = False,
        quiet: bool = False,
    ):
        """
        Initialize logger

        Args:
            root_dir: Project root (directory holding appdistro.yml)
            scope: Log scope (project name or platform)
            operation: Operation name (e.g., 'build', 'distribute')
            verbose: If True, show all output in console
            quiet: If True, write to the log file only (JSON output mode)
        """
        self.scope = scope
        self.operation = operation
        self.verbose = verbose and not quiet
        self.quiet = quiet
        self.log_file: Optional[TextIO] = None
        self.log_path: Optional[Path] = None
        self.current_step = ""
        self.has_errors = False
        self._redactions: Dict[str, str] = {}

        # Structure: .appdistro/logs/{scope}/{date}/{time}_{operation}.log
        now = datetime.now()
        logs_dir = (
            Path(root_dir) / STATE_DIR / LOGS_DIR / scope / now.strftime(LOG_DATE_FORMAT)
        )
        logs_dir.mkdir(parents=True, exist_ok=True)

        self.log_path = logs_dir / f"{now.strftime(LOG_TIME_FORMAT)}_{operation}.log"

        # Line buffered for real-time tailing
        self.log_file = open(self.log_path, "w", buffering=1)

        self._write_log_header()

    def _write_log_header(self):
        """Write log file header"""
        header = f"""
{"=" * 80}
appdistro Log
{"=" * 80}
Scope: {self.scope}
Operation: {self.operation}
Started: {datetime.now().isoformat()}
{"=" * 80}

"""
        self.log_file.write(header)
        self.log_file.flush()

    def redact(self, secret: str, label: str = "***") -> None:
        """Never write this value to the log file."""
        if secret:
            self._redactions[secret] = label

    def _clean(self, text: str) -> str:
        text = ANSI_ESCAPE.sub("", text)
        for secret, label in self._redactions.items():
            text = text.replace(secret, label)
        return text

    def log(self, message: str, level: str = "INFO"):
        """
        Log a message to file and optionally console

        Args:
            message: Message to log
            level: Log level (INFO, WARNING, ERROR, DEBUG)
        """
        timestamp = datetime.now().strftime("%H:%M:%S")
        log_line = f"[{timestamp}] [{level}] {self._clean(message)}\n"

        if self.log_file:
            self.log_file.write(log_line)
            self.log_file.flush()

        if self.verbose:
            if level == "ERROR":
                console.print(f"[red]{message}[/red]")
            elif level == "WARNING":
                console.print(f"[yellow]{message}[/yellow]")
            elif level == "DEBUG":
                console.print(f"[dim]{message}[/dim]")
            else:
                console.print(message)

    def log_command(self, command: str):
        """Log a command being executed"""
        self.log(f"Executing: {command}", "DEBUG")

    def log_output(self, output: str, stream: str = "stdout"):
        """
        Log command output

        Always written to the log file, shown in console only if verbose.

        Args:
            output: Command output (single line or multiline)
            stream: Stream name (stdout, stderr)
        """
        if not output:
            return

        clean_output = self._clean(output)

        if self.log_file:
            try:
                for line in clean_output.splitlines() or [clean_output]:
                    self.log_file.write(f"  [{stream}] {line}\n")
                self.log_file.flush()
            except (BlockingIOError, OSError):
                # Terminal responsiveness beats a complete log
                pass

        if self.verbose:
            console.print(output, markup=False)

    def log_error(self, error: str, context: Optional[str] = None):
        """
        Log an error with context

        Args:
            error: Error message
            context: Additional context (e.g., command that failed)
        """
        self.has_errors = True

        error_block = f"""
{"!" * 80}
ERROR OCCURRED
{"!" * 80}
{self._clean(error)}
"""
        if context:
            error_block += f"\nContext: {self._clean(context)}\n"

        error_block += f"{'!' * 80}\n\n"

        if self.log_file:
            self.log_file.write(error_block)
            self.log_file.flush()

        if self.quiet:
            return

        if not self.verbose:
            console.print()

        console.print(f"[bold red]✗ {error}[/bold red]")
        if context:
            console.print(f"  [color(208)]{context}[/color(208)]")

    def step(self, step_name: str):
        """
        Start a new step

        Args:
            step_name: Name of the step
        """
        if self.current_step and not self.verbose and not self.quiet:
            console.print()

        self.current_step = step_name
        self.log(f"Step: {step_name}", "INFO")

        if not self.verbose and not self.quiet:
            console.print(f"[color(214)]▶[/color(214)] [white]{step_name}[/white]")

    def success(self, message: str):
        """Log a success message"""
        self.log(message, "INFO")

        if not self.verbose and not self.quiet:
            console.print(f"  [dim]✓ {message}[/dim]")

    def warning(self, message: str):
        """Log a warning message"""
        self.log(message, "WARNING")

        if not self.verbose and not self.quiet:
            console.print(f"  [yellow]⚠[/yellow] [dim]{message}[/dim]")

    def close(self):
        """Close log file"""
        if self.log_file:
            footer = f"""
{"=" * 80}
Completed: {datetime.now().isoformat()}
Status: {"FAILED" if self.has_errors else "SUCCESS"}
{"=" * 80}
"""
            self.log_file.write(footer)
            self.log_file.close()
            self.log_file = None

    def __enter__(self):
        """Context manager entry"""
        return self

    def __exit__(self, exc_type, exc_val, _exc_tb):
        """Context manager exit"""
        if exc_type is not None and exc_type != SystemExit:
            self.log_error(
                str(exc_val) if exc_val else "Operation failed",
                context=f"{exc_type.__name__}",
            )
        self.close()
        return False


def find_latest_log(root_dir: Path) -> Optional[Path]:
    """Return the most recently written log file under the project root."""
    logs_dir = Path(root_dir) / STATE_DIR / LOGS_DIR
    if not logs_dir.exists():
        return None

    logs = [path for path in logs_dir.rglob("*.log") if path.is_file()]
    if not logs:
        return None
    return max(logs, key=lambda path: path.stat().st_mtime)


def _kill_process_group(process: subprocess.Popen) -> None:
    """Kill a child started with start_new_session and everything it spawned."""
    try:
        os.killpg(process.pid, signal.SIGKILL)
    except ProcessLookupError:
        # Already exited
        return


def run_with_progress(
    logger: DistributionLogger,
    command,
    description: str,
    cwd: Optional[Path] = None,
    env: Optional[Dict[str, str]] = None,
    timeout: Optional[int] = None,
) -> tuple[int, str, str]:
    """
    Run a command with progress indicator

    Args:
        logger: DistributionLogger instance
        command: Command to run (shell string or argument list)
        description: Description for progress indicator
        cwd: Working directory
        env: Full environment for the child process
        timeout: Seconds before the command is killed

    Returns:
        Tuple of (return_code, stdout, stderr)

    Raises:
        subprocess.TimeoutExpired: If the command exceeds timeout
    """
    shell = isinstance(command, str)
    display = command if shell else subprocess.list2cmdline(command)
    logger.log_command(display)

    if logger.verbose:
        process = subprocess.Popen(
            command,
            shell=shell,
            cwd=cwd,
            env=env,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            bufsize=1,
            start_new_session=True,
        )

        # Output is read until EOF, so the deadline has to kill the child
        timed_out = threading.Event()

        def kill_on_timeout():
            timed_out.set()
            _kill_process_group(process)

        timer = threading.Timer(timeout, kill_on_timeout) if timeout else None
        if timer:
            timer.start()

        stdout_lines = []
        try:
            if process.stdout:
                for line in process.stdout:
                    line_stripped = line.rstrip()
                    stdout_lines.append(line_stripped)
                    logger.log_output(line_stripped, "stdout")
            process.wait()
        except KeyboardInterrupt:
            _kill_process_group(process)
            process.wait()
            raise
        finally:
            if timer:
                timer.cancel()

        output = "\n".join(stdout_lines)
        if timed_out.is_set():
            logger.log(f"Command killed after {timeout}s: {display}", "ERROR")
            raise subprocess.TimeoutExpired(command, timeout, output=output)
        return process.returncode, output, ""

    if logger.quiet:
        result = subprocess.run(
            command,
            shell=shell,
            cwd=cwd,
            env=env,
            capture_output=True,
            text=True,
            timeout=timeout,
        )
        logger.log_output(result.stdout, "stdout")
        logger.log_output(result.stderr, "stderr")
        return result.returncode, result.stdout, result.stderr

    # Non-verbose: show spinner, capture output
    spinner = Spinner("dots", text=f"[cyan]{description}...[/cyan]")
    padded_spinner = Padding(spinner, (0, 0, 0, 2))

    with Live(
        padded_spinner,
        console=console,
        refresh_per_second=10,
    ) as live:
        result = subprocess.run(
            command,
            shell=shell,
            cwd=cwd,
            env=env,
            capture_output=True,
            text=True,
            timeout=timeout,
        )

        if result.stdout:
            logger.log_output(result.stdout, "stdout")
        if result.stderr:
            logger.log_output(result.stderr, "stderr")

        if result.returncode == 0:
            checkmark = Text("  ✓ ", style="dim")
            checkmark.append(description, style="dim")
            live.update(checkmark)
        else:
            x_mark = Text("  ✗ ", style="red")
            x_mark.append(description, style="dim")
            live.update(x_mark)

    return result.returncode, result.stdout, result.stderr
