"""
Logging system for shipit
Provides real-time logging to files with clean console output
"""

import re
import subprocess
from datetime import datetime
from pathlib import Path
from typing import List, Optional, TextIO

from rich.console import Console
from rich.live import Live
from rich.padding import Padding
from rich.spinner import Spinner
from rich.text import Text

from shipit.utils import get_log_root

console = Console()
err_console = Console(stderr=True)

ANSI_ESCAPE = re.compile(r"\x1B(?:[@-Z\\-_]|\[[0-?]*[ -/]*[@-~])")


class DeployLogger:
    """
    Manages logging for deployment operations
    - Writes all output to log files in real-time
    - Shows clean progress UI in console (unless verbose)
    - Captures errors with context
    """

    def __init__(
        self,
        project_name: str,
        operation: str,
        verbose: bool = False,
        log_dir: Optional[Path] = None,
    ):
        """
        Initialize logger

        Args:
            project_name: Name of the project being deployed
            operation: Operation name (e.g., 'deploy', 'init')
            verbose: If True, show all output in console
            log_dir: Root log directory (defaults to get_log_root())
        """
        self.project_name = project_name
        self.operation = operation
        self.verbose = verbose
        self.log_file: Optional[TextIO] = None
        self.log_path: Optional[Path] = None
        self.current_step = ""
        self.has_errors = False

        # Structure: {log_dir}/{project}/{date}/{time}_{operation}.log
        now = datetime.now()
        date_str = now.strftime("%Y-%m-%d")
        time_str = now.strftime("%H-%M-%S")

        root = log_dir if log_dir is not None else get_log_root()
        project_logs_dir = Path(root) / project_name / date_str
        project_logs_dir.mkdir(parents=True, exist_ok=True)

        self.log_path = project_logs_dir / f"{time_str}_{operation}.log"
        self.log_file = open(self.log_path, "w", buffering=1)

        self._write_log_header()

    def _write_log_header(self):
        """Write log file header"""
        header = f"""
{"=" * 80}
shipit Deployment Log
{"=" * 80}
Project: {self.project_name}
Operation: {self.operation}
Started: {datetime.now().isoformat()}
{"=" * 80}

"""
        self.log_file.write(header)
        self.log_file.flush()

    def log(self, message: str, level: str = "INFO"):
        """
        Log a message to file and optionally console

        Args:
            message: Message to log
            level: Log level (INFO, WARNING, ERROR, DEBUG)
        """
        timestamp = datetime.now().strftime("%H:%M:%S")
        log_line = f"[{timestamp}] [{level}] {message}\n"

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

        Always written to the log file; shown in console only if verbose.

        Args:
            output: Command output (single line or multiline)
            stream: Stream name (stdout, stderr)
        """
        if not output:
            return

        clean_output = ANSI_ESCAPE.sub("", output)

        if self.log_file:
            for line in clean_output.splitlines():
                self.log_file.write(f"  [{stream}] {line}\n")
            self.log_file.flush()

        if self.verbose:
            console.print(output)

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
{error}
"""
        if context:
            error_block += f"\nContext: {context}\n"

        error_block += f"{'!' * 80}\n\n"

        if self.log_file:
            self.log_file.write(error_block)
            self.log_file.flush()

        if not self.verbose:
            err_console.print()

        err_console.print(f"[bold red]✗ {error}[/bold red]")
        if context:
            err_console.print(f"  [color(208)]{context}[/color(208)]")

    def step(self, step_name: str):
        """
        Start a new step

        Args:
            step_name: Name of the step
        """
        if self.current_step and not self.verbose:
            console.print()

        self.current_step = step_name
        self.log(f"Step: {step_name}", "INFO")

        if not self.verbose:
            console.print(f"[color(214)]▶[/color(214)] [white]{step_name}[/white]")

    def success(self, message: str):
        """Log a success message"""
        self.log(message, "INFO")

        if not self.verbose:
            console.print(f"  [dim]✓ {message}[/dim]")

    def warning(self, message: str):
        """Log a warning message"""
        self.log(message, "WARNING")

        if not self.verbose:
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


def run_with_progress(
    logger: DeployLogger,
    command: List[str],
    description: str,
    cwd: Optional[Path] = None,
) -> tuple[int, str, str]:
    """
    Run a command with progress indicator

    Args:
        logger: DeployLogger instance
        command: Command and arguments
        description: Description for progress indicator
        cwd: Working directory

    Returns:
        Tuple of (return_code, stdout, stderr)

    Raises:
        FileNotFoundError: If the executable does not exist
    """
    logger.log_command(" ".join(command))

    if logger.verbose:
        # Verbose: stream stdout live, collect stderr after exit
        process = subprocess.Popen(
            command,
            cwd=cwd,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            bufsize=1,
        )

        stdout_lines = []
        stderr_lines = []

        if process.stdout:
            for line in process.stdout:
                line_stripped = line.rstrip()
                stdout_lines.append(line_stripped)
                logger.log_output(line_stripped, "stdout")

        process.wait()
        if process.stderr:
            stderr_content = process.stderr.read()
            if stderr_content:
                stderr_lines = stderr_content.splitlines()
                for line in stderr_lines:
                    logger.log_output(line, "stderr")

        return process.returncode, "\n".join(stdout_lines), "\n".join(stderr_lines)

    spinner = Spinner("dots", text=f"[cyan]{description}...[/cyan]")
    padded_spinner = Padding(spinner, (0, 0, 0, 2))

    with Live(
        padded_spinner,
        console=console,
        refresh_per_second=10,
    ) as live:
        result = subprocess.run(command, cwd=cwd, capture_output=True, text=True)

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
