"""
Base Command Class

Abstract base for shipit commands.
Provides common functionality and structure.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from rich.console import Console

from shipit.constants import EXIT_INTERRUPTED
from shipit.exceptions import ShipitError
from shipit.logger import DeployLogger
from shipit.ui_components import show_header


class BaseCommand(ABC):
    """
    Abstract base command class.

    Provides:
    - Logger initialization
    - Header display
    - Error handling with exit code mapping
    """

    def __init__(self, verbose: bool = False, console: Optional[Console] = None):
        self.verbose = verbose
        self.console = console or Console()
        self.err_console = Console(stderr=True)
        self.project_root = Path.cwd()
        self.logger: Optional[DeployLogger] = None

    def init_logger(self, project_name: str, command_name: str) -> DeployLogger:
        """
        Initialize command logger.

        Args:
            project_name: Project name (the log directory)
            command_name: Command name

        Returns:
            DeployLogger instance
        """
        self.logger = DeployLogger(project_name, command_name, verbose=self.verbose)
        return self.logger

    def show_header(
        self,
        title: str,
        subtitle: Optional[str] = None,
    ) -> None:
        """Show command header (skip in verbose mode)."""
        if not self.verbose:
            show_header(title=title, subtitle=subtitle, console=self.console)

    def print_success(self, message: str) -> None:
        self.console.print(f"[green]✓ {message}[/green]")

    def print_error(self, message: str) -> None:
        self.err_console.print(f"[red]✗ {message}[/red]")

    def print_dim(self, message: str) -> None:
        self.console.print(f"[dim]{message}[/dim]")

    def handle_error(self, error: ShipitError) -> None:
        """
        Report an error with consistent formatting.

        Args:
            error: shipit exception
        """
        if self.logger:
            self.logger.log_error(error.message, context=error.context)
        else:
            self.print_error(error.message)
            if error.context:
                self.err_console.print(f"[dim]{error.context}[/dim]")

    def _show_log_path(self) -> None:
        if self.logger:
            self.err_console.print(f"\n[dim]Logs saved to:[/dim] {self.logger.log_path}\n")

    def _close_logger(self) -> None:
        if self.logger:
            self.logger.close()

    @abstractmethod
    def execute(self, **kwargs) -> None:
        """
        Execute command logic.

        Must be implemented by subclasses.
        """
        pass

    def run(self, **kwargs) -> None:
        """
        Run command with error handling.

        shipit errors exit with their class's exit code.

        Args:
            **kwargs: Command arguments
        """
        try:
            self.execute(**kwargs)
        except KeyboardInterrupt:
            self.err_console.print("\n[yellow]⚠️  Operation cancelled by user[/yellow]")
            if self.logger:
                self.logger.log_error("Operation cancelled by user")
            self._show_log_path()
            raise SystemExit(EXIT_INTERRUPTED)
        except SystemExit:
            raise
        except ShipitError as e:
            self.handle_error(e)
            self._show_log_path()
            raise SystemExit(e.exit_code)
        except Exception as e:
            error_type = type(e).__name__
            self.err_console.print(f"\n[bold red]✗ {error_type}:[/bold red] {e}\n")
            if self.logger:
                self.logger.log_error(f"{error_type}: {e}")
            self._show_log_path()
            raise SystemExit(1)
        finally:
            self._close_logger()
