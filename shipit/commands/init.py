"""
Init Command

Write a template configuration file for an embedded Linux target.
"""

from pathlib import Path
from typing import Optional

from rich.console import Console

from shipit.base import BaseCommand
from shipit.models.config import RuntimeOverrides
from shipit.services.config_service import ConfigService


class InitCommand(BaseCommand):
    """Create a configuration file from defaults plus command-line overrides."""

    def __init__(
        self,
        config_path: Path,
        overrides: RuntimeOverrides,
        verbose: bool = False,
        console: Optional[Console] = None,
    ):
        super().__init__(verbose=verbose, console=console)
        self.config_path = Path(config_path)
        self.overrides = overrides

    def execute(self) -> None:
        """Write the template and exit without deploying."""
        self.show_header(title="Init", subtitle=str(self.config_path))

        config_service = ConfigService(self.project_root, console=self.console)
        file_config = config_service.template(self.overrides)
        config_service.write(file_config, self.config_path)

        self.print_success(f"Configuration written to {self.config_path}")
        self.print_dim(f"Edit it, then run: cargo shipit --config {self.config_path}")
