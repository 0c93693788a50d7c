"""
Deploy Command

Resolve configuration, build if needed and upload binaries to the target.
"""

import functools
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple

import click
from rich_click import RichCommand
from rich.console import Console

from shipit.base import BaseCommand
from shipit.commands.init import InitCommand
from shipit.constants import DEFAULT_CONFIG_FILE, DEFAULT_PROFILE
from shipit.models.config import RuntimeOverrides
from shipit.services.config_service import ConfigService
from shipit.services.deployment_service import (
    DeploymentOrchestrator,
    assume_yes,
    prompt_confirmation,
)
from shipit.services.discovery import BinaryDiscovery
from shipit.services.ssh_service import RemoteSession
from shipit.ui_components import show_deployment_summary


@dataclass
class DeployOptions:
    """Options for deploy command."""

    config_path: Path
    overrides: RuntimeOverrides
    yes: bool = False


class DeployCommand(BaseCommand):
    """
    Deploy binaries to the remote target.

    Steps:
    - Load and resolve configuration
    - Build when forced or when artifacts look stale
    - Connect, authenticate, ensure the remote directory, upload
    """

    def __init__(
        self,
        options: DeployOptions,
        verbose: bool = False,
        console: Optional[Console] = None,
        discovery: Optional[BinaryDiscovery] = None,
        session_factory=RemoteSession,
    ):
        super().__init__(verbose=verbose, console=console)
        self.options = options
        self.discovery = discovery
        self.session_factory = session_factory

    def execute(self) -> None:
        """Execute deploy command."""
        self.show_header(title="Deploy", subtitle=str(self.options.config_path))

        logger = self.init_logger(self.project_root.name or "shipit", "deploy")
        logger.step("Resolving configuration")

        config_service = ConfigService(
            self.project_root, discovery=self.discovery, logger=logger, console=self.console
        )
        file_config = config_service.load(self.options.config_path)
        config = config_service.resolve(file_config, self.options.overrides)

        for key, value in config.summary().items():
            logger.log(f"{key}: {value}")
        if not self.verbose:
            for key, value in config.summary().items():
                self.console.print(f"  [dim]{key}:[/dim] {value}")

        if self.options.yes:
            confirm = assume_yes
        else:
            confirm = functools.partial(prompt_confirmation, console=self.console)

        orchestrator = DeploymentOrchestrator(
            config,
            logger,
            confirm=confirm,
            session_factory=self.session_factory,
            project_root=self.project_root,
        )
        result = orchestrator.deploy()

        show_deployment_summary(result, self.console)
        if not self.verbose:
            self.console.print(f"\n[dim]Logs saved to:[/dim] {logger.log_path}\n")


@click.command(
    name="shipit",
    cls=RichCommand,
    context_settings={"help_option_names": ["-h", "--help"]},
)
@click.option(
    "--config",
    "-c",
    default=DEFAULT_CONFIG_FILE,
    show_default=True,
    help="The path to the configuration file",
)
@click.option(
    "--binaries",
    "-b",
    multiple=True,
    help="Binary to upload (repeatable; auto-detected from Cargo.toml if omitted)",
)
@click.option("--debug", "-d", is_flag=True, help="Deploy the debug build")
@click.option("--remote-folder", "-r", help="The remote directory path on the Linux target")
@click.option("--host", "-H", help="Hostname or IP address of the Linux target")
@click.option("--username", "-U", help="SSH username for the Linux target")
@click.option("--password", "-P", help="SSH password (or key passphrase)")
@click.option("--key", "-k", help="Path to SSH private key file for authentication")
@click.option(
    "--port",
    "-p",
    type=click.IntRange(1, 65535),
    help="SSH port of the Linux target (default: 22)",
)
@click.option(
    "--target",
    "-t",
    help="Rust target triple (e.g. 'armv7-unknown-linux-gnueabihf', 'aarch64-unknown-linux-gnu')",
)
@click.option("--target-folder", "-T", help="Local cargo target directory path")
@click.option(
    "--init",
    "-i",
    "init_path",
    type=click.Path(dir_okay=False),
    help="Write a new configuration file at this path and exit",
)
@click.option("--build", "-B", is_flag=True, help="Build the project before uploading")
@click.option(
    "--profile",
    default=DEFAULT_PROFILE,
    show_default=True,
    help="Build profile (debug, release, or custom profile name)",
)
@click.option("--yes", "-y", is_flag=True, help="Create a missing remote directory without asking")
@click.option("--verbose", "-v", is_flag=True, help="Show all command output")
@click.version_option(package_name="shipit")
def shipit(
    config: str,
    binaries: Tuple[str, ...],
    debug: bool,
    remote_folder: Optional[str],
    host: Optional[str],
    username: Optional[str],
    password: Optional[str],
    key: Optional[str],
    port: Optional[int],
    target: Optional[str],
    target_folder: Optional[str],
    init_path: Optional[str],
    build: bool,
    profile: str,
    yes: bool,
    verbose: bool,
):
    """
    Build and deploy Rust binaries to Linux targets via SSH. Ship it!

    \b
    Examples:
      cargo shipit --init shipit.json     # Write a template config
      cargo shipit                        # Deploy using shipit.json
      cargo shipit -H 10.0.0.5 -b server  # Override host, pick a binary
      cargo shipit -B --profile dist      # Force a build with a custom profile
    """
    overrides = RuntimeOverrides(
        host=host,
        port=port,
        username=username,
        password=password,
        key=key,
        target_folder=target_folder,
        target=target,
        remote_folder=remote_folder,
        profile=profile,
        binaries=list(binaries),
        debug=debug,
        build=build,
    )

    if init_path:
        InitCommand(Path(init_path), overrides, verbose=verbose).run()
        return

    options = DeployOptions(config_path=Path(config), overrides=overrides, yes=yes)
    DeployCommand(options, verbose=verbose).run()
