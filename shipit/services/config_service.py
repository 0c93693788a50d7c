"""
Configuration Service

Loads the persisted configuration file, merges it with command-line
overrides and decides whether a build is needed before deploying.
"""

import json
import os
from pathlib import Path
from typing import List, Optional, Sequence

from rich.console import Console

from shipit.constants import (
    DEBUG_PROFILE_DIR,
    DEFAULT_CONFIG_FILE,
    DEFAULT_PASSWORD,
    DEFAULT_PORT,
    DEFAULT_PROFILE,
    DEFAULT_REMOTE_FOLDER,
    PROJECT_DESCRIPTOR,
    TEMPLATE_HOST,
    TEMPLATE_PASSWORD,
    TEMPLATE_TARGET,
    TEMPLATE_TARGET_SUBDIR,
    TEMPLATE_USERNAME,
)
from shipit.exceptions import ConfigurationError, DiscoveryError, MissingRequiredFieldError
from shipit.logger import DeployLogger
from shipit.models.config import Config, FileConfig, RuntimeOverrides
from shipit.services.discovery import BinaryDiscovery, CargoBinaryDiscovery
from shipit.utils import absolute_folder, ensure_trailing_separator, expand_home, resolve_against

INIT_HINT = f"Hint: Create a config file with: cargo shipit --init {DEFAULT_CONFIG_FILE}"


class ConfigService:
    """
    Configuration resolution service.

    Responsibilities:
    - Read and validate the JSON configuration file
    - Resolve relative paths against the config file's directory
    - Merge the file with command-line overrides
    - Auto-discover binaries and detect stale builds
    - Write the init template
    """

    def __init__(
        self,
        project_root: Optional[Path] = None,
        discovery: Optional[BinaryDiscovery] = None,
        logger: Optional[DeployLogger] = None,
        console: Optional[Console] = None,
    ):
        self.project_root = Path(project_root) if project_root else Path.cwd()
        self.discovery = discovery if discovery is not None else CargoBinaryDiscovery()
        self.logger = logger
        self.console = console or Console()

    # ------------------------------------------------------------------
    # File I/O
    # ------------------------------------------------------------------

    def load(self, config_path: Path) -> FileConfig:
        """
        Read the configuration file and resolve its relative paths.

        Args:
            config_path: Path to the JSON configuration file

        Returns:
            FileConfig with absolute target_folder and key paths

        Raises:
            ConfigurationError: If the file is unreadable or malformed
        """
        config_path = Path(config_path)
        try:
            with open(config_path, "r") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigurationError(
                f"Failed to read configuration file '{config_path}': {e}",
                context=INIT_HINT,
            )

        file_config = FileConfig.from_dict(data)
        return self._resolve_relative_paths(file_config, config_path)

    def _resolve_relative_paths(self, file_config: FileConfig, config_path: Path) -> FileConfig:
        """Anchor relative target_folder and key paths to the config file's directory."""
        if not config_path.name:
            raise ConfigurationError(
                f"Config file '{config_path}' has no parent directory"
            )
        config_dir = config_path.absolute().parent

        file_config.target_folder = ensure_trailing_separator(
            resolve_against(file_config.target_folder, config_dir)
        )

        if file_config.key:
            if file_config.key.startswith("~/"):
                file_config.key = expand_home(file_config.key)
            else:
                file_config.key = resolve_against(file_config.key, config_dir)

        return file_config

    def template(self, overrides: Optional[RuntimeOverrides] = None) -> FileConfig:
        """
        Build the init template for an embedded Linux target.

        Args:
            overrides: Command-line values to apply on top of the defaults

        Returns:
            FileConfig ready to be written
        """
        file_config = FileConfig(
            host=TEMPLATE_HOST,
            port=DEFAULT_PORT,
            username=TEMPLATE_USERNAME,
            password=TEMPLATE_PASSWORD,
            key=None,
            target_folder=ensure_trailing_separator(os.getcwd()) + TEMPLATE_TARGET_SUBDIR,
            target=TEMPLATE_TARGET,
            remote_folder=DEFAULT_REMOTE_FOLDER,
            profile=DEFAULT_PROFILE,
        )
        if overrides is not None:
            overrides.apply_to(file_config)
        return file_config

    def write(self, file_config: FileConfig, config_path: Path) -> Path:
        """
        Write a configuration record as indented JSON.

        Raises:
            ConfigurationError: If the file cannot be written
        """
        config_path = Path(config_path)
        try:
            with open(config_path, "w") as f:
                json.dump(file_config.to_dict(), f, indent=2)
                f.write("\n")
        except OSError as e:
            raise ConfigurationError(f"Failed to write configuration file '{config_path}': {e}")
        return config_path

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def resolve(self, file_config: FileConfig, overrides: RuntimeOverrides) -> Config:
        """
        Merge the persisted record with overrides into a resolved Config.

        Override wins if present, then the file, then the default. The
        profile is the exception: a profile from the file beats the flag.

        Raises:
            MissingRequiredFieldError: If host, username or target is unset
        """
        host = self._require("host", "--host", overrides.value("host"), file_config.host)
        username = self._require(
            "username", "--username", overrides.value("username"), file_config.username
        )

        target_folder_override = overrides.value("target_folder")
        if target_folder_override is not None:
            # The file's triple does not apply to another artifact root
            target_folder = absolute_folder(expand_home(target_folder_override), self.project_root)
            persisted_target = None
        else:
            target_folder = ensure_trailing_separator(file_config.target_folder)
            persisted_target = file_config.target
        target = self._require("target", "--target", overrides.value("target"), persisted_target)

        port = _first(overrides.value("port"), file_config.port, DEFAULT_PORT)
        password = _first(overrides.value("password"), file_config.password, DEFAULT_PASSWORD)

        key_override = overrides.value("key")
        key = expand_home(key_override) if key_override is not None else file_config.key

        remote_folder = ensure_trailing_separator(
            _first(overrides.value("remote_folder"), file_config.remote_folder, DEFAULT_REMOTE_FOLDER)
        )

        # TODO: decide whether --profile should beat the file like every other flag
        profile = _first(file_config.profile or None, overrides.value("profile"), DEFAULT_PROFILE)

        debug = overrides.debug
        binaries = tuple(overrides.binaries) if overrides.binaries else tuple(self.detect_binaries())

        build = overrides.build or self.should_auto_build(
            target_folder, target, binaries, profile, debug
        )

        return Config(
            host=host,
            port=port,
            username=username,
            password=password,
            key=key,
            target_folder=target_folder,
            target=target,
            remote_folder=remote_folder,
            debug=debug,
            build=build,
            binaries=binaries,
            profile=profile,
        )

    @staticmethod
    def _require(name: str, flag: str, override: Optional[str], persisted: Optional[str]) -> str:
        if override is not None:
            return override
        if persisted is not None:
            return persisted
        raise MissingRequiredFieldError(name, flag)

    # ------------------------------------------------------------------
    # Discovery and staleness
    # ------------------------------------------------------------------

    def detect_binaries(self) -> List[str]:
        """
        Auto-detect binary names from project metadata.

        Failures and empty results are downgraded to a warning.
        """
        try:
            binaries = self.discovery.discover(self.project_root)
        except DiscoveryError as e:
            self._warn(
                f"Failed to auto-detect binaries ({e.message}). Please specify --binaries manually."
            )
            return []

        if not binaries:
            self._warn("No binaries detected automatically. Please specify --binaries manually.")
            return []

        self._info(f"Auto-detected binaries: {', '.join(binaries)}")
        return list(binaries)

    def should_auto_build(
        self,
        target_folder: str,
        target: str,
        binaries: Sequence[str],
        profile: str,
        debug: bool,
    ) -> bool:
        """
        Decide whether artifacts are missing or older than the project descriptor.

        Args:
            target_folder: Local build output root
            target: Target triple ('' for host-native)
            binaries: Artifact names to check
            profile: Build profile name
            debug: Whether the debug profile directory is used

        Returns:
            True if a build is needed. Outside a project root, always False.
        """
        descriptor = self.project_root / PROJECT_DESCRIPTOR
        if not descriptor.exists():
            return False

        binary_dir = Path(target_folder)
        if target:
            binary_dir = binary_dir / target
        binary_dir = binary_dir / (DEBUG_PROFILE_DIR if debug else profile)

        descriptor_mtime = descriptor.stat().st_mtime
        for binary_name in binaries:
            binary_path = binary_dir / binary_name

            if not binary_path.exists():
                self._info(f"Auto-build: Binary '{binary_name}' not found at {binary_path}")
                return True

            if descriptor_mtime > binary_path.stat().st_mtime:
                self._info(
                    f"Auto-build: Binary '{binary_name}' is older than {PROJECT_DESCRIPTOR}"
                )
                return True

        self._info("Auto-build: Binaries appear up-to-date, skipping build")
        return False

    def _info(self, message: str) -> None:
        if self.logger:
            self.logger.log(message)
        else:
            self.console.print(f"[dim]{message}[/dim]")

    def _warn(self, message: str) -> None:
        if self.logger:
            self.logger.warning(message)
        else:
            self.console.print(f"[yellow]⚠ {message}[/yellow]")


def _first(*values):
    """Return the first value that is not None."""
    for value in values:
        if value is not None:
            return value
    return None
