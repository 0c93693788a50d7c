"""Build service for compiling binaries with the cargo toolchain."""

from pathlib import Path
from typing import List, Optional

from shipit.constants import BUILD_TOOL, RELEASE_PROFILE
from shipit.exceptions import BuildError
from shipit.logger import DeployLogger, run_with_progress
from shipit.models.results import BuildResult


def build_command(target: str, profile: str, debug: bool, cargo: str = BUILD_TOOL) -> List[str]:
    """
    Assemble the cargo build command line.

    Args:
        target: Target triple, '' for a host-native build
        profile: Profile name; 'release' maps to --release
        debug: Build the dev profile (no profile flag)
        cargo: Cargo executable

    Returns:
        Command and arguments
    """
    command = [cargo, "build"]
    if target:
        command.extend(["--target", target])

    if not debug:
        if profile == RELEASE_PROFILE:
            command.append("--release")
        else:
            command.append(f"--profile={profile}")

    return command


class BuildService:
    """Runs the external build toolchain."""

    def __init__(
        self,
        logger: DeployLogger,
        project_root: Optional[Path] = None,
        cargo: str = BUILD_TOOL,
    ):
        """
        Initialize build service.

        Args:
            logger: Logger receiving build output
            project_root: Directory the build runs in
            cargo: Cargo executable
        """
        self.logger = logger
        self.project_root = Path(project_root) if project_root else Path.cwd()
        self.cargo = cargo

    def build(self, target: str, profile: str, debug: bool) -> BuildResult:
        """
        Build the project.

        Raises:
            BuildError: If cargo is missing or exits non-zero
        """
        command = build_command(target, profile, debug, cargo=self.cargo)
        description = f"Building {target or 'host'} ({'debug' if debug else profile})"

        try:
            returncode, stdout, stderr = run_with_progress(
                self.logger, command, description, cwd=self.project_root
            )
        except FileNotFoundError:
            raise BuildError(
                f"'{self.cargo}' executable not found",
                context="Install the Rust toolchain or add cargo to PATH",
            )

        result = BuildResult(returncode=returncode, command=command, stdout=stdout, stderr=stderr)
        if not result.is_success:
            tail = "\n".join(stderr.strip().splitlines()[-10:])
            raise BuildError(
                f"Failed to build the project (exit status {returncode})",
                context=tail or result.command_line,
            )

        self.logger.success(f"Built with: {result.command_line}")
        return result
