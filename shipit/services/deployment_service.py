"""
Deployment Orchestrator

Drives one deployment run: build if needed, open the session,
authenticate, make sure the remote directory exists, upload artifacts.
"""

import time
from pathlib import Path
from typing import Callable, Optional

from rich.console import Console
from rich.prompt import Prompt

from shipit.exceptions import DirectoryNotCreatedError
from shipit.logger import DeployLogger
from shipit.models.config import Config
from shipit.models.results import DeploymentResult
from shipit.services.build_service import BuildService
from shipit.services.ssh_service import RemoteSession

ConfirmationProvider = Callable[[str], bool]
SessionFactory = Callable[..., RemoteSession]


def prompt_confirmation(question: str, console: Optional[Console] = None) -> bool:
    """Ask on the terminal; only a case-insensitive 'yes' confirms."""
    answer = Prompt.ask(f"{question} [bold](yes/no)[/bold]", console=console or Console())
    return answer.strip().lower() == "yes"


def scripted_confirmation(answer: str) -> ConfirmationProvider:
    """Build a non-interactive provider that always gives the same answer."""

    def provider(question: str) -> bool:
        return answer.strip().lower() == "yes"

    return provider


def assume_yes(question: str) -> bool:
    return True


class DeploymentOrchestrator:
    """
    Runs the deployment pipeline for a resolved Config.

    The remote session is owned exclusively by one deploy() call and is
    closed before it returns or raises.
    """

    def __init__(
        self,
        config: Config,
        logger: DeployLogger,
        confirm: ConfirmationProvider = prompt_confirmation,
        build_service: Optional[BuildService] = None,
        session_factory: SessionFactory = RemoteSession,
        project_root: Optional[Path] = None,
    ):
        """
        Initialize orchestrator.

        Args:
            config: Resolved configuration
            logger: Deploy logger
            confirm: Asked before creating a missing remote directory
            build_service: Build runner (created on demand)
            session_factory: Creates the RemoteSession
            project_root: Directory builds run in
        """
        self.config = config
        self.logger = logger
        self.confirm = confirm
        self.build_service = build_service
        self.session_factory = session_factory
        self.project_root = project_root

    def deploy(self) -> DeploymentResult:
        """
        Execute the full pipeline.

        Returns:
            DeploymentResult describing what was done

        Raises:
            ShipitError: Any failure; nothing is retried
        """
        start_time = time.time()
        result = DeploymentResult(host=self.config.host)

        if self.config.build:
            self.logger.step("Building")
            self._get_build_service().build(
                self.config.target, self.config.profile, self.config.debug
            )
            result.built = True

        with self.session_factory(self.config.ssh, logger=self.logger) as session:
            self.logger.step(f"Connecting to {self.config.ssh.address}")
            session.connect()
            session.authenticate()
            self.logger.success(f"Authenticated as {self.config.username}")

            self.logger.step("Checking remote directory")
            result.directory_provisioned = self.ensure_remote_directory(session)

            self.logger.step("Uploading binaries")
            self.upload_all(session, result)

        result.duration_seconds = time.time() - start_time
        return result

    def ensure_remote_directory(self, session: RemoteSession) -> bool:
        """
        Verify the remote folder, provisioning it after confirmation.

        Returns:
            True if the directory had to be created

        Raises:
            DirectoryNotCreatedError: If the operator does not answer 'yes'
        """
        remote_path = self.config.remote_folder
        if session.directory_exists(remote_path):
            self.logger.success(f"Remote directory {remote_path} exists")
            return False

        self.logger.warning(f"Remote directory {remote_path} does not exist")
        question = f"Directory {remote_path} does not exist. Do you want to create it?"
        if not self.confirm(question):
            self.logger.log("User declined directory creation")
            raise DirectoryNotCreatedError(remote_path)

        session.provision_directory(remote_path, self.config.username, self.config.password)
        self.logger.success(f"Created {remote_path} owned by {self.config.username}")
        return True

    def upload_all(self, session: RemoteSession, result: DeploymentResult) -> None:
        """Upload every artifact in declared order; the first failure aborts the batch."""
        if not self.config.binaries:
            self.logger.warning("No binaries to upload. Please specify --binaries manually.")
            return

        for binary in self.config.binaries:
            source = self.config.local_path(binary)
            destination = self.config.remote_path(binary)
            self.logger.log(f"Uploading {source} to {destination}")
            transfer = session.upload_file(source, destination)
            result.transfers.append(transfer)
            self.logger.success(f"{binary} → {destination}")

    def _get_build_service(self) -> BuildService:
        if self.build_service is None:
            self.build_service = BuildService(self.logger, project_root=self.project_root)
        return self.build_service
