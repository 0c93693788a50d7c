"""
Result Models

Dataclass models for operation results.
"""

from dataclasses import dataclass, field
from typing import List


@dataclass
class SSHResult:
    """Result of a remote command execution."""

    returncode: int
    stdout: str = ""
    stderr: str = ""
    host: str = ""
    command: str = ""
    duration_seconds: float = 0.0

    @property
    def is_success(self) -> bool:
        """Check if remote command succeeded."""
        return self.returncode == 0

    @property
    def is_failure(self) -> bool:
        """Check if remote command failed."""
        return self.returncode != 0

    def __repr__(self) -> str:
        return f"SSHResult(host={self.host}, returncode={self.returncode}, duration={self.duration_seconds:.2f}s)"


@dataclass
class BuildResult:
    """Result of a local build invocation."""

    returncode: int
    command: List[str] = field(default_factory=list)
    stdout: str = ""
    stderr: str = ""

    @property
    def is_success(self) -> bool:
        """Check if build succeeded."""
        return self.returncode == 0

    @property
    def command_line(self) -> str:
        """Get the build command as a single string."""
        return " ".join(self.command)


@dataclass
class TransferResult:
    """Result of a single file upload."""

    local_path: str
    remote_path: str
    size: int
    mode: int
    duration_seconds: float = 0.0

    def __repr__(self) -> str:
        return f"TransferResult({self.local_path} -> {self.remote_path}, {self.size} bytes)"


@dataclass
class DeploymentResult:
    """Outcome of one deployment run."""

    host: str
    built: bool = False
    directory_provisioned: bool = False
    transfers: List[TransferResult] = field(default_factory=list)
    duration_seconds: float = 0.0

    @property
    def total_bytes(self) -> int:
        """Get total bytes uploaded."""
        return sum(transfer.size for transfer in self.transfers)
