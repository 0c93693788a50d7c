"""
shipit Domain Models

Dataclass-based models for configuration and operation results.
"""

from .config import (
    FileConfig,
    RuntimeOverrides,
    Config,
)
from .results import (
    SSHResult,
    BuildResult,
    TransferResult,
    DeploymentResult,
)
from .ssh import SSHConfig

__all__ = [
    # Config
    "FileConfig",
    "RuntimeOverrides",
    "Config",
    # Results
    "SSHResult",
    "BuildResult",
    "TransferResult",
    "DeploymentResult",
    # SSH
    "SSHConfig",
]
