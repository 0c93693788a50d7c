"""
shipit Services Layer

Configuration resolution, building, remote sessions and deployment.
"""

from .config_service import ConfigService
from .build_service import BuildService
from .discovery import BinaryDiscovery, CargoBinaryDiscovery, NullBinaryDiscovery
from .ssh_service import RemoteSession, ScpChannel
from .deployment_service import DeploymentOrchestrator

__all__ = [
    "ConfigService",
    "BuildService",
    "BinaryDiscovery",
    "CargoBinaryDiscovery",
    "NullBinaryDiscovery",
    "RemoteSession",
    "ScpChannel",
    "DeploymentOrchestrator",
]
