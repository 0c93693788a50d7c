"""
shipit CLI Commands
"""

from .deploy import shipit, DeployCommand, DeployOptions
from .init import InitCommand

__all__ = [
    "shipit",
    "DeployCommand",
    "DeployOptions",
    "InitCommand",
]
