"""
SSH Configuration Models

Dataclass models for SSH operations.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from shipit.constants import DEFAULT_PORT, PUBLIC_KEY_SUFFIX


@dataclass(frozen=True)
class SSHConfig:
    """SSH connection and credential details for one target host."""

    host: str
    username: str
    password: str = ""
    port: int = DEFAULT_PORT
    key_path: Optional[str] = None

    @property
    def address(self) -> str:
        """Get host:port address string."""
        return f"{self.host}:{self.port}"

    @property
    def uses_key(self) -> bool:
        """Check if public-key authentication is configured."""
        return bool(self.key_path)

    @property
    def key_path_expanded(self) -> Optional[Path]:
        """Get expanded private key path (resolves ~)."""
        if self.key_path:
            return Path(self.key_path).expanduser()
        return None

    @property
    def public_key_path(self) -> Optional[Path]:
        """Get public key path (private key path + '.pub')."""
        if self.key_path:
            return Path(f"{self.key_path}{PUBLIC_KEY_SUFFIX}").expanduser()
        return None

    @property
    def connection_string(self) -> str:
        """Get SSH connection string (user@host)."""
        return f"{self.username}@{self.host}"

    def __repr__(self) -> str:
        auth = f"key={self.key_path}" if self.key_path else "auth=password"
        return f"SSHConfig(host={self.host}, port={self.port}, user={self.username}, {auth})"
