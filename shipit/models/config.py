"""
Configuration Models

The persisted configuration record, the invocation-time overrides and the
fully resolved configuration used for one deployment run.
"""

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from shipit.constants import DEBUG_PROFILE_DIR
from shipit.exceptions import ConfigurationError
from shipit.models.ssh import SSHConfig

# Field order of the on-disk JSON object
FILE_FIELDS = (
    "host",
    "port",
    "username",
    "password",
    "key",
    "target_folder",
    "target",
    "remote_folder",
    "profile",
)

_STRING_FIELDS = ("host", "username", "password", "key", "target", "remote_folder", "profile")


@dataclass
class FileConfig:
    """Configuration record as stored in the JSON file."""

    target_folder: str
    host: Optional[str] = None
    port: Optional[int] = None
    username: Optional[str] = None
    password: Optional[str] = None
    key: Optional[str] = None
    target: Optional[str] = None
    remote_folder: Optional[str] = None
    profile: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Any) -> "FileConfig":
        """
        Build a FileConfig from decoded JSON.

        Unknown keys are ignored.

        Raises:
            ConfigurationError: If the document does not match the schema
        """
        if not isinstance(data, dict):
            raise ConfigurationError(
                "Configuration must be a JSON object",
                context=f"Got {type(data).__name__}",
            )

        target_folder = data.get("target_folder")
        if not isinstance(target_folder, str):
            raise ConfigurationError(
                "Missing required configuration field 'target_folder'",
                context="target_folder must be a string path",
            )

        for name in _STRING_FIELDS:
            value = data.get(name)
            if value is not None and not isinstance(value, str):
                raise ConfigurationError(
                    f"Invalid value for '{name}'",
                    context=f"Expected a string, got {type(value).__name__}",
                )

        port = data.get("port")
        if port is not None:
            if isinstance(port, bool) or not isinstance(port, int) or not 0 < port < 65536:
                raise ConfigurationError(
                    "Invalid value for 'port'",
                    context=f"Expected an integer between 1 and 65535, got {port!r}",
                )

        return cls(
            target_folder=target_folder,
            host=data.get("host"),
            port=port,
            username=data.get("username"),
            password=data.get("password"),
            key=data.get("key"),
            target=data.get("target"),
            remote_folder=data.get("remote_folder"),
            profile=data.get("profile"),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize in on-disk field order."""
        values = asdict(self)
        return {name: values[name] for name in FILE_FIELDS}

    def __repr__(self) -> str:
        return f"FileConfig(host={self.host}, target={self.target}, target_folder={self.target_folder})"


@dataclass
class RuntimeOverrides:
    """Values supplied at invocation time (command-line flags)."""

    host: Optional[str] = None
    port: Optional[int] = None
    username: Optional[str] = None
    password: Optional[str] = None
    key: Optional[str] = None
    target_folder: Optional[str] = None
    target: Optional[str] = None
    remote_folder: Optional[str] = None
    profile: Optional[str] = None
    binaries: List[str] = field(default_factory=list)
    debug: bool = False
    build: bool = False

    def value(self, name: str) -> Optional[Any]:
        """
        Get an override, treating an explicitly empty string as absent.

        The target triple is the exception: an explicit empty target selects
        a host-native build and is returned as-is.
        """
        value = getattr(self, name)
        if value == "" and name != "target":
            return None
        return value

    def apply_to(self, file_config: FileConfig) -> FileConfig:
        """
        Overlay overrides onto a persisted record (used by the init flow).

        A target_folder override discards the record's target triple.
        """
        for name in ("host", "port", "username", "password", "key", "remote_folder", "profile"):
            value = self.value(name)
            if value is not None:
                setattr(file_config, name, value)

        target_folder = self.value("target_folder")
        if target_folder is not None:
            file_config.target_folder = target_folder
            file_config.target = None

        target = self.value("target")
        if target is not None:
            file_config.target = target

        return file_config


@dataclass(frozen=True)
class Config:
    """Fully resolved configuration for one deployment run."""

    host: str
    port: int
    username: str
    password: str
    key: Optional[str]
    target_folder: str
    target: str
    remote_folder: str
    debug: bool
    build: bool
    binaries: Tuple[str, ...]
    profile: str

    @property
    def profile_dir(self) -> str:
        """Get the build output directory name for the active profile."""
        return DEBUG_PROFILE_DIR if self.debug else self.profile

    @property
    def artifact_dir(self) -> str:
        """Get the local directory holding built artifacts (trailing '/')."""
        path = self.target_folder
        if self.target:
            path += f"{self.target}/"
        return f"{path}{self.profile_dir}/"

    def local_path(self, binary: str) -> str:
        """Get the local path of a built artifact."""
        return self.artifact_dir + binary

    def remote_path(self, binary: str) -> str:
        """Get the remote destination path of an artifact."""
        return self.remote_folder + binary

    @property
    def ssh(self) -> SSHConfig:
        """Get SSH connection settings."""
        return SSHConfig(
            host=self.host,
            username=self.username,
            password=self.password,
            port=self.port,
            key_path=self.key,
        )

    def summary(self) -> Dict[str, str]:
        """Get display-safe key/value pairs (password omitted)."""
        return {
            "Host": f"{self.username}@{self.host}:{self.port}",
            "Auth": f"key {self.key}" if self.key else "password",
            "Target": self.target or "host-native",
            "Profile": self.profile_dir,
            "Artifacts": self.artifact_dir,
            "Remote": self.remote_folder,
            "Binaries": ", ".join(self.binaries) or "(none)",
            "Build": "yes" if self.build else "no",
        }

    def __repr__(self) -> str:
        return (
            f"Config(host={self.host}, port={self.port}, user={self.username}, "
            f"target={self.target!r}, profile={self.profile_dir}, binaries={list(self.binaries)})"
        )
