"""
shipit Exception Hierarchy

Every fatal condition in the deployment pipeline is one of these classes.
Each class carries the process exit code the top-level handler maps it to.
"""

from typing import Optional


class ShipitError(Exception):
    """Base exception for all shipit errors."""

    exit_code = 1

    def __init__(self, message: str, context: Optional[str] = None):
        self.message = message
        self.context = context
        super().__init__(self.format_message())

    def format_message(self) -> str:
        """Format error message with optional context."""
        if self.context:
            return f"{self.message}\nContext: {self.context}"
        return self.message


class ConfigurationError(ShipitError):
    """Raised when configuration is invalid, unreadable or incomplete."""

    exit_code = 1


class MissingRequiredFieldError(ConfigurationError):
    """Raised when a required field is supplied by neither the file nor the CLI."""

    def __init__(self, field_name: str, flag: str):
        self.field_name = field_name
        self.flag = flag
        message = f"Missing required configuration field '{field_name}'"
        context = f"Set '{field_name}' in the configuration file or pass {flag}"
        super().__init__(message, context)


class DiscoveryError(ShipitError):
    """Raised when binary targets cannot be discovered from project metadata."""

    pass


class BuildError(ShipitError):
    """Raised when the external build toolchain fails."""

    exit_code = 2


class SSHError(ShipitError):
    """Raised when SSH operations fail."""

    exit_code = 3


class ConnectError(SSHError):
    """Raised when the remote host cannot be reached or the handshake fails."""

    exit_code = 3


class AuthenticationError(SSHError):
    """Raised when the session cannot be authenticated."""

    exit_code = 4


class RemoteCommandError(SSHError):
    """Raised when a remote command exits non-zero."""

    exit_code = 5

    def __init__(
        self,
        message: str,
        context: Optional[str] = None,
        exit_status: Optional[int] = None,
    ):
        self.exit_status = exit_status
        super().__init__(message, context)


class DirectoryNotCreatedError(RemoteCommandError):
    """Raised when the operator declines creating the remote directory."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(
            f"Directory {path} not created. Aborting.",
            context="Create it manually or re-run and answer 'yes'",
        )


class TransferError(SSHError):
    """Raised when a file transfer fails."""

    exit_code = 6
