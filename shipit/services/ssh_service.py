"""SSH session for executing commands and uploading files on the target host."""

import os
import posixpath
import socket
import time
from enum import Enum
from pathlib import Path
from typing import Callable, Optional

import paramiko

from shipit.constants import CONNECT_TIMEOUT, EXECUTABLE_MODE
from shipit.exceptions import (
    AuthenticationError,
    ConnectError,
    RemoteCommandError,
    SSHError,
    TransferError,
)
from shipit.logger import DeployLogger
from shipit.models.results import SSHResult, TransferResult
from shipit.models.ssh import SSHConfig
from shipit.utils import format_size, mask_secret


class SessionState(Enum):
    """Lifecycle state of a RemoteSession."""

    DISCONNECTED = "disconnected"
    CONNECTED = "connected"
    AUTHENTICATED = "authenticated"
    CLOSED = "closed"


class ScpChannel:
    """
    Remote file-receive channel speaking the SCP sink protocol.

    A well-formed transfer is: open (size declared), write_all, send_eof,
    wait_eof, close, wait_close. Every step is required.
    """

    def __init__(
        self,
        channel,
        remote_path: str,
        mode: int,
        size: int,
        timeout: Optional[float] = CONNECT_TIMEOUT,
    ):
        self.channel = channel
        self.remote_path = remote_path
        self.mode = mode
        self.size = size
        self.timeout = timeout
        self.bytes_written = 0
        self.exit_status: Optional[int] = None

    def open(self) -> "ScpChannel":
        """Start the remote sink and declare the file header."""
        self.channel.exec_command(f"scp -t {self.remote_path}")
        self._expect_ack("starting remote scp")

        name = posixpath.basename(self.remote_path)
        header = f"C{self.mode:04o} {self.size} {name}\n"
        self.channel.sendall(header.encode())
        self._expect_ack("sending file header")
        return self

    def write_all(self, data: bytes) -> None:
        """Write the complete file content and the end-of-file marker."""
        if self.bytes_written + len(data) != self.size:
            raise TransferError(
                f"Content length mismatch for {self.remote_path}",
                context=f"Declared {self.size} bytes, got {self.bytes_written + len(data)}",
            )
        self.channel.sendall(data)
        self.bytes_written += len(data)
        self.channel.sendall(b"\x00")
        self._expect_ack("writing file content")

    def send_eof(self) -> None:
        """Signal that no more data will be sent."""
        self.channel.shutdown_write()

    def wait_eof(self) -> None:
        """Wait for the peer's EOF and collect the remote exit status."""
        while self.channel.recv(1024):
            pass
        self.exit_status = self.channel.recv_exit_status()

    def close(self) -> None:
        """Close the channel."""
        self.channel.close()

    def wait_close(self) -> None:
        """Wait until the channel reports closed and check the remote exit status."""
        deadline = time.monotonic() + (self.timeout or CONNECT_TIMEOUT)
        while not self.channel.closed:
            if time.monotonic() > deadline:
                raise TransferError(f"Timed out waiting for {self.remote_path} channel to close")
            time.sleep(0.05)

        if self.exit_status:
            raise TransferError(
                f"Remote scp exited with status {self.exit_status}",
                context=self.remote_path,
            )

    def _expect_ack(self, stage: str) -> None:
        response = self.channel.recv(1)
        if response == b"\x00":
            return
        if not response:
            raise TransferError(
                f"Connection closed while {stage}", context=self.remote_path
            )

        message = b""
        while not message.endswith(b"\n"):
            chunk = self.channel.recv(1)
            if not chunk:
                break
            message += chunk
        raise TransferError(
            f"Remote scp error while {stage}: {message.decode(errors='replace').strip()}",
            context=self.remote_path,
        )


class RemoteSession:
    """
    One authenticated SSH connection to the target host.

    Used as a context manager so the connection is always closed:

        with RemoteSession(config.ssh, logger) as session:
            session.connect()
            session.authenticate()
            ...
    """

    def __init__(
        self,
        config: SSHConfig,
        logger: Optional[DeployLogger] = None,
        timeout: Optional[float] = CONNECT_TIMEOUT,
        socket_factory: Callable = socket.create_connection,
        transport_factory: Callable = paramiko.Transport,
    ):
        """
        Initialize remote session.

        Args:
            config: SSH connection settings
            logger: Logger for commands and transfers
            timeout: Connect/handshake timeout in seconds
            socket_factory: Opens the TCP stream
            transport_factory: Wraps the stream in an SSH transport
        """
        self.config = config
        self.logger = logger
        self.timeout = timeout
        self.socket_factory = socket_factory
        self.transport_factory = transport_factory
        self.transport = None
        self.state = SessionState.DISCONNECTED

    def __enter__(self) -> "RemoteSession":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def connect(self) -> None:
        """
        Open the TCP stream and perform the SSH handshake.

        Raises:
            ConnectError: If the host is unreachable or the handshake fails
        """
        self._require_state(SessionState.DISCONNECTED, "connect")
        self._log(f"Connecting to {self.config.address}")

        try:
            sock = self.socket_factory((self.config.host, self.config.port), self.timeout)
        except OSError as e:
            raise ConnectError(
                f"Failed to connect to remote server {self.config.address}: {e}"
            )

        try:
            self.transport = self.transport_factory(sock)
            self.transport.start_client(timeout=self.timeout)
        except (paramiko.SSHException, EOFError, OSError) as e:
            sock.close()
            self.transport = None
            raise ConnectError(
                f"Failed to perform SSH handshake with {self.config.address}: {e}"
            )

        self.state = SessionState.CONNECTED
        host_key = self.transport.get_remote_server_key()
        if host_key is not None:
            self._log(f"Host key: {host_key.get_name()} {host_key.get_fingerprint().hex()}", "DEBUG")

    def authenticate(self) -> None:
        """
        Authenticate with exactly one strategy.

        A configured key path means public-key auth with the password as
        passphrase; otherwise password auth.

        Raises:
            AuthenticationError: If authentication fails
        """
        self._require_state(SessionState.CONNECTED, "authenticate")
        username = self.config.username

        try:
            if self.config.uses_key:
                pkey = self._load_private_key()
                self._log(f"Authenticating {username} with key {self.config.key_path}")
                self.transport.auth_publickey(username, pkey)
            else:
                self._log(f"Authenticating {username} with password")
                self.transport.auth_password(username, self.config.password, fallback=False)
        except paramiko.AuthenticationException as e:
            method = "SSH key" if self.config.uses_key else "password"
            raise AuthenticationError(
                f"Failed to authenticate using {method}: {e}",
                context=self.config.connection_string,
            )
        except paramiko.SSHException as e:
            raise AuthenticationError(
                f"Authentication error: {e}", context=self.config.connection_string
            )

        if not self.transport.is_authenticated():
            raise AuthenticationError(
                "Failed to authenticate with the remote server",
                context=self.config.connection_string,
            )

        self.state = SessionState.AUTHENTICATED

    def _load_private_key(self) -> paramiko.PKey:
        key_path = self.config.key_path_expanded
        passphrase = self.config.password or None

        try:
            pkey = paramiko.PKey.from_path(key_path, passphrase=passphrase)
        except paramiko.PasswordRequiredException:
            raise AuthenticationError(
                f"SSH key {key_path} is encrypted",
                context="Pass the passphrase with --password",
            )
        except (paramiko.SSHException, OSError, ValueError) as e:
            raise AuthenticationError(f"Failed to load SSH key {key_path}: {e}")

        public_key_path = self.config.public_key_path
        if public_key_path is not None and public_key_path.exists():
            self._check_public_key(pkey, public_key_path)
        return pkey

    @staticmethod
    def _check_public_key(pkey: paramiko.PKey, public_key_path: Path) -> None:
        try:
            fields = public_key_path.read_text().split()
        except OSError as e:
            raise AuthenticationError(f"Failed to read public key {public_key_path}: {e}")

        if len(fields) < 2 or fields[1] != pkey.get_base64():
            raise AuthenticationError(
                f"Public key {public_key_path} does not match its private key"
            )

    def close(self) -> None:
        """Close the connection. Safe to call more than once."""
        if self.transport is not None:
            self.transport.close()
            self.transport = None
            self._log(f"Closed connection to {self.config.address}", "DEBUG")
        self.state = SessionState.CLOSED

    # ------------------------------------------------------------------
    # Remote commands
    # ------------------------------------------------------------------

    def execute(self, command: str, secret: Optional[str] = None) -> SSHResult:
        """
        Run a command on one exec channel and wait for its exit status.

        Args:
            command: Shell command line
            secret: Value to mask when the command is logged

        Returns:
            SSHResult with exit status and output
        """
        self._require_state(SessionState.AUTHENTICATED, "execute commands")
        shown = mask_secret(command, secret)
        if self.logger:
            self.logger.log_command(shown)

        start_time = time.time()
        try:
            channel = self.transport.open_session(timeout=self.timeout)
            try:
                channel.exec_command(command)
                channel.shutdown_write()
                stdout = channel.makefile("rb").read().decode(errors="replace")
                stderr = channel.makefile_stderr("rb").read().decode(errors="replace")
                returncode = channel.recv_exit_status()
            finally:
                channel.close()
        except (paramiko.SSHException, OSError) as e:
            raise RemoteCommandError(
                f"SSH command failed: {e}",
                context=f"Host: {self.config.host}, Command: {shown}",
            )

        if self.logger:
            self.logger.log_output(mask_secret(stdout, secret), "stdout")
            self.logger.log_output(mask_secret(stderr, secret), "stderr")

        return SSHResult(
            returncode=returncode,
            stdout=stdout,
            stderr=stderr,
            host=self.config.host,
            command=shown,
            duration_seconds=time.time() - start_time,
        )

    def directory_exists(self, path: str) -> bool:
        """Check whether a directory exists on the remote host."""
        return self.execute(f"test -d {path}").is_success

    def provision_directory(self, path: str, user: str, password: str) -> None:
        """
        Create a directory with sudo and hand it to the login user.

        The password is piped in plaintext to sudo's prompt.

        Raises:
            RemoteCommandError: If either command exits non-zero
        """
        mkdir = self.execute(f"echo {password} | sudo -S mkdir -p {path}", secret=password)
        if mkdir.is_failure:
            raise RemoteCommandError(
                f"Failed to create directory with exit status: {mkdir.returncode}",
                context=mkdir.stderr.strip() or path,
                exit_status=mkdir.returncode,
            )

        chown = self.execute(
            f"echo {password} | sudo -S chown -R {user}:{user} {path}", secret=password
        )
        if chown.is_failure:
            raise RemoteCommandError(
                f"Failed to change ownership with exit status: {chown.returncode}",
                context=chown.stderr.strip() or path,
                exit_status=chown.returncode,
            )

    # ------------------------------------------------------------------
    # File transfer
    # ------------------------------------------------------------------

    def scp_send(self, remote_path: str, mode: int, size: int) -> ScpChannel:
        """Open a remote file-receive channel with declared mode and size."""
        self._require_state(SessionState.AUTHENTICATED, "upload files")
        channel = self.transport.open_session(timeout=self.timeout)
        return ScpChannel(channel, remote_path, mode, size, timeout=self.timeout).open()

    def upload_file(
        self, local_path: str, remote_path: str, mode: int = EXECUTABLE_MODE
    ) -> TransferResult:
        """
        Upload one local file to a fixed remote path.

        Raises:
            TransferError: If the file is unreadable or the transfer fails
        """
        start_time = time.time()
        try:
            with open(local_path, "rb") as local_file:
                size = os.fstat(local_file.fileno()).st_size
                data = local_file.read()
        except OSError as e:
            raise TransferError(f"Failed to read {local_path}: {e}")

        self._log(f"Uploading {format_size(size)}")

        try:
            remote_file = self.scp_send(remote_path, mode, size)
            remote_file.write_all(data)
            remote_file.send_eof()
            remote_file.wait_eof()
            remote_file.close()
            remote_file.wait_close()
        except (paramiko.SSHException, OSError) as e:
            raise TransferError(
                f"Failed to perform SCP upload: {e}", context=f"{local_path} -> {remote_path}"
            )

        return TransferResult(
            local_path=local_path,
            remote_path=remote_path,
            size=size,
            mode=mode,
            duration_seconds=time.time() - start_time,
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _require_state(self, expected: SessionState, action: str) -> None:
        if self.state != expected:
            raise SSHError(
                f"Cannot {action}: session is {self.state.value}",
                context=f"Expected state: {expected.value}",
            )

    def _log(self, message: str, level: str = "INFO") -> None:
        if self.logger:
            self.logger.log(message, level)
