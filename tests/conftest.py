"""Shared fixtures and paramiko stand-ins for shipit tests."""

import io

import pytest

from shipit.models.config import Config
from shipit.models.results import TransferResult
from shipit.exceptions import TransferError
from shipit.services.ssh_service import RemoteSession


@pytest.fixture(autouse=True)
def isolated_logs(tmp_path, monkeypatch):
    """Keep deploy logs out of the real home directory."""
    log_dir = tmp_path / "logs"
    monkeypatch.setenv("SHIPIT_LOG_DIR", str(log_dir))
    return log_dir


def make_config(**kwargs) -> Config:
    """Build a resolved Config with test defaults."""
    values = dict(
        host="target.local",
        port=22,
        username="root",
        password="secret",
        key=None,
        target_folder="/p/target/",
        target="armv7-unknown-linux-gnueabihf",
        remote_folder="/tmp/binaries/",
        debug=False,
        build=False,
        binaries=("app",),
        profile="release",
    )
    values.update(kwargs)
    return Config(**values)


class FakeChannel:
    """Records what a paramiko Channel would have been asked to do."""

    def __init__(self, exit_status=0, stdout=b"", stderr=b"", incoming=b""):
        self.exit_status = exit_status
        self.stdout = stdout
        self.stderr = stderr
        self.incoming = bytearray(incoming)
        self.sent = bytearray()
        self.command = None
        self.closed = False
        self.calls = []

    def exec_command(self, command):
        self.command = command
        self.calls.append("exec_command")

    def sendall(self, data):
        self.sent += data
        self.calls.append("sendall")

    def recv(self, size):
        chunk = bytes(self.incoming[:size])
        del self.incoming[:size]
        return chunk

    def shutdown_write(self):
        self.calls.append("shutdown_write")

    def recv_exit_status(self):
        self.calls.append("recv_exit_status")
        return self.exit_status

    def makefile(self, mode="rb"):
        return io.BytesIO(self.stdout)

    def makefile_stderr(self, mode="rb"):
        return io.BytesIO(self.stderr)

    def close(self):
        self.closed = True
        self.calls.append("close")


class FakeTransport:
    """Minimal paramiko.Transport replacement."""

    def __init__(self, channels=None, authenticated=True, auth_error=None):
        self.channels = list(channels or [])
        self.opened = []
        self.authenticated = authenticated
        self.auth_error = auth_error
        self.auth_calls = []
        self.password_fallback = None
        self._is_authenticated = False
        self.started = False
        self.closed = False

    def start_client(self, timeout=None):
        self.started = True

    def get_remote_server_key(self):
        return None

    def auth_password(self, username, password, fallback=True):
        self.auth_calls.append(("password", username, password))
        self.password_fallback = fallback
        self._finish_auth()

    def auth_publickey(self, username, pkey):
        self.auth_calls.append(("publickey", username, pkey))
        self._finish_auth()

    def _finish_auth(self):
        if self.auth_error is not None:
            raise self.auth_error
        self._is_authenticated = self.authenticated

    def is_authenticated(self):
        return self._is_authenticated

    def open_session(self, timeout=None):
        channel = self.channels.pop(0) if self.channels else FakeChannel()
        self.opened.append(channel)
        return channel

    def close(self):
        self.closed = True


class FakeSocket:
    def __init__(self):
        self.closed = False

    def close(self):
        self.closed = True


def make_session(config, transport, logger=None) -> RemoteSession:
    """RemoteSession wired to a FakeTransport."""
    return RemoteSession(
        config,
        logger=logger,
        socket_factory=lambda address, timeout: FakeSocket(),
        transport_factory=lambda sock: transport,
    )


class FakeSession:
    """Records the orchestrator's use of a RemoteSession; also acts as its factory."""

    def __init__(self, exists=True, fail_upload=None, fail_auth=None):
        self.exists = exists
        self.fail_upload = fail_upload
        self.fail_auth = fail_auth
        self.calls = []
        self.ssh = None
        self.closed = False

    def __call__(self, ssh, logger=None):
        self.ssh = ssh
        return self

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.closed = True
        self.calls.append(("close",))
        return False

    def connect(self):
        self.calls.append(("connect",))

    def authenticate(self):
        self.calls.append(("authenticate",))
        if self.fail_auth is not None:
            raise self.fail_auth

    def directory_exists(self, path):
        self.calls.append(("directory_exists", path))
        return self.exists

    def provision_directory(self, path, user, password):
        self.calls.append(("provision_directory", path, user, password))

    def upload_file(self, local_path, remote_path):
        self.calls.append(("upload_file", local_path, remote_path))
        if remote_path == self.fail_upload:
            raise TransferError(f"Failed to read {local_path}")
        return TransferResult(local_path=local_path, remote_path=remote_path, size=10, mode=0o755)

    def names(self):
        return [call[0] for call in self.calls]
