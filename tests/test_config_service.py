"""Unit tests for configuration loading, merging and build-need detection."""

import json
import os
from pathlib import Path
from unittest.mock import Mock

import pytest

from shipit.exceptions import ConfigurationError, DiscoveryError, MissingRequiredFieldError
from shipit.logger import DeployLogger
from shipit.models.config import FileConfig, RuntimeOverrides
from shipit.services.config_service import ConfigService
from shipit.services.discovery import NullBinaryDiscovery


def write_config(path: Path, **fields) -> Path:
    data = {"target_folder": "/p/target/"}
    data.update(fields)
    path.write_text(json.dumps(data))
    return path


def full_record(**kwargs) -> FileConfig:
    values = dict(
        target_folder="/p/target/",
        host="file-host",
        port=2222,
        username="file-user",
        password="file-pass",
        target="aarch64-unknown-linux-gnu",
        remote_folder="/opt/bin/",
        profile="dist",
    )
    values.update(kwargs)
    return FileConfig(**values)


@pytest.fixture
def service(tmp_path):
    """ConfigService outside a Cargo project with no discovery."""
    return ConfigService(tmp_path, discovery=NullBinaryDiscovery(), logger=Mock(spec=DeployLogger))


class TestLoad:
    """Reading the JSON file and anchoring relative paths."""

    def test_relative_target_folder_resolves_against_config_dir(self, service):
        path = Path("/home/u/proj/shipit.json")
        file_config = service._resolve_relative_paths(FileConfig(target_folder="build"), path)
        assert file_config.target_folder == "/home/u/proj/build/"

    def test_absolute_target_folder_gets_trailing_separator(self, service, tmp_path):
        path = write_config(tmp_path / "shipit.json", target_folder="/opt/target")
        assert service.load(path).target_folder == "/opt/target/"

    def test_relative_key_resolves_against_config_dir(self, service, tmp_path):
        (tmp_path / "keys").mkdir()
        (tmp_path / "keys" / "id").write_text("key")
        path = write_config(tmp_path / "shipit.json", key="keys/id")
        assert service.load(path).key == str((tmp_path / "keys" / "id").resolve())

    def test_home_relative_key_expands(self, service, tmp_path, monkeypatch):
        monkeypatch.setenv("HOME", "/home/u")
        path = write_config(tmp_path / "shipit.json", key="~/.ssh/id_rsa")
        assert service.load(path).key == "/home/u/.ssh/id_rsa"

    def test_missing_file_is_configuration_error(self, service, tmp_path):
        with pytest.raises(ConfigurationError) as exc:
            service.load(tmp_path / "missing.json")
        assert "Failed to read configuration file" in exc.value.message
        assert "--init" in exc.value.context

    def test_malformed_json(self, service, tmp_path):
        path = tmp_path / "shipit.json"
        path.write_text("{not json")
        with pytest.raises(ConfigurationError):
            service.load(path)

    def test_target_folder_required(self, service, tmp_path):
        path = tmp_path / "shipit.json"
        path.write_text(json.dumps({"host": "h"}))
        with pytest.raises(ConfigurationError, match="target_folder"):
            service.load(path)

    @pytest.mark.parametrize("port", ["22", 0, 70000, True])
    def test_invalid_port(self, service, tmp_path, port):
        path = write_config(tmp_path / "shipit.json", port=port)
        with pytest.raises(ConfigurationError, match="port"):
            service.load(path)

    def test_unknown_keys_ignored(self, service, tmp_path):
        path = write_config(tmp_path / "shipit.json", host="h", extra=True)
        assert service.load(path).host == "h"


class TestResolve:
    """Merging persisted values with overrides."""

    def test_override_wins_for_host(self, service):
        config = service.resolve(full_record(), RuntimeOverrides(host="cli-host"))
        assert config.host == "cli-host"

    def test_persisted_values_used_without_overrides(self, service):
        config = service.resolve(full_record(), RuntimeOverrides())
        assert config.host == "file-host"
        assert config.port == 2222
        assert config.username == "file-user"
        assert config.password == "file-pass"
        assert config.target == "aarch64-unknown-linux-gnu"
        assert config.remote_folder == "/opt/bin/"

    @pytest.mark.parametrize("field_name", ["host", "username", "target"])
    def test_missing_required_field(self, service, field_name):
        record = full_record(**{field_name: None})
        with pytest.raises(MissingRequiredFieldError) as exc:
            service.resolve(record, RuntimeOverrides())
        assert exc.value.field_name == field_name

    def test_override_supplies_required_field(self, service):
        config = service.resolve(full_record(host=None), RuntimeOverrides(host="cli-host"))
        assert config.host == "cli-host"

    def test_defaults(self, service):
        record = FileConfig(target_folder="/p/target/", host="h", username="u", target="")
        config = service.resolve(record, RuntimeOverrides())
        assert config.port == 22
        assert config.password == ""
        assert config.key is None
        assert config.remote_folder == "/tmp/binaries/"
        assert config.profile == "release"

    def test_empty_override_does_not_clobber(self, service):
        config = service.resolve(full_record(), RuntimeOverrides(host="", password=""))
        assert config.host == "file-host"
        assert config.password == "file-pass"

    def test_empty_target_override_selects_host_build(self, service):
        config = service.resolve(full_record(), RuntimeOverrides(target=""))
        assert config.target == ""

    def test_target_folder_override_requires_target(self, service):
        with pytest.raises(MissingRequiredFieldError) as exc:
            service.resolve(full_record(), RuntimeOverrides(target_folder="/other/out"))
        assert exc.value.field_name == "target"
        assert exc.value.flag == "--target"

    def test_target_folder_override_with_empty_target(self, service):
        overrides = RuntimeOverrides(target_folder="/other/out", target="")
        config = service.resolve(full_record(), overrides)
        assert config.target_folder == "/other/out/"
        assert config.target == ""

    def test_target_folder_override_keeps_target_override(self, service):
        overrides = RuntimeOverrides(target_folder="/other/out/", target="x86_64-unknown-linux-musl")
        config = service.resolve(full_record(), overrides)
        assert config.target == "x86_64-unknown-linux-musl"

    def test_persisted_profile_beats_override(self, service):
        config = service.resolve(full_record(profile="dist"), RuntimeOverrides(profile="release"))
        assert config.profile == "dist"

    def test_profile_override_used_when_file_has_none(self, service):
        config = service.resolve(full_record(profile=None), RuntimeOverrides(profile="bench"))
        assert config.profile == "bench"

    def test_remote_folder_gets_trailing_slash(self, service):
        config = service.resolve(full_record(), RuntimeOverrides(remote_folder="/srv/app"))
        assert config.remote_folder == "/srv/app/"

    def test_key_override_expands_home(self, service, monkeypatch):
        monkeypatch.setenv("HOME", "/home/u")
        config = service.resolve(full_record(), RuntimeOverrides(key="~/.ssh/deploy"))
        assert config.key == "/home/u/.ssh/deploy"

    def test_explicit_binaries_skip_discovery(self, tmp_path):
        discovery = Mock()
        service = ConfigService(tmp_path, discovery=discovery, logger=Mock(spec=DeployLogger))
        config = service.resolve(full_record(), RuntimeOverrides(binaries=["a", "b"]))
        assert config.binaries == ("a", "b")
        discovery.discover.assert_not_called()

    def test_discovered_binaries_used(self, tmp_path):
        discovery = Mock()
        discovery.discover.return_value = ["server", "cli"]
        service = ConfigService(tmp_path, discovery=discovery, logger=Mock(spec=DeployLogger))
        config = service.resolve(full_record(), RuntimeOverrides())
        assert config.binaries == ("server", "cli")
        discovery.discover.assert_called_once_with(tmp_path)

    def test_discovery_failure_is_a_warning(self, tmp_path):
        discovery = Mock()
        discovery.discover.side_effect = DiscoveryError("cargo metadata failed")
        logger = Mock(spec=DeployLogger)
        service = ConfigService(tmp_path, discovery=discovery, logger=logger)
        config = service.resolve(full_record(), RuntimeOverrides())
        assert config.binaries == ()
        logger.warning.assert_called_once()

    def test_empty_discovery_is_a_warning(self, service):
        config = service.resolve(full_record(), RuntimeOverrides())
        assert config.binaries == ()
        service.logger.warning.assert_called_once()

    def test_forced_build(self, service):
        config = service.resolve(full_record(), RuntimeOverrides(build=True))
        assert config.build is True


class TestArtifactPaths:
    def test_host_native_release_path(self, service):
        record = FileConfig(target_folder="/p/target/", host="h", username="u", target="")
        config = service.resolve(record, RuntimeOverrides(binaries=["app"]))
        assert config.local_path("app") == "/p/target/release/app"

    def test_cross_debug_path(self, service):
        record = FileConfig(target_folder="/p/target/", host="h", username="u", target="armv7")
        config = service.resolve(record, RuntimeOverrides(binaries=["app"], debug=True))
        assert config.local_path("app") == "/p/target/armv7/debug/app"
        assert config.remote_path("app") == "/tmp/binaries/app"


class TestShouldAutoBuild:
    """mtime-based staleness heuristic."""

    @pytest.fixture
    def project(self, tmp_path):
        (tmp_path / "Cargo.toml").write_text("[package]\nname = \"app\"\n")
        out = tmp_path / "target" / "armv7" / "release"
        out.mkdir(parents=True)
        return tmp_path, out

    def _service(self, root):
        return ConfigService(root, discovery=NullBinaryDiscovery(), logger=Mock(spec=DeployLogger))

    def _set_mtime(self, path, mtime):
        os.utime(path, (mtime, mtime))

    def test_not_a_project_root(self, tmp_path):
        service = self._service(tmp_path)
        assert service.should_auto_build(f"{tmp_path}/target/", "", ["app"], "release", False) is False

    def test_missing_artifact(self, project):
        root, _ = project
        service = self._service(root)
        assert service.should_auto_build(f"{root}/target/", "armv7", ["app"], "release", False) is True

    def test_descriptor_newer_than_artifacts(self, project):
        root, out = project
        for name in ("app", "tool"):
            (out / name).write_bytes(b"bin")
            self._set_mtime(out / name, 1_000_000)
        self._set_mtime(root / "Cargo.toml", 2_000_000)

        service = self._service(root)
        assert service.should_auto_build(f"{root}/target/", "armv7", ["app", "tool"], "release", False)

    def test_artifacts_newer_than_descriptor(self, project):
        root, out = project
        self._set_mtime(root / "Cargo.toml", 1_000_000)
        for name in ("app", "tool"):
            (out / name).write_bytes(b"bin")
            self._set_mtime(out / name, 2_000_000)

        service = self._service(root)
        assert not service.should_auto_build(f"{root}/target/", "armv7", ["app", "tool"], "release", False)

    def test_debug_uses_debug_directory(self, project):
        root, out = project
        (out / "app").write_bytes(b"bin")
        self._set_mtime(root / "Cargo.toml", 1_000_000)
        self._set_mtime(out / "app", 2_000_000)

        service = self._service(root)
        assert service.should_auto_build(f"{root}/target/", "armv7", ["app"], "release", True) is True


class TestTemplate:
    """Init template and round trip through the file."""

    def test_template_defaults(self, service, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        template = service.template()
        assert template.host == "embedded-linux-target"
        assert template.port == 22
        assert template.username == "root"
        assert template.password == "password"
        assert template.key is None
        assert template.target_folder == f"{os.getcwd()}/target/"
        assert template.target == "armv7-unknown-linux-gnueabihf"
        assert template.remote_folder == "/tmp/binaries/"
        assert template.profile == "release"

    def test_template_applies_overrides(self, service):
        template = service.template(RuntimeOverrides(host="10.0.0.5", port=2200, target_folder="/out/"))
        assert template.host == "10.0.0.5"
        assert template.port == 2200
        assert template.target_folder == "/out/"
        assert template.target is None

    def test_written_file_is_indented_in_field_order(self, service, tmp_path):
        path = service.write(service.template(), tmp_path / "shipit.json")
        text = path.read_text()
        assert text.startswith('{\n  "host": ')
        assert list(json.loads(text)) == [
            "host",
            "port",
            "username",
            "password",
            "key",
            "target_folder",
            "target",
            "remote_folder",
            "profile",
        ]

    def test_round_trip(self, service, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        template = service.template()
        path = service.write(template, tmp_path / "shipit.json")

        config = service.resolve(service.load(path), RuntimeOverrides())

        assert config.host == template.host
        assert config.port == template.port
        assert config.username == template.username
        assert config.password == template.password
        assert config.key == template.key
        assert config.target_folder == template.target_folder
        assert config.target == template.target
        assert config.remote_folder == template.remote_folder
        assert config.profile == template.profile
        assert config.build is False
