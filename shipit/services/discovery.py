"""Binary target discovery from build-system project metadata."""

import json
import subprocess
from pathlib import Path
from typing import List, Optional, Protocol

from shipit.constants import BINARY_TARGET_KIND, BUILD_TOOL, PROJECT_DESCRIPTOR
from shipit.exceptions import DiscoveryError


class BinaryDiscovery(Protocol):
    """Capability: list the binary targets a project declares."""

    def discover(self, project_root: Path) -> List[str]:
        """Return declared binary target names for the project at project_root."""
        ...


class NullBinaryDiscovery:
    """Discovery for hosts without the build system: never finds anything."""

    def discover(self, project_root: Path) -> List[str]:
        return []


class CargoBinaryDiscovery:
    """Discovers binary targets of the root package via `cargo metadata`."""

    def __init__(self, cargo: str = BUILD_TOOL, timeout: Optional[int] = 60):
        self.cargo = cargo
        self.timeout = timeout

    def discover(self, project_root: Path) -> List[str]:
        """
        List bin-kind targets of the root package.

        Args:
            project_root: Directory to run cargo in

        Returns:
            Binary target names in manifest order

        Raises:
            DiscoveryError: If cargo fails or no root package exists
        """
        metadata = self._load_metadata(project_root)
        return binaries_from_metadata(metadata)

    def _load_metadata(self, project_root: Path) -> dict:
        command = [self.cargo, "metadata", "--format-version", "1", "--no-deps"]
        try:
            result = subprocess.run(
                command,
                cwd=project_root,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except FileNotFoundError:
            raise DiscoveryError(f"'{self.cargo}' executable not found")
        except subprocess.TimeoutExpired:
            raise DiscoveryError(f"'{' '.join(command)}' timed out after {self.timeout}s")

        if result.returncode != 0:
            raise DiscoveryError(
                "cargo metadata failed",
                context=result.stderr.strip() or f"exit status {result.returncode}",
            )

        try:
            return json.loads(result.stdout)
        except json.JSONDecodeError as e:
            raise DiscoveryError(f"Unparseable cargo metadata: {e}")


def find_root_package(metadata: dict) -> dict:
    """
    Pick the root package out of `cargo metadata` output.

    Prefers the resolve root, then the package whose manifest sits at the
    workspace root, then the only package of a single-package workspace.

    Raises:
        DiscoveryError: If no root package can be determined
    """
    packages = metadata.get("packages") or []

    resolve = metadata.get("resolve") or {}
    root_id = resolve.get("root")
    if root_id:
        for package in packages:
            if package.get("id") == root_id:
                return package

    workspace_root = metadata.get("workspace_root")
    if workspace_root:
        root_manifest = Path(workspace_root) / PROJECT_DESCRIPTOR
        for package in packages:
            if Path(package.get("manifest_path", "")) == root_manifest:
                return package

    if len(packages) == 1:
        return packages[0]

    raise DiscoveryError(
        "No root package found - are you in a Cargo project?",
        context=f"{len(packages)} workspace member(s), none at the workspace root",
    )


def binaries_from_metadata(metadata: dict) -> List[str]:
    """Extract bin-kind target names of the root package."""
    package = find_root_package(metadata)
    return [
        target["name"]
        for target in package.get("targets", [])
        if BINARY_TARGET_KIND in target.get("kind", [])
    ]
