"""
shipit Utilities

Path normalization and byte-size formatting helpers.
"""

import os
from pathlib import Path
from typing import Optional, Union

from shipit.constants import LOG_DIR_ENV

PathLike = Union[str, Path]


def get_log_root() -> Path:
    """
    Get the directory deploy logs are written under.

    Returns:
        $SHIPIT_LOG_DIR if set, otherwise ~/.shipit/logs
    """
    override = os.environ.get(LOG_DIR_ENV)
    if override:
        return Path(override)
    return Path.home() / ".shipit" / "logs"


def ensure_trailing_separator(path: str) -> str:
    """Append a path separator unless the path already ends with one."""
    if path.endswith("/") or path.endswith("\\"):
        return path
    return path + "/"


def expand_home(path: str) -> str:
    """
    Expand a leading '~/' against the HOME environment variable.

    Paths without the prefix, or a missing HOME, leave the path untouched.
    """
    if not path.startswith("~/"):
        return path
    home = os.environ.get("HOME")
    if home is None:
        return path
    return path.replace("~", home, 1)


def resolve_against(path: str, base_dir: PathLike) -> str:
    """
    Resolve a relative path against a base directory.

    The joined path is canonicalized when it exists on disk; otherwise the
    plain join is returned. Absolute paths are returned unchanged.

    Args:
        path: Path to resolve
        base_dir: Directory relative paths are anchored to

    Returns:
        Absolute path as a string
    """
    candidate = Path(path)
    if candidate.is_absolute():
        return path

    joined = Path(base_dir) / candidate
    try:
        return str(joined.resolve(strict=True))
    except (FileNotFoundError, RuntimeError):
        return str(joined)


def absolute_folder(path: str, base_dir: Optional[PathLike] = None) -> str:
    """Make a folder path absolute and terminate it with a separator."""
    resolved = resolve_against(path, base_dir if base_dir is not None else os.getcwd())
    return ensure_trailing_separator(resolved)


def format_size(num_bytes: int) -> str:
    """
    Format a byte count the way upload progress is reported.

    Args:
        num_bytes: Size in bytes

    Returns:
        "N bytes" up to 1000, then decimal KB up to 1,000,000, then decimal MB
    """
    if num_bytes <= 1000:
        return f"{num_bytes} bytes"
    if num_bytes <= 1_000_000:
        return f"{num_bytes / 1000:.4f} KB"
    return f"{num_bytes / 1_000_000:.4f} MB"


def mask_secret(text: str, secret: Optional[str]) -> str:
    """Replace every occurrence of a secret in text with asterisks."""
    if not secret:
        return text
    return text.replace(secret, "****")
