"""
Local state adapter — per-user state directory and node identifier.

Runs before the enrollment pipeline and feeds it two plain values:
  - the state directory the certificate file is written into
  - the node identifier used to tag the enrollment request

The identifier is read from a file when one exists, otherwise a new
time-based UUID is generated and written there, so the same node keeps
the same identity across runs.
"""

from __future__ import annotations

import os
import uuid
from pathlib import Path

import structlog
from railway import ErrorCode
from railway.result import Result

DEFAULT_DIR_NAME = ".marabunta"
NODE_ID_MAX_LENGTH = 36
NODE_ID_FILE_MODE = 0o644

log = structlog.get_logger()


def is_file(path: Path) -> bool:
    """True if path is a readable regular file."""
    try:
        return path.is_file() and os.access(path, os.R_OK)
    except OSError:
        return False


def is_dir(path: Path) -> bool:
    """True if path is a readable directory."""
    try:
        return path.is_dir() and os.access(path, os.R_OK)
    except OSError:
        return False


def resolve_state_directory(
    directory: Path | None = None,
    dir_name: str = DEFAULT_DIR_NAME,
) -> Result[Path]:
    """
    Return the state directory, creating it if needed.

    An explicit `directory` wins; otherwise `<home>/<dir_name>`, where the
    home comes from $HOME and falls back to the password database.
    """
    if directory is not None:
        return Result.from_computation(
            lambda: _ensure_directory(directory),
            ErrorCode.STORAGE_ERROR,
            f"Cannot create state directory {directory}",
        )
    return Result.from_computation(
        Path.home,
        ErrorCode.CONFIGURATION_ERROR,
        "Cannot determine the user home directory",
    ).flat_map(lambda home: resolve_state_directory(home / dir_name))


def _ensure_directory(directory: Path) -> Path:
    if not is_dir(directory):
        directory.mkdir(parents=True, exist_ok=True)
        log.info("state.directory_created", path=str(directory))
    return directory


def load_or_create_node_id(path: Path) -> Result[str]:
    """
    Read the node identifier from `path`, or create one.

    A readable file with non-blank content wins (whitespace stripped, cut
    to 36 characters). An unreadable or blank file is replaced by a fresh
    UUID1.
    """
    existing = _read_node_id(path)
    if existing:
        log.debug("identity.loaded", path=str(path), node_id=existing)
        return Result.success(existing)

    node_id = str(uuid.uuid1())
    return Result.from_computation(
        lambda: _write_node_id(path, node_id),
        ErrorCode.STORAGE_ERROR,
        f"Could not persist node identifier to {path}",
    )


def _read_node_id(path: Path) -> str | None:
    if not is_file(path):
        return None
    try:
        content = path.read_bytes().strip()
    except OSError as e:
        log.warning("identity.unreadable", path=str(path), error=str(e))
        return None
    if not content:
        return None
    return content[:NODE_ID_MAX_LENGTH].decode("utf-8", errors="replace")


def _write_node_id(path: Path, node_id: str) -> str:
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, NODE_ID_FILE_MODE)
    with os.fdopen(fd, "w", encoding="ascii") as handle:
        handle.write(node_id)
    log.info("identity.created", path=str(path), node_id=node_id)
    return node_id
