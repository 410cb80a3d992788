"""Artifact path resolution: maps (store root, test file, test name, configuration) to a PNG path.

Layout::

    <root>/<folder derived from test file>/<name>_<configId>.png
    <failureRoot>/<folder derived from test file>/<name>_<configId>__REF.png

A relative root is placed beside the test file and gets the test folder's
name as a further subfolder (``/a/b/<root>/b``). An absolute root mirrors the
test folder below it (``<root>/a/b``), so the folder name is already the last
component and is not appended again.
"""

from __future__ import annotations

import logging
from pathlib import Path

from .exceptions import ArtifactIOError

logger = logging.getLogger(__name__)

IMAGE_EXTENSION = "png"
REFERENCE_COPY_SUFFIX = "__REF"

_REDUNDANT_FOLDERS = ("", ".", "..")


def artifact_filename(name: str, config_id: str, suffix: str = "") -> str:
    return f"{name}_{config_id}{suffix}.{IMAGE_EXTENSION}"


def _append_folder_if_needed(directory: Path, folder: str) -> Path:
    if folder in _REDUNDANT_FOLDERS or directory.name in _REDUNDANT_FOLDERS or directory.name == folder:
        return directory
    return directory / folder


def folder_directory(base_dir: str | Path, folder: Path) -> Path:
    """Artifact directory for tests living in ``folder``."""
    base = Path(base_dir)
    if base.is_absolute():
        parts = folder.parts[1:] if folder.is_absolute() else folder.parts
        directory = base.joinpath(*parts)
    else:
        directory = folder / base
    return _append_folder_if_needed(directory, folder.name)


def artifact_directory(base_dir: str | Path, file_path: str | Path) -> Path:
    return folder_directory(base_dir, Path(file_path).parent)


def artifact_path(
    base_dir: str | Path,
    file_path: str | Path,
    name: str,
    config_id: str,
    suffix: str = "",
) -> Path:
    """Pure path computation; touches nothing on disk."""
    return artifact_directory(base_dir, file_path) / artifact_filename(name, config_id, suffix)


def resolve_artifact_path(
    base_dir: str | Path,
    file_path: str | Path,
    name: str,
    config_id: str,
    suffix: str = "",
) -> Path:
    """Like ``artifact_path`` but creates the containing directory when missing."""
    path = artifact_path(base_dir, file_path, name, config_id, suffix)
    if not path.parent.exists():
        logger.debug("Creating snapshot directory %s", path.parent)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ArtifactIOError(f"Could not create directory {path.parent}: {e}") from e
    return path


def locate_test_folder(directory: str | Path, base_dir: str | Path) -> Path | None:
    """Invert ``folder_directory``: find the test folder an artifact directory belongs to."""
    directory = Path(directory)
    base = Path(base_dir)
    candidates: list[Path] = []

    if base.is_absolute():
        try:
            relative = directory.relative_to(base)
        except ValueError:
            return None
        candidates.append(Path(base.anchor).joinpath(*relative.parts))
    else:
        parts = directory.parts
        n = len(base.parts)
        if n and len(parts) > n and parts[-n - 1:-1] == base.parts:
            candidates.append(Path(*parts[:-n - 1]))
        if n and len(parts) >= n and parts[-n:] == base.parts:
            candidates.append(Path(*parts[:-n]))

    for folder in candidates:
        if folder_directory(base, folder) == directory:
            return folder
    return None


def counterpart_path(path: str | Path, from_base: str | Path, to_base: str | Path) -> Path | None:
    """Map an artifact filed under ``from_base`` to the same artifact under ``to_base``."""
    path = Path(path)
    folder = locate_test_folder(path.parent, from_base)
    if folder is None:
        return None
    return folder_directory(to_base, folder) / path.name
