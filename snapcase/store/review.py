"""Failure review: find, approve and clean artifacts left in the failure store."""

from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional

from snapcase.engine.exceptions import ArtifactIOError
from snapcase.engine.paths import IMAGE_EXTENSION, REFERENCE_COPY_SUFFIX, counterpart_path
from snapcase.models.config import SnapshotSettings

logger = logging.getLogger(__name__)


@dataclass
class FailureArtifact:
    actual_path: Path
    reference_path: Path  # where approving files the actual image
    reference_copy_path: Optional[Path] = None

    @property
    def has_reference(self) -> bool:
        return self.reference_path.exists()


def _candidate_images(settings: SnapshotSettings, search_root: Path) -> Iterable[Path]:
    failure_base = Path(settings.failure_path)
    root = failure_base if failure_base.is_absolute() else search_root
    if not root.exists():
        return []
    return sorted(root.rglob(f"*.{IMAGE_EXTENSION}"))


def find_failures(settings: SnapshotSettings, search_root: str | Path = ".") -> list[FailureArtifact]:
    """List actual images in the failure store together with their reference locations.

    With a relative failure path the store is spread beside each test file, so
    ``search_root`` is scanned for directories laid out like failure stores.
    """
    search_root = Path(search_root).resolve()
    failures: list[FailureArtifact] = []
    for path in _candidate_images(settings, search_root):
        if path.stem.endswith(REFERENCE_COPY_SUFFIX):
            continue
        reference_path = counterpart_path(path, settings.failure_path, settings.reference_path)
        if reference_path is None:
            continue
        copy_path = path.with_name(f"{path.stem}{REFERENCE_COPY_SUFFIX}{path.suffix}")
        failures.append(FailureArtifact(
            actual_path=path,
            reference_path=reference_path,
            reference_copy_path=copy_path if copy_path.exists() else None,
        ))
    logger.debug("Found %d failure artifacts under %s", len(failures), search_root)
    return failures


def approve_failure(artifact: FailureArtifact) -> Path:
    """Promote a failure-store actual image to the reference store."""
    try:
        artifact.reference_path.parent.mkdir(parents=True, exist_ok=True)
        shutil.move(str(artifact.actual_path), str(artifact.reference_path))
        if artifact.reference_copy_path is not None and artifact.reference_copy_path.exists():
            artifact.reference_copy_path.unlink()
    except OSError as e:
        raise ArtifactIOError(f"Could not approve {artifact.actual_path}: {e}") from e
    logger.info("Approved <%s> as reference <%s>", artifact.actual_path, artifact.reference_path)
    return artifact.reference_path


def clean_failures(artifacts: Iterable[FailureArtifact]) -> int:
    """Delete failure artifacts and their reference copies; returns the number of files removed."""
    removed = 0
    for artifact in artifacts:
        for path in (artifact.actual_path, artifact.reference_copy_path):
            if path is None or not path.exists():
                continue
            try:
                path.unlink()
            except OSError as e:
                raise ArtifactIOError(f"Could not delete {path}: {e}") from e
            removed += 1
    logger.info("Removed %d failure artifacts", removed)
    return removed
