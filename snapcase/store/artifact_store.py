"""Artifact store: saves, loads, copies and deletes snapshot images under one root."""

from __future__ import annotations

import io
import logging
import shutil
from pathlib import Path

from PIL import Image

from snapcase.engine.exceptions import (
    ArtifactIOError,
    EncodingFailure,
    LoadFailure,
    ReferenceMissing,
)
from snapcase.engine.paths import REFERENCE_COPY_SUFFIX, artifact_path, resolve_artifact_path
from snapcase.models.test_case import ExecutedTestCase

logger = logging.getLogger(__name__)


class ArtifactStore:
    """One snapshot store (reference or failure) rooted at ``base_dir``."""

    def __init__(self, base_dir: str | Path, label: str = ""):
        self.base_dir = Path(base_dir)
        self.label = label or str(base_dir)

    def path_for(self, file_path: str | Path, name: str, config_id: str, suffix: str = "") -> Path:
        return artifact_path(self.base_dir, file_path, name, config_id, suffix)

    def image_path(self, executed: ExecutedTestCase, suffix: str = "") -> Path:
        return self.path_for(executed.file_path, executed.name, executed.config.id, suffix)

    def existing_artifacts(self, file_path: str | Path, name: str, config_id: str) -> list[Path]:
        """Plain image and reference copy for a (test, config) that exist on disk."""
        paths = [
            self.path_for(file_path, name, config_id),
            self.path_for(file_path, name, config_id, REFERENCE_COPY_SUFFIX),
        ]
        return [p for p in paths if p.exists()]

    async def save(self, executed: ExecutedTestCase) -> Path:
        """Write the executed image as PNG, creating folders as needed."""
        buffer = io.BytesIO()
        try:
            executed.image.save(buffer, format="PNG")
        except (OSError, ValueError, AttributeError) as e:
            raise EncodingFailure(f"Could not encode snapshot as PNG: {e}") from e

        path = resolve_artifact_path(
            self.base_dir, executed.file_path, executed.name, executed.config.id
        )
        try:
            path.write_bytes(buffer.getvalue())
        except OSError as e:
            raise ArtifactIOError(f"Could not write {path}: {e}") from e
        logger.info("Saved snapshot to <%s>", path)
        return path

    async def load(self, executed: ExecutedTestCase) -> Image.Image:
        path = self.image_path(executed)
        if not path.exists():
            raise ReferenceMissing(path)
        try:
            with Image.open(path) as image:
                image.load()
                return image.copy()
        except (OSError, ValueError) as e:
            raise LoadFailure(path, str(e)) from e

    async def copy_from(
        self,
        source: "ArtifactStore",
        executed: ExecutedTestCase,
        suffix: str = REFERENCE_COPY_SUFFIX,
    ) -> Path:
        """Copy ``source``'s image for this test case into this store under ``suffix``."""
        source_path = source.image_path(executed)
        destination = resolve_artifact_path(
            self.base_dir, executed.file_path, executed.name, executed.config.id, suffix
        )
        try:
            self._delete_if_needed(destination)
            shutil.copy2(source_path, destination)
        except OSError as e:
            raise ArtifactIOError(f"Could not copy {source_path} to {destination}: {e}") from e
        logger.info("Copied %s snapshot to <%s>", source.label, destination)
        return destination

    async def delete(self, executed: ExecutedTestCase) -> None:
        """Remove the plain image and the reference copy, if present."""
        for suffix in ("", REFERENCE_COPY_SUFFIX):
            self._delete_artifact(self.image_path(executed, suffix))

    async def delete_reference_copy(self, executed: ExecutedTestCase) -> None:
        """Remove only the reference copy, if present."""
        self._delete_artifact(self.image_path(executed, REFERENCE_COPY_SUFFIX))

    def _delete_artifact(self, path: Path) -> None:
        try:
            if self._delete_if_needed(path):
                logger.info("Deleted stale %s snapshot <%s>", self.label, path)
        except OSError as e:
            raise ArtifactIOError(f"Could not delete {path}: {e}") from e

    @staticmethod
    def _delete_if_needed(path: Path) -> bool:
        if not path.exists():
            return False
        path.unlink()
        return True
