"""Snapshot engine exceptions."""

from __future__ import annotations

from pathlib import Path


class SnapshotError(Exception):
    """Base class for snapshot errors."""


class ReferenceMissing(SnapshotError):
    """No reference image has been recorded yet."""

    def __init__(self, path: Path):
        self.path = path
        super().__init__(f"Reference image does not exist: {path}")


class LoadFailure(SnapshotError):
    """Reference image exists but could not be decoded."""

    def __init__(self, path: Path, reason: str = ""):
        self.path = path
        message = f"Could not load reference image {path}"
        super().__init__(f"{message}: {reason}" if reason else message)


class EncodingFailure(SnapshotError):
    """Image could not be converted to PNG or to comparable pixels."""


class MismatchExceedsTolerance(SnapshotError):
    """Rendered image differs from the reference by more than the tolerance."""

    def __init__(self, diff: float, tolerance: float):
        self.diff = diff
        self.tolerance = tolerance
        super().__init__(
            f"Reference image not equal: diff {diff:.2f} exceeds tolerance {tolerance:.2f}"
        )


class RenderFailure(SnapshotError):
    """Renderer could not produce an image."""


class DidRecord(SnapshotError):
    """Raised after every record-mode write so recording never reports as a pass."""

    def __init__(self, path: Path):
        self.path = path
        super().__init__(f"Recorded reference image to {path}; disable record mode to verify")


class ArtifactIOError(SnapshotError):
    """Writing, copying or deleting a store artifact failed."""
