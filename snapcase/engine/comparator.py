"""Image comparison: scalar difference metric and tolerance check."""

from __future__ import annotations

import logging
from functools import reduce

from PIL import Image, ImageChops

from .exceptions import EncodingFailure, MismatchExceedsTolerance

logger = logging.getLogger(__name__)

# Differences are reported per million compared pixels
DIFF_SCALE = 1_000_000

_COMPARABLE_MODE = "RGBA"
_MAX_CHANNEL = 255


def _comparable(image: Image.Image, label: str) -> Image.Image:
    if not isinstance(image, Image.Image):
        raise EncodingFailure(f"{label} is not an image: {type(image).__name__}")
    try:
        return image.convert(_COMPARABLE_MODE)
    except (OSError, ValueError) as e:
        raise EncodingFailure(f"Could not convert {label} image to {_COMPARABLE_MODE}: {e}") from e


def difference(actual: Image.Image, reference: Image.Image) -> float:
    """Return the difference between two images in differences per million pixels.

    Each pixel contributes its largest channel delta scaled to [0, 1], so the
    metric is symmetric, zero only for pixel-identical images and grows with
    both the number and the magnitude of differing pixels. Images of different
    dimensions differ everywhere.
    """
    a = _comparable(actual, "actual")
    b = _comparable(reference, "reference")

    if a.size != b.size:
        logger.debug("Image sizes differ: %s vs %s", a.size, b.size)
        return float(DIFF_SCALE)

    pixel_count = a.size[0] * a.size[1]
    if pixel_count == 0:
        return 0.0

    delta = ImageChops.difference(a, b)
    peak = reduce(ImageChops.lighter, delta.split())
    weighted = sum(level * count for level, count in enumerate(peak.histogram()))
    return weighted * DIFF_SCALE / (_MAX_CHANNEL * pixel_count)


def compare(actual: Image.Image, reference: Image.Image, tolerance: float) -> float:
    """Compare two images, raising ``MismatchExceedsTolerance`` when ``diff > tolerance``."""
    diff = difference(actual, reference)
    logger.debug("Image diff %.2f (tolerance %.2f)", diff, tolerance)
    if diff > tolerance:
        raise MismatchExceedsTolerance(diff, tolerance)
    return diff
