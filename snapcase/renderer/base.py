"""Renderer contract consumed by the snapshot engine."""

from __future__ import annotations

from typing import Protocol

from PIL import Image

from snapcase.models.configuration import Configuration
from snapcase.models.test_case import TestCase


class Renderer(Protocol):
    """Produces a fixed-size image of a test case's view under a configuration.

    Implementations render at ``device size + (0, render_offset_y)``, wait the
    test case's render delay, capture, then crop the top ``render_offset_y``
    rows. Any failure is raised as ``RenderFailure``.
    """

    async def render(self, test_case: TestCase, config: Configuration) -> Image.Image:
        """Render ``test_case`` under ``config``."""
