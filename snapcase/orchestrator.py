"""Orchestrator: wires settings, renderer and engine for command-line runs."""

from __future__ import annotations

import asyncio
import logging
import re
from pathlib import Path
from typing import Optional
from urllib.parse import urlparse

from snapcase.engine.snapshot import SnapshotEngine
from snapcase.models.config import SnapshotSettings
from snapcase.models.configuration import ConfigurationSet
from snapcase.models.result import VerificationReport
from snapcase.models.test_case import TestCase
from snapcase.renderer.playwright_renderer import PlaywrightRenderer
from snapcase.store.review import FailureArtifact, approve_failure, clean_failures, find_failures

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = "snapcase.json"


def default_name(target: str) -> str:
    """Derive a snapshot name from a URL or file path."""
    parsed = urlparse(target)
    if parsed.scheme in ("http", "https"):
        raw = f"{parsed.netloc}{parsed.path}"
    else:
        raw = Path(parsed.path if parsed.scheme == "file" else target).stem
    return re.sub(r"[^A-Za-z0-9]+", "_", raw).strip("_") or "snapshot"


def build_test_case(
    target: str,
    name: str,
    anchor: Optional[Path] = None,
    render_delay: Optional[float] = None,
    default_delay: float = 0.4,
) -> TestCase:
    """Turn a URL or local HTML file into a test case.

    Artifacts are placed relative to ``anchor``; a local file anchors itself,
    a URL anchors to the config file in the working directory.
    """
    local = Path(target)
    if "://" not in target and local.exists():
        url = local.resolve().as_uri()
        file_path = anchor or local
    else:
        url = target
        file_path = anchor or Path.cwd() / DEFAULT_CONFIG_FILE

    return TestCase(
        file_path=Path(file_path).resolve(),
        name=name,
        view_factory=lambda: url,
        render_delay=default_delay if render_delay is None else render_delay,
    )


class SnapshotOrchestrator:
    """Coordinates snapshot verification and failure review."""

    def __init__(self, settings: SnapshotSettings, headless: bool = True):
        self.settings = settings
        self.headless = headless

    def verify_target(
        self,
        target: str,
        name: str,
        configurations: ConfigurationSet,
        anchor: Optional[Path] = None,
        render_delay: Optional[float] = None,
    ) -> VerificationReport:
        """Render ``target`` under every configuration and verify (or record) it."""
        test_case = build_test_case(
            target, name, anchor, render_delay, default_delay=self.settings.render_delay
        )
        return asyncio.run(self._verify(test_case, configurations))

    async def _verify(self, test_case: TestCase, configurations: ConfigurationSet) -> VerificationReport:
        logger.info(
            "=== %s %s across %d configurations ===",
            "Recording" if self.settings.record_mode else "Verifying",
            test_case.name, len(configurations),
        )
        timeout = self.settings.timeout_for(len(configurations), test_case.render_delay)
        async with PlaywrightRenderer(
            render_offset_y=self.settings.render_offset_y, headless=self.headless
        ) as renderer:
            engine = SnapshotEngine(self.settings, renderer)
            return await asyncio.wait_for(engine.verify_all(test_case, configurations), timeout)

    def find_failures(self, root: str | Path = ".") -> list[FailureArtifact]:
        return find_failures(self.settings, root)

    def approve_failures(self, root: str | Path = ".") -> list[Path]:
        """Promote every failure-store actual image to the reference store."""
        return [approve_failure(a) for a in self.find_failures(root)]

    def clean_failures(self, root: str | Path = ".") -> int:
        return clean_failures(self.find_failures(root))
