"""pytest integration: a ``snapshot`` fixture that verifies views from inside tests.

Usage::

    @pytest.mark.asyncio
    async def test_login_form(snapshot):
        await snapshot.verify(lambda: "<form>...</form>", configurations=DARK_AND_LIGHT)

The snapshot name is derived from the test (``LoginScreen_dark_mode`` for
``TestLoginScreen.test_dark_mode``) and artifacts are filed beside the test
module. Pass ``--snapshot-record`` to record references instead of verifying.
"""

from __future__ import annotations

import asyncio
import logging
import re
from pathlib import Path
from typing import Optional

import pytest

from snapcase.engine.snapshot import SnapshotEngine
from snapcase.models.config import SnapshotSettings
from snapcase.models.configuration import Configuration, ConfigurationSet
from snapcase.models.test_case import TestCase, ViewFactory
from snapcase.renderer.base import Renderer
from snapcase.renderer.playwright_renderer import PlaywrightRenderer

logger = logging.getLogger(__name__)


def pytest_addoption(parser):
    group = parser.getgroup("snapcase", "visual snapshot verification")
    group.addoption(
        "--snapshot-record",
        action="store_true",
        default=False,
        help="Record reference snapshots instead of verifying them",
    )
    group.addoption(
        "--snapshot-config",
        default=None,
        help="JSON settings file (SNAPSHOT_* environment variables still override it)",
    )


def derive_test_case_name(
    function_name: str,
    class_name: Optional[str] = None,
    param_id: Optional[str] = None,
) -> str:
    name = re.sub(r"^test_?", "", function_name) or function_name
    if class_name:
        prefix = re.sub(r"^Test|Tests$", "", class_name) or class_name
        if prefix != name:
            name = f"{prefix}_{name}"
    if param_id:
        name = f"{name}_{re.sub(r'[^A-Za-z0-9_.-]+', '_', param_id).strip('_')}"
    return name


class SnapshotFixture:
    """Verifies views for one test, rendering with Playwright unless a renderer is given."""

    def __init__(
        self,
        settings: SnapshotSettings,
        file_path: Path,
        default_name: str,
        renderer: Optional[Renderer] = None,
    ):
        self.settings = settings
        self.file_path = file_path
        self.default_name = default_name
        self.renderer = renderer

    async def verify(
        self,
        view_factory: ViewFactory,
        name: Optional[str] = None,
        configurations: ConfigurationSet | Configuration | None = None,
        render_delay: Optional[float] = None,
        tolerance: Optional[float] = None,
    ) -> None:
        if configurations is None:
            configurations = ConfigurationSet.default()
        elif isinstance(configurations, Configuration):
            configurations = ConfigurationSet([configurations])

        delay = self.settings.render_delay if render_delay is None else render_delay
        test_case = TestCase(
            file_path=self.file_path,
            name=name or self.default_name,
            view_factory=view_factory,
            render_delay=delay,
            tolerance=tolerance,
        )
        timeout = self.settings.timeout_for(len(configurations), delay)

        if self.renderer is not None:
            engine = SnapshotEngine(self.settings, self.renderer)
            await asyncio.wait_for(engine.verify(test_case, configurations), timeout)
            return

        async with PlaywrightRenderer(render_offset_y=self.settings.render_offset_y) as renderer:
            engine = SnapshotEngine(self.settings, renderer)
            await asyncio.wait_for(engine.verify(test_case, configurations), timeout)


def fixture_for_request(request, settings: SnapshotSettings) -> SnapshotFixture:
    """Snapshot fixture named after the requesting test and anchored at its module."""
    node = request.node
    callspec = getattr(node, "callspec", None)
    name = derive_test_case_name(
        getattr(node, "originalname", node.name),
        request.cls.__name__ if request.cls is not None else None,
        callspec.id if callspec is not None else None,
    )
    return SnapshotFixture(settings, Path(str(request.path)), name)


@pytest.fixture(scope="session")
def snapshot_settings(pytestconfig) -> SnapshotSettings:
    settings = SnapshotSettings.resolve(pytestconfig.getoption("snapshot_config"))
    if pytestconfig.getoption("snapshot_record"):
        settings = settings.model_copy(update={"record_mode": True})
    logger.debug("Snapshot settings: %s", settings.model_dump())
    return settings


@pytest.fixture
def snapshot(request, snapshot_settings: SnapshotSettings) -> SnapshotFixture:
    return fixture_for_request(request, snapshot_settings)
