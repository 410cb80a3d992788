"""Pytest configuration and shared fixtures."""

from pathlib import Path
from typing import Optional
from unittest.mock import patch

import pytest
from PIL import Image

from snapcase.models.config import SnapshotSettings
from snapcase.models.configuration import (
    DESKTOP,
    MOBILE,
    Configuration,
    ConfigurationSet,
    InterfaceStyle,
)
from snapcase.models.test_case import TestCase


# ============================================================================
# Image helpers
# ============================================================================


def solid_image(color=(255, 255, 255), size=(40, 30)) -> Image.Image:
    """Create a single-color RGB image."""
    return Image.new("RGB", size, color)


def image_with_pixel(base=(255, 255, 255), pixel=(0, 0), color=(0, 0, 0), size=(40, 30)) -> Image.Image:
    """Create a single-color image with one differing pixel."""
    image = solid_image(base, size)
    image.putpixel(pixel, color)
    return image


class FakeRenderer:
    """In-memory renderer returning preset images per configuration id."""

    def __init__(self, default: Optional[Image.Image] = None, images: Optional[dict] = None):
        self.default = default if default is not None else solid_image()
        self.images: dict[str, Image.Image] = dict(images or {})
        self.errors: dict[str, Exception] = {}
        self.calls: list[tuple[str, str]] = []

    async def render(self, test_case: TestCase, config: Configuration) -> Image.Image:
        self.calls.append((test_case.name, config.id))
        if config.id in self.errors:
            raise self.errors[config.id]
        return self.images.get(config.id, self.default).copy()


# ============================================================================
# Settings Fixtures
# ============================================================================


@pytest.fixture
def reference_root(tmp_path: Path) -> Path:
    return tmp_path / "reference"


@pytest.fixture
def failure_root(tmp_path: Path) -> Path:
    return tmp_path / "failures"


@pytest.fixture
def settings(reference_root: Path, failure_root: Path) -> SnapshotSettings:
    """Verify-mode settings with absolute store roots under tmp_path."""
    return SnapshotSettings(
        reference_path=str(reference_root),
        failure_path=str(failure_root),
        record_mode=False,
        tolerance=0.0,
        render_delay=0.0,
    )


@pytest.fixture
def record_settings(settings: SnapshotSettings) -> SnapshotSettings:
    return settings.model_copy(update={"record_mode": True})


# ============================================================================
# Test Case Fixtures
# ============================================================================


@pytest.fixture
def test_file(tmp_path: Path) -> Path:
    """Path of a (fictional) calling test module."""
    return tmp_path / "project" / "tests" / "test_login.py"


@pytest.fixture
def test_case(test_file: Path) -> TestCase:
    return TestCase(
        file_path=test_file,
        name="Login",
        view_factory=lambda: "<p>login</p>",
        render_delay=0.0,
    )


@pytest.fixture
def light_config() -> Configuration:
    return Configuration(device=DESKTOP, interface_style=InterfaceStyle.LIGHT)


@pytest.fixture
def dark_config() -> Configuration:
    return Configuration(device=DESKTOP, interface_style=InterfaceStyle.DARK)


@pytest.fixture
def mobile_config() -> Configuration:
    return Configuration(device=MOBILE, interface_style=InterfaceStyle.DARK)


@pytest.fixture
def configuration_set(light_config, dark_config, mobile_config) -> ConfigurationSet:
    return ConfigurationSet().add(light_config).add(dark_config).add(mobile_config)


@pytest.fixture
def renderer() -> FakeRenderer:
    return FakeRenderer()


class FakeBrowserRenderer(FakeRenderer):
    """FakeRenderer usable where a PlaywrightRenderer is constructed."""

    instances: list = []

    def __init__(self, render_offset_y: int = 0, headless: bool = True):
        super().__init__()
        self.render_offset_y = render_offset_y
        self.headless = headless
        self.closed = False
        FakeBrowserRenderer.instances.append(self)

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        self.closed = True


@pytest.fixture
def fake_browser():
    """Replace the browser renderer used by command-line runs."""
    FakeBrowserRenderer.instances = []
    with patch("snapcase.orchestrator.PlaywrightRenderer", FakeBrowserRenderer):
        yield FakeBrowserRenderer
