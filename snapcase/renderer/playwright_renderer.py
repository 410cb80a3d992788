"""Headless-browser renderer: captures a view with Playwright and crops the offset band."""

from __future__ import annotations

import inspect
import io
import logging
from typing import Any, Optional

from PIL import Image
from playwright.async_api import Browser, BrowserContext, Page, Playwright, async_playwright
from playwright.async_api import Error as PlaywrightError

from snapcase.engine.exceptions import RenderFailure
from snapcase.models.configuration import Configuration
from snapcase.models.test_case import TestCase

logger = logging.getLogger(__name__)

_URL_PREFIXES = ("http://", "https://", "file://", "data:")


async def launch_browser(playwright: Playwright, headless: bool = True) -> Browser:
    """Launch Chromium for rendering."""
    return await playwright.chromium.launch(
        headless=headless,
        args=[
            "--hide-scrollbars",
            "--font-render-hinting=none",
        ],
    )


async def create_render_context(
    browser: Browser,
    viewport: dict,
    color_scheme: str = "no-preference",
) -> BrowserContext:
    """Create an isolated browser context of exactly ``viewport`` pixels."""
    return await browser.new_context(
        viewport=viewport,
        device_scale_factor=1,
        color_scheme=color_scheme,
        reduced_motion="reduce",
        locale="en-US",
        timezone_id="UTC",
    )


def crop_offset(image: Image.Image, offset_y: int) -> Image.Image:
    """Drop the top ``offset_y`` rows of ``image``."""
    width, height = image.size
    if offset_y < 0 or offset_y >= height:
        raise RenderFailure(f"Cannot crop {offset_y}px from a {width}x{height} capture")
    if offset_y == 0:
        return image
    return image.crop((0, offset_y, width, height))


class PlaywrightRenderer:
    """Renders HTML markup or URLs produced by a test case's view factory."""

    def __init__(
        self,
        render_offset_y: int = 0,
        headless: bool = True,
        browser: Optional[Browser] = None,
    ):
        self.render_offset_y = render_offset_y
        self.headless = headless
        self._browser = browser
        self._owns_browser = browser is None
        self._playwright: Optional[Playwright] = None

    async def __aenter__(self) -> "PlaywrightRenderer":
        await self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def start(self) -> None:
        if self._browser is not None:
            return
        logger.debug("Launching Chromium for rendering (headless=%s)", self.headless)
        self._playwright = await async_playwright().start()
        self._browser = await launch_browser(self._playwright, headless=self.headless)

    async def close(self) -> None:
        if self._owns_browser and self._browser is not None:
            await self._browser.close()
            self._browser = None
        if self._playwright is not None:
            await self._playwright.stop()
            self._playwright = None

    async def render(self, test_case: TestCase, config: Configuration) -> Image.Image:
        width, height = config.size
        viewport = {"width": width, "height": height + self.render_offset_y}

        view = await self._build_view(test_case)
        try:
            await self.start()
            context = await create_render_context(
                self._browser, viewport=viewport, color_scheme=config.interface_style.color_scheme
            )
        except PlaywrightError as e:
            raise RenderFailure(
                f"Could not create a {viewport['width']}x{viewport['height']} surface for {config.id}: {e}"
            ) from e

        try:
            page = await context.new_page()
            await self._load_view(page, view)
            # Let deferred layout, fonts and animations settle
            await page.wait_for_timeout(test_case.render_delay * 1000)
            png = await page.screenshot(type="png", full_page=False)
        except PlaywrightError as e:
            raise RenderFailure(f"Could not capture {test_case.name} under {config.id}: {e}") from e
        finally:
            await context.close()

        try:
            with Image.open(io.BytesIO(png)) as capture:
                capture.load()
                image = capture.convert("RGB")
        except (OSError, ValueError) as e:
            raise RenderFailure(f"Could not decode capture of {test_case.name}: {e}") from e

        logger.debug("Rendered %s under %s at %dx%d", test_case.name, config.id, *image.size)
        return crop_offset(image, self.render_offset_y)

    @staticmethod
    async def _build_view(test_case: TestCase) -> Any:
        try:
            view = test_case.view_factory()
            if inspect.isawaitable(view):
                view = await view
        except Exception as e:
            raise RenderFailure(f"View factory for {test_case.name} failed: {e}") from e
        if not view:
            raise RenderFailure(f"View factory for {test_case.name} produced no view")
        return view

    @staticmethod
    async def _load_view(page: Page, view: Any) -> None:
        target = str(view)
        if target.startswith(_URL_PREFIXES):
            await page.goto(target, wait_until="load")
        else:
            await page.set_content(target, wait_until="load")
