"""
Process-wide Chromium handle.

A single browser is launched at application startup and closed at shutdown.
Each render job gets its own browser context so concurrent jobs never share
cookies, storage or navigation state.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from playwright.async_api import Browser, BrowserContext, Page, Playwright, async_playwright

from .exceptions import BrowserNotInitializedError

logger = logging.getLogger(__name__)

DEFAULT_CHROMIUM_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
]


class BrowserManager:
    """
    Owns the Playwright driver and the shared Chromium instance.

    ``init()`` and ``shutdown()`` are both safe to call more than once.
    """

    def __init__(self):
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None

    @property
    def is_initialized(self) -> bool:
        return self._browser is not None

    async def init(self, headless: bool = True, args: Optional[list[str]] = None) -> None:
        """
        Launch Chromium if it is not already running.

        Args:
            headless: Run Chromium without a display
            args: Extra Chromium command-line switches
        """
        if self._browser is not None:
            logger.warning("Browser already initialized, skipping")
            return

        launch_args = DEFAULT_CHROMIUM_ARGS if args is None else args
        logger.info(f"Initializing Chromium browser (headless={headless})...")

        self._playwright = await async_playwright().start()
        try:
            self._browser = await self._playwright.chromium.launch(
                headless=headless,
                args=launch_args,
            )
        except Exception:
            await self._playwright.stop()
            self._playwright = None
            raise

        logger.info("Chromium browser initialized successfully")

    async def shutdown(self) -> None:
        """Close Chromium and stop the Playwright driver."""
        if self._browser is not None:
            logger.info("Closing Chromium browser...")
            try:
                await self._browser.close()
            finally:
                self._browser = None

        if self._playwright is not None:
            try:
                await self._playwright.stop()
            finally:
                self._playwright = None
            logger.info("Chromium browser closed")

    def get_browser(self) -> Browser:
        """Return the shared browser or fail if ``init()`` has not run."""
        if self._browser is None:
            raise BrowserNotInitializedError()
        return self._browser

    @asynccontextmanager
    async def isolated_page(
        self,
        width: int,
        height: int,
        device_scale_factor: float = 1,
    ) -> AsyncIterator[Page]:
        """
        Yield a page inside a fresh browser context.

        The page and its context are closed on every exit path. Close
        failures are logged so they never mask the original error.
        """
        browser = self.get_browser()

        context: Optional[BrowserContext] = None
        page: Optional[Page] = None
        try:
            context = await browser.new_context(
                viewport={"width": width, "height": height},
                device_scale_factor=device_scale_factor,
            )
            page = await context.new_page()
            yield page
        finally:
            await _close_quietly(page, "page")
            await _close_quietly(context, "context")


async def _close_quietly(resource, label: str) -> None:
    if resource is None:
        return
    try:
        await resource.close()
    except Exception as e:
        logger.warning(f"Error closing browser {label}: {e}")


# Shared instance used by the API lifespan and the render engine
browser_manager = BrowserManager()
