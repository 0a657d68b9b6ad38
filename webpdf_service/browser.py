"""
Application-lifetime handle over the shared Chromium instance.

Launching Chromium is expensive, so one browser is started when the service
starts and reused by every request. Each request gets its own browser
context and page, which are closed when the request finishes.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, List, Optional

from .errors import RenderError

logger = logging.getLogger(__name__)

CHROMIUM_ARGS: List[str] = [
    "--disable-gpu",
    "--disable-dev-shm-usage",
    "--disable-setuid-sandbox",
    "--no-sandbox",
]


class BrowserManager:
    """
    Owns the Playwright driver and the single Chromium browser.

    Must be started before the first request is served and stopped on
    shutdown.
    """

    def __init__(self, headless: bool = True, max_concurrent_renders: Optional[int] = None):
        self.headless = headless
        self._playwright = None
        self._browser = None
        self._semaphore = (
            asyncio.Semaphore(max_concurrent_renders) if max_concurrent_renders else None
        )

    @property
    def is_ready(self) -> bool:
        return self._browser is not None and self._browser.is_connected()

    async def start(self) -> None:
        """Launch Playwright and Chromium. Calling it twice is a no-op."""
        if self._browser is not None:
            return

        # Import here to avoid loading Playwright until the service starts
        from playwright.async_api import async_playwright

        logger.info("Launching Chromium...")
        self._playwright = await async_playwright().start()
        try:
            self._browser = await self._playwright.chromium.launch(
                headless=self.headless,
                args=CHROMIUM_ARGS,
            )
        except Exception:
            await self._playwright.stop()
            self._playwright = None
            raise
        logger.info(f"Chromium {self._browser.version} ready")

    async def stop(self) -> None:
        """Close the browser and stop Playwright. Calling it twice is a no-op."""
        if self._browser is not None:
            logger.info("Closing Chromium...")
            try:
                await self._browser.close()
            finally:
                self._browser = None
        if self._playwright is not None:
            await self._playwright.stop()
            self._playwright = None

    async def new_page(self):
        """
        Open a page in a fresh, isolated browser context.

        Raises:
            RenderError: The browser has not been started
        """
        if self._browser is None:
            raise RenderError("Browser is not running")
        context = await self._browser.new_context()
        try:
            return await context.new_page()
        except Exception:
            await context.close()
            raise

    async def close_page(self, page) -> None:
        """Close a page and the context it was opened in."""
        try:
            await page.close()
        finally:
            await page.context.close()

    @asynccontextmanager
    async def render_slot(self) -> AsyncIterator[None]:
        """Wait for a free render slot when a concurrency cap is configured."""
        if self._semaphore is None:
            yield
            return
        async with self._semaphore:
            yield
