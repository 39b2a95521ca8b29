import asyncio
import logging
from typing import Any, Dict, Optional

from playwright.async_api import Browser, BrowserContext, Page, Playwright, async_playwright

# extra Chromium flags; the window size flag is added per launch
CHROMIUM_ARGS = [
    "--disable-dev-shm-usage",  # Mitigate shared memory issues in Docker
    "--no-sandbox",
    "--disable-setuid-sandbox",
]


class Driver:
    """One Playwright browser with a single context and page.

    Every test case launches its own Driver; nothing here is shared between
    test cases apart from the launch lock.
    """

    # Playwright start-up is not safe to run concurrently for the same engine
    __lock = asyncio.Lock()

    def __init__(self, browser_config: Dict[str, Any]):
        self.config = browser_config
        self.playwright: Optional[Playwright] = None
        self.browser: Optional[Browser] = None
        self.context: Optional[BrowserContext] = None
        self.page: Optional[Page] = None
        self._is_closed = True

    @classmethod
    async def launch(cls, browser_config: Dict[str, Any]) -> "Driver":
        """Start Playwright and open a page as described by ``browser_config``.

        Args:
            browser_config (dict): Output of ``EngineConfig.browser_config()``:
                - browser (str): "chrome", "firefox" or "edge"
                - headless (bool): Whether to run without a window
                - viewport (dict): Width and height used for headless runs
                - language (str): Browser locale
        """
        driver = cls(browser_config)
        async with cls.__lock:
            await driver._start()
        return driver

    async def _start(self):
        family = self.config.get("browser", "chrome")
        headless = self.config["headless"]
        viewport = self.config["viewport"]
        logging.debug(f"Launching {family} (headless={headless}, viewport={viewport})")

        try:
            self.playwright = await async_playwright().start()
            if family == "firefox":
                self.browser = await self.playwright.firefox.launch(headless=headless)
            elif family == "edge":
                self.browser = await self.playwright.chromium.launch(channel="msedge", headless=headless)
            else:
                self.browser = await self.playwright.chromium.launch(
                    headless=headless,
                    args=CHROMIUM_ARGS + [f'--window-size={viewport["width"]},{viewport["height"]}'],
                )

            # a headed window keeps its natural size
            if headless:
                self.context = await self.browser.new_context(locale=self.config["language"], viewport=dict(viewport))
            else:
                self.context = await self.browser.new_context(locale=self.config["language"], no_viewport=True)
            self.page = await self.context.new_page()
            self._is_closed = False

        except Exception:
            logging.error(f"Failed to launch {family} browser.", exc_info=True)
            await self.close()
            raise

    def is_closed(self) -> bool:
        return self._is_closed

    async def close(self):
        """Close the browser and stop Playwright. Safe to call twice."""
        browser, playwright = self.browser, self.playwright
        self.browser = self.context = self.page = self.playwright = None
        self._is_closed = True
        try:
            if browser is not None:
                await browser.close()
        finally:
            if playwright is not None:
                await playwright.stop()
