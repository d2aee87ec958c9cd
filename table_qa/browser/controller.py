"""
Browser Controller - Playwright-based browser automation
"""
import logging
from pathlib import Path
from typing import Optional

from playwright.async_api import Browser, BrowserContext, Locator, Page, async_playwright
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from ..config import settings
from ..models import BrowserType
from .waiters import WaitOptions, wait_for_stable_count, wait_for_table_stability

logger = logging.getLogger(__name__)


class BrowserController:
    """
    Playwright-based browser controller for table tests.

    Exposes the capabilities tests and page objects need: navigate, wait for
    visibility or stability, and screenshots. Page objects hold a controller
    instead of extending one.
    """

    def __init__(self, browser_type: BrowserType = BrowserType.CHROMIUM):
        self.browser_type = BrowserType(browser_type)
        self.playwright = None
        self.browser: Optional[Browser] = None
        self.context: Optional[BrowserContext] = None
        self.page: Optional[Page] = None

    @property
    def project_name(self) -> str:
        """Name the reporter uses to classify the browser."""
        return self.browser_type.value

    async def start(self, headless: bool = None):
        """
        Start the browser.

        Args:
            headless: Run in headless mode. Defaults to settings.BROWSER_HEADLESS
        """
        if headless is None:
            headless = settings.BROWSER_HEADLESS

        self.playwright = await async_playwright().start()
        launcher = getattr(self.playwright, self.browser_type.value)
        self.browser = await launcher.launch(headless=headless)
        self.context = await self.browser.new_context(
            viewport={'width': 1280, 'height': 720}
        )
        self.page = await self.context.new_page()
        self.page.set_default_timeout(settings.BROWSER_TIMEOUT)
        logger.info(f"Started {self.browser_type.value} (headless={headless})")

    async def stop(self):
        """Stop the browser and clean up resources."""
        if self.context:
            await self.context.close()
        if self.browser:
            await self.browser.close()
        if self.playwright:
            await self.playwright.stop()
        self.context = self.browser = self.page = self.playwright = None

    async def __aenter__(self) -> "BrowserController":
        await self.start()
        return self

    async def __aexit__(self, *exc_info):
        await self.stop()

    async def navigate(self, url: str = None, wait_until: str = "domcontentloaded"):
        """
        Navigate to a URL.

        Args:
            url: The URL to navigate to. Defaults to settings.BASE_URL
            wait_until: When to consider navigation succeeded
        """
        await self.page.goto(url or settings.BASE_URL, wait_until=wait_until)

    def locator(self, selector: str) -> Locator:
        return self.page.locator(selector)

    async def wait_visible(self, selector: str, timeout: int = None) -> bool:
        """
        Wait for an element to become visible.

        Args:
            selector: CSS selector to wait for
            timeout: Custom timeout in ms

        Returns:
            True if the element became visible, False on timeout
        """
        try:
            await self.page.locator(selector).first.wait_for(
                state="visible",
                timeout=timeout if timeout is not None else settings.BROWSER_TIMEOUT,
            )
            return True
        except PlaywrightTimeoutError:
            return False

    async def wait_for_stability(self, selector: str, options: WaitOptions = None):
        """Wait until the subtree matched by `selector` stops mutating."""
        await wait_for_table_stability(self.page.locator(selector), options)

    async def wait_for_stable_count(self, selector: str, options: WaitOptions = None) -> int:
        """Wait until the number of elements matching `selector` settles."""
        return await wait_for_stable_count(self.page.locator(selector), options)

    async def screenshot(self, path: str, full_page: bool = False) -> str:
        """
        Take a screenshot.

        Args:
            path: Path to save the screenshot
            full_page: Capture full page or just viewport

        Returns:
            Path to the saved screenshot
        """
        Path(path).parent.mkdir(parents=True, exist_ok=True)
        await self.page.screenshot(path=path, full_page=full_page)
        return path
