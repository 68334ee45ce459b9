"""
Browser lifecycle for affiliate audits.

AuditBrowser owns one Playwright browser for the whole run and hands out a
fresh, isolated context per audited page, so cookies, storage and pending
popups never leak from one page to the next.
"""
import logging
import random
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from playwright.async_api import async_playwright

from .browser_config import BrowserConfig, DESKTOP_CONFIG

logger = logging.getLogger(__name__)


# Removes the usual automation markers before any site script runs
STEALTH_SCRIPT = """
    Object.defineProperty(navigator, 'webdriver', {
        get: () => undefined
    });

    const originalQuery = window.navigator.permissions.query;
    window.navigator.permissions.query = (parameters) => (
        parameters.name === 'notifications' ?
            Promise.resolve({ state: Notification.permission }) :
            originalQuery(parameters)
    );

    Object.defineProperty(navigator, 'plugins', {
        get: () => [1, 2, 3, 4, 5]
    });

    Object.defineProperty(navigator, 'languages', {
        get: () => ['ro-RO', 'ro', 'en-US', 'en']
    });
"""


class AuditBrowser:
    """
    Playwright browser shared by an audit run.

        async with AuditBrowser(config) as browser:
            async with browser.isolated_context() as context:
                result = await auditor.audit_page(context, "/")
    """

    DESKTOP_VIEWPORTS = [
        {"width": 1920, "height": 1080},
        {"width": 1366, "height": 768},
        {"width": 1536, "height": 864},
        {"width": 1440, "height": 900},
    ]

    MOBILE_VIEWPORTS = [
        {"width": 390, "height": 844},  # iPhone 14
        {"width": 412, "height": 915},  # Pixel 7
    ]

    def __init__(self, config: Optional[BrowserConfig] = None, rng: Optional[random.Random] = None):
        self._config = config or DESKTOP_CONFIG
        self._rng = rng or random.Random()
        self._playwright = None
        self._browser = None

        logger.debug(f"AuditBrowser initialized with config: {self._config}")

    @property
    def config(self) -> BrowserConfig:
        return self._config

    async def __aenter__(self) -> "AuditBrowser":
        """Launch the browser."""
        logger.info(f"Launching {self._config.browser_type} browser (headless={self._config.headless})")

        self._playwright = await async_playwright().start()
        browser_launcher = getattr(self._playwright, self._config.browser_type)

        launch_options = {"headless": self._config.headless}
        if self._config.launch_args:
            launch_options["args"] = self._config.launch_args

        self._browser = await browser_launcher.launch(**launch_options)

        logger.info("Browser launched successfully")
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Close the browser and stop Playwright."""
        if self._browser:
            logger.info("Closing browser")
            await self._browser.close()
            self._browser = None

        if self._playwright:
            await self._playwright.stop()
            self._playwright = None

    @asynccontextmanager
    async def isolated_context(self) -> AsyncIterator:
        """Yield a fresh browser context; it is always closed on exit."""
        if not self._browser:
            raise RuntimeError(
                "Browser is not running. Use AuditBrowser as an async context manager: "
                "async with AuditBrowser(config) as browser:"
            )

        context = await self._create_context()
        try:
            yield context
        finally:
            await context.close()

    async def _create_context(self):
        viewport = self._rng.choice(
            self.MOBILE_VIEWPORTS if self._config.mobile else self.DESKTOP_VIEWPORTS
        )

        context = await self._browser.new_context(
            viewport=viewport,
            user_agent=self._config.get_user_agent(),
            locale=self._config.locale,
            timezone_id=self._config.timezone_id,
            ignore_https_errors=self._config.ignore_https_errors,
            java_script_enabled=True,
            has_touch=self._config.mobile,
            is_mobile=self._config.mobile,
            device_scale_factor=2 if self._config.mobile else 1,
        )
        context.set_default_navigation_timeout(self._config.timeout)

        if self._config.stealth_mode:
            await context.add_init_script(STEALTH_SCRIPT)
            logger.debug("Stealth measures applied")

        return context
