"""Homepage smoke check: status, load time and key element presence."""

import logging
import time
from typing import Callable, Optional

from playwright.async_api import Error as PlaywrightError

from .config import AuditSettings, default_settings
from .constants import HEADER_SELECTOR, LOGO_SELECTOR, SMOKE_ELEMENT_TIMEOUT_MS
from .models import FailureReason, SmokeResult, SoftFailure
from .reporter import FailureReporter
from .sites import SiteConfig

logger = logging.getLogger(__name__)


class HomepageSmokeCheck:
    """
    Load the homepage once and verify the basics a visitor needs.

    Checks:
    - 2xx HTTP status
    - Load time under the configured maximum
    - A visible header element
    - An enabled logo/title link
    - At least one visible affiliate CTA
    """

    def __init__(
        self,
        site: SiteConfig,
        reporter: FailureReporter,
        settings: Optional[AuditSettings] = None,
        element_timeout_ms: int = SMOKE_ELEMENT_TIMEOUT_MS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.site = site
        self.reporter = reporter
        self.settings = settings or default_settings
        self.element_timeout_ms = element_timeout_ms
        self._clock = clock

    async def run(self, page) -> SmokeResult:
        url = self.site.url_for("/")
        result = SmokeResult(url=url)

        start = self._clock()
        try:
            response = await page.goto(
                url, wait_until="load", timeout=self.settings.homepage_navigation_timeout_ms
            )
        except PlaywrightError as e:
            result.load_time_ms = int((self._clock() - start) * 1000)
            self._fail(result, FailureReason.HOMEPAGE_STATUS, f"Homepage failed to load: {e}")
            return result

        result.load_time_ms = int((self._clock() - start) * 1000)
        result.status_code = response.status if response else 0
        logger.info(f"[{self.site.name}] Page load time: {result.load_time_ms}ms (status {result.status_code})")

        if not 200 <= result.status_code < 300:
            self._fail(result, FailureReason.HOMEPAGE_STATUS, f"Non-2xx HTTP status code: {result.status_code}")
            return result

        max_ms = self.settings.homepage_max_load_ms
        if result.load_time_ms >= max_ms:
            self._fail(
                result, FailureReason.HOMEPAGE_SLOW,
                f"Page load exceeded {max_ms}ms. Actual: {result.load_time_ms}ms.",
            )

        result.header_visible = await self._is_visible(page, HEADER_SELECTOR)
        if not result.header_visible:
            self._fail(result, FailureReason.HEADER_MISSING, "Main Header not found/visible.")

        result.logo_enabled = await self._is_enabled(page, LOGO_SELECTOR)
        if not result.logo_enabled:
            self._fail(result, FailureReason.LOGO_MISSING, "Logo/Title not found/enabled.")

        result.cta_visible = await self._is_visible(page, self.site.cta_selector)
        if not result.cta_visible:
            self._fail(result, FailureReason.CTA_MISSING, f"Affiliate CTA ({self.site.cta_selector}) not visible.")

        if result.passed:
            logger.info(f"[{self.site.name}] ✅ PASS homepage smoke check")
        return result

    async def _is_visible(self, page, selector: str) -> bool:
        try:
            await page.locator(selector).first.wait_for(state="visible", timeout=self.element_timeout_ms)
            return True
        except PlaywrightError:
            return False

    async def _is_enabled(self, page, selector: str) -> bool:
        try:
            return await page.locator(selector).first.is_enabled(timeout=self.element_timeout_ms)
        except PlaywrightError:
            return False

    def _fail(self, result: SmokeResult, reason: FailureReason, details: str) -> None:
        failure = SoftFailure(
            project=self.site.name,
            source_path="/",
            cta_text="Homepage",
            reason=reason,
            details=details,
            failing_url=result.url,
        )
        self.reporter.record(failure)
        result.failures.append(failure)
        logger.error(f"[{self.site.name}] ❌ FAIL homepage: {reason.label} - {details}")
