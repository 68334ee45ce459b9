"""Per-page audit: load, tidy, extract affiliate links, check and follow them."""

import logging
import random
from typing import Optional

from playwright.async_api import Error as PlaywrightError

from .config import AuditSettings, default_settings
from .link_extractor import extract_links
from .models import FailureReason, PageAuditResult, SoftFailure
from .redirect_auditor import RedirectAuditor
from .reporter import FailureReporter
from .sites import SiteConfig
from .timing import Deadline, human_delay, wait_for_visible
from .validators import check_target_blank, check_tracking_attributes

logger = logging.getLogger(__name__)

PAGE_LOAD_CTA_TEXT = "Page Load"


class PageAuditor:
    """
    Audits the affiliate links of one page at a time.

    Each page gets its own browser context from the caller, so popups and
    cookies from one page never reach the next:

        async with browser.isolated_context() as context:
            result = await auditor.audit_page(context, "/casino-online")
    """

    def __init__(
        self,
        site: SiteConfig,
        reporter: FailureReporter,
        settings: Optional[AuditSettings] = None,
        redirect_auditor: Optional[RedirectAuditor] = None,
        rng: Optional[random.Random] = None,
    ):
        self.site = site
        self.reporter = reporter
        self.settings = settings or default_settings
        self.redirect_auditor = redirect_auditor or RedirectAuditor(site, reporter, self.settings)
        self._rng = rng

    async def audit_page(self, context, path: str) -> PageAuditResult:
        """Open path in a new page of context and audit every affiliate link on it."""
        page = await context.new_page()
        try:
            return await self.audit_loaded_page(page, path)
        finally:
            await page.close()

    async def audit_loaded_page(self, page, path: str) -> PageAuditResult:
        result = PageAuditResult(path=path)
        page_url = self.site.url_for(path)

        try:
            await page.set_extra_http_headers({"Referer": self.site.referer})
            await page.goto(
                page_url,
                wait_until="domcontentloaded",
                timeout=self.settings.page_load_timeout_ms,
            )
        except PlaywrightError as e:
            failure = SoftFailure(
                project=self.site.name,
                source_path=path,
                cta_text=PAGE_LOAD_CTA_TEXT,
                reason=FailureReason.PAGE_LOAD_FAILURE,
                details=f"Page Load Failure: {e}",
                failing_url=page_url,
            )
            self.reporter.record(failure)
            result.failures.append(failure)
            logger.error(f"[{self.site.name}] ❌ FAIL Page Load on {path}: {e}")
            return result

        result.loaded = True

        await self.dismiss_overlays(page)
        await human_delay(
            page,
            self.settings.human_delay_min_ms,
            self.settings.human_delay_max_ms,
            rng=self._rng,
        )

        links = await extract_links(page, self.site)
        result.links_found = len(links)

        if not links:
            logger.warning(f"[{self.site.name}] [WARN] No affiliate links found matching pattern on {path}")
            return result

        for index, link in enumerate(links, start=1):
            cta_id = f"LINK #{index} ({link.text})"

            skip_token = self.site.skip_token_for(link.href)
            if skip_token:
                logger.info(f"[{self.site.name}] ⚠️ SKIPPING {cta_id}: href contains '{skip_token}'")
                result.links_skipped += 1
                continue

            follow = True

            missing = check_tracking_attributes(
                link, self.site.tracking_marker_class, self.site.tracking_attributes
            )
            if missing:
                self._record_link_failure(result, link, path, cta_id, FailureReason.MISSING_TRACKING_ATTRIBUTES, missing)
                follow = False

            target_issue = check_target_blank(link)
            if target_issue:
                self._record_link_failure(result, link, path, cta_id, FailureReason.TARGET_BLANK_MISSING, target_issue)

            if not follow:
                continue

            outcome = await self.redirect_auditor.audit(page, link, path, cta_id)
            result.links_audited += 1
            if outcome.passed:
                result.links_passed += 1
            result.failures.extend(outcome.failures)

        logger.info(
            f"[{self.site.name}] Page {path}: {result.links_found} links, "
            f"{result.links_passed}/{result.links_audited} redirects passed"
        )
        return result

    async def dismiss_overlays(self, page) -> Optional[str]:
        """Close the first visible overlay (newsletter, cookie banner, offer).

        Returns:
            The selector that was clicked, or None
        """
        budget = Deadline.after_ms(self.settings.visibility_poll_timeout_ms)
        for selector in self.site.overlay_selectors:
            if budget.expired:
                break
            button = page.locator(selector).first
            try:
                visible = await wait_for_visible(
                    button,
                    budget.bounded_ms(self.settings.overlay_visibility_timeout_ms),
                    self.settings.visibility_poll_interval_ms,
                )
                if not visible:
                    continue
                await button.click(timeout=self.settings.overlay_click_timeout_ms, force=True)
                logger.info(f"[BYPASS] Closed popup using selector: {selector}")
                return selector
            except PlaywrightError as e:
                logger.debug(f"Overlay selector {selector} could not be clicked: {e}")
        return None

    def _record_link_failure(self, result, link, path, cta_id, reason, details) -> None:
        failure = SoftFailure(
            project=self.site.name,
            source_path=path,
            cta_text=link.text,
            reason=reason,
            details=details,
            failing_url=link.href,
        )
        self.reporter.record(failure)
        result.failures.append(failure)
        logger.error(f"[{self.site.name}] ❌ FAIL {cta_id} from {path}: {details}")
