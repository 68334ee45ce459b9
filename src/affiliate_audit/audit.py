"""Run orchestration: wire registry, crawler, auditors and reporter for one site."""

import logging
import random
from enum import Enum
from typing import List, Optional, Union

from .browser import AuditBrowser
from .browser_config import BrowserConfig, DESKTOP_CONFIG
from .config import AuditSettings, default_settings
from .models import PageAuditResult, SmokeResult
from .page_auditor import PageAuditor
from .reporter import FailureReporter
from .sitemap_parser import SitemapCrawler
from .sites import SiteConfig, SiteName, get_site_config
from .smoke import HomepageSmokeCheck

logger = logging.getLogger(__name__)


class AuditMode(str, Enum):
    """Where the pages of a run come from."""

    CRAWL = "crawl"
    HIGH_TRAFFIC = "high-traffic"
    SMOKE = "smoke"


class SiteAudit:
    """
    One audit run for one site.

    Pages are audited strictly one after another, each in a fresh browser
    context. Failures accumulate in the reporter; nothing raises mid-sweep.

        audit = SiteAudit(get_site_config("supercazino"), AuditMode.CRAWL)
        reporter = await audit.run()
        reporter.raise_if_failures()
    """

    def __init__(
        self,
        site: SiteConfig,
        mode: AuditMode,
        settings: Optional[AuditSettings] = None,
        browser_config: Optional[BrowserConfig] = None,
        reporter: Optional[FailureReporter] = None,
        crawler: Optional[SitemapCrawler] = None,
        rng: Optional[random.Random] = None,
    ):
        self.site = site
        self.mode = AuditMode(mode)
        self.settings = settings or default_settings
        self.browser_config = browser_config or DESKTOP_CONFIG
        self.rng = rng or random.Random()
        self.reporter = reporter or FailureReporter(site.name, self.mode.value, self.settings.failures_dir)
        self.crawler = crawler or SitemapCrawler(rng=self.rng, settings=self.settings)
        self.page_results: List[PageAuditResult] = []
        self.smoke_result: Optional[SmokeResult] = None

    async def resolve_paths(self) -> List[str]:
        """Pages to audit for this mode."""
        if self.mode is AuditMode.HIGH_TRAFFIC:
            return list(self.site.high_traffic_paths or self.site.start_paths[:1])

        result = await self.crawler.crawl(self.site)
        if result.skipped_urls:
            logger.debug(f"[{self.site.name}] Skipped {len(result.skipped_urls)} sitemap URLs")
        return result.discovered_urls

    async def run(self, browser: Optional[AuditBrowser] = None) -> FailureReporter:
        """Audit the site and return the reporter holding every failure."""
        self.reporter.open()
        logger.info(f"[{self.site.name}] Starting {self.mode.value} audit. Report: {self.reporter.csv_path}")

        if browser is not None:
            await self._run_with(browser)
        else:
            async with AuditBrowser(self.browser_config, rng=self.rng) as owned:
                await self._run_with(owned)

        self.reporter.write_json()
        logger.info(
            f"[{self.site.name}] Audit completed. Failures: {len(self.reporter)}. "
            f"Appended to {self.reporter.csv_path}"
        )
        return self.reporter

    async def _run_with(self, browser: AuditBrowser) -> None:
        if self.mode is AuditMode.SMOKE:
            async with browser.isolated_context() as context:
                page = await context.new_page()
                check = HomepageSmokeCheck(self.site, self.reporter, self.settings)
                self.smoke_result = await check.run(page)
            return

        paths = await self.resolve_paths()
        auditor = PageAuditor(self.site, self.reporter, self.settings, rng=self.rng)

        for path in paths:
            if self.site.is_skipped_path(path):
                logger.info(f"[{self.site.name}] ⚠️ SKIPPING known stalling page: {path}")
                continue

            async with browser.isolated_context() as context:
                self.page_results.append(await auditor.audit_page(context, path))


async def run_site_audit(
    site: Union[str, SiteName, SiteConfig],
    mode: Union[str, AuditMode] = AuditMode.CRAWL,
    settings: Optional[AuditSettings] = None,
    browser_config: Optional[BrowserConfig] = None,
    seed: Optional[int] = None,
) -> FailureReporter:
    """
    Run one audit for one site.

    Args:
        site: Site name or an explicit SiteConfig
        mode: crawl, high-traffic or smoke
        settings: Timeouts and output directory
        browser_config: Browser launch options
        seed: Seed for the page shuffle and pacing delays

    Returns:
        The FailureReporter; call raise_if_failures() to fail the run
    """
    site_config = site if isinstance(site, SiteConfig) else get_site_config(site)
    audit = SiteAudit(
        site_config,
        AuditMode(mode),
        settings=settings,
        browser_config=browser_config,
        rng=random.Random(seed),
    )
    return await audit.run()
