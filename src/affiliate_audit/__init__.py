"""Affiliate redirect audits for casino affiliate sites using Playwright."""

__version__ = "0.1.0"

from affiliate_audit.audit import AuditMode, SiteAudit, run_site_audit
from affiliate_audit.browser import AuditBrowser
from affiliate_audit.browser_config import BrowserConfig, DESKTOP_CONFIG, MOBILE_CONFIG
from affiliate_audit.config import AuditSettings, settings
from affiliate_audit.models import (
    CandidateLink,
    CrawlResult,
    FailureReason,
    PageAuditResult,
    RedirectOutcome,
    SmokeResult,
    SoftFailure,
)
from affiliate_audit.page_auditor import PageAuditor
from affiliate_audit.redirect_auditor import RedirectAuditor
from affiliate_audit.reporter import AuditFailedError, FailureReporter, clean_failures
from affiliate_audit.sitemap_parser import SitemapCrawler
from affiliate_audit.sites import SITE_CONFIGS, SiteConfig, SiteName, get_site_config
from affiliate_audit.smoke import HomepageSmokeCheck
from affiliate_audit.timing import Deadline, DeadlineExceeded

__all__ = [
    # Orchestration
    "AuditMode",
    "SiteAudit",
    "run_site_audit",
    # Stages
    "SitemapCrawler",
    "PageAuditor",
    "RedirectAuditor",
    "HomepageSmokeCheck",
    "FailureReporter",
    "AuditFailedError",
    "clean_failures",
    # Browser
    "AuditBrowser",
    "BrowserConfig",
    "DESKTOP_CONFIG",
    "MOBILE_CONFIG",
    # Configuration
    "AuditSettings",
    "settings",
    "SITE_CONFIGS",
    "SiteConfig",
    "SiteName",
    "get_site_config",
    # Models
    "CandidateLink",
    "CrawlResult",
    "FailureReason",
    "PageAuditResult",
    "RedirectOutcome",
    "SmokeResult",
    "SoftFailure",
    # Timing
    "Deadline",
    "DeadlineExceeded",
]
