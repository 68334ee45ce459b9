"""Shared fixtures for the affiliate audit test suite."""

import pytest

from affiliate_audit.config import AuditSettings
from affiliate_audit.reporter import FailureReporter
from affiliate_audit.sites import SiteConfig


@pytest.fixture
def site():
    """A small site modeled on the example.ro scenarios."""
    return SiteConfig(
        name="example",
        base_url="https://example.ro",
        affiliate_url_pattern=r"^/go/.*",
        cta_selector="a.affiliate-meta-link[data-casino]",
        start_paths=("/",),
        include_patterns=(r"^/$", r"^/a", r"^/b", r"^/blog/.*"),
        exclude_patterns=(r"^/wp-admin/?", r"^/tag/.*"),
        max_pages=2,
        high_traffic_paths=("/", "/a"),
        overlay_selectors=(),
    )


@pytest.fixture
def audit_settings(tmp_path):
    """Settings with no pacing delays and short redirect budgets."""
    return AuditSettings(
        redirect_timeout_ms=300,
        fast_redirect_timeout_ms=150,
        popup_timeout_ms=200,
        min_navigation_wait_ms=10,
        human_delay_min_ms=0,
        human_delay_max_ms=0,
        overlay_visibility_timeout_ms=0,
        visibility_poll_timeout_ms=50,
        visibility_poll_interval_ms=10,
        failures_dir=str(tmp_path / "failures"),
    )


@pytest.fixture
def reporter(site, audit_settings):
    return FailureReporter(site.name, "crawl", audit_settings.failures_dir, timestamp="test").open()
