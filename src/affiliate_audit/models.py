"""Data models for affiliate redirect audits."""

from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Any, Optional

from .constants import TARGET_BLANK


class FailureReason(str, Enum):
    """Kinds of soft failure recorded during an audit."""

    PAGE_LOAD_FAILURE = "PageLoadFailure"
    MISSING_TRACKING_ATTRIBUTES = "MissingTrackingAttributes"
    TARGET_BLANK_MISSING = "TargetBlankMissing"
    INTERNAL_REDIRECT_404 = "InternalRedirect404"
    FINAL_URL_INTERNAL = "FinalUrlInternal"
    REDIRECT_BRAND_MISMATCH = "RedirectBrandMismatch"
    REDIRECT_TIMEOUT = "RedirectTimeout"
    CLICK_ERROR = "ClickError"

    # Homepage smoke check
    HOMEPAGE_STATUS = "HomepageStatus"
    HOMEPAGE_SLOW = "HomepageSlow"
    HEADER_MISSING = "HeaderMissing"
    LOGO_MISSING = "LogoMissing"
    CTA_MISSING = "CtaMissing"

    @property
    def label(self) -> str:
        """Issue type as written to the CSV report."""
        return _ISSUE_LABELS[self]


_ISSUE_LABELS = {
    FailureReason.PAGE_LOAD_FAILURE: "Page Load Failure",
    FailureReason.MISSING_TRACKING_ATTRIBUTES: "Tracking Attribute Missing",
    FailureReason.TARGET_BLANK_MISSING: "Target Blank Missing",
    FailureReason.INTERNAL_REDIRECT_404: "Internal Redirect 404",
    FailureReason.FINAL_URL_INTERNAL: "Final URL is Internal",
    FailureReason.REDIRECT_BRAND_MISMATCH: "Redirect Brand Mismatch",
    FailureReason.REDIRECT_TIMEOUT: "Redirection Failure",
    FailureReason.CLICK_ERROR: "Redirection Failure",
    FailureReason.HOMEPAGE_STATUS: "Homepage Status",
    FailureReason.HOMEPAGE_SLOW: "Homepage Slow",
    FailureReason.HEADER_MISSING: "Header Missing",
    FailureReason.LOGO_MISSING: "Logo Missing",
    FailureReason.CTA_MISSING: "CTA Missing",
}


@dataclass(frozen=True)
class SoftFailure:
    """A recorded defect that does not halt the audit run."""

    project: str
    source_path: str
    cta_text: str
    reason: FailureReason
    details: str
    failing_url: str

    def csv_fields(self) -> tuple[str, ...]:
        """Row values in CSV column order."""
        return (
            self.project,
            self.source_path,
            self.cta_text,
            self.reason.label,
            self.details,
            self.failing_url,
        )

    @property
    def csv_row(self) -> str:
        """The row exactly as appended to the CSV report (no line terminator)."""
        return ",".join(csv_escape(value) for value in self.csv_fields())

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["reason"] = self.reason.value
        data["issue_type"] = self.reason.label
        data["csv_row"] = self.csv_row
        return data


def csv_escape(value: Optional[Any]) -> str:
    """Quote a value for the CSV report.

    Internal quotes are doubled and any line break collapses to one space.
    """
    if value is None:
        return '""'
    text = str(value).replace('"', '""')
    text = text.replace("\r\n", " ").replace("\n", " ").replace("\r", " ")
    return f'"{text}"'


@dataclass(frozen=True)
class CandidateLink:
    """An affiliate anchor scraped from one live page."""

    href: str
    normalized_path: str
    text: str
    target: Optional[str] = None
    has_marker_class: bool = False
    has_tracking_attribute: bool = False
    tracking_value: Optional[str] = None

    @property
    def has_tracking_attributes(self) -> bool:
        return self.has_marker_class and self.has_tracking_attribute

    @property
    def opens_in_popup(self) -> bool:
        return self.target == TARGET_BLANK

    @property
    def selector(self) -> str:
        """CSS selector that finds this anchor again by its raw href."""
        escaped = self.href.replace("\\", "\\\\").replace('"', '\\"')
        return f'a[href="{escaped}"]'


@dataclass
class CrawlResult:
    """Pages selected for audit by sitemap discovery."""

    discovered_urls: list[str] = field(default_factory=list)
    skipped_urls: list[str] = field(default_factory=list)
    used_fallback: bool = False


@dataclass
class RedirectOutcome:
    """Result of following one affiliate link."""

    passed: bool = False
    final_url: Optional[str] = None
    matched_token: Optional[str] = None
    late_pass: bool = False
    failures: list[SoftFailure] = field(default_factory=list)


@dataclass
class PageAuditResult:
    """Summary of one audited page."""

    path: str
    loaded: bool = False
    links_found: int = 0
    links_audited: int = 0
    links_passed: int = 0
    links_skipped: int = 0
    failures: list[SoftFailure] = field(default_factory=list)


@dataclass
class SmokeResult:
    """Measurements from the homepage smoke check."""

    url: str
    status_code: int = 0
    load_time_ms: int = 0
    header_visible: bool = False
    logo_enabled: bool = False
    cta_visible: bool = False
    failures: list[SoftFailure] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return not self.failures
