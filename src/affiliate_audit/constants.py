# src/affiliate_audit/constants.py
"""Centralized constants for the affiliate audit engine.

Values used across several modules live here. Per-run tunables (timeouts,
delays, output directory) are in config.py and AuditSettings; per-site
overrides live on SiteConfig in sites.py.
"""

# =============================================================================
# Report Constants
# =============================================================================

CSV_COLUMNS = (
    "Project",
    "Source Page",
    "CTA Text",
    "Issue Type",
    "Details",
    "Failing URL",
)

# Directory (relative to the working directory) for CSV/JSON failure reports
DEFAULT_FAILURES_DIR = "failures"

# strftime format for the run timestamp embedded in report filenames
RUN_TIMESTAMP_FORMAT = "%Y-%m-%dT%H-%M-%S-%fZ"

# Placeholder used when a link carries no usable label
NO_TEXT_LABEL = "No Text"


# =============================================================================
# Timeout Constants (milliseconds)
# =============================================================================

PAGE_LOAD_TIMEOUT_MS = 30_000

# Baseline cap for slow affiliate redirects
REDIRECT_TIMEOUT_MS = 15_000

# Shorter cap for brands known to redirect quickly
FAST_REDIRECT_TIMEOUT_MS = 8_000

POPUP_TIMEOUT_MS = 15_000

# Floor for the post-response navigation wait on the popup
MIN_NAVIGATION_WAIT_MS = 500

HOMEPAGE_MAX_LOAD_MS = 30_000

# Hard limit for the homepage navigation itself; must exceed HOMEPAGE_MAX_LOAD_MS
HOMEPAGE_NAVIGATION_TIMEOUT_MS = 60_000

# Bounded polling for overlay/menu visibility
VISIBILITY_POLL_TIMEOUT_MS = 5_000
VISIBILITY_POLL_INTERVAL_MS = 150


# =============================================================================
# Tracking Attribute Constants
# =============================================================================

TRACKING_MARKER_CLASS = "affiliate-meta-link"

TRACKING_ATTRIBUTES = ("data-casino", "data-casino-name")

TARGET_BLANK = "_blank"


# =============================================================================
# Redirect Heuristics
# =============================================================================

# Slug tokens too generic to identify a brand
DEFAULT_SLUG_STOP_TOKENS = frozenset({"casino", "tc", "bn", "lc", "cp"})

# Minimum length for a slug token to count as a brand signal
MIN_SLUG_TOKEN_LENGTH = 2

# Brands whose redirects complete quickly; these get FAST_REDIRECT_TIMEOUT_MS
DEFAULT_FAST_REDIRECT_TOKENS = frozenset({
    "napoleon",
    "winmasters",
    "win2",
    "winner",
    "fortuna",
    "poker",
    "superbet",
    "12xbet",
    "bilion",
    "netbet",
})

# Analytics/font/ad hosts whose responses are never the affiliate target
DEFAULT_ASSET_HOST_PATTERNS = (
    r"fonts\.googleapis\.com",
    r"fonts\.gstatic\.com",
    r"www\.googletagmanager\.com",
    r"googlesyndication\.com",
    r"doubleclick\.net",
    r"static\.cloudflareinsights\.com",
    r"www\.google-analytics\.com",
    r"connect\.facebook\.net",
)


# =============================================================================
# Crawler Constants
# =============================================================================

SITEMAP_PATH = "/sitemap.xml"

SITEMAP_USER_AGENT = "Playwright Crawler Bot"

SITEMAP_FETCH_TIMEOUT_SECONDS = 30.0

# Overlay close buttons shared by every site
DEFAULT_OVERLAY_SELECTORS = (
    "#newsletter-popup-close-button",
    ".close-modal-x",
    'button:has-text("NU MULTUMESC")',
    'div[aria-label="Close"]',
)


# =============================================================================
# Homepage Smoke Constants
# =============================================================================

HEADER_SELECTOR = (
    'header, .header, #main-header-wrapper, #header, #site-header, #masthead, '
    '[data-elementor-type="header"], #page, .site, .mega-menu-desktop-container, '
    '.main-header-bar-wrap'
)

LOGO_SELECTOR = 'a[href="/"], a[href="/#"], img[alt*="logo" i], h1'

# How long the smoke check waits for each key element
SMOKE_ELEMENT_TIMEOUT_MS = 10_000
