"""
Site registry: per-site audit configuration.

Each audited site is identified by a SiteName, resolved once at run start with
get_site_config(). The resulting SiteConfig is immutable and passed explicitly
down the call chain; no stage looks configuration up on its own.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Pattern, Tuple, Union
from urllib.parse import urlparse

from affiliate_audit.constants import (
    DEFAULT_ASSET_HOST_PATTERNS,
    DEFAULT_FAST_REDIRECT_TOKENS,
    DEFAULT_OVERLAY_SELECTORS,
    DEFAULT_SLUG_STOP_TOKENS,
    TRACKING_ATTRIBUTES,
    TRACKING_MARKER_CLASS,
)


class SiteName(str, Enum):
    """Identifiers of the audited affiliate sites."""

    SUPERCAZINO = "supercazino"
    JOCPACANELE = "jocpacanele"
    JOCURICAZINOURI = "jocuricazinouri"
    CASINO_COM_RO = "casino.com.ro"

    @classmethod
    def parse(cls, value: Union[str, "SiteName"]) -> "SiteName":
        """Resolve a site identifier, raising ValueError for unknown names."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            known = ", ".join(member.value for member in cls)
            raise ValueError(f"Unknown site '{value}'. Known sites: {known}") from None


def _compile(patterns) -> Tuple[Pattern, ...]:
    return tuple(
        pattern if isinstance(pattern, re.Pattern) else re.compile(pattern)
        for pattern in patterns
    )


@dataclass(frozen=True)
class SiteConfig:
    """Static configuration for one site; never mutated by the engine."""

    name: str
    base_url: str
    affiliate_url_pattern: Pattern
    cta_selector: str
    start_paths: Tuple[str, ...] = ("/",)
    include_patterns: Tuple[Pattern, ...] = ()
    exclude_patterns: Tuple[Pattern, ...] = ()
    max_pages: int = 200
    high_traffic_paths: Tuple[str, ...] = ()
    skipped_paths: Tuple[str, ...] = ()
    # Links whose href contains one of these tokens are never followed
    skipped_link_tokens: Tuple[str, ...] = ()
    fast_redirect_tokens: frozenset = DEFAULT_FAST_REDIRECT_TOKENS
    slug_stop_tokens: frozenset = DEFAULT_SLUG_STOP_TOKENS
    asset_host_patterns: Tuple[Pattern, ...] = field(
        default_factory=lambda: _compile(DEFAULT_ASSET_HOST_PATTERNS)
    )
    overlay_selectors: Tuple[str, ...] = DEFAULT_OVERLAY_SELECTORS
    tracking_marker_class: str = TRACKING_MARKER_CLASS
    tracking_attributes: Tuple[str, ...] = TRACKING_ATTRIBUTES

    def __post_init__(self):
        if self.max_pages < 0:
            raise ValueError(f"max_pages must be >= 0 (got {self.max_pages}) for {self.name}")

        parsed = urlparse(self.base_url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError(f"base_url must be an absolute http(s) URL: {self.base_url!r}")

        # Accept raw strings for patterns and normalize to compiled tuples
        object.__setattr__(self, "base_url", self.base_url.rstrip("/"))
        if not isinstance(self.affiliate_url_pattern, re.Pattern):
            object.__setattr__(self, "affiliate_url_pattern", re.compile(self.affiliate_url_pattern))
        object.__setattr__(self, "include_patterns", _compile(self.include_patterns))
        object.__setattr__(self, "exclude_patterns", _compile(self.exclude_patterns))
        object.__setattr__(self, "asset_host_patterns", _compile(self.asset_host_patterns))
        object.__setattr__(self, "fast_redirect_tokens", frozenset(self.fast_redirect_tokens))
        object.__setattr__(self, "slug_stop_tokens", frozenset(self.slug_stop_tokens))
        for name in ("start_paths", "high_traffic_paths", "skipped_paths",
                     "skipped_link_tokens", "overlay_selectors", "tracking_attributes"):
            object.__setattr__(self, name, tuple(getattr(self, name)))

    @property
    def origin(self) -> str:
        """scheme://host[:port] of the site."""
        parsed = urlparse(self.base_url)
        return f"{parsed.scheme}://{parsed.netloc}".lower()

    @property
    def referer(self) -> str:
        """Referer sent with page navigations (the first start path)."""
        first = self.start_paths[0] if self.start_paths else "/"
        return self.base_url + first

    def url_for(self, path: str) -> str:
        """Absolute URL for a site-relative path."""
        if not path.startswith("/"):
            path = "/" + path
        return self.base_url + path

    def is_skipped_path(self, path: str) -> bool:
        return path in self.skipped_paths

    def skip_token_for(self, href: Optional[str]) -> Optional[str]:
        """Return the configured skip token contained in href, if any."""
        if not href:
            return None
        lowered = href.lower()
        for token in self.skipped_link_tokens:
            if token.lower() in lowered:
                return token
        return None


_WORDPRESS_EXCLUDES = (
    r"^/wp-admin/?",
    r"^/wp-json/?",
    r"^/tag/.*",
    r"^/author/.*",
    r"^/feed/?",
)

_COOKIEBOT_ALLOW = "#CybotCookiebotDialogBodyLevelButtonLevelOptinAllowAll"
_COOKIEBOT_DECLINE = "#CybotCookiebotDialogBodyButtonDecline"
_WHEEL_OF_FORTUNE_CLOSE = '.wof-close.wof-close-icon[role="button"]'


SITE_CONFIGS: dict = {
    SiteName.SUPERCAZINO: SiteConfig(
        name=SiteName.SUPERCAZINO.value,
        base_url="https://www.supercazino.ro",
        affiliate_url_pattern=r"^/(go|recomanda)/[^/]+/?$",
        cta_selector="a.affiliate-meta-link[data-casino]",
        start_paths=("/",),
        include_patterns=(
            r"^/$",
            r"^/casino-online/?",
            r"^/bonusuri-casino/?",
            r"^/casino-online-.*/?",
            r"^/blog/.*",
        ),
        exclude_patterns=_WORDPRESS_EXCLUDES,
        max_pages=200,
        high_traffic_paths=("/", "/casino-online/", "/bonusuri-casino/"),
        overlay_selectors=DEFAULT_OVERLAY_SELECTORS + (
            _COOKIEBOT_ALLOW,
            _COOKIEBOT_DECLINE,
            "#close-fixed-offer",
            ".springfield-close",
        ),
    ),
    SiteName.JOCPACANELE: SiteConfig(
        name=SiteName.JOCPACANELE.value,
        base_url="https://jocpacanele.ro",
        affiliate_url_pattern=r"^/(go|recomanda)/[^/]+/?$",
        cta_selector="a.affiliate-meta-link[data-casino]",
        start_paths=("/",),
        include_patterns=(
            r"^/$",
            r"^/bonusuri-casino/?",
            r"^/casino-online/?",
            r"^/blog/.*",
            r"^/jocuri-.*/?",
        ),
        exclude_patterns=_WORDPRESS_EXCLUDES,
        max_pages=200,
        high_traffic_paths=(
            "/",
            "/top-casino-online-romania/",
            "/bonus-de-casino/",
            "/rotiri-gratuite/",
        ),
        overlay_selectors=DEFAULT_OVERLAY_SELECTORS + (
            _COOKIEBOT_ALLOW,
            _WHEEL_OF_FORTUNE_CLOSE,
        ),
    ),
    SiteName.JOCURICAZINOURI: SiteConfig(
        name=SiteName.JOCURICAZINOURI.value,
        base_url="https://jocuricazinouri.com",
        affiliate_url_pattern=r"^/(go|recomanda)/[^/]+/?$",
        cta_selector="a.affiliate-meta-link[data-casino-name]",
        start_paths=("/",),
        include_patterns=(
            r"^/$",
            r"^/casino-online-romania/?",
            r"^/casino-online/?",
            r"^/blog/.*",
        ),
        exclude_patterns=_WORDPRESS_EXCLUDES,
        max_pages=200,
        high_traffic_paths=("/", "/casino-online-romania/"),
        overlay_selectors=DEFAULT_OVERLAY_SELECTORS + (_COOKIEBOT_ALLOW,),
    ),
    SiteName.CASINO_COM_RO: SiteConfig(
        name=SiteName.CASINO_COM_RO.value,
        base_url="https://casino.com.ro",
        affiliate_url_pattern=r"^/(go|recomanda)/[^/]+/?$",
        cta_selector="a.affiliate-meta-link[data-casino]",
        start_paths=("/",),
        include_patterns=(
            r"^/$",
            r"^/cazinouri/?",
            r"^/cazinou/.*",
            r"^/bonus-.*/?",
            r"^/blog/.*",
        ),
        exclude_patterns=_WORDPRESS_EXCLUDES,
        max_pages=200,
        high_traffic_paths=(
            "/",
            "/cazinouri/",
            "/bonus-fara-depunere/",
            "/rotiri-gratuite/",
        ),
        # Betano's redirect stalls indefinitely behind its own bot wall
        skipped_link_tokens=("betano",),
        overlay_selectors=DEFAULT_OVERLAY_SELECTORS + (
            _COOKIEBOT_ALLOW,
            _WHEEL_OF_FORTUNE_CLOSE,
            ".wof-close.wof-close-icon",
        ),
    ),
}


def get_site_config(name: Union[str, SiteName]) -> SiteConfig:
    """Resolve a site name to its configuration.

    Raises:
        ValueError: If the site is unknown
    """
    return SITE_CONFIGS[SiteName.parse(name)]
