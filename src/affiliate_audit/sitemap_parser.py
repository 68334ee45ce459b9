"""Sitemap-based page discovery for affiliate audits."""

import logging
import random
import re
from typing import List, Optional, Set
from urllib.parse import urlparse

import httpx

from .config import AuditSettings, default_settings
from .constants import SITEMAP_PATH
from .models import CrawlResult
from .sites import SiteConfig

logger = logging.getLogger(__name__)

# Regex extraction tolerates malformed XML that a strict parser would reject
LOC_PATTERN = re.compile(r"<loc>(.*?)</loc>", re.IGNORECASE | re.DOTALL)
CDATA_PATTERN = re.compile(r"^<!\[CDATA\[(.*)\]\]>$", re.DOTALL)


def extract_locs(xml_text: str) -> List[str]:
    """Return the distinct <loc> values of a sitemap document in order."""
    seen: Set[str] = set()
    locs: List[str] = []
    for match in LOC_PATTERN.finditer(xml_text or ""):
        value = match.group(1).strip()
        cdata = CDATA_PATTERN.match(value)
        if cdata:
            value = cdata.group(1).strip()
        if value and value not in seen:
            seen.add(value)
            locs.append(value)
    return locs


def normalize_path(url: str) -> str:
    """
    Reduce an absolute or relative URL to the path used for filtering.

    Scheme, host and query are dropped, trailing slashes are removed and an
    empty path becomes '/'. Applying it twice gives the same result.

    Raises:
        ValueError: If the URL cannot be parsed
    """
    path = urlparse(url).path
    path = path.split("?")[0].rstrip("/")
    return path or "/"


def should_visit_path(path: str, site: SiteConfig) -> bool:
    """True when path matches an include pattern and no exclude pattern."""
    if any(pattern.search(path) for pattern in site.exclude_patterns):
        return False
    return any(pattern.search(path) for pattern in site.include_patterns)


class SitemapCrawler:
    """
    Discover the pages of a site from its sitemap.xml.

    Supports:
    - Plain sitemaps and nested sitemap indexes
    - Cycle protection across sub-sitemaps
    - Seedable shuffling so a run can be reproduced

        crawler = SitemapCrawler(rng=random.Random(42))
        result = await crawler.crawl(site)
    """

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        rng: Optional[random.Random] = None,
        settings: Optional[AuditSettings] = None,
    ):
        """
        Args:
            client: HTTP client to reuse; one is created per crawl if omitted
            rng: Random source for the page shuffle
            settings: Timeouts and user agent for sitemap requests
        """
        self._client = client
        self._rng = rng or random.Random()
        self._settings = settings or default_settings

    async def crawl(self, site: SiteConfig, base_url: Optional[str] = None) -> CrawlResult:
        """
        Select the pages to audit for a site.

        Args:
            site: Site configuration (patterns, cap, start paths)
            base_url: Override for site.base_url

        Returns:
            CrawlResult with the shuffled, capped page paths
        """
        base_url = (base_url or site.base_url).rstrip("/")
        sitemap_url = f"{base_url}{SITEMAP_PATH}"
        logger.info(f"[{site.name}] Fetching sitemap from: {sitemap_url}")

        if self._client is not None:
            raw_urls = await self._fetch_sitemap_urls(self._client, sitemap_url, base_url, set())
        else:
            async with httpx.AsyncClient(
                headers={"User-Agent": self._settings.sitemap_user_agent},
                timeout=self._settings.sitemap_timeout_seconds,
                follow_redirects=True,
            ) as client:
                raw_urls = await self._fetch_sitemap_urls(client, sitemap_url, base_url, set())

        logger.info(f"[{site.name}] Found {len(raw_urls)} links across all sitemaps")
        return self.select_pages(raw_urls, site)

    def select_pages(self, raw_urls: List[str], site: SiteConfig) -> CrawlResult:
        """Normalize, filter, dedupe, shuffle and cap a list of sitemap URLs."""
        result = CrawlResult()
        eligible: List[str] = []

        for url in raw_urls:
            try:
                path = normalize_path(url)
            except ValueError:
                result.skipped_urls.append(url)
                continue

            if not should_visit_path(path, site):
                result.skipped_urls.append(path)
                continue

            eligible.append(path)

        unique = list(dict.fromkeys(eligible))

        # Fisher-Yates
        for i in range(len(unique) - 1, 0, -1):
            j = self._rng.randint(0, i)
            unique[i], unique[j] = unique[j], unique[i]

        result.discovered_urls = unique[:site.max_pages]
        logger.info(f"[{site.name}] Pages selected for audit: {len(result.discovered_urls)}")

        if not result.discovered_urls:
            logger.warning(f"[{site.name}] No URLs found via sitemap, auditing homepage as fallback")
            result.discovered_urls = list(site.start_paths[:1])
            result.used_fallback = True

        return result

    async def _fetch_sitemap_urls(
        self,
        client: httpx.AsyncClient,
        url: str,
        base_url: str,
        visited: Set[str],
    ) -> List[str]:
        """Fetch one sitemap, descending into sub-sitemaps of an index."""
        if url in visited:
            return []
        visited.add(url)

        try:
            response = await client.get(url)
            if response.status_code >= 400:
                logger.error(f"Failed to fetch sitemap {url}: {response.status_code}")
                return []

            locs = extract_locs(response.text)
            if not locs:
                return []

            if not locs[0].lower().endswith(".xml"):
                return locs

            logger.info(f"Found sitemap index at {url}, fetching sub-sitemaps")
            content_urls: List[str] = []
            for sub_url in locs:
                if sub_url.startswith(base_url):
                    content_urls.extend(
                        await self._fetch_sitemap_urls(client, sub_url, base_url, visited)
                    )
                else:
                    logger.debug(f"Ignoring off-site sub-sitemap: {sub_url}")
            return content_urls

        except httpx.HTTPError as e:
            logger.error(f"Error processing sitemap {url}: {e}")
            return []
