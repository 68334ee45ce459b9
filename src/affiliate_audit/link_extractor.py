"""
Affiliate link extraction.

The page side is a single evaluate_all() call over every a[href] element. It
is driven by a plain descriptor (marker class, tracking attributes, fallback
label) and returns raw records. Filtering and normalization happen in Python.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional, Set
from urllib.parse import urlparse

from .constants import NO_TEXT_LABEL
from .models import CandidateLink
from .sites import SiteConfig

logger = logging.getLogger(__name__)

ANCHOR_SELECTOR = "a[href]"

# Runs in the page; receives the anchors and the descriptor built below
EXTRACT_ANCHORS_SCRIPT = """
(nodes, descriptor) => {
    const normalize = (value) => value ? value.trim().replace(/\\s+/g, " ") : "";
    const trackingValue = (el) => {
        for (const name of descriptor.trackingAttributes) {
            if (el.hasAttribute(name)) return el.getAttribute(name);
        }
        return null;
    };

    return nodes.map((el) => {
        let text = normalize(el.innerText || el.textContent);
        if (!text) text = normalize(el.getAttribute("title"));
        if (!text) text = normalize(el.getAttribute("aria-label"));
        if (!text) {
            const img = el.querySelector("img[alt]");
            if (img) text = normalize(img.getAttribute("alt"));
        }
        const value = trackingValue(el);
        if (!text) text = normalize(value);
        if (!text) text = descriptor.noText;

        return {
            href: el.getAttribute("href"),
            target: el.getAttribute("target"),
            text: text,
            hasMarkerClass: el.classList.contains(descriptor.markerClass),
            hasTrackingAttribute: descriptor.trackingAttributes.some((name) => el.hasAttribute(name)),
            trackingValue: value,
        };
    });
}
"""


def build_descriptor(site: SiteConfig) -> Dict[str, Any]:
    """Arguments passed to EXTRACT_ANCHORS_SCRIPT for a site."""
    return {
        "markerClass": site.tracking_marker_class,
        "trackingAttributes": list(site.tracking_attributes),
        "noText": NO_TEXT_LABEL,
    }


def href_to_path(href: Optional[str]) -> Optional[str]:
    """
    Resolve an href to the path-only form used for affiliate matching.

    Absolute http(s) URLs lose their scheme and host; the query string and
    fragment are always dropped. Returns None when the href is empty or
    unparseable.
    """
    if not href:
        return None
    href = href.strip()
    try:
        if href.lower().startswith("http"):
            return urlparse(href).path
    except ValueError:
        return None
    return href.split("#")[0].split("?")[0]


def build_candidate_links(records: Iterable[Dict[str, Any]], site: SiteConfig) -> List[CandidateLink]:
    """
    Turn raw anchor records into CandidateLinks.

    Keeps only hrefs whose path starts with '/' and matches the site's
    affiliate pattern, and drops repeats of a path already seen on this page.
    """
    links: List[CandidateLink] = []
    seen: Set[str] = set()

    for record in records:
        href = record.get("href")
        path = href_to_path(href)
        if not path or not path.startswith("/"):
            continue
        if not site.affiliate_url_pattern.search(path):
            continue
        if path in seen:
            continue
        seen.add(path)

        links.append(CandidateLink(
            href=href,
            normalized_path=path,
            text=record.get("text") or NO_TEXT_LABEL,
            target=record.get("target"),
            has_marker_class=bool(record.get("hasMarkerClass")),
            has_tracking_attribute=bool(record.get("hasTrackingAttribute")),
            tracking_value=record.get("trackingValue"),
        ))

    return links


async def extract_links(page, site: SiteConfig) -> List[CandidateLink]:
    """Scrape the affiliate links currently rendered on a page."""
    records = await page.locator(ANCHOR_SELECTOR).evaluate_all(
        EXTRACT_ANCHORS_SCRIPT, build_descriptor(site)
    )
    links = build_candidate_links(records or [], site)
    logger.debug(f"Extracted {len(links)} affiliate links from {len(records or [])} anchors")
    return links
