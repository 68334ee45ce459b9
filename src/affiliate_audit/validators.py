"""Attribute checks on affiliate links.

Both checks are pure and independent: each returns a details string when the
link fails, or None when it passes.
"""

from typing import Optional, Sequence

from .constants import TARGET_BLANK, TRACKING_ATTRIBUTES, TRACKING_MARKER_CLASS
from .models import CandidateLink


def check_tracking_attributes(
    link: CandidateLink,
    marker_class: str = TRACKING_MARKER_CLASS,
    attributes: Sequence[str] = TRACKING_ATTRIBUTES,
) -> Optional[str]:
    """Report which tracking markers are missing from a link.

    A link without its tracking markers is not worth following: the caller
    skips the redirect audit when this returns a value.
    """
    missing = []
    if not link.has_marker_class:
        missing.append(f".{marker_class} class")
    if not link.has_tracking_attribute:
        missing.append("/".join(attributes))

    if not missing:
        return None
    return f"Missing Attributes: {', '.join(missing)}"


def check_target_blank(link: CandidateLink) -> Optional[str]:
    """Affiliate links must open in a new tab."""
    if link.target == TARGET_BLANK:
        return None
    return f'Missing target="{TARGET_BLANK}"'
