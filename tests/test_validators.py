"""Tests for tracking attribute and target checks."""

from affiliate_audit.models import CandidateLink
from affiliate_audit.validators import check_target_blank, check_tracking_attributes


def make_link(marker=True, tracking=True, target="_blank"):
    return CandidateLink(
        href="/go/brandx",
        normalized_path="/go/brandx",
        text="Brand X",
        target=target,
        has_marker_class=marker,
        has_tracking_attribute=tracking,
    )


class TestTrackingAttributes:
    """Tests for check_tracking_attributes."""

    def test_complete_link_passes(self):
        assert check_tracking_attributes(make_link()) is None

    def test_missing_marker_class(self):
        details = check_tracking_attributes(make_link(marker=False))
        assert details == "Missing Attributes: .affiliate-meta-link class"

    def test_missing_data_attribute(self):
        details = check_tracking_attributes(make_link(tracking=False))
        assert details == "Missing Attributes: data-casino/data-casino-name"

    def test_both_missing_listed(self):
        details = check_tracking_attributes(make_link(marker=False, tracking=False))
        assert ".affiliate-meta-link class" in details
        assert "data-casino/data-casino-name" in details

    def test_custom_marker(self):
        details = check_tracking_attributes(make_link(marker=False), marker_class="cta", attributes=("data-brand",))
        assert details == "Missing Attributes: .cta class"


class TestTargetBlank:
    """Tests for check_target_blank."""

    def test_blank_passes(self):
        assert check_target_blank(make_link()) is None

    def test_missing_target(self):
        assert check_target_blank(make_link(target=None)) == 'Missing target="_blank"'

    def test_self_target(self):
        assert check_target_blank(make_link(target="_self")) is not None

    def test_independent_of_tracking_check(self):
        link = make_link(marker=False, tracking=False, target=None)
        assert check_tracking_attributes(link) is not None
        assert check_target_blank(link) is not None
