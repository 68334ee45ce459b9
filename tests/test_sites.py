"""Tests for the site registry."""

import re

import pytest

from affiliate_audit.sites import SITE_CONFIGS, SiteConfig, SiteName, get_site_config


class TestSiteRegistry:
    """Tests for get_site_config and SiteName."""

    @pytest.mark.parametrize("name", ["supercazino", "jocpacanele", "jocuricazinouri", "casino.com.ro"])
    def test_known_sites_resolve(self, name):
        config = get_site_config(name)
        assert config.name == name
        assert config.base_url.startswith("https://")
        assert not config.base_url.endswith("/")

    def test_enum_accepted(self):
        assert get_site_config(SiteName.SUPERCAZINO) is SITE_CONFIGS[SiteName.SUPERCAZINO]

    def test_unknown_site(self):
        with pytest.raises(ValueError, match="Unknown site 'nope'"):
            get_site_config("nope")

    def test_every_site_matches_go_links(self):
        for config in SITE_CONFIGS.values():
            assert config.affiliate_url_pattern.search("/go/brandx")
            assert config.affiliate_url_pattern.search("/recomanda/brandx/")
            assert not config.affiliate_url_pattern.search("/blog/brandx")

    def test_every_site_has_high_traffic_pages(self):
        for config in SITE_CONFIGS.values():
            assert config.high_traffic_paths
            assert config.high_traffic_paths[0] == "/"

    def test_casino_com_ro_skips_betano(self):
        config = get_site_config("casino.com.ro")
        assert config.skip_token_for("/go/betano") == "betano"
        assert config.skip_token_for("/go/superbet") is None

    def test_jocuricazinouri_cta_uses_casino_name(self):
        assert "data-casino-name" in get_site_config("jocuricazinouri").cta_selector


class TestSiteConfig:
    """Tests for SiteConfig validation and helpers."""

    def make(self, **overrides):
        values = dict(
            name="example",
            base_url="https://example.ro/",
            affiliate_url_pattern=r"^/go/.*",
            cta_selector="a",
        )
        values.update(overrides)
        return SiteConfig(**values)

    def test_patterns_compiled(self):
        config = self.make(include_patterns=[r"^/$"])
        assert isinstance(config.affiliate_url_pattern, re.Pattern)
        assert isinstance(config.include_patterns, tuple)
        assert config.include_patterns[0].search("/")

    def test_trailing_slash_stripped(self):
        assert self.make().base_url == "https://example.ro"

    def test_negative_max_pages_rejected(self):
        with pytest.raises(ValueError, match="max_pages"):
            self.make(max_pages=-1)

    @pytest.mark.parametrize("base_url", ["example.ro", "ftp://example.ro", ""])
    def test_invalid_base_url(self, base_url):
        with pytest.raises(ValueError, match="base_url"):
            self.make(base_url=base_url)

    def test_origin_and_referer(self):
        config = self.make(base_url="https://Example.ro", start_paths=("/casino-online/",))
        assert config.origin == "https://example.ro"
        assert config.referer == "https://Example.ro/casino-online/"

    def test_url_for(self):
        config = self.make()
        assert config.url_for("/a") == "https://example.ro/a"
        assert config.url_for("a") == "https://example.ro/a"

    def test_skipped_paths(self):
        config = self.make(skipped_paths=["/slow"])
        assert config.is_skipped_path("/slow")
        assert not config.is_skipped_path("/fast")

    def test_skip_token_case_insensitive(self):
        config = self.make(skipped_link_tokens=("Betano",))
        assert config.skip_token_for("/go/BETANO-ro") == "Betano"
        assert config.skip_token_for(None) is None

    def test_immutable(self):
        config = self.make()
        with pytest.raises(Exception):
            config.max_pages = 5
