"""Tests for AuditSettings."""

import json

import pytest

from affiliate_audit.config import AuditSettings


class TestAuditSettings:
    """Tests for AuditSettings loading and validation."""

    def test_defaults(self):
        audit_settings = AuditSettings()
        assert audit_settings.fast_redirect_timeout_ms < audit_settings.redirect_timeout_ms
        assert audit_settings.page_load_timeout_ms == 30000

    def test_min_delay_above_max_rejected(self):
        with pytest.raises(ValueError, match="human_delay_min_ms"):
            AuditSettings(human_delay_min_ms=2000, human_delay_max_ms=1000)

    def test_homepage_navigation_must_outlast_slow_threshold(self):
        with pytest.raises(ValueError, match="homepage_navigation_timeout_ms"):
            AuditSettings(homepage_max_load_ms=30000, homepage_navigation_timeout_ms=30000)

    def test_default_navigation_timeout_exceeds_slow_threshold(self):
        audit_settings = AuditSettings()
        assert audit_settings.homepage_navigation_timeout_ms > audit_settings.homepage_max_load_ms

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("AFFILIATE_AUDIT_REDIRECT_TIMEOUT_MS", "20000")
        monkeypatch.setenv("AFFILIATE_AUDIT_SITEMAP_TIMEOUT_SECONDS", "5.5")
        monkeypatch.setenv("AFFILIATE_AUDIT_FAILURES_DIR", "out")

        audit_settings = AuditSettings.from_env()

        assert audit_settings.redirect_timeout_ms == 20000
        assert audit_settings.sitemap_timeout_seconds == 5.5
        assert audit_settings.failures_dir == "out"

    def test_from_env_ignores_bad_numbers(self, monkeypatch):
        monkeypatch.setenv("AFFILIATE_AUDIT_POPUP_TIMEOUT_MS", "soon")
        assert AuditSettings.from_env().popup_timeout_ms == AuditSettings().popup_timeout_ms

    def test_from_file_section(self, tmp_path):
        path = tmp_path / "audit.json"
        path.write_text(json.dumps({"audit": {"popup_timeout_ms": 1234, "unknown": 1}}))

        audit_settings = AuditSettings.from_file(str(path))

        assert audit_settings.popup_timeout_ms == 1234
        assert not hasattr(audit_settings, "unknown")

    def test_from_missing_file_gives_defaults(self, tmp_path):
        assert AuditSettings.from_file(str(tmp_path / "absent.json")) == AuditSettings()

    def test_save_and_reload(self, tmp_path):
        path = tmp_path / "saved.json"
        original = AuditSettings(redirect_timeout_ms=9000, failures_dir="reports")

        original.save_to_file(str(path))

        assert AuditSettings.from_file(str(path)) == original
        assert json.loads(path.read_text())["audit"]["redirect_timeout_ms"] == 9000
