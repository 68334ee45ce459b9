"""Tests for the command-line entry point."""

import logging
import sys

import pytest

from affiliate_audit import cli
from affiliate_audit.models import FailureReason, SoftFailure
from affiliate_audit.reporter import FailureReporter


def run_cli(monkeypatch, *argv):
    monkeypatch.setattr(sys, "argv", ["affiliate-audit", *argv])
    with pytest.raises(SystemExit) as exc_info:
        cli.main()
    return exc_info.value.code


class TestCli:
    """Tests for cli.main."""

    @pytest.fixture
    def calls(self, monkeypatch, tmp_path):
        recorded = []

        async def fake_run_site_audit(site, mode, settings, browser_config, seed):
            recorded.append((site, mode, settings, browser_config, seed))
            reporter = FailureReporter(site, mode, str(tmp_path), timestamp="t").open()
            if site == "casino.com.ro":
                reporter.record(SoftFailure(
                    project=site,
                    source_path="/",
                    cta_text="Brand",
                    reason=FailureReason.REDIRECT_TIMEOUT,
                    details="Error: Redirect Timeout.",
                    failing_url="https://casino.com.ro/go/brand",
                ))
            return reporter

        monkeypatch.setattr(cli, "run_site_audit", fake_run_site_audit)
        return recorded

    def test_clean_run_exits_zero(self, monkeypatch, calls):
        code = run_cli(monkeypatch, "high-traffic", "supercazino", "--seed", "7")

        assert code == 0
        site, mode, _, browser_config, seed = calls[0]
        assert (site, mode, seed) == ("supercazino", "high-traffic", 7)
        assert not browser_config.mobile

    def test_failures_exit_non_zero_after_all_sites(self, monkeypatch, calls, capsys):
        code = run_cli(monkeypatch, "crawl", "casino.com.ro", "jocpacanele", "--mobile")

        assert code == 1
        assert [call[0] for call in calls] == ["casino.com.ro", "jocpacanele"]
        assert calls[0][3].mobile
        assert "Redirection Failure: 1" in capsys.readouterr().out

    def test_failures_dir_override(self, monkeypatch, calls, tmp_path):
        run_cli(monkeypatch, "smoke", "jocuricazinouri", "--failures-dir", str(tmp_path / "out"))
        assert calls[0][2].failures_dir == str(tmp_path / "out")

    def test_unknown_site_rejected(self, monkeypatch, calls):
        assert run_cli(monkeypatch, "crawl", "nope") == 2
        assert calls == []

    def test_clean_failures(self, monkeypatch, tmp_path, capsys):
        (tmp_path / "old.csv").write_text("x")
        monkeypatch.setattr(sys, "argv", ["affiliate-audit", "clean-failures", "--failures-dir", str(tmp_path)])

        cli.main()

        assert not (tmp_path / "old.csv").exists()
        assert "Deleted 1 file(s)." in capsys.readouterr().out

    @pytest.fixture
    def restore_root_logger(self):
        root = logging.getLogger()
        saved_handlers = list(root.handlers)
        yield
        for handler in list(root.handlers):
            if handler not in saved_handlers:
                root.removeHandler(handler)
                handler.close()
        for handler in saved_handlers:
            if handler not in root.handlers:
                root.addHandler(handler)

    def test_log_dir_gives_per_run_log_file(self, monkeypatch, calls, tmp_path, restore_root_logger):
        monkeypatch.setattr(cli.settings, "LOG_DIR", str(tmp_path / "logs"))

        run_cli(monkeypatch, "smoke", "supercazino", "jocpacanele")

        logs = list((tmp_path / "logs").glob("*.log"))
        assert len(logs) == 1
        assert logs[0].name.startswith("supercazino-jocpacanele_smoke_")

    def test_explicit_log_file_wins_over_log_dir(self, monkeypatch, calls, tmp_path, restore_root_logger):
        monkeypatch.setattr(cli.settings, "LOG_DIR", str(tmp_path / "logs"))
        log_file = tmp_path / "explicit.log"

        run_cli(monkeypatch, "--log-file", str(log_file), "smoke", "supercazino")

        assert log_file.exists()
        assert not (tmp_path / "logs").exists()
