"""Command-line interface for the affiliate audit engine."""

import asyncio
import sys

from affiliate_audit.audit import AuditMode, run_site_audit
from affiliate_audit.browser_config import BrowserConfig, DESKTOP_CONFIG, MOBILE_CONFIG
from affiliate_audit.config import AuditSettings, settings
from affiliate_audit.logging_config import audit_log_path, get_logger, setup_logging
from affiliate_audit.reporter import AuditFailedError, clean_failures
from affiliate_audit.sites import SiteName

logger = get_logger(__name__)


def _browser_config(args) -> BrowserConfig:
    base = MOBILE_CONFIG if args.mobile else DESKTOP_CONFIG
    return base.model_copy(update={"headless": not args.headed and settings.HEADLESS})


def _audit_settings(args) -> AuditSettings:
    audit_settings = AuditSettings.from_file(args.config) if args.config else AuditSettings.from_env()
    if args.failures_dir:
        audit_settings.failures_dir = args.failures_dir
    return audit_settings


def _log_file(args):
    """--log-file if given, else a per-run file under LOG_DIR for audit commands."""
    if args.log_file:
        return args.log_file
    if settings.LOG_DIR and getattr(args, "sites", None):
        return str(audit_log_path(settings.LOG_DIR, args.sites, args.mode))
    return None


def print_summary(reporter):
    """Print failure counts per issue type."""
    print(f"\n{'=' * 60}")
    print(f"Audit summary for: {reporter.project} ({reporter.mode})")
    print(f"{'=' * 60}")

    if not len(reporter):
        print("\n✅ No failures recorded")
    else:
        print(f"\n❌ {len(reporter)} failures")
        for issue_type, count in sorted(reporter.summary().items()):
            print(f"  • {issue_type}: {count}")
        print(f"\nReport: {reporter.csv_path}")

    print(f"\n{'=' * 60}\n")


def audit_command(args):
    """Run a crawl, high-traffic or smoke audit for each requested site."""
    failed = False

    for site in args.sites:
        reporter = asyncio.run(run_site_audit(
            site,
            mode=args.mode,
            settings=_audit_settings(args),
            browser_config=_browser_config(args),
            seed=args.seed,
        ))
        print_summary(reporter)

        try:
            reporter.raise_if_failures()
        except AuditFailedError as e:
            logger.error(f"[{site}] {e}")
            failed = True

    sys.exit(1 if failed else 0)


def clean_failures_command(args):
    """Delete CSV reports from the failures directory."""
    deleted = clean_failures(args.failures_dir or settings.FAILURES_DIR)
    print(f"Deleted {len(deleted)} file(s).")


def _add_audit_arguments(subparser, mode: AuditMode):
    subparser.add_argument(
        "sites",
        nargs="+",
        choices=[name.value for name in SiteName],
        help="Sites to audit (one or more)",
    )
    subparser.add_argument(
        "--mobile",
        action="store_true",
        help="Emulate a mobile device",
    )
    subparser.add_argument(
        "--headed",
        action="store_true",
        help="Show the browser window",
    )
    subparser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Seed for page shuffling and pacing (reproducible runs)",
    )
    subparser.add_argument(
        "--config",
        help="JSON file with an 'audit' section of timeouts",
    )
    subparser.add_argument(
        "--failures-dir",
        help=f"Directory for CSV/JSON reports (default: {settings.FAILURES_DIR})",
    )
    subparser.set_defaults(func=audit_command, mode=mode.value)


def main():
    """Main CLI entry point."""
    import argparse

    parser = argparse.ArgumentParser(
        description="Affiliate Audit - Verify affiliate CTA redirects on casino affiliate sites"
    )

    # Global flags (before subcommands)
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=settings.LOG_LEVEL.upper(),
        help="Set logging verbosity (default: INFO)",
    )
    parser.add_argument(
        "--log-file",
        default=settings.LOG_FILE,
        help="Write logs to file in addition to console (default: a per-run file under LOG_DIR)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    crawl_parser = subparsers.add_parser(
        "crawl", help="Audit pages discovered from the sitemap."
    )
    _add_audit_arguments(crawl_parser, AuditMode.CRAWL)

    high_traffic_parser = subparsers.add_parser(
        "high-traffic", help="Audit the curated high-traffic pages."
    )
    _add_audit_arguments(high_traffic_parser, AuditMode.HIGH_TRAFFIC)

    smoke_parser = subparsers.add_parser(
        "smoke", help="Check homepage status, load time and key elements."
    )
    _add_audit_arguments(smoke_parser, AuditMode.SMOKE)

    clean_parser = subparsers.add_parser(
        "clean-failures", help="Delete CSV reports from the failures directory."
    )
    clean_parser.add_argument(
        "--failures-dir",
        help=f"Directory to clean (default: {settings.FAILURES_DIR})",
    )
    clean_parser.set_defaults(func=clean_failures_command)

    args = parser.parse_args()

    # Configure logging based on flags
    setup_logging(
        level=args.log_level,
        log_file=_log_file(args),
    )

    if hasattr(args, "func"):
        args.func(args)
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
