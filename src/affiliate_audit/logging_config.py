"""
Logging for audit runs.

Every record goes to stdout. An audit can also keep a log file per run,
named after the audited sites and mode like the CSV reports:

    logs/casino.com.ro-supercazino_crawl_2026-01-05T09-30-00Z.log
"""

import logging
import sys
from pathlib import Path
from typing import Iterable, List, Optional

from affiliate_audit.reporter import run_timestamp

DEFAULT_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

# Driver and HTTP chatter that drowns the per-link PASS/FAIL lines
QUIET_LOGGERS = ('httpx', 'httpcore', 'asyncio', 'playwright')


def audit_log_path(
    log_dir: str,
    sites: Iterable[str],
    mode: str,
    timestamp: Optional[str] = None
) -> Path:
    """Log file for one CLI invocation.

    Args:
        log_dir: Directory holding run logs
        sites: Site names audited in this run, in command-line order
        mode: Audit mode (crawl, high-traffic, smoke)
        timestamp: Run timestamp; defaults to now, in the report filename format

    Returns:
        Path of the form <log_dir>/<site>-<site>_<mode>_<timestamp>.log
    """
    names = "-".join(sites) or "audit"
    return Path(log_dir) / f"{names}_{mode}_{timestamp or run_timestamp()}.log"


def setup_logging(
    level: str = "INFO",
    log_file: Optional[str] = None,
    format_string: Optional[str] = None
) -> List[logging.Handler]:
    """Configure the root logger for an audit run.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional log file path; parent directories are created
        format_string: Optional custom format string

    Returns:
        The handlers installed on the root logger
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path, encoding="utf-8"))

    logging.basicConfig(
        level=numeric_level,
        format=format_string or DEFAULT_FORMAT,
        handlers=handlers,
        force=True
    )

    # A DEBUG run still only wants the audit's own debug lines
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return handlers


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
