"""Failure reporting: streaming CSV report plus a JSON summary per run."""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional

from .constants import CSV_COLUMNS, DEFAULT_FAILURES_DIR, RUN_TIMESTAMP_FORMAT
from .models import SoftFailure

logger = logging.getLogger(__name__)


class AuditFailedError(Exception):
    """Raised after a completed sweep when any soft failure was recorded."""

    def __init__(self, count: int, report_path: Optional[Path] = None):
        self.count = count
        self.report_path = report_path
        message = f"{count} failures"
        if report_path:
            message += f" (see {report_path})"
        super().__init__(message)


def run_timestamp(moment: Optional[datetime] = None) -> str:
    """Filesystem-safe UTC timestamp used in report filenames."""
    moment = moment or datetime.now(timezone.utc)
    return moment.strftime(RUN_TIMESTAMP_FORMAT)


class FailureReporter:
    """
    Append-only sink for SoftFailures.

    One CSV file per (project, mode, run). The header is written when the
    report is opened and every record is appended and flushed immediately, so
    a run that crashes midway still leaves a readable report behind.

        reporter = FailureReporter("supercazino", "crawl").open()
        reporter.record(failure)
        reporter.write_json()
        reporter.raise_if_failures()
    """

    def __init__(
        self,
        project: str,
        mode: str,
        failures_dir: str = DEFAULT_FAILURES_DIR,
        timestamp: Optional[str] = None,
    ):
        self.project = project
        self.mode = mode
        self.failures_dir = Path(failures_dir)
        self.timestamp = timestamp or run_timestamp()
        self._failures: List[SoftFailure] = []
        self._opened = False

    @property
    def csv_path(self) -> Path:
        return self.failures_dir / f"{self.project}_{self.mode}_{self.timestamp}.csv"

    @property
    def json_path(self) -> Path:
        return self.csv_path.with_suffix(".json")

    @property
    def failures(self) -> List[SoftFailure]:
        return list(self._failures)

    def __len__(self) -> int:
        return len(self._failures)

    def open(self) -> "FailureReporter":
        """Create the failures directory and write the CSV header."""
        if self._opened:
            return self
        self.failures_dir.mkdir(parents=True, exist_ok=True)
        with open(self.csv_path, "w", encoding="utf-8", newline="") as f:
            f.write(",".join(CSV_COLUMNS) + "\n")
        self._opened = True
        logger.debug(f"Opened failure report {self.csv_path}")
        return self

    def record(self, failure: SoftFailure) -> SoftFailure:
        """Append one failure to the CSV and keep it for the JSON summary."""
        if not self._opened:
            self.open()
        with open(self.csv_path, "a", encoding="utf-8", newline="") as f:
            f.write(failure.csv_row + "\n")
            f.flush()
        self._failures.append(failure)
        return failure

    def to_json(self) -> str:
        return json.dumps([failure.to_dict() for failure in self._failures], indent=2, ensure_ascii=False)

    def write_json(self) -> Optional[Path]:
        """Write the failure list next to the CSV. Nothing is written on a clean run."""
        if not self._failures:
            return None
        self.failures_dir.mkdir(parents=True, exist_ok=True)
        with open(self.json_path, "w", encoding="utf-8") as f:
            f.write(self.to_json())
        logger.info(f"Failure summary written to {self.json_path}")
        return self.json_path

    def summary(self) -> Dict[str, int]:
        """Failure counts by issue type."""
        counts: Dict[str, int] = {}
        for failure in self._failures:
            counts[failure.reason.label] = counts.get(failure.reason.label, 0) + 1
        return counts

    def raise_if_failures(self) -> None:
        """Raise AuditFailedError when the run recorded any failure."""
        if self._failures:
            raise AuditFailedError(len(self._failures), self.csv_path)


def clean_failures(directory: str = DEFAULT_FAILURES_DIR) -> List[Path]:
    """Delete the CSV reports in a failures directory.

    Returns:
        The paths that were deleted
    """
    failures_dir = Path(directory)
    if not failures_dir.is_dir():
        logger.info(f'No "{failures_dir}" directory found. Nothing to delete.')
        return []

    csv_files = sorted(
        path for path in failures_dir.iterdir()
        if path.is_file() and path.suffix.lower() == ".csv"
    )
    if not csv_files:
        logger.info(f'No CSV files found in "{failures_dir}" directory.')
        return []

    for path in csv_files:
        path.unlink()
        logger.info(f"Deleted {path.name}")

    logger.info(f"Deleted {len(csv_files)} file(s).")
    return csv_files
