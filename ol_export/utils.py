"""
Utility functions and classes for the dump exporter.
"""

import os
import logging
from typing import Optional

from .constants import YEAR_SUFFIX_LENGTH
from .exceptions import DumpSourceError
from .models import PassStats

logger = logging.getLogger(__name__)


def strip_prefix(value: str, prefix: str) -> Optional[str]:
    """Return ``value`` without ``prefix``, or None when it does not start with it."""
    if value.startswith(prefix):
        return value[len(prefix):]
    return None


def parse_publish_year(publish_date: Optional[str]) -> Optional[int]:
    """
    Derive a year from a free-text publish date.

    Only the trailing four characters are looked at: "1987", "March 1987"
    and "12/03/1987" all give 1987, while "1987?" or "87" give None.
    A leading plus sign is allowed, so "+999" gives 999.
    """
    if not publish_date or len(publish_date) < YEAR_SUFFIX_LENGTH:
        return None
    tail = publish_date[-YEAR_SUFFIX_LENGTH:]
    digits = tail[1:] if tail.startswith("+") else tail
    if digits.isascii() and digits.isdigit():
        return int(digits)
    return None


def validate_dump_path(dump_path: str) -> bool:
    """
    Validate that the dump path exists and is a readable file.

    Args:
        dump_path: Path to the dump file

    Returns:
        True if the dump exists and is accessible

    Raises:
        DumpSourceError: If the path is invalid or the file is not accessible
    """
    if not dump_path:
        raise DumpSourceError("Dump path cannot be empty")

    if not os.path.exists(dump_path):
        raise DumpSourceError(f"Dump file not found at {dump_path}")

    if not os.path.isfile(dump_path):
        raise DumpSourceError(f"Path {dump_path} is not a file")

    if not os.access(dump_path, os.R_OK):
        raise DumpSourceError(f"Dump file is not readable: {dump_path}")

    return True


class ProgressReporter:
    """
    Log status updates at defined intervals.
    """

    def __init__(self, phase: str, report_interval: int = 1_000_000):
        self.phase = phase
        self.report_interval = report_interval
        self.last_report = 0

    def report(self, stats: PassStats) -> None:
        if self.report_interval <= 0:
            return
        if stats.processed - self.last_report >= self.report_interval:
            logger.info(
                f"[{self.phase}] Processed: {self.format_count(stats.processed)} "
                f"| Kept: {stats.kept_percentage():.1f}%"
            )
            self.last_report = stats.processed

    def summary(self, stats: PassStats) -> None:
        logger.info(
            f"[{self.phase}] Complete: processed {stats.processed:,}, "
            f"kept {stats.kept:,}, skipped {stats.skipped:,}"
        )

    @staticmethod
    def format_count(n: int) -> str:
        if n >= 1_000_000:
            return f"{n/1_000_000:.1f}M"
        if n >= 1_000:
            return f"{n/1_000:.1f}K"
        return str(n)
