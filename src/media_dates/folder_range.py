"""Folder name parsing: the date interval a folder is expected to cover."""

from __future__ import annotations

import logging
import re
from datetime import date, timedelta
from pathlib import Path

from .models import NO_FOLDER_RANGE, DateInterval, FolderGranularity, FolderRange

logger = logging.getLogger(__name__)

# YYYY[-MM[-DD[(Nd|Nj)]]] at the start of the name. The lookahead rejects a
# token that stops in the middle of something date-like ("2023-13",
# "2023-11(2d)") so those fall back to no range instead of a coarser one.
FOLDER_PATTERN = re.compile(
    r"^(?P<year>(?:19|20)\d{2})"
    r"(?:-(?P<month>0[1-9]|1[0-2])"
    r"(?:-(?P<day>0[1-9]|[12]\d|3[01])"
    r"(?:\((?P<span>[1-9]\d*)[dj]\))?"
    r")?)?"
    r"(?![\d(]|-\d)"
)


def _next_month(first: date) -> date:
    if first.month == 12:
        return date(first.year + 1, 1, 1)
    return date(first.year, first.month + 1, 1)


def resolve_folder_range(name: str) -> FolderRange:
    """Resolve a folder base name to its date interval and granularity.

    Returns NO_FOLDER_RANGE if the name does not start with a supported
    date token.
    """
    m = FOLDER_PATTERN.match(name)
    if not m:
        return NO_FOLDER_RANGE

    year = int(m.group("year"))
    month = m.group("month")
    day = m.group("day")
    span = m.group("span")

    if month is None:
        return FolderRange(
            FolderGranularity.YEAR,
            DateInterval(date(year, 1, 1), date(year + 1, 1, 1)),
        )

    if day is None:
        first = date(year, int(month), 1)
        return FolderRange(FolderGranularity.MONTH, DateInterval(first, _next_month(first)))

    try:
        start = date(year, int(month), int(day))
    except ValueError:
        # Two-digit day that does not exist in that month (e.g. 2023-02-30)
        logger.debug("Folder name %r has an impossible date", name)
        return NO_FOLDER_RANGE

    if span is None:
        return FolderRange(FolderGranularity.DAY, DateInterval(start, start + timedelta(days=1)))

    try:
        end = start + timedelta(days=int(span))
    except OverflowError:
        logger.debug("Folder name %r has an out-of-range day span", name)
        return NO_FOLDER_RANGE
    return FolderRange(FolderGranularity.DAY_RANGE, DateInterval(start, end))


def resolve_folder_path(path: Path) -> FolderRange:
    """Resolve the range for a folder path using its last segment."""
    return resolve_folder_range(Path(path).name)
