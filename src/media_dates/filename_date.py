"""Best-effort extraction of a date (and optional time) from a file name."""

from __future__ import annotations

import logging
import re
from datetime import datetime
from typing import Optional

logger = logging.getLogger(__name__)

# Date: YYYY<sep>MM<sep>DD with the same (possibly empty) separator twice.
# Time: [sep]HH<tsep>MM<tsep>SS, also with one repeated separator.
FILENAME_DATE_PATTERN = re.compile(
    r"(?P<year>(?:19|20)\d{2})"
    r"(?P<sep>[-.:_ ]?)"
    r"(?P<month>0[1-9]|1[0-2])"
    r"(?P=sep)"
    r"(?P<day>0[1-9]|[12]\d|3[01])"
    r"(?:"
    r"[-.:_T ]?"
    r"(?P<hour>[01]\d|2[0-3])"
    r"(?P<tsep>[-.:_ ]?)"
    r"(?P<minute>[0-5]\d)"
    r"(?P=tsep)"
    r"(?P<second>[0-5]\d)"
    r")?"
)


def parse_filename_date(filename: str) -> tuple[Optional[datetime], bool]:
    """Try to extract a timestamp from a filename.

    Returns (datetime, has_time_component).
    has_time_component=False means only a date was found (time is midnight).
    Returns (None, False) if nothing date-like is found.

    Any 8 digits that look like YYYYMMDD are taken as a date, so counters
    or ids in names can produce false positives.
    """
    pos = 0
    while True:
        m = FILENAME_DATE_PATTERN.search(filename, pos)
        if not m:
            return None, False

        has_time = m.group("hour") is not None
        try:
            dt = datetime(
                int(m.group("year")),
                int(m.group("month")),
                int(m.group("day")),
                int(m.group("hour") or 0),
                int(m.group("minute") or 0),
                int(m.group("second") or 0),
            )
            return dt, has_time
        except ValueError:
            # e.g. 20190230: keep scanning after the bogus year
            logger.debug("Skipping impossible date %r in %s", m.group(0), filename)
            pos = m.start() + 1
