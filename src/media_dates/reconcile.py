"""Folder reconciliation: score each timestamp source against the folder's date range.

For one folder, every source gets counts (dates present, dates outside the
folder range, days of the range left uncovered, dates agreeing with the
reference source) and an ok verdict. The reference is the source with the
most in-range dates unless the caller forces one.
"""

from __future__ import annotations

import logging
from datetime import timedelta
from pathlib import Path
from typing import Optional, Sequence

from .folder_range import resolve_folder_path
from .models import (
    DEFAULT_SOURCES,
    DEFAULT_TOLERANCE,
    FolderRange,
    FolderResult,
    MediaItem,
    SourceResult,
    TimeSource,
)

logger = logging.getLogger(__name__)


def compute_source_result(
    source: TimeSource,
    items: Sequence[MediaItem],
    folder_range: FolderRange,
) -> SourceResult:
    """Count dates, out-of-range dates and coverage gaps for one source."""
    result = SourceResult(source=source)
    dates = [d for d in (item.date(source) for item in items) if d is not None]
    result.nb_dates = len(dates)
    if not dates:
        return result

    interval = folder_range.interval if folder_range.has_interval else None
    if interval is None:
        result.nb_out_of_range = len(dates)
    else:
        result.nb_out_of_range = sum(1 for d in dates if not interval.contains(d))

    result.min_date = min(dates).date()
    result.max_date = max(dates).date() + timedelta(days=1)

    if interval is not None and interval.covers(result.min_date, result.max_date):
        result.nb_days_missing = (
            (result.min_date - interval.start).days
            + (interval.end - result.max_date).days
        )

    return result


def select_reference(results: Sequence[SourceResult]) -> Optional[TimeSource]:
    """Pick the source with the most in-range dates.

    Ties go to the earliest source in `results`. Returns None when no source
    has a date inside the folder range.
    """
    best: Optional[SourceResult] = None
    for result in results:
        if result.nb_in_range <= 0:
            continue
        if best is None or result.nb_in_range > best.nb_in_range:
            best = result
    return best.source if best else None


def count_agreeing(
    source: TimeSource,
    reference: TimeSource,
    items: Sequence[MediaItem],
    tolerance: timedelta,
) -> int:
    """Count items whose `source` date is within `tolerance` of the reference date."""
    count = 0
    for item in items:
        value = item.date(source)
        ref_value = item.date(reference)
        if value is None or ref_value is None:
            continue
        if abs(value - ref_value) <= tolerance:
            count += 1
    return count


def is_source_ok(
    result: SourceResult,
    nb_items: int,
    folder_range: FolderRange,
    has_reference: bool,
) -> bool:
    """Every item dated, nothing out of range, full coverage for day folders,
    and full agreement with the reference when there is one."""
    if result.nb_dates != nb_items:
        return False
    if result.nb_out_of_range != 0:
        return False
    if folder_range.requires_full_coverage and result.nb_days_missing != 0:
        return False
    if has_reference and result.nb_dates_eq_ref != result.nb_dates:
        return False
    return True


def analyze_folder(
    path: Path,
    items: Sequence[MediaItem],
    sources: Sequence[TimeSource] = DEFAULT_SOURCES,
    tolerance: timedelta = DEFAULT_TOLERANCE,
    reference: Optional[TimeSource] = None,
    has_subfolders: bool = False,
) -> FolderResult:
    """Reconcile all sources of one folder's items against its name.

    Args:
        path: The folder; only its name is used.
        items: Media files directly inside the folder.
        sources: Sources to evaluate, in priority order.
        tolerance: Max difference for two dates to count as identical.
        reference: Force this source as reference instead of selecting one.
        has_subfolders: An empty folder with subfolders is considered ok.

    Raises ValueError if `reference` is not one of `sources`.
    """
    sources = list(sources)
    if not sources:
        raise ValueError("At least one source is required")
    if reference is not None and reference not in sources:
        raise ValueError(f"Reference source {reference.value} is not among the evaluated sources")

    path = Path(path)
    folder_range = resolve_folder_path(path)
    results = [compute_source_result(s, items, folder_range) for s in sources]

    if reference is None and folder_range.has_interval:
        reference = select_reference(results)

    for result in results:
        if reference is None:
            continue
        if result.source == reference:
            result.is_reference = True
            result.nb_dates_eq_ref = result.nb_dates
        else:
            result.nb_dates_eq_ref = count_agreeing(result.source, reference, items, tolerance)

    for result in results:
        result.ok = is_source_ok(result, len(items), folder_range, reference is not None)

    ok = any(r.ok for r in results) or (not items and has_subfolders)

    logger.debug(
        "%s: %d items, range=%s, reference=%s, ok=%s",
        path, len(items), folder_range.granularity.value,
        reference.value if reference else None, ok,
    )

    return FolderResult(
        path=path,
        folder_range=folder_range,
        nb_items=len(items),
        has_subfolders=has_subfolders,
        sources=results,
        reference=reference,
        ok=ok,
    )
