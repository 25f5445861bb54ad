"""JSONL report writer and human-readable summary printer."""

from __future__ import annotations

import json
from datetime import date, datetime
from typing import TYPE_CHECKING, Optional, TextIO

from .models import BatchSummary, CheckSummary, FolderResult, TimeSource

if TYPE_CHECKING:
    from .planner import RenameResult


def write_folder_line(report_file: TextIO, result: FolderResult):
    """Write one JSONL line for a reconciled folder."""
    interval = result.folder_range.interval
    entry = {
        "folder": str(result.path),
        "ok": result.ok,
        "granularity": result.folder_range.granularity.value,
        "range": [_fmt_date(interval.start), _fmt_date(interval.end)] if interval else None,
        "items": result.nb_items,
        "has_subfolders": result.has_subfolders,
        "reference": result.reference.value if result.reference else None,
        "sources": {
            r.source.value: {
                "nb_dates": r.nb_dates,
                "nb_out_of_range": r.nb_out_of_range,
                "min_date": _fmt_date(r.min_date),
                "max_date": _fmt_date(r.max_date),
                "nb_days_missing": r.nb_days_missing,
                "is_reference": r.is_reference,
                "nb_dates_eq_ref": r.nb_dates_eq_ref,
                "ok": r.ok,
            }
            for r in result.sources
        },
    }
    report_file.write(json.dumps(entry) + "\n")


def write_rename_line(report_file: TextIO, entry: RenameResult):
    """Write one JSONL line for a file handled by rename or migrate-suffix."""
    line = {
        "file": str(entry.path),
        "status": entry.status,
        "new_name": entry.new_name,
    }
    if entry.plan is not None:
        line["action"] = entry.plan.action.value
        line["source"] = entry.plan.source.value if entry.plan.source else None
        line["date"] = _fmt_dt(entry.plan.target_date)
        if entry.plan.source == TimeSource.FILENAME:
            line["filename_has_time"] = entry.plan.item.filename_has_time
    if entry.reason:
        line["reason"] = entry.reason
    report_file.write(json.dumps(line) + "\n")


def print_check_summary(summary: CheckSummary):
    """Print human-readable check summary to stdout."""
    print()
    print("=" * 60)
    print("media-dates check summary")
    print("=" * 60)
    print(f"  Directories scanned:     {summary.dirs_scanned}")
    print(f"  Files scanned:           {summary.files_scanned}")
    print(f"  Directories ok:          {summary.dirs_ok}")
    print(f"  Directories not ok:      {summary.dirs_not_ok}")
    print(f"    of which undated name: {summary.dirs_no_date}")
    print(f"  Directories failed:      {summary.dirs_failed}")
    print("=" * 60)
    print()


def print_batch_summary(summary: BatchSummary, command: str):
    """Print succeeded / skipped / failed figures for a per-file batch."""
    print()
    print("=" * 60)
    print(f"media-dates {command} summary" + (" (DRY RUN)" if summary.dry_run else ""))
    print("=" * 60)
    label = "Would rename:" if summary.dry_run else "Renamed:"
    print(f"  {label:<25}{summary.succeeded}")
    print(f"  {'Skipped:':<25}{summary.total_skipped}")
    for reason, count in sorted(summary.skipped.items()):
        print(f"    {reason + ':':<23}{count}")
    print(f"  {'Failed:':<25}{summary.failed}")
    print("=" * 60)
    if summary.dry_run:
        print("  DRY RUN: no files were renamed. Use --commit to apply.")
    print()


def print_folder_table(results: list[FolderResult], only_failing: bool = False):
    """Print a table of folders with their reference source and ok sources."""
    rows = [r for r in results if not (only_failing and r.ok)]

    if not rows:
        print("No folders to show.")
        return

    print()
    print(f"{'Folder':<50} {'Range':>9} {'Items':>5} {'Reference':>16}  {'OK sources'}")
    print("-" * 100)

    for result in rows:
        name = str(result.path)
        if len(name) > 48:
            name = "..." + name[-45:]

        reference = result.reference.value if result.reference else "-"
        ok_sources = ",".join(s.value for s in result.ok_sources) or ("ok" if result.ok else "-")

        print(f"  {name:<48} {result.folder_range.granularity.value:>9} "
              f"{result.nb_items:>5} {reference:>16}  {ok_sources}")

    print()


def _fmt_date(d: Optional[date]) -> Optional[str]:
    if d is None:
        return None
    return d.isoformat()


def _fmt_dt(dt: Optional[datetime]) -> Optional[str]:
    if dt is None:
        return None
    return dt.strftime("%Y:%m:%d %H:%M:%S")
