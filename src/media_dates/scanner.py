"""Scan orchestrator: walk dirs, read metadata, reconcile, rename."""

from __future__ import annotations

import fnmatch
import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Optional, TextIO

from . import exiftool
from .filename_date import parse_filename_date
from .models import (
    BatchSummary,
    CheckConfig,
    CheckSummary,
    FolderGranularity,
    FolderResult,
    MediaItem,
    RenameConfig,
    TimeSource,
)
from .planner import migrate_folder, rename_folder
from .reconcile import analyze_folder
from .report import (
    print_batch_summary,
    print_check_summary,
    print_folder_table,
    write_folder_line,
    write_rename_line,
)

logger = logging.getLogger(__name__)


def parse_exiftool_datetime(value) -> Optional[datetime]:
    """Parse an exiftool datetime string to a Python datetime.

    Handles formats like "2019:01:21 20:34:43" and "2019:01:21 20:34:43+00:00".
    Returns naive datetime (strips timezone and sub-seconds).
    """
    if value is None or value == "" or value == "0000:00:00 00:00:00":
        return None

    s = str(value)
    # Strip timezone suffix if present
    if "+" in s and s.index("+") > 10:
        s = s[: s.index("+")]
    elif s.endswith("Z"):
        s = s[:-1]
    elif s.count("-") > 0 and s.rfind("-") > 10:
        # Handle "2019:01:21 20:34:43-08:00" style
        parts = s.rsplit("-", 1)
        if len(parts) == 2 and ":" in parts[1] and len(parts[1]) <= 6:
            s = parts[0]
    # Drop sub-seconds ("20:34:43.123")
    if "." in s[10:]:
        s = s[: s.rindex(".")]

    for fmt in ("%Y:%m:%d %H:%M:%S", "%Y-%m-%d %H:%M:%S", "%Y:%m:%d"):
        try:
            return datetime.strptime(s.strip(), fmt)
        except ValueError:
            continue

    logger.debug("Could not parse datetime: %r", value)
    return None


def metadata_dates(raw: dict) -> dict[TimeSource, Optional[datetime]]:
    """Extract the metadata-backed sources from a raw exiftool dict."""
    return {
        TimeSource.DATE_TIME_ORIGINAL: parse_exiftool_datetime(
            exiftool.get_tag(raw, "DateTimeOriginal", exiftool.DATE_TAG_GROUPS["DateTimeOriginal"])
        ),
        TimeSource.CREATE_DATE: parse_exiftool_datetime(
            exiftool.get_tag(raw, "CreateDate", exiftool.DATE_TAG_GROUPS["CreateDate"])
        ),
    }


def item_from_path(path: Path, raw: Optional[dict] = None) -> MediaItem:
    """Build a MediaItem from a file and its exiftool record (if any).

    Without a record the metadata sources are absent; the filename and
    filesystem dates are always filled in.
    """
    dates: dict[TimeSource, Optional[datetime]] = {
        TimeSource.DATE_TIME_ORIGINAL: None,
        TimeSource.CREATE_DATE: None,
    }
    if raw is not None:
        try:
            dates.update(metadata_dates(raw))
        except (TypeError, ValueError) as e:
            logger.warning("Unreadable metadata for %s: %s", path.name, e)

    filename_time, has_time = parse_filename_date(path.name)
    dates[TimeSource.FILENAME] = filename_time

    try:
        mtime = datetime.fromtimestamp(path.stat().st_mtime).replace(microsecond=0)
    except OSError as e:
        logger.warning("Cannot stat %s: %s", path, e)
        mtime = None
    dates[TimeSource.FILE_MODIFY] = mtime

    return MediaItem(
        path=path,
        filename=path.name,
        extension=path.suffix,
        dates=dates,
        filename_has_time=has_time,
    )


def list_media_files(directory: Path, extensions: list[str]) -> list[Path]:
    """Files directly inside `directory` whose extension is in `extensions`."""
    wanted = {e.lower().lstrip(".") for e in extensions}
    files = []
    for name in sorted(os.listdir(directory)):
        path = directory / name
        if path.is_file() and path.suffix.lstrip(".").lower() in wanted:
            files.append(path)
    return files


def read_folder(directory: Path, extensions: list[str]) -> list[MediaItem]:
    """Read all media files of one folder with a single exiftool call.

    Raises exiftool.ExifToolError if exiftool fails for the whole folder.
    Files exiftool does not report get no metadata dates.
    """
    files = list_media_files(directory, extensions)
    if not files:
        return []

    raw_records = exiftool.batch_read_directory(directory, extensions)
    by_name = {}
    for raw in raw_records:
        source_file = raw.get("SourceFile")
        if source_file:
            by_name[Path(source_file).name] = raw

    items = []
    for path in files:
        raw = by_name.get(path.name)
        if raw is None:
            logger.warning("No metadata returned for %s", path)
        elif raw.get("Error"):
            logger.warning("exiftool error for %s: %s", path, raw["Error"])
        items.append(item_from_path(path, raw))
    return items


def has_subdirectories(directory: Path) -> bool:
    return any(entry.is_dir() for entry in directory.iterdir())


def should_exclude(path: str, exclude_globs: list[str]) -> bool:
    """Check if a path matches any exclude glob."""
    for pattern in exclude_globs:
        if fnmatch.fnmatch(path, pattern):
            return True
        # Also check if any parent matches
        if fnmatch.fnmatch(path + "/", pattern):
            return True
    return False


def walk_directories(
    root: Path,
    recursive: bool,
    exclude_globs: list[str],
) -> list[Path]:
    """Walk directories under root, respecting exclude globs."""
    dirs = []

    if recursive:
        for dirpath, dirnames, filenames in os.walk(root):
            dirnames.sort()
            if should_exclude(dirpath, exclude_globs):
                dirnames.clear()  # Don't recurse into excluded dirs
                continue
            dirs.append(Path(dirpath))
    else:
        dirs.append(root)

    return dirs


def check(
    config: CheckConfig,
    report_file: TextIO,
    print_table: bool = True,
) -> CheckSummary:
    """Check pipeline.

    Walks directories, reads metadata, reconciles each folder against its
    name and writes one JSONL line per folder.
    """
    summary = CheckSummary()
    results: list[FolderResult] = []

    for directory in walk_directories(config.root, config.recursive, config.exclude_globs):
        summary.dirs_scanned += 1
        logger.info("Checking %s", directory)

        try:
            items = read_folder(directory, config.extensions)
        except exiftool.ExifToolError as e:
            logger.error("Skipping %s: %s", directory, e)
            summary.dirs_failed += 1
            continue

        result = analyze_folder(
            directory,
            items,
            sources=config.sources,
            tolerance=config.tolerance,
            reference=config.reference,
            has_subfolders=has_subdirectories(directory),
        )
        summary.files_scanned += len(items)
        if result.ok:
            summary.dirs_ok += 1
        else:
            summary.dirs_not_ok += 1
            if result.folder_range.granularity == FolderGranularity.NONE:
                summary.dirs_no_date += 1

        write_folder_line(report_file, result)
        results.append(result)

    print_check_summary(summary)
    if print_table:
        print_folder_table(results, only_failing=config.only_failing)

    return summary


def rename(config: RenameConfig, report_file: TextIO) -> BatchSummary:
    """Rename pipeline.

    For each folder, picks the reference source (forced, by priority list,
    or by reconciliation) and renames files after it. Dry run unless
    config.commit is set.
    """
    summary = BatchSummary(dry_run=not config.commit)

    for directory in walk_directories(config.root, config.recursive, config.exclude_globs):
        logger.info("Renaming in %s", directory)

        try:
            items = read_folder(directory, config.extensions)
        except exiftool.ExifToolError as e:
            nb_files = len(list_media_files(directory, config.extensions))
            logger.error("Skipping %d files in %s: %s", nb_files, directory, e)
            summary.failed += nb_files
            continue

        if not items:
            continue

        reference: Optional[TimeSource] = config.reference
        if not config.priority and reference is None:
            result = analyze_folder(
                directory,
                items,
                sources=config.sources,
                tolerance=config.tolerance,
            )
            reference = result.reference
            if reference is None:
                logger.info("No reference source for %s", directory)

        for entry in rename_folder(items, reference, config, summary):
            write_rename_line(report_file, entry)

    print_batch_summary(summary, "rename")
    return summary


def migrate(
    root: Path,
    report_file: TextIO,
    recursive: bool = True,
    exclude_globs: Optional[list[str]] = None,
    commit: bool = False,
) -> BatchSummary:
    """Legacy-suffix migration pipeline over every directory under root."""
    summary = BatchSummary(dry_run=not commit)

    for directory in walk_directories(root, recursive, exclude_globs or []):
        for entry in migrate_folder(directory, summary, commit=commit):
            write_rename_line(report_file, entry)

    print_batch_summary(summary, "migrate-suffix")
    return summary
