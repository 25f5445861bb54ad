"""Data models for media-dates."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from enum import Enum
from pathlib import Path
from typing import Optional

from .naming import is_date_normalized


class TimeSource(Enum):
    """Where a candidate timestamp for a file comes from."""

    DATE_TIME_ORIGINAL = "DateTimeOriginal"
    CREATE_DATE = "CreateDate"
    FILENAME = "FileNameDate"
    FILE_MODIFY = "FileModifyDate"


# Priority order used when nothing else is configured
DEFAULT_SOURCES = [
    TimeSource.DATE_TIME_ORIGINAL,
    TimeSource.CREATE_DATE,
    TimeSource.FILENAME,
    TimeSource.FILE_MODIFY,
]

# Two timestamps closer than this are considered identical
DEFAULT_TOLERANCE = timedelta(seconds=2)


def parse_source(value: str) -> TimeSource:
    """Parse a source name from a CLI string.

    Accepts the tag-like value ("DateTimeOriginal") or the member name
    ("date_time_original"), case-insensitively.
    """
    wanted = value.strip().lower()
    for source in TimeSource:
        if wanted in (source.value.lower(), source.name.lower()):
            return source
    valid = ", ".join(s.value for s in TimeSource)
    raise ValueError(f"Invalid source '{value}'. Valid: {valid}")


def parse_source_list(value: str) -> list[TimeSource]:
    """Parse a comma-separated, priority-ordered source list."""
    sources = []
    for part in value.split(","):
        if not part.strip():
            continue
        source = parse_source(part)
        if source in sources:
            raise ValueError(f"Source '{source.value}' listed twice")
        sources.append(source)
    if not sources:
        raise ValueError("Source list is empty")
    return sources


class FolderGranularity(Enum):
    """Precision of the date encoded in a folder name."""

    NONE = "none"
    YEAR = "year"
    MONTH = "month"
    DAY = "day"
    DAY_RANGE = "day_range"


@dataclass(frozen=True)
class DateInterval:
    """Half-open [start, end) range of calendar days."""

    start: date
    end: date

    def __post_init__(self):
        if self.start > self.end:
            raise ValueError(f"Interval start {self.start} is after end {self.end}")

    @property
    def days(self) -> int:
        return (self.end - self.start).days

    @property
    def is_empty(self) -> bool:
        return self.start == self.end

    def contains(self, when: datetime) -> bool:
        return self.start <= when.date() < self.end

    def covers(self, start: date, end: date) -> bool:
        """Whether [start, end) lies entirely inside this interval."""
        return self.start <= start and end <= self.end


@dataclass(frozen=True)
class FolderRange:
    """Date interval resolved from a folder name."""

    granularity: FolderGranularity
    interval: Optional[DateInterval] = None

    @property
    def has_interval(self) -> bool:
        return self.interval is not None and not self.interval.is_empty

    @property
    def requires_full_coverage(self) -> bool:
        """Day-level folders must have every day covered."""
        return self.granularity in (FolderGranularity.DAY, FolderGranularity.DAY_RANGE)


NO_FOLDER_RANGE = FolderRange(FolderGranularity.NONE)


@dataclass(frozen=True)
class MediaItem:
    """One media file and its candidate timestamps."""

    path: Path
    filename: str
    extension: str  # with dot, original case
    dates: dict[TimeSource, Optional[datetime]] = field(default_factory=dict)
    filename_has_time: bool = False  # True if the filename date had H:M:S

    def date(self, source: TimeSource) -> Optional[datetime]:
        return self.dates.get(source)

    @property
    def is_normalized(self) -> bool:
        """Whether the filename already follows the canonical format."""
        return is_date_normalized(self.filename)


@dataclass
class SourceResult:
    """Aggregate figures for one timestamp source within one folder."""

    source: TimeSource
    nb_dates: int = 0
    nb_out_of_range: int = 0
    min_date: Optional[date] = None
    max_date: Optional[date] = None  # exclusive: last date + 1 day
    nb_days_missing: Optional[int] = None  # None if span not inside folder range
    is_reference: bool = False
    nb_dates_eq_ref: Optional[int] = None  # None when the folder has no reference
    ok: bool = False

    @property
    def nb_in_range(self) -> int:
        return self.nb_dates - self.nb_out_of_range


@dataclass
class FolderResult:
    """Outcome of reconciling all sources for one folder."""

    path: Path
    folder_range: FolderRange
    nb_items: int
    has_subfolders: bool = False
    sources: list[SourceResult] = field(default_factory=list)
    reference: Optional[TimeSource] = None
    ok: bool = False

    def source_result(self, source: TimeSource) -> Optional[SourceResult]:
        for result in self.sources:
            if result.source == source:
                return result
        return None

    @property
    def ok_sources(self) -> list[TimeSource]:
        return [r.source for r in self.sources if r.ok]


class RenameAction(Enum):
    """What the planner decided for one file."""

    SKIP_NO_REFERENCE_DATE = "skip_no_reference_date"
    SKIP_ALREADY_CORRECT = "skip_already_correct"
    SKIP_ALREADY_NORMALIZED = "skip_already_normalized"
    RENAME = "rename"

    @property
    def is_skip(self) -> bool:
        return self != RenameAction.RENAME


@dataclass
class RenamePlan:
    """Planned rename for one file."""

    item: MediaItem
    action: RenameAction
    source: Optional[TimeSource] = None
    target_date: Optional[datetime] = None
    new_name: Optional[str] = None


@dataclass
class CheckConfig:
    """Configuration for a check run."""

    root: Path
    extensions: list[str]
    recursive: bool = True
    sources: list[TimeSource] = field(default_factory=lambda: list(DEFAULT_SOURCES))
    tolerance: timedelta = DEFAULT_TOLERANCE
    reference: Optional[TimeSource] = None
    exclude_globs: list[str] = field(default_factory=list)
    only_failing: bool = False


@dataclass
class RenameConfig(CheckConfig):
    """Configuration for a rename run."""

    priority: list[TimeSource] = field(default_factory=list)
    force: bool = False
    commit: bool = False


@dataclass
class CheckSummary:
    """Summary statistics from a check run."""

    dirs_scanned: int = 0
    dirs_ok: int = 0
    dirs_not_ok: int = 0
    dirs_no_date: int = 0
    dirs_failed: int = 0
    files_scanned: int = 0


@dataclass
class BatchSummary:
    """Succeeded / skipped / failed figures for a per-file batch."""

    succeeded: int = 0
    failed: int = 0
    skipped: Counter = field(default_factory=Counter)
    dry_run: bool = True

    @property
    def total_skipped(self) -> int:
        return sum(self.skipped.values())

    def skip(self, reason: str):
        self.skipped[reason] += 1
