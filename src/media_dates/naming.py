"""Canonical file names: YYYY-MM-DD_HH-MM-SS[_NN].ext.

Encoding picks the first free collision counter in the target directory,
decoding validates a name and returns the embedded date and counter.
Older names used a "-N" counter; migrate_legacy_suffix rewrites those.
"""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Iterable, Optional

logger = logging.getLogger(__name__)

NAME_FORMAT = "%Y-%m-%d_%H-%M-%S"
NAME_DATE_LENGTH = 19
MAX_COUNTER = 99

NAME_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}_\d{2}-\d{2}-\d{2}$")
CURRENT_SUFFIX_PATTERN = re.compile(r"^_(\d{2})$")
LEGACY_SUFFIX_PATTERN = re.compile(r"^-(\d{1,2})$")


class NameCollisionError(RuntimeError):
    """All counters 01..99 are taken for a timestamp in a directory."""


@dataclass(frozen=True)
class NormalizedName:
    """Decoded parts of a canonical file name."""

    when: datetime
    counter: int = 0  # 0 means no suffix
    legacy: bool = False  # counter written as "-N"


def format_normalized_name(when: datetime, extension: str, counter: int = 0) -> str:
    """Build a canonical name. `extension` includes the dot (or is empty)."""
    if not 0 <= counter <= MAX_COUNTER:
        raise ValueError(f"Counter must be in 0..{MAX_COUNTER}, got {counter}")
    stem = when.strftime(NAME_FORMAT)
    if counter:
        stem += f"_{counter:02d}"
    return stem + extension.lower()


def _parse_head(stem: str) -> Optional[datetime]:
    head = stem[:NAME_DATE_LENGTH]
    if not NAME_DATE_PATTERN.match(head):
        return None
    try:
        return datetime.strptime(head, NAME_FORMAT)
    except ValueError:
        return None


def _parse_counter(tail: str) -> Optional[tuple[int, bool]]:
    """Return (counter, legacy) for a stem tail, None if invalid."""
    if tail == "":
        return 0, False
    m = CURRENT_SUFFIX_PATTERN.match(tail)
    legacy = False
    if not m:
        m = LEGACY_SUFFIX_PATTERN.match(tail)
        legacy = True
    if not m:
        return None
    value = int(m.group(1))
    if not 1 <= value <= MAX_COUNTER:
        return None
    return value, legacy


def parse_normalized_name(filename: str) -> Optional[NormalizedName]:
    """Decode a canonical file name.

    Returns None unless the stem starts with the 19-character timestamp,
    is followed by nothing, "_NN" or legacy "-N"/"-NN" (1..99), and the
    extension is already lowercase.
    """
    stem, ext = os.path.splitext(filename)
    if ext != ext.lower():
        return None

    when = _parse_head(stem)
    if when is None:
        return None

    counter = _parse_counter(stem[NAME_DATE_LENGTH:])
    if counter is None:
        return None
    return NormalizedName(when=when, counter=counter[0], legacy=counter[1])


def is_date_normalized(filename: str, reference: Optional[datetime] = None) -> bool:
    """Whether a name is canonical, and based on `reference` if given."""
    parsed = parse_normalized_name(filename)
    if parsed is None:
        return False
    if reference is None:
        return True
    return parsed.when == reference.replace(microsecond=0, tzinfo=None)


def allocate_normalized_name(
    path: Path,
    when: datetime,
    reserved: Iterable[str] = (),
) -> Optional[str]:
    """Pick the canonical name for `path` based on `when`.

    Tries the bare name, then _01.._99. A candidate is taken when another
    file in the directory has exactly that name (case-sensitive) or it is in
    `reserved`. The directory is listed again for every candidate.

    Returns None when the file already carries the chosen name.
    Raises NameCollisionError when every counter is taken.
    """
    directory = path.parent
    reserved = set(reserved)

    for counter in range(MAX_COUNTER + 1):
        candidate = format_normalized_name(when, path.suffix, counter)
        if candidate == path.name:
            return None
        if candidate in reserved:
            continue
        if candidate in os.listdir(directory):
            continue
        return candidate

    raise NameCollisionError(
        f"No free name for {path.name} at {when.strftime(NAME_FORMAT)} "
        f"(counters 01-{MAX_COUNTER} all taken)"
    )


def migrate_legacy_suffix(filename: str) -> Optional[str]:
    """Rewrite a "-N" counter to "_NN".

    Returns the new name, or None if the name does not carry a valid legacy
    counter (including names already using "_NN").
    """
    parsed = parse_normalized_name(filename)
    if parsed is None or not parsed.legacy:
        return None
    ext = os.path.splitext(filename)[1]
    return format_normalized_name(parsed.when, ext, parsed.counter)
