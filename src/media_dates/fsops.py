"""Filesystem side of renaming: rename a file within its own directory."""

from __future__ import annotations

import logging
import os
from enum import Enum
from pathlib import Path

logger = logging.getLogger(__name__)


class RenameOutcome(Enum):
    """Result of a single rename attempt."""

    RENAMED = "renamed"
    TARGET_EXISTS = "target_exists"
    FAILED = "failed"


def rename_in_place(path: Path, new_name: str) -> tuple[RenameOutcome, str]:
    """Rename `path` to `new_name` in the same directory.

    Refuses to overwrite: if `new_name` resolves to a different existing
    file (exactly, or by case on a case-insensitive filesystem), returns
    TARGET_EXISTS. A case-only rename of the file itself goes through.
    Other OS errors return FAILED.

    Returns (outcome, error_message).
    """
    if os.sep in new_name or (os.altsep and os.altsep in new_name):
        raise ValueError(f"New name must be a bare file name, got: {new_name}")

    target = path.parent / new_name
    if new_name == path.name:
        return RenameOutcome.RENAMED, ""

    try:
        if os.path.lexists(target) and not os.path.samefile(path, target):
            return RenameOutcome.TARGET_EXISTS, f"{target} already exists"
        os.rename(path, target)
    except FileExistsError:
        # Windows raises instead of overwriting
        return RenameOutcome.TARGET_EXISTS, f"{target} already exists"
    except OSError as e:
        return RenameOutcome.FAILED, str(e)

    logger.debug("Renamed %s -> %s", path, new_name)
    return RenameOutcome.RENAMED, ""
