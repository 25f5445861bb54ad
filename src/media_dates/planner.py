"""Rename planning: decide skip-or-rename per file, then carry it out."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Iterable, Optional, Sequence

from .fsops import RenameOutcome, rename_in_place
from .models import (
    BatchSummary,
    MediaItem,
    RenameAction,
    RenameConfig,
    RenamePlan,
    TimeSource,
)
from .naming import (
    NameCollisionError,
    allocate_normalized_name,
    is_date_normalized,
    migrate_legacy_suffix,
)

logger = logging.getLogger(__name__)


@dataclass
class RenameResult:
    """What happened to one file during a batch."""

    path: Path
    status: str  # renamed, would_rename, skipped, failed
    plan: Optional[RenamePlan] = None
    new_name: Optional[str] = None
    reason: str = ""


def _plan_for_date(
    item: MediaItem,
    source: TimeSource,
    when: datetime,
    force: bool,
    reserved: Iterable[str],
) -> RenamePlan:
    if is_date_normalized(item.filename, when):
        return RenamePlan(item, RenameAction.SKIP_ALREADY_CORRECT, source, when)

    if not force and item.is_normalized:
        return RenamePlan(item, RenameAction.SKIP_ALREADY_NORMALIZED, source, when)

    new_name = allocate_normalized_name(item.path, when, reserved)
    if new_name is None:
        return RenamePlan(item, RenameAction.SKIP_ALREADY_CORRECT, source, when)
    return RenamePlan(item, RenameAction.RENAME, source, when, new_name)


def plan_rename(
    item: MediaItem,
    reference: Optional[TimeSource],
    force: bool = False,
    reserved: Iterable[str] = (),
) -> RenamePlan:
    """Decide what to do with one file given its folder's reference source.

    Args:
        item: The file.
        reference: Source whose date the name should carry (None if the
            folder has no reference).
        force: Also rename files already normalized on another date.
        reserved: Names already claimed by earlier plans in this batch.

    Raises NameCollisionError if a rename is due but no name is free.
    """
    when = item.date(reference) if reference is not None else None
    if when is None:
        return RenamePlan(item, RenameAction.SKIP_NO_REFERENCE_DATE, reference)
    return _plan_for_date(item, reference, when, force, reserved)


def plan_rename_by_priority(
    item: MediaItem,
    priority: Sequence[TimeSource],
    force: bool = False,
    reserved: Iterable[str] = (),
) -> RenamePlan:
    """Like plan_rename, using the first source in `priority` that has a date."""
    for source in priority:
        when = item.date(source)
        if when is not None:
            return _plan_for_date(item, source, when, force, reserved)
    return RenamePlan(item, RenameAction.SKIP_NO_REFERENCE_DATE)


def rename_folder(
    items: Sequence[MediaItem],
    reference: Optional[TimeSource],
    config: RenameConfig,
    summary: BatchSummary,
) -> list[RenameResult]:
    """Plan and (with config.commit) perform renames for one folder's files.

    `reference` is the folder's reference source; it is ignored when
    config.priority is set. Files are handled one at a time; a failure on
    one file is counted and the rest of the folder is still processed.
    """
    reserved: set[str] = set()
    results = []

    for item in sorted(items, key=lambda i: i.filename):
        try:
            if config.priority:
                plan = plan_rename_by_priority(item, config.priority, config.force, reserved)
            else:
                plan = plan_rename(item, reference, config.force, reserved)
        except NameCollisionError as e:
            logger.error("%s", e)
            summary.failed += 1
            results.append(RenameResult(item.path, "failed", reason=str(e)))
            continue

        if plan.action.is_skip:
            summary.skip(plan.action.value)
            results.append(RenameResult(item.path, "skipped", plan, reason=plan.action.value))
            continue

        if not config.commit:
            reserved.add(plan.new_name)
            summary.succeeded += 1
            results.append(RenameResult(item.path, "would_rename", plan, plan.new_name))
            continue

        outcome, error = rename_in_place(item.path, plan.new_name)
        if outcome == RenameOutcome.RENAMED:
            logger.info("%s -> %s", item.path, plan.new_name)
            summary.succeeded += 1
            results.append(RenameResult(item.path, "renamed", plan, plan.new_name))
        else:
            logger.error("Failed to rename %s -> %s: %s", item.path, plan.new_name, error)
            summary.failed += 1
            results.append(RenameResult(item.path, "failed", plan, plan.new_name, error))

    return results


def migrate_folder(
    directory: Path,
    summary: BatchSummary,
    commit: bool = False,
) -> list[RenameResult]:
    """Rewrite legacy "-N" counters to "_NN" for every file in `directory`.

    Names without a valid legacy counter are skipped. Running it twice
    changes nothing the second time. In a dry run, a target already on disk
    or already planned for another file is reported as failed, as the
    commit run would fail it.
    """
    reserved: set[str] = set()
    results = []
    for name in sorted(os.listdir(directory)):
        path = directory / name
        if not path.is_file():
            continue

        new_name = migrate_legacy_suffix(name)
        if new_name is None:
            summary.skip("no_legacy_suffix")
            results.append(RenameResult(path, "skipped", reason="no_legacy_suffix"))
            continue

        if not commit:
            if new_name in reserved or new_name in os.listdir(directory):
                reason = f"{directory / new_name} already exists"
                logger.warning("Cannot rename %s -> %s: %s", path, new_name, reason)
                summary.failed += 1
                results.append(RenameResult(path, "failed", new_name=new_name, reason=reason))
                continue
            reserved.add(new_name)
            summary.succeeded += 1
            results.append(RenameResult(path, "would_rename", new_name=new_name))
            continue

        outcome, error = rename_in_place(path, new_name)
        if outcome == RenameOutcome.RENAMED:
            logger.info("%s -> %s", path, new_name)
            summary.succeeded += 1
            results.append(RenameResult(path, "renamed", new_name=new_name))
        else:
            logger.error("Failed to rename %s -> %s: %s", path, new_name, error)
            summary.failed += 1
            results.append(RenameResult(path, "failed", new_name=new_name, reason=error))

    return results
