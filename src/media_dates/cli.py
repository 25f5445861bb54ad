"""CLI entry point: check, rename and migrate-suffix subcommands."""

from __future__ import annotations

import logging
import sys
from datetime import timedelta
from pathlib import Path
from typing import Optional

import click

from .models import (
    DEFAULT_SOURCES,
    DEFAULT_TOLERANCE,
    CheckConfig,
    RenameConfig,
    TimeSource,
    parse_source,
    parse_source_list,
)
from .scanner import check, migrate, rename

DEFAULT_EXTENSIONS = "jpg,jpeg,heic,png,dng,mp4,mov,3gp,avi,mts"
DEFAULT_SOURCE_LIST = ",".join(s.value for s in DEFAULT_SOURCES)


def _parse_sources(value: str) -> list[TimeSource]:
    try:
        return parse_source_list(value)
    except ValueError as e:
        raise click.BadParameter(str(e))


def _parse_reference(value: Optional[str], sources: list[TimeSource]) -> Optional[TimeSource]:
    if value is None:
        return None
    try:
        reference = parse_source(value)
    except ValueError as e:
        raise click.BadParameter(str(e))
    if reference not in sources:
        raise click.BadParameter(f"Reference {reference.value} is not in --sources")
    return reference


def _parse_tolerance(seconds: Optional[float]) -> timedelta:
    if seconds is None:
        return DEFAULT_TOLERANCE
    if seconds < 0:
        raise click.BadParameter(f"Tolerance must be >= 0, got: {seconds}")
    return timedelta(seconds=seconds)


def _setup_logging(verbose: bool):
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
    )


@click.group()
@click.version_option(package_name="media-dates")
def main():
    """media-dates: check media dates against folder names and normalize file names."""
    pass


@click.command()
@click.option("--root", required=True, type=click.Path(exists=True, file_okay=False),
              help="Root directory to check")
@click.option("--ext", default=DEFAULT_EXTENSIONS,
              help="Comma-separated file extensions")
@click.option("--recursive/--no-recursive", default=True,
              help="Recurse into subdirectories")
@click.option("--exclude-glob", multiple=True,
              help="Glob pattern for dirs to skip (repeatable)")
@click.option("--report", default="media-dates-report.jsonl", type=click.Path(),
              help="JSONL report output path")
@click.option("--sources", default=DEFAULT_SOURCE_LIST,
              help="Comma-separated timestamp sources, in priority order")
@click.option("--reference", default=None,
              help="Force this source as reference instead of picking one per folder")
@click.option("--tolerance", type=float, default=None,
              help="Max seconds between two dates to count as identical (default: 2)")
@click.option("--only-failing", is_flag=True,
              help="Only list folders that are not ok")
@click.option("--verbose", "-v", is_flag=True,
              help="Enable debug logging")
def check_cmd(root, ext, recursive, exclude_glob, report, sources, reference,
              tolerance, only_failing, verbose):
    """Check every folder's media dates against the date in its name."""
    _setup_logging(verbose)

    parsed_sources = _parse_sources(sources)
    config = CheckConfig(
        root=Path(root),
        extensions=[e.strip().lower() for e in ext.split(",")],
        recursive=recursive,
        sources=parsed_sources,
        tolerance=_parse_tolerance(tolerance),
        reference=_parse_reference(reference, parsed_sources),
        exclude_globs=list(exclude_glob),
        only_failing=only_failing,
    )

    with open(report, "w") as report_file:
        check(config, report_file)

    print(f"Report written to: {report}")


@click.command()
@click.option("--root", required=True, type=click.Path(exists=True, file_okay=False),
              help="Root directory to rename in")
@click.option("--ext", default=DEFAULT_EXTENSIONS,
              help="Comma-separated file extensions")
@click.option("--recursive/--no-recursive", default=True,
              help="Recurse into subdirectories")
@click.option("--exclude-glob", multiple=True,
              help="Glob pattern for dirs to skip (repeatable)")
@click.option("--report", default="media-dates-rename.jsonl", type=click.Path(),
              help="JSONL report output path")
@click.option("--sources", default=DEFAULT_SOURCE_LIST,
              help="Comma-separated timestamp sources considered for the folder reference")
@click.option("--reference", default=None,
              help="Name files after this source instead of the folder's reference")
@click.option("--priority", default=None,
              help="Comma-separated sources; use the first one each file has a date for")
@click.option("--tolerance", type=float, default=None,
              help="Max seconds between two dates to count as identical (default: 2)")
@click.option("--force", is_flag=True,
              help="Also rename files already normalized on another date")
@click.option("--commit", is_flag=True,
              help="Actually rename files (default is dry-run)")
@click.option("--verbose", "-v", is_flag=True,
              help="Enable debug logging")
def rename_cmd(root, ext, recursive, exclude_glob, report, sources, reference,
               priority, tolerance, force, commit, verbose):
    """Rename media files to YYYY-MM-DD_HH-MM-SS[_NN].ext."""
    _setup_logging(verbose)

    if reference and priority:
        raise click.BadParameter("--reference and --priority are mutually exclusive")

    parsed_sources = _parse_sources(sources)
    config = RenameConfig(
        root=Path(root),
        extensions=[e.strip().lower() for e in ext.split(",")],
        recursive=recursive,
        sources=parsed_sources,
        tolerance=_parse_tolerance(tolerance),
        reference=_parse_reference(reference, parsed_sources),
        exclude_globs=list(exclude_glob),
        priority=_parse_sources(priority) if priority else [],
        force=force,
        commit=commit,
    )

    with open(report, "w") as report_file:
        rename(config, report_file)

    print(f"Report written to: {report}")


@click.command()
@click.option("--root", required=True, type=click.Path(exists=True, file_okay=False),
              help="Root directory to migrate")
@click.option("--recursive/--no-recursive", default=True,
              help="Recurse into subdirectories")
@click.option("--exclude-glob", multiple=True,
              help="Glob pattern for dirs to skip (repeatable)")
@click.option("--report", default="media-dates-migrate.jsonl", type=click.Path(),
              help="JSONL report output path")
@click.option("--commit", is_flag=True,
              help="Actually rename files (default is dry-run)")
@click.option("--verbose", "-v", is_flag=True,
              help="Enable debug logging")
def migrate_cmd(root, recursive, exclude_glob, report, commit, verbose):
    """Rewrite legacy "-N" name counters to "_NN"."""
    _setup_logging(verbose)

    with open(report, "w") as report_file:
        migrate(
            Path(root),
            report_file,
            recursive=recursive,
            exclude_globs=list(exclude_glob),
            commit=commit,
        )

    print(f"Report written to: {report}")


# Register subcommands
main.add_command(check_cmd, "check")
main.add_command(rename_cmd, "rename")
main.add_command(migrate_cmd, "migrate-suffix")
