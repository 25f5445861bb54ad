"""ExifTool subprocess wrapper. JSON output only, no text parsing."""

from __future__ import annotations

import json
import logging
import subprocess
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

EXIFTOOL = "exiftool"
TIMEOUT = 300

# Tags we request (using -G1 group names for unambiguous JSON keys)
READ_TAGS = [
    "-ExifIFD:DateTimeOriginal",
    "-XMP-exif:DateTimeOriginal",
    "-ExifIFD:CreateDate",
    "-QuickTime:CreateDate",
    "-XMP-xmp:CreateDate",
    "-System:FileName",
    "-System:Directory",
]

# Groups to look in for each date tag, most specific first
DATE_TAG_GROUPS = {
    "DateTimeOriginal": ["ExifIFD", "XMP-exif"],
    "CreateDate": ["ExifIFD", "QuickTime", "XMP-xmp"],
}


class ExifToolError(RuntimeError):
    """exiftool could not read a whole batch."""


def _run(cmd: list[str], what: str) -> list[dict]:
    try:
        result = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            timeout=TIMEOUT,
        )
    except FileNotFoundError:
        raise ExifToolError(
            "exiftool not found. Install it: https://exiftool.org/"
        )
    except subprocess.TimeoutExpired:
        raise ExifToolError(f"exiftool timed out reading {what}")

    if result.stderr:
        for line in result.stderr.strip().split("\n"):
            if line.strip():
                logger.debug("exiftool stderr: %s", line.strip())

    # exiftool exits with 1 when no files match, 2 for errors
    if not result.stdout.strip():
        if result.returncode > 1:
            raise ExifToolError(
                f"exiftool failed reading {what} (exit {result.returncode}): "
                f"{result.stderr.strip()}"
            )
        return []

    try:
        return json.loads(result.stdout)
    except json.JSONDecodeError as e:
        raise ExifToolError(f"Failed to parse exiftool JSON for {what}: {e}")


def batch_read_directory(
    directory: Path,
    extensions: list[str],
) -> list[dict]:
    """Read date metadata for all matching files in a directory via JSON.

    Runs one exiftool invocation per directory (non-recursive).
    Returns list of raw exiftool JSON dicts, one per file.
    Raises ExifToolError if the batch cannot be read at all.
    """
    cmd = [EXIFTOOL, "-j", "-G1", "-api", "IgnoreMinorErrors=1"]
    cmd.extend(READ_TAGS)
    for ext in extensions:
        cmd.extend(["-ext", ext])
    cmd.append(str(directory) + "/")

    return _run(cmd, str(directory))


def get_tag(record: dict, tag_name: str, groups: Optional[list[str]] = None) -> Optional[str]:
    """Extract a tag value from an exiftool JSON record.

    Checks multiple group prefixes since different file types use different groups.
    For example, CreateDate is "ExifIFD:CreateDate" in a JPEG and
    "QuickTime:CreateDate" in a MOV.
    """
    if groups:
        for group in groups:
            key = f"{group}:{tag_name}"
            if key in record:
                val = record[key]
                if val is not None and val != "" and val != "0000:00:00 00:00:00":
                    return val
    # Also check without group prefix (some formats)
    if tag_name in record:
        val = record[tag_name]
        if val is not None and val != "" and val != "0000:00:00 00:00:00":
            return val
    return None
