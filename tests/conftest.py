"""Shared test fixtures for media-dates."""

from __future__ import annotations

import os
import shutil
import struct
import subprocess
import tempfile
from datetime import datetime
from pathlib import Path

import pytest

from media_dates.models import MediaItem, TimeSource


def _create_minimal_jpeg(filepath: Path):
    """Write a minimal 1x1 JFIF file that exiftool can read and write to."""
    data = bytearray()
    # SOI
    data += b'\xff\xd8'
    # APP0 (JFIF)
    app0 = b'JFIF\x00\x01\x01\x00\x00\x01\x00\x01\x00\x00'
    data += b'\xff\xe0' + struct.pack('>H', len(app0) + 2) + app0
    # DQT (quantization table)
    qt = bytes([8] * 64)
    data += b'\xff\xdb' + struct.pack('>H', len(qt) + 3) + b'\x00' + qt
    # SOF0 (start of frame)
    sof = struct.pack('>BHHB', 8, 1, 1, 1) + b'\x01\x11\x00'
    data += b'\xff\xc0' + struct.pack('>H', len(sof) + 2) + sof
    # DHT (Huffman table - DC)
    ht_dc = b'\x00' + bytes(16) + b'\x00'
    data += b'\xff\xc4' + struct.pack('>H', len(ht_dc) + 2) + ht_dc
    # DHT (Huffman table - AC)
    ht_ac = b'\x10' + bytes(16) + b'\x00'
    data += b'\xff\xc4' + struct.pack('>H', len(ht_ac) + 2) + ht_ac
    # SOS (start of scan)
    sos = struct.pack('>B', 1) + b'\x01\x00' + b'\x00\x3f\x00'
    data += b'\xff\xda' + struct.pack('>H', len(sos) + 2) + sos
    # Minimal scan data
    data += b'\x00\x00'
    # EOI
    data += b'\xff\xd9'
    filepath.write_bytes(bytes(data))


def has_exiftool() -> bool:
    """Check if exiftool is available."""
    try:
        result = subprocess.run(
            ["exiftool", "-ver"],
            capture_output=True, text=True, timeout=5,
        )
        return result.returncode == 0
    except (FileNotFoundError, subprocess.TimeoutExpired):
        return False


@pytest.fixture
def tmp_dir():
    """Create a temporary directory for tests."""
    d = tempfile.mkdtemp(prefix="media-dates-test-")
    yield Path(d)
    shutil.rmtree(d, ignore_errors=True)


@pytest.fixture
def create_jpeg(tmp_dir):
    """Factory fixture to create JPEG files with optional EXIF dates."""

    def _create(
        name: str = "test.jpg",
        subdir: str = "",
        datetime_original: str | None = None,
        create_date: str | None = None,
        mtime: datetime | None = None,
    ) -> Path:
        target_dir = tmp_dir / subdir if subdir else tmp_dir
        target_dir.mkdir(parents=True, exist_ok=True)

        filepath = target_dir / name
        _create_minimal_jpeg(filepath)

        if has_exiftool() and (datetime_original or create_date):
            cmd = ["exiftool", "-overwrite_original"]
            if datetime_original:
                cmd.append(f"-DateTimeOriginal={datetime_original}")
            if create_date:
                cmd.append(f"-CreateDate={create_date}")
            cmd.append(str(filepath))
            subprocess.run(cmd, capture_output=True, timeout=10)

        if mtime:
            ts = mtime.timestamp()
            os.utime(str(filepath), (ts, ts))

        return filepath

    return _create


@pytest.fixture
def make_item():
    """Factory fixture for in-memory MediaItems.

    Keyword arguments dto, create, filename_date and mtime set the
    corresponding sources; missing ones are None.
    """

    def _make(
        name: str = "photo.jpg",
        directory: str = "/photos/2023-11",
        dto: datetime | None = None,
        create: datetime | None = None,
        filename_date: datetime | None = None,
        mtime: datetime | None = None,
    ) -> MediaItem:
        path = Path(directory) / name
        return MediaItem(
            path=path,
            filename=name,
            extension=path.suffix,
            dates={
                TimeSource.DATE_TIME_ORIGINAL: dto,
                TimeSource.CREATE_DATE: create,
                TimeSource.FILENAME: filename_date,
                TimeSource.FILE_MODIFY: mtime,
            },
        )

    return _make
