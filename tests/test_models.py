"""Tests for model helpers: source names, intervals, summaries."""

from datetime import date, datetime
from pathlib import Path

import pytest

from media_dates.models import (
    DEFAULT_SOURCES,
    BatchSummary,
    DateInterval,
    MediaItem,
    TimeSource,
    parse_source,
    parse_source_list,
)


class TestParseSource:

    @pytest.mark.parametrize("value, expected", [
        ("DateTimeOriginal", TimeSource.DATE_TIME_ORIGINAL),
        ("datetimeoriginal", TimeSource.DATE_TIME_ORIGINAL),
        ("create_date", TimeSource.CREATE_DATE),
        (" FileNameDate ", TimeSource.FILENAME),
        ("FILE_MODIFY", TimeSource.FILE_MODIFY),
    ])
    def test_valid(self, value, expected):
        assert parse_source(value) == expected

    def test_invalid(self):
        with pytest.raises(ValueError, match="Invalid source"):
            parse_source("GPSDateTime")

    def test_list_keeps_order(self):
        assert parse_source_list("FileNameDate,DateTimeOriginal") == [
            TimeSource.FILENAME, TimeSource.DATE_TIME_ORIGINAL,
        ]

    def test_list_rejects_duplicates(self):
        with pytest.raises(ValueError):
            parse_source_list("CreateDate,create_date")

    def test_list_rejects_empty(self):
        with pytest.raises(ValueError):
            parse_source_list(" , ")

    def test_default_order(self):
        assert DEFAULT_SOURCES[0] == TimeSource.DATE_TIME_ORIGINAL
        assert DEFAULT_SOURCES[-1] == TimeSource.FILE_MODIFY


class TestDateInterval:

    def test_half_open(self):
        interval = DateInterval(date(2023, 11, 5), date(2023, 11, 7))
        assert interval.days == 2
        assert interval.contains(datetime(2023, 11, 5, 0, 0))
        assert interval.contains(datetime(2023, 11, 6, 23, 59, 59))
        assert not interval.contains(datetime(2023, 11, 7, 0, 0))
        assert not interval.contains(datetime(2023, 11, 4, 23, 59, 59))

    def test_covers(self):
        interval = DateInterval(date(2023, 11, 1), date(2023, 12, 1))
        assert interval.covers(date(2023, 11, 1), date(2023, 12, 1))
        assert not interval.covers(date(2023, 10, 31), date(2023, 11, 2))

    def test_start_after_end(self):
        with pytest.raises(ValueError):
            DateInterval(date(2023, 11, 7), date(2023, 11, 5))

    def test_empty(self):
        assert DateInterval(date(2023, 1, 1), date(2023, 1, 1)).is_empty


class TestMediaItem:

    def test_is_normalized(self):
        item = MediaItem(Path("/p/2015-07-06_16-21-32_01.jpg"), "2015-07-06_16-21-32_01.jpg", ".jpg")
        assert item.is_normalized
        assert item.date(TimeSource.FILENAME) is None

    def test_not_normalized(self):
        item = MediaItem(Path("/p/IMG_1.JPG"), "IMG_1.JPG", ".JPG")
        assert not item.is_normalized


class TestBatchSummary:

    def test_skip_reasons(self):
        summary = BatchSummary()
        summary.skip("a")
        summary.skip("a")
        summary.skip("b")
        assert summary.total_skipped == 3
        assert summary.skipped["a"] == 2
