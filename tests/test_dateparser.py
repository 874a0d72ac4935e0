"""Tests for date parsing and display text."""

from datetime import timedelta

import pytest

from safeintel.liveintel.dateparser import (
    format_last_updated,
    format_seen_date,
    is_breaking_news,
    parse_incident_datetime,
    parse_seendate,
)

from conftest import NOW


@pytest.mark.parametrize("value,expected", [
    ("20260114T093000Z", "2026-01-14T09:30:00+00:00"),
    ("20260114093000", "2026-01-14T09:30:00+00:00"),
    ("20260114", "2026-01-14T00:00:00+00:00"),
])
def test_parse_seendate(value, expected):
    assert parse_seendate(value).isoformat() == expected


@pytest.mark.parametrize("value", ["", None, "2026", "yesterday"])
def test_parse_seendate_rejects_garbage(value):
    assert parse_seendate(value) is None


def test_free_form_dates_default_to_lagos_time():
    dt = parse_incident_datetime("January 10, 2026", "8pm")
    assert dt.isoformat() == "2026-01-10T20:00:00+01:00"


def test_free_form_accepts_gdelt_shape():
    assert parse_incident_datetime("20260112T080000Z").isoformat() == "2026-01-12T08:00:00+00:00"


@pytest.mark.parametrize("value", [None, "", "unknown"])
def test_unparseable_incident_date(value):
    assert parse_incident_datetime(value) is None


@pytest.mark.parametrize("seendate,label", [
    ("20260115T080000Z", "Today"),
    ("20260114T080000Z", "Yesterday"),
    ("20260111T080000Z", "4 days ago"),
    ("20260101T080000Z", "2 weeks ago"),
    ("20251001T080000Z", "3 months ago"),
    ("bad", "Unknown date"),
])
def test_format_seen_date(seendate, label):
    assert format_seen_date(seendate, NOW) == label


@pytest.mark.parametrize("delta,label", [
    (timedelta(seconds=20), "Just now"),
    (timedelta(minutes=1), "1 minute ago"),
    (timedelta(minutes=45), "45 minutes ago"),
    (timedelta(hours=3), "3 hours ago"),
    (timedelta(days=2), "2 days ago"),
])
def test_format_last_updated(delta, label):
    assert format_last_updated((NOW - delta).isoformat(), NOW) == label


def test_format_last_updated_old_and_missing():
    assert format_last_updated("2025-12-01T10:00:00+00:00", NOW) == "2025-12-01"
    assert format_last_updated(None, NOW) == "Unknown"


def test_breaking_news_window():
    assert is_breaking_news("20260115T000000Z", NOW) is True
    assert is_breaking_news("20260114T100000Z", NOW) is False
    assert is_breaking_news("", NOW) is False
