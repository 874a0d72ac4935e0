"""Shared fixtures. Runtime dirs point at a temp dir before any safeintel import."""

import os
import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path

_RUNTIME = tempfile.mkdtemp(prefix="safeintel-tests-")
FIXTURES_DIR = Path(__file__).parent / "fixtures" / "static"

os.environ["SAFEINTEL_LOG_DIR"] = os.path.join(_RUNTIME, "logs")
os.environ["SAFEINTEL_CACHE_DIR"] = os.path.join(_RUNTIME, "cache")
os.environ["STATIC_DATA_DIR"] = str(FIXTURES_DIR)
for _var in ("CLASSIFIER_URL", "BRIEFING_URL", "OPENAI_API_KEY",
             "AI_INTEGRATIONS_OPENAI_API_KEY", "AI_INTEGRATIONS_OPENAI_BASE_URL"):
    os.environ.pop(_var, None)
os.makedirs(os.environ["SAFEINTEL_LOG_DIR"], exist_ok=True)

import pytest  # noqa: E402

from safeintel.liveintel.cache import IntelligenceCache  # noqa: E402
from safeintel.liveintel.zoning import relevance_for_zone  # noqa: E402
from safeintel.profiles import ProfileStore  # noqa: E402

NOW = datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start=NOW):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)


def make_report(n, title=None, published_at="20260114T093000Z", url=None):
    return {
        "url": url or f"https://news.example.ng/story-{n}",
        "title": title or f"Gunmen attack travellers in story {n}",
        "published_at": published_at,
        "domain": "news.example.ng",
        "incident_score": 60
    }


def make_incident(type_="attack", location="Ikeja", zone=None, fatal=False,
                  occurred_at="2026-01-14T09:30:00+00:00", n=1):
    incident = {
        "source_url": f"https://news.example.ng/story-{n}",
        "title": f"{type_} in {location}",
        "type": type_,
        "extracted_location": location,
        "occurred_at": occurred_at,
        "has_fatalities": fatal,
        "raw_confidence": 0.8,
        "summary": ""
    }
    if zone:
        incident["relevance"] = relevance_for_zone(zone)
    return incident


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(tmp_path, clock):
    return IntelligenceCache(db_path=str(tmp_path / "intel.db"), clock=clock)


@pytest.fixture
def profiles():
    return ProfileStore(str(FIXTURES_DIR))
