"""
Dynamic risk adjustment.

Blends a precomputed baseline level with the density of recent weighted
incidents. The lookback window narrows as the baseline gets more severe.
A density spike can raise the level; quiet periods only ever flag a
declining trend, they never lower it.
"""
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional
import logging

from .dateparser import parse_iso
from .time_windows import BASELINE_LEVELS, BASELINE_SCORES, get_time_window_days, normalize_level

logger = logging.getLogger(__name__)

# incidents per week considered normal for each baseline
EXPECTED_WEEKLY_DENSITY = {
    "LOW": 0.5,
    "MODERATE": 1.0,
    "HIGH": 2.0,
    "VERY HIGH": 3.0,
    "EXTREME": 4.0
}

RISING_RATIO = 1.5
SHARP_RISE_RATIO = 3.0
DECLINING_RATIO = 0.5
POINTS_PER_EXTRA_INCIDENT = 5


def count_recent_incidents(incidents: List[Dict], days: int, now: Optional[datetime] = None) -> int:
    """Weighted incidents whose occurred_at falls inside the window."""
    now = now or datetime.now(timezone.utc)
    cutoff = now - timedelta(days=days)
    count = 0
    for incident in incidents:
        if (incident.get("relevance") or {}).get("weight", 0) <= 0:
            continue
        occurred = parse_iso(incident.get("occurred_at"))
        if occurred is not None and occurred >= cutoff:
            count += 1
    return count


def calculate_dynamic_risk(baseline_level: Optional[str], incidents: List[Dict],
                           now: Optional[datetime] = None) -> Optional[Dict]:
    """
    Returns a DynamicRiskResult dict, or None when there is no usable
    baseline level.
    """
    baseline = normalize_level(baseline_level)
    if baseline is None:
        return None

    days = get_time_window_days(baseline)
    recent = count_recent_incidents(incidents, days, now)
    density = recent * 7 / days
    expected = EXPECTED_WEEKLY_DENSITY[baseline]
    ratio = density / expected

    if ratio >= RISING_RATIO:
        trend = "rising"
    elif ratio <= DECLINING_RATIO:
        trend = "declining"
    else:
        trend = "stable"

    level_index = BASELINE_LEVELS.index(baseline)
    if trend == "rising":
        level_index += 2 if ratio >= SHARP_RISE_RATIO else 1
    adjusted_level = BASELINE_LEVELS[min(level_index, len(BASELINE_LEVELS) - 1)]

    expected_count = expected * days / 7
    extra = max(0, int(round(recent - expected_count)))
    adjusted_score = min(100, BASELINE_SCORES[adjusted_level] + POINTS_PER_EXTRA_INCIDENT * extra)

    if adjusted_level != baseline:
        logger.info(f"Dynamic risk raised {baseline} -> {adjusted_level} ({recent} incidents in {days}d)")

    return {
        "adjusted_level": adjusted_level,
        "adjusted_score": adjusted_score,
        "baseline_level": baseline,
        "time_window_days": days,
        "recent_incident_density": round(density, 2),
        "recent_incident_count": recent,
        "trend": trend
    }
