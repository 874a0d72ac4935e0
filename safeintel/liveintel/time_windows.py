"""Baseline-dependent lookback windows and article budgets."""
from typing import Optional

BASELINE_LEVELS = ["LOW", "MODERATE", "HIGH", "VERY HIGH", "EXTREME"]

BASELINE_SCORES = {
    "EXTREME": 100,
    "VERY HIGH": 80,
    "HIGH": 60,
    "MODERATE": 40,
    "LOW": 20
}

# Calmer places look further back to catch emerging risk.
WINDOW_DAYS = {
    "LOW": 30,
    "MODERATE": 21,
    "HIGH": 14,
    "VERY HIGH": 7,
    "EXTREME": 7
}
DEFAULT_WINDOW_DAYS = 14

MAX_ARTICLES = {
    "LOW": 10,
    "MODERATE": 15,
    "HIGH": 20,
    "VERY HIGH": 25,
    "EXTREME": 30
}
DEFAULT_MAX_ARTICLES = 15


def normalize_level(risk_level: Optional[str]) -> Optional[str]:
    """'very_high', 'Very High' and 'VERY-HIGH' all become 'VERY HIGH'."""
    if not risk_level:
        return None
    level = str(risk_level).strip().upper().replace("_", " ").replace("-", " ")
    level = " ".join(level.split())
    return level if level in BASELINE_SCORES else None


def get_time_window_days(risk_level: Optional[str]) -> int:
    return WINDOW_DAYS.get(normalize_level(risk_level), DEFAULT_WINDOW_DAYS)


def get_time_window_for_risk(risk_level: Optional[str]) -> str:
    """GDELT-style label for the lookback window, e.g. '21d'."""
    return f"{get_time_window_days(risk_level)}d"


def get_max_articles_for_risk(risk_level: Optional[str]) -> int:
    return MAX_ARTICLES.get(normalize_level(risk_level), DEFAULT_MAX_ARTICLES)


def gdelt_timespan(days: int) -> str:
    """Map a window length onto a GDELT timespan value."""
    if days <= 1:
        return '24h'
    if days <= 3:
        return '3d'
    if days <= 7:
        return '7d'
    if days <= 14:
        return '2w'
    if days <= 21:
        return '3w'
    return '1m'
