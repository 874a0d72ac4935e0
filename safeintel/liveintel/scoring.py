"""
Risk scoring for zoned incidents.

Each incident contributes zone weight x type severity (x1.5 with
fatalities) to a weighted total, which maps onto a 1-10 score and a
discrete level. Confidence depends only on how many incidents carried
any weight at all.
"""
from collections import Counter
from typing import Dict, List
import logging

from .dateparser import parse_iso
from .zoning import ZONE_WEIGHTS

logger = logging.getLogger(__name__)

INCIDENT_TYPES = ["attack", "kidnapping", "robbery", "gunshots", "checkpoint", "fire", "accident", "other"]

ZONE_BREAKDOWN_KEYS = {
    "immediate": "immediate_count",
    "on_route": "immediate_count",
    "nearby": "nearby_count",
    "regional": "regional_count",
    "route_state": "regional_count",
    "state_wide": "state_count",
    "off_route": "state_count",
}

NO_INCIDENTS_METHODOLOGY = "No incidents found"


class RiskScorer:
    """Aggregates zoned incidents into a RiskScoreResult dict."""

    TYPE_SEVERITY = {
        "attack": 1.0,
        "kidnapping": 1.0,
        "gunshots": 0.9,
        "robbery": 0.8,
        "fire": 0.6,
        "accident": 0.5,
        "other": 0.4,
        "checkpoint": 0.3
    }

    FATALITY_MULTIPLIER = 1.5

    # (upper bound on weighted total, level)
    LEVEL_THRESHOLDS = [
        (2, "low"),
        (4, "moderate"),
        (7, "high"),
    ]

    def incident_weight(self, incident: Dict) -> float:
        relevance = incident.get("relevance") or {}
        zone_weight = relevance.get("weight")
        if zone_weight is None:
            zone_weight = ZONE_WEIGHTS.get(relevance.get("zone"), 0.0)
        severity = self.TYPE_SEVERITY.get(incident.get("type"), self.TYPE_SEVERITY["other"])
        weight = zone_weight * severity
        if incident.get("has_fatalities"):
            weight *= self.FATALITY_MULTIPLIER
        return weight

    def _level_for(self, weighted_total: float) -> str:
        for upper, level in self.LEVEL_THRESHOLDS:
            if weighted_total < upper:
                return level
        return "critical"

    @staticmethod
    def _confidence_for(weighted_count: int) -> str:
        if weighted_count < 3:
            return "low"
        if weighted_count < 6:
            return "medium"
        return "high"

    def _dominant_type(self, weighted: List[Dict]) -> str:
        """Most frequent type in the highest-weighted zone present."""
        if not weighted:
            return "none"

        def zone_weight(i):
            return (i.get("relevance") or {}).get("weight", 0.0)

        top = max(zone_weight(i) for i in weighted)
        counts = Counter(i.get("type", "other") for i in weighted if zone_weight(i) == top)
        return max(counts, key=lambda t: (counts[t], self.TYPE_SEVERITY.get(t, 0.0)))

    def empty_result(self) -> Dict:
        return {
            "score": 1.5,
            "level": "low",
            "confidence": "medium",
            "methodology": NO_INCIDENTS_METHODOLOGY,
            "breakdown": {
                "immediate_count": 0,
                "nearby_count": 0,
                "regional_count": 0,
                "state_count": 0,
                "weighted_total": 0.0,
                "dominant_type": "none",
                "has_fatalities": False
            }
        }

    def score(self, incidents: List[Dict]) -> Dict:
        if not incidents:
            return self.empty_result()

        breakdown = {"immediate_count": 0, "nearby_count": 0, "regional_count": 0, "state_count": 0}
        weighted_total = 0.0
        weighted = []

        for incident in incidents:
            zone = (incident.get("relevance") or {}).get("zone")
            breakdown[ZONE_BREAKDOWN_KEYS.get(zone, "state_count")] += 1

            weight = self.incident_weight(incident)
            if weight > 0:
                weighted_total += weight
                weighted.append(incident)

        score = round(min(10.0, 1.0 + weighted_total), 1)
        level = self._level_for(weighted_total)
        confidence = self._confidence_for(len(weighted))

        excluded = len(incidents) - len(weighted)
        methodology = (
            f"{len(weighted)} incident{'s' if len(weighted) != 1 else ''} weighted by "
            f"proximity zone, incident type and fatalities"
        )
        if excluded:
            methodology += f"; {excluded} outside the relevant area not counted"

        breakdown.update({
            "weighted_total": round(weighted_total, 2),
            "dominant_type": self._dominant_type(weighted),
            "has_fatalities": any(i.get("has_fatalities") for i in weighted)
        })

        logger.debug(f"Risk score {score} ({level}, {confidence} confidence) from {len(incidents)} incidents")
        return {
            "score": score,
            "level": level,
            "confidence": confidence,
            "methodology": methodology,
            "breakdown": breakdown
        }


def get_scorer() -> RiskScorer:
    """Get a scorer instance."""
    return RiskScorer()


def calculate_risk_score(incidents: List[Dict]) -> Dict:
    return get_scorer().score(incidents)


def empty_risk_score() -> Dict:
    return get_scorer().empty_result()


def sort_incidents_newest_first(incidents: List[Dict]) -> List[Dict]:
    """Newest occurred_at first; undated incidents go last."""
    def key(incident: Dict):
        dt = parse_iso(incident.get("occurred_at"))
        return (dt is not None, dt.timestamp() if dt else 0)

    return sorted(incidents, key=key, reverse=True)
