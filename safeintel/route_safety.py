"""
Route safety check.

Finds the shortest state-to-state path through the adjacency table,
scores it from the states' baseline risk, escalates when a known
dangerous road sits on one of the hops, and attaches travel advice.
The resulting overall risk doubles as the baseline level for route
intelligence.
"""

import logging
from collections import deque
from typing import Dict, List, Optional

from safeintel.liveintel.time_windows import BASELINE_SCORES, normalize_level
from safeintel.profiles import ProfileStore, format_state_name, get_profile_store

logger = logging.getLogger(__name__)

HIGH_RISK_LEVELS = ("EXTREME", "VERY HIGH")

# (minimum composite score, level)
ROUTE_LEVEL_THRESHOLDS = [
    (85, "EXTREME"),
    (70, "VERY HIGH"),
    (55, "HIGH"),
    (40, "MODERATE"),
]

DEFAULT_RECOMMENDATIONS = {
    "primary": "Take standard travel precautions.",
    "alternatives": [],
    "if_must_travel": []
}

METHODOLOGY = "Risk calculated based on state risk levels, known dangerous roads, and verified incident data."


def find_route(from_state: str, to_state: str, adjacency: Dict[str, List[str]]) -> Optional[List[str]]:
    """Breadth-first search; returns the list of state ids or None."""
    if from_state == to_state:
        return [from_state]

    visited = set()
    queue = deque([(from_state, [from_state])])

    while queue:
        current, path = queue.popleft()
        if current in visited:
            continue
        visited.add(current)

        for neighbor in adjacency.get(current, []):
            if neighbor == to_state:
                return path + [neighbor]
            if neighbor not in visited:
                queue.append((neighbor, path + [neighbor]))

    return None


def calculate_route_risk(route: List[str], state_risks: Dict[str, Dict]) -> Dict:
    route_risks = []
    for state in route:
        risk = state_risks.get(state) or {}
        level = normalize_level(risk.get("risk_level")) or "MODERATE"
        route_risks.append({
            "state": state,
            "risk_level": level,
            "risk_score": risk.get("risk_score") or BASELINE_SCORES[level]
        })

    scores = [r["risk_score"] for r in route_risks]
    max_risk = max(scores)
    avg_risk = sum(scores) / len(scores)
    high_risk_count = sum(1 for r in route_risks if r["risk_level"] in HIGH_RISK_LEVELS)

    composite = (max_risk * 0.6) + (avg_risk * 0.3) + (high_risk_count * 5 * 0.1)

    overall = "LOW"
    for minimum, level in ROUTE_LEVEL_THRESHOLDS:
        if composite >= minimum:
            overall = level
            break

    return {
        "overall_risk": overall,
        "risk_score": int(round(composite)),
        "route_risks": route_risks,
        "highest_risk": max(route_risks, key=lambda r: r["risk_score"])
    }


def dangerous_roads_on_route(route: List[str], roads: Dict[str, Dict]) -> List[Dict]:
    """Known dangerous roads keyed by consecutive hop, e.g. 'kaduna_abuja'."""
    found = []
    for a, b in zip(route, route[1:]):
        road = roads.get(f"{a}_{b}")
        if road:
            found.append(road)
    return found


def route_confidence(route: List[str]) -> str:
    if len(route) <= 4:
        return "VERIFIED"
    if len(route) <= 6:
        return "ESTIMATED"
    return "LOW_CONFIDENCE"


def check_route_safety(from_place: str, to_place: str, store: ProfileStore = None) -> Optional[Dict]:
    """
    Assess a trip between two states or cities.

    Returns:
        Route safety dict, or None when either end is unknown or no
        path connects them
    """
    store = store or get_profile_store()
    adjacency = store.dataset("routing").get("state_adjacency") or {}

    from_state = store.normalize_state_id(from_place)
    to_state = store.normalize_state_id(to_place)
    if from_state not in adjacency or to_state not in adjacency:
        logger.info(f"Route check for unknown place: {from_place} -> {to_place}")
        return None

    route = find_route(from_state, to_state, adjacency)
    if not route:
        return None

    assessment = calculate_route_risk(route, store.dataset("state_risks"))
    dangerous = dangerous_roads_on_route(route, store.dataset("dangerous_roads"))

    final_risk = assessment["overall_risk"]
    final_score = assessment["risk_score"]

    if dangerous:
        worst = max(dangerous, key=lambda r: BASELINE_SCORES.get(normalize_level(r.get("risk")), 40))
        worst_level = normalize_level(worst.get("risk"))
        worst_score = BASELINE_SCORES.get(worst_level, 40)
        if worst_level and worst_score > final_score:
            final_risk, final_score = worst_level, worst_score

    advice = store.dataset("safety_recommendations").get(final_risk)
    if advice:
        recommendations = {
            "primary": advice.get("summary") or DEFAULT_RECOMMENDATIONS["primary"],
            "alternatives": list(advice.get("recommendations") or []),
            "if_must_travel": [advice["travel_advisory"]] if advice.get("travel_advisory") else []
        }
    else:
        recommendations = dict(DEFAULT_RECOMMENDATIONS)

    names = [format_state_name(s) for s in route]
    highest = assessment["highest_risk"]

    return {
        "from": from_place,
        "to": to_place,
        "route": names,
        "route_state_ids": route,
        "route_display": " → ".join(names),
        "overall_risk": final_risk,
        "risk_score": final_score,
        "confidence": route_confidence(route),
        "state_breakdown": [
            {"state_id": r["state"], "name": format_state_name(r["state"]), "risk_level": r["risk_level"]}
            for r in assessment["route_risks"]
        ],
        "highest_risk_state": {
            "state_id": highest["state"],
            "name": format_state_name(highest["state"]),
            "risk_level": highest["risk_level"]
        },
        "dangerous_roads": [
            {
                "name": road.get("name", ""),
                "road_id": road.get("name", "").lower().replace(" ", "-"),
                "risk_level": normalize_level(road.get("risk")),
                "danger_zones": list(road.get("danger_zones") or []),
                "recommendation": road.get("alternative", "")
            }
            for road in dangerous
        ],
        "recommendations": recommendations,
        "methodology": METHODOLOGY
    }


def route_baseline_level(state_ids: List[str], store: ProfileStore = None) -> Optional[str]:
    """Composite baseline for an already-known list of route states."""
    store = store or get_profile_store()
    sids = [store.normalize_state_id(s) for s in state_ids if s]
    if not sids:
        return None
    assessment = calculate_route_risk(sids, store.dataset("state_risks"))
    level, score = assessment["overall_risk"], assessment["risk_score"]
    for road in dangerous_roads_on_route(sids, store.dataset("dangerous_roads")):
        road_level = normalize_level(road.get("risk"))
        if road_level and BASELINE_SCORES[road_level] > score:
            level, score = road_level, BASELINE_SCORES[road_level]
    return level
