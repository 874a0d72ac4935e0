"""
Relevance zoning for classified incidents.

Two schemes share one annotation shape: radial zoning around a single
area (immediate / nearby / regional / state_wide) and topological zoning
along a multi-state route (on_route / route_state / off_route). Scoring
only ever looks at the numeric weight, so it does not care which scheme
produced it.
"""
import re
from typing import Dict, List, Optional

AREA_ZONES = ["immediate", "nearby", "regional", "state_wide"]
ROUTE_ZONES = ["on_route", "route_state", "off_route"]

ZONE_WEIGHTS = {
    "immediate": 1.0,
    "nearby": 0.7,
    "regional": 0.4,
    "state_wide": 0.2,
    "on_route": 1.0,
    "route_state": 0.4,
    "off_route": 0.0,
}

ZONE_LABELS = {
    "immediate": "In this area",
    "nearby": "Nearby",
    "regional": "Elsewhere in the state",
    "state_wide": "State-wide",
    "on_route": "On your route",
    "route_state": "In a state on your route",
    "off_route": "Off route",
}


def slugify(text: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", (text or "").lower()).strip("-")


def _contains(haystack: str, needle: str) -> bool:
    """Case-insensitive: does the extracted location mention needle?"""
    if not haystack or not needle:
        return False
    n = needle.lower().strip()
    if not n:
        return False
    # word boundaries keep "Niger" from matching "Nigeria"
    return re.search(r"\b" + re.escape(n) + r"\b", haystack.lower()) is not None


def _matches_any(location: str, candidates: List[str]) -> bool:
    return any(_contains(location, c) for c in candidates if c)


def _state_names(state_id: str) -> List[str]:
    """'akwa-ibom' matches 'Akwa Ibom' and 'akwa-ibom'; 'fct' also matches Abuja."""
    names = [state_id, state_id.replace("-", " ")]
    if state_id.lower() == "fct":
        names.append("abuja")
    return names


class AreaTarget:
    """A single area query: a neighbourhood or LGA inside one state."""

    kind = "area"
    zones = AREA_ZONES

    def __init__(self, name: str, state: str, aliases: Optional[List[str]] = None,
                 lga: Optional[str] = None, nearby_areas: Optional[List[str]] = None,
                 zone: Optional[str] = None, baseline_level: Optional[str] = None):
        self.name = name
        self.state = state
        self.aliases = list(aliases or [])
        self.lga = lga
        self.nearby_areas = list(nearby_areas or [])
        self.zone = zone
        self.baseline_level = baseline_level

    def cache_key(self) -> str:
        return f"live-intel-{slugify(self.name)}-{slugify(self.state)}"

    def zone_for(self, location: Optional[str]) -> str:
        if not location or not location.strip():
            return "state_wide"
        if _matches_any(location, [self.name] + self.aliases):
            return "immediate"
        if _matches_any(location, [self.lga] + self.nearby_areas):
            return "nearby"
        if _matches_any(location, _state_names(self.state)):
            return "regional"
        return "state_wide"

    def __repr__(self):
        return f"AreaTarget({self.name!r}, {self.state!r})"


class RouteTarget:
    """A multi-state route, optionally with the named roads it follows."""

    kind = "route"
    zones = ROUTE_ZONES

    def __init__(self, state_ids: List[str], route_display: str,
                 road_names: Optional[List[str]] = None,
                 baseline_level: Optional[str] = None):
        self.state_ids = list(state_ids)
        self.route_display = route_display
        self.road_names = list(road_names or [])
        self.baseline_level = baseline_level

    def cache_key(self) -> str:
        states = "-".join(sorted(slugify(s) for s in self.state_ids))
        return f"route-intel-{states}-{slugify(self.route_display)}"

    def zone_for(self, location: Optional[str]) -> str:
        if not location or not location.strip():
            return "route_state"
        if _matches_any(location, self.road_names):
            return "on_route"
        for state_id in self.state_ids:
            if _matches_any(location, _state_names(state_id)):
                return "route_state"
        return "off_route"

    def __repr__(self):
        return f"RouteTarget({self.state_ids!r}, {self.route_display!r})"


def relevance_for_zone(zone: str) -> Dict:
    return {"zone": zone, "weight": ZONE_WEIGHTS[zone], "label": ZONE_LABELS[zone]}


def annotate_incident(incident: Dict, target) -> Dict:
    """Return a copy of the incident carrying its relevance annotation."""
    zone = target.zone_for(incident.get("extracted_location"))
    return {**incident, "relevance": relevance_for_zone(zone)}


def annotate_incidents(incidents: List[Dict], target) -> List[Dict]:
    return [annotate_incident(i, target) for i in incidents]


def group_incidents(incidents: List[Dict], target) -> Dict[str, List[Dict]]:
    """
    Bucket zoned incidents by zone.

    Every zone of the target's scheme gets a (possibly empty) bucket and
    each incident lands in exactly one of them. Incidents without an
    annotation are zoned on the fly.
    """
    groups = {zone: [] for zone in target.zones}
    for incident in incidents:
        relevance = incident.get("relevance") or {}
        zone = relevance.get("zone")
        if zone not in groups:
            zone = target.zone_for(incident.get("extracted_location"))
        groups[zone].append(incident)
    return groups
