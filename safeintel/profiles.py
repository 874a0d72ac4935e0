"""
Static profile store.

Read-only access to the precomputed geographic datasets (states, LGAs,
roads, routing and risk tables). Supplies baseline risk levels, danger
zones and travel advice, and works out which named roads a route uses.
Nothing here is ever written back.
"""

import json
import logging
import threading
from pathlib import Path
from typing import Dict, List, Optional

from safeintel.paths import get_static_data_dir
from safeintel.liveintel.time_windows import normalize_level
from safeintel.liveintel.zoning import AreaTarget, RouteTarget, slugify

logger = logging.getLogger(__name__)

DATASETS = {
    "states": ("states.json", list),
    "lgas": ("lgas.json", list),
    "roads": ("roads.json", list),
    "routing": ("routing.json", dict),
    "state_risks": ("state-risks.json", dict),
    "dangerous_roads": ("dangerous-roads-lookup.json", dict),
    "safety_recommendations": ("safety-recommendations.json", dict),
}


def format_state_name(state_id: str) -> str:
    """'akwa-ibom' -> 'Akwa Ibom'"""
    return " ".join(w.capitalize() for w in (state_id or "").split("-"))


class ProfileStore:
    """Lazy, thread-safe loader for the static JSON datasets."""

    def __init__(self, data_dir: Optional[str] = None):
        self.data_dir = Path(data_dir) if data_dir else get_static_data_dir()
        self._data = {}
        self._lock = threading.Lock()

    def _load(self, name: str):
        with self._lock:
            if name in self._data:
                return self._data[name]

            filename, kind = DATASETS[name]
            path = self.data_dir / filename
            try:
                with open(path, "r", encoding="utf-8") as f:
                    data = json.load(f)
                if not isinstance(data, kind):
                    logger.warning(f"{filename} has unexpected shape, ignoring it")
                    data = kind()
            except FileNotFoundError:
                logger.warning(f"Static dataset missing: {path}")
                data = kind()
            except (OSError, ValueError) as e:
                logger.error(f"Failed to load {path}: {e}")
                data = kind()

            self._data[name] = data
            return data

    def dataset(self, name: str):
        return self._load(name)

    # -- states -------------------------------------------------------------

    def normalize_state_id(self, state: str) -> str:
        """Accepts ids, names and city names ('Lagos', 'akwa ibom', 'kano city')."""
        sid = slugify(state)
        cities = self.dataset("routing").get("cities_to_states") or {}
        return cities.get(sid, sid)

    def state(self, state: str) -> Optional[Dict]:
        sid = self.normalize_state_id(state)
        for s in self.dataset("states"):
            if s.get("id") == sid or slugify(s.get("name", "")) == sid:
                return s
        return None

    def state_baseline(self, state: str) -> Optional[str]:
        sid = self.normalize_state_id(state)
        risk = self.dataset("state_risks").get(sid) or {}
        level = normalize_level(risk.get("risk_level"))
        if level:
            return level
        record = self.state(sid) or {}
        return normalize_level(record.get("risk_level"))

    # -- areas --------------------------------------------------------------

    def find_lga(self, location: str, state: str) -> Optional[Dict]:
        sid = self.normalize_state_id(state)
        loc = slugify(location)
        for lga in self.dataset("lgas"):
            if lga.get("state") != sid:
                continue
            names = [lga.get("id", ""), lga.get("name", "")] + list(lga.get("aliases") or [])
            if loc in {slugify(n) for n in names if n}:
                return lga
        return None

    def area_profile(self, location: str, state: str) -> Dict:
        """Everything known about an area; fields fall back to the state."""
        sid = self.normalize_state_id(state)
        state_record = self.state(sid) or {}
        lga = self.find_lga(location, sid)

        profile = {
            "name": location,
            "state": sid,
            "state_name": state_record.get("name") or format_state_name(sid),
            "lga": None,
            "aliases": [],
            "nearby_areas": [],
            "zone": None,
            "baseline_level": self.state_baseline(sid),
            "description": state_record.get("risk_description", ""),
            "danger_zones": [],
            "key_stat": state_record.get("key_stat", "")
        }

        if lga:
            profile.update({
                "name": lga.get("name") or location,
                "lga": lga.get("lga") or lga.get("name"),
                "aliases": list(lga.get("aliases") or []),
                "nearby_areas": list(lga.get("nearby") or []),
                "zone": lga.get("zone"),
                "description": lga.get("description") or profile["description"],
                "danger_zones": list(lga.get("danger_zones") or [])
            })
            profile["baseline_level"] = normalize_level(lga.get("risk_level")) or profile["baseline_level"]

        return profile

    def area_target(self, location: str, state: str, zone: Optional[str] = None,
                    risk_level: Optional[str] = None) -> AreaTarget:
        profile = self.area_profile(location, state)
        return AreaTarget(
            name=profile["name"],
            state=profile["state"],
            aliases=profile["aliases"],
            lga=profile["lga"],
            nearby_areas=profile["nearby_areas"],
            zone=zone or profile["zone"],
            baseline_level=normalize_level(risk_level) or profile["baseline_level"]
        )

    # -- roads and routes ---------------------------------------------------

    def _road_state_ids(self, road: Dict) -> List[str]:
        return [self.normalize_state_id(s) for s in road.get("states") or []]

    def roads_for_route(self, state_ids: List[str]) -> List[Dict]:
        """
        Named roads the route plausibly uses: a road counts when it links
        at least two of the route's states, or, for a single-state route,
        when it lies in that state.
        """
        route = [self.normalize_state_id(s) for s in state_ids]
        route_set = set(route)
        matches = []
        for road in self.dataset("roads"):
            road_states = set(self._road_state_ids(road))
            shared = road_states & route_set
            if len(shared) >= 2 or (len(route_set) == 1 and shared):
                name = road.get("name", "")
                terms = [name] + ([road["alias"]] if road.get("alias") else [])
                matches.append({
                    "id": road.get("slug") or slugify(name),
                    "name": name,
                    "alias": road.get("alias"),
                    "query_terms": terms,
                    "risk_level": normalize_level(road.get("risk_level")),
                    "danger_zones": list(road.get("danger_zones") or road.get("dangerZones") or []),
                    "alternative": road.get("alternative")
                })
        return matches

    def route_profile(self, state_ids: List[str]) -> Dict:
        sids = [self.normalize_state_id(s) for s in state_ids]
        return {
            "states": [
                {"id": s, "name": format_state_name(s), "baseline_level": self.state_baseline(s)}
                for s in sids
            ],
            "roads": self.roads_for_route(sids)
        }

    def route_target(self, state_ids: List[str], route_display: str,
                     risk_level: Optional[str] = None) -> RouteTarget:
        sids = [self.normalize_state_id(s) for s in state_ids]
        road_names = []
        for road in self.roads_for_route(sids):
            road_names.extend(road["query_terms"])
        return RouteTarget(
            state_ids=sids,
            route_display=route_display,
            road_names=road_names,
            baseline_level=normalize_level(risk_level)
        )


_store = None
_store_lock = threading.Lock()


def get_profile_store() -> ProfileStore:
    """Process-wide store over the configured static data dir."""
    global _store
    with _store_lock:
        if _store is None:
            _store = ProfileStore()
        return _store
