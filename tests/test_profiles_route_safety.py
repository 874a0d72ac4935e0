"""Tests for the static profile store and the route safety check."""

from safeintel.profiles import ProfileStore, format_state_name
from safeintel.route_safety import check_route_safety, find_route, route_baseline_level


def test_area_profile_from_lga(profiles):
    profile = profiles.area_profile("ikeja gra", "Lagos")

    assert profile["name"] == "Ikeja"
    assert profile["state"] == "lagos"
    assert profile["zone"] == "Lagos Mainland"
    assert profile["baseline_level"] == "MODERATE"
    assert "Ogba" in profile["nearby_areas"]


def test_area_profile_falls_back_to_state(profiles):
    profile = profiles.area_profile("Kafanchan", "kaduna")

    assert profile["lga"] is None
    assert profile["baseline_level"] == "EXTREME"
    assert profile["state_name"] == "Kaduna"


def test_city_names_resolve_to_states(profiles):
    assert profiles.normalize_state_id("Ibadan") == "oyo"
    assert profiles.normalize_state_id("Abuja") == "fct"
    assert profiles.state_baseline("Abuja") == "HIGH"


def test_area_target_carries_profile(profiles):
    target = profiles.area_target("Ikeja", "lagos")
    assert target.cache_key() == "live-intel-ikeja-lagos"
    assert target.zone_for("Allen Avenue, Ikeja") == "immediate"
    assert target.zone_for("Maryland") == "nearby"


def test_roads_for_multi_state_route(profiles):
    roads = profiles.roads_for_route(["lagos", "ogun", "oyo"])

    assert [r["name"] for r in roads] == ["Lagos-Ibadan Expressway"]
    assert roads[0]["query_terms"] == ["Lagos-Ibadan Expressway", "Ibadan Expressway"]
    assert roads[0]["risk_level"] == "HIGH"


def test_single_state_route_uses_roads_inside_it(profiles):
    assert len(profiles.roads_for_route(["lagos"])) == 2


def test_route_target_matches_road_aliases(profiles):
    target = profiles.route_target(["lagos", "ogun", "oyo"], "Lagos to Ibadan")
    assert target.zone_for("Ibadan Expressway near Ogere") == "on_route"
    assert target.zone_for("Abeokuta, Ogun") == "route_state"


def test_missing_data_dir_gives_empty_datasets(tmp_path):
    store = ProfileStore(str(tmp_path / "nope"))

    assert store.dataset("states") == []
    assert store.dataset("routing") == {}
    assert store.state_baseline("lagos") is None
    assert check_route_safety("lagos", "oyo", store=store) is None


def test_format_state_name():
    assert format_state_name("akwa-ibom") == "Akwa Ibom"


def test_find_route_is_shortest_path():
    adjacency = {"a": ["b", "c"], "b": ["a", "d"], "c": ["a", "d"], "d": ["b", "c", "e"], "e": ["d"]}
    assert find_route("a", "e", adjacency) == ["a", "b", "d", "e"]
    assert find_route("a", "a", adjacency) == ["a"]
    assert find_route("a", "z", adjacency) is None


def test_lagos_to_ibadan(profiles):
    result = check_route_safety("Lagos", "Ibadan", store=profiles)

    assert result["route_state_ids"] == ["lagos", "ogun", "oyo"]
    assert result["route_display"] == "Lagos → Ogun → Oyo"
    assert result["overall_risk"] == "LOW"
    assert result["risk_score"] == 36
    assert result["confidence"] == "VERIFIED"
    assert result["dangerous_roads"] == []
    assert result["recommendations"]["primary"] == "Take standard travel precautions."


def test_dangerous_road_escalates_route(profiles):
    result = check_route_safety("Abuja", "Kaduna", store=profiles)

    assert result["overall_risk"] == "EXTREME"
    assert result["risk_score"] == 100
    assert result["highest_risk_state"]["state_id"] == "kaduna"
    assert result["dangerous_roads"][0]["name"] == "Abuja-Kaduna Expressway"
    assert result["dangerous_roads"][0]["danger_zones"] == ["Katari", "Rijana", "Jere"]
    assert result["recommendations"]["if_must_travel"]


def test_long_route_has_low_confidence(profiles):
    result = check_route_safety("lagos", "kano", store=profiles)

    assert len(result["route_state_ids"]) == 7
    assert result["overall_risk"] == "VERY HIGH"
    assert result["risk_score"] == 80
    assert result["confidence"] == "LOW_CONFIDENCE"


def test_unknown_place_returns_none(profiles):
    assert check_route_safety("Lagos", "Atlantis", store=profiles) is None


def test_route_baseline_level(profiles):
    assert route_baseline_level(["fct", "kaduna"], profiles) == "EXTREME"
    assert route_baseline_level(["lagos", "ogun", "oyo"], profiles) == "LOW"
    assert route_baseline_level([], profiles) is None
