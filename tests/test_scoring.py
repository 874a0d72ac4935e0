"""Tests for the risk scorer."""

import pytest

from safeintel.liveintel.scoring import (
    INCIDENT_TYPES,
    RiskScorer,
    calculate_risk_score,
    empty_risk_score,
    sort_incidents_newest_first,
)

from conftest import make_incident


def test_empty_list_gives_fixed_well_formed_result():
    result = calculate_risk_score([])

    assert result["score"] == 1.5
    assert result["level"] == "low"
    assert result["confidence"] == "medium"
    assert result["methodology"] == "No incidents found"
    assert result["breakdown"]["dominant_type"] == "none"
    assert result["breakdown"]["weighted_total"] == 0.0
    assert result == empty_risk_score()


def test_single_fatal_attack():
    result = calculate_risk_score([make_incident("attack", zone="immediate", fatal=True)])

    assert result["breakdown"]["weighted_total"] == 1.5
    assert result["score"] == 2.5
    assert result["level"] == "low"
    assert result["confidence"] == "low"
    assert result["breakdown"]["has_fatalities"] is True


@pytest.mark.parametrize("count,fatal,level,score,confidence", [
    (3, False, "moderate", 4.0, "medium"),
    (5, True, "critical", 8.5, "medium"),
    (8, True, "critical", 10.0, "high"),
])
def test_levels_and_confidence(count, fatal, level, score, confidence):
    incidents = [make_incident("kidnapping", zone="immediate", fatal=fatal, n=i) for i in range(count)]
    result = calculate_risk_score(incidents)

    assert result["level"] == level
    assert result["score"] == score
    assert result["confidence"] == confidence


def test_high_level_band():
    # 5 nearby attacks: 5 x 0.7 = 3.5 -> moderate; 6 -> 4.2 -> high
    assert calculate_risk_score([make_incident(zone="nearby", n=i) for i in range(5)])["level"] == "moderate"
    assert calculate_risk_score([make_incident(zone="nearby", n=i) for i in range(6)])["level"] == "high"


def test_off_route_incidents_counted_but_not_weighted():
    incidents = [
        make_incident("robbery", "Lagos-Ibadan Expressway", zone="on_route", n=1),
        make_incident("attack", "Kaduna", zone="off_route", fatal=True, n=2),
        make_incident("attack", "Kano", zone="off_route", n=3),
    ]
    result = calculate_risk_score(incidents)
    breakdown = result["breakdown"]

    assert breakdown["weighted_total"] == 0.8
    assert breakdown["immediate_count"] == 1
    assert breakdown["state_count"] == 2
    assert breakdown["dominant_type"] == "robbery"
    assert breakdown["has_fatalities"] is False
    assert result["confidence"] == "low"
    assert sum(breakdown[k] for k in ("immediate_count", "nearby_count", "regional_count", "state_count")) == 3


def test_dominant_type_comes_from_highest_weighted_zone():
    incidents = [
        make_incident("robbery", zone="immediate", n=1),
        make_incident("attack", zone="immediate", n=2),
        make_incident("fire", zone="nearby", n=3),
        make_incident("fire", zone="nearby", n=4),
        make_incident("fire", zone="nearby", n=5),
    ]
    # tie between robbery and attack goes to the more severe type
    assert calculate_risk_score(incidents)["breakdown"]["dominant_type"] == "attack"


def test_unknown_type_uses_other_severity():
    scorer = RiskScorer()
    incident = make_incident("riot", zone="immediate")
    assert scorer.incident_weight(incident) == scorer.TYPE_SEVERITY["other"]


def test_every_type_has_a_severity():
    assert set(RiskScorer.TYPE_SEVERITY) == set(INCIDENT_TYPES)


def test_sort_newest_first_puts_undated_last():
    incidents = [
        make_incident(occurred_at="2026-01-10T08:00:00+00:00", n=1),
        make_incident(occurred_at=None, n=2),
        make_incident(occurred_at="2026-01-14T08:00:00+00:00", n=3),
    ]
    ordered = sort_incidents_newest_first(incidents)
    assert [i["source_url"][-1] for i in ordered] == ["3", "1", "2"]
