"""Tests for briefing generation and normalization."""

import json
from unittest.mock import MagicMock

import pytest

from safeintel.liveintel.briefing import (
    HttpBriefingGenerator,
    OpenAIBriefingGenerator,
    normalize_briefing,
)
from safeintel.liveintel.errors import BriefingError
from safeintel.liveintel.scoring import empty_risk_score

from conftest import make_incident

AREA_CONTEXT = {
    "type": "area",
    "location": "Ikeja, Lagos",
    "incidents": [],
    "risk_score": empty_risk_score(),
    "static_profile": {"name": "Ikeja", "state": "lagos"},
    "dynamic_risk": None,
}

ROUTE_CONTEXT = {
    "type": "route",
    "location": "Lagos → Ibadan",
    "incidents": [make_incident("robbery", "Lagos-Ibadan Expressway", zone="on_route")],
    "risk_score": empty_risk_score(),
    "static_profile": {"route": ["lagos", "ogun", "oyo"]},
    "dynamic_risk": {"baseline_level": "LOW", "adjusted_level": "LOW", "recent_incident_count": 1,
                     "time_window_days": 30, "trend": "declining"},
    "route_state_ids": ["lagos", "ogun", "oyo"],
}


def _post_response(payload, status=200):
    resp = MagicMock()
    resp.status_code = status
    resp.ok = 200 <= status < 300
    resp.json.return_value = payload
    return resp


def test_area_shape_is_filled_in():
    briefing = normalize_briefing({"summary": "Quiet week in Ikeja."}, "area")

    assert briefing["bottom_line"] == "Quiet week in Ikeja."
    assert briefing["for_travelers"] == {"headline": "", "tips": []}
    assert briefing["for_residents"] == {"headline": "", "tips": []}
    assert briefing["recent_developments"] == []
    assert "route_segments" not in briefing


def test_route_shape_keeps_travel_extras():
    briefing = normalize_briefing({
        "summary": "Expect delays near Sagamu.",
        "bottom_line": "Travel in daylight.",
        "for_travelers": {"headline": "Caution", "tips": ["Leave early", None],
                          "best_times": "06:00-16:00", "alternatives": ["Train"]},
        "route_segments": [{"segment": "Lagos to Sagamu", "status": "caution", "incidents": ["robbery"]}, "bad"],
    }, "route")

    assert briefing["bottom_line"] == "Travel in daylight."
    assert briefing["for_travelers"]["tips"] == ["Leave early"]
    assert briefing["for_travelers"]["best_times"] == "06:00-16:00"
    assert briefing["for_travelers"]["alternatives"] == ["Train"]
    assert briefing["route_segments"] == [
        {"segment": "Lagos to Sagamu", "status": "caution", "incidents": ["robbery"]}
    ]
    assert "for_residents" not in briefing


@pytest.mark.parametrize("data", [None, "text", {"summary": "  ", "bottom_line": ""}, {}])
def test_unusable_briefing_raises(data):
    with pytest.raises(BriefingError):
        normalize_briefing(data)


def test_http_generator_sends_camel_case_body():
    session = MagicMock()
    session.post.return_value = _post_response({"briefing": {"summary": "Busy road.", "bottom_line": "Go early."}})
    generator = HttpBriefingGenerator("http://briefing.local", session=session)

    briefing = generator.generate(ROUTE_CONTEXT)

    body = session.post.call_args.kwargs["json"]
    assert body["type"] == "route"
    assert body["routeStateIds"] == ["lagos", "ogun", "oyo"]
    assert body["riskScore"] == ROUTE_CONTEXT["risk_score"]
    assert body["dynamicRisk"]["baseline_level"] == "LOW"
    assert briefing["bottom_line"] == "Go early."
    assert briefing["route_segments"] == []


def test_http_generator_omits_missing_dynamic_risk():
    session = MagicMock()
    session.post.return_value = _post_response({"briefing": {"summary": "Calm."}})

    HttpBriefingGenerator("http://briefing.local", session=session).generate(AREA_CONTEXT)

    body = session.post.call_args.kwargs["json"]
    assert "dynamicRisk" not in body
    assert "routeStateIds" not in body


@pytest.mark.parametrize("response", [
    _post_response({}, status=502),
    _post_response({"status": "ok"}),
])
def test_http_generator_failures_raise(response):
    session = MagicMock()
    session.post.return_value = response
    with pytest.raises(BriefingError):
        HttpBriefingGenerator("http://briefing.local", session=session).generate(AREA_CONTEXT)


def test_openai_prompt_handles_zero_incidents():
    client = MagicMock()
    message = MagicMock(content=json.dumps({"summary": "No reported incidents.", "bottom_line": "Normal precautions."}))
    client.chat.completions.create.return_value = MagicMock(choices=[MagicMock(message=message)])

    briefing = OpenAIBriefingGenerator(client=client).generate(AREA_CONTEXT)

    prompt = client.chat.completions.create.call_args.kwargs["messages"][-1]["content"]
    assert "No incidents were reported" in prompt
    assert "No historical baseline available." in prompt
    assert briefing["bottom_line"] == "Normal precautions."
    assert "for_residents" in briefing


def test_openai_route_prompt_lists_states():
    generator = OpenAIBriefingGenerator(client=MagicMock())
    prompt = generator.build_prompt(ROUTE_CONTEXT)
    assert "lagos, ogun, oyo" in prompt
    assert "Lagos-Ibadan Expressway" in prompt
    assert "route_segments" in prompt


def test_openai_without_client_raises():
    generator = OpenAIBriefingGenerator(client=None)
    generator.client = None
    with pytest.raises(BriefingError):
        generator.generate(AREA_CONTEXT)
