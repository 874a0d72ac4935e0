"""
Briefing generation.

Produces the natural-language summary shown alongside the risk score.
It is requested for every run, including runs with zero incidents, so
residents of a calm area still get a bottom line. Output is normalized
to the full area or route shape; failures raise BriefingError.
"""
import json
from typing import Dict, List, Optional
import logging

import requests

from safeintel import ai_helper
from .config import BRIEFING_URL, LLM_SERVICE_TIMEOUT, USER_AGENT
from .errors import BriefingError

logger = logging.getLogger(__name__)


def _str_list(value) -> List[str]:
    if not isinstance(value, list):
        return []
    return [str(v) for v in value if v]


def _section(value) -> Dict:
    return value if isinstance(value, dict) else {}


def normalize_briefing(data, kind: str = "area") -> Dict:
    """
    Fill in every key of the briefing shape for the given kind.

    Raises:
        BriefingError: if data is not a dict or carries no text at all
    """
    if not isinstance(data, dict):
        raise BriefingError("Briefing is not an object")

    summary = str(data.get("summary") or "").strip()
    bottom_line = str(data.get("bottom_line") or "").strip() or summary
    if not bottom_line:
        raise BriefingError("Briefing has neither summary nor bottom line")

    travelers = _section(data.get("for_travelers"))
    briefing = {
        "summary": summary,
        "for_travelers": {
            "headline": str(travelers.get("headline") or ""),
            "tips": _str_list(travelers.get("tips"))
        },
        "recent_developments": _str_list(data.get("recent_developments")),
        "positive_notes": _str_list(data.get("positive_notes")),
        "bottom_line": bottom_line
    }

    if kind == "route":
        if travelers.get("best_times"):
            briefing["for_travelers"]["best_times"] = str(travelers["best_times"])
        if travelers.get("alternatives"):
            briefing["for_travelers"]["alternatives"] = _str_list(travelers["alternatives"])

        segments = []
        for seg in data.get("route_segments") or []:
            if not isinstance(seg, dict):
                continue
            segments.append({
                "segment": str(seg.get("segment") or ""),
                "status": str(seg.get("status") or ""),
                "incidents": _str_list(seg.get("incidents"))
            })
        briefing["route_segments"] = segments
    else:
        residents = _section(data.get("for_residents"))
        briefing["for_residents"] = {
            "headline": str(residents.get("headline") or ""),
            "tips": _str_list(residents.get("tips"))
        }
        if residents.get("neighborhood_status"):
            briefing["for_residents"]["neighborhood_status"] = str(residents["neighborhood_status"])

    return briefing


def _incident_lines(incidents: List[Dict], limit: int = 15) -> str:
    if not incidents:
        return "No incidents were reported in the lookback window."
    lines = []
    for i in incidents[:limit]:
        zone = (i.get("relevance") or {}).get("label", "")
        fatal = ", fatalities" if i.get("has_fatalities") else ""
        lines.append(
            f"- [{i.get('type')}{fatal}] {i.get('title', '')} "
            f"({i.get('extracted_location') or 'location unknown'}; {zone}; {i.get('occurred_at') or 'date unknown'})"
        )
    return "\n".join(lines)


class BriefingGenerator:
    """Base generator: subclasses implement _request(context) -> raw briefing dict."""

    name = "briefing"

    def _request(self, context: Dict) -> Dict:
        raise NotImplementedError

    def generate(self, context: Dict) -> Dict:
        """
        Args:
            context: {type, location, incidents, risk_score, static_profile,
                      dynamic_risk?, route_state_ids?}

        Raises:
            BriefingError
        """
        kind = context.get("type", "area")
        briefing = normalize_briefing(self._request(context), kind)
        logger.info(f"{self.name} produced a {kind} briefing for {context.get('location')}")
        return briefing


class OpenAIBriefingGenerator(BriefingGenerator):
    """Briefing generator backed by the OpenAI chat completions API."""

    name = "openai-briefing"

    SYSTEM_PROMPT = (
        "You are a calm, practical security advisor writing for people living in "
        "and travelling through Nigeria. Never exaggerate. Respond only with JSON."
    )

    def __init__(self, client=None, model: Optional[str] = None):
        self.client = client if client is not None else ai_helper.get_openai_client()
        self.model = model

    def build_prompt(self, context: Dict) -> str:
        kind = context.get("type", "area")
        risk = context.get("risk_score") or {}
        dynamic = context.get("dynamic_risk")
        profile = context.get("static_profile") or {}

        dynamic_txt = "No historical baseline available."
        if dynamic:
            dynamic_txt = (
                f"Historical baseline {dynamic['baseline_level']}, adjusted to {dynamic['adjusted_level']} "
                f"({dynamic['recent_incident_count']} recent incidents in {dynamic['time_window_days']} days, "
                f"trend {dynamic['trend']})."
            )

        if kind == "route":
            target = f"the route {context.get('location')} through states: {', '.join(context.get('route_state_ids') or [])}"
            shape = """{
  "summary": "2-3 sentences on current conditions along the route",
  "for_travelers": {"headline": "...", "tips": ["..."], "best_times": "...", "alternatives": ["..."]},
  "route_segments": [{"segment": "...", "status": "clear|caution|danger", "incidents": ["..."]}],
  "recent_developments": ["..."],
  "positive_notes": ["..."],
  "bottom_line": "one sentence a traveller can act on"
}"""
        else:
            target = f"the area {context.get('location')}"
            shape = """{
  "summary": "2-3 sentences on current conditions",
  "for_travelers": {"headline": "...", "tips": ["..."]},
  "for_residents": {"headline": "...", "tips": ["..."], "neighborhood_status": "..."},
  "recent_developments": ["..."],
  "positive_notes": ["..."],
  "bottom_line": "one sentence a resident can act on"
}"""

        return f"""Write a security briefing for {target}.

Current risk score: {risk.get('score')} / 10 ({risk.get('level')}, {risk.get('confidence')} confidence)
Methodology: {risk.get('methodology')}
{dynamic_txt}

Known profile:
{json.dumps(profile, ensure_ascii=False)[:2000]}

Recent incidents:
{_incident_lines(context.get('incidents') or [])}

If there are no incidents, say so plainly and give everyday precautions.

Respond ONLY with a valid JSON object of this shape:
{shape}"""

    def _request(self, context: Dict) -> Dict:
        if self.client is None:
            raise BriefingError("AI briefing not configured")
        try:
            return ai_helper.complete_json(
                self.client, self.build_prompt(context),
                system=self.SYSTEM_PROMPT, model=self.model
            )
        except ValueError as e:
            raise BriefingError(f"Error parsing AI response: {e}") from e
        except Exception as e:
            raise BriefingError(f"AI briefing error: {e}") from e


class HttpBriefingGenerator(BriefingGenerator):
    """Briefing generator backed by an external HTTP service."""

    name = "http-briefing"

    def __init__(self, url: str, timeout: int = LLM_SERVICE_TIMEOUT,
                 session: Optional[requests.Session] = None):
        self.url = url
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({'User-Agent': USER_AGENT})

    def _request(self, context: Dict) -> Dict:
        body = {
            "type": context.get("type", "area"),
            "location": context.get("location"),
            "incidents": context.get("incidents") or [],
            "riskScore": context.get("risk_score"),
            "staticProfile": context.get("static_profile"),
        }
        if context.get("dynamic_risk") is not None:
            body["dynamicRisk"] = context["dynamic_risk"]
        if context.get("route_state_ids"):
            body["routeStateIds"] = context["route_state_ids"]

        try:
            response = self.session.post(self.url, json=body, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise BriefingError(f"Briefing request failed: {e}") from e

        if not response.ok:
            raise BriefingError(f"Briefing service returned status {response.status_code}")

        try:
            data = response.json()
        except ValueError as e:
            raise BriefingError("Briefing service returned a non-JSON body") from e

        return data.get("briefing") if isinstance(data, dict) else None


def get_default_briefing_generator() -> BriefingGenerator:
    """HTTP service when BRIEFING_URL is set, OpenAI otherwise."""
    if BRIEFING_URL:
        return HttpBriefingGenerator(BRIEFING_URL)
    return OpenAIBriefingGenerator()
