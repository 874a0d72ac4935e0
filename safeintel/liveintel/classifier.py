"""
Incident classification.

Turns a batch of raw headlines into structured incidents (type, extracted
location, occurrence time, casualty signal). Two backends share one
contract: the OpenAI chat API in JSON mode, or an external HTTP service
answering {"incidents": [...]}. Any failure raises ClassifierError and
the caller decides how to degrade.
"""
from typing import Dict, List, Optional
import logging

import requests

from safeintel import ai_helper
from .config import CLASSIFIER_URL, LLM_SERVICE_TIMEOUT, USER_AGENT
from .dateparser import parse_incident_datetime, parse_seendate
from .errors import ClassifierError
from .scoring import INCIDENT_TYPES

logger = logging.getLogger(__name__)

TYPE_ALIASES = {
    "gunshot": "gunshots",
    "shooting": "gunshots",
    "gunfire": "gunshots",
    "kidnap": "kidnapping",
    "abduction": "kidnapping",
    "armed robbery": "robbery",
    "theft": "robbery",
    "killing": "attack",
    "bombing": "attack",
    "explosion": "attack",
    "clash": "attack",
    "road accident": "accident",
    "crash": "accident",
    "fire outbreak": "fire",
    "roadblock": "checkpoint",
}


def coerce_incident_type(value) -> str:
    t = str(value or "").strip().lower().replace("_", " ")
    if t in INCIDENT_TYPES:
        return t
    return TYPE_ALIASES.get(t, "other")


def _to_confidence(value) -> float:
    try:
        c = float(value)
    except (TypeError, ValueError):
        return 0.5
    return max(0.0, min(1.0, c))


def _to_bool(value) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "yes", "1")
    return bool(value)


def normalize_incident(record: Dict, reports_by_url: Optional[Dict[str, Dict]] = None) -> Optional[Dict]:
    """
    Map one classifier record onto a ClassifiedIncident dict.

    Missing titles and dates are taken from the source report when the
    record's url points at one. Returns None for non-dict records.
    """
    if not isinstance(record, dict):
        return None

    url = record.get("url") or record.get("source_url") or ""
    report = (reports_by_url or {}).get(url, {})

    location = record.get("location_extracted") or record.get("extracted_location")
    location = str(location).strip() if location else None

    occurred = parse_incident_datetime(record.get("date"), record.get("time"))
    if occurred is None and report.get("published_at"):
        occurred = parse_seendate(report["published_at"])

    return {
        "source_url": url,
        "title": record.get("title") or report.get("title", ""),
        "type": coerce_incident_type(record.get("type")),
        "extracted_location": location or None,
        "occurred_at": occurred.isoformat() if occurred else None,
        "has_fatalities": _to_bool(record.get("has_fatalities")),
        "raw_confidence": _to_confidence(record.get("confidence")),
        "summary": record.get("summary") or ""
    }


def headlines_for(reports: List[Dict]) -> List[Dict]:
    return [
        {"title": r.get("title", ""), "url": r.get("url", ""), "seendate": r.get("published_at", "")}
        for r in reports
    ]


class IncidentClassifier:
    """Base classifier: subclasses implement _request(headlines) -> payload dict."""

    name = "classifier"

    def _request(self, headlines: List[Dict]) -> Dict:
        raise NotImplementedError

    def classify(self, reports: List[Dict]) -> List[Dict]:
        """
        Classify a batch of raw reports.

        Returns:
            List of ClassifiedIncident dicts (possibly empty)

        Raises:
            ClassifierError: on transport failure or a malformed payload
        """
        if not reports:
            return []

        payload = self._request(headlines_for(reports))
        records = payload.get("incidents") if isinstance(payload, dict) else None
        if not isinstance(records, list):
            raise ClassifierError(f"{self.name} returned no incidents array")

        by_url = {r.get("url"): r for r in reports}
        incidents = [i for i in (normalize_incident(rec, by_url) for rec in records) if i]
        logger.info(f"{self.name} classified {len(reports)} headlines into {len(incidents)} incidents")
        return incidents


class OpenAIIncidentClassifier(IncidentClassifier):
    """Classifier backed by the OpenAI chat completions API."""

    name = "openai-classifier"

    SYSTEM_PROMPT = (
        "You are a security analyst for Nigeria. You extract structured "
        "security incidents from news headlines. Respond only with JSON."
    )

    def __init__(self, client=None, model: Optional[str] = None):
        self.client = client if client is not None else ai_helper.get_openai_client()
        self.model = model

    def build_prompt(self, headlines: List[Dict]) -> str:
        lines = "\n".join(
            f"{i + 1}. {h['title']} | {h['url']} | seen {h['seendate']}"
            for i, h in enumerate(headlines)
        )
        return f"""Classify each headline below that reports a concrete security incident in Nigeria.

Headlines:
{lines}

Skip opinion pieces, politics and headlines that do not describe a specific incident.

Respond ONLY with a valid JSON object of the form {{"incidents": [...]}} where each incident has:
- "url": the headline's url, copied exactly
- "title": the headline
- "type": one of attack, kidnapping, robbery, gunshots, checkpoint, fire, accident, other
- "location_extracted": the most specific place named (town, LGA, road or state), or null
- "date": the date the incident happened (YYYY-MM-DD) if stated, otherwise the seen date
- "time": time of day if stated, otherwise null
- "has_fatalities": true if anyone was killed
- "confidence": 0.0 to 1.0, how sure you are this is a real incident
- "summary": one short sentence"""

    def _request(self, headlines: List[Dict]) -> Dict:
        if self.client is None:
            raise ClassifierError("AI classifier not configured")
        try:
            return ai_helper.complete_json(
                self.client, self.build_prompt(headlines),
                system=self.SYSTEM_PROMPT, model=self.model, max_tokens=4096
            )
        except ValueError as e:
            raise ClassifierError(f"Error parsing AI response: {e}") from e
        except Exception as e:
            raise ClassifierError(f"AI classifier error: {e}") from e


class HttpIncidentClassifier(IncidentClassifier):
    """Classifier backed by an external HTTP service."""

    name = "http-classifier"

    def __init__(self, url: str, timeout: int = LLM_SERVICE_TIMEOUT,
                 session: Optional[requests.Session] = None):
        self.url = url
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({'User-Agent': USER_AGENT})

    def _request(self, headlines: List[Dict]) -> Dict:
        try:
            response = self.session.post(self.url, json={"headlines": headlines}, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise ClassifierError(f"Classifier request failed: {e}") from e

        if not response.ok:
            raise ClassifierError(f"Classifier returned status {response.status_code}")

        try:
            return response.json()
        except ValueError as e:
            raise ClassifierError("Classifier returned a non-JSON body") from e


def get_default_classifier() -> IncidentClassifier:
    """HTTP service when CLASSIFIER_URL is set, OpenAI otherwise."""
    if CLASSIFIER_URL:
        return HttpIncidentClassifier(CLASSIFIER_URL)
    return OpenAIIncidentClassifier()
