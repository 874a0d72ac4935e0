"""
Live intelligence pipeline.

IntelligenceService orchestrates one run per query target:

    fetch -> dedupe -> classify -> zone -> score -> adjust -> brief -> cache

and serves results stale-while-revalidate: fresh entries are returned
as-is, stale entries are returned immediately while one background
refresh replaces them, and misses run synchronously. Concurrent requests
for the same key share a single in-flight run.

Only a report source failure is fatal to a run. Classifier and briefing
failures degrade the payload (fallback_to_raw, briefing=None) and the
degraded payload is still cached.
"""

import logging
import threading
import time
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional

from safeintel.intel_providers.gdelt_provider import GDELTProvider, dedupe_by_url
from safeintel.profiles import ProfileStore, get_profile_store
from safeintel.route_safety import route_baseline_level
from safeintel.watchdog import monitor_function, watchdog
from .briefing import get_default_briefing_generator
from .cache import IntelligenceCache
from .classifier import get_default_classifier
from .config import LLM_UNAVAILABLE_MESSAGE, MAX_CLASSIFIER_BATCH, REQUEST_TIMEOUT_SECONDS, SOURCE_FAILURE_MESSAGE
from .dateparser import format_last_updated, format_seen_date, is_breaking_news
from .dynamic_risk import calculate_dynamic_risk
from .errors import ClassifierError, PipelineTimeout
from .scoring import calculate_risk_score, sort_incidents_newest_first
from .zoning import annotate_incidents, group_incidents

logger = logging.getLogger(__name__)


def build_result(payload: Dict, cached: bool = False, stale: bool = False,
                 now: Optional[datetime] = None) -> Dict:
    """Consumer-facing result; same keys whichever stages succeeded."""
    result = {
        'incidents': payload.get('incidents') or [],
        'grouped_incidents': payload.get('grouped_incidents') or {},
        'risk_score': payload.get('risk_score'),
        'dynamic_risk': payload.get('dynamic_risk'),
        'briefing': payload.get('briefing'),
        'loading': False,
        'error': payload.get('error'),
        'last_updated': payload.get('last_updated'),
        'last_updated_label': format_last_updated(payload.get('last_updated'), now),
        'fallback_to_raw': bool(payload.get('fallback_to_raw')),
        'raw_articles': payload.get('raw_articles') or [],
        'cached': cached,
        'stale': stale,
        'query_level': payload.get('query_level'),
        'query': payload.get('query')
    }
    if payload.get('kind') == 'route':
        result['route_road_names'] = payload.get('route_road_names') or []
        result['route_segments'] = payload.get('route_segments') or []
    return result


def error_result(kind: str = 'area', message: str = SOURCE_FAILURE_MESSAGE) -> Dict:
    """Uniform shape for a run that could not fetch any reports."""
    return build_result({'kind': kind, 'error': message})


class _InFlight:
    """One pipeline run that other callers can wait on."""

    def __init__(self):
        self.event = threading.Event()
        self.payload = None
        self.error = None


class IntelligenceService:
    """
    Usage:
        service = IntelligenceService(cache=IntelligenceCache())
        result = service.get_area_intelligence('Ikeja', 'lagos')
        route = service.get_route_intelligence(['lagos', 'ogun', 'oyo'], 'Lagos to Ibadan')
    """

    def __init__(self, source=None, classifier=None, briefer=None,
                 cache: IntelligenceCache = None, profiles: ProfileStore = None,
                 request_timeout: float = REQUEST_TIMEOUT_SECONDS,
                 clock: Callable[[], datetime] = None):
        self.source = source or GDELTProvider()
        self.classifier = classifier or get_default_classifier()
        self.briefer = briefer or get_default_briefing_generator()
        self.cache = cache or IntelligenceCache()
        self.profiles = profiles or get_profile_store()
        self.request_timeout = request_timeout
        self.clock = clock or (lambda: datetime.now(timezone.utc))

        self._lock = threading.Lock()
        self._inflight: Dict[str, _InFlight] = {}
        self._threads: List[threading.Thread] = []

    # -- public API ---------------------------------------------------------

    def get_area_intelligence(self, location: str, state: str, zone: Optional[str] = None,
                              risk_level: Optional[str] = None) -> Dict:
        """
        Live intelligence for one area.

        Raises:
            ReportSourceError: reports could not be fetched (nothing cached)
            PipelineTimeout: gave up waiting on a concurrent run for the same area
        """
        target = self.profiles.area_target(location, state, zone=zone, risk_level=risk_level)
        return self._serve(target.cache_key(), lambda: self._run_area(target))

    def get_route_intelligence(self, state_ids: List[str], route_display: str,
                               risk_level: Optional[str] = None) -> Dict:
        """Live intelligence along a route; same error contract as areas."""
        target = self._route_target(state_ids, route_display, risk_level)
        return self._serve(target.cache_key(), lambda: self._run_route(target))

    def refresh_area(self, location: str, state: str, zone: Optional[str] = None,
                     risk_level: Optional[str] = None) -> Dict:
        """Force a foreground run, ignoring any cached entry."""
        target = self.profiles.area_target(location, state, zone=zone, risk_level=risk_level)
        payload = self._run_coalesced(target.cache_key(), lambda: self._run_area(target))
        return build_result(payload, now=self.clock())

    def refresh_route(self, state_ids: List[str], route_display: str,
                      risk_level: Optional[str] = None) -> Dict:
        target = self._route_target(state_ids, route_display, risk_level)
        payload = self._run_coalesced(target.cache_key(), lambda: self._run_route(target))
        return build_result(payload, now=self.clock())

    def join_background(self, timeout: Optional[float] = None) -> None:
        """Wait for background refreshes started so far."""
        with self._lock:
            threads = list(self._threads)
        for thread in threads:
            thread.join(timeout)
        with self._lock:
            self._threads = [t for t in self._threads if t.is_alive()]

    def is_in_flight(self, key: str) -> bool:
        with self._lock:
            return key in self._inflight

    # -- serving ------------------------------------------------------------

    def _route_target(self, state_ids, route_display, risk_level):
        level = risk_level or route_baseline_level(state_ids, self.profiles)
        return self.profiles.route_target(state_ids, route_display, risk_level=level)

    def _serve(self, key: str, runner: Callable[[], Dict]) -> Dict:
        entry = self.cache.get(key)
        if entry is not None:
            if entry['is_stale']:
                self._refresh_in_background(key, runner)
            return build_result(entry['payload'], cached=True, stale=entry['is_stale'], now=self.clock())

        payload = self._run_coalesced(key, runner)
        return build_result(payload, now=self.clock())

    def _claim(self, key: str):
        """Returns (flight, is_leader)."""
        with self._lock:
            flight = self._inflight.get(key)
            if flight is not None:
                return flight, False
            flight = _InFlight()
            self._inflight[key] = flight
            return flight, True

    def _execute(self, key: str, runner: Callable[[], Dict], flight: _InFlight) -> Dict:
        try:
            flight.payload = runner()
            return flight.payload
        except Exception as e:
            flight.error = e
            raise
        finally:
            with self._lock:
                self._inflight.pop(key, None)
            flight.event.set()

    def _run_coalesced(self, key: str, runner: Callable[[], Dict]) -> Dict:
        flight, leader = self._claim(key)
        if leader:
            return self._execute(key, runner, flight)

        logger.debug(f"Joining in-flight run for {key}")
        if not flight.event.wait(self.request_timeout):
            raise PipelineTimeout(f"Timed out after {self.request_timeout}s waiting for {key}")
        if flight.error is not None:
            raise flight.error
        return flight.payload

    def _refresh_in_background(self, key: str, runner: Callable[[], Dict]) -> bool:
        flight, leader = self._claim(key)
        if not leader:
            return False

        thread = threading.Thread(
            target=self._background_run, args=(key, runner, flight),
            name=f"intel-refresh-{key}", daemon=True
        )
        with self._lock:
            self._threads.append(thread)
        thread.start()
        logger.info(f"Stale entry {key}: background refresh started")
        return True

    def _background_run(self, key: str, runner: Callable[[], Dict], flight: _InFlight):
        try:
            self._execute(key, runner, flight)
        except Exception as e:
            # the stage monitor already recorded the traceback
            logger.warning(f"Background refresh for {key} failed: {e}")
        finally:
            with self._lock:
                if threading.current_thread() in self._threads:
                    self._threads.remove(threading.current_thread())

    # -- pipeline runs ------------------------------------------------------

    @monitor_function(warn_slow=30)
    def _run_area(self, target) -> Dict:
        started = time.time()
        fetched = self.source.fetch_area_reports(
            target.name, target.state, zone=target.zone, risk_level=target.baseline_level
        )
        reports = dedupe_by_url(fetched.get('reports') or [])[:MAX_CLASSIFIER_BATCH]
        profile = self.profiles.area_profile(target.name, target.state)

        payload = self._analyze(target, reports, static_profile=profile, location=target.name)
        payload.update({
            'kind': 'area',
            'query_level': fetched.get('level'),
            'query': fetched.get('query')
        })
        return self._finish(target, payload, started)

    @monitor_function(warn_slow=60)
    def _run_route(self, target) -> Dict:
        started = time.time()
        roads = self.profiles.roads_for_route(target.state_ids)
        fetched = self.source.fetch_route_reports(roads, target.state_ids, risk_level=target.baseline_level)
        reports = dedupe_by_url(fetched.get('reports') or [])[:MAX_CLASSIFIER_BATCH]
        profile = self.profiles.route_profile(target.state_ids)

        payload = self._analyze(
            target, reports, static_profile=profile,
            location=target.route_display, route_state_ids=target.state_ids
        )
        payload.update({
            'kind': 'route',
            'query_level': fetched.get('level'),
            'query': fetched.get('query'),
            'route_road_names': [r['name'] for r in roads],
            'route_segments': [
                {
                    'road_id': s.get('road_id'),
                    'road_name': s.get('road_name'),
                    'incident_count': s.get('incident_count', 0)
                }
                for s in fetched.get('segments') or []
            ]
        })
        return self._finish(target, payload, started)

    def _finish(self, target, payload: Dict, started: float) -> Dict:
        key = target.cache_key()
        self.cache.put(key, payload)
        watchdog.log_pipeline_run(
            target.kind, key, time.time() - started,
            fallback_to_raw=payload['fallback_to_raw'],
            has_briefing=payload['briefing'] is not None,
            incident_count=len(payload['incidents'])
        )
        return payload

    def _classify(self, reports: List[Dict]) -> Optional[List[Dict]]:
        """Classified incidents, or None when the run must fall back to raw reports."""
        try:
            incidents = self.classifier.classify(reports)
        except ClassifierError as e:
            logger.warning(f"Classifier failed on {len(reports)} reports: {e}")
            return None
        except Exception as e:
            logger.error(f"Classifier raised unexpectedly on {len(reports)} reports: {e}")
            return None

        if not isinstance(incidents, list) or not incidents:
            logger.warning(f"Classifier returned no incidents for {len(reports)} reports")
            return None
        return incidents

    def _brief(self, context: Dict) -> Optional[Dict]:
        try:
            return self.briefer.generate(context)
        except Exception as e:
            logger.warning(f"Briefing generation failed for {context.get('location')}: {e}")
            return None

    def _analyze(self, target, reports: List[Dict], static_profile: Dict, location: str,
                 route_state_ids: Optional[List[str]] = None) -> Dict:
        now = self.clock()
        classified = []
        fallback_to_raw = False
        raw_articles = []
        error = None

        if reports:
            result = self._classify(reports)
            if result is None:
                fallback_to_raw = True
                error = LLM_UNAVAILABLE_MESSAGE
                raw_articles = [
                    {
                        **r,
                        'breaking': is_breaking_news(r.get('published_at', ''), now),
                        'seen_label': format_seen_date(r.get('published_at', ''), now)
                    }
                    for r in reports
                ]
            else:
                classified = result

        incidents = sort_incidents_newest_first(annotate_incidents(classified, target))
        grouped = group_incidents(incidents, target)
        risk_score = calculate_risk_score(incidents)
        dynamic_risk = None
        if target.baseline_level:
            dynamic_risk = calculate_dynamic_risk(target.baseline_level, incidents, now)

        context = {
            'type': target.kind,
            'location': location,
            'incidents': incidents,
            'risk_score': risk_score,
            'static_profile': static_profile,
            'dynamic_risk': dynamic_risk
        }
        if route_state_ids:
            context['route_state_ids'] = list(route_state_ids)

        return {
            'incidents': incidents,
            'grouped_incidents': grouped,
            'risk_score': risk_score,
            'dynamic_risk': dynamic_risk,
            'briefing': self._brief(context),
            'last_updated': now.isoformat(),
            'fallback_to_raw': fallback_to_raw,
            'raw_articles': raw_articles,
            'error': error
        }


_service = None
_service_lock = threading.Lock()


def get_intelligence_service() -> IntelligenceService:
    """Process-wide service; constructed on first use."""
    global _service
    with _service_lock:
        if _service is None:
            _service = IntelligenceService()
        return _service

