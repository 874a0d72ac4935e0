"""
GDELT Provider - Live incident headlines from the GDELT DOC 2.0 API

GDELT (Global Database of Events, Language, and Tone) indexes global
news coverage. This provider builds incident-focused queries for a
single area (with zone/state fallback tiers) or for the roads and
states along a travel route, and returns deduplicated raw reports.

No API key required.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, List, Optional

import requests

from safeintel.liveintel.config import (
    AREA_MAX_REPORTS, GDELT_COUNTRY, GDELT_DOC_URL, GDELT_INCIDENT_KEYWORDS,
    GDELT_TIMEOUT, ROAD_MAX_REPORTS, ROUTE_FETCH_WORKERS, STATES_MAX_REPORTS,
    TIER_MIN_RESULTS, USER_AGENT
)
from safeintel.liveintel.errors import ReportSourceError
from safeintel.liveintel.headlines import filter_incident_articles
from safeintel.liveintel.time_windows import (
    gdelt_timespan, get_max_articles_for_risk, get_time_window_days
)

logger = logging.getLogger(__name__)


def dedupe_by_url(reports: List[Dict]) -> List[Dict]:
    """Drop reports whose URL was already seen; first occurrence wins."""
    seen_urls = set()
    unique = []
    for report in reports:
        url = report.get('url', '')
        if not url or url in seen_urls:
            continue
        seen_urls.add(url)
        unique.append(report)
    return unique


def _quote(term: str) -> str:
    term = term.strip().strip('"')
    return f'"{term}"' if ' ' in term or '-' in term else term


class GDELTProvider:
    """
    Report source adapter over the GDELT DOC API.

    Endpoint: https://api.gdeltproject.org/api/v2/doc/doc
    """

    BASE_URL = GDELT_DOC_URL

    def __init__(self, timeout: int = GDELT_TIMEOUT, country: str = GDELT_COUNTRY,
                 max_workers: int = ROUTE_FETCH_WORKERS,
                 session: Optional[requests.Session] = None):
        self.timeout = timeout
        self.country = country
        self.max_workers = max_workers
        self.session = session or requests.Session()
        self.session.headers.update({'User-Agent': USER_AGENT})

    def _build_query(self, terms: List[str]) -> str:
        """
        Build a GDELT query for one or more location terms.

        Returns a string like:
            ("Lagos-Ibadan Expressway" OR "Ibadan Expressway") Nigeria (killed OR ...)
        """
        location_terms = [_quote(t) for t in terms if t and t.strip()]
        if len(location_terms) == 1:
            location_query = location_terms[0]
        else:
            location_query = "(" + " OR ".join(location_terms) + ")"

        keyword_query = "(" + " OR ".join(_quote(kw) for kw in GDELT_INCIDENT_KEYWORDS) + ")"
        return f"{location_query} {self.country} {keyword_query}"

    def _parse_gdelt_response(self, data: Dict) -> List[Dict]:
        """Parse GDELT API response into raw report dicts."""
        reports = []

        if not data or not isinstance(data.get('articles'), list):
            return reports

        for article in data['articles']:
            if not isinstance(article, dict):
                continue
            title = (article.get('title') or '').strip()
            url = article.get('url') or ''
            seendate = article.get('seendate') or ''
            if not (title and url and seendate):
                continue
            reports.append({
                'title': title,
                'url': url,
                'published_at': seendate,
                'domain': article.get('domain') or ''
            })

        return reports

    def fetch_articles(self, terms: List[str], max_records: int = 50,
                       days: int = 7) -> List[Dict]:
        """
        Run one artlist query.

        Raises:
            ReportSourceError: on non-200 responses and network failures.
            An empty or non-JSON body is treated as "no articles".
        """
        params = {
            'query': self._build_query(terms),
            'mode': 'artlist',
            'maxrecords': str(min(max_records, 250)),
            'format': 'json',
            'timespan': gdelt_timespan(days),
            'sort': 'DateDesc'
        }

        try:
            response = self.session.get(self.BASE_URL, params=params, timeout=self.timeout)
        except requests.exceptions.Timeout as e:
            raise ReportSourceError('GDELT request timed out') from e
        except requests.exceptions.RequestException as e:
            raise ReportSourceError(f'Network error: {e}') from e

        if response.status_code != 200:
            raise ReportSourceError(f'GDELT API returned status {response.status_code}')

        if not response.text.strip():
            return []

        try:
            data = response.json()
        except ValueError:
            logger.warning(f"GDELT returned a non-JSON body for {terms}")
            return []

        return self._parse_gdelt_response(data)[:max_records]

    def fetch_area_reports(self, location: str, state: str, zone: Optional[str] = None,
                           risk_level: Optional[str] = None) -> Dict:
        """
        Fetch incident reports for a single area.

        Tries the area itself, then its zone, then its state; a broader
        tier is used only when it yields enough likely incidents.

        Returns:
            Dict with 'reports', 'level' (area|zone|state) and 'query'
        """
        days = get_time_window_days(risk_level)
        max_records = get_max_articles_for_risk(risk_level) * 2

        raw = self.fetch_articles([location], max_records, days)
        reports = filter_incident_articles(dedupe_by_url(raw))
        level, query = 'area', location

        tiers = []
        if zone:
            tiers.append(('zone', zone))
        tiers.append(('state', state))

        for tier_level, tier_term in tiers:
            if len(reports) >= TIER_MIN_RESULTS:
                break
            raw = self.fetch_articles([tier_term], max_records, days)
            tier_reports = filter_incident_articles(dedupe_by_url(raw))
            if len(tier_reports) >= TIER_MIN_RESULTS:
                reports, level, query = tier_reports, tier_level, tier_term

        logger.info(f"GDELT area reports for {location}, {state}: {len(reports)} at {level} level")
        return {
            'reports': reports[:AREA_MAX_REPORTS],
            'level': level,
            'query': query
        }

    def _fetch_one_road(self, road: Dict, days: int) -> Dict:
        terms = road.get('query_terms') or [road.get('name', '')]
        raw = self.fetch_articles(terms, 50, days)
        reports = filter_incident_articles(dedupe_by_url(raw))[:ROAD_MAX_REPORTS]
        return {
            'road_id': road.get('id', ''),
            'road_name': road.get('name', ''),
            'reports': reports,
            'incident_count': len(reports)
        }

    def fetch_route_reports(self, roads: List[Dict], state_ids: List[str],
                            risk_level: Optional[str] = None) -> Dict:
        """
        Fetch incident reports along a route.

        Explicit road mappings give higher-precision matches, so they are
        preferred; the state-level query is the fallback when the route
        has no mapped road. Road queries run concurrently and are joined
        before deduplication.

        Returns:
            Dict with 'reports' (deduplicated), 'level' (roads|states),
            'query' and per-road 'segments'
        """
        days = get_time_window_days(risk_level)

        if roads:
            workers = max(1, min(self.max_workers, len(roads)))
            with ThreadPoolExecutor(max_workers=workers, thread_name_prefix='gdelt-road') as pool:
                segments = list(pool.map(lambda r: self._fetch_one_road(r, days), roads))

            all_reports = []
            for segment in segments:
                all_reports.extend(segment['reports'])

            return {
                'reports': dedupe_by_url(all_reports),
                'level': 'roads',
                'query': ', '.join(r.get('name', '') for r in roads),
                'segments': segments
            }

        if not state_ids:
            return {'reports': [], 'level': 'states', 'query': '', 'segments': []}

        state_names = [s.replace('-', ' ').title() for s in state_ids]
        max_records = get_max_articles_for_risk(risk_level) * 2
        raw = self.fetch_articles(state_names, max_records, days)
        reports = filter_incident_articles(dedupe_by_url(raw))[:STATES_MAX_REPORTS]
        label = f"{len(state_ids)} state{'s' if len(state_ids) > 1 else ''} along route"

        return {
            'reports': reports,
            'level': 'states',
            'query': ' OR '.join(state_names),
            'segments': [{
                'road_id': 'states-' + '-'.join(sorted(state_ids)),
                'road_name': label,
                'reports': reports,
                'incident_count': len(reports)
            }]
        }
