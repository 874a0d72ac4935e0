import os

USER_AGENT = os.getenv("APP_USER_AGENT", "SafeIntelLiveReports/1.0 (contact: ops@example.com)")

GDELT_DOC_URL = os.getenv("GDELT_DOC_URL", "https://api.gdeltproject.org/api/v2/doc/doc")
GDELT_TIMEOUT = int(os.getenv("GDELT_TIMEOUT", "30"))
GDELT_COUNTRY = os.getenv("GDELT_COUNTRY", "Nigeria")
ROUTE_FETCH_WORKERS = int(os.getenv("ROUTE_FETCH_WORKERS", "4"))

CLASSIFIER_URL = os.getenv("CLASSIFIER_URL", "").strip()
BRIEFING_URL = os.getenv("BRIEFING_URL", "").strip()
LLM_SERVICE_TIMEOUT = int(os.getenv("LLM_SERVICE_TIMEOUT", "60"))
MAX_CLASSIFIER_BATCH = int(os.getenv("MAX_CLASSIFIER_BATCH", "25"))

CACHE_HARD_EXPIRY_MINUTES = int(os.getenv("CACHE_HARD_EXPIRY_MINUTES", "120"))
CACHE_STALE_AFTER_MINUTES = int(os.getenv("CACHE_STALE_AFTER_MINUTES", "30"))
REQUEST_TIMEOUT_SECONDS = float(os.getenv("REQUEST_TIMEOUT_SECONDS", "90"))

MIN_INCIDENT_SCORE = int(os.getenv("MIN_INCIDENT_SCORE", "15"))
AREA_MAX_REPORTS = 5
ROAD_MAX_REPORTS = 3
STATES_MAX_REPORTS = 10
TIER_MIN_RESULTS = 2

GDELT_INCIDENT_KEYWORDS = [
    "killed", "kidnapped", "attacked", "robbery", "gunmen", "bandits",
    "explosion", "kidnapping", "abducted", "shot", "shooting", "bombing",
    "cultists", "terrorists", "insurgents", "Boko Haram", "ISWAP",
    "murdered", "hostage", "ransom", "ambush", "clash", "violence"
]

LLM_UNAVAILABLE_MESSAGE = "LLM intelligence unavailable, showing raw reports."
SOURCE_FAILURE_MESSAGE = "Failed to load intelligence"
