"""
Watchdog - central run log for the intelligence service.

Everything that degrades a result without failing the request ends up
here: classifier fallbacks, missing briefings, slow stages, background
refresh crashes. Lines go to a rotating file under the logs dir and,
from WARNING up, to stderr. Counters are kept per pipeline kind and
exposed through /api/watchdog/stats.

Line format:
    2026-01-15 12:00:00 | WARNING  | [PIPELINE_RUN] area live-intel-ikeja-lagos ... | Data: {...}
"""

import sys
import json
import time
import threading
import traceback
import functools
from datetime import datetime
from typing import Callable, Dict, Optional
import logging
from logging.handlers import RotatingFileHandler

from safeintel.paths import get_logs_dir, get_runtime_log_file

LOG_FILE = str(get_runtime_log_file())
MAX_LOG_SIZE = 10 * 1024 * 1024  # 10 MB
BACKUP_COUNT = 5
SLOW_REQUEST_SECONDS = 5.0


def _format(tag: str, message: str, data: Optional[Dict] = None) -> str:
    line = f"[{tag}] {message}"
    if data:
        line += f" | Data: {json.dumps(data, default=str)}"
    return line


def _new_kind_stats() -> Dict:
    return {'runs': 0, 'fallbacks': 0, 'missing_briefings': 0, 'total_seconds': 0.0}


class WatchdogLogger:
    """Process-wide logger; constructing it twice returns the same instance."""

    _instance = None
    _lock = threading.Lock()

    def __new__(cls):
        with cls._lock:
            if cls._instance is None:
                cls._instance = super().__new__(cls)
                cls._instance._ready = False
        return cls._instance

    def __init__(self):
        if self._ready:
            return
        self._ready = True

        self.logger = self._build_logger()
        self._stats_lock = threading.Lock()
        self._requests = {'count': 0, 'errors': 0, 'slow': 0, 'total_seconds': 0.0}
        self._pipelines: Dict[str, Dict] = {}
        self._exceptions = 0

        self._previous_excepthook = sys.excepthook
        sys.excepthook = self._on_uncaught
        threading.excepthook = self._on_thread_crash

    @staticmethod
    def _build_logger() -> logging.Logger:
        logger = logging.getLogger('safeintel.watchdog')
        logger.setLevel(logging.DEBUG)
        logger.handlers = []
        logger.propagate = False

        formatter = logging.Formatter('%(asctime)s | %(levelname)-8s | %(message)s',
                                      datefmt='%Y-%m-%d %H:%M:%S')

        try:
            get_logs_dir().mkdir(parents=True, exist_ok=True)
            file_handler = RotatingFileHandler(LOG_FILE, maxBytes=MAX_LOG_SIZE,
                                               backupCount=BACKUP_COUNT, encoding='utf-8')
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)
        except OSError as e:
            print(f"Warning: file logging disabled ({e})", file=sys.stderr)

        console = logging.StreamHandler(sys.stderr)
        console.setLevel(logging.WARNING)
        console.setFormatter(formatter)
        logger.addHandler(console)
        return logger

    # -- hooks --------------------------------------------------------------

    def _on_uncaught(self, exc_type, exc_value, exc_tb):
        if not issubclass(exc_type, KeyboardInterrupt):
            self.log_exception(exc_value, context='UNCAUGHT')
        self._previous_excepthook(exc_type, exc_value, exc_tb)

    def _on_thread_crash(self, args):
        name = args.thread.name if args.thread else 'unknown'
        if args.exc_value is not None:
            self.log_exception(args.exc_value, context=f'THREAD:{name}')

    # -- events -------------------------------------------------------------

    def log_event(self, event_type: str, message: str, level: str = 'INFO',
                  extra_data: Optional[Dict] = None):
        self.logger.log(getattr(logging, level.upper(), logging.INFO),
                        _format(event_type, message, extra_data))

    def log_exception(self, exc: BaseException, context: str = 'EXCEPTION',
                      extra_data: Optional[Dict] = None):
        """Log an exception with its traceback; counts toward error stats."""
        with self._stats_lock:
            self._exceptions += 1

        tb = ''.join(traceback.format_exception(type(exc), exc, exc.__traceback__))
        self.logger.error(_format(context, f"{type(exc).__name__}: {exc}", extra_data) + f"\n{tb}")

    def log_anomaly(self, anomaly_type: str, description: str,
                    extra_data: Optional[Dict] = None):
        """Something worked but not the way it should have."""
        self.logger.warning(_format(f"ANOMALY:{anomaly_type}", description, extra_data))

    def log_pipeline_run(self, kind: str, key: str, duration: float,
                         fallback_to_raw: bool, has_briefing: bool,
                         incident_count: int):
        """Record one completed run. Fallback or missing briefing logs at WARNING."""
        with self._stats_lock:
            stats = self._pipelines.setdefault(kind, _new_kind_stats())
            stats['runs'] += 1
            stats['total_seconds'] += duration
            stats['fallbacks'] += int(fallback_to_raw)
            stats['missing_briefings'] += int(not has_briefing)

        degraded = fallback_to_raw or not has_briefing
        self.log_event(
            'PIPELINE_RUN',
            f"{kind} {key}: {incident_count} incident(s) in {duration:.2f}s",
            'WARNING' if degraded else 'INFO',
            {'fallback_to_raw': fallback_to_raw, 'has_briefing': has_briefing}
        )

    def log_request(self, method: str, path: str, status_code: int, duration: float):
        with self._stats_lock:
            self._requests['count'] += 1
            self._requests['total_seconds'] += duration
            if status_code >= 500:
                self._requests['errors'] += 1
            if duration > SLOW_REQUEST_SECONDS:
                self._requests['slow'] += 1

        if status_code >= 500:
            level = 'ERROR'
        elif status_code >= 400 or duration > SLOW_REQUEST_SECONDS:
            level = 'WARNING'
        else:
            level = 'DEBUG'
        self.log_event('REQUEST', f"{method} {path} -> {status_code} ({duration * 1000:.0f}ms)", level)

    def log_startup(self, app_name: str = 'SafeIntel'):
        self.logger.info('=' * 80)
        self.logger.info(f"[STARTUP] {app_name} started at {datetime.now().isoformat()}")
        self.logger.info(f"[STARTUP] Python {sys.version.split()[0]}, log file {LOG_FILE}")
        self.logger.info('=' * 80)

    # -- stats --------------------------------------------------------------

    def get_performance_stats(self) -> Dict:
        with self._stats_lock:
            requests = dict(self._requests)
            pipelines = {}
            for kind, s in self._pipelines.items():
                pipelines[kind] = {
                    'runs': s['runs'],
                    'fallbacks': s['fallbacks'],
                    'missing_briefings': s['missing_briefings'],
                    'avg_seconds': round(s['total_seconds'] / s['runs'], 3) if s['runs'] else 0
                }
            exceptions = self._exceptions

        count = requests.pop('count')
        total = requests.pop('total_seconds')
        return {
            'request_count': count,
            'error_responses': requests['errors'],
            'slow_requests': requests['slow'],
            'avg_response_time_ms': round(total / count * 1000, 2) if count else 0,
            'exceptions': exceptions,
            'pipelines': pipelines
        }


watchdog = WatchdogLogger()


def monitor_function(func: Callable = None, *, warn_slow: float = None):
    """
    Log exceptions escaping a pipeline stage, and slow runs when
    warn_slow (seconds) is given. Exceptions are re-raised.
    """
    def decorator(fn):
        name = f"{fn.__module__}.{fn.__qualname__}"

        @functools.wraps(fn)
        def wrapper(*args, **kwargs):
            started = time.time()
            try:
                result = fn(*args, **kwargs)
            except Exception as e:
                watchdog.log_exception(e, context=f'STAGE_FAILED:{name}')
                raise

            elapsed = time.time() - started
            if warn_slow and elapsed > warn_slow:
                watchdog.log_anomaly('SLOW_STAGE', f"{name} took {elapsed:.2f}s (limit {warn_slow}s)")
            return result

        return wrapper

    if func is not None:
        return decorator(func)
    return decorator
