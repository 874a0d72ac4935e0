"""
Intelligence Cache - SQLite-backed store for complete pipeline results

Provides:
- 2-hour hard expiry (configurable); expired rows are deleted on read and on every write
- 30-minute staleness threshold (configurable) reported on each entry
- Whole-entry replacement only (INSERT OR REPLACE)
- Storage errors are logged and swallowed; caching never breaks a request
"""

import os
import json
import logging
import sqlite3
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Optional

from safeintel.paths import get_cache_dir, get_intel_cache_db
from .config import CACHE_HARD_EXPIRY_MINUTES, CACHE_STALE_AFTER_MINUTES

logger = logging.getLogger(__name__)

STORAGE_ERRORS = (sqlite3.Error, OSError, ValueError, TypeError)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class IntelligenceCache:
    """
    SQLite cache for live intelligence payloads.

    Usage:
        cache = IntelligenceCache()
        cache.put('live-intel-ikeja-lagos', payload)
        entry = cache.get('live-intel-ikeja-lagos')  # None if absent or expired
        entry['payload'], entry['is_stale']
    """

    def __init__(self, db_path: str = None, hard_expiry_minutes: int = None,
                 stale_after_minutes: int = None, clock: Callable[[], datetime] = None):
        """
        Args:
            db_path: Path to SQLite database. Defaults to the cache dir.
            hard_expiry_minutes: Entries older than this are gone.
            stale_after_minutes: Entries older than this get refreshed.
            clock: Returns the current aware datetime; injectable for tests.
        """
        if db_path is None:
            cache_dir = get_cache_dir()
            cache_dir.mkdir(parents=True, exist_ok=True)
            db_path = str(get_intel_cache_db())

        self.db_path = db_path
        self.hard_expiry = timedelta(
            minutes=CACHE_HARD_EXPIRY_MINUTES if hard_expiry_minutes is None else hard_expiry_minutes)
        self.stale_after = timedelta(
            minutes=CACHE_STALE_AFTER_MINUTES if stale_after_minutes is None else stale_after_minutes)
        self.clock = clock or _utcnow
        self._init_db()

    def _get_connection(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path, timeout=10)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_db(self):
        try:
            conn = self._get_connection()
        except STORAGE_ERRORS as e:
            logger.error(f"Intelligence cache unavailable at {self.db_path}: {e}")
            return
        try:
            conn.execute('''
                CREATE TABLE IF NOT EXISTS live_intel_cache (
                    key TEXT PRIMARY KEY,
                    payload_json TEXT NOT NULL,
                    fetched_at TEXT NOT NULL,
                    expires_at TEXT NOT NULL
                )
            ''')
            conn.execute('''
                CREATE INDEX IF NOT EXISTS idx_live_intel_expires_at
                ON live_intel_cache(expires_at)
            ''')
            conn.commit()
        except STORAGE_ERRORS as e:
            logger.error(f"Intelligence cache schema setup failed: {e}")
        finally:
            conn.close()

    def get(self, key: str) -> Optional[Dict]:
        """
        Get a cache entry if it has not hard-expired.

        Returns:
            {key, payload, fetched_at, expires_at, age_seconds, is_stale} or None
        """
        try:
            conn = self._get_connection()
            try:
                row = conn.execute('''
                    SELECT payload_json, fetched_at, expires_at
                    FROM live_intel_cache
                    WHERE key = ?
                ''', (key,)).fetchone()

                if not row:
                    return None

                now = self.clock()
                expires_at = datetime.fromisoformat(row['expires_at'])
                if now >= expires_at:
                    conn.execute('DELETE FROM live_intel_cache WHERE key = ?', (key,))
                    conn.commit()
                    logger.debug(f"Cache entry {key} expired and was removed")
                    return None

                fetched_at = datetime.fromisoformat(row['fetched_at'])
                age = now - fetched_at
                return {
                    'key': key,
                    'payload': json.loads(row['payload_json']),
                    'fetched_at': row['fetched_at'],
                    'expires_at': row['expires_at'],
                    'age_seconds': int(age.total_seconds()),
                    'is_stale': age >= self.stale_after
                }
            finally:
                conn.close()
        except STORAGE_ERRORS as e:
            logger.warning(f"Cache read failed for {key}: {e}")
            return None

    def put(self, key: str, payload: Dict) -> bool:
        """
        Replace the entry for key with a complete payload. Rows that
        have already hard-expired are purged in the same transaction.

        Returns:
            True if stored, False on storage failure
        """
        now = self.clock()
        expires_at = now + self.hard_expiry
        try:
            payload_json = json.dumps(payload)
            conn = self._get_connection()
            try:
                purged = conn.execute('DELETE FROM live_intel_cache WHERE expires_at <= ?',
                                      (now.isoformat(),)).rowcount
                if purged:
                    logger.debug(f"Purged {purged} expired cache entries")
                conn.execute('''
                    INSERT OR REPLACE INTO live_intel_cache
                    (key, payload_json, fetched_at, expires_at)
                    VALUES (?, ?, ?, ?)
                ''', (key, payload_json, now.isoformat(), expires_at.isoformat()))
                conn.commit()
            finally:
                conn.close()
            return True
        except STORAGE_ERRORS as e:
            logger.warning(f"Cache write failed for {key}: {e}")
            return False

    def invalidate(self, key: str) -> bool:
        try:
            conn = self._get_connection()
            try:
                cursor = conn.execute('DELETE FROM live_intel_cache WHERE key = ?', (key,))
                conn.commit()
                return cursor.rowcount > 0
            finally:
                conn.close()
        except STORAGE_ERRORS as e:
            logger.warning(f"Cache invalidate failed for {key}: {e}")
            return False

    def clear_expired(self) -> int:
        """
        Remove all expired entries.

        Returns:
            Number of entries removed
        """
        try:
            conn = self._get_connection()
            try:
                cursor = conn.execute('''
                    DELETE FROM live_intel_cache
                    WHERE expires_at <= ?
                ''', (self.clock().isoformat(),))
                conn.commit()
                return cursor.rowcount
            finally:
                conn.close()
        except STORAGE_ERRORS as e:
            logger.warning(f"Cache cleanup failed: {e}")
            return 0

    def get_stats(self) -> Dict:
        """
        Get cache statistics.

        Returns:
            Dict with total, expired and stale entry counts and cache size
        """
        now = self.clock()
        stats = {
            'total_entries': 0,
            'expired_entries': 0,
            'stale_entries': 0,
            'valid_entries': 0,
            'cache_size_bytes': 0,
            'hard_expiry_minutes': int(self.hard_expiry.total_seconds() // 60),
            'stale_after_minutes': int(self.stale_after.total_seconds() // 60)
        }
        try:
            conn = self._get_connection()
            try:
                total = conn.execute('SELECT COUNT(*) AS n FROM live_intel_cache').fetchone()['n']
                expired = conn.execute(
                    'SELECT COUNT(*) AS n FROM live_intel_cache WHERE expires_at <= ?',
                    (now.isoformat(),)
                ).fetchone()['n']
                stale = conn.execute(
                    'SELECT COUNT(*) AS n FROM live_intel_cache WHERE fetched_at <= ? AND expires_at > ?',
                    ((now - self.stale_after).isoformat(), now.isoformat())
                ).fetchone()['n']
            finally:
                conn.close()
        except STORAGE_ERRORS as e:
            logger.warning(f"Cache stats unavailable: {e}")
            return stats

        try:
            file_size = os.path.getsize(self.db_path)
        except OSError:
            file_size = 0

        stats.update({
            'total_entries': total,
            'expired_entries': expired,
            'stale_entries': stale,
            'valid_entries': total - expired,
            'cache_size_bytes': file_size
        })
        return stats
