"""
SQLite page cache and cache-aware fetch helper.
Stores decoded page bodies keyed by API host + resource + page number so a rerun against the same owner can skip
requests that already succeeded. Pages are cached as-is; results are never merged across runs.
"""

import sqlite3
import json
import time
import logging
import threading
from typing import Optional, Any, Dict, List

from .retry import perform_request_with_retries, DEFAULT_TIMEOUT

logger = logging.getLogger(__name__)

# noinspection SqlResolve
SQL_CREATE = """
CREATE TABLE IF NOT EXISTS page_cache (
    key TEXT PRIMARY KEY,
    response TEXT,
    status INTEGER,
    timestamp REAL
);
"""


def page_cache_key(resource: str, identifier: str, page: int, per_page: int, host: str) -> str:
    """Build the cache key for one page, e.g. github:api.github.com:contributors:acme/widgets:page:2:per:100.
    host is the API host (plus any path prefix) so pages from different servers never collide.
    """
    return f"github:{host}:{resource}:{identifier}:page:{page}:per:{per_page}"


class Cache:
    def __init__(self, path: Optional[str] = None, max_entries: Optional[int] = None, ttl_seconds: Optional[float] = None):
        """Create a cache instance.

        :param path: SQLite file path or None for in-memory.
        :param max_entries: optional cap on stored pages; the oldest are pruned when exceeded.
        :param ttl_seconds: optional TTL in seconds; older pages are pruned on set and ignored on get.
        """
        self.path = path or ':memory:'
        self.conn = sqlite3.connect(self.path, check_same_thread=False)
        self._lock = threading.RLock()
        self.max_entries = int(max_entries) if max_entries is not None else None
        self.ttl_seconds = float(ttl_seconds) if ttl_seconds is not None else None
        with self._lock:
            self.conn.executescript(SQL_CREATE)
            self.conn.commit()

    def close(self):
        with self._lock:
            if self.conn is not None:
                self.conn.close()
                self.conn = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    # noinspection SqlResolve
    def stats(self) -> Dict[str, Any]:
        """Return the number of cached pages and the oldest/newest timestamps."""
        with self._lock:
            cur = self.conn.execute('SELECT COUNT(1), MIN(timestamp), MAX(timestamp) FROM page_cache')
            count, oldest, newest = cur.fetchone()
        return {
            'path': self.path,
            'count': int(count or 0),
            'oldest': float(oldest) if oldest is not None else None,
            'newest': float(newest) if newest is not None else None,
        }

    # noinspection SqlResolve
    def list_keys(self, limit: int = 1000) -> List[Dict[str, Any]]:
        """Return cached keys with status and timestamp, newest first."""
        with self._lock:
            cur = self.conn.execute('SELECT key, status, timestamp FROM page_cache ORDER BY timestamp DESC LIMIT ?', (limit,))
            rows = cur.fetchall()
        return [{'key': k, 'status': int(status or 0), 'timestamp': float(ts or 0)} for k, status, ts in rows]

    # noinspection SqlWithoutWhere
    def clear(self) -> int:
        """Remove every cached page. Returns the number of rows deleted."""
        with self._lock:
            cur = self.conn.execute('DELETE FROM page_cache')
            self.conn.commit()
            return cur.rowcount

    # noinspection SqlResolve
    def delete_key(self, key: str) -> int:
        with self._lock:
            cur = self.conn.execute('DELETE FROM page_cache WHERE key = ?', (key,))
            self.conn.commit()
            return cur.rowcount

    # noinspection SqlResolve
    def get(self, key: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            cur = self.conn.execute('SELECT response, status, timestamp FROM page_cache WHERE key = ?', (key,))
            row = cur.fetchone()
        if not row:
            return None
        response, status, timestamp = row
        if self.ttl_seconds is not None and time.time() - float(timestamp) > self.ttl_seconds:
            self.delete_key(key)
            return None
        return {'response': json.loads(response), 'status': status, 'timestamp': timestamp}

    # noinspection SqlResolve
    def _prune_if_needed(self):
        with self._lock:
            if self.ttl_seconds is not None:
                cutoff = time.time() - self.ttl_seconds
                self.conn.execute('DELETE FROM page_cache WHERE timestamp < ?', (cutoff,))
            if self.max_entries is not None:
                count = self.conn.execute('SELECT COUNT(1) FROM page_cache').fetchone()[0] or 0
                if count > self.max_entries:
                    self.conn.execute(
                        'DELETE FROM page_cache WHERE key IN (SELECT key FROM page_cache ORDER BY timestamp ASC LIMIT ?)',
                        (int(count - self.max_entries),),
                    )
            self.conn.commit()

    # noinspection SqlResolve
    def set(self, key: str, response: Any, status: int = 200):
        payload = json.dumps(response)
        with self._lock:
            self.conn.execute('REPLACE INTO page_cache(key, response, status, timestamp) VALUES (?, ?, ?, ?)', (key, payload, status, time.time()))
            self.conn.commit()
            self._prune_if_needed()


def _cached_fresh(cache: Optional[Cache], cache_key: Optional[str], max_age: Optional[float]):
    if not cache or not cache_key:
        return None
    cached = cache.get(cache_key)
    if not cached:
        return None
    if max_age is None:
        return cached
    age = time.time() - float(cached.get('timestamp') or 0)
    return cached if age <= float(max_age) else None


def cached_get(
    url: str,
    headers: Optional[Dict[str, str]] = None,
    params: Optional[Dict[str, Any]] = None,
    cache: Optional[Cache] = None,
    cache_key: Optional[str] = None,
    max_age: Optional[float] = None,
    timeout: float = DEFAULT_TIMEOUT,
    max_retries: Optional[int] = None,
) -> Dict[str, Any]:
    """Perform a GET with page caching, rate-limit handling and retries.

    Checks the cache first (honoring max_age), otherwise performs the request via storage.retry.
    Only successful JSON array bodies are stored.
    """
    cached = _cached_fresh(cache, cache_key, max_age)
    if cached:
        logger.debug("Cache hit for %s", cache_key)
        return cached

    result = perform_request_with_retries(url, headers or {}, params or {}, timeout=timeout, max_retries=max_retries)
    status = result.get('status', 0)
    if cache and cache_key and 200 <= status < 300 and isinstance(result.get('response'), list):
        cache.set(cache_key, result['response'], status)
    return result


__all__ = ["Cache", "cached_get", "page_cache_key"]
