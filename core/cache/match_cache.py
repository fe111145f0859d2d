"""Match Cache - Redis store for computed MatchResults keyed by content fingerprint."""
import json
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional, TypeVar
from urllib.parse import urlparse

from redis import Redis
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)

T = TypeVar('T')

CACHE_TTL_SECONDS = 24 * 60 * 60
KEY_PREFIX = "match:"
SCAN_BATCH = 100


def _redact(url: str) -> str:
    """URL with any password masked, for log lines."""
    parsed = urlparse(url)
    if not parsed.password:
        return url
    host = parsed.hostname or ""
    port = f":{parsed.port}" if parsed.port else ""
    return parsed._replace(netloc=f"{parsed.username or ''}:***@{host}{port}").geturl()


class MatchResultCache:
    """
    Best-effort cache of serialized MatchResults.

    Keys are fingerprints of (entity pair, registry content), so a registry
    edit changes every key and stale scores are never served. Redis
    problems are logged and treated as misses; scoring never fails because
    of the cache.
    """

    def __init__(
        self,
        redis_url: str = "redis://localhost:6379/0",
        password: Optional[str] = None,
        ttl_seconds: int = CACHE_TTL_SECONDS,
    ):
        self.redis_url = redis_url
        self.ttl_seconds = ttl_seconds
        self._client: Optional[Redis] = None

        try:
            client = Redis.from_url(
                redis_url,
                password=password,
                decode_responses=True,
                socket_connect_timeout=2,
                socket_timeout=2,
            )
            client.ping()
        except (RedisError, OSError, ValueError) as e:
            logger.warning(f"Match cache disabled, cannot reach {_redact(redis_url)}: {e}")
            return

        self._client = client
        logger.info(f"Match cache using {_redact(redis_url)} (ttl {ttl_seconds}s)")

    @property
    def is_available(self) -> bool:
        return self._client is not None

    @staticmethod
    def key_for(fingerprint: str) -> str:
        return KEY_PREFIX + fingerprint

    def _guarded(self, action: str, default: T, op: Callable[[Redis], T]) -> T:
        if self._client is None:
            return default
        try:
            return op(self._client)
        except (RedisError, OSError, ValueError) as e:
            logger.warning(f"Match cache {action} failed: {e}")
            return default

    def get_result(self, fingerprint: str) -> Optional[Dict[str, Any]]:
        """Serialized MatchResult for the fingerprint, or None on miss."""
        raw = self._guarded("read", None, lambda r: r.get(self.key_for(fingerprint)))
        if raw is None:
            return None
        try:
            return json.loads(raw)["result"]
        except (ValueError, KeyError, TypeError) as e:
            logger.warning(f"Discarding unreadable cache entry {fingerprint[:12]}: {e}")
            return None

    def set_result(self, fingerprint: str, result: Dict[str, Any], ttl_seconds: Optional[int] = None) -> bool:
        ttl = ttl_seconds or self.ttl_seconds
        entry = json.dumps({
            "result": result,
            "stored_at": datetime.now(timezone.utc).isoformat(),
        })
        return bool(self._guarded("write", False, lambda r: r.setex(self.key_for(fingerprint), ttl, entry)))

    def delete_result(self, fingerprint: str) -> bool:
        return bool(self._guarded("delete", False, lambda r: r.delete(self.key_for(fingerprint))))

    def clear_all(self) -> int:
        """Drop every cached match result. Returns the number of keys removed."""
        def _clear(r: Redis) -> int:
            removed = 0
            for batch in _chunks(r.scan_iter(match=f"{KEY_PREFIX}*", count=SCAN_BATCH), SCAN_BATCH):
                removed += r.delete(*batch)
            return removed

        removed = self._guarded("clear", 0, _clear)
        logger.info(f"Removed {removed} cached match results")
        return removed


def _chunks(iterable, size: int):
    batch = []
    for item in iterable:
        batch.append(item)
        if len(batch) >= size:
            yield batch
            batch = []
    if batch:
        yield batch
