"""Redis-backed cache for forward geocoding results."""

import hashlib
import json
from typing import Optional

from redis import Redis
from redis.exceptions import RedisError

from marker_import.core.logging import get_logger
from marker_import.models.records import Coordinates

logger = get_logger(__name__)


class GeocodeCache:
    """Caches successful lookups per provider and query."""

    def __init__(self, redis_client: Optional[Redis], ttl: int = 2592000) -> None:
        """Initialize the cache.

        Args:
            redis_client: Redis client, or None to disable caching
            ttl: Seconds a cached coordinate stays valid
        """
        self.redis_client = redis_client
        self.ttl = ttl

    @classmethod
    def from_url(cls, redis_url: Optional[str], ttl: int = 2592000) -> "GeocodeCache":
        """Connect to Redis, falling back to a disabled cache when unreachable."""
        if not redis_url:
            return cls(None, ttl)
        try:
            client = Redis.from_url(redis_url, decode_responses=True)
            client.ping()
            logger.info("geocode_cache_enabled")
            return cls(client, ttl)
        except RedisError as e:
            logger.warning("geocode_cache_unavailable", error=str(e))
            return cls(None, ttl)

    @property
    def enabled(self) -> bool:
        return self.redis_client is not None

    @staticmethod
    def cache_key(query: str, provider: str) -> str:
        """Generate cache key for a provider lookup.

        Args:
            query: Address string to geocode
            provider: Geocoding provider name

        Returns:
            Cache key string
        """
        query_hash = hashlib.sha256(query.strip().lower().encode()).hexdigest()
        return f"geocode:{provider}:{query_hash}"

    def get(self, query: str, provider: str) -> Optional[Coordinates]:
        """Get cached coordinates if available."""
        if not self.redis_client:
            return None

        try:
            cached = self.redis_client.get(self.cache_key(query, provider))
            if cached:
                result = json.loads(cached)
                logger.debug("geocode_cache_hit", provider=provider, query=query[:50])
                return Coordinates(lat=result["lat"], lng=result["lng"])
        except (RedisError, ValueError, KeyError) as e:
            logger.warning("geocode_cache_read_failed", error=str(e))

        return None

    def set(self, query: str, provider: str, coordinates: Coordinates) -> None:
        """Cache a successful lookup."""
        if not self.redis_client:
            return

        try:
            self.redis_client.setex(
                self.cache_key(query, provider),
                self.ttl,
                json.dumps({"lat": coordinates.lat, "lng": coordinates.lng}),
            )
        except RedisError as e:
            logger.warning("geocode_cache_write_failed", error=str(e))
