"""
Durable key/value cache for computed genre profiles.
Uses Redis when configured and reachable, otherwise a JSON file on disk.
Entries have no TTL: a profile stays valid for as long as its playlist
snapshot is current, and superseded entries are simply never read again.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Optional, Dict
import redis.asyncio as redis
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)

class CacheManager:
    """Cache manager with Redis backend and JSON file fallback."""

    def __init__(self, cache_path: Path, redis_url: Optional[str] = None):
        """
        Initialize cache manager.

        Args:
            cache_path: JSON file used when Redis is not available
            redis_url: Redis connection URL (optional)
        """
        self.cache_path = Path(cache_path)
        self.redis_url = redis_url
        self.redis: Optional[redis.Redis] = None

    async def connect(self):
        """Connect to Redis if URL is provided."""
        if self.redis_url:
            try:
                self.redis = redis.from_url(self.redis_url)
                await self.redis.ping()
                logger.info("Connected to Redis profile cache")
            except (RedisError, OSError) as e:
                logger.warning(f"Failed to connect to Redis: {e}, using {self.cache_path}")
                if self.redis is not None:
                    await self.redis.aclose()
                self.redis = None

    async def close(self):
        """Close Redis connection."""
        if self.redis:
            await self.redis.aclose()
            self.redis = None

    @property
    def backend(self) -> str:
        return "redis" if self.redis else "file"

    async def get(self, key: str) -> Optional[Any]:
        """Get value from cache."""
        if self.redis:
            try:
                value = await self.redis.get(key)
                if value:
                    return json.loads(value)
            except RedisError as e:
                logger.warning(f"Redis get error: {e}")

        return self._read_file().get(key)

    async def set(self, key: str, value: Any):
        """Store value under key, overwriting any previous value."""
        if self.redis:
            try:
                await self.redis.set(key, json.dumps(value))
                return
            except RedisError as e:
                logger.warning(f"Redis set error: {e}, writing to {self.cache_path}")

        entries = self._read_file()
        entries[key] = value
        self._write_file(entries)

    def _read_file(self) -> Dict[str, Any]:
        if not self.cache_path.exists():
            return {}
        try:
            with open(self.cache_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Ignoring unreadable cache file {self.cache_path}: {e}")
            return {}
        return data.get("entries", {}) if isinstance(data, dict) else {}

    def _write_file(self, entries: Dict[str, Any]):
        write_json_atomic(self.cache_path, {"entries": entries})

    def get_cache_key(self, prefix: str, *args) -> str:
        """Generate cache key from prefix and arguments."""
        key_parts = [prefix] + [str(arg) for arg in args]
        return ":".join(key_parts)

def write_json_atomic(path: Path, data: Any) -> None:
    """Write JSON next to path and move it into place in one step."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + ".tmp")
    with open(tmp, 'w', encoding='utf-8') as f:
        json.dump(data, f, indent=2)
    os.replace(tmp, path)
