#!/usr/bin/env python3
"""
Read-through cache for per-day slot listings.

Entries are keyed by (date, requesting session) and live for a bounded TTL.
Redis is used when REDIS_URL is configured so every worker sees the same
entries and the same invalidations; otherwise the cache is in-process.
"""

import asyncio
import json
import math
from datetime import date, datetime, timedelta
from typing import Dict, List, Optional, Tuple

import redis.asyncio as redis
from redis.exceptions import RedisError

from practice_booking.core.clock import Clock, system_clock
from practice_booking.core.config import settings
from practice_booking.core.logging import get_logger
from practice_booking.schemas.availability import SlotAvailability

logger = get_logger(__name__)

KEY_PREFIX = "availability"
ANONYMOUS = "-"
# Past this many in-process entries the soonest-expiring are dropped
MAX_MEMORY_ENTRIES = 1000


def cache_key(day: date, session_id: Optional[str]) -> str:
    return f"{KEY_PREFIX}:{day.isoformat()}:{session_id or ANONYMOUS}"


class AvailabilityCache:
    """Bounded-TTL cache of ``list_available_slots`` results."""

    def __init__(
        self,
        ttl_seconds: int = settings.AVAILABILITY_CACHE_TTL_SECONDS,
        redis_url: Optional[str] = settings.REDIS_URL,
        clock: Clock = system_clock,
    ):
        self.ttl_seconds = ttl_seconds
        self.redis_url = redis_url or None
        self.clock = clock
        self._redis_client: Optional[redis.Redis] = None
        self._memory: Dict[str, Tuple[datetime, List[dict]]] = {}  # key -> (valid until, payload)

    async def get_redis_client(self) -> Optional[redis.Redis]:
        if self._redis_client is None and self.redis_url:
            try:
                client = redis.from_url(
                    self.redis_url,
                    decode_responses=True,
                    socket_connect_timeout=3,
                    socket_timeout=2,
                )
                await client.ping()
                self._redis_client = client
                logger.info("availability_cache_redis_connected")
            except (RedisError, OSError) as e:
                logger.warning("availability_cache_redis_unavailable", error=str(e))
                return None
        return self._redis_client

    async def get(self, day: date, session_id: Optional[str]) -> Optional[List[SlotAvailability]]:
        key = cache_key(day, session_id)

        client = await self.get_redis_client()
        if client:
            try:
                cached = await asyncio.wait_for(client.get(key), timeout=0.2)
                if cached:
                    return [SlotAvailability.model_validate(item) for item in json.loads(cached)]
                return None
            except (RedisError, OSError, asyncio.TimeoutError) as e:
                logger.debug("availability_cache_redis_miss", key=key, error=str(e))

        entry = self._memory.get(key)
        if entry is None:
            return None
        valid_until, payload = entry
        if self.clock.now() >= valid_until:
            self._memory.pop(key, None)
            return None
        return [SlotAvailability.model_validate(item) for item in payload]

    async def set(
        self,
        day: date,
        session_id: Optional[str],
        slots: List[SlotAvailability],
        valid_until: Optional[datetime] = None,
    ) -> None:
        """
        Store a listing for at most ``ttl_seconds``, and never past ``valid_until``
        (the earliest expiry of the holds the listing reflects).
        """
        now = self.clock.now()
        deadline = now + timedelta(seconds=self.ttl_seconds)
        if valid_until is not None:
            deadline = min(deadline, valid_until)
        if deadline <= now:
            return

        key = cache_key(day, session_id)
        payload = [s.model_dump(mode="json") for s in slots]

        client = await self.get_redis_client()
        if client:
            ttl = max(1, math.ceil((deadline - now).total_seconds()))
            try:
                await asyncio.wait_for(client.setex(key, ttl, json.dumps(payload)), timeout=0.5)
                return
            except (RedisError, OSError, asyncio.TimeoutError) as e:
                logger.warning("availability_cache_redis_write_failed", key=key, error=str(e))

        self._memory[key] = (deadline, payload)
        self._cleanup_memory_cache(now)

    def _cleanup_memory_cache(self, now: datetime) -> None:
        """Drop expired entries, then the soonest-expiring ones while over the size cap."""
        expired = [key for key, (valid_until, _) in self._memory.items() if valid_until <= now]
        for key in expired:
            del self._memory[key]

        overflow = len(self._memory) - MAX_MEMORY_ENTRIES
        if overflow > 0:
            oldest = sorted(self._memory, key=lambda k: self._memory[k][0])[:overflow]
            for key in oldest:
                del self._memory[key]
            logger.info("availability_cache_trimmed", expired=len(expired), evicted=overflow)

    async def invalidate(self, *days: date) -> None:
        """Drop every session's entry for the given dates."""
        prefixes = [f"{KEY_PREFIX}:{d.isoformat()}:" for d in days]
        for key in [k for k in self._memory if k.startswith(tuple(prefixes))]:
            del self._memory[key]

        client = await self.get_redis_client()
        if client:
            for prefix in prefixes:
                await self._delete_matching(client, f"{prefix}*")

        logger.debug("availability_cache_invalidated", dates=[d.isoformat() for d in days])

    async def clear(self) -> None:
        self._memory.clear()
        client = await self.get_redis_client()
        if client:
            await self._delete_matching(client, f"{KEY_PREFIX}:*")

    async def _delete_matching(self, client: redis.Redis, pattern: str) -> None:
        try:
            keys = [key async for key in client.scan_iter(match=pattern, count=200)]
            if keys:
                await client.delete(*keys)
        except (RedisError, OSError) as e:
            # Stale entries age out with the TTL
            logger.warning("availability_cache_invalidate_failed", pattern=pattern, error=str(e))

    async def close(self) -> None:
        if self._redis_client is not None:
            await self._redis_client.aclose()
            self._redis_client = None
