"""Lookup result cache with hit tracking, stored in SQLite."""

import json
import logging
import time
from dataclasses import dataclass

from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from wordlookup.database import create_session_factory, init_db
from wordlookup.exceptions import CacheBackendError
from wordlookup.models import CacheConfig, CacheEntry
from wordlookup.services.dictionary.base import (
    DataSource,
    DictionaryResponse,
    response_from_dict,
    response_to_dict,
)

logger = logging.getLogger(__name__)

DAY_MS = 24 * 60 * 60 * 1000
TTL_CONFIG_KEY = "cache_ttl_days"

# Local sources answer fast enough that caching them only bloats the table
NON_CACHEABLE_SOURCES = frozenset({DataSource.ECDICT.value})


def _now_ms() -> int:
    return int(time.time() * 1000)


def _decode_payload(raw: str) -> DictionaryResponse:
    """Decode a stored payload. Raises ValueError, TypeError or AttributeError if malformed."""
    obj = json.loads(raw)
    if not isinstance(obj, dict):
        raise ValueError(f"expected a JSON object, got {type(obj).__name__}")
    return response_from_dict(obj)


def make_cache_key(word: str, language: str) -> str:
    return f"dict:{language}:{word.lower()}"


@dataclass
class CacheStats:
    hit: bool
    hit_count: int = 0
    age_days: int = 0


@dataclass
class CacheHit:
    data: DictionaryResponse
    stats: CacheStats


class CacheService:
    """
    Cache of lookup results keyed by (word, language).

    Caching is an optimization only: every backend failure is logged and
    degrades to a miss on read or a no-op on write.
    """

    DEFAULT_TTL_DAYS = 30

    def __init__(
        self,
        engine: AsyncEngine | None,
        default_ttl_days: int = DEFAULT_TTL_DAYS,
        enabled: bool = True,
    ) -> None:
        self.engine = engine
        self.default_ttl_days = default_ttl_days if default_ttl_days > 0 else self.DEFAULT_TTL_DAYS
        self.enabled = enabled and engine is not None
        self._session_factory: async_sessionmaker[AsyncSession] | None = (
            create_session_factory(engine) if engine is not None else None
        )
        self._ready = False

    @property
    def ready(self) -> bool:
        return self.enabled and self._ready

    async def startup(self) -> bool:
        """Create the cache tables. Caching stays disabled if this fails."""
        if not self.enabled or self.engine is None:
            logger.info("Cache disabled")
            return False

        try:
            await init_db(self.engine)
        except SQLAlchemyError as e:
            logger.error(f"Cache backend unavailable, caching disabled: {e}")
            self._ready = False
            return False

        self._ready = True
        logger.info("Cache ready")
        return True

    async def close(self) -> None:
        self._ready = False
        if self.engine is not None:
            await self.engine.dispose()

    async def get_cached(self, word: str, language: str) -> CacheHit | None:
        """
        Return the cached response for (word, language), or None.

        A hit bumps hit_count and last_hit_at but leaves expires_at alone,
        so reads never extend an entry's lifetime.
        """
        if not self.ready or self._session_factory is None:
            logger.debug(f"Cache miss word='{word}' lang={language} reason=not_ready")
            return None

        key = make_cache_key(word, language)
        now = _now_ms()

        try:
            async with self._session_factory() as session:
                entry = await session.get(CacheEntry, key)
                if entry is None:
                    logger.info(f"Cache miss word='{word}' lang={language}")
                    return None

                if entry.expires_at <= now:
                    await session.delete(entry)
                    await session.commit()
                    logger.info(f"Cache miss word='{word}' lang={language} reason=expired")
                    return None

                try:
                    data = _decode_payload(entry.data)
                except (ValueError, TypeError, AttributeError) as e:
                    await session.delete(entry)
                    await session.commit()
                    logger.error(f"Corrupt cache entry key={key} removed: {e}")
                    return None

                entry.hit_count += 1
                entry.last_hit_at = now
                hit_count = entry.hit_count
                created_at = entry.created_at
                await session.commit()
        except SQLAlchemyError as e:
            logger.error(f"Cache read failed word='{word}' lang={language}: {e}")
            return None

        age_days = (now - created_at) // DAY_MS
        logger.info(
            f"Cache hit word='{word}' lang={language} hit_count={hit_count} age={age_days}d"
        )
        stats = CacheStats(hit=True, hit_count=hit_count, age_days=age_days)
        return CacheHit(data=data, stats=stats)

    async def set_cached(
        self,
        word: str,
        language: str,
        data: DictionaryResponse,
        source: str,
    ) -> bool:
        """
        Store a response with a fresh TTL and hit_count=0.

        Results from local sources are never stored.
        """
        if source in NON_CACHEABLE_SOURCES:
            logger.debug(f"Cache skip word='{word}' lang={language} source={source}")
            return False

        if not self.ready or self._session_factory is None:
            logger.debug(f"Cache skip word='{word}' lang={language} reason=not_ready")
            return False

        key = make_cache_key(word, language)
        ttl_days = await self.get_ttl_days()
        now = _now_ms()

        try:
            payload = json.dumps(response_to_dict(data), ensure_ascii=False)
            async with self._session_factory() as session:
                entry = await session.get(CacheEntry, key)
                if entry is None:
                    entry = CacheEntry(key=key)
                    session.add(entry)
                entry.data = payload
                entry.hit_count = 0
                entry.created_at = now
                entry.last_hit_at = now
                entry.expires_at = now + ttl_days * DAY_MS
                await session.commit()
        except SQLAlchemyError as e:
            logger.error(f"Cache write failed word='{word}' lang={language}: {e}")
            return False

        logger.info(f"Cache set word='{word}' lang={language} ttl={ttl_days}d")
        return True

    async def delete_cached(self, word: str, language: str) -> bool:
        """Remove an entry. Returns True if one was deleted."""
        if not self.ready or self._session_factory is None:
            return False

        key = make_cache_key(word, language)
        try:
            async with self._session_factory() as session:
                result = await session.execute(delete(CacheEntry).where(CacheEntry.key == key))
                await session.commit()
        except SQLAlchemyError as e:
            logger.error(f"Cache delete failed key={key}: {e}")
            return False

        deleted = bool(result.rowcount)
        logger.info(f"Cache delete word='{word}' lang={language} deleted={deleted}")
        return deleted

    async def get_cache_info(self, word: str, language: str) -> CacheEntry | None:
        """Entry metadata without touching hit statistics."""
        if not self.ready or self._session_factory is None:
            return None

        try:
            async with self._session_factory() as session:
                return await session.get(CacheEntry, make_cache_key(word, language))
        except SQLAlchemyError as e:
            logger.error(f"Cache info failed word='{word}' lang={language}: {e}")
            return None

    async def get_ttl_days(self) -> int:
        """Runtime TTL override, or the configured default if unset or invalid."""
        if not self.ready or self._session_factory is None:
            return self.default_ttl_days

        try:
            async with self._session_factory() as session:
                row = await session.get(CacheConfig, TTL_CONFIG_KEY)
        except SQLAlchemyError as e:
            logger.error(f"Error reading cache TTL: {e}")
            return self.default_ttl_days

        if row is None:
            return self.default_ttl_days

        try:
            ttl = int(row.value)
        except ValueError:
            logger.warning(f"Ignoring invalid {TTL_CONFIG_KEY}={row.value!r}")
            return self.default_ttl_days

        return ttl if ttl > 0 else self.default_ttl_days

    async def set_ttl_days(self, days: int) -> None:
        """
        Persist the runtime TTL override. Applies to entries written afterwards.

        Raises:
            ValueError: If days is not positive
            CacheBackendError: If the cache backend cannot store the value
        """
        if days <= 0:
            raise ValueError("TTL must be a positive number of days")
        if not self.ready or self._session_factory is None:
            raise CacheBackendError("Cache backend not ready")

        try:
            async with self._session_factory() as session:
                row = await session.get(CacheConfig, TTL_CONFIG_KEY)
                if row is None:
                    session.add(CacheConfig(key=TTL_CONFIG_KEY, value=str(days)))
                else:
                    row.value = str(days)
                await session.commit()
        except SQLAlchemyError as e:
            logger.error(f"Error saving cache TTL: {e}")
            raise CacheBackendError(f"Failed to save cache TTL: {e}") from e

        logger.info(f"Cache TTL set to {days}d")

    async def cleanup_expired(self) -> int:
        """
        Remove expired entries.

        Returns the number of entries deleted.
        """
        if not self.ready or self._session_factory is None:
            return 0

        now = _now_ms()
        try:
            async with self._session_factory() as session:
                count_result = await session.execute(
                    select(func.count()).select_from(CacheEntry).where(CacheEntry.expires_at <= now)
                )
                count = int(count_result.scalar() or 0)
                await session.execute(delete(CacheEntry).where(CacheEntry.expires_at <= now))
                await session.commit()
        except SQLAlchemyError as e:
            logger.error(f"Cache cleanup failed: {e}")
            return 0

        logger.info(f"Cache cleanup removed {count} expired entries")
        return count

    async def stats(self) -> int:
        """Number of stored entries, expired ones included."""
        if not self.ready or self._session_factory is None:
            return 0

        try:
            async with self._session_factory() as session:
                result = await session.execute(select(func.count()).select_from(CacheEntry))
                return int(result.scalar() or 0)
        except SQLAlchemyError as e:
            logger.error(f"Cache stats failed: {e}")
            return 0
