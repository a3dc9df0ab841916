"""ECDICT backend: the primary local English-Chinese dictionary (SQLite)."""

import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from wordlookup.database import create_readonly_engine
from wordlookup.exceptions import ProviderQueryError, ProviderUnavailableError
from wordlookup.services.dictionary.base import (
    DataSource,
    DictionaryProvider,
    DictionaryResponse,
    QueryResult,
    create_empty_response,
)
from wordlookup.services.dictionary.ecdict_parser import (
    build_frequency,
    parse_definition,
    parse_exchange,
    parse_translation,
)

logger = logging.getLogger(__name__)


class EcdictDatabase:
    """Read-only access to the `stardict` table."""

    def __init__(self, db_path: Path) -> None:
        self.db_path = db_path
        self._engine: AsyncEngine | None = None
        self.word_count = 0

    async def init(self) -> bool:
        """Open the database. Returns False (and stays closed) on failure."""
        engine = create_readonly_engine(self.db_path)
        try:
            async with engine.connect() as conn:
                result = await conn.execute(text("SELECT COUNT(*) FROM stardict"))
                self.word_count = int(result.scalar() or 0)
        except (SQLAlchemyError, OSError) as e:
            logger.error(f"Failed to open ECDICT database {self.db_path}: {e}")
            await engine.dispose()
            return False

        self._engine = engine
        logger.info(f"ECDICT database opened: {self.db_path} ({self.word_count:,} words)")
        return True

    def is_available(self) -> bool:
        return self._engine is not None

    def _require_engine(self) -> AsyncEngine:
        if self._engine is None:
            raise ProviderUnavailableError("ECDICT database not available")
        return self._engine

    async def query(self, word: str) -> Mapping[str, Any] | None:
        """Exact, case-insensitive lookup of a single word."""
        engine = self._require_engine()
        async with engine.connect() as conn:
            result = await conn.execute(
                text("SELECT * FROM stardict WHERE word = :word COLLATE NOCASE LIMIT 1"),
                {"word": word},
            )
            record = result.mappings().first()

        logger.debug(f"ECDICT word='{word}' found={record is not None}")
        return record

    async def match(self, prefix: str, limit: int = 10) -> list[tuple[int, str]]:
        """Return up to `limit` (id, word) pairs with word >= prefix."""
        engine = self._require_engine()
        async with engine.connect() as conn:
            result = await conn.execute(
                text(
                    "SELECT id, word FROM stardict WHERE word >= :prefix "
                    "ORDER BY word COLLATE NOCASE LIMIT :limit"
                ),
                {"prefix": prefix, "limit": limit},
            )
            return [(row.id, row.word) for row in result]

    async def count(self) -> int:
        engine = self._require_engine()
        async with engine.connect() as conn:
            result = await conn.execute(text("SELECT COUNT(*) FROM stardict"))
            return int(result.scalar() or 0)

    async def close(self) -> None:
        if self._engine is None:
            return
        await self._engine.dispose()
        self._engine = None
        logger.info("ECDICT database closed")


def transform_record(record: Mapping[str, Any]) -> DictionaryResponse:
    """Convert a stardict row to the unified response."""
    response = create_empty_response(record["word"])

    phonetic = record.get("phonetic")
    if phonetic:
        response.phonetics.uk = phonetic
        response.phonetics.us = phonetic

    # ECDICT ships no audio; clients fall back to TTS
    response.translations = parse_translation(record.get("translation"))
    response.definitions = parse_definition(record.get("definition"))
    response.exchange = parse_exchange(record.get("exchange"))
    response.frequency = build_frequency(
        record.get("collins"),
        record.get("oxford"),
        record.get("bnc"),
        record.get("frq"),
        record.get("tag"),
    )
    response.source = DataSource.ECDICT.value
    response.cached = False
    return response


class EcdictProvider(DictionaryProvider):
    """Primary local English dictionary (ECDICT, ~3.4M entries)."""

    def __init__(self, db_path: Path) -> None:
        self._db = EcdictDatabase(db_path)

    @classmethod
    async def create(cls, db_path: Path) -> "EcdictProvider":
        """Construct and open the provider. Check is_available() afterwards."""
        provider = cls(db_path)
        await provider.init()
        return provider

    async def init(self) -> bool:
        return await self._db.init()

    @property
    def name(self) -> str:
        return DataSource.ECDICT.value

    @property
    def display_name(self) -> str:
        return "ECDICT 英汉词典"

    @property
    def supported_languages(self) -> tuple[str, ...]:
        return ("en",)

    @property
    def word_count(self) -> int:
        return self._db.word_count

    def is_available(self) -> bool:
        return self._db.is_available()

    async def query(self, word: str, language: str) -> QueryResult:
        if not self.is_available():
            return QueryResult(found=False, error="ECDICT database not available")

        try:
            record = await self._db.query(word)
        except SQLAlchemyError as e:
            raise ProviderQueryError(f"ECDICT query failed for '{word}': {e}") from e

        if record is None:
            return QueryResult(found=False)
        return QueryResult(found=True, response=transform_record(record))

    async def match(self, prefix: str, limit: int = 10) -> list[tuple[int, str]]:
        """Prefix scan (word >= prefix) used for suggestions."""
        if not self.is_available():
            return []
        return await self._db.match(prefix, limit)

    def is_valid_result(self, response: DictionaryResponse | None) -> bool:
        if response is None:
            return False
        # Some rows carry English definitions but no Chinese translation;
        # either side is enough for a useful EN result.
        return bool(response.translations or response.definitions)

    async def close(self) -> None:
        await self._db.close()
