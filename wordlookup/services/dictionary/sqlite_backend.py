"""Generic backend for local SQLite dictionaries in the Enjoy dict schema.

Schema:
    words(id, word, definition_id)
    definitions(id, key, definition)

Used for the supplementary Oxford EN-EN dictionary and the bidirectional
language-pair dictionaries. Definitions are either plain text or HTML
exported from macOS Dictionary.app.
"""

import asyncio
import logging
import re
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from bs4 import BeautifulSoup, Tag
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from wordlookup.database import create_readonly_engine
from wordlookup.exceptions import ProviderQueryError, ProviderUnavailableError
from wordlookup.services.dictionary.base import (
    Definition,
    DictionaryProvider,
    DictionaryResponse,
    QueryResult,
    create_empty_response,
)

logger = logging.getLogger(__name__)

_HTML_TAG = re.compile(r"</?[a-z][\s\S]*>", re.IGNORECASE)
_WHITESPACE = re.compile(r"\s+")
_TRAILING_PUNCT = re.compile(r"\s*[|:]\s*$")

# Checked in order: "pronoun" must win over "noun", "adverb" over "verb"
POS_KEYWORDS = (
    ("pronoun", "pronoun"),
    ("noun", "noun"),
    ("adverb", "adverb"),
    ("verb", "verb"),
    ("adjective", "adjective"),
    ("preposition", "preposition"),
    ("conjunction", "conjunction"),
    ("interjection", "interjection"),
    ("determiner", "determiner"),
    ("number", "numeral"),
    ("numeral", "numeral"),
)


class SqliteDictDatabase:
    """Read-only access to an Enjoy-schema dictionary file."""

    def __init__(self, db_path: Path) -> None:
        self.db_path = db_path
        self._engine: AsyncEngine | None = None
        self.word_count = 0

    async def init(self) -> bool:
        engine = create_readonly_engine(self.db_path)
        try:
            async with engine.connect() as conn:
                result = await conn.execute(text("SELECT COUNT(*) FROM words"))
                self.word_count = int(result.scalar() or 0)
        except (SQLAlchemyError, OSError) as e:
            logger.error(f"Failed to open dictionary database {self.db_path}: {e}")
            await engine.dispose()
            return False
        except asyncio.CancelledError:
            await engine.dispose()
            raise

        self._engine = engine
        logger.info(f"Dictionary database opened: {self.db_path} ({self.word_count:,} words)")
        return True

    def is_available(self) -> bool:
        return self._engine is not None

    async def query(self, word: str) -> Mapping[str, Any] | None:
        if self._engine is None:
            raise ProviderUnavailableError(f"{self.db_path} not available")

        async with self._engine.connect() as conn:
            result = await conn.execute(
                text(
                    "SELECT w.word AS word, d.key AS key, d.definition AS definition "
                    "FROM words w JOIN definitions d ON d.id = w.definition_id "
                    "WHERE w.word = :word COLLATE NOCASE LIMIT 1"
                ),
                {"word": word},
            )
            return result.mappings().first()

    async def close(self) -> None:
        if self._engine is None:
            return
        await self._engine.dispose()
        self._engine = None
        logger.info(f"Dictionary database closed: {self.db_path}")


def clean_text(value: str) -> str:
    """Collapse whitespace and drop trailing separators."""
    if not value:
        return ""
    value = _WHITESPACE.sub(" ", value.replace("\u00a0", " "))
    return _TRAILING_PUNCT.sub("", value).strip()


def looks_like_html(value: str) -> bool:
    return bool(_HTML_TAG.search(value))


def _normalize_pos(raw: str) -> str:
    raw = raw.lower()
    for keyword, pos in POS_KEYWORDS:
        if keyword in raw:
            return pos
    return raw


def _extract_part_of_speech(sense: Tag) -> str:
    classes = sense.get("class") or []
    entry = sense if "se1" in classes else sense.find_parent(class_="se1")
    if entry is None:
        return ""

    pos_node = entry.select_one(".pos .tg_pos") or entry.select_one(".pos")
    if pos_node is None:
        return ""
    raw = clean_text(pos_node.get_text())
    return _normalize_pos(raw) if raw else ""


def parse_definitions(raw: str) -> list[Definition]:
    """
    Parse a stored definition into Definitions.

    HTML in the Oxford layout yields one Definition per `.msDict` sense, with
    the `.df` text, the first `.eg` example, and the part of speech of the
    enclosing `.se1` block. Senses are de-duplicated on (pos, definition).
    Anything else collapses to a single plain-text definition.
    """
    if not looks_like_html(raw):
        plain = clean_text(raw)
        return [Definition(definition=plain)] if plain else []

    soup = BeautifulSoup(raw, "html.parser")
    result: list[Definition] = []
    seen: set[tuple[str, str]] = set()

    for sense in soup.select(".msDict"):
        df = sense.select_one(".df")
        definition = clean_text(df.get_text()) if df else ""
        if not definition:
            continue

        part_of_speech = _extract_part_of_speech(sense)
        key = (part_of_speech, definition)
        if key in seen:
            continue
        seen.add(key)

        eg = sense.select_one(".eg")
        result.append(
            Definition(
                part_of_speech=part_of_speech,
                definition=definition,
                example=clean_text(eg.get_text()) if eg else "",
            )
        )

    if result:
        return result

    fallback = clean_text(soup.get_text(" "))
    return [Definition(definition=fallback)] if fallback else []


class SqliteDictProvider(DictionaryProvider):
    """Local dictionary provider over an Enjoy-schema SQLite file."""

    def __init__(
        self,
        name: str,
        display_name: str,
        supported_languages: tuple[str, ...],
        db_path: Path,
    ) -> None:
        self._name = name
        self._display_name = display_name
        self._supported_languages = tuple(supported_languages)
        self._db = SqliteDictDatabase(db_path)

    @classmethod
    async def create(
        cls,
        name: str,
        display_name: str,
        supported_languages: tuple[str, ...],
        db_path: Path,
    ) -> "SqliteDictProvider":
        """Construct and open the provider. Check is_available() afterwards."""
        provider = cls(name, display_name, supported_languages, db_path)
        await provider.init()
        return provider

    async def init(self) -> bool:
        return await self._db.init()

    @property
    def name(self) -> str:
        return self._name

    @property
    def display_name(self) -> str:
        return self._display_name

    @property
    def supported_languages(self) -> tuple[str, ...]:
        return self._supported_languages

    @property
    def word_count(self) -> int:
        return self._db.word_count

    def is_available(self) -> bool:
        return self._db.is_available()

    async def query(self, word: str, language: str) -> QueryResult:
        if not self.is_available():
            return QueryResult(found=False, error=f"{self.name} database not available")

        try:
            record = await self._db.query(word)
        except SQLAlchemyError as e:
            raise ProviderQueryError(f"{self.name} query failed for '{word}': {e}") from e

        if record is None:
            return QueryResult(found=False)

        response = create_empty_response(record["word"])
        if record["definition"]:
            response.definitions = parse_definitions(record["definition"])
        response.source = self.name
        response.cached = False
        return QueryResult(found=True, response=response)

    def is_valid_result(self, response: DictionaryResponse | None) -> bool:
        if response is None or not response.definitions:
            return False
        return bool(response.definitions[0].definition.strip())

    async def close(self) -> None:
        await self._db.close()
