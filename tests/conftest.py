"""Pytest configuration and fixtures."""

from collections.abc import AsyncGenerator, Callable
from pathlib import Path

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy import create_engine, text

from wordlookup.config import Settings
from wordlookup.context import AppContext, get_context
from wordlookup.database import cache_database_url, create_cache_engine
from wordlookup.main import app
from wordlookup.rate_limit import create_limiter
from wordlookup.services.dictionary.base import (
    Definition,
    DictionaryProvider,
    DictionaryResponse,
    QueryResult,
    Translation,
    create_empty_response,
)
from wordlookup.services.dictionary.cache import CacheService
from wordlookup.services.dictionary.lazy import LazyLocalDictManager
from wordlookup.services.dictionary.registry import ProviderRegistry
from wordlookup.services.dictionary.service import LookupService


class FakeProvider(DictionaryProvider):
    """In-memory provider returning canned responses."""

    def __init__(
        self,
        name: str,
        languages: tuple[str, ...] = ("en",),
        entries: dict[str, DictionaryResponse] | None = None,
        available: bool = True,
        error: Exception | None = None,
        display_name: str | None = None,
    ) -> None:
        self._name = name
        self._languages = languages
        self._display_name = display_name or name.upper()
        self.entries = entries or {}
        self.available = available
        self.error = error
        self.queries: list[tuple[str, str]] = []
        self.close_calls = 0

    @property
    def name(self) -> str:
        return self._name

    @property
    def display_name(self) -> str:
        return self._display_name

    @property
    def supported_languages(self) -> tuple[str, ...]:
        return self._languages

    def is_available(self) -> bool:
        return self.available

    async def query(self, word: str, language: str) -> QueryResult:
        self.queries.append((word, language))
        if self.error is not None:
            raise self.error
        response = self.entries.get(word.lower())
        if response is None:
            return QueryResult(found=False)
        return QueryResult(found=True, response=response)

    def is_valid_result(self, response: DictionaryResponse | None) -> bool:
        return response is not None and bool(response.definitions or response.translations)

    async def close(self) -> None:
        self.close_calls += 1
        self.available = False


def make_response(
    word: str,
    source: str,
    definitions: list[str] | None = None,
    translations: list[str] | None = None,
) -> DictionaryResponse:
    """Build a response with the given definition and translation texts."""
    response = create_empty_response(word)
    response.source = source
    response.definitions = [Definition(definition=d) for d in definitions or []]
    if translations:
        response.translations = [Translation(pos="n.", meanings=list(translations))]
    return response


@pytest.fixture
def response_factory() -> Callable[..., DictionaryResponse]:
    """Build responses inline."""
    return make_response


@pytest.fixture
def provider_factory() -> Callable[..., FakeProvider]:
    """Create FakeProviders inline."""
    return FakeProvider


@pytest.fixture
def registry() -> ProviderRegistry:
    return ProviderRegistry()


@pytest.fixture
def lazy_manager(registry: ProviderRegistry) -> LazyLocalDictManager:
    return LazyLocalDictManager(registry)


@pytest.fixture
async def cache(tmp_path: Path) -> AsyncGenerator[CacheService, None]:
    """A ready cache backed by a temporary SQLite file."""
    engine = create_cache_engine(cache_database_url(tmp_path / "cache.db"))
    service = CacheService(engine, default_ttl_days=30)
    await service.startup()
    yield service
    await service.close()


@pytest.fixture
def lookup_service(
    registry: ProviderRegistry,
    lazy_manager: LazyLocalDictManager,
    cache: CacheService,
) -> LookupService:
    return LookupService(registry, lazy_manager, cache)


@pytest.fixture
def test_settings(tmp_path: Path) -> Settings:
    return Settings(
        data_dir=tmp_path,
        ecdict_db_path=tmp_path / "ecdict.db",
        cache_enabled=True,
    )


@pytest.fixture
async def app_context(
    test_settings: Settings,
    registry: ProviderRegistry,
    lazy_manager: LazyLocalDictManager,
    cache: CacheService,
    lookup_service: LookupService,
) -> AsyncGenerator[AppContext, None]:
    context = AppContext(
        settings=test_settings,
        registry=registry,
        lazy_manager=lazy_manager,
        cache=cache,
        lookup=lookup_service,
    )
    yield context
    await lazy_manager.close()
    await registry.close_all()


@pytest.fixture
def test_app(app_context: AppContext, test_settings: Settings) -> FastAPI:
    """The application with its context dependency replaced and fresh rate-limit counters."""
    original_limiter = app.state.limiter
    app.state.limiter = create_limiter(test_settings)
    app.dependency_overrides[get_context] = lambda: app_context
    yield app
    app.dependency_overrides.clear()
    app.state.limiter = original_limiter


@pytest.fixture
async def async_client(test_app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Create an asynchronous test client."""
    async with AsyncClient(
        transport=ASGITransport(app=test_app),
        base_url="http://test",
    ) as client:
        yield client


ECDICT_SCHEMA = """
CREATE TABLE stardict (
    id INTEGER PRIMARY KEY AUTOINCREMENT NOT NULL UNIQUE,
    word VARCHAR(64) COLLATE NOCASE NOT NULL UNIQUE,
    sw VARCHAR(64) COLLATE NOCASE NOT NULL,
    phonetic VARCHAR(64),
    definition TEXT,
    translation TEXT,
    pos VARCHAR(16),
    collins INTEGER DEFAULT(0),
    oxford INTEGER DEFAULT(0),
    tag VARCHAR(64),
    bnc INTEGER DEFAULT(NULL),
    frq INTEGER DEFAULT(NULL),
    exchange TEXT,
    detail TEXT,
    audio TEXT
)
"""


@pytest.fixture
def ecdict_db(tmp_path: Path) -> Path:
    """A small stardict database."""
    path = tmp_path / "ecdict.db"
    engine = create_engine(f"sqlite:///{path}")
    with engine.begin() as conn:
        conn.execute(text(ECDICT_SCHEMA))
        conn.execute(
            text(
                "INSERT INTO stardict (word, sw, phonetic, definition, translation, pos, "
                "collins, oxford, tag, bnc, frq, exchange) VALUES "
                "(:word, :sw, :phonetic, :definition, :translation, :pos, "
                ":collins, :oxford, :tag, :bnc, :frq, :exchange)"
            ),
            [
                {
                    "word": "package",
                    "sw": "package",
                    "phonetic": "ˈpækɪdʒ",
                    "definition": "n. a collection of things wrapped together\nv. put into a box",
                    "translation": "n. 包裹, 套装软件\nvt. 包装, 打包\n[计] 程序包",
                    "pos": "n:46/v:54",
                    "collins": 3,
                    "oxford": 1,
                    "tag": "cet4 cet6 ky",
                    "bnc": 2211,
                    "frq": 1894,
                    "exchange": "d:packaged/p:packaged/3:packages/i:packaging/s:packages",
                },
                {
                    "word": "pack",
                    "sw": "pack",
                    "phonetic": "pæk",
                    "definition": None,
                    "translation": "v. 包装",
                    "pos": None,
                    "collins": None,
                    "oxford": None,
                    "tag": None,
                    "bnc": None,
                    "frq": None,
                    "exchange": None,
                },
                {
                    "word": "emptyword",
                    "sw": "emptyword",
                    "phonetic": None,
                    "definition": None,
                    "translation": None,
                    "pos": None,
                    "collins": None,
                    "oxford": None,
                    "tag": None,
                    "bnc": None,
                    "frq": None,
                    "exchange": None,
                },
            ],
        )
    engine.dispose()
    return path


ENJOY_SCHEMA = (
    "CREATE TABLE definitions (id INTEGER PRIMARY KEY, key TEXT, definition TEXT)",
    "CREATE TABLE words (id INTEGER PRIMARY KEY, word TEXT, definition_id INTEGER)",
)


@pytest.fixture
def enjoy_db_factory(tmp_path: Path) -> Callable[[str, dict[str, str]], Path]:
    """Create an Enjoy-schema dictionary file from {word: definition}."""

    def factory(filename: str, entries: dict[str, str]) -> Path:
        path = tmp_path / filename
        engine = create_engine(f"sqlite:///{path}")
        with engine.begin() as conn:
            for statement in ENJOY_SCHEMA:
                conn.execute(text(statement))
            for index, (word, definition) in enumerate(entries.items(), start=1):
                conn.execute(
                    text("INSERT INTO definitions (id, key, definition) VALUES (:id, :key, :d)"),
                    {"id": index, "key": word, "d": definition},
                )
                conn.execute(
                    text("INSERT INTO words (id, word, definition_id) VALUES (:id, :w, :id)"),
                    {"id": index, "w": word},
                )
        engine.dispose()
        return path

    return factory
