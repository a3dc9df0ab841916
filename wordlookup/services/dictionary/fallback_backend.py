"""Remote fallback provider backed by the free dictionaryapi.dev API."""

import logging
from typing import Any
from urllib.parse import quote

import httpx

from wordlookup.services.dictionary.base import (
    DataSource,
    Definition,
    DictionaryProvider,
    DictionaryResponse,
    QueryResult,
    create_empty_response,
)

logger = logging.getLogger(__name__)

SUPPORTED_LANGUAGES = ("en", "es", "fr", "de", "it", "ja", "ko", "ru", "pt-BR", "ar", "tr")

_UK_AUDIO_MARKERS = ("_gb_", "-uk")
_US_AUDIO_MARKERS = ("_us_", "-us")


def language_variants(language: str) -> list[str]:
    """Codes to try in order, e.g. "pt-BR" -> ["pt-BR", "pt-br", "pt"]."""
    candidates = [language, language.lower(), language.split("-")[0].lower()]
    variants: list[str] = []
    for code in candidates:
        if code and code not in variants:
            variants.append(code)
    return variants


def _apply_phonetics(response: DictionaryResponse, entry: dict[str, Any]) -> None:
    for phonetic in entry.get("phonetics") or []:
        audio = phonetic.get("audio") or ""
        text = phonetic.get("text") or ""
        if audio:
            if any(marker in audio for marker in _UK_AUDIO_MARKERS):
                response.phonetics.uk = text
                response.audio.uk = audio
            elif any(marker in audio for marker in _US_AUDIO_MARKERS):
                response.phonetics.us = text
                response.audio.us = audio

        if text:
            response.phonetics.uk = response.phonetics.uk or text
            response.phonetics.us = response.phonetics.us or text

    main = entry.get("phonetic") or ""
    if main:
        response.phonetics.uk = response.phonetics.uk or main
        response.phonetics.us = response.phonetics.us or main


def _make_definition(part_of_speech: str, raw: dict[str, Any]) -> Definition:
    return Definition(
        part_of_speech=part_of_speech,
        definition=raw.get("definition") or "",
        example=raw.get("example") or "",
        synonyms=list(raw.get("synonyms") or []),
        antonyms=list(raw.get("antonyms") or []),
    )


def transform_entries(entries: list[dict[str, Any]], word: str) -> DictionaryResponse:
    """
    Convert a v2 payload to the unified response.

    Only the first entry is used. v2 carries no translations, word forms
    or frequency data.
    """
    if not entries:
        return create_empty_response(word)

    entry = entries[0]
    response = create_empty_response(entry.get("word") or word)
    _apply_phonetics(response, entry)

    for meaning in entry.get("meanings") or []:
        part_of_speech = meaning.get("partOfSpeech") or ""
        for raw in meaning.get("definitions") or []:
            response.definitions.append(_make_definition(part_of_speech, raw))

    response.source = DataSource.FALLBACK.value
    response.cached = False
    return response


def transform_legacy_entries(entries: list[dict[str, Any]], word: str) -> DictionaryResponse:
    """Convert a v1 payload, where `meaning` maps part of speech to definitions."""
    if not entries:
        return create_empty_response(word)

    entry = entries[0]
    response = create_empty_response(entry.get("word") or word)
    _apply_phonetics(response, entry)

    for part_of_speech, definitions in (entry.get("meaning") or {}).items():
        for raw in definitions or []:
            response.definitions.append(_make_definition(part_of_speech, raw))

    response.source = DataSource.FALLBACK.value
    response.cached = False
    return response


class FallbackProvider(DictionaryProvider):
    """
    Last-resort remote provider.

    Its source tag stays "google" for client compatibility with the service
    this one replaced, although the data comes from dictionaryapi.dev.
    """

    def __init__(
        self,
        api_url: str = "https://api.dictionaryapi.dev/api/v2/entries",
        legacy_api_url: str = "https://api.dictionaryapi.dev/api/v1/entries",
        legacy_enabled: bool = True,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_url = api_url.rstrip("/")
        self.legacy_api_url = legacy_api_url.rstrip("/")
        self.legacy_enabled = legacy_enabled
        self.timeout = timeout
        self._transport = transport
        self._available = True

    @property
    def name(self) -> str:
        return DataSource.FALLBACK.value

    @property
    def display_name(self) -> str:
        return "Free Dictionary API"

    @property
    def supported_languages(self) -> tuple[str, ...]:
        return SUPPORTED_LANGUAGES

    def is_available(self) -> bool:
        return self._available

    async def _fetch(
        self, base_url: str, language: str, word: str
    ) -> list[dict[str, Any]] | None:
        """GET one entries URL. Returns None on 404; raises httpx errors otherwise."""
        url = f"{base_url}/{quote(language, safe='')}/{quote(word, safe='')}"
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            response = await client.get(url)
            if response.status_code == 404:
                return None
            response.raise_for_status()
            payload = response.json()

        if not isinstance(payload, list):
            return None
        return payload

    async def _query_endpoint(
        self, base_url: str, word: str, language: str
    ) -> tuple[list[dict[str, Any]] | None, str | None]:
        last_error = None
        for variant in language_variants(language):
            try:
                entries = await self._fetch(base_url, variant, word)
            except httpx.HTTPStatusError as e:
                last_error = f"HTTP {e.response.status_code} from {base_url}"
                logger.warning(
                    f"Fallback word='{word}' lang={variant} status={e.response.status_code}"
                )
                continue
            except httpx.HTTPError as e:
                last_error = f"Request failed: {e}"
                logger.warning(f"Fallback word='{word}' lang={variant} error={e}")
                continue
            except ValueError as e:
                last_error = f"Invalid JSON from {base_url}: {e}"
                logger.warning(f"Fallback word='{word}' lang={variant} invalid_json")
                continue

            if entries:
                return entries, None
        return None, last_error

    async def query(self, word: str, language: str) -> QueryResult:
        logger.info(f"Querying dictionaryapi.dev word='{word}' lang={language}")

        entries, error = await self._query_endpoint(self.api_url, word, language)
        if entries:
            response = transform_entries(entries, word)
            logger.info(
                f"Fallback word='{word}' found=true definitions={len(response.definitions)}"
            )
            return QueryResult(found=True, response=response)

        if self.legacy_enabled:
            logger.info(f"Fallback word='{word}' trying legacy endpoint")
            legacy_entries, legacy_error = await self._query_endpoint(
                self.legacy_api_url, word, language
            )
            if legacy_entries:
                response = transform_legacy_entries(legacy_entries, word)
                return QueryResult(found=True, response=response)
            error = error or legacy_error

        logger.info(f"Fallback word='{word}' found=false")
        return QueryResult(found=False, error=error)

    def is_valid_result(self, response: DictionaryResponse | None) -> bool:
        return response is not None and bool(response.definitions)

    async def close(self) -> None:
        # Clients are per request; nothing to release
        self._available = False
