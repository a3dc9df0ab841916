"""Lookup orchestration: cache, per-language providers, English merge, fallback."""

import logging
import time
from dataclasses import dataclass

from wordlookup.services.dictionary.base import DataSource, DictionaryProvider, DictionaryResponse
from wordlookup.services.dictionary.cache import CacheService
from wordlookup.services.dictionary.lazy import LazyLocalDictManager
from wordlookup.services.dictionary.registry import ProviderRegistry

logger = logging.getLogger(__name__)

PRIMARY_PROVIDER = DataSource.ECDICT.value
SUPPLEMENT_PROVIDER = DataSource.OXFORD_EN_MAC.value
FALLBACK_PROVIDER = DataSource.FALLBACK.value


@dataclass
class ProviderHit:
    provider: DictionaryProvider
    response: DictionaryResponse


class LookupService:
    """
    Resolve (word, language) to a single DictionaryResponse.

    Order of resolution:
    1. Cache. A hit is returned as-is with source="cache".
    2. If local dictionaries are disabled, go straight to the fallback.
    3. English: primary and supplementary dictionaries are both queried.
       Supplementary definitions replace the primary ones when both hit.
       Other languages: the lazily loaded dictionary for that language.
    4. Remote fallback. Only fallback results are written to the cache.
    """

    def __init__(
        self,
        registry: ProviderRegistry,
        lazy_manager: LazyLocalDictManager,
        cache: CacheService,
        disable_local_dicts: bool = False,
    ) -> None:
        self.registry = registry
        self.lazy_manager = lazy_manager
        self.cache = cache
        self.disable_local_dicts = disable_local_dicts

    async def _query_provider(self, name: str, word: str, language: str) -> ProviderHit | None:
        """
        Query one provider by name.

        Unregistered, unavailable, or non-supporting providers are skipped.
        Errors, misses and invalid results all come back as None.
        """
        provider = self.registry.get(name)
        if provider is None:
            logger.debug(f"Skip provider={name} reason=not_registered")
            return None

        if not provider.is_available():
            logger.info(f"Skip provider={name} reason=unavailable")
            return None

        if not provider.supports(language):
            logger.debug(
                f"Skip provider={name} reason=unsupported_language "
                f"supported=[{','.join(provider.supported_languages)}]"
            )
            return None

        logger.debug(f"Try provider={name} word='{word}' lang={language}")

        try:
            result = await provider.query(word, language)
        except Exception as e:
            logger.error(f"Error provider={name} word='{word}' lang={language}: {e}")
            return None

        if not result.found or result.response is None:
            if result.error:
                logger.info(f"Miss provider={name} error='{result.error}'")
            else:
                logger.debug(f"Miss provider={name}")
            return None

        response = result.response
        if not provider.is_valid_result(response):
            logger.info(
                f"Invalid provider={name} definitions={len(response.definitions)} "
                f"translations={len(response.translations)}"
            )
            return None

        logger.debug(
            f"Hit provider={name} definitions={len(response.definitions)} "
            f"translations={len(response.translations)}"
        )
        return ProviderHit(provider=provider, response=response)

    async def _query_fallback(self, word: str, language: str) -> DictionaryResponse | None:
        hit = await self._query_provider(FALLBACK_PROVIDER, word, language)
        if hit is None:
            logger.info(f"Fallback miss word='{word}' lang={language}")
            return None

        await self.cache.set_cached(word, language, hit.response, hit.response.source)
        return hit.response

    async def _lookup_english(self, word: str) -> DictionaryResponse | None:
        primary = await self._query_provider(PRIMARY_PROVIDER, word, "en")
        supplement = await self._query_provider(SUPPLEMENT_PROVIDER, word, "en")

        if primary is not None:
            response = primary.response
            if supplement is not None and supplement.response.definitions:
                response.definitions = supplement.response.definitions
                response.source = DataSource.ECDICT_OXFORD.value
                logger.info(
                    f"Merged definitions provider={SUPPLEMENT_PROVIDER} into {PRIMARY_PROVIDER}"
                )
            return response

        if supplement is not None:
            return supplement.response

        return None

    async def _lookup_local(self, word: str, language: str) -> DictionaryResponse | None:
        name = await self.lazy_manager.ensure_provider_for_language(language)
        if name is None:
            return None

        hit = await self._query_provider(name, word, language)
        if hit is None:
            return None

        self.lazy_manager.touch(name)
        return hit.response

    async def lookup(self, word: str, language: str) -> DictionaryResponse | None:
        """
        Look up a word.

        Returns:
            The resolved response, or None if no source has the word
        """
        started = time.perf_counter()

        cached = await self.cache.get_cached(word, language)
        if cached is not None:
            response = cached.data
            response.cached = True
            response.source = DataSource.CACHE.value
            self._log_response(word, response, started)
            return response

        if self.disable_local_dicts:
            logger.info(f"Local dictionaries disabled, using provider={FALLBACK_PROVIDER}")
            response = await self._query_fallback(word, language)
            self._log_response(word, response, started)
            return response

        if language == "en":
            response = await self._lookup_english(word)
        else:
            response = await self._lookup_local(word, language)

        if response is None:
            logger.info(
                f"Local providers missed word='{word}' lang={language}, "
                f"using provider={FALLBACK_PROVIDER}"
            )
            response = await self._query_fallback(word, language)

        self._log_response(word, response, started)
        return response

    def _log_response(
        self, word: str, response: DictionaryResponse | None, started: float
    ) -> None:
        elapsed_ms = (time.perf_counter() - started) * 1000
        source = response.source if response is not None else "none"
        logger.info(f"Lookup word='{word}' source={source} elapsed={elapsed_ms:.0f}ms")
