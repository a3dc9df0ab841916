"""Dictionary providers, caching and lookup orchestration."""

from wordlookup.services.dictionary.base import (
    DataSource,
    DictionaryProvider,
    DictionaryResponse,
    QueryResult,
    create_empty_response,
    response_from_dict,
    response_to_dict,
)
from wordlookup.services.dictionary.cache import CacheService, make_cache_key
from wordlookup.services.dictionary.ecdict_backend import EcdictProvider
from wordlookup.services.dictionary.fallback_backend import FallbackProvider
from wordlookup.services.dictionary.lazy import LazyDictDescriptor, LazyLocalDictManager
from wordlookup.services.dictionary.registry import ProviderRegistry
from wordlookup.services.dictionary.service import LookupService
from wordlookup.services.dictionary.sqlite_backend import SqliteDictProvider

__all__ = [
    "CacheService",
    "DataSource",
    "DictionaryProvider",
    "DictionaryResponse",
    "EcdictProvider",
    "FallbackProvider",
    "LazyDictDescriptor",
    "LazyLocalDictManager",
    "LookupService",
    "ProviderRegistry",
    "QueryResult",
    "SqliteDictProvider",
    "create_empty_response",
    "make_cache_key",
    "response_from_dict",
    "response_to_dict",
]
