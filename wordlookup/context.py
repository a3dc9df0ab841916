"""Process-wide application context: providers, cache and lookup service."""

import logging
from dataclasses import dataclass

from fastapi import Request

from wordlookup.config import Settings
from wordlookup.database import cache_database_url, create_cache_engine
from wordlookup.services.dictionary.base import DataSource
from wordlookup.services.dictionary.cache import CacheService
from wordlookup.services.dictionary.ecdict_backend import EcdictProvider
from wordlookup.services.dictionary.fallback_backend import FallbackProvider
from wordlookup.services.dictionary.lazy import LazyLocalDictManager
from wordlookup.services.dictionary.registry import ProviderRegistry
from wordlookup.services.dictionary.service import LookupService
from wordlookup.services.dictionary.sqlite_backend import SqliteDictProvider

logger = logging.getLogger(__name__)

ECDICT_PRIORITY = 100
OXFORD_PRIORITY = 95
FALLBACK_PRIORITY = 50


@dataclass
class AppContext:
    """Shared state for one process, built at startup and closed at shutdown."""

    settings: Settings
    registry: ProviderRegistry
    lazy_manager: LazyLocalDictManager
    cache: CacheService
    lookup: LookupService

    @property
    def ecdict_word_count(self) -> int:
        provider = self.registry.get(DataSource.ECDICT.value)
        if isinstance(provider, EcdictProvider) and provider.is_available():
            return provider.word_count
        return 0

    async def close(self) -> None:
        await self.lazy_manager.close()
        await self.registry.close_all()
        await self.cache.close()
        logger.info("Application context closed")


async def build_context(config: Settings) -> AppContext:
    """
    Open every configured provider and the cache.

    Providers that fail to open stay registered as unavailable, so they are
    skipped by lookups but still reported by /health.
    """
    config.data_dir.mkdir(parents=True, exist_ok=True)
    registry = ProviderRegistry()

    logger.info(f"ECDICT path: {config.ecdict_db_path} exists={config.ecdict_db_path.exists()}")
    ecdict = await EcdictProvider.create(config.ecdict_db_path)
    registry.register(ecdict, ECDICT_PRIORITY)

    if config.oxford_en_mac_enabled:
        logger.info(
            f"{DataSource.OXFORD_EN_MAC.value} path: {config.oxford_en_mac_db_path} "
            f"exists={config.oxford_en_mac_db_path.exists()}"
        )
        oxford = await SqliteDictProvider.create(
            name=DataSource.OXFORD_EN_MAC.value,
            display_name="Oxford EN-EN Dictionary",
            supported_languages=("en",),
            db_path=config.oxford_en_mac_db_path,
        )
        registry.register(oxford, OXFORD_PRIORITY)
    else:
        logger.info(f"Skip {DataSource.OXFORD_EN_MAC.value}: disabled")

    fallback = FallbackProvider(
        api_url=config.fallback_api_url,
        legacy_api_url=config.fallback_legacy_api_url,
        legacy_enabled=not config.disable_legacy_fallback,
        timeout=config.fallback_timeout_seconds,
    )
    registry.register(fallback, FALLBACK_PRIORITY)

    lazy_manager = LazyLocalDictManager(registry)
    await lazy_manager.configure(config.lazy_dict_descriptors, config.local_dict_idle_release_ms)

    engine = None
    if config.cache_enabled:
        engine = create_cache_engine(cache_database_url(config.cache_db_path))
    cache = CacheService(
        engine,
        default_ttl_days=config.cache_default_ttl_days,
        enabled=config.cache_enabled,
    )
    await cache.startup()

    lookup = LookupService(
        registry,
        lazy_manager,
        cache,
        disable_local_dicts=config.disable_local_dicts,
    )

    for provider in registry.get_all():
        status = "available" if provider.is_available() else "unavailable"
        logger.info(f"Provider {provider.display_name} ({provider.name}) {status}")

    return AppContext(
        settings=config,
        registry=registry,
        lazy_manager=lazy_manager,
        cache=cache,
        lookup=lookup,
    )


def get_context(request: Request) -> AppContext:
    """FastAPI dependency returning the context built in the lifespan."""
    context: AppContext = request.app.state.context
    return context
