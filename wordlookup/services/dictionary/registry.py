"""Priority-ordered registry of dictionary providers."""

import logging
from dataclasses import dataclass

from wordlookup.services.dictionary.base import DictionaryProvider

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RegisteredProvider:
    provider: DictionaryProvider
    priority: int


class ProviderRegistry:
    """
    Providers keyed by name and ordered by descending priority.

    Equal priorities keep insertion order. The registry knows nothing about
    language routing; that lives in the lookup service.

    All mutations run without awaiting between reading and writing the maps,
    so concurrent lookups never observe a half-updated registry.
    """

    def __init__(self) -> None:
        self._providers: dict[str, DictionaryProvider] = {}
        self._priority_order: list[RegisteredProvider] = []

    def register(
        self, provider: DictionaryProvider, priority: int = 0
    ) -> DictionaryProvider | None:
        """
        Register a provider, replacing any previous one with the same name.

        Returns:
            The displaced provider (not closed), or None
        """
        previous = self._providers.get(provider.name)
        order = [p for p in self._priority_order if p.provider.name != provider.name]
        order.append(RegisteredProvider(provider, priority))
        # sorted() is stable, so equal priorities stay in registration order
        self._priority_order = sorted(order, key=lambda p: -p.priority)
        self._providers[provider.name] = provider

        logger.info(f"Registered provider={provider.name} priority={priority}")
        if previous is not None and previous is not provider:
            logger.warning(f"Provider {provider.name} replaced an existing registration")
            return previous
        return None

    async def unregister(self, name: str) -> bool:
        """Remove a provider and close it. Returns False if it was not registered."""
        provider = self._providers.pop(name, None)
        if provider is None:
            return False

        self._priority_order = [p for p in self._priority_order if p.provider.name != name]
        await provider.close()
        logger.info(f"Unregistered provider={name}")
        return True

    def get(self, name: str) -> DictionaryProvider | None:
        return self._providers.get(name)

    def get_all(self) -> list[DictionaryProvider]:
        """All providers in priority order."""
        return [p.provider for p in self._priority_order]

    def get_available(self) -> list[DictionaryProvider]:
        """Available providers in priority order."""
        return [p.provider for p in self._priority_order if p.provider.is_available()]

    def __contains__(self, name: object) -> bool:
        return name in self._providers

    def __len__(self) -> int:
        return len(self._providers)

    async def close_all(self) -> None:
        """Close every provider and clear the registry."""
        providers = list(self._providers.values())
        self._providers.clear()
        self._priority_order = []

        for provider in providers:
            try:
                await provider.close()
            except Exception as e:
                logger.warning(f"Error closing provider {provider.name}: {e}")
