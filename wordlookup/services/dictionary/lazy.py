"""Lazy loading and idle release of optional local dictionaries.

Non-English local dictionaries are opened on the first request for their
language and released again after a period without requests, so deployments
only pay memory for the languages that actually receive traffic.
"""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass, field
from pathlib import Path

from wordlookup.services.dictionary.base import DictionaryProvider
from wordlookup.services.dictionary.registry import ProviderRegistry

logger = logging.getLogger(__name__)

DEFAULT_IDLE_RELEASE_MS = 10 * 60 * 1000


def _now_ms() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True)
class LazyDictDescriptor:
    """Everything needed to construct a deferred provider."""

    name: str
    display_name: str
    supported_languages: tuple[str, ...]
    db_path: Path
    priority: int = 90


@dataclass
class LazyDictState:
    descriptor: LazyDictDescriptor
    loaded: bool = False
    last_used_at: int = 0
    release_task: asyncio.Task[None] | None = field(default=None, repr=False)


ProviderFactory = Callable[[LazyDictDescriptor], Awaitable[DictionaryProvider]]


async def _open_sqlite_dict(descriptor: LazyDictDescriptor) -> DictionaryProvider:
    from wordlookup.services.dictionary.sqlite_backend import SqliteDictProvider

    return await SqliteDictProvider.create(
        name=descriptor.name,
        display_name=descriptor.display_name,
        supported_languages=descriptor.supported_languages,
        db_path=descriptor.db_path,
    )


class LazyLocalDictManager:
    """
    Deferred construction and idle eviction of local dictionary providers.

    Lifecycle per provider: unloaded -> loading -> loaded -> unloaded, repeated
    indefinitely. Loaded providers live in the shared registry like any other.
    """

    def __init__(
        self,
        registry: ProviderRegistry,
        provider_factory: ProviderFactory | None = None,
    ) -> None:
        self._registry = registry
        self._provider_factory = provider_factory or _open_sqlite_dict
        self._states: dict[str, LazyDictState] = {}
        self._language_map: dict[str, str] = {}
        self._load_tasks: dict[str, asyncio.Task[bool]] = {}
        self.idle_release_ms = DEFAULT_IDLE_RELEASE_MS

    async def configure(
        self,
        descriptors: Iterable[LazyDictDescriptor],
        idle_release_ms: int,
    ) -> None:
        """Replace all managed state. Previously loaded providers are released."""
        await self.close()
        self.idle_release_ms = idle_release_ms if idle_release_ms > 0 else DEFAULT_IDLE_RELEASE_MS

        for descriptor in descriptors:
            self._states[descriptor.name] = LazyDictState(descriptor=descriptor)
            for language in descriptor.supported_languages:
                self._language_map[language] = descriptor.name

            logger.info(
                f"Deferred provider={descriptor.name} "
                f"languages={','.join(descriptor.supported_languages)} "
                f"idle_release_ms={self.idle_release_ms}"
            )

    @property
    def descriptors(self) -> list[LazyDictDescriptor]:
        return [state.descriptor for state in self._states.values()]

    def get_provider_name(self, language: str) -> str | None:
        return self._language_map.get(language)

    def is_loaded(self, name: str) -> bool:
        state = self._states.get(name)
        return state is not None and state.loaded

    def is_loading(self, name: str) -> bool:
        return name in self._load_tasks

    def loaded_names(self) -> list[str]:
        return [name for name, state in self._states.items() if state.loaded]

    async def ensure_provider_for_language(self, language: str) -> str | None:
        """
        Make sure the deferred provider for a language is loaded.

        Returns:
            The provider name, or None if no deferred provider serves the
            language or it failed to load
        """
        name = self.get_provider_name(language)
        if name is None:
            return None

        if not await self.ensure_provider(name):
            return None
        return name

    async def ensure_provider(self, name: str) -> bool:
        """
        Load a managed provider if needed.

        Concurrent callers for the same name share one in-flight load.
        """
        state = self._states.get(name)
        if state is None:
            return False

        provider = self._registry.get(name)
        if state.loaded and provider is not None and provider.is_available():
            self.touch(name)
            logger.debug(f"Reusing provider={name}")
            return True

        task = self._load_tasks.get(name)
        if task is None:
            task = asyncio.create_task(self._load_provider(state))
            self._load_tasks[name] = task
            task.add_done_callback(lambda done: self._clear_load_task(name, done))

        # Shielded so one waiter going away does not cancel the load for the rest
        try:
            return await asyncio.shield(task)
        except asyncio.CancelledError:
            if not task.cancelled():
                raise
            logger.info(f"Load cancelled provider={name}")
            return False

    def _clear_load_task(self, name: str, task: asyncio.Task[bool]) -> None:
        if self._load_tasks.get(name) is task:
            del self._load_tasks[name]

    def touch(self, name: str) -> None:
        """Record activity for a loaded provider, keeping it resident."""
        state = self._states.get(name)
        if state is None or not state.loaded:
            return

        state.last_used_at = _now_ms()
        self._schedule_release(state)

    async def close(self) -> None:
        """Cancel in-flight loads and release timers, then release every loaded provider."""
        load_tasks = list(self._load_tasks.values())
        for task in load_tasks:
            task.cancel()
        await asyncio.gather(*load_tasks, return_exceptions=True)

        for name, state in list(self._states.items()):
            if state.release_task is not None:
                state.release_task.cancel()
                state.release_task = None
            if state.loaded:
                state.loaded = False
                await self._registry.unregister(name)

        self._states.clear()
        self._language_map.clear()
        self._load_tasks.clear()

    async def _load_provider(self, state: LazyDictState) -> bool:
        descriptor = state.descriptor
        name = descriptor.name
        logger.info(f"Loading provider={name} db={descriptor.db_path}")

        try:
            provider = await self._provider_factory(descriptor)
        except asyncio.CancelledError:
            logger.info(f"Load cancelled provider={name}")
            state.loaded = False
            raise
        except Exception as e:
            logger.error(f"Load failed provider={name}: {e}")
            state.loaded = False
            return False

        try:
            if not provider.is_available():
                logger.warning(f"Load failed provider={name} reason=unavailable_after_init")
                await provider.close()
                state.loaded = False
                return False

            displaced = self._registry.register(provider, descriptor.priority)
            if displaced is not None:
                await displaced.close()
        except asyncio.CancelledError:
            # Cancelled after the provider was built; it must not outlive the load
            if self._registry.get(name) is provider:
                await self._registry.unregister(name)
            else:
                await provider.close()
            state.loaded = False
            raise

        state.loaded = True
        state.last_used_at = _now_ms()
        self._schedule_release(state)
        logger.info(f"Loaded provider={name}")
        return True

    def _schedule_release(self, state: LazyDictState) -> None:
        # A pending release task re-checks last_used_at when it wakes, so
        # touches only need to arm one when none is running.
        if state.release_task is not None and not state.release_task.done():
            return
        state.release_task = asyncio.create_task(self._release_when_idle(state.descriptor.name))

    async def _release_when_idle(self, name: str) -> None:
        delay_ms = self.idle_release_ms
        while True:
            await asyncio.sleep(delay_ms / 1000)

            state = self._states.get(name)
            if state is None or not state.loaded:
                return

            idle_for = _now_ms() - state.last_used_at
            if idle_for < self.idle_release_ms:
                delay_ms = self.idle_release_ms - idle_for
                continue

            state.loaded = False
            state.release_task = None
            await self._registry.unregister(name)
            logger.info(f"Unloaded provider={name} reason=idle_timeout idle_ms={idle_for}")
            return
