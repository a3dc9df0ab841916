"""Tests for the lazy local-dictionary manager."""

import asyncio
from pathlib import Path

import pytest

from wordlookup.services.dictionary.lazy import (
    DEFAULT_IDLE_RELEASE_MS,
    LazyDictDescriptor,
    LazyLocalDictManager,
)
from wordlookup.services.dictionary.registry import ProviderRegistry

KOEN = LazyDictDescriptor(
    name="koen_mac",
    display_name="Korean-English Dictionary",
    supported_languages=("ko",),
    db_path=Path("koen_mac.db"),
)


class CountingFactory:
    """Provider factory that records calls and can be held open or made to fail."""

    def __init__(self, provider_factory, fail_times: int = 0, available: bool = True) -> None:
        self.provider_factory = provider_factory
        self.fail_times = fail_times
        self.available = available
        self.calls = 0
        self.gate: asyncio.Event | None = None
        self.created = []

    async def __call__(self, descriptor: LazyDictDescriptor):
        self.calls += 1
        if self.gate is not None:
            await self.gate.wait()
        if self.calls <= self.fail_times:
            raise OSError("cannot open database")
        provider = self.provider_factory(
            descriptor.name,
            languages=descriptor.supported_languages,
            available=self.available,
        )
        self.created.append(provider)
        return provider


async def make_manager(registry, factory, idle_release_ms=DEFAULT_IDLE_RELEASE_MS):
    manager = LazyLocalDictManager(registry, provider_factory=factory)
    await manager.configure([KOEN], idle_release_ms)
    return manager


class TestConfigure:
    """Tests for configure and language routing."""

    @pytest.mark.asyncio
    async def test_maps_languages_to_providers(self, registry: ProviderRegistry, provider_factory):
        """Should route each supported language to its descriptor."""
        manager = await make_manager(registry, CountingFactory(provider_factory))

        assert manager.get_provider_name("ko") == "koen_mac"
        assert manager.get_provider_name("ja") is None
        assert manager.is_loaded("koen_mac") is False
        assert "koen_mac" not in registry

    @pytest.mark.asyncio
    async def test_non_positive_idle_uses_default(
        self, registry: ProviderRegistry, provider_factory
    ):
        """Should fall back to the default idle window."""
        manager = await make_manager(registry, CountingFactory(provider_factory), 0)
        assert manager.idle_release_ms == DEFAULT_IDLE_RELEASE_MS

        await manager.configure([KOEN], -5)
        assert manager.idle_release_ms == DEFAULT_IDLE_RELEASE_MS

    @pytest.mark.asyncio
    async def test_reconfigure_releases_loaded(self, registry: ProviderRegistry, provider_factory):
        """Should release previously loaded providers."""
        factory = CountingFactory(provider_factory)
        manager = await make_manager(registry, factory)
        await manager.ensure_provider_for_language("ko")

        await manager.configure([], 1000)

        assert "koen_mac" not in registry
        assert factory.created[0].close_calls == 1
        assert manager.get_provider_name("ko") is None


class TestEnsureProvider:
    """Tests for loading on demand."""

    @pytest.mark.asyncio
    async def test_unknown_language_returns_none(
        self, registry: ProviderRegistry, provider_factory
    ):
        """Should not load anything for unmanaged languages."""
        factory = CountingFactory(provider_factory)
        manager = await make_manager(registry, factory)

        assert await manager.ensure_provider_for_language("fr") is None
        assert await manager.ensure_provider("unknown") is False
        assert factory.calls == 0

    @pytest.mark.asyncio
    async def test_first_request_loads_and_registers(
        self, registry: ProviderRegistry, provider_factory
    ):
        """Should construct the provider and register it at its priority."""
        factory = CountingFactory(provider_factory)
        manager = await make_manager(registry, factory)

        assert await manager.ensure_provider_for_language("ko") == "koen_mac"

        assert factory.calls == 1
        assert manager.is_loaded("koen_mac")
        assert manager.loaded_names() == ["koen_mac"]
        assert registry.get("koen_mac") is factory.created[0]
        await manager.close()

    @pytest.mark.asyncio
    async def test_loaded_provider_is_reused(self, registry: ProviderRegistry, provider_factory):
        """Should not construct again while loaded."""
        factory = CountingFactory(provider_factory)
        manager = await make_manager(registry, factory)

        await manager.ensure_provider_for_language("ko")
        await manager.ensure_provider_for_language("ko")

        assert factory.calls == 1
        await manager.close()

    @pytest.mark.asyncio
    async def test_concurrent_requests_share_one_load(
        self, registry: ProviderRegistry, provider_factory
    ):
        """Should collapse concurrent first requests onto a single construction."""
        factory = CountingFactory(provider_factory)
        factory.gate = asyncio.Event()
        manager = await make_manager(registry, factory)

        pending = asyncio.gather(*(manager.ensure_provider_for_language("ko") for _ in range(5)))
        await asyncio.sleep(0)
        assert manager.is_loading("koen_mac")

        factory.gate.set()
        results = await pending

        assert results == ["koen_mac"] * 5
        assert factory.calls == 1
        assert not manager.is_loading("koen_mac")
        await manager.close()

    @pytest.mark.asyncio
    async def test_concurrent_requests_share_failure(
        self, registry: ProviderRegistry, provider_factory
    ):
        """Should report one failed load to every waiter."""
        factory = CountingFactory(provider_factory, fail_times=1)
        factory.gate = asyncio.Event()
        manager = await make_manager(registry, factory)

        pending = asyncio.gather(*(manager.ensure_provider_for_language("ko") for _ in range(3)))
        await asyncio.sleep(0)
        factory.gate.set()

        assert await pending == [None, None, None]
        assert factory.calls == 1

    @pytest.mark.asyncio
    async def test_failed_load_is_retried(self, registry: ProviderRegistry, provider_factory):
        """Should leave the provider unloaded after a failure so the next call retries."""
        factory = CountingFactory(provider_factory, fail_times=1)
        manager = await make_manager(registry, factory)

        assert await manager.ensure_provider_for_language("ko") is None
        assert not manager.is_loaded("koen_mac")
        assert "koen_mac" not in registry

        assert await manager.ensure_provider_for_language("ko") == "koen_mac"
        assert factory.calls == 2
        await manager.close()

    @pytest.mark.asyncio
    async def test_unavailable_after_init_is_closed(
        self, registry: ProviderRegistry, provider_factory
    ):
        """Should close a provider that came up unavailable and not register it."""
        factory = CountingFactory(provider_factory, available=False)
        manager = await make_manager(registry, factory)

        assert await manager.ensure_provider_for_language("ko") is None

        assert factory.created[0].close_calls == 1
        assert "koen_mac" not in registry
        assert not manager.is_loaded("koen_mac")

    @pytest.mark.asyncio
    async def test_reloads_when_provider_became_unavailable(
        self, registry: ProviderRegistry, provider_factory
    ):
        """Should rebuild a loaded provider that lost its resource."""
        factory = CountingFactory(provider_factory)
        manager = await make_manager(registry, factory)
        await manager.ensure_provider_for_language("ko")
        factory.created[0].available = False

        assert await manager.ensure_provider_for_language("ko") == "koen_mac"

        assert factory.calls == 2
        assert registry.get("koen_mac") is factory.created[1]
        assert factory.created[0].close_calls == 1
        await manager.close()


class TestIdleRelease:
    """Tests for idle eviction."""

    @pytest.mark.asyncio
    async def test_released_after_idle_window(self, registry: ProviderRegistry, provider_factory):
        """Should unregister and close an idle provider."""
        factory = CountingFactory(provider_factory)
        manager = await make_manager(registry, factory, idle_release_ms=50)
        await manager.ensure_provider_for_language("ko")

        await asyncio.sleep(0.2)

        assert not manager.is_loaded("koen_mac")
        assert "koen_mac" not in registry
        assert factory.created[0].close_calls == 1

    @pytest.mark.asyncio
    async def test_touch_keeps_provider_resident(
        self, registry: ProviderRegistry, provider_factory
    ):
        """Should not evict a provider used within the idle window."""
        manager = await make_manager(registry, CountingFactory(provider_factory), 200)
        await manager.ensure_provider_for_language("ko")

        await asyncio.sleep(0.12)
        manager.touch("koen_mac")
        await asyncio.sleep(0.12)

        assert manager.is_loaded("koen_mac")

        await asyncio.sleep(0.25)
        assert not manager.is_loaded("koen_mac")

    @pytest.mark.asyncio
    async def test_reload_after_release(self, registry: ProviderRegistry, provider_factory):
        """Should load again on the next request after eviction."""
        factory = CountingFactory(provider_factory)
        manager = await make_manager(registry, factory, idle_release_ms=50)
        await manager.ensure_provider_for_language("ko")
        await asyncio.sleep(0.2)

        assert await manager.ensure_provider_for_language("ko") == "koen_mac"

        assert factory.calls == 2
        assert manager.is_loaded("koen_mac")
        await manager.close()

    @pytest.mark.asyncio
    async def test_touch_ignores_unloaded(self, registry: ProviderRegistry, provider_factory):
        """Should be a no-op for providers that are not loaded."""
        manager = await make_manager(registry, CountingFactory(provider_factory))
        manager.touch("koen_mac")
        manager.touch("unknown")
        assert not manager.is_loaded("koen_mac")

    @pytest.mark.asyncio
    async def test_close_releases_everything(self, registry: ProviderRegistry, provider_factory):
        """Should cancel timers and unregister loaded providers."""
        factory = CountingFactory(provider_factory)
        manager = await make_manager(registry, factory)
        await manager.ensure_provider_for_language("ko")

        await manager.close()

        assert manager.loaded_names() == []
        assert "koen_mac" not in registry
        assert factory.created[0].close_calls == 1


class TestCloseDuringLoad:
    """Tests for close() and cancellation while a load is in flight."""

    @pytest.mark.asyncio
    async def test_waiters_see_failed_load(self, registry: ProviderRegistry, provider_factory):
        """Should report a load cancelled by close() as a miss instead of raising."""
        factory = CountingFactory(provider_factory)
        factory.gate = asyncio.Event()
        manager = await make_manager(registry, factory)

        waiters = [
            asyncio.create_task(manager.ensure_provider_for_language("ko")) for _ in range(2)
        ]
        await asyncio.sleep(0)
        assert manager.is_loading("koen_mac")

        await manager.close()

        assert await asyncio.gather(*waiters) == [None, None]
        assert factory.created == []
        assert "koen_mac" not in registry
        assert not manager.is_loading("koen_mac")

    @pytest.mark.asyncio
    async def test_built_provider_is_released(self, registry: ProviderRegistry, provider_factory):
        """Should unregister and close a provider whose load is cancelled after construction."""
        previous = provider_factory("koen_mac", languages=("ko",))
        closing = asyncio.Event()

        async def slow_close():
            closing.set()
            await asyncio.Event().wait()

        previous.close = slow_close
        registry.register(previous, 90)
        factory = CountingFactory(provider_factory)
        manager = await make_manager(registry, factory)

        waiter = asyncio.create_task(manager.ensure_provider_for_language("ko"))
        await closing.wait()

        await manager.close()

        assert await waiter is None
        assert factory.created[0].close_calls == 1
        assert "koen_mac" not in registry
        assert not manager.is_loaded("koen_mac")

    @pytest.mark.asyncio
    async def test_cancelled_waiter_keeps_shared_load(
        self, registry: ProviderRegistry, provider_factory
    ):
        """Should keep loading for the remaining waiters when one of them is cancelled."""
        factory = CountingFactory(provider_factory)
        factory.gate = asyncio.Event()
        manager = await make_manager(registry, factory)

        impatient = asyncio.create_task(manager.ensure_provider_for_language("ko"))
        patient = asyncio.create_task(manager.ensure_provider_for_language("ko"))
        await asyncio.sleep(0)

        impatient.cancel()
        with pytest.raises(asyncio.CancelledError):
            await impatient
        factory.gate.set()

        assert await patient == "koen_mac"
        assert factory.calls == 1
        await manager.close()
