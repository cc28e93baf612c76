"""Tests for the discovery cache."""

from __future__ import annotations

import logging

import pytest

from conftest import FakeClock, FakeRegistryClient, make_device
from custom_components.homeseer_dimmers.discovery import (
    DiscoveryCache,
    is_supported_dimmer,
)


def _always(_device) -> bool:
    return True


@pytest.mark.asyncio
async def test_calls_within_validity_hit_registry_once(
    registry: FakeRegistryClient, clock: FakeClock
) -> None:
    """Two lookups inside the window trigger a single listing."""

    registry.devices = [make_device("a"), make_device("b")]
    cache = DiscoveryCache(registry, monotonic=clock)

    first = await cache.async_get_devices(_always, 60)
    clock.advance(59.9)
    second = await cache.async_get_devices(_always, 60)

    assert registry.list_calls == 1
    assert [device.id for device in first] == ["a", "b"]
    assert second == first


@pytest.mark.asyncio
async def test_expired_window_rediscovers(
    registry: FakeRegistryClient, clock: FakeClock
) -> None:
    """A lookup once the window elapsed lists the registry again."""

    registry.devices = [make_device("a")]
    cache = DiscoveryCache(registry, monotonic=clock)

    await cache.async_get_devices(_always, 60)
    registry.devices.append(make_device("b"))
    clock.advance(60)
    devices = await cache.async_get_devices(_always, 60)

    assert registry.list_calls == 2
    assert [device.id for device in devices] == ["a", "b"]


@pytest.mark.asyncio
async def test_zero_validity_always_rediscovers(
    registry: FakeRegistryClient, clock: FakeClock
) -> None:
    """A validity of zero forces a listing on every lookup."""

    cache = DiscoveryCache(registry, monotonic=clock)

    await cache.async_get_devices(_always, 0)
    await cache.async_get_devices(_always, 0)

    assert registry.list_calls == 2


@pytest.mark.asyncio
async def test_predicate_filters_devices_and_logs(
    registry: FakeRegistryClient, clock: FakeClock, caplog: pytest.LogCaptureFixture
) -> None:
    """Only matching devices are cached and each one is logged."""

    registry.devices = [
        make_device("dimmer"),
        make_device("switch", model="HS-WS200+"),
        make_device("other", manufacturer="Zooz"),
    ]
    cache = DiscoveryCache(registry, name="dimmers", monotonic=clock)

    with caplog.at_level(logging.INFO):
        devices = await cache.async_get_devices(is_supported_dimmer, 60)

    assert [device.id for device in devices] == ["dimmer"]
    assert cache.devices == tuple(devices)
    assert "Discovered dimmers: Kitchen Dimmer" in caplog.text


def test_is_supported_dimmer_ignores_case() -> None:
    """Manufacturer and model comparisons are case-insensitive."""

    assert is_supported_dimmer(make_device(model="hs-wx300"))
    assert is_supported_dimmer(make_device(manufacturer="homeseer technologies"))
    assert not is_supported_dimmer(make_device(model="HS-FC200+"))
