"""Tests for the dimmer LED reconciliation engine."""

from __future__ import annotations

import logging

import pytest

from conftest import FakeClock, FakeRegistryClient, make_device
from custom_components.homeseer_dimmers.api import (
    RegistryCommandError,
    RegistryConnectionError,
)
from custom_components.homeseer_dimmers.discovery import DiscoveryCache
from custom_components.homeseer_dimmers.domain import BlinkState, Color, LedInputTable
from custom_components.homeseer_dimmers.reconcile import (
    ReconcileEngine,
    ReconcileOutcome,
)


def _engine(registry: FakeRegistryClient, clock: FakeClock) -> ReconcileEngine:
    return ReconcileEngine(
        registry,
        DiscoveryCache(registry, monotonic=clock),
        blink_frequency=5,
        discovery_validity=3600,
    )


DESIRED = (
    LedInputTable()
    .with_color(0, Color.RED)
    .with_color(6, Color.WHITE)
    .with_blink(2, BlinkState.ON)
)


@pytest.mark.asyncio
async def test_reconcile_writes_differences_in_order(
    registry: FakeRegistryClient, clock: FakeClock
) -> None:
    """Colors, blinks, custom mode and blink frequency are written in order."""

    registry.add_dimmer(make_device("a", 4), custom_mode=0, blink_frequency=10)

    report = await _engine(registry, clock).async_reconcile(DESIRED)

    assert registry.writes == [
        ("a", 21, None, "1"),
        ("a", 27, None, "7"),
        ("a", 31, 4, "1"),
        ("a", 13, None, "1"),
        ("a", 30, None, "5"),
    ]
    assert report.outcome is ReconcileOutcome.CONVERGED
    assert report.attempts == 1
    assert report.writes == 5
    assert report.failed_devices == ()


@pytest.mark.asyncio
async def test_second_pass_is_idempotent(
    registry: FakeRegistryClient, clock: FakeClock
) -> None:
    """Reconciling an unchanged device twice issues no writes the second time."""

    registry.add_dimmer(make_device("a", 4))
    engine = _engine(registry, clock)

    await engine.async_reconcile(DESIRED)
    registry.writes.clear()
    report = await engine.async_reconcile(DESIRED)

    assert registry.writes == []
    assert report.writes == 0
    assert registry.list_calls == 1


@pytest.mark.asyncio
async def test_single_blink_difference_issues_one_write(
    registry: FakeRegistryClient, clock: FakeClock
) -> None:
    """One differing blink entry produces exactly one keyed write."""

    registry.add_dimmer(make_device("a", 4))

    await _engine(registry, clock).async_reconcile(
        LedInputTable().with_blink(5, BlinkState.ON)
    )

    assert registry.writes == [("a", 31, 32, "1")]


@pytest.mark.asyncio
async def test_failed_writes_retry_once(
    registry: FakeRegistryClient, clock: FakeClock, caplog: pytest.LogCaptureFixture
) -> None:
    """When every write fails the device loop runs exactly twice."""

    registry.add_dimmer(make_device("a", 4))
    registry.write_status = lambda *_: "rejected"

    with caplog.at_level(logging.WARNING):
        report = await _engine(registry, clock).async_reconcile(DESIRED)

    assert report.attempts == 2
    assert report.outcome is ReconcileOutcome.CONVERGED_WITH_FAILURES
    assert report.failed_devices == ("Kitchen Dimmer",)
    assert len(registry.writes) == 6
    assert registry.read_calls == ["a", "a"]
    assert "still failing after 2 attempts" in caplog.text


@pytest.mark.asyncio
async def test_transient_failure_recovers_on_retry(
    registry: FakeRegistryClient, clock: FakeClock
) -> None:
    """A write that fails once succeeds on the retry pass."""

    registry.add_dimmer(make_device("a", 4))
    failures = iter([True])

    def _status(_device, prop, _key, _value) -> str:
        if prop == 21 and next(failures, False):
            return "queued"
        return "ACCEPTED"

    registry.write_status = _status
    report = await _engine(registry, clock).async_reconcile(DESIRED)

    assert report.outcome is ReconcileOutcome.CONVERGED
    assert report.attempts == 2
    assert [write[1] for write in registry.writes] == [21, 27, 31, 21]


@pytest.mark.asyncio
async def test_registry_error_marks_retry(
    registry: FakeRegistryClient, clock: FakeClock
) -> None:
    """Transport errors during a write are retryable failures."""

    registry.add_dimmer(make_device("a", 4))
    registry.write_error = RegistryCommandError(
        "zwave_js/set_config_parameter", "not_found", "Node not found"
    )

    report = await _engine(registry, clock).async_reconcile(DESIRED)

    assert report.attempts == 2
    assert report.outcome is ReconcileOutcome.CONVERGED_WITH_FAILURES


@pytest.mark.asyncio
async def test_read_failure_skips_device_without_retry(
    registry: FakeRegistryClient, clock: FakeClock, caplog: pytest.LogCaptureFixture
) -> None:
    """An unreadable device is counted as failed and others still converge."""

    registry.add_dimmer(make_device("a", 4, name="Broken"))
    registry.add_dimmer(make_device("b", 5, name="Working"))
    registry.read_errors["a"] = RegistryConnectionError("timeout")

    report = await _engine(registry, clock).async_reconcile(DESIRED)

    assert report.attempts == 1
    assert report.failed_devices == ("Broken",)
    assert report.outcome is ReconcileOutcome.CONVERGED_WITH_FAILURES
    assert {write[0] for write in registry.writes} == {"b"}
    assert "Unable to read LED configuration of Broken" in caplog.text


@pytest.mark.asyncio
async def test_undecodable_configuration_is_device_failure(
    registry: FakeRegistryClient, clock: FakeClock
) -> None:
    """Missing LED parameters make the device fail for the pass."""

    registry.add_dimmer(make_device("a", 4))
    registry.parameters["a"].pop("4-112-0-30")

    report = await _engine(registry, clock).async_reconcile(DESIRED)

    assert registry.writes == []
    assert report.failed_devices == ("Kitchen Dimmer",)


@pytest.mark.asyncio
async def test_only_supported_dimmers_are_reconciled(
    registry: FakeRegistryClient, clock: FakeClock
) -> None:
    """Devices other than supported HomeSeer dimmers are ignored."""

    registry.add_dimmer(make_device("a", 4))
    registry.add_dimmer(make_device("z", 8, manufacturer="Zooz", model="ZEN77"))
    engine = _engine(registry, clock)

    report = await engine.async_reconcile(DESIRED)

    assert report.devices == 1
    assert registry.read_calls == ["a"]
    assert engine.last_report is report
