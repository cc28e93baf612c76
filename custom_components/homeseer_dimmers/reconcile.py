"""Converge HomeSeer dimmer status LEDs toward a desired LED table."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
import logging

from .api import DeviceRegistryClient, RegistryError
from .codecs.parameter_codec import (
    DimmerConfigurationError,
    ParameterWrite,
    plan_writes,
    read_dimmer_configuration,
)
from .codecs.zwave_models import (
    Device,
    InvalidZWaveDeviceError,
    is_accepted_status,
    zwave_node_id,
)
from .discovery import DiscoveryCache, is_supported_dimmer
from .domain import DimmerConfiguration, LedInputTable

_LOGGER = logging.getLogger(__name__)

MAX_ATTEMPTS = 2


class ParameterWriteError(Exception):
    """The device or registry rejected a configuration write."""


class ReconcileOutcome(str, Enum):
    """Terminal result of a reconciliation pass."""

    CONVERGED = "converged"
    CONVERGED_WITH_FAILURES = "converged_with_failures"


class _DeviceResult(Enum):
    DONE = "done"
    RETRY = "retry"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class ReconcileReport:
    """Summary of one reconciliation pass across all dimmers."""

    outcome: ReconcileOutcome
    attempts: int
    writes: int
    devices: int
    failed_devices: tuple[str, ...] = ()

    def as_dict(self) -> dict[str, object]:
        """Return a diagnostics friendly representation."""

        return {
            "outcome": self.outcome.value,
            "attempts": self.attempts,
            "writes": self.writes,
            "devices": self.devices,
            "failed_devices": list(self.failed_devices),
        }


class ReconcileEngine:
    """Read each dimmer's LED configuration and write only the differences."""

    def __init__(
        self,
        client: DeviceRegistryClient,
        cache: DiscoveryCache,
        *,
        blink_frequency: int,
        discovery_validity: float,
    ) -> None:
        """Store the collaborators and the target blink frequency."""

        self._client = client
        self._cache = cache
        self._blink_frequency = blink_frequency
        self._discovery_validity = discovery_validity
        self._writes = 0
        self.last_report: ReconcileReport | None = None

    async def async_reconcile(self, table: LedInputTable) -> ReconcileReport:
        """Bring every discovered dimmer in line with ``table``.

        The device loop runs again once if any write failed; the result after
        the second pass is final.
        """

        devices = await self._cache.async_get_devices(
            is_supported_dimmer, self._discovery_validity
        )
        self._writes = 0
        attempts = 0
        failed: list[str] = []
        retry = False
        while attempts < MAX_ATTEMPTS:
            attempts += 1
            failed, retry = await self._reconcile_devices(devices, table)
            if not retry:
                break
            if attempts < MAX_ATTEMPTS:
                _LOGGER.info("Some LED updates failed, retrying")

        if retry:
            _LOGGER.error("LED updates still failing after %d attempts", attempts)
        outcome = (
            ReconcileOutcome.CONVERGED_WITH_FAILURES
            if failed or retry
            else ReconcileOutcome.CONVERGED
        )
        report = ReconcileReport(
            outcome=outcome,
            attempts=attempts,
            writes=self._writes,
            devices=len(devices),
            failed_devices=tuple(failed),
        )
        self.last_report = report
        _LOGGER.info(
            "LED sync %s: %d dimmers, %d writes, %d attempts",
            outcome.value,
            report.devices,
            report.writes,
            report.attempts,
        )
        return report

    async def _reconcile_devices(
        self, devices: Sequence[Device], table: LedInputTable
    ) -> tuple[list[str], bool]:
        """Run one pass over ``devices`` and return failures and retry flag."""

        failed: list[str] = []
        retry = False
        for device in devices:
            result = await self._reconcile_device(device, table)
            if result is _DeviceResult.FAILED:
                failed.append(device.display_name)
            elif result is _DeviceResult.RETRY:
                retry = True
                failed.append(device.display_name)
        return failed, retry

    async def _read_configuration(self, device: Device) -> DimmerConfiguration:
        """Read the current LED configuration of ``device``."""

        try:
            node_id = zwave_node_id(device)
            parameters = await self._client.get_configuration_parameters(device)
        except (InvalidZWaveDeviceError, RegistryError) as err:
            raise DimmerConfigurationError(str(err)) from err
        return read_dimmer_configuration(node_id, parameters)

    async def _reconcile_device(
        self, device: Device, table: LedInputTable
    ) -> _DeviceResult:
        try:
            current = await self._read_configuration(device)
        except DimmerConfigurationError as err:
            _LOGGER.error(
                "Unable to read LED configuration of %s: %s", device.display_name, err
            )
            return _DeviceResult.FAILED

        result = _DeviceResult.DONE
        for write in plan_writes(table, current, self._blink_frequency):
            try:
                await self._write(device, write)
            except (ParameterWriteError, RegistryError) as err:
                _LOGGER.warning(
                    "Failed to set %s on %s: %s",
                    write.description,
                    device.display_name,
                    err,
                )
                result = _DeviceResult.RETRY
            else:
                _LOGGER.info("Set %s on %s", write.description, device.display_name)
        return result

    async def _write(self, device: Device, write: ParameterWrite) -> None:
        """Issue one parameter write and raise if it was not accepted."""

        self._writes += 1
        status = await self._client.set_configuration_parameter(
            device, write.property, write.property_key, write.value
        )
        if not is_accepted_status(status):
            raise ParameterWriteError(f"status {status!r}")
