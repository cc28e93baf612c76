"""Ask selected Z-Wave devices to refresh their values."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
import logging

from .api import DeviceRegistryClient, RegistryError
from .codecs.zwave_models import Device, InvalidZWaveDeviceError
from .discovery import DiscoveryCache

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class PingReport:
    """Summary of one ping pass."""

    devices: int
    refreshed: int
    failed_devices: tuple[str, ...] = ()


class PingEngine:
    """Refresh configured devices by name, one at a time."""

    def __init__(
        self,
        client: DeviceRegistryClient,
        cache: DiscoveryCache,
        targets: Mapping[str, int],
        *,
        discovery_validity: float,
    ) -> None:
        """Store the collaborators and the name to command class mapping."""

        self._client = client
        self._cache = cache
        self._targets = dict(targets)
        self._discovery_validity = discovery_validity

    def command_class_for(self, device: Device) -> int | None:
        """Return the configured command class for ``device`` or ``None``."""

        for name in (device.name, device.name_by_user):
            if name and name in self._targets:
                return self._targets[name]
        return None

    def _matches(self, device: Device) -> bool:
        return self.command_class_for(device) is not None

    async def async_ping(self) -> PingReport:
        """Refresh every matched device, logging failures and moving on."""

        if not self._targets:
            _LOGGER.debug("No ping targets configured")
            return PingReport(devices=0, refreshed=0)

        devices = await self._cache.async_get_devices(
            self._matches, self._discovery_validity
        )
        refreshed = 0
        failed: list[str] = []
        for device in devices:
            command_class = self.command_class_for(device)
            if command_class is None:
                continue
            try:
                await self._client.refresh_command_class_values(
                    device, command_class
                )
            except (InvalidZWaveDeviceError, RegistryError) as err:
                _LOGGER.warning("Failed to ping %s: %s", device.display_name, err)
                failed.append(device.display_name)
                continue
            refreshed += 1
            _LOGGER.debug(
                "Pinged %s (command class %s)", device.display_name, command_class
            )
        return PingReport(
            devices=len(devices), refreshed=refreshed, failed_devices=tuple(failed)
        )
