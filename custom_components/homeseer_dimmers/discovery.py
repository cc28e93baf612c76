"""Time-limited cache of filtered device registry listings."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
import logging
import time

from .api import DeviceRegistryClient
from .codecs.zwave_models import Device
from .const import HOMESEER_MANUFACTURER, SUPPORTED_DIMMER_MODELS

_LOGGER = logging.getLogger(__name__)

DevicePredicate = Callable[[Device], bool]
MonotonicCallable = Callable[[], float]

_SUPPORTED_MODELS = frozenset(model.casefold() for model in SUPPORTED_DIMMER_MODELS)


def is_supported_dimmer(device: Device) -> bool:
    """Return ``True`` for HomeSeer dimmers with status LED parameters."""

    manufacturer = (device.manufacturer or "").casefold()
    model = (device.model or "").casefold()
    return (
        manufacturer == HOMESEER_MANUFACTURER.casefold() and model in _SUPPORTED_MODELS
    )


@dataclass(frozen=True, slots=True)
class DiscoveryCacheEntry:
    """Filtered devices and the monotonic time they were discovered."""

    devices: tuple[Device, ...]
    discovered_at: float


class DiscoveryCache:
    """Memoise filtered registry listings for a validity window."""

    def __init__(
        self,
        client: DeviceRegistryClient,
        *,
        name: str = "devices",
        monotonic: MonotonicCallable = time.monotonic,
    ) -> None:
        """Store the registry client and the clock used for expiry."""

        self._client = client
        self._name = name
        self._monotonic = monotonic
        self._entry: DiscoveryCacheEntry | None = None

    @property
    def devices(self) -> tuple[Device, ...]:
        """Return the last discovered devices without refreshing."""

        return self._entry.devices if self._entry is not None else ()

    def is_expired(self, validity: float) -> bool:
        """Return ``True`` when the next lookup must rediscover."""

        entry = self._entry
        if entry is None or validity <= 0:
            return True
        return self._monotonic() - entry.discovered_at >= validity

    async def async_get_devices(
        self, predicate: DevicePredicate, validity: float
    ) -> Sequence[Device]:
        """Return devices matching ``predicate``, rediscovering when stale."""

        if not self.is_expired(validity):
            return self._entry.devices  # type: ignore[union-attr]

        _LOGGER.debug("Discovering %s", self._name)
        devices = await self._client.list_devices()
        matched = tuple(device for device in devices if predicate(device))
        self._entry = DiscoveryCacheEntry(matched, self._monotonic())
        for device in matched:
            _LOGGER.info(
                "Discovered %s: %s (%s %s) area=%s",
                self._name,
                device.display_name,
                device.manufacturer,
                device.model,
                device.area_id,
            )
        if not matched:
            _LOGGER.info("No %s discovered", self._name)
        return matched
