"""Runtime container for HomeSeer dimmer config entries."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field

from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant

from .aggregator import InputAggregator
from .api import HomeAssistantWsClient
from .config import DimmerSyncConfig
from .const import DOMAIN
from .discovery import DiscoveryCache
from .manager import DimmerSyncManager
from .serializer import OperationSerializer


@dataclass(slots=True)
class EntryRuntime:
    """Objects owned by one configured entry."""

    config: DimmerSyncConfig
    client: HomeAssistantWsClient
    aggregator: InputAggregator
    serializer: OperationSerializer
    manager: DimmerSyncManager
    dimmer_cache: DiscoveryCache
    ping_cache: DiscoveryCache
    unsubscribers: list[Callable[[], None]] = field(default_factory=list)
    _shutdown_complete: bool = False

    async def async_shutdown(self) -> None:
        """Stop timers, channel listeners, the serializer and the client."""

        if self._shutdown_complete:
            return
        self._shutdown_complete = True
        while self.unsubscribers:
            self.unsubscribers.pop()()
        self.manager.detach()
        self.aggregator.stop()
        await self.serializer.async_stop()
        await self.client.async_close()


def get_entry_runtime(hass: HomeAssistant, entry: ConfigEntry | str) -> EntryRuntime:
    """Return the runtime stored for ``entry``."""

    entry_id = entry if isinstance(entry, str) else entry.entry_id
    runtime = hass.data.get(DOMAIN, {}).get(entry_id)
    if not isinstance(runtime, EntryRuntime):
        raise LookupError(f"No runtime for config entry {entry_id}")
    return runtime


def iter_entry_runtimes(hass: HomeAssistant) -> list[EntryRuntime]:
    """Return every runtime currently stored for the integration."""

    return [
        runtime
        for runtime in hass.data.get(DOMAIN, {}).values()
        if isinstance(runtime, EntryRuntime)
    ]
