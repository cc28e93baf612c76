"""Diagnostics support for the HomeSeer Dimmers integration."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Final

from homeassistant.components.diagnostics import async_redact_data
from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant

from .runtime import get_entry_runtime

SENSITIVE_FIELDS: Final = {"access_token", "authorization", "token"}


async def async_get_config_entry_diagnostics(
    hass: HomeAssistant, entry: ConfigEntry
) -> Mapping[str, Any]:
    """Return a diagnostics payload for ``entry``."""

    runtime = get_entry_runtime(hass, entry)
    report = runtime.manager.reconcile_engine.last_report

    diagnostics = {
        "config": runtime.config.as_dict(),
        "connected": runtime.client.connected,
        "ha_version": runtime.client.ha_version,
        "pending_operations": runtime.serializer.pending,
        "led_table": runtime.aggregator.current.as_dict(),
        "last_reconcile": report.as_dict() if report is not None else None,
        "dimmers": [
            {
                "name": device.display_name,
                "manufacturer": device.manufacturer,
                "model": device.model,
                "area_id": device.area_id,
            }
            for device in runtime.dimmer_cache.devices
        ],
        "ping_devices": [device.display_name for device in runtime.ping_cache.devices],
    }
    return async_redact_data(diagnostics, SENSITIVE_FIELDS)
