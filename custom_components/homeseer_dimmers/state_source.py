"""Home Assistant entity states exposed as LED state channels."""

from __future__ import annotations

from collections.abc import Sequence

from homeassistant.core import Event, HomeAssistant, callback
from homeassistant.helpers.event import async_track_state_change_event

from .aggregator import ChangeCallback, Unsubscribe


class HassStateChannelSource:
    """Read and follow entity states through the Home Assistant state machine."""

    def __init__(self, hass: HomeAssistant) -> None:
        """Bind the source to ``hass``."""

        self._hass = hass

    def current_value(self, channel_id: str) -> str | None:
        """Return the current state of entity ``channel_id`` if it exists."""

        state = self._hass.states.get(channel_id)
        return state.state if state is not None else None

    def subscribe(
        self, channel_ids: Sequence[str], callback_: ChangeCallback
    ) -> Unsubscribe:
        """Forward state changes of ``channel_ids`` to ``callback_``."""

        @callback
        def _handle_state_change(event: Event) -> None:
            new_state = event.data.get("new_state")
            callback_(
                event.data["entity_id"],
                new_state.state if new_state is not None else None,
            )

        return async_track_state_change_event(
            self._hass, list(channel_ids), _handle_state_change
        )
