"""Home Assistant websocket client for the device registry and Z-Wave JS."""

from __future__ import annotations

import asyncio
from contextlib import suppress
import json
import logging
from typing import Any, Protocol

import aiohttp
from pydantic import ValidationError

from .codecs.zwave_models import (
    ConfigurationParameter,
    Device,
    SetConfigParameterResult,
    decode_config_parameters,
    decode_device_list,
    zwave_node_id,
)
from .const import (
    CMD_DEVICE_REGISTRY_LIST,
    CMD_GET_CONFIG_PARAMETERS,
    CMD_REFRESH_NODE_CC_VALUES,
    CMD_REFRESH_NODE_VALUES,
    CMD_SET_CONFIG_PARAMETER,
    WS_COMMAND_TIMEOUT,
    WS_CONNECT_TIMEOUT,
    websocket_url,
)

_LOGGER = logging.getLogger(__name__)


class RegistryError(Exception):
    """Base error for device registry round trips."""


class RegistryConnectionError(RegistryError):
    """Websocket connection is unavailable or was lost."""


class RegistryAuthError(RegistryError):
    """Home Assistant rejected the access token."""


class RegistryCommandError(RegistryError):
    """Home Assistant answered a command with ``success: false``."""

    def __init__(self, command: str, code: str, message: str) -> None:
        """Initialise the error with the reported code and message."""

        super().__init__(f"{command} failed ({code}): {message}")
        self.command = command
        self.code = code
        self.message = message


class DeviceRegistryClient(Protocol):
    """Round trips the synchronisation engines depend on."""

    async def list_devices(self) -> list[Device]:
        """Return every device in the registry."""

    async def get_configuration_parameters(
        self, device: Device
    ) -> dict[str, ConfigurationParameter]:
        """Return the configuration parameters of ``device`` keyed by address."""

    async def set_configuration_parameter(
        self,
        device: Device,
        prop: int,
        property_key: int | None,
        value: str,
    ) -> str:
        """Write a configuration parameter and return the reported status."""

    async def refresh_values(self, device: Device) -> None:
        """Ask the device to refresh all of its values."""

    async def refresh_command_class_values(
        self, device: Device, command_class_id: int
    ) -> None:
        """Ask the device to refresh the values of one command class."""


class HomeAssistantWsClient:
    """Minimal client for the Home Assistant websocket API."""

    def __init__(
        self,
        session: aiohttp.ClientSession,
        url: str,
        access_token: str,
        *,
        command_timeout: float = WS_COMMAND_TIMEOUT,
    ) -> None:
        """Store the session and endpoint used for websocket commands."""

        self._session = session
        self._url = websocket_url(url)
        self._access_token = access_token
        self._command_timeout = command_timeout
        self._ws: aiohttp.ClientWebSocketResponse | None = None
        self._reader: asyncio.Task | None = None
        self._pending: dict[int, asyncio.Future[Any]] = {}
        self._next_id = 1
        self._connect_lock = asyncio.Lock()
        self.ha_version: str | None = None

    @property
    def url(self) -> str:
        """Return the websocket endpoint."""

        return self._url

    @property
    def connected(self) -> bool:
        """Return ``True`` while an authenticated websocket is open."""

        ws = self._ws
        return ws is not None and not ws.closed

    async def async_connect(self) -> None:
        """Open the websocket and authenticate if not already connected."""

        async with self._connect_lock:
            if self.connected:
                return
            await self._open()

    async def _open(self) -> None:
        """Connect, perform the auth handshake and start the reader task."""

        _LOGGER.debug("Connecting to %s", self._url)
        try:
            ws = await self._session.ws_connect(
                self._url,
                timeout=aiohttp.ClientTimeout(total=WS_CONNECT_TIMEOUT),
                heartbeat=None,
                autoclose=False,
            )
        except (aiohttp.ClientError, TimeoutError) as err:
            raise RegistryConnectionError(
                f"Unable to connect to {self._url}: {err}"
            ) from err

        try:
            await self._authenticate(ws)
        except BaseException:
            with suppress(aiohttp.ClientError, RuntimeError):
                await ws.close()
            raise

        self._ws = ws
        self._reader = asyncio.create_task(self._read_loop(ws))
        _LOGGER.info("Connected to Home Assistant %s", self.ha_version or "")

    async def _authenticate(self, ws: aiohttp.ClientWebSocketResponse) -> None:
        """Run the ``auth_required`` / ``auth`` / ``auth_ok`` exchange."""

        hello = await self._receive_json(ws)
        if hello.get("type") != "auth_required":
            raise RegistryConnectionError(
                f"Unexpected handshake message: {hello.get('type')}"
            )
        await ws.send_json({"type": "auth", "access_token": self._access_token})
        reply = await self._receive_json(ws)
        kind = reply.get("type")
        if kind == "auth_invalid":
            raise RegistryAuthError(reply.get("message") or "Invalid access token")
        if kind != "auth_ok":
            raise RegistryConnectionError(f"Unexpected auth reply: {kind}")
        self.ha_version = reply.get("ha_version")

    async def _receive_json(
        self, ws: aiohttp.ClientWebSocketResponse
    ) -> dict[str, Any]:
        """Receive one JSON object during the handshake."""

        try:
            async with asyncio.timeout(WS_CONNECT_TIMEOUT):
                msg = await ws.receive()
        except TimeoutError as err:
            raise RegistryConnectionError("Timed out during handshake") from err
        if msg.type != aiohttp.WSMsgType.TEXT:
            raise RegistryConnectionError(
                f"Websocket closed during handshake: {msg.type}"
            )
        try:
            payload = json.loads(msg.data)
        except ValueError as err:
            raise RegistryConnectionError("Invalid handshake payload") from err
        if not isinstance(payload, dict):
            raise RegistryConnectionError("Invalid handshake payload")
        return payload

    async def _read_loop(self, ws: aiohttp.ClientWebSocketResponse) -> None:
        """Dispatch command results to their pending futures."""

        error: Exception = RegistryConnectionError("Websocket closed")
        try:
            while True:
                msg = await ws.receive()
                if msg.type == aiohttp.WSMsgType.TEXT:
                    self._dispatch(msg.data)
                elif msg.type == aiohttp.WSMsgType.ERROR:
                    error = RegistryConnectionError(
                        f"Websocket error: {ws.exception()}"
                    )
                    break
                elif msg.type in {
                    aiohttp.WSMsgType.CLOSE,
                    aiohttp.WSMsgType.CLOSING,
                    aiohttp.WSMsgType.CLOSED,
                }:
                    break
        finally:
            if self._ws is ws:
                self._ws = None
            self._fail_pending(error)
            with suppress(aiohttp.ClientError, RuntimeError):
                await ws.close()
            _LOGGER.debug("Websocket reader stopped")

    def _dispatch(self, data: str) -> None:
        """Resolve the future waiting for a ``result`` message."""

        try:
            payload = json.loads(data)
        except ValueError:
            _LOGGER.debug("Ignoring non JSON websocket frame")
            return
        messages = payload if isinstance(payload, list) else [payload]
        for message in messages:
            if not isinstance(message, dict) or message.get("type") != "result":
                continue
            future = self._pending.pop(message.get("id"), None)
            if future is None or future.done():
                continue
            future.set_result(message)

    def _fail_pending(self, error: Exception) -> None:
        pending = list(self._pending.values())
        self._pending.clear()
        for future in pending:
            if not future.done():
                future.set_exception(error)

    async def async_send_command(self, command: str, **payload: Any) -> Any:
        """Send ``command`` and return the ``result`` field of the reply."""

        ws = self._ws
        if ws is None or ws.closed:
            raise RegistryConnectionError("Not connected to Home Assistant")

        msg_id = self._next_id
        self._next_id += 1
        future: asyncio.Future[Any] = asyncio.get_running_loop().create_future()
        self._pending[msg_id] = future
        try:
            await ws.send_json({"id": msg_id, "type": command, **payload})
            async with asyncio.timeout(self._command_timeout):
                reply = await future
        except TimeoutError as err:
            raise RegistryConnectionError(f"{command} timed out") from err
        except (aiohttp.ClientError, ConnectionResetError, RuntimeError) as err:
            raise RegistryConnectionError(
                f"{command} could not be sent: {err}"
            ) from err
        finally:
            self._pending.pop(msg_id, None)

        if not reply.get("success"):
            error = reply.get("error") or {}
            raise RegistryCommandError(
                command,
                str(error.get("code", "unknown_error")),
                str(error.get("message", "")),
            )
        return reply.get("result")

    async def async_close(self) -> None:
        """Close the websocket and stop the reader task."""

        ws, self._ws = self._ws, None
        reader, self._reader = self._reader, None
        if ws is not None:
            with suppress(aiohttp.ClientError, RuntimeError):
                await ws.close()
        if reader is not None:
            reader.cancel()
            with suppress(asyncio.CancelledError):
                await reader
        self._fail_pending(RegistryConnectionError("Client closed"))

    async def list_devices(self) -> list[Device]:
        """Return every device in the registry."""

        result = await self.async_send_command(CMD_DEVICE_REGISTRY_LIST)
        return decode_device_list(result)

    async def get_configuration_parameters(
        self, device: Device
    ) -> dict[str, ConfigurationParameter]:
        """Return the configuration parameters of ``device`` keyed by address."""

        zwave_node_id(device)
        result = await self.async_send_command(
            CMD_GET_CONFIG_PARAMETERS, device_id=device.id
        )
        return decode_config_parameters(result)

    async def set_configuration_parameter(
        self,
        device: Device,
        prop: int,
        property_key: int | None,
        value: str,
    ) -> str:
        """Write a configuration parameter and return the reported status."""

        zwave_node_id(device)
        payload: dict[str, Any] = {
            "device_id": device.id,
            "property": prop,
            "value": value,
        }
        if property_key is not None:
            payload["property_key"] = property_key
        result = await self.async_send_command(CMD_SET_CONFIG_PARAMETER, **payload)
        if not isinstance(result, dict):
            return ""
        try:
            return SetConfigParameterResult.model_validate(result).status_text
        except ValidationError:
            _LOGGER.debug("Unrecognised set_config_parameter result: %s", result)
            return ""

    async def refresh_values(self, device: Device) -> None:
        """Ask the device to refresh all of its values."""

        zwave_node_id(device)
        await self.async_send_command(CMD_REFRESH_NODE_VALUES, device_id=device.id)

    async def refresh_command_class_values(
        self, device: Device, command_class_id: int
    ) -> None:
        """Ask the device to refresh the values of one command class."""

        zwave_node_id(device)
        await self.async_send_command(
            CMD_REFRESH_NODE_CC_VALUES,
            device_id=device.id,
            command_class_id=command_class_id,
        )
