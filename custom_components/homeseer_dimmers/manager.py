"""Queue LED synchronisation and ping passes behind one serializer."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
import logging
from typing import Any, Protocol

from .aggregator import InputAggregator, Unsubscribe
from .api import RegistryError
from .domain import LedInputTable
from .ping import PingEngine
from .reconcile import ReconcileEngine
from .serializer import OperationSerializer

_LOGGER = logging.getLogger(__name__)


class RegistryConnection(Protocol):
    """Transport that can (re)establish its connection on demand."""

    async def async_connect(self) -> None:
        """Connect if not already connected."""


class DimmerSyncManager:
    """Expose the operations that enqueue reconciliation and ping passes."""

    def __init__(
        self,
        connection: RegistryConnection,
        serializer: OperationSerializer,
        reconcile: ReconcileEngine,
        ping: PingEngine,
    ) -> None:
        """Store the engines and the serializer they run on."""

        self._connection = connection
        self._serializer = serializer
        self._reconcile = reconcile
        self._ping = ping
        self._aggregator: InputAggregator | None = None
        self._unsubscribe: Unsubscribe | None = None
        self.last_table = LedInputTable()

    @property
    def reconcile_engine(self) -> ReconcileEngine:
        """Return the reconciliation engine."""

        return self._reconcile

    def attach(self, aggregator: InputAggregator) -> None:
        """Synchronise the dimmers whenever ``aggregator`` emits a table."""

        self.detach()
        self._aggregator = aggregator
        self._unsubscribe = aggregator.subscribe(self.sync_dimmers)

    def detach(self) -> None:
        """Stop following the attached aggregator."""

        unsubscribe, self._unsubscribe = self._unsubscribe, None
        if unsubscribe is not None:
            unsubscribe()
        self._aggregator = None

    def sync_dimmers(self, table: LedInputTable) -> None:
        """Queue a reconciliation pass toward ``table``."""

        self.last_table = table
        self._submit("LED sync", lambda: self._reconcile.async_reconcile(table))

    def resync_using_last_table(self) -> None:
        """Queue a reconciliation pass using the latest aggregated table."""

        async def _resync() -> None:
            table = (
                self._aggregator.current
                if self._aggregator is not None
                else self.last_table
            )
            self.last_table = table
            await self._reconcile.async_reconcile(table)

        self._submit("LED resync", _resync)

    def ping_devices(self) -> None:
        """Queue a ping pass."""

        self._submit("Z-Wave ping", self._ping.async_ping)

    def _submit(self, name: str, work: Callable[[], Awaitable[Any]]) -> None:
        async def _operation() -> None:
            await self._async_run_group(name, work)

        self._serializer.submit(_operation, name=name)

    async def _async_run_group(
        self, name: str, work: Callable[[], Awaitable[Any]]
    ) -> None:
        """Run one operation group if the registry connection is available."""

        try:
            await self._connection.async_connect()
        except RegistryError as err:
            _LOGGER.error("Skipping %s, Home Assistant unavailable: %s", name, err)
            return
        await work()
