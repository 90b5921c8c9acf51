"""Abstract base class for document backends."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional

from ..config.logging import LoggerMixin
from ..config.settings import Settings
from ..core.exceptions import BackendError
from ..core.state import ConnectionState, ConnectionStateMachine
from ..models.record import CollectionStats, Record, RecordFilter


class DocumentBackend(ABC, LoggerMixin):
    """A connection to a document store holding records in named collections.

    One backend instance may serve several collections; every data call
    names the collection it targets. Readiness is tracked by ``state``.
    """

    scheme: str = ""

    def __init__(self, url: str, settings: Settings) -> None:
        self.url = url
        self.settings = settings
        self.state = ConnectionStateMachine(name=f"{self.scheme or 'backend'}:{id(self):x}")

    @property
    def is_connected(self) -> bool:
        return self.state.is_connected

    async def connect(self) -> None:
        """Open the connection, moving through CONNECTING to CONNECTED."""
        if self.state.is_connected:
            return

        if self.state.state is ConnectionState.ERROR:
            # Release the faulted driver handle before opening a new one
            try:
                await self._close(True)
            except Exception as e:
                self.logger.warning("Failed to release faulted connection", url=self.url, error=str(e))

        self.state.transition(ConnectionState.CONNECTING)
        try:
            await self._open()
        except Exception as e:
            self.state.transition(ConnectionState.ERROR, e)
            self.logger.error("Backend connection failed", url=self.url, error=str(e))
            raise BackendError(f"Failed to connect to {self.url}: {e}", "connect") from e

        self.state.transition(ConnectionState.CONNECTED)
        self.logger.info("Backend connected", backend=type(self).__name__, url=self.url)

    async def close(self, force: bool = False) -> None:
        """Close the connection."""
        try:
            await self._close(force)
        finally:
            self.state.transition(ConnectionState.DISCONNECTED)
        self.logger.info("Backend closed", backend=type(self).__name__, force=force)

    def _fault(self, operation: str, collection: Optional[str], exc: Exception) -> BackendError:
        """Wrap a driver exception, recording transport faults on the state machine."""
        if self._is_transport_error(exc):
            self.state.transition(ConnectionState.ERROR, exc)
        self.logger.error(
            "Backend operation failed",
            operation=operation,
            collection=collection,
            error=str(exc),
        )
        return BackendError(f"Failed to {operation}: {exc}", operation, collection)

    def _is_transport_error(self, exc: Exception) -> bool:
        return False

    @property
    @abstractmethod
    def database_name(self) -> str:
        """Name of the underlying database (file path, Redis db, ...)."""
        pass

    @abstractmethod
    async def _open(self) -> None:
        """Establish the driver connection."""
        pass

    @abstractmethod
    async def _close(self, force: bool) -> None:
        """Release the driver connection."""
        pass

    @abstractmethod
    async def find_one(self, collection: str, record_id: str) -> Optional[Record]:
        """Fetch a record by id, expired or not."""
        pass

    @abstractmethod
    async def upsert(self, collection: str, record_id: str, record: Record) -> None:
        """Insert or replace the record with ``record_id``."""
        pass

    @abstractmethod
    async def delete_one(self, collection: str, record_id: str) -> bool:
        """Delete a record. Returns True if something was deleted."""
        pass

    @abstractmethod
    async def delete_many(self, collection: str, record_filter: RecordFilter) -> int:
        """Delete every record matching the filter. Returns the deleted count."""
        pass

    @abstractmethod
    async def list_all(self, collection: str) -> List[Record]:
        """Every stored record, expired ones included."""
        pass

    @abstractmethod
    async def count_all(self, collection: str) -> int:
        """Number of stored records, expired ones included."""
        pass

    @abstractmethod
    async def drop(self, collection: str) -> bool:
        """Remove the collection itself."""
        pass

    @abstractmethod
    async def ping(self) -> float:
        """Round-trip latency in milliseconds."""
        pass

    @abstractmethod
    async def stats(self, collection: str, now: datetime) -> CollectionStats:
        """Storage statistics for a collection."""
        pass
