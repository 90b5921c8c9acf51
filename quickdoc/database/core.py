"""The key-value Database facade."""

from typing import Any, Callable, Dict, List, Optional, Union

from ..backends import DocumentBackend, create_backend
from ..config.logging import LoggerMixin
from ..config.settings import Settings
from ..core.exceptions import NotReadyError
from ..core.state import ConnectionState, StateListener
from ..models.record import (
    AllData,
    AllQueryOptions,
    CollectionStats,
    DatabaseMetadata,
    DatabaseOptions,
    Record,
)
from ..utils.validation import validate_collection_name
from .expiration import Clock, ExpirationPolicy
from .hierarchy import HierarchyManager
from .operations import RecordOperations
from .queries import RecordQueries


class Database(LoggerMixin):
    """A string-keyed store over one collection of a document backend.

    Keys may use dot notation: ``"user.profile.name"`` reads and writes the
    ``profile.name`` path inside the ``user`` record. Records written with a
    TTL stay in the backend until purged but are never returned once expired.

    Compound operations (``push``, ``pull``, ``add``, ``subtract`` and dotted
    ``set``) read the record and upsert it in two steps. They are not atomic
    against concurrent callers on the same key: the last upsert wins.
    """

    def __init__(
        self,
        url: Optional[str] = None,
        options: Optional[Union[DatabaseOptions, Dict[str, Any]]] = None,
        *,
        settings: Optional[Settings] = None,
        clock: Optional[Clock] = None,
        backend: Optional[DocumentBackend] = None,
    ) -> None:
        """Create a database handle. Call ``connect()`` before use.

        Passing ``backend`` borrows an already open connection; a borrowed
        backend is never closed by this instance.
        """
        self.settings = settings or Settings()
        self.url = url or self.settings.DATABASE_URL

        if options is None:
            options = DatabaseOptions()
        elif isinstance(options, dict):
            options = DatabaseOptions.model_validate(options)
        self.options = options

        self.collection = validate_collection_name(
            options.collection_name or self.settings.COLLECTION_NAME
        )
        self.parent: Optional["Database"] = options.parent
        self._child = bool(options.child)
        self.policy = ExpirationPolicy(clock)

        self._owns_backend = backend is None
        self.backend: Optional[DocumentBackend] = (
            backend if backend is not None else create_backend(self.url, self.settings)
        )

        self._operations: Optional[RecordOperations] = None
        self._queries: Optional[RecordQueries] = None
        self._bind()

    def _bind(self) -> None:
        """Create operation handlers over the current backend."""
        if self.backend is None:
            self._operations = None
            self._queries = None
            return
        self._operations = RecordOperations(self.backend, self.collection, self.policy, self.logger)
        self._queries = RecordQueries(self.backend, self.collection, self.policy, self.logger)

    # Lifecycle
    def is_child(self) -> bool:
        return self._child

    def is_parent(self) -> bool:
        return not self._child

    @property
    def owns_connection(self) -> bool:
        return self._owns_backend

    @property
    def shares_connection(self) -> bool:
        """Whether children borrow this database's connection by default."""
        if self.options.share_connection_from_parent is not None:
            return self.options.share_connection_from_parent
        return self.settings.SHARE_CONNECTION_FROM_PARENT

    @property
    def ready_state(self) -> ConnectionState:
        if self.backend is None:
            return ConnectionState.DISCONNECTED
        return self.backend.state.state

    @property
    def ready(self) -> bool:
        return self.ready_state is ConnectionState.CONNECTED

    def on_state_change(self, listener: StateListener) -> Callable[[], None]:
        """Subscribe to connection state transitions. Returns an unsubscribe callable."""
        if self.backend is None:
            raise NotReadyError(ConnectionState.DISCONNECTED.value, "subscribe")
        return self.backend.state.subscribe(listener)

    async def connect(self) -> "Database":
        """Connect to the backend."""
        if not self._owns_backend:
            # Borrowed connections are managed by their owner
            if self.backend is None:
                raise NotReadyError(ConnectionState.DISCONNECTED.value, "connect")
            return self

        await self.backend.connect()
        self.logger.info("Database connected", collection=self.collection, url=self.url)
        return self

    async def close(self, force: bool = False) -> None:
        """Close the connection, or detach from a borrowed one."""
        if self.backend is None:
            return

        if self._owns_backend:
            await self.backend.close(force)
            self.logger.info("Database closed", collection=self.collection)
        else:
            self.backend = None
            self._bind()
            self.logger.info("Database detached from shared connection", collection=self.collection)

    async def __aenter__(self) -> "Database":
        return await self.connect()

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    def _ready_check(self, operation: str) -> None:
        """Ensure the connection is ready."""
        if not self.ready or self._operations is None or self._queries is None:
            raise NotReadyError(self.ready_state.value, operation)

    # Key operations - delegated to RecordOperations
    async def get_raw(self, key: str) -> Optional[Record]:
        """The visible record stored under ``key``'s master key."""
        self._ready_check("get_raw")
        return await self._operations.get_raw(key)

    async def get(self, key: str) -> Any:
        """Get the value at ``key``; None when absent or expired."""
        self._ready_check("get")
        return await self._operations.get(key)

    async def fetch(self, key: str) -> Any:
        """Alias of ``get``."""
        return await self.get(key)

    async def set(self, key: str, value: Any, ttl_seconds: Any = -1) -> Any:
        """Set ``value`` at ``key``.

        ``ttl_seconds`` > 0 expires the whole master record after that many
        seconds; -1 (or any value <= 0) makes it permanent. Returns the
        master record's full data after the write.
        """
        self._ready_check("set")
        return await self._operations.set(key, value, ttl_seconds)

    async def has(self, key: str) -> bool:
        """False if the value is absent, expired or None."""
        self._ready_check("has")
        return await self._operations.has(key)

    async def delete(self, key: str) -> bool:
        self._ready_check("delete")
        return await self._operations.delete(key)

    async def push(self, key: str, value: Any) -> Any:
        self._ready_check("push")
        return await self._operations.push(key, value)

    async def pull(self, key: str, value: Any, multiple: bool = False) -> Union[Any, bool]:
        self._ready_check("pull")
        return await self._operations.pull(key, value, multiple)

    async def add(self, key: str, value: Any) -> Any:
        self._ready_check("add")
        return await self._operations.add(key, value)

    async def subtract(self, key: str, value: Any) -> Any:
        self._ready_check("subtract")
        return await self._operations.subtract(key, value)

    # Collection operations - delegated to RecordQueries
    async def all(
        self,
        options: Optional[Union[AllQueryOptions, Dict[str, Any]]] = None,
    ) -> List[AllData]:
        """Everything in the collection that has not expired."""
        self._ready_check("all")
        if isinstance(options, dict):
            options = AllQueryOptions.model_validate(options)
        return await self._queries.all(options)

    async def all_raw(
        self,
        options: Optional[Union[AllQueryOptions, Dict[str, Any]]] = None,
    ) -> List[Record]:
        """Like ``all`` but returns the stored records, timestamps included."""
        self._ready_check("all_raw")
        if isinstance(options, dict):
            options = AllQueryOptions.model_validate(options)
        return await self._queries.all_raw(options)

    async def count(self) -> int:
        self._ready_check("count")
        return await self._queries.count()

    async def delete_all(self) -> bool:
        self._ready_check("delete_all")
        return await self._queries.delete_all()

    async def cleanup_expired(self) -> int:
        self._ready_check("cleanup_expired")
        return await self._queries.cleanup_expired()

    async def drop(self) -> bool:
        """Drop this database's collection."""
        self._ready_check("drop")
        return await self._queries.drop()

    async def stats(self) -> CollectionStats:
        self._ready_check("stats")
        return await self._queries.stats()

    async def ping(self) -> float:
        """Backend latency in milliseconds."""
        self._ready_check("ping")
        return await self.backend.ping()

    @property
    def metadata(self) -> Optional[DatabaseMetadata]:
        if self.backend is None:
            return None
        db = self.backend.database_name
        return DatabaseMetadata(name=self.collection, db=db, namespace=f"{db}.{self.collection}")

    # Hierarchy
    async def instantiate_child(
        self,
        collection_name: Optional[str] = None,
        url: Optional[str] = None,
        share_connection: Optional[bool] = None,
    ) -> "Database":
        """Create a child database on another collection.

        Without ``url`` the child borrows this database's connection (unless
        sharing is disabled); with ``url`` it opens its own.
        """
        return await HierarchyManager(self).instantiate_child(collection_name, url, share_connection)

    def table(self, name: str) -> "Database":
        """A child bound to collection ``name`` over this database's connection."""
        return HierarchyManager(self).table(name)

    def __repr__(self) -> str:
        return (
            f"Database(url={self.url!r}, collection={self.collection!r}, "
            f"state={self.ready_state.value}, child={self._child})"
        )
