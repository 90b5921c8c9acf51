"""Child database creation."""

from typing import TYPE_CHECKING, Optional

from ..config.logging import LoggerMixin
from ..core.exceptions import ConfigurationError, NotReadyError
from ..core.state import ConnectionState
from ..models.record import DatabaseOptions

if TYPE_CHECKING:
    from .core import Database


class HierarchyManager(LoggerMixin):
    """Creates child databases for a parent.

    A child either opens and owns a new connection, or borrows the parent's
    connection and writes to a different collection. The child's ``parent``
    attribute is a plain back-reference; children never manage the parent's
    lifecycle, and a borrowing child never closes the shared connection.
    """

    def __init__(self, parent: "Database") -> None:
        self.parent = parent

    async def instantiate_child(
        self,
        collection_name: Optional[str] = None,
        url: Optional[str] = None,
        share_connection: Optional[bool] = None,
    ) -> "Database":
        share = self.parent.shares_connection if share_connection is None else share_connection

        if url is not None or not share:
            child = self._owning_child(collection_name, url)
            await child.connect()
        else:
            child = self._borrowing_child(collection_name)

        self.logger.info(
            "Child database created",
            parent_collection=self.parent.collection,
            collection=child.collection,
            shared_connection=not child.owns_connection,
        )
        return child

    def table(self, name: str) -> "Database":
        """quick.db style table: a borrowing child on collection ``name``."""
        if not isinstance(name, str) or not name:
            raise ConfigurationError("Table name must be a non-empty string", "collection_name")
        return self._borrowing_child(name)

    def _options(self, collection_name: str, shared: bool) -> DatabaseOptions:
        return DatabaseOptions(
            collection_name=collection_name,
            child=True,
            parent=self.parent,
            share_connection_from_parent=shared,
        )

    def _owning_child(self, collection_name: Optional[str], url: Optional[str]) -> "Database":
        parent = self.parent
        return type(parent)(
            url or parent.url,
            self._options(collection_name or parent.settings.COLLECTION_NAME, shared=False),
            settings=parent.settings,
            clock=parent.policy.now,
        )

    def _borrowing_child(self, collection_name: Optional[str]) -> "Database":
        parent = self.parent
        if parent.backend is None:
            raise NotReadyError(ConnectionState.DISCONNECTED.value, "instantiate_child")

        return type(parent)(
            parent.url,
            self._options(collection_name or self._default_shared_collection(), shared=True),
            settings=parent.settings,
            clock=parent.policy.now,
            backend=parent.backend,
        )

    def _default_shared_collection(self) -> str:
        """Default collection for a borrowing child, never the parent's own."""
        settings = self.parent.settings
        name = settings.COLLECTION_NAME
        if name == self.parent.collection:
            name = f"{self.parent.collection}{settings.CHILD_COLLECTION_SUFFIX}"
        return name
