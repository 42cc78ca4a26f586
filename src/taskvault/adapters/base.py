"""Document store protocol definition.

Defines the ``DocumentStore`` Protocol that all adapters must implement.
All methods are ``async def`` -- the library is async-first.

Field maps crossing this boundary hold plain Python values plus
``taskvault.timestamps.Timestamp`` for points in time.  Each adapter
converts to and from its backend's native representation.

Usage:
    from taskvault.adapters.base import DocumentStore

    async def do_work(store: DocumentStore) -> None:
        page = await store.list_page("tasks", limit=100)
        doc = await store.get("tasks", "t-1")
        await store.set("tasks", "t-2", {"title": "Rotate keys"})
        await store.update("tasks", "t-2", {"status": "done"})
        await store.close()
"""

from typing import Any, Protocol


class DocumentStore(Protocol):
    """Document database interface that all adapters must implement.

    Documents are addressed by ``(collection, doc_id)``.  Every write
    targets a single document; no cross-document transaction is implied.
    """

    async def list_page(
        self,
        collection: str,
        limit: int,
        start_after: str | None = None,
    ) -> list[tuple[str, dict[str, Any]]]:
        """Read one page of documents ordered by document ID.

        Args:
            collection: Collection name.
            limit: Maximum number of documents to return.
            start_after: ID of the last document of the previous page.
                ``None`` starts at the beginning of the collection.

        Returns:
            List of ``(doc_id, fields)`` pairs.  Empty list past the end.

        Example:
            page = await store.list_page("tasks", 100, start_after="t-099")
        """
        ...

    async def get(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        """Fetch one document's fields, or ``None`` if it does not exist."""
        ...

    async def set(self, collection: str, doc_id: str, data: dict[str, Any]) -> None:
        """Create or replace a document under the given ID.

        Example:
            await store.set("groups", "g-1", {"name": "Network"})
        """
        ...

    async def update(self, collection: str, doc_id: str, data: dict[str, Any]) -> None:
        """Merge ``data`` into an existing document.

        Raises:
            Exception: If the document does not exist.
        """
        ...

    async def close(self) -> None:
        """Close the underlying client and release resources."""
        ...
