"""In-memory document store.

Dict-backed implementation of ``DocumentStore`` for tests, dry runs and
``memory`` profiles.  Documents are deep-copied on the way in and out so
callers never share state with the store.

Usage:
    from taskvault.adapters.memory import InMemoryDocumentStore

    store = InMemoryDocumentStore({"groups": {"g1": {"name": "Network"}}})
    page = await store.list_page("groups", 10)
"""

import copy
from typing import Any


class InMemoryDocumentStore:
    """In-memory implementation of the ``DocumentStore`` protocol.

    Args:
        initial: Optional ``{collection: {doc_id: fields}}`` seed data.
    """

    def __init__(self, initial: dict[str, dict[str, dict[str, Any]]] | None = None) -> None:
        self._collections: dict[str, dict[str, dict[str, Any]]] = copy.deepcopy(initial or {})
        self.closed: bool = False

    async def list_page(
        self,
        collection: str,
        limit: int,
        start_after: str | None = None,
    ) -> list[tuple[str, dict[str, Any]]]:
        """Return up to ``limit`` documents with IDs greater than ``start_after``."""
        docs = self._collections.get(collection, {})
        ids = sorted(docs)
        if start_after is not None:
            ids = [doc_id for doc_id in ids if doc_id > start_after]
        return [(doc_id, copy.deepcopy(docs[doc_id])) for doc_id in ids[:limit]]

    async def get(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        doc = self._collections.get(collection, {}).get(doc_id)
        return copy.deepcopy(doc) if doc is not None else None

    async def set(self, collection: str, doc_id: str, data: dict[str, Any]) -> None:
        self._collections.setdefault(collection, {})[doc_id] = copy.deepcopy(data)

    async def update(self, collection: str, doc_id: str, data: dict[str, Any]) -> None:
        """Shallow-merge ``data`` into the stored document."""
        docs = self._collections.get(collection, {})
        if doc_id not in docs:
            raise KeyError(f"No document to update: {collection}/{doc_id}")
        docs[doc_id].update(copy.deepcopy(data))

    async def close(self) -> None:
        self.closed = True

    # ------------------------------------------------------------------
    # Inspection helpers
    # ------------------------------------------------------------------

    def dump(self, collection: str) -> dict[str, dict[str, Any]]:
        """Copy of every document in ``collection`` keyed by ID."""
        return copy.deepcopy(self._collections.get(collection, {}))

    def count(self, collection: str) -> int:
        """Number of documents in ``collection``."""
        return len(self._collections.get(collection, {}))
