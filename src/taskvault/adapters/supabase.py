"""Async Supabase document store.

Provides ``AsyncSupabaseStore``, an async implementation of the
``DocumentStore`` protocol using the supabase-py async client.  Uses the
same table layout as ``AsyncPostgresStore`` -- one
``(id TEXT PRIMARY KEY, data JSONB)`` table per collection -- so a backup
taken through one can be restored through the other.

The client is initialized lazily on first use with an ``asyncio.Lock``
to ensure it is created exactly once.

Usage:
    from taskvault.adapters.supabase import AsyncSupabaseStore

    store = AsyncSupabaseStore(
        url="https://xyzproject.supabase.co",
        key="eyJ...",
    )

    page = await store.list_page("tasks", 100)
    await store.close()
"""

import asyncio
from typing import Any

from supabase import AsyncClient, acreate_client

from taskvault.timestamps import denormalize, normalize


class AsyncSupabaseStore:
    """Async Supabase implementation of the ``DocumentStore`` protocol.

    Args:
        url: Supabase project URL.
        key: Supabase API key (service key for restores).
        table_prefix: Prepended to collection names to form table names.

    Example:
        store = AsyncSupabaseStore(
            url="https://xyzproject.supabase.co",
            key="eyJhbGciOiJIUzI1NiIs...",
        )
        doc = await store.get("groups", "g-1")
        await store.close()
    """

    def __init__(self, url: str, key: str, table_prefix: str = "") -> None:
        self._url: str = url
        self._key: str = key
        self._table_prefix: str = table_prefix
        self._client: AsyncClient | None = None
        self._lock: asyncio.Lock = asyncio.Lock()

    async def _get_client(self) -> AsyncClient:
        """Get or create the async Supabase client.

        Returns:
            Initialized ``AsyncClient``.
        """
        if self._client is None:
            async with self._lock:
                # Double-check after acquiring lock
                if self._client is None:
                    self._client = await acreate_client(self._url, self._key)
        return self._client

    def _table(self, collection: str) -> str:
        return f"{self._table_prefix}{collection}"

    # ------------------------------------------------------------------
    # DocumentStore Methods
    # ------------------------------------------------------------------

    async def list_page(
        self,
        collection: str,
        limit: int,
        start_after: str | None = None,
    ) -> list[tuple[str, dict[str, Any]]]:
        """Keyset-paginated read using the query builder."""
        client = await self._get_client()
        query = client.table(self._table(collection)).select("id, data")

        if start_after is not None:
            query = query.gt("id", start_after)

        result = await query.order("id").limit(limit).execute()
        return [(row["id"], denormalize(row.get("data") or {})) for row in result.data]

    async def get(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        client = await self._get_client()
        result = await (
            client.table(self._table(collection))
            .select("data")
            .eq("id", doc_id)
            .limit(1)
            .execute()
        )
        if not result.data:
            return None
        return denormalize(result.data[0].get("data") or {})

    async def set(self, collection: str, doc_id: str, data: dict[str, Any]) -> None:
        """Upsert the whole document."""
        client = await self._get_client()
        await (
            client.table(self._table(collection))
            .upsert({"id": doc_id, "data": normalize(data)})
            .execute()
        )

    async def update(self, collection: str, doc_id: str, data: dict[str, Any]) -> None:
        """Merge top-level keys into the stored document.

        PostgREST cannot merge JSONB server-side, so this reads the current
        document and writes back the merged result.

        Raises:
            ValueError: If no document has this ID.
        """
        current = await self.get(collection, doc_id)
        if current is None:
            raise ValueError(f"No document to update: {collection}/{doc_id}")

        merged = {**current, **data}
        client = await self._get_client()
        await (
            client.table(self._table(collection))
            .update({"data": normalize(merged)})
            .eq("id", doc_id)
            .execute()
        )

    async def close(self) -> None:
        """Close the Supabase async client.

        If the client was never initialized this is a no-op.
        """
        if self._client is not None:
            await self._client.aclose()
            self._client = None
