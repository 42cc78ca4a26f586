"""Async Cloud Firestore document store.

Provides ``AsyncFirestoreStore``, an async implementation of the
``DocumentStore`` protocol on top of ``google.cloud.firestore.AsyncClient``.
Firestore returns timestamps as ``DatetimeWithNanoseconds``; they are
converted to ``Timestamp`` on read and back on write so nanoseconds survive
a backup round trip.

Usage:
    from taskvault.adapters.firestore import AsyncFirestoreStore

    store = AsyncFirestoreStore(project="task-manager-prod")
    page = await store.list_page("tasks", 100)
    await store.close()
"""

import inspect
from typing import Any

from google.api_core.datetime_helpers import DatetimeWithNanoseconds
from google.cloud import firestore
from google.protobuf.timestamp_pb2 import Timestamp as TimestampPb

from taskvault.timestamps import Timestamp

_DOCUMENT_ID = "__name__"


def from_firestore(value: Any) -> Any:
    """Convert Firestore-native values to store-boundary values."""
    if isinstance(value, DatetimeWithNanoseconds):
        pb = value.timestamp_pb()
        return Timestamp(pb.seconds, pb.nanos)
    if isinstance(value, list):
        return [from_firestore(item) for item in value]
    if isinstance(value, dict):
        return {key: from_firestore(item) for key, item in value.items()}
    return value


def to_firestore(value: Any) -> Any:
    """Convert store-boundary values to what the Firestore client writes."""
    if isinstance(value, Timestamp):
        pb = TimestampPb(seconds=value.seconds, nanos=value.nanoseconds)
        return DatetimeWithNanoseconds.from_timestamp_pb(pb)
    if isinstance(value, (list, tuple)):
        return [to_firestore(item) for item in value]
    if isinstance(value, dict):
        return {key: to_firestore(item) for key, item in value.items()}
    return value


class AsyncFirestoreStore:
    """Async Firestore implementation of the ``DocumentStore`` protocol.

    Args:
        project: Google Cloud project ID.  ``None`` uses the environment's
            default project.
        database: Firestore database ID.
        credentials_file: Optional service-account JSON key file.
        client: Pre-built ``AsyncClient`` (takes precedence over the other
            arguments).
    """

    def __init__(
        self,
        project: str | None = None,
        database: str | None = None,
        credentials_file: str | None = None,
        client: firestore.AsyncClient | None = None,
    ) -> None:
        if client is None:
            credentials = None
            if credentials_file:
                from google.oauth2 import service_account

                credentials = service_account.Credentials.from_service_account_file(
                    credentials_file
                )
            client = firestore.AsyncClient(
                project=project, database=database, credentials=credentials
            )
        self._client: firestore.AsyncClient = client

    # ------------------------------------------------------------------
    # DocumentStore Methods
    # ------------------------------------------------------------------

    async def list_page(
        self,
        collection: str,
        limit: int,
        start_after: str | None = None,
    ) -> list[tuple[str, dict[str, Any]]]:
        """Read one page ordered by document ID, resuming after ``start_after``."""
        col_ref = self._client.collection(collection)
        query = col_ref.order_by(_DOCUMENT_ID)
        if start_after is not None:
            query = query.start_after({_DOCUMENT_ID: col_ref.document(start_after)})
        query = query.limit(limit)

        snapshots = await query.get()
        return [(snap.id, from_firestore(snap.to_dict() or {})) for snap in snapshots]

    async def get(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        snapshot = await self._client.collection(collection).document(doc_id).get()
        if not snapshot.exists:
            return None
        return from_firestore(snapshot.to_dict() or {})

    async def set(self, collection: str, doc_id: str, data: dict[str, Any]) -> None:
        await self._client.collection(collection).document(doc_id).set(to_firestore(data))

    async def update(self, collection: str, doc_id: str, data: dict[str, Any]) -> None:
        """Partial update; Firestore raises ``NotFound`` for a missing document."""
        await self._client.collection(collection).document(doc_id).update(to_firestore(data))

    async def close(self) -> None:
        # close() is sync on some client releases and a coroutine on others
        result = self._client.close()
        if inspect.isawaitable(result):
            await result
