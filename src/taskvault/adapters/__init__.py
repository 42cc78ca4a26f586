"""Document store adapters package.

Provides the ``DocumentStore`` Protocol and concrete async adapters for
PostgreSQL, an in-memory store, and (optionally) Supabase and Firestore.

``AsyncSupabaseStore`` is only available when the ``supabase`` extra is
installed, ``AsyncFirestoreStore`` only with the ``firestore`` extra.  A
missing optional dependency does not prevent importing the rest of the
package.

Usage:
    from taskvault.adapters import DocumentStore, AsyncPostgresStore, InMemoryDocumentStore

    # With extras installed:
    from taskvault.adapters import AsyncSupabaseStore, AsyncFirestoreStore
"""

from taskvault.adapters.base import DocumentStore
from taskvault.adapters.memory import InMemoryDocumentStore
from taskvault.adapters.postgres import AsyncPostgresStore

__all__ = [
    "DocumentStore",
    "InMemoryDocumentStore",
    "AsyncPostgresStore",
]

try:
    from taskvault.adapters.supabase import AsyncSupabaseStore

    __all__.append("AsyncSupabaseStore")
except ImportError:
    # supabase extra not installed -- AsyncSupabaseStore unavailable
    pass

try:
    from taskvault.adapters.firestore import AsyncFirestoreStore

    __all__.append("AsyncFirestoreStore")
except ImportError:
    # firestore extra not installed -- AsyncFirestoreStore unavailable
    pass
