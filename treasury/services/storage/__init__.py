"""
Storage Services Package

Provides abstract interfaces and concrete implementations for data storage.
Supabase is the production backend; the in-memory store backs tests and
offline runs.
"""

from treasury.services.storage.interface import (
    AuditStorageInterface,
    ConnectionError,
    FinancialStorageInterface,
    QueryError,
    StorageError,
)
from treasury.services.storage.memory import (
    InMemoryAuditStorage,
    InMemoryFinancialStorage,
)
from treasury.services.storage.supabase_store import (
    SupabaseAuditStorage,
    SupabaseClient,
    SupabaseFinancialStorage,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "FinancialStorageInterface",
    # Exceptions
    "ConnectionError",
    "QueryError",
    "StorageError",
    # In-memory implementation
    "InMemoryAuditStorage",
    "InMemoryFinancialStorage",
    # Supabase implementation
    "SupabaseAuditStorage",
    "SupabaseClient",
    "SupabaseFinancialStorage",
]
