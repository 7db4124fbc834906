"""Services package."""

from treasury.services.storage import (
    AuditStorageInterface,
    ConnectionError,
    FinancialStorageInterface,
    InMemoryAuditStorage,
    InMemoryFinancialStorage,
    QueryError,
    StorageError,
    SupabaseAuditStorage,
    SupabaseClient,
    SupabaseFinancialStorage,
)

__all__ = [
    # Storage services
    "AuditStorageInterface",
    "ConnectionError",
    "FinancialStorageInterface",
    "InMemoryAuditStorage",
    "InMemoryFinancialStorage",
    "QueryError",
    "StorageError",
    "SupabaseAuditStorage",
    "SupabaseClient",
    "SupabaseFinancialStorage",
]
