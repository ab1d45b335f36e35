"""Repository package for the canonical record store."""

from ufl_records.db.repositories.canonical_store import (
    CanonicalStoreProtocol,
    Collection,
    PersistenceError,
    SQLAlchemyCanonicalStore,
)

__all__ = [
    "CanonicalStoreProtocol",
    "Collection",
    "PersistenceError",
    "SQLAlchemyCanonicalStore",
]
