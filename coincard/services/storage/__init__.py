"""
Storage Services Package

Provides the key-value substrate interface, its implementations, and the
record store, hashtag vocabulary and audit storage built on top of it.
"""

from coincard.services.storage.interface import (
    AuditStorageInterface,
    BackendError,
    CorruptDataError,
    KeyValueStoreInterface,
    NotFoundError,
    StorageError,
)
from coincard.services.storage.backends import (
    InMemoryKeyValueStore,
    JsonFileKeyValueStore,
    SQLiteKeyValueStore,
    create_key_value_store,
)
from coincard.services.storage.tag_index import TagIndex
from coincard.services.storage.record_store import RecordStore, next_record_id
from coincard.services.storage.audit_storage import KeyValueAuditStorage

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "KeyValueStoreInterface",
    # Exceptions
    "BackendError",
    "CorruptDataError",
    "NotFoundError",
    "StorageError",
    # Substrates
    "InMemoryKeyValueStore",
    "JsonFileKeyValueStore",
    "SQLiteKeyValueStore",
    "create_key_value_store",
    # Ledger storage
    "KeyValueAuditStorage",
    "RecordStore",
    "TagIndex",
    "next_record_id",
]
