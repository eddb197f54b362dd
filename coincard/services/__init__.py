"""Services package."""

from coincard.services.classification import (
    ClassificationClient,
    ClassificationError,
    ClassificationHTTPError,
    ClassificationRejectedError,
    ClassificationUnavailableError,
    MalformedResponseError,
)
from coincard.services.storage import (
    AuditStorageInterface,
    BackendError,
    CorruptDataError,
    InMemoryKeyValueStore,
    JsonFileKeyValueStore,
    KeyValueAuditStorage,
    KeyValueStoreInterface,
    NotFoundError,
    RecordStore,
    SQLiteKeyValueStore,
    StorageError,
    TagIndex,
    create_key_value_store,
)

__all__ = [
    # Classification
    "ClassificationClient",
    "ClassificationError",
    "ClassificationHTTPError",
    "ClassificationRejectedError",
    "ClassificationUnavailableError",
    "MalformedResponseError",
    # Storage
    "AuditStorageInterface",
    "BackendError",
    "CorruptDataError",
    "InMemoryKeyValueStore",
    "JsonFileKeyValueStore",
    "KeyValueAuditStorage",
    "KeyValueStoreInterface",
    "NotFoundError",
    "RecordStore",
    "SQLiteKeyValueStore",
    "StorageError",
    "TagIndex",
    "create_key_value_store",
]
