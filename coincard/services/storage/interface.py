"""
Abstract Storage Interface

DESIGN DECISION: The ledger depends on nothing more than "read value by key"
and "write value by key", each atomic for a single key. This allows us to:
1. Keep records in SQLite on the device, or in plain files
2. Use in-memory storage for testing
3. Keep the record store decoupled from the substrate

All records live under ONE key as a serialized array, the hashtag
vocabulary under another. Every mutation rewrites the whole value.
"""

from abc import ABC, abstractmethod
from typing import Optional

from coincard.models.audit import AuditEvent


class KeyValueStoreInterface(ABC):
    """
    Abstract interface for the persistence substrate.

    Any substrate (SQLite, files, memory) must implement these methods.
    """

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        """
        Read the value stored under a key.

        Args:
            key: Storage key

        Returns:
            The stored text, or None if the key was never written

        Raises:
            BackendError: If the substrate cannot be read
        """
        pass

    @abstractmethod
    async def set(self, key: str, value: str) -> None:
        """
        Replace the value stored under a key.

        The write is atomic: readers see either the old or the new value.

        Raises:
            BackendError: If the substrate cannot be written
        """
        pass

    @abstractmethod
    async def delete(self, key: str) -> None:
        """
        Remove a key. Removing an absent key is not an error.

        Raises:
            BackendError: If the substrate cannot be written
        """
        pass

    async def close(self) -> None:
        """Release any resources held by the substrate."""
        return None


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """
        Get the most recent audit events.

        Returns:
            List of recent events (newest first)
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class BackendError(StorageError):
    """The substrate could not be read or written."""
    pass


class CorruptDataError(StorageError):
    """A stored value could not be decoded."""

    def __init__(self, key: str, message: str):
        self.key = key
        super().__init__(f"Corrupt data under '{key}': {message}")


class NotFoundError(StorageError):
    """No record with the requested id."""

    def __init__(self, record_id: int):
        self.record_id = record_id
        super().__init__(f"Record not found: {record_id}")
