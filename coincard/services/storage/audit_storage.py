"""
Audit Event Storage

Keeps audit events under one key of the key-value substrate, next to the
records they describe.

Audit events are append-only. The list is capped so the serialized value
stays small; the oldest events are dropped first.
"""

import json
from typing import Optional

import structlog
from pydantic import ValidationError

from coincard.config import StorageSettings, get_settings
from coincard.models.audit import AuditEvent
from coincard.services.storage.interface import (
    AuditStorageInterface,
    CorruptDataError,
    KeyValueStoreInterface,
    StorageError,
)

logger = structlog.get_logger(__name__)


class KeyValueAuditStorage(AuditStorageInterface):
    """Audit log stored as a JSON array of events."""

    def __init__(
        self,
        backend: KeyValueStoreInterface,
        settings: Optional[StorageSettings] = None,
    ):
        settings = settings or get_settings().storage
        self._backend = backend
        self._key = settings.audit_key
        self._max_events = settings.audit_max_events

    async def _load(self) -> list[dict]:
        raw = await self._backend.get(self._key)
        if raw is None:
            return []
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise CorruptDataError(self._key, str(e)) from e
        if not isinstance(data, list):
            raise CorruptDataError(self._key, "expected a list of events")
        return data

    async def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event, dropping the oldest beyond the cap."""
        try:
            events = await self._load()
            events.append(event.model_dump(mode="json"))
            events = events[-self._max_events:]
            await self._backend.set(self._key, json.dumps(events, ensure_ascii=False))
            return True
        except StorageError as e:
            # Audit logging must not break the main flow
            logger.warning("audit_event_not_persisted", error=str(e))
            return False

    async def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        """Newest events first."""
        events = []
        for item in reversed(await self._load()):
            try:
                events.append(AuditEvent.model_validate(item))
            except ValidationError:
                continue  # Skip malformed entries
            if len(events) >= limit:
                break
        return events
