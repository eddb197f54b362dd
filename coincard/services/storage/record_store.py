"""
Record Store

Persists TransactionRecord values as ONE serialized array under a single key
of the key-value substrate, with the hashtag vocabulary under a second key.

TRADEOFFS:
- Every mutation rewrites the whole array. Write cost grows with the number
  of records, which is fine for a personal ledger and not meant for
  high-volume use.
- Ids are max(existing ids) + 1. Deleting the record holding the highest id
  lets the next create reuse that id.
- Initialization is single-flight. Every read-modify-write of the record
  array runs under one asyncio.Lock, so overlapping saves (a double-tapped
  Save, say) get distinct ids and none is lost.
"""

import asyncio
import json
from typing import Optional

import structlog
from pydantic import ValidationError

from coincard.config import StorageSettings, get_settings
from coincard.models.record import NewRecord, TransactionRecord
from coincard.services.storage.interface import (
    CorruptDataError,
    KeyValueStoreInterface,
    NotFoundError,
)
from coincard.services.storage.tag_index import TagIndex

logger = structlog.get_logger(__name__)


def next_record_id(records: list[TransactionRecord]) -> int:
    """Highest id plus one, or 1 for an empty store."""
    return max((record.id for record in records), default=0) + 1


class RecordStore:
    """
    CRUD over the record collection.

    Usage:
        store = RecordStore(SQLiteKeyValueStore("coincard.db"))
        await store.initialize()
        record = await store.create(NewRecord(...))
    """

    def __init__(
        self,
        backend: KeyValueStoreInterface,
        settings: Optional[StorageSettings] = None,
        tags: Optional[TagIndex] = None,
    ):
        self._backend = backend
        self._settings = settings or get_settings().storage
        self._records_key = self._settings.records_key
        self._tags = tags or TagIndex(backend, self._settings.hashtags_key)

        # Shared by every caller of initialize(); cleared again on failure
        self._init_task: Optional[asyncio.Future] = None
        self._write_lock = asyncio.Lock()

    @property
    def tags(self) -> TagIndex:
        return self._tags

    @property
    def is_initialized(self) -> bool:
        task = self._init_task
        return (
            task is not None
            and task.done()
            and not task.cancelled()
            and task.exception() is None
        )

    # -------------------------------------------------------------------------
    # Initialization
    # -------------------------------------------------------------------------

    async def initialize(self) -> bool:
        """
        Create the backing collections if they are absent.

        Safe to call from several places at once (app start and the first
        screen, say): every caller awaits the same underlying task, so the
        collection is created at most once and existing data is never
        overwritten.

        Returns:
            True if this store created the record collection
        """
        if self._init_task is None:
            self._init_task = asyncio.ensure_future(self._create_collections())

        task = self._init_task
        try:
            return await asyncio.shield(task)
        except Exception:
            if self._init_task is task and task.done():
                self._init_task = None
            raise

    async def _create_collections(self) -> bool:
        created = False
        if await self._backend.get(self._records_key) is None:
            await self._save_records([])
            created = True

        await self._tags.initialize()
        logger.info("record_store_initialized", key=self._records_key, created=created)
        return created

    # -------------------------------------------------------------------------
    # Serialization
    # -------------------------------------------------------------------------

    async def _load_records(self) -> list[TransactionRecord]:
        raw = await self._backend.get(self._records_key)
        if raw is None:
            return []

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise CorruptDataError(self._records_key, str(e)) from e

        if not isinstance(data, list):
            raise CorruptDataError(self._records_key, "expected a list of records")

        try:
            return [TransactionRecord.model_validate(item) for item in data]
        except ValidationError as e:
            raise CorruptDataError(self._records_key, str(e)) from e

    async def _save_records(self, records: list[TransactionRecord]) -> None:
        payload = json.dumps(
            [record.to_storage_dict() for record in records],
            ensure_ascii=False,
        )
        await self._backend.set(self._records_key, payload)

    # -------------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------------

    async def create(self, new_record: NewRecord) -> TransactionRecord:
        """
        Store a new record and assign its id.

        Args:
            new_record: Validated record content

        Returns:
            The stored record, id included

        Raises:
            StorageError: If the collection cannot be read or written
        """
        if not isinstance(new_record, NewRecord):
            raise TypeError("create() expects a validated NewRecord")

        await self.initialize()
        async with self._write_lock:
            records = await self._load_records()
            record = new_record.with_id(next_record_id(records))
            await self._save_records([*records, record])

        logger.debug("record_created", record_id=record.id)
        return record

    async def read_all(self) -> list[TransactionRecord]:
        """
        All records in stored order.

        Raises:
            CorruptDataError: If the stored array cannot be decoded
        """
        return await self._load_records()

    async def get(self, record_id: int) -> TransactionRecord:
        for record in await self._load_records():
            if record.id == record_id:
                return record
        raise NotFoundError(record_id)

    async def update(self, record: TransactionRecord) -> TransactionRecord:
        """
        Replace recipient, amount and hashtags of the record with this id.

        image_uri and created_at keep their stored values.

        Raises:
            NotFoundError: If no record has this id
        """
        await self.initialize()
        async with self._write_lock:
            records = await self._load_records()

            for index, existing in enumerate(records):
                if existing.id == record.id:
                    updated = existing.model_copy(update={
                        "recipient": record.recipient,
                        "amount": record.amount,
                        "hashtags": list(record.hashtags),
                    })
                    records[index] = updated
                    await self._save_records(records)
                    logger.debug("record_updated", record_id=record.id)
                    return updated

        raise NotFoundError(record.id)

    async def delete(self, record_id: int) -> TransactionRecord:
        """
        Remove the record with this id.

        Returns:
            The removed record

        Raises:
            NotFoundError: If no record has this id
        """
        await self.initialize()
        async with self._write_lock:
            records = await self._load_records()

            remaining = [record for record in records if record.id != record_id]
            if len(remaining) == len(records):
                raise NotFoundError(record_id)

            removed = next(record for record in records if record.id == record_id)
            await self._save_records(remaining)
        logger.debug("record_deleted", record_id=record_id)
        return removed

    async def search_by_recipient(self, text: str) -> list[TransactionRecord]:
        """Records whose recipient contains text, ignoring case."""
        return [
            record for record in await self._load_records()
            if record.matches_recipient(text)
        ]

    async def reset(self) -> None:
        """Empty the record collection and the hashtag vocabulary."""
        async with self._write_lock:
            await self._save_records([])
            await self._tags.reset()
        logger.warning("record_store_reset", key=self._records_key)
