"""Shared fixtures for the CoinCard test suite."""

import asyncio
from collections import Counter
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from coincard.config import AppSettings, ClassificationSettings, StorageSettings
from coincard.models.record import TransactionRecord
from coincard.services.storage import InMemoryKeyValueStore, RecordStore


BASE_TIME = datetime(2024, 3, 1, 8, 30, tzinfo=timezone.utc)


class CountingKeyValueStore(InMemoryKeyValueStore):
    """In-memory substrate that counts writes and yields on every call."""

    def __init__(self, initial=None):
        super().__init__(initial)
        self.writes = Counter()

    async def get(self, key):
        await asyncio.sleep(0)
        return await super().get(key)

    async def set(self, key, value):
        await asyncio.sleep(0)
        self.writes[key] += 1
        await super().set(key, value)


def make_record(
    record_id: int,
    recipient: str = "Nguyen Van A",
    amount="50000",
    minutes: int = 0,
    hashtags=None,
) -> TransactionRecord:
    return TransactionRecord(
        id=record_id,
        recipient=recipient,
        amount=Decimal(str(amount)),
        image_uri=f"file:///photos/{record_id}.jpg",
        created_at=BASE_TIME + timedelta(minutes=minutes),
        hashtags=hashtags or [],
    )


@pytest.fixture
def storage_settings() -> StorageSettings:
    return StorageSettings(backend="memory")


@pytest.fixture
def app_settings() -> AppSettings:
    return AppSettings(log_level="DEBUG")


@pytest.fixture
def classification_settings() -> ClassificationSettings:
    return ClassificationSettings(
        endpoint_url="https://classifier.test/analyze",
        connectivity_url="https://probe.test",
        max_attempts=1,
    )


@pytest.fixture
def backend() -> CountingKeyValueStore:
    return CountingKeyValueStore()


@pytest.fixture
def store(backend, storage_settings) -> RecordStore:
    return RecordStore(backend, storage_settings)
