"""
Record Query Layer

DESIGN DECISION: Querying is a pure, synchronous transformation over a
snapshot of the store (RecordStore.read_all()). The list screen recomputes
the view whenever the search text, tag filter or sort mode changes.

Composition order is fixed:
    search -> tag filter -> sort -> total
"""

from decimal import Decimal
from typing import Iterable, Optional

from coincard.models.record import (
    RecordQuery,
    RecordView,
    SortMode,
    TransactionRecord,
)
from coincard.services.storage import RecordStore


_SORT_KEYS = {
    SortMode.AMOUNT_ASC: lambda record: record.amount,
    SortMode.AMOUNT_DESC: lambda record: record.amount,
    SortMode.DATE_ASC: lambda record: record.created_at,
    SortMode.DATE_DESC: lambda record: record.created_at,
}


def search_records(
    records: Iterable[TransactionRecord],
    text: str,
) -> list[TransactionRecord]:
    """Records whose recipient contains text (case-insensitive). Empty text keeps all."""
    if not text:
        return list(records)
    return [record for record in records if record.matches_recipient(text)]


def filter_by_hashtag(
    records: Iterable[TransactionRecord],
    hashtag: Optional[str],
) -> list[TransactionRecord]:
    """Records carrying hashtag. No filter when hashtag is None or empty."""
    if not hashtag:
        return list(records)
    return [record for record in records if record.has_hashtag(hashtag)]


def sort_records(
    records: Iterable[TransactionRecord],
    mode: SortMode,
) -> list[TransactionRecord]:
    """
    Sort by amount or creation time.

    Python's sort is stable in both directions, so equal keys keep their
    original relative order.
    """
    return sorted(records, key=_SORT_KEYS[mode], reverse=mode.descending)


def sum_amounts(records: Iterable[TransactionRecord]) -> Decimal:
    return sum((record.amount for record in records), Decimal(0))


def apply_query(
    records: Iterable[TransactionRecord],
    query: Optional[RecordQuery] = None,
) -> RecordView:
    """Build the displayed view: search, tag filter, sort, then total."""
    query = query or RecordQuery()

    result = search_records(records, query.search)
    result = filter_by_hashtag(result, query.hashtag)
    result = sort_records(result, query.sort_mode)

    return RecordView(
        query=query,
        records=result,
        total_amount=sum_amounts(result),
        record_count=len(result),
    )


class RecordQueryExecutor:
    """
    Runs a RecordQuery against the current contents of the store.

    GUARANTEES:
    - Only returns records that are actually stored
    - The total always matches the returned records
    """

    def __init__(self, store: RecordStore):
        self._store = store

    async def execute(self, query: Optional[RecordQuery] = None) -> RecordView:
        records = await self._store.read_all()
        return apply_query(records, query)

    async def available_hashtags(self) -> list[str]:
        """Values offered by the tag filter."""
        return await self._store.tags.get_all()
