"""Record query package."""

from coincard.queries.executor import (
    RecordQueryExecutor,
    apply_query,
    filter_by_hashtag,
    search_records,
    sort_records,
    sum_amounts,
)

__all__ = [
    "RecordQueryExecutor",
    "apply_query",
    "filter_by_hashtag",
    "search_records",
    "sort_records",
    "sum_amounts",
]
