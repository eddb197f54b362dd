"""
Hashtag Vocabulary

Every hashtag ever entered, deduplicated, in the order it was first seen.
The vocabulary feeds the tag filter and the suggestions on the edit form.

DESIGN DECISION: The vocabulary only grows. Unselecting a tag on a draft
never removes it here, and deleting the last record that carries a tag
leaves it available as a filter. Only a store reset empties it.
"""

import json
from typing import Iterable, Optional

import structlog

from coincard.models.record import normalize_hashtags
from coincard.services.storage.interface import (
    CorruptDataError,
    KeyValueStoreInterface,
)

logger = structlog.get_logger(__name__)


class TagIndex:
    """Deduplicated, order-stable hashtag vocabulary under one key."""

    def __init__(
        self,
        backend: KeyValueStoreInterface,
        key: str = "hashtags",
    ):
        self._backend = backend
        self._key = key

    async def _load(self) -> Optional[list[str]]:
        raw = await self._backend.get(self._key)
        if raw is None:
            return None

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise CorruptDataError(self._key, str(e)) from e

        if not isinstance(data, list) or not all(isinstance(t, str) for t in data):
            raise CorruptDataError(self._key, "expected a list of strings")
        return data

    async def _save(self, tags: list[str]) -> None:
        await self._backend.set(self._key, json.dumps(tags, ensure_ascii=False))

    async def initialize(self) -> bool:
        """Create the empty vocabulary if absent. Returns True if created."""
        if await self._load() is not None:
            return False
        await self._save([])
        return True

    async def get_all(self) -> list[str]:
        """Current vocabulary (empty if never written)."""
        return await self._load() or []

    async def add_many(self, tags: Iterable[str]) -> list[str]:
        """
        Union new tags into the vocabulary.

        Tags are trimmed and empty ones dropped; a tag already present is
        not duplicated.

        Returns:
            The vocabulary after the union
        """
        current = await self.get_all()
        merged = normalize_hashtags([*current, *tags])

        if merged != current:
            known = set(current)
            await self._save(merged)
            logger.debug("hashtags_added", added=[t for t in merged if t not in known])
        return merged

    async def reset(self) -> None:
        await self._save([])
