"""
Main Orchestrator for CoinCard

This module ties together all the components and defines the
end-to-end flows for:
1. Capture (photo → classify → parse → edit draft → validate → save)
2. Ledger (load → search/filter/sort → edit/delete → export)

DESIGN DECISION: The orchestrator enforces the boundaries:
- Nothing is stored until the user saves an edited draft
- A failed analysis never blocks the user; it becomes an empty draft
- Record write failures are never swallowed
- Every step is audited

Each step is awaited before the next one starts: a save completes before
the vocabulary is refreshed, and both before the list is reloaded.
"""

import asyncio
from datetime import datetime, tzinfo
from pathlib import Path
from typing import Optional
from uuid import UUID

import structlog

from coincard.audit import AuditLogger, configure_logging, create_correlation_id
from coincard.config import Settings, get_settings
from coincard.export import ExportError, prepare_export_data, write_workbook
from coincard.models.record import (
    AnalysisOutcome,
    DraftRecord,
    RecordQuery,
    RecordView,
    TransactionRecord,
)
from coincard.parsing import parse_analysis_response
from coincard.queries import RecordQueryExecutor
from coincard.services.classification import (
    ClassificationClient,
    ClassificationError,
    ClassificationUnavailableError,
)
from coincard.services.storage import (
    KeyValueAuditStorage,
    NotFoundError,
    RecordStore,
    StorageError,
    create_key_value_store,
)
from coincard.validation import DraftValidationError, DraftValidator

logger = structlog.get_logger(__name__)


def _issue_dicts(error: DraftValidationError) -> list[dict]:
    return [
        {"field": i.field, "type": i.issue_type, "message": i.message}
        for i in error.result.issues
        if i.severity == "error"
    ]


async def _grow_vocabulary(
    store: RecordStore,
    tags: list[str],
    audit_logger: Optional[AuditLogger],
    correlation_id: UUID,
) -> bool:
    """
    Add a stored record's tags to the vocabulary.

    The record is already written at this point, so a vocabulary failure is
    logged and reported as False instead of failing the save.
    """
    try:
        await store.tags.add_many(tags)
        return True
    except StorageError as e:
        logger.warning("vocabulary_not_updated", error=str(e), hashtags=tags)
        if audit_logger:
            await audit_logger.log_error(
                error_type=type(e).__name__,
                error_message=str(e),
                details={"operation": "add_hashtags", "hashtags": tags},
                correlation_id=correlation_id,
            )
        return False


class CaptureFlow:
    """
    Orchestrates the capture flow.

    Flow:
    1. Analyse → send the photo to the classification service
    2. Parse → turn the reply into a suggested amount and recipient
    3. Edit → the user corrects the draft and picks hashtags
    4. Save → validate, store the record, grow the vocabulary

    The parsed values are only ever a SUGGESTION in the draft.
    """

    def __init__(
        self,
        store: RecordStore,
        client: Optional[ClassificationClient] = None,
        validator: Optional[DraftValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
        settings: Optional[Settings] = None,
    ):
        self._settings = settings or get_settings()
        self._store = store
        self._client = client or ClassificationClient(self._settings.classification)
        self._validator = validator or DraftValidator(self._settings.app)
        self._audit_logger = audit_logger

    @property
    def client(self) -> ClassificationClient:
        return self._client

    async def analyze_photo(
        self,
        image_bytes: bytes,
        image_uri: str,
        correlation_id: Optional[UUID] = None,
    ) -> tuple[DraftRecord, AnalysisOutcome]:
        """
        Analyse a captured photo and build the draft shown to the user.

        Never raises for a classification failure: the draft falls back to
        amount 0 and an empty recipient so the record can be completed by
        hand.

        Returns:
            (draft, outcome)
        """
        correlation_id = correlation_id or create_correlation_id()

        try:
            reply = await self._client.classify_image(image_bytes)
        except ClassificationError as e:
            logger.info("analysis_failed", error_type=type(e).__name__, error=str(e))
            if self._audit_logger:
                if isinstance(e, ClassificationUnavailableError):
                    await self._audit_logger.log_connectivity_failed(
                        self._settings.classification.connectivity_url,
                        correlation_id,
                    )
                await self._audit_logger.log_classification_failed(
                    error_type=type(e).__name__,
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
            outcome = AnalysisOutcome(
                success=False,
                message=_failure_message(e),
                error_type=type(e).__name__,
            )
            return DraftRecord.empty(image_uri), outcome

        analysis = parse_analysis_response(reply)

        if self._audit_logger:
            await self._audit_logger.log_classification_completed(
                amount=str(analysis.amount),
                recipient_found=analysis.recipient_found,
                correlation_id=correlation_id,
            )

        outcome = AnalysisOutcome(
            success=True,
            message="Analysis complete. Please check the details.",
            analysis=analysis,
        )
        return DraftRecord.from_analysis(analysis, image_uri), outcome

    def manual_draft(self) -> DraftRecord:
        """Blank draft for manual entry, bound to the placeholder image."""
        return DraftRecord(image_uri=self._settings.app.placeholder_image_uri)

    async def save_draft(
        self,
        draft: DraftRecord,
        correlation_id: Optional[UUID] = None,
    ) -> TransactionRecord:
        """
        Validate and store a draft.

        The record is stored first; the draft's hashtags are added to the
        vocabulary only after that write has completed. A vocabulary failure
        after the record is stored is audited, not raised.

        Raises:
            DraftValidationError: If the draft has errors (nothing written)
            StorageError: If the record cannot be written
        """
        correlation_id = correlation_id or create_correlation_id()

        try:
            new_record = self._validator.to_new_record(draft)
        except DraftValidationError as e:
            if self._audit_logger:
                await self._audit_logger.log_validation_failed(
                    issues=_issue_dicts(e),
                    correlation_id=correlation_id,
                )
            raise

        record = await self._store.create(new_record)

        if self._audit_logger:
            await self._audit_logger.log_record_created(
                record_id=record.id,
                recipient=record.recipient,
                amount=str(record.amount),
                correlation_id=correlation_id,
            )

        if record.hashtags:
            added = await _grow_vocabulary(
                self._store, record.hashtags, self._audit_logger, correlation_id
            )
            if added and self._audit_logger:
                await self._audit_logger.log_tags_added(record.hashtags, correlation_id)

        return record

    async def add_hashtag(self, text: str) -> list[str]:
        """
        Add one tag typed by the user to the vocabulary.

        Returns:
            The refreshed vocabulary
        """
        vocabulary = await self._store.tags.add_many([text])
        if self._audit_logger and text.strip():
            await self._audit_logger.log_tags_added([text.strip()])
        return vocabulary

    async def available_hashtags(self) -> list[str]:
        return await self._store.tags.get_all()

    async def discard_draft(self, correlation_id: Optional[UUID] = None) -> None:
        """Record that the user closed the draft without saving."""
        if self._audit_logger:
            await self._audit_logger.log_draft_discarded(
                correlation_id or create_correlation_id()
            )


class LedgerFlow:
    """
    Orchestrates the record list.

    Every view is built from a fresh read_all(); nothing is cached between
    calls, so the list always reflects what is actually stored.
    """

    def __init__(
        self,
        store: RecordStore,
        validator: Optional[DraftValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
        settings: Optional[Settings] = None,
    ):
        self._settings = settings or get_settings()
        self._store = store
        self._executor = RecordQueryExecutor(store)
        self._validator = validator or DraftValidator(self._settings.app)
        self._audit_logger = audit_logger

    async def initialize(self) -> bool:
        """Prepare the store. Returns True if it was created just now."""
        created = await self._store.initialize()
        if self._audit_logger:
            await self._audit_logger.log_store_initialized(created)
        return created

    async def load_view(self, query: Optional[RecordQuery] = None) -> RecordView:
        """Current records after search, tag filter and sort, with total."""
        return await self._executor.execute(query)

    async def available_hashtags(self) -> list[str]:
        return await self._executor.available_hashtags()

    async def update_record(
        self,
        record_id: int,
        draft: DraftRecord,
        correlation_id: Optional[UUID] = None,
    ) -> TransactionRecord:
        """
        Apply an edit to a stored record.

        Raises:
            NotFoundError: If the record no longer exists
            DraftValidationError: If the edit has errors
        """
        correlation_id = correlation_id or create_correlation_id()
        existing = await self._store.get(record_id)

        try:
            edited = self._validator.validate_update(existing, draft)
        except DraftValidationError as e:
            if self._audit_logger:
                await self._audit_logger.log_validation_failed(
                    issues=_issue_dicts(e),
                    correlation_id=correlation_id,
                    record_id=record_id,
                )
            raise

        updated = await self._store.update(edited)

        if updated.hashtags:
            await _grow_vocabulary(
                self._store, updated.hashtags, self._audit_logger, correlation_id
            )

        if self._audit_logger:
            changed = [
                name for name in ("recipient", "amount", "hashtags")
                if getattr(existing, name) != getattr(updated, name)
            ]
            await self._audit_logger.log_record_updated(
                record_id=record_id,
                changed_fields=changed,
                correlation_id=correlation_id,
            )

        return updated

    async def delete_record(
        self,
        record_id: int,
        correlation_id: Optional[UUID] = None,
    ) -> TransactionRecord:
        """
        Delete a record.

        Raises:
            NotFoundError: If the record no longer exists
        """
        correlation_id = correlation_id or create_correlation_id()

        try:
            removed = await self._store.delete(record_id)
        except NotFoundError:
            logger.warning("delete_missing_record", record_id=record_id)
            raise

        if self._audit_logger:
            await self._audit_logger.log_record_deleted(record_id, correlation_id)
        return removed

    async def export(
        self,
        query: Optional[RecordQuery] = None,
        directory: Optional[str] = None,
        now: Optional[datetime] = None,
        tz: Optional[tzinfo] = None,
        correlation_id: Optional[UUID] = None,
    ) -> Path:
        """
        Export the records of the current view to an .xlsx file.

        Returns:
            Path of the written workbook

        Raises:
            ExportError: If the file cannot be written
        """
        correlation_id = correlation_id or create_correlation_id()
        view = await self.load_view(query)
        data = prepare_export_data(view.records, now=now, tz=tz)
        target = directory or self._settings.app.export_dir

        try:
            path = await asyncio.to_thread(write_workbook, data, target, now, tz)
        except ExportError as e:
            if self._audit_logger:
                await self._audit_logger.log_export_failed(str(e), correlation_id)
            raise

        if self._audit_logger:
            await self._audit_logger.log_export_completed(
                path=str(path),
                record_count=data.record_count,
                correlation_id=correlation_id,
            )
        return path

    async def reset(self, correlation_id: Optional[UUID] = None) -> None:
        """Remove every record and hashtag."""
        await self._store.reset()
        if self._audit_logger:
            await self._audit_logger.log_store_reset(correlation_id)


def _failure_message(error: ClassificationError) -> str:
    if isinstance(error, ClassificationUnavailableError):
        return "No network connection. Enter the details manually or try again."
    return "Could not analyse the image. Enter the details manually or take the photo again."


def create_app_components(
    settings: Optional[Settings] = None,
) -> tuple[CaptureFlow, LedgerFlow, RecordStore]:
    """
    Factory function to create all application components.

    Args:
        settings: Settings to use. Defaults to the cached environment settings.

    Returns:
        (capture_flow, ledger_flow, record_store)
    """
    settings = settings or get_settings()
    configure_logging(settings.app.log_level)

    backend = create_key_value_store(settings.storage)
    store = RecordStore(backend, settings.storage)
    audit_logger = AuditLogger(KeyValueAuditStorage(backend, settings.storage))
    validator = DraftValidator(settings.app)

    capture_flow = CaptureFlow(
        store=store,
        client=ClassificationClient(settings.classification),
        validator=validator,
        audit_logger=audit_logger,
        settings=settings,
    )
    ledger_flow = LedgerFlow(
        store=store,
        validator=validator,
        audit_logger=audit_logger,
        settings=settings,
    )

    return capture_flow, ledger_flow, store
