"""
Audit Logger

DESIGN DECISION: Every mutation of the ledger and every analysis attempt is
logged. This provides:
1. Traceability of what was saved, edited and deleted
2. Debugging capability when the model reply is unusable
3. A history the user can inspect

The audit logger:
- Is async so it fits the store's call sites
- Gracefully handles failures (doesn't break a save if logging fails)
- Supports correlation IDs to trace related events
"""

import logging
from typing import Optional
from uuid import UUID, uuid4

import structlog

from coincard.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity
from coincard.services.storage import AuditStorageInterface


_PROCESSORS = [
    structlog.stdlib.filter_by_level,
    structlog.stdlib.add_logger_name,
    structlog.stdlib.add_log_level,
    structlog.stdlib.PositionalArgumentsFormatter(),
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.format_exc_info,
    structlog.processors.UnicodeDecoder(),
    structlog.processors.JSONRenderer(ensure_ascii=False),
]

# Configure structlog for local logging
structlog.configure(
    processors=_PROCESSORS,
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_logging(level: str = "INFO") -> None:
    """Route structlog output through the stdlib root logger at level."""
    level = level.upper()
    logging.basicConfig(format="%(message)s", level=level)
    logging.getLogger().setLevel(level)


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. Audit storage, when one is configured
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger("coincard.audit")

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        elif event.severity == AuditSeverity.DEBUG:
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return await self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_store_initialized(self, created: bool) -> None:
        await self.log(AuditEventBuilder.store_initialized(created))

    async def log_store_reset(self, correlation_id: Optional[UUID] = None) -> None:
        await self.log(AuditEventBuilder.store_reset(correlation_id))

    async def log_classification_completed(
        self,
        amount: str,
        recipient_found: bool,
        correlation_id: UUID,
    ) -> None:
        """Log a usable classification reply."""
        await self.log(AuditEventBuilder.classification_completed(
            amount=amount,
            recipient_found=recipient_found,
            correlation_id=correlation_id,
        ))

    async def log_classification_failed(
        self,
        error_type: str,
        error_message: str,
        correlation_id: UUID,
    ) -> None:
        """Log a failed classification call."""
        await self.log(AuditEventBuilder.classification_failed(
            error_type=error_type,
            error_message=error_message,
            correlation_id=correlation_id,
        ))

    async def log_connectivity_failed(self, url: str, correlation_id: UUID) -> None:
        await self.log(AuditEventBuilder.connectivity_failed(url, correlation_id))

    async def log_validation_failed(
        self,
        issues: list[dict],
        correlation_id: UUID,
        record_id: Optional[int] = None,
    ) -> None:
        await self.log(AuditEventBuilder.validation_failed(
            issues=issues,
            correlation_id=correlation_id,
            record_id=record_id,
        ))

    async def log_draft_discarded(self, correlation_id: UUID) -> None:
        await self.log(AuditEventBuilder.draft_discarded(correlation_id))

    async def log_record_created(
        self,
        record_id: int,
        recipient: str,
        amount: str,
        correlation_id: UUID,
    ) -> None:
        """Log record save."""
        await self.log(AuditEventBuilder.record_created(
            record_id=record_id,
            recipient=recipient,
            amount=amount,
            correlation_id=correlation_id,
        ))

    async def log_record_updated(
        self,
        record_id: int,
        changed_fields: list[str],
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.record_updated(
            record_id=record_id,
            changed_fields=changed_fields,
            correlation_id=correlation_id,
        ))

    async def log_record_deleted(self, record_id: int, correlation_id: UUID) -> None:
        await self.log(AuditEventBuilder.record_deleted(record_id, correlation_id))

    async def log_tags_added(
        self,
        tags: list[str],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.tags_added(tags, correlation_id))

    async def log_export_completed(
        self,
        path: str,
        record_count: int,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.export_completed(
            path=path,
            record_count=record_count,
            correlation_id=correlation_id,
        ))

    async def log_export_failed(self, error_message: str, correlation_id: UUID) -> None:
        await self.log(AuditEventBuilder.export_failed(error_message, correlation_id))

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        await self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new user action (e.g., capture and save).
    Pass it through all subsequent operations.
    """
    return uuid4()
