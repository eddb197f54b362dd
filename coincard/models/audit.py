"""
Audit Models for CoinCard

Every mutation of the ledger and every call to the classification service
is recorded as an audit event. This provides:
1. Traceability of what was saved, edited or deleted and when
2. Debugging information when an analysis goes wrong
3. Ability to reconstruct the history of a record

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

import json
from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from coincard.models.record import utc_now


class AuditEventType(str, Enum):
    """
    Types of events we audit.

    Every step between capture and export has its own event type.
    """
    # Store lifecycle
    STORE_INITIALIZED = "store_initialized"
    STORE_RESET = "store_reset"

    # Classification
    CLASSIFICATION_COMPLETED = "classification_completed"
    CLASSIFICATION_FAILED = "classification_failed"
    CONNECTIVITY_FAILED = "connectivity_failed"

    # Drafts
    VALIDATION_FAILED = "validation_failed"
    DRAFT_DISCARDED = "draft_discarded"

    # Persistence
    RECORD_CREATED = "record_created"
    RECORD_UPDATED = "record_updated"
    RECORD_DELETED = "record_deleted"
    TAGS_ADDED = "tags_added"

    # Export
    EXPORT_COMPLETED = "export_completed"
    EXPORT_FAILED = "export_failed"

    # System events
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=utc_now,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'record', 'draft', 'export')"
    )
    entity_id: Optional[int] = Field(
        default=None,
        description="Record id this event relates to"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., one capture and save)"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    # Error information (if applicable)
    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }

    def to_json(self) -> str:
        return json.dumps(self.model_dump(mode="json"), ensure_ascii=False)


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.record_created(record_id, recipient, amount, correlation_id)
        event = AuditEventBuilder.classification_failed(reason, correlation_id)
    """

    @staticmethod
    def store_initialized(created: bool) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORE_INITIALIZED,
            entity_type="store",
            description=(
                "Record store created" if created
                else "Record store opened with existing data"
            ),
            details={"created": created},
        )

    @staticmethod
    def store_reset(correlation_id: Optional[UUID] = None) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORE_RESET,
            severity=AuditSeverity.WARNING,
            entity_type="store",
            correlation_id=correlation_id,
            description="All records and hashtags were removed",
            is_user_action=True,
        )

    @staticmethod
    def classification_completed(
        amount: str,
        recipient_found: bool,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CLASSIFICATION_COMPLETED,
            entity_type="draft",
            correlation_id=correlation_id,
            description=f"Image analysed: amount {amount}",
            details={
                "amount": amount,
                "recipient_found": recipient_found,
            },
        )

    @staticmethod
    def classification_failed(
        error_type: str,
        error_message: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CLASSIFICATION_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="draft",
            correlation_id=correlation_id,
            description=f"Image analysis failed: {error_type}",
            error_message=error_message,
            details={"error_type": error_type},
        )

    @staticmethod
    def connectivity_failed(url: str, correlation_id: UUID) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CONNECTIVITY_FAILED,
            severity=AuditSeverity.WARNING,
            correlation_id=correlation_id,
            description="No network connection",
            details={"probe_url": url},
        )

    @staticmethod
    def validation_failed(
        issues: list[dict],
        correlation_id: UUID,
        record_id: Optional[int] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VALIDATION_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="draft" if record_id is None else "record",
            entity_id=record_id,
            correlation_id=correlation_id,
            description=f"Draft rejected with {len(issues)} issues",
            details={"issues": issues},
            is_user_action=True,
        )

    @staticmethod
    def draft_discarded(correlation_id: UUID) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DRAFT_DISCARDED,
            entity_type="draft",
            correlation_id=correlation_id,
            description="User discarded the draft",
            is_user_action=True,
        )

    @staticmethod
    def record_created(
        record_id: int,
        recipient: str,
        amount: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECORD_CREATED,
            entity_type="record",
            entity_id=record_id,
            correlation_id=correlation_id,
            description=f"Record saved: {recipient} - {amount} VND",
            details={
                "recipient": recipient,
                "amount": amount,
            },
            is_user_action=True,
        )

    @staticmethod
    def record_updated(
        record_id: int,
        changed_fields: list[str],
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECORD_UPDATED,
            entity_type="record",
            entity_id=record_id,
            correlation_id=correlation_id,
            description=f"Record {record_id} updated",
            details={"changed_fields": changed_fields},
            is_user_action=True,
        )

    @staticmethod
    def record_deleted(record_id: int, correlation_id: UUID) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECORD_DELETED,
            entity_type="record",
            entity_id=record_id,
            correlation_id=correlation_id,
            description=f"Record {record_id} deleted",
            is_user_action=True,
        )

    @staticmethod
    def tags_added(tags: list[str], correlation_id: Optional[UUID]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TAGS_ADDED,
            entity_type="hashtags",
            correlation_id=correlation_id,
            description=f"{len(tags)} hashtags added to vocabulary",
            details={"hashtags": tags},
        )

    @staticmethod
    def export_completed(
        path: str,
        record_count: int,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPORT_COMPLETED,
            entity_type="export",
            correlation_id=correlation_id,
            description=f"Exported {record_count} records",
            details={
                "path": path,
                "record_count": record_count,
            },
            is_user_action=True,
        )

    @staticmethod
    def export_failed(error_message: str, correlation_id: UUID) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPORT_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="export",
            correlation_id=correlation_id,
            description="Export failed",
            error_message=error_message,
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )
