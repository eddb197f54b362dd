"""
Data Models Package

This package contains all Pydantic models used in CoinCard.
All data flowing through the system must conform to these schemas.
"""

from coincard.models.record import (
    DEFAULT_SORT_MODE,
    NOT_FOUND,
    UNKNOWN_RECIPIENT,
    AnalysisOutcome,
    DraftRecord,
    ExportData,
    NewRecord,
    ParsedAnalysis,
    RecordQuery,
    RecordView,
    SortMode,
    TransactionRecord,
    ValidationIssue,
    ValidationResult,
    normalize_hashtags,
    utc_now,
)
from coincard.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Record models
    "DEFAULT_SORT_MODE",
    "NOT_FOUND",
    "UNKNOWN_RECIPIENT",
    "AnalysisOutcome",
    "DraftRecord",
    "ExportData",
    "NewRecord",
    "ParsedAnalysis",
    "RecordQuery",
    "RecordView",
    "SortMode",
    "TransactionRecord",
    "ValidationIssue",
    "ValidationResult",
    "normalize_hashtags",
    "utc_now",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
