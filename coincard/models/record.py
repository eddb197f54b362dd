"""
Core Data Models for CoinCard

These models define the schemas for all data flowing through the system.
They are designed to:
1. Enforce type safety at runtime
2. Provide clear validation error messages
3. Serialize to the same layout the mobile app stores (camelCase keys)

DESIGN DECISION: Amounts are Decimal, never float. VND has no fractional
subunit, so persisted amounts are written back as plain integers; a
fractional amount (never produced by the validator) is kept as exact text.
"""

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Iterable, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_serializer,
    field_validator,
)
from pydantic.alias_generators import to_camel


# Sentinel written by the parser when no recipient marker was found.
# It must never reach storage.
NOT_FOUND = "Not found"

# Stored when the user saves without a recipient
UNKNOWN_RECIPIENT = "Unknown"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def normalize_hashtags(tags: Optional[Iterable[str]]) -> list[str]:
    """
    Trim tags, drop empties and duplicates.

    The first occurrence wins so display order follows insertion order.
    """
    if not tags:
        return []

    seen = set()
    result = []
    for tag in tags:
        if tag is None:
            continue
        cleaned = str(tag).strip()
        if cleaned and cleaned not in seen:
            seen.add(cleaned)
            result.append(cleaned)
    return result


def _ensure_aware(value: datetime) -> datetime:
    # Naive timestamps are read as UTC so date sorting never mixes kinds
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


# =============================================================================
# ENUMS
# =============================================================================

class SortMode(str, Enum):
    """
    Ordering of the record list.

    Exactly one mode is active at a time. The label is derived from the
    value, so ascending modes are always labelled ascending.
    """
    AMOUNT_ASC = "amount_asc"
    AMOUNT_DESC = "amount_desc"
    DATE_ASC = "date_asc"      # oldest first
    DATE_DESC = "date_desc"    # newest first

    @property
    def label(self) -> str:
        return {
            SortMode.AMOUNT_ASC: "Amount (low to high)",
            SortMode.AMOUNT_DESC: "Amount (high to low)",
            SortMode.DATE_ASC: "Date (oldest first)",
            SortMode.DATE_DESC: "Date (newest first)",
        }[self]

    @property
    def descending(self) -> bool:
        return self in (SortMode.AMOUNT_DESC, SortMode.DATE_DESC)


DEFAULT_SORT_MODE = SortMode.AMOUNT_DESC


# =============================================================================
# RECORD MODELS
# =============================================================================

class _StoredModel(BaseModel):
    """Base for models persisted with camelCase keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )

    @field_validator("hashtags", mode="before", check_fields=False)
    @classmethod
    def clean_hashtags(cls, v):
        if v is None:
            return []
        if isinstance(v, str):
            raise ValueError("hashtags must be a list of strings")
        return normalize_hashtags(v)

    @field_validator("created_at", check_fields=False)
    @classmethod
    def make_aware(cls, v: datetime) -> datetime:
        return _ensure_aware(v)

    @field_serializer("amount", when_used="json", check_fields=False)
    def serialize_amount(self, v: Decimal):
        if v == v.to_integral_value():
            return int(v)
        # Exact text, a float would round large values
        return str(v)

    def to_storage_dict(self) -> dict:
        """Serialize the way records are written to the substrate."""
        return self.model_dump(mode="json", by_alias=True)


class NewRecord(_StoredModel):
    """
    A validated record that has not been stored yet.

    This is the only input RecordStore.create accepts. The store
    assigns the id.
    """

    recipient: str = Field(
        ...,
        min_length=1,
        description="Who received the money"
    )
    amount: Decimal = Field(
        ...,
        ge=0,
        description="Amount in VND"
    )
    image_uri: str = Field(
        ...,
        min_length=1,
        description="Reference to the captured or placeholder image"
    )
    created_at: datetime = Field(
        default_factory=utc_now,
        description="When the record was saved"
    )
    hashtags: list[str] = Field(default_factory=list)

    def with_id(self, record_id: int) -> "TransactionRecord":
        return TransactionRecord(id=record_id, **self.model_dump())


class TransactionRecord(_StoredModel):
    """
    A persisted transaction entry.

    image_uri and created_at are fixed at creation; updates only ever
    touch recipient, amount and hashtags.
    """

    id: int = Field(
        ...,
        ge=1,
        description="Store-assigned identifier"
    )
    recipient: str = Field(..., min_length=1)
    amount: Decimal = Field(..., ge=0)
    image_uri: str = Field(..., min_length=1)
    created_at: datetime
    hashtags: list[str] = Field(default_factory=list)

    def has_hashtag(self, tag: str) -> bool:
        return tag in self.hashtags

    def matches_recipient(self, text: str) -> bool:
        """Case-insensitive substring match; empty text matches everything."""
        return text.casefold() in self.recipient.casefold()


# =============================================================================
# CAPTURE MODELS
# =============================================================================

class ParsedAnalysis(BaseModel):
    """
    Structured reading of a classification reply.

    This is a SUGGESTION. The user edits it before anything is saved.
    """

    amount: Decimal = Field(
        default=Decimal(0),
        ge=0,
        description="Normalized amount in VND (0 when no amount marker)"
    )
    recipient: str = Field(
        default=NOT_FOUND,
        description="Recipient name or the 'Not found' sentinel"
    )

    @property
    def recipient_found(self) -> bool:
        return self.recipient != NOT_FOUND

    @property
    def recipient_for_editing(self) -> str:
        """Recipient as shown in the edit field (sentinel becomes empty)."""
        return self.recipient if self.recipient_found else ""


class AnalysisOutcome(BaseModel):
    """
    What happened when a photo was analysed.

    A failed analysis still produces a usable (empty) draft; the outcome
    carries the message shown next to it.
    """

    success: bool
    message: str = ""
    analysis: ParsedAnalysis = Field(default_factory=ParsedAnalysis)
    error_type: Optional[str] = Field(
        default=None,
        description="Exception class name when the analysis failed"
    )

    @property
    def needs_manual_entry(self) -> bool:
        """True when the user has to type at least one field."""
        return (
            not self.success
            or self.analysis.amount == 0
            or not self.analysis.recipient_found
        )


class DraftRecord(BaseModel):
    """
    An in-progress record being edited by the user.

    Fields hold what the user sees, so the amount is kept as typed text.
    Nothing here is validated until save.
    """

    model_config = ConfigDict(validate_assignment=True)

    recipient: str = ""
    amount_text: str = ""
    image_uri: Optional[str] = None
    hashtags: list[str] = Field(default_factory=list)

    @classmethod
    def from_analysis(
        cls,
        analysis: ParsedAnalysis,
        image_uri: Optional[str],
    ) -> "DraftRecord":
        return cls(
            recipient=analysis.recipient_for_editing,
            amount_text=str(analysis.amount),
            image_uri=image_uri,
        )

    @classmethod
    def empty(cls, image_uri: Optional[str] = None) -> "DraftRecord":
        """Draft shown when the analysis failed: amount 0, no recipient."""
        return cls.from_analysis(ParsedAnalysis(), image_uri)

    @classmethod
    def for_record(cls, record: TransactionRecord) -> "DraftRecord":
        """Draft used to edit an existing record."""
        return cls(
            recipient=record.recipient,
            amount_text=str(record.amount),
            image_uri=record.image_uri,
            hashtags=list(record.hashtags),
        )

    def toggle_hashtag(self, tag: str) -> None:
        """Select or unselect a tag on this draft only."""
        tag = tag.strip()
        if not tag:
            return
        if tag in self.hashtags:
            self.hashtags = [h for h in self.hashtags if h != tag]
        else:
            self.hashtags = [*self.hashtags, tag]

    def select_hashtag(self, tag: str) -> None:
        tag = tag.strip()
        if tag and tag not in self.hashtags:
            self.hashtags = [*self.hashtags, tag]


# =============================================================================
# QUERY MODELS
# =============================================================================

class RecordQuery(BaseModel):
    """
    What the list screen is currently showing.

    Applied in order: search, then tag filter, then sort.
    """

    search: str = Field(
        default="",
        description="Case-insensitive recipient substring (empty = all)"
    )
    hashtag: Optional[str] = Field(
        default=None,
        description="Only records carrying this tag (None = no filter)"
    )
    sort_mode: SortMode = DEFAULT_SORT_MODE


class RecordView(BaseModel):
    """The filtered, sorted list plus its aggregate."""

    query: RecordQuery
    records: list[TransactionRecord] = Field(default_factory=list)
    total_amount: Decimal = Field(default=Decimal(0), ge=0)
    record_count: int = Field(default=0, ge=0)

    @property
    def is_empty(self) -> bool:
        return self.record_count == 0


# =============================================================================
# EXPORT MODELS
# =============================================================================

class ExportData(BaseModel):
    """Plain aggregate handed to the export writer."""

    records: list[TransactionRecord] = Field(default_factory=list)
    total_amount: Decimal = Field(default=Decimal(0), ge=0)
    export_date: str
    record_count: int = Field(ge=0)


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_format', 'suspicious_value')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )
    suggested_fix: Optional[str] = Field(
        default=None,
        description="Suggested fix if available"
    )


class ValidationResult(BaseModel):
    """
    Result of validating a draft before save.

    Errors block the save. Warnings are shown but the user may proceed.
    """

    validated_at: datetime = Field(default_factory=utc_now)
    is_valid: bool
    issues: list[ValidationIssue] = Field(default_factory=list)
    warnings: list[str] = Field(
        default_factory=list,
        description="Non-blocking warnings"
    )

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")

    def issues_for(self, field: str) -> list[ValidationIssue]:
        return [issue for issue in self.issues if issue.field == field]
