"""
Draft Validation

Checks an edited draft before it reaches the store. A draft with errors is
rejected with nothing written; warnings are shown but the user may save.

CHECKS:
- Amount present, numeric, whole and not negative (errors)
- Image reference present for new records (error)
- Recipient present (warning, saved as "Unknown"; error if
  require_recipient is set)
- Amount of zero or above max_record_amount (warnings)

IMPORTANT: Validation NEVER silently fixes the amount.
The only substitution is the documented "Unknown" recipient.
"""

from decimal import Decimal
from datetime import datetime
from typing import Optional

from coincard.config import AppSettings, get_settings
from coincard.models.record import (
    DraftRecord,
    NewRecord,
    TransactionRecord,
    ValidationIssue,
    ValidationResult,
    normalize_hashtags,
    utc_now,
)
from coincard.parsing.money import InvalidAmountError, parse_formatted_money


class DraftValidationError(ValueError):
    """The draft has errors and cannot be saved."""

    def __init__(self, result: ValidationResult):
        self.result = result
        messages = "; ".join(
            issue.message for issue in result.issues if issue.severity == "error"
        )
        super().__init__(f"Draft cannot be saved: {messages}")


class DraftValidator:
    """Validates drafts and turns valid ones into storable records."""

    def __init__(self, settings: Optional[AppSettings] = None):
        self._settings = settings or get_settings().app

    def _check_amount(self, amount_text: str) -> tuple[Optional[Decimal], list[ValidationIssue]]:
        issues = []

        if not amount_text or not amount_text.strip():
            issues.append(ValidationIssue(
                field="amount",
                issue_type="missing",
                message="Amount is required",
                severity="error",
                suggested_fix="Enter the amount shown on the note or receipt",
            ))
            return None, issues

        try:
            amount = parse_formatted_money(amount_text)
        except InvalidAmountError:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_format",
                message=f"Amount '{amount_text}' is not a number",
                severity="error",
                suggested_fix="Use digits only, e.g. 50,000",
            ))
            return None, issues

        if amount < 0:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_value",
                message="Amount cannot be negative",
                severity="error",
            ))
            return None, issues

        if amount != amount.to_integral_value():
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_value",
                message="Amount must be a whole number of đồng",
                severity="error",
                suggested_fix="Remove the decimal part",
            ))
            return None, issues

        if amount == 0:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="suspicious_value",
                message="Amount is zero",
                severity="warning",
                suggested_fix="Check if the amount was read correctly",
            ))
        elif amount > self._settings.max_record_amount:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="suspicious_value",
                message=f"Amount ({amount:,} VND) seems unusually high",
                severity="warning",
                suggested_fix="Please verify this amount is correct",
            ))

        return amount, issues

    def _check_recipient(self, recipient: str) -> list[ValidationIssue]:
        if recipient and recipient.strip():
            return []

        if self._settings.require_recipient:
            return [ValidationIssue(
                field="recipient",
                issue_type="missing",
                message="Recipient is required",
                severity="error",
                suggested_fix="Enter who received the money",
            )]
        return [ValidationIssue(
            field="recipient",
            issue_type="missing",
            message=f"No recipient given, it will be saved as '{self._settings.unknown_recipient}'",
            severity="warning",
        )]

    def _check_image(self, image_uri: Optional[str]) -> list[ValidationIssue]:
        if image_uri and image_uri.strip():
            return []
        return [ValidationIssue(
            field="image_uri",
            issue_type="missing",
            message="No photo attached",
            severity="error",
            suggested_fix="Take a photo or use manual entry",
        )]

    def _check_hashtags(self, hashtags: list[str]) -> list[ValidationIssue]:
        if len(normalize_hashtags(hashtags)) == len(hashtags):
            return []
        return [ValidationIssue(
            field="hashtags",
            issue_type="normalized",
            message="Empty or repeated hashtags will be dropped",
            severity="info",
        )]

    def _result(self, issues: list[ValidationIssue]) -> ValidationResult:
        return ValidationResult(
            is_valid=not any(issue.severity == "error" for issue in issues),
            issues=issues,
            warnings=[issue.message for issue in issues if issue.severity == "warning"],
        )

    def validate(self, draft: DraftRecord) -> ValidationResult:
        """
        Validate a draft for a new record.

        Returns:
            ValidationResult with all issues found
        """
        issues = []
        _, amount_issues = self._check_amount(draft.amount_text)
        issues.extend(amount_issues)
        issues.extend(self._check_recipient(draft.recipient))
        issues.extend(self._check_image(draft.image_uri))
        issues.extend(self._check_hashtags(draft.hashtags))
        return self._result(issues)

    def _resolve_recipient(self, recipient: str) -> str:
        return recipient.strip() or self._settings.unknown_recipient

    def to_new_record(
        self,
        draft: DraftRecord,
        created_at: Optional[datetime] = None,
    ) -> NewRecord:
        """
        Validate a draft and build the record to store.

        Raises:
            DraftValidationError: If the draft has errors
        """
        result = self.validate(draft)
        if not result.is_valid:
            raise DraftValidationError(result)

        return NewRecord(
            recipient=self._resolve_recipient(draft.recipient),
            amount=parse_formatted_money(draft.amount_text),
            image_uri=draft.image_uri,
            created_at=created_at or utc_now(),
            hashtags=draft.hashtags,
        )

    def validate_update(
        self,
        record: TransactionRecord,
        draft: DraftRecord,
    ) -> TransactionRecord:
        """
        Apply an edit draft to an existing record.

        Only recipient, amount and hashtags change. The image check is
        skipped because the stored image reference is kept.

        Raises:
            DraftValidationError: If the edit has errors
        """
        amount, issues = self._check_amount(draft.amount_text)
        issues.extend(self._check_recipient(draft.recipient))
        issues.extend(self._check_hashtags(draft.hashtags))

        result = self._result(issues)
        if not result.is_valid:
            raise DraftValidationError(result)

        return TransactionRecord(
            id=record.id,
            recipient=self._resolve_recipient(draft.recipient),
            amount=amount,
            image_uri=record.image_uri,
            created_at=record.created_at,
            hashtags=draft.hashtags,
        )

    def get_user_friendly_summary(self, result: ValidationResult) -> str:
        """
        Generate a user-friendly summary of validation results.

        This is what we show next to the Save button.
        """
        if result.is_valid and not result.warnings:
            return "✅ Ready to save."

        lines = []

        if result.has_errors:
            lines.append("❌ Please fix the following before saving:")
            for issue in result.issues:
                if issue.severity == "error":
                    lines.append(f"   • {issue.message}")
                    if issue.suggested_fix:
                        lines.append(f"     💡 {issue.suggested_fix}")

        if result.warnings:
            if lines:
                lines.append("")
            lines.append("⚠️ Please verify the following:")
            for warning in result.warnings:
                lines.append(f"   • {warning}")

        if result.is_valid:
            lines.append("")
            lines.append("You can still save, but please check carefully.")

        return "\n".join(lines)
