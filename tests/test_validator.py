"""Tests for draft validation."""

from decimal import Decimal

import pytest

from coincard.config import AppSettings
from coincard.models.record import DraftRecord
from coincard.validation import DraftValidationError, DraftValidator

from tests.conftest import make_record


@pytest.fixture
def validator(app_settings) -> DraftValidator:
    return DraftValidator(app_settings)


def draft(**overrides) -> DraftRecord:
    fields = {
        "recipient": "Nguyen Van A",
        "amount_text": "50,000",
        "image_uri": "file:///a.jpg",
        "hashtags": ["food"],
    }
    fields.update(overrides)
    return DraftRecord(**fields)


class TestValidate:
    """Tests for DraftValidator.validate."""

    def test_valid_draft(self, validator):
        """Test a complete draft."""
        result = validator.validate(draft())
        assert result.is_valid
        assert result.issues == []

    @pytest.mark.parametrize("amount_text, issue_type", [
        ("", "missing"),
        ("   ", "missing"),
        ("abc", "invalid_format"),
        ("-5", "invalid_value"),
        ("1.5", "invalid_value"),
        ("50,000.25", "invalid_value"),
    ])
    def test_amount_errors(self, validator, amount_text, issue_type):
        """Test amounts that block the save."""
        result = validator.validate(draft(amount_text=amount_text))
        assert not result.is_valid
        (issue,) = result.issues_for("amount")
        assert issue.issue_type == issue_type
        assert issue.severity == "error"

    def test_zero_amount_is_warning(self, validator):
        """Test that zero can be saved after review."""
        result = validator.validate(draft(amount_text="0"))
        assert result.is_valid
        assert result.warnings == ["Amount is zero"]

    def test_large_amount_is_warning(self):
        """Test the suspicious-amount threshold."""
        validator = DraftValidator(AppSettings(max_record_amount=Decimal(1000)))
        result = validator.validate(draft(amount_text="5,000"))
        assert result.is_valid
        assert result.issues_for("amount")[0].issue_type == "suspicious_value"

    def test_missing_image_is_error(self, validator):
        """Test that a draft needs an image reference."""
        result = validator.validate(draft(image_uri=None))
        assert not result.is_valid
        assert result.issues_for("image_uri")

    def test_missing_recipient_is_warning(self, validator):
        """Test the default recipient policy."""
        result = validator.validate(draft(recipient="  "))
        assert result.is_valid
        assert "Unknown" in result.warnings[0]

    def test_missing_recipient_error_when_required(self):
        """Test the strict recipient policy."""
        validator = DraftValidator(AppSettings(require_recipient=True))
        result = validator.validate(draft(recipient=""))
        assert not result.is_valid

    def test_duplicate_hashtags_are_info(self, validator):
        """Test that tag cleanup does not block the save."""
        result = validator.validate(draft(hashtags=["food", "food", " "]))
        assert result.is_valid
        (issue,) = result.issues_for("hashtags")
        assert issue.severity == "info"


class TestToNewRecord:
    """Tests for building a storable record."""

    def test_builds_record(self, validator):
        """Test the parsed amount and kept fields."""
        record = validator.to_new_record(draft(hashtags=[" food", "food"]))
        assert record.amount == Decimal(50000)
        assert record.recipient == "Nguyen Van A"
        assert record.image_uri == "file:///a.jpg"
        assert record.hashtags == ["food"]

    def test_empty_recipient_saved_as_unknown(self, validator):
        """Test the documented recipient substitution."""
        record = validator.to_new_record(draft(recipient=""))
        assert record.recipient == "Unknown"

    def test_invalid_draft_raises(self, validator):
        """Test that errors raise DraftValidationError."""
        with pytest.raises(DraftValidationError) as exc_info:
            validator.to_new_record(draft(amount_text="ten"))
        assert exc_info.value.result.error_count == 1
        assert "not a number" in str(exc_info.value)


class TestValidateUpdate:
    """Tests for editing a stored record."""

    def test_keeps_image_and_timestamp(self, validator):
        """Test that only editable fields change."""
        record = make_record(5)
        edit = draft(recipient="Tran Thi B", amount_text="75,000", image_uri=None, hashtags=["gift"])

        updated = validator.validate_update(record, edit)
        assert updated.id == 5
        assert updated.recipient == "Tran Thi B"
        assert updated.amount == Decimal(75000)
        assert updated.hashtags == ["gift"]
        assert updated.image_uri == record.image_uri
        assert updated.created_at == record.created_at

    def test_invalid_edit_raises(self, validator):
        """Test that a bad amount blocks the update."""
        with pytest.raises(DraftValidationError):
            validator.validate_update(make_record(5), draft(amount_text=""))


class TestSummary:
    """Tests for the user-facing summary."""

    def test_ready(self, validator):
        """Test the summary of a clean draft."""
        assert validator.get_user_friendly_summary(validator.validate(draft())) == "✅ Ready to save."

    def test_errors_listed(self, validator):
        """Test that errors and fixes are shown."""
        summary = validator.get_user_friendly_summary(validator.validate(draft(amount_text="")))
        assert "Amount is required" in summary
        assert "💡" in summary

    def test_warnings_listed(self, validator):
        """Test that warnings allow saving."""
        summary = validator.get_user_friendly_summary(validator.validate(draft(amount_text="0")))
        assert "Amount is zero" in summary
        assert "You can still save" in summary
