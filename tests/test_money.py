"""Tests for the amount formatting helpers."""

from decimal import Decimal

import pytest

from coincard.parsing import InvalidAmountError, format_money, parse_formatted_money


class TestFormatMoney:
    """Tests for format_money."""

    @pytest.mark.parametrize("text, expected", [
        ("1000000", "1,000,000"),
        ("50000", "50,000"),
        ("999", "999"),
        ("1.000đ", "1,000"),
        ("12a34", "1,234"),
        ("", ""),
        ("abc", ""),
        (None, ""),
    ])
    def test_format(self, text, expected):
        """Test grouping of typed text."""
        assert format_money(text) == expected


class TestParseFormattedMoney:
    """Tests for parse_formatted_money."""

    def test_removes_separators(self):
        """Test that commas are removed."""
        assert parse_formatted_money("1,000,000") == Decimal(1000000)

    def test_strips_whitespace(self):
        """Test surrounding whitespace is ignored."""
        assert parse_formatted_money("  50,000 ") == Decimal(50000)

    def test_keeps_fraction(self):
        """Test that a decimal point is accepted."""
        assert parse_formatted_money("12.5") == Decimal("12.5")

    @pytest.mark.parametrize("text", ["", "   ", None, "abc", "1,2x", "NaN", "Infinity"])
    def test_rejects_non_numeric(self, text):
        """Test that empty or non-numeric text raises."""
        with pytest.raises(InvalidAmountError):
            parse_formatted_money(text)

    def test_error_is_value_error(self):
        """Test the exception hierarchy."""
        assert issubclass(InvalidAmountError, ValueError)

    def test_format_then_parse(self):
        """Test that a formatted amount parses back."""
        assert parse_formatted_money(format_money("2500000")) == Decimal(2500000)
