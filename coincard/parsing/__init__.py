"""Reply parsing and money formatting package."""

from coincard.parsing.money import (
    InvalidAmountError,
    format_money,
    parse_formatted_money,
)
from coincard.parsing.response_parser import (
    extract_amount,
    extract_recipient,
    normalize_vnd_amount,
    parse_analysis_response,
)

__all__ = [
    "InvalidAmountError",
    "extract_amount",
    "extract_recipient",
    "format_money",
    "normalize_vnd_amount",
    "parse_analysis_response",
    "parse_formatted_money",
]
