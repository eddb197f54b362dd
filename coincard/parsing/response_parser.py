"""
Classification Reply Parser

The classification service answers in free text that is expected, but not
guaranteed, to contain:

    Amount: <digits and commas>, Recipient: <name>

This module turns that text into a ParsedAnalysis. It NEVER raises: a reply
with no usable markers yields amount 0 and the "Not found" recipient, and the
user completes the record by hand.

DESIGN DECISION: The amount correction lives in its own function
(normalize_vnd_amount) so the product rule can change without touching
the extraction.
"""

import re
from decimal import Decimal
from typing import Optional, Union

import structlog

from coincard.models.record import NOT_FOUND, ParsedAnalysis

logger = structlog.get_logger(__name__)

AMOUNT_PATTERN = re.compile(r"Amount: ([\d,]+)")
RECIPIENT_PATTERN = re.compile(r"Recipient: ([^,]+)")

THOUSAND = 1000
TEN_THOUSAND = 10000


def normalize_vnd_amount(amount: Union[int, Decimal]) -> Decimal:
    """
    Correct the magnitude of a spoken/printed VND amount.

    HEURISTIC, not an exact inverse: people and models routinely drop
    trailing zeros from đồng amounts ("500" for 500,000), and almost no
    real transaction is below ten thousand đồng.

    - 0 < amount < 1,000        -> x 1,000   (500   -> 500,000)
    - 1,000 <= amount < 10,000  -> x 1,000   (5,000 -> 5,000,000)
    - anything else             -> unchanged (0 stays 0)
    """
    value = Decimal(amount)
    if 0 < value < THOUSAND:
        return value * THOUSAND
    if THOUSAND <= value < TEN_THOUSAND:
        return value * THOUSAND
    return value


def extract_amount(text: str) -> Optional[int]:
    """Raw amount after the "Amount:" marker, separators removed."""
    match = AMOUNT_PATTERN.search(text)
    if not match:
        return None

    digits = match.group(1).replace(",", "")
    if not digits:
        return None
    return int(digits)


def extract_recipient(text: str) -> Optional[str]:
    """Recipient after the "Recipient:" marker, up to the next comma."""
    match = RECIPIENT_PATTERN.search(text)
    if not match:
        return None

    recipient = match.group(1).strip()
    return recipient or None


def parse_analysis_response(text: Optional[str]) -> ParsedAnalysis:
    """
    Parse a classification reply into amount and recipient.

    Args:
        text: The "result" string of a successful classification response

    Returns:
        ParsedAnalysis. Missing markers fall back to amount 0 and
        recipient "Not found".
    """
    if not isinstance(text, str) or not text:
        logger.debug("analysis_reply_empty")
        return ParsedAnalysis()

    raw_amount = extract_amount(text)
    amount = normalize_vnd_amount(raw_amount) if raw_amount is not None else Decimal(0)

    recipient = extract_recipient(text) or NOT_FOUND

    logger.debug(
        "analysis_reply_parsed",
        raw_amount=raw_amount,
        amount=str(amount),
        recipient_found=recipient != NOT_FOUND,
    )
    return ParsedAnalysis(amount=amount, recipient=recipient)
