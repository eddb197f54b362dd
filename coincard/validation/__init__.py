"""Draft validation package."""

from coincard.validation.validator import DraftValidationError, DraftValidator

__all__ = ["DraftValidationError", "DraftValidator"]
