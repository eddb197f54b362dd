"""Classification service package."""

from coincard.services.classification.client import (
    ClassificationClient,
    ClassificationError,
    ClassificationHTTPError,
    ClassificationRejectedError,
    ClassificationUnavailableError,
    MalformedResponseError,
)

__all__ = [
    "ClassificationClient",
    "ClassificationError",
    "ClassificationHTTPError",
    "ClassificationRejectedError",
    "ClassificationUnavailableError",
    "MalformedResponseError",
]
