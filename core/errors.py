"""
Failure taxonomy for the career matching pipeline.

Every error carries the HTTP status it maps to, the message shown to the
end user, and the pipeline step that raised it. Only quota and billing
failures get their own wording; everything else shares a generic message
so upstream error bodies never reach the client.
"""
from typing import Optional

GENERIC_FAILURE_MESSAGE = "Failed to complete career matching."


class CareerMatchingError(Exception):
    status_code = 500
    user_message = GENERIC_FAILURE_MESSAGE
    step = "pipeline"

    def __init__(self, message: str, original_error: Optional[BaseException] = None):
        super().__init__(message)
        self.original_error = original_error


class MisconfiguredClient(CareerMatchingError):
    """Scoring credential or endpoint missing."""
    step = "configuration"


class CatalogUnavailable(CareerMatchingError):
    step = "catalog"


class RateLimited(CareerMatchingError):
    status_code = 429
    user_message = "Rate limit exceeded. Please try again later."
    step = "scoring"


class PaymentRequired(CareerMatchingError):
    status_code = 402
    user_message = "Payment required. Please add credits to continue."
    step = "scoring"


class UpstreamError(CareerMatchingError):
    """Any other scoring-service failure, including timeouts."""
    step = "scoring"


class MalformedResponse(CareerMatchingError):
    step = "parsing"


class PersistFailure(CareerMatchingError):
    """The match batch could not be written; nothing was stored."""
    step = "persist"


class PartialPersistFailure(CareerMatchingError):
    """
    Matches were written but the assessment could not be marked completed.
    Retrying only the completion update is safe.
    """
    step = "persist"

    def __init__(
        self,
        message: str,
        matches_written: int,
        original_error: Optional[BaseException] = None,
    ):
        super().__init__(message, original_error)
        self.matches_written = matches_written
