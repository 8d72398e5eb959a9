"""
Error taxonomy for the contact intake pipeline.

Every error carries a human-readable message, a short machine code and the
HTTP status the pipeline answers with. Non-fatal errors (sender notification,
personalization) are never raised to the caller; they exist so the pipeline
can record them in outcomes and logs.
"""

from typing import Optional


class ContactError(Exception):
    """Base class for pipeline errors that map onto an HTTP response."""

    status_code = 500

    def __init__(self, message: str, error_code: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        if status_code is not None:
            self.status_code = status_code

    def to_body(self) -> dict:
        return {"message": self.message}


# ---------------------------------------------------------------------------
# Rejections returned directly to the caller
# ---------------------------------------------------------------------------

class RateLimitExceeded(ContactError):
    status_code = 429

    def __init__(self, message: str = "Too many requests, please try again later."):
        super().__init__(message, "rate_limited")


class ConfigurationMissing(ContactError):
    """Raised when required environment variables are not set."""

    status_code = 500

    def __init__(self, missing: list[str]):
        self.missing = list(missing)
        message = (
            "Server configuration error: The following environment variables are "
            f"missing: {', '.join(self.missing)}. Please ensure they are set in your "
            ".env file and restart the server."
        )
        super().__init__(message, "configuration_missing")


class ValidationFailed(ContactError):
    """Raised with every field-level violation collected at once."""

    status_code = 400

    def __init__(self, errors: dict[str, list[str]], message: str = "Invalid input."):
        super().__init__(message, "validation_failed")
        self.errors = errors

    def to_body(self) -> dict:
        if not self.errors:
            return {"message": self.message}
        return {"message": self.message, "errors": self.errors}


class AttachmentTooLarge(ContactError):
    status_code = 400

    def __init__(self, message: str = "File size exceeds the 25MB limit."):
        super().__init__(message, "attachment_too_large")


# ---------------------------------------------------------------------------
# Collaborator failures
# ---------------------------------------------------------------------------

class SpamClassificationUnavailable(ContactError):
    status_code = 500


class OperatorNotificationFailed(ContactError):
    status_code = 500


class SenderNotificationFailed(ContactError):
    """Recorded in the dispatch outcome; never escalated."""


class PersonalizationUnavailable(ContactError):
    """Recorded and replaced by the fallback acknowledgement."""


class MailDeliveryError(Exception):
    """
    Raised by the SMTP transport.

    error_code is "EAUTH" for rejected credentials and "ESEND" for any other
    delivery problem, so callers can give operators a targeted hint.
    """

    def __init__(self, message: str, error_code: str = "ESEND"):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
