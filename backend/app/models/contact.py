"""
Pydantic models for the contact form intake.

Models:
  ContactForm        : raw form fields, validated (trimmed, length/email rules)
  Attachment         : optional uploaded file, already read into memory
  Submission         : a validated submission handed to the rest of the pipeline
  SpamVerdict        : classifier output
  NotificationOutcome: result of one outbound email attempt
  DispatchResult     : operator + sender outcomes for one submission
  ContactResponse    : 200 response body
"""

from typing import Any, Literal, Optional

from pydantic import BaseModel, Field, TypeAdapter, ValidationError, field_validator
from pydantic import EmailStr

NAME_MIN_LENGTH = 2
MESSAGE_MIN_LENGTH = 10
MESSAGE_MAX_LENGTH = 15000
MAX_ATTACHMENT_BYTES = 25 * 1024 * 1024  # 25 MiB

_EMAIL_ADAPTER = TypeAdapter(EmailStr)


# ---------------------------------------------------------------------------
# Form input
# ---------------------------------------------------------------------------

class ContactForm(BaseModel):
    """
    Fields posted by the contact form.

    Unknown fields are ignored. The honeypot is intentionally left untrimmed:
    any non-empty value, whitespace included, marks the submission as automated.
    """
    model_config = {"extra": "ignore"}

    name: str
    email: str
    message: str
    honeypot: Any = None

    @field_validator("name", "email", "message", mode="before")
    @classmethod
    def _trim(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value

    @field_validator("name")
    @classmethod
    def _check_name(cls, value: str) -> str:
        if len(value) < NAME_MIN_LENGTH:
            raise ValueError("Name must be at least 2 characters.")
        return value

    @field_validator("email")
    @classmethod
    def _check_email(cls, value: str) -> str:
        try:
            _EMAIL_ADAPTER.validate_python(value)
        except ValidationError:
            raise ValueError("Please enter a valid email address.")
        return value

    @field_validator("message")
    @classmethod
    def _check_message(cls, value: str) -> str:
        if len(value) < MESSAGE_MIN_LENGTH:
            raise ValueError("Message must be at least 10 characters.")
        if len(value) > MESSAGE_MAX_LENGTH:
            raise ValueError("Message must not exceed 15000 characters.")
        return value

    @property
    def honeypot_filled(self) -> bool:
        return bool(self.honeypot)


class Attachment(BaseModel):
    """An uploaded file. declared_size is what the client announced, if anything."""

    filename: str
    content_type: str = "application/octet-stream"
    content: bytes = b""
    declared_size: Optional[int] = None

    @property
    def size(self) -> int:
        return max(len(self.content), self.declared_size or 0)


class Submission(BaseModel):
    """A submission that has passed validation."""

    name: str
    email: str
    message: str
    honeypot_filled: bool = False
    attachment: Optional[Attachment] = None


# ---------------------------------------------------------------------------
# Collaborator results
# ---------------------------------------------------------------------------

class SpamVerdict(BaseModel):
    is_spam: bool
    reason: str = ""


class NotificationOutcome(BaseModel):
    recipient: Literal["operator", "sender"]
    ok: bool
    error: Optional[str] = None


class DispatchResult(BaseModel):
    """
    Outcome of the two notification emails.

    sender is None when the auto-reply was never attempted.
    """
    operator: NotificationOutcome
    sender: Optional[NotificationOutcome] = None


# ---------------------------------------------------------------------------
# Response bodies
# ---------------------------------------------------------------------------

class ContactResponse(BaseModel):
    message: str
    personalized_message: str = Field(serialization_alias="personalizedMessage")

    def to_body(self) -> dict:
        return self.model_dump(by_alias=True)
