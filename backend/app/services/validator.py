"""
Submission validation.

validate() runs every field rule and reports all violations together so the
form can show each problem at once. check_attachment() enforces the 25 MiB
attachment limit on whatever size information is available.
"""

from typing import Any, Mapping, Optional

from pydantic import ValidationError

from app.errors import AttachmentTooLarge, ValidationFailed
from app.models.contact import MAX_ATTACHMENT_BYTES, Attachment, ContactForm, Submission

_FORM_FIELDS = ("name", "email", "message", "honeypot")


def _error_message(error: dict) -> str:
    """Turn one pydantic error into the text shown next to the field."""
    field = str(error["loc"][0]) if error.get("loc") else "value"
    error_type = error.get("type")
    if error_type == "missing":
        return f"{field.capitalize()} is required."
    if error_type == "value_error":
        ctx_error = (error.get("ctx") or {}).get("error")
        if ctx_error is not None:
            return str(ctx_error)
    if error_type == "string_type":
        return f"{field.capitalize()} must be text."
    return error.get("msg", "Invalid value.")


def field_errors(exc: ValidationError) -> dict[str, list[str]]:
    """Group pydantic errors by field name, preserving order."""
    errors: dict[str, list[str]] = {}
    for error in exc.errors():
        field = str(error["loc"][0]) if error.get("loc") else "__root__"
        errors.setdefault(field, []).append(_error_message(error))
    return errors


def validate(
    raw_fields: Mapping[str, Any],
    attachment: Optional[Attachment] = None,
) -> Submission:
    """
    Validate raw form fields into a Submission.

    Fields other than name/email/message/honeypot are ignored. A field
    posted as None counts as missing.

    Raises:
        ValidationFailed: with every field-level error.
    """
    data = {
        key: raw_fields[key]
        for key in _FORM_FIELDS
        if key in raw_fields and raw_fields[key] is not None
    }

    try:
        form = ContactForm(**data)
    except ValidationError as exc:
        raise ValidationFailed(field_errors(exc))

    return Submission(
        name=form.name,
        email=form.email,
        message=form.message,
        honeypot_filled=form.honeypot_filled,
        attachment=attachment,
    )


def check_attachment(attachment: Optional[Attachment]) -> None:
    """Raise AttachmentTooLarge if the attachment exceeds the size limit."""
    if attachment is None:
        return
    if attachment.size > MAX_ATTACHMENT_BYTES:
        raise AttachmentTooLarge()
