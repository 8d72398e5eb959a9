"""
Contact form router.

Endpoints:
  POST /api  : multipart submission (name, email, message, honeypot,
                optional attachment); mounted under /contact

The body is parsed by hand rather than with Form()/File() parameters so that
missing fields reach the validator and come back as 400 field errors instead
of FastAPI's 422.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from starlette.datastructures import UploadFile
from starlette.exceptions import HTTPException

from app.errors import AttachmentTooLarge, ContactError, ValidationFailed
from app.models.contact import MAX_ATTACHMENT_BYTES, Attachment
from app.services.pipeline import SubmissionPipeline, SubmissionRequest
from app.services.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

router = APIRouter()

# Attachment limit plus room for the text fields and multipart framing.
_MAX_REQUEST_BYTES = MAX_ATTACHMENT_BYTES + 1024 * 1024


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------

def get_pipeline(request: Request) -> SubmissionPipeline:
    """
    Return the app's pipeline, building it on first use.

    The rate limiter lives on the pipeline, so it is shared by every request
    this process serves. Tests override this dependency.
    """
    pipeline = getattr(request.app.state, "contact_pipeline", None)
    if pipeline is None:
        pipeline = SubmissionPipeline(rate_limiter=RateLimiter())
        request.app.state.contact_pipeline = pipeline
    return pipeline


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _client_origin(request: Request) -> str:
    """First X-Forwarded-For hop, else the peer address, else "unknown"."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def _declared_length(request: Request) -> Optional[int]:
    raw = request.headers.get("content-length", "").strip()
    return int(raw) if raw.isdigit() else None


async def _read_attachment(value: object) -> Optional[Attachment]:
    """Read an uploaded file into an Attachment. Empty file inputs count as absent."""
    if not isinstance(value, UploadFile) or not value.filename:
        return None
    content = await value.read()
    return Attachment(
        filename=value.filename,
        content_type=value.content_type or "application/octet-stream",
        content=content,
        declared_size=value.size,
    )


def _json(status_code: int, body: dict) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=body)


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.post("/api")
async def submit_contact(
    request: Request,
    pipeline: SubmissionPipeline = Depends(get_pipeline),
) -> JSONResponse:
    """
    Accept a contact form submission.

    Responses:
      200 {"message", "personalizedMessage"}
      400 {"message", "errors"?}
      429 {"message"}
      500 {"message"}
    """
    fields: dict = {}
    attachment: Optional[Attachment] = None
    rejection: Optional[ContactError] = None

    declared = _declared_length(request)
    if declared is not None and declared > _MAX_REQUEST_BYTES:
        logger.info("Oversized contact payload (%d bytes); body not read", declared)
        rejection = AttachmentTooLarge()
    else:
        try:
            async with request.form() as form:
                fields = {key: value for key, value in form.items() if key != "attachment"}
                attachment = await _read_attachment(form.get("attachment"))
        except HTTPException as e:
            logger.info("Unparseable contact form body: %s", e.detail)
            rejection = ValidationFailed({})

    result = await pipeline.run(
        SubmissionRequest(
            origin=_client_origin(request),
            fields=fields,
            attachment=attachment,
            user_agent=request.headers.get("user-agent"),
            rejection=rejection,
        )
    )
    return _json(result.status_code, result.body)
