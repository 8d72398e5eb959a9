"""
Submission intake pipeline.

One run() per inbound request, stages strictly in order, no retries:

  RATE_CHECK          429 when the origin is over its limit
  CONFIG_CHECK        500 listing missing environment variables
  PARSE_AND_VALIDATE  400 with every field error
  ATTACHMENT_CHECK    400 when the attachment is over 25 MiB
  SPAM_CLASSIFY       honeypot => spam without asking the classifier;
                      classifier failure => 500 (or not-spam when
                      SPAM_FILTER_FAIL_OPEN is set)
    spam              personalize(placeholder) -> 200, no email sent
  SANITIZE
  DISPATCH            operator failure => 500; sender failure is logged only
  PERSONALIZE         failure => fixed fallback sentence
  -> 200 {"message", "personalizedMessage"}

Anything unexpected is caught at the boundary, logged with full detail and
answered with a generic 500 (or an SMTP credentials hint for EAUTH).
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Mapping, Optional, Protocol

from app.config import ContactSettings, load_settings
from app.errors import (
    AttachmentTooLarge,
    ConfigurationMissing,
    ContactError,
    PersonalizationUnavailable,
    RateLimitExceeded,
    SpamClassificationUnavailable,
    ValidationFailed,
)
from app.models.contact import (
    Attachment,
    ContactResponse,
    DispatchResult,
    SpamVerdict,
    Submission,
)
from app.services.attempt import FailurePolicy, attempt, describe_error
from app.services.mailer import SmtpTransport
from app.services.notifications import NotificationDispatcher, Transport
from app.services.personalizer import FALLBACK_MESSAGE, SPAM_PLACEHOLDER, AnthropicPersonalizer
from app.services.rate_limiter import RateLimiter
from app.services.sanitizer import strip_tags
from app.services.spam_filter import AnthropicSpamClassifier
from app.services.submission_log import SubmissionLog
from app.services.validator import check_attachment, validate

logger = logging.getLogger(__name__)

SUCCESS_MESSAGE = "Your message has been sent successfully."
GENERIC_ERROR_MESSAGE = "An internal server error occurred."
SMTP_AUTH_HINT = (
    "Authentication error with email provider. Please double-check your SMTP "
    "credentials. If you are using Gmail, ensure you have set up and are using "
    'an "App Password".'
)
HONEYPOT_REASON = "Honeypot field was filled."

# Rejections that carry their own response body.
_DIRECT_REJECTIONS = (RateLimitExceeded, ConfigurationMissing, ValidationFailed, AttachmentTooLarge)


class SpamClassifier(Protocol):
    async def classify(self, origin: str, content: str, honeypot_filled: bool) -> SpamVerdict: ...


class ResponsePersonalizer(Protocol):
    async def personalize(self, message: str) -> str: ...


class PipelineOutcome(str, Enum):
    RESPONDED_OK = "responded_ok"
    RESPONDED_RATE_LIMITED = "responded_rate_limited"
    RESPONDED_INVALID = "responded_invalid"
    RESPONDED_SERVER_ERROR = "responded_server_error"


@dataclass
class SubmissionRequest:
    """
    Everything the pipeline needs from one HTTP request.

    rejection is set when the transport layer already refused the body
    (declared too large, or not parseable as a form). The pipeline still
    rate-checks the origin before answering with it.
    """
    origin: str
    fields: Mapping[str, Any]
    attachment: Optional[Attachment] = None
    user_agent: Optional[str] = None
    rejection: Optional[ContactError] = None


@dataclass
class PipelineResult:
    status_code: int
    body: dict
    verdict: Optional[SpamVerdict] = None
    dispatch: Optional[DispatchResult] = None
    error: Optional[BaseException] = field(default=None, repr=False)

    @property
    def outcome(self) -> PipelineOutcome:
        if self.status_code == 200:
            return PipelineOutcome.RESPONDED_OK
        if self.status_code == 429:
            return PipelineOutcome.RESPONDED_RATE_LIMITED
        if self.status_code == 400:
            return PipelineOutcome.RESPONDED_INVALID
        return PipelineOutcome.RESPONDED_SERVER_ERROR


def _error_code_in_chain(error: BaseException) -> Optional[str]:
    """First error_code found walking error and its causes; prefers EAUTH."""
    codes = []
    current: Optional[BaseException] = error
    while current is not None and len(codes) < 10:
        code = getattr(current, "error_code", None)
        if code:
            codes.append(code)
        current = current.__cause__
    if "EAUTH" in codes:
        return "EAUTH"
    return codes[0] if codes else None


def sanitize_submission(submission: Submission) -> Submission:
    """Copy of submission with tags stripped from every free-text value."""
    attachment = submission.attachment
    if attachment is not None:
        attachment = attachment.model_copy(update={"filename": strip_tags(attachment.filename)})
    return submission.model_copy(
        update={
            "name": strip_tags(submission.name),
            "email": strip_tags(submission.email),
            "message": strip_tags(submission.message),
            "attachment": attachment,
        }
    )


class SubmissionPipeline:
    """
    Orchestrates one contact submission.

    The rate limiter is owned by whoever builds the pipeline, so tests can
    give every case a fresh instance. classifier and personalizer default to
    the Anthropic implementations configured from the loaded settings;
    transport_factory builds the mail transport from the same settings.
    """

    def __init__(
        self,
        rate_limiter: RateLimiter,
        log: Optional[SubmissionLog] = None,
        classifier: Optional[SpamClassifier] = None,
        personalizer: Optional[ResponsePersonalizer] = None,
        transport_factory: Callable[[ContactSettings], Transport] = SmtpTransport,
        settings_loader: Callable[[], ContactSettings] = load_settings,
    ):
        self.rate_limiter = rate_limiter
        self.log = log or SubmissionLog()
        self.classifier = classifier
        self.personalizer = personalizer
        self.transport_factory = transport_factory
        self.settings_loader = settings_loader

    async def run(self, request: SubmissionRequest) -> PipelineResult:
        try:
            return await self._process(request)
        except _DIRECT_REJECTIONS as e:
            return PipelineResult(status_code=e.status_code, body=e.to_body(), error=e)
        except Exception as e:
            return self._server_error(e)

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    async def _process(self, request: SubmissionRequest) -> PipelineResult:
        origin = request.origin or "unknown"

        if not self.rate_limiter.check_and_increment(origin):
            self.log.record(
                "warn",
                "Rate limit exceeded",
                {"ip": origin, "userAgent": request.user_agent},
            )
            raise RateLimitExceeded()

        try:
            settings = self.settings_loader()
        except ConfigurationMissing as e:
            self.log.record("error", e.message, {"missing": e.missing})
            raise

        if request.rejection is not None:
            self.log.record(
                "info",
                "Submission rejected before parsing.",
                {"ip": origin, "reason": request.rejection.message},
            )
            raise request.rejection

        try:
            submission = validate(request.fields, request.attachment)
        except ValidationFailed as e:
            self.log.record(
                "info",
                "Submission rejected by validation.",
                {"ip": origin, "fields": sorted(e.errors)},
            )
            raise

        try:
            check_attachment(submission.attachment)
        except AttachmentTooLarge:
            self.log.record(
                "info",
                "Submission rejected: attachment too large.",
                {"ip": origin, "size": submission.attachment.size},
            )
            raise

        verdict = await self._classify(submission, origin, settings)
        if verdict.is_spam:
            self.log.record(
                "info",
                "Spam submission detected and blocked.",
                {"reason": verdict.reason, "ip": origin},
            )
            personalized = await self._personalize(SPAM_PLACEHOLDER, origin, settings)
            return self._success(personalized, verdict=verdict)

        clean = sanitize_submission(submission)

        dispatcher = NotificationDispatcher(self.transport_factory(settings), settings, self.log)
        dispatch = await dispatcher.dispatch(clean, origin)

        personalized = await self._personalize(clean.message, origin, settings)
        return self._success(personalized, verdict=verdict, dispatch=dispatch)

    async def _classify(self, submission: Submission, origin: str, settings: ContactSettings) -> SpamVerdict:
        if submission.honeypot_filled:
            return SpamVerdict(is_spam=True, reason=HONEYPOT_REASON)

        classifier = self.classifier or AnthropicSpamClassifier(
            api_key=settings.anthropic_api_key, timeout=settings.ai_timeout
        )
        policy = FailurePolicy.RECORD if settings.spam_filter_fail_open else FailurePolicy.FATAL

        result = await attempt(
            lambda: classifier.classify(origin, submission.message, submission.honeypot_filled),
            policy=policy,
            error_class=SpamClassificationUnavailable,
            error_code="spam_classification_unavailable",
            timeout=settings.ai_timeout,
        )
        if not result.ok:
            self.log.record(
                "error",
                "Spam classification unavailable; accepting submission without a verdict.",
                {"ip": origin, "error": result.error_message},
            )
            return SpamVerdict(is_spam=False, reason="Spam classification unavailable.")

        return result.value

    async def _personalize(self, text: str, origin: str, settings: ContactSettings) -> str:
        personalizer = self.personalizer or AnthropicPersonalizer(
            api_key=settings.anthropic_api_key, timeout=settings.ai_timeout
        )
        result = await attempt(
            lambda: personalizer.personalize(text),
            policy=FailurePolicy.FALLBACK,
            error_class=PersonalizationUnavailable,
            error_code="personalization_unavailable",
            fallback=FALLBACK_MESSAGE,
            timeout=settings.ai_timeout,
        )
        if not result.ok:
            self.log.record(
                "warn",
                "Personalized response unavailable; using fallback message.",
                {"ip": origin, "error": result.error_message},
            )
            return result.value

        value = result.value
        if not isinstance(value, str) or not value.strip():
            return FALLBACK_MESSAGE
        return value.strip()

    # ------------------------------------------------------------------
    # Responses
    # ------------------------------------------------------------------

    def _success(
        self,
        personalized: str,
        verdict: Optional[SpamVerdict] = None,
        dispatch: Optional[DispatchResult] = None,
    ) -> PipelineResult:
        body = ContactResponse(message=SUCCESS_MESSAGE, personalized_message=personalized).to_body()
        return PipelineResult(status_code=200, body=body, verdict=verdict, dispatch=dispatch)

    def _server_error(self, error: Exception) -> PipelineResult:
        code = _error_code_in_chain(error)
        self.log.record(
            "error",
            "Detailed error in /contact/api",
            {
                "errorMessage": describe_error(error),
                "errorCode": code,
                "fullError": repr(error),
            },
        )
        logger.debug("Contact pipeline failure", exc_info=error)

        message = SMTP_AUTH_HINT if code == "EAUTH" else GENERIC_ERROR_MESSAGE
        return PipelineResult(status_code=500, body={"message": message}, error=error)
