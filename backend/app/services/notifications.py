"""
Notification dispatch for a validated, sanitized submission.

Order and policy:
  1. Operator notification. Failure is logged and raised as
     OperatorNotificationFailed; the auto-reply is then never attempted.
  2. Sender acknowledgement. Failure is logged and recorded in the result
     only; the submission still counts as delivered.

Each send is bounded by SMTP_TIMEOUT_SECONDS; a send that overruns it fails
like any other delivery error.
"""

from email.message import EmailMessage
from typing import Protocol

from app.config import ContactSettings
from app.errors import OperatorNotificationFailed, SenderNotificationFailed
from app.models.contact import DispatchResult, NotificationOutcome, Submission
from app.services.attempt import FailurePolicy, attempt
from app.services.mailer import build_operator_notification, build_sender_acknowledgement
from app.services.submission_log import SubmissionLog


class Transport(Protocol):
    async def send(self, message: EmailMessage) -> None: ...


class NotificationDispatcher:
    def __init__(self, transport: Transport, settings: ContactSettings, log: SubmissionLog):
        self.transport = transport
        self.settings = settings
        self.log = log

    async def _send_operator(self, submission: Submission) -> None:
        await self.transport.send(build_operator_notification(submission, self.settings))

    async def _send_sender(self, submission: Submission) -> None:
        await self.transport.send(build_sender_acknowledgement(submission, self.settings))

    async def dispatch(self, submission: Submission, origin: str = "unknown") -> DispatchResult:
        try:
            await attempt(
                lambda: self._send_operator(submission),
                policy=FailurePolicy.FATAL,
                error_class=OperatorNotificationFailed,
                error_code="operator_notification_failed",
                timeout=self.settings.smtp_timeout,
            )
        except OperatorNotificationFailed as e:
            self.log.record(
                "error",
                "Failed to send submission email to administrator.",
                {"ip": origin, "error": e.message, "errorCode": e.error_code},
            )
            raise

        self.log.record(
            "info",
            "Successfully sent submission email to administrator.",
            {"ip": origin, "to": self.settings.to_email},
        )
        operator = NotificationOutcome(recipient="operator", ok=True)

        result = await attempt(
            lambda: self._send_sender(submission),
            policy=FailurePolicy.RECORD,
            error_class=SenderNotificationFailed,
            error_code="sender_notification_failed",
            timeout=self.settings.smtp_timeout,
        )
        if result.ok:
            self.log.record(
                "info",
                "Successfully sent auto-reply email to user.",
                {"email": submission.email},
            )
            sender = NotificationOutcome(recipient="sender", ok=True)
        else:
            self.log.record(
                "warn",
                "Failed to send auto-reply email to user.",
                {"email": submission.email, "error": result.error_message},
            )
            sender = NotificationOutcome(recipient="sender", ok=False, error=result.error_message)

        return DispatchResult(operator=operator, sender=sender)
