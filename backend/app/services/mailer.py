"""
Outbound email: message composition and SMTP transport.

build_operator_notification() and build_sender_acknowledgement() expect
values that have already been through strip_tags(). They also HTML-escape
when writing the HTML part, because tag stripping alone leaves "&" and
quotes untouched.

SmtpTransport sends through aiosmtplib (STARTTLS, or implicit TLS on port
465) and translates failures into MailDeliveryError (error_code "EAUTH"
for rejected credentials).
"""

import html
import logging
from datetime import datetime, timezone
from email.message import EmailMessage
from email.utils import formataddr
from typing import Optional

import aiosmtplib

from app.config import ContactSettings
from app.errors import MailDeliveryError
from app.models.contact import Submission
from app.services.sanitizer import strip_tags

logger = logging.getLogger(__name__)

SENDER_SUBJECT = "We have received your message!"

_OPERATOR_HTML = """\
<!DOCTYPE html>
<html>
<body style="font-family: Arial, sans-serif; background-color: #f4f4f4; margin: 0; padding: 0;">
  <div style="max-width: 600px; margin: 20px auto; background-color: #ffffff; border-radius: 8px; border: 1px solid #e0e0e0;">
    <div style="background-color: #2E8B57; color: #ffffff; padding: 20px; text-align: center;">
      <h1 style="margin: 0; font-size: 24px;">New Message!</h1>
    </div>
    <div style="padding: 30px; line-height: 1.6; color: #333333;">
      <h2 style="color: #2E8B57; font-size: 20px;">You've received a new message.</h2>
      <p><strong>From:</strong> {name}</p>
      <p><strong>Email:</strong> <a href="mailto:{email}" style="color: #4682B4;">{email}</a></p>
      <h3>Message:</h3>
      <div style="background-color: #f9f9f9; border-left: 4px solid #4682B4; padding: 15px; margin: 20px 0;">
        <p>{message}</p>
      </div>
      {attachment}
      <a href="mailto:{email}" style="display: inline-block; background-color: #2E8B57; color: #ffffff; padding: 12px 25px; text-decoration: none; border-radius: 5px; font-weight: bold;">Respond to {name}</a>
    </div>
    <div style="background-color: #eeeeee; color: #777777; padding: 15px; text-align: center; font-size: 12px;">
      <p>This email was sent from your website's contact form.</p>
    </div>
  </div>
</body>
</html>
"""

_SENDER_HTML = """\
<!DOCTYPE html>
<html>
<body style="font-family: Arial, sans-serif; background-color: #F0FFF0; margin: 0; padding: 0;">
  <div style="max-width: 600px; margin: 20px auto; background-color: #ffffff; border-radius: 8px; border: 1px solid #e0e0e0;">
    <div style="background-color: #2E8B57; color: #ffffff; padding: 20px; text-align: center;">
      <h1 style="margin: 0; font-size: 24px;">Thank You!</h1>
    </div>
    <div style="padding: 30px; line-height: 1.6; color: #333333;">
      <h2 style="color: #2E8B57; font-size: 20px;">Hi {name},</h2>
      <p>Thank you for reaching out. We have received your message and will get back to you as soon as possible.</p>
      <p>For your reference, here is a copy of your submission:</p>
      <div style="background-color: #F0FFF0; border-left: 4px solid #2E8B57; padding: 15px; margin: 20px 0; word-wrap: break-word;">
        <p style="margin: 0;">{message}</p>
        {attachment}
      </div>
      <p>Best regards,<br/>The {from_name} Team</p>
    </div>
    <div style="background-color: #eeeeee; color: #777777; padding: 15px; text-align: center; font-size: 12px;">
      <p>&copy; {year} {from_name}. All rights reserved.</p>
      <p>This is an automated message. Please do not reply directly to this email.</p>
    </div>
  </div>
</body>
</html>
"""


def _html_text(value: str) -> str:
    """Escape for HTML and keep line breaks."""
    return html.escape(value).replace("\n", "<br>")


def _single_line(value: str) -> str:
    """Collapse whitespace so a value is safe inside a header."""
    return " ".join(value.split())


def _from_header(settings: ContactSettings) -> str:
    return formataddr((settings.from_name, settings.from_email))


def build_operator_notification(submission: Submission, settings: ContactSettings) -> EmailMessage:
    """
    Email to the site operator. Reply-To is the sender; the attachment, if
    any, is included here and nowhere else.
    """
    name, email, message = submission.name, submission.email, submission.message
    attachment = submission.attachment

    msg = EmailMessage()
    msg["From"] = _from_header(settings)
    msg["To"] = settings.to_email
    msg["Reply-To"] = email
    msg["Subject"] = f"New Website Message from {_single_line(name)}"

    msg.set_content(
        "You have a new contact form submission.\n\n"
        f"From: {name}\n"
        f"Email: {email}\n\n"
        f"Message:\n{message}\n\n"
        f"You can reply to this email directly to respond to {name}."
    )

    attachment_html = ""
    if attachment is not None:
        attachment_html = (
            f"<p><strong>Attachment:</strong> {html.escape(strip_tags(attachment.filename))}</p>"
        )
    msg.add_alternative(
        _OPERATOR_HTML.format(
            name=html.escape(name),
            email=html.escape(email),
            message=_html_text(message),
            attachment=attachment_html,
        ),
        subtype="html",
    )

    if attachment is not None:
        maintype, _, subtype = (attachment.content_type or "application/octet-stream").partition("/")
        msg.add_attachment(
            attachment.content,
            maintype=maintype or "application",
            subtype=subtype or "octet-stream",
            filename=strip_tags(attachment.filename) or "attachment",
        )

    return msg


def build_sender_acknowledgement(
    submission: Submission,
    settings: ContactSettings,
    now: Optional[datetime] = None,
) -> EmailMessage:
    """Auto-reply to the sender with a copy of their message. Never carries the file."""
    name, email, message = submission.name, submission.email, submission.message
    year = (now or datetime.now(timezone.utc)).year

    filename = strip_tags(submission.attachment.filename) if submission.attachment else None
    attachment_text = f"\nAttachment: {filename}" if filename else ""
    attachment_html = (
        '<p style="margin-top: 15px; padding-top: 15px; border-top: 1px solid #eeeeee;">'
        f"<strong>Attachment:</strong> {html.escape(filename)}</p>"
        if filename
        else ""
    )

    msg = EmailMessage()
    msg["From"] = _from_header(settings)
    msg["To"] = email
    msg["Subject"] = SENDER_SUBJECT

    msg.set_content(
        f"Hi {name},\n\n"
        "Thank you for reaching out! We have successfully received your message "
        "and will get back to you as soon as possible.\n\n"
        "For your reference, here is a copy of your submission:\n"
        f"---\n{message}{attachment_text}\n---\n\n"
        f"Best regards,\nThe {settings.from_name} Team\n\n"
        "(This is an automated message, please do not reply.)"
    )
    msg.add_alternative(
        _SENDER_HTML.format(
            name=html.escape(name),
            message=_html_text(message),
            attachment=attachment_html,
            from_name=html.escape(settings.from_name),
            year=year,
        ),
        subtype="html",
    )
    return msg


class SmtpTransport:
    """Sends EmailMessages through the configured SMTP server."""

    def __init__(self, settings: ContactSettings):
        self.settings = settings

    async def send(self, message: EmailMessage) -> None:
        """
        Send one message.

        Raises:
            MailDeliveryError: "EAUTH" when the server rejects the credentials,
                "ESEND" for any other SMTP or connection failure.
        """
        s = self.settings
        implicit_tls = s.smtp_port == 465
        try:
            await aiosmtplib.send(
                message,
                hostname=s.smtp_host,
                port=s.smtp_port,
                username=s.smtp_user,
                password=s.smtp_pass,
                use_tls=implicit_tls,
                start_tls=not implicit_tls,
                timeout=s.smtp_timeout,
            )
        except aiosmtplib.SMTPAuthenticationError as e:
            raise MailDeliveryError(f"SMTP authentication failed: {e}", "EAUTH") from e
        except (aiosmtplib.SMTPException, OSError) as e:
            raise MailDeliveryError(f"SMTP delivery failed: {e}", "ESEND") from e

        logger.debug("Sent %r to %s", message["Subject"], message["To"])
