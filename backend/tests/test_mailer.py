"""
Unit tests for email composition and the SMTP transport.
aiosmtplib.send is mocked; no SMTP connection is opened.
"""

from datetime import datetime, timezone
from unittest.mock import AsyncMock

import aiosmtplib
import pytest

from app.errors import MailDeliveryError
from app.models.contact import Attachment, Submission
from app.services.mailer import (
    SENDER_SUBJECT,
    SmtpTransport,
    build_operator_notification,
    build_sender_acknowledgement,
)


def _submission(**overrides) -> Submission:
    values = dict(
        name="Jo Park",
        email="jo@x.com",
        message="Hello there,\nI'd like a quote for a small website.",
    )
    values.update(overrides)
    return Submission(**values)


def _text(msg) -> str:
    return msg.get_body(preferencelist=("plain",)).get_content()


def _html(msg) -> str:
    return msg.get_body(preferencelist=("html",)).get_content()


class TestOperatorNotification:

    def test_headers(self, settings):
        msg = build_operator_notification(_submission(), settings)
        assert msg["To"] == "owner@example.com"
        assert msg["Reply-To"] == "jo@x.com"
        assert msg["Subject"] == "New Website Message from Jo Park"
        assert "Example Studio" in msg["From"]
        assert "noreply@example.com" in msg["From"]

    def test_text_and_html_bodies(self, settings):
        msg = build_operator_notification(_submission(), settings)
        assert "From: Jo Park" in _text(msg)
        assert "I'd like a quote" in _text(msg)
        html_body = _html(msg)
        assert "mailto:jo@x.com" in html_body
        assert "Hello there,<br>" in html_body

    def test_html_escapes_values(self, settings):
        msg = build_operator_notification(_submission(message="Tom & Jerry's \"quote\" please"), settings)
        assert "Tom &amp; Jerry" in _html(msg)

    def test_subject_is_single_line(self, settings):
        msg = build_operator_notification(_submission(name="Jo\nBcc: victim@example.com"), settings)
        assert "\n" not in msg["Subject"]

    def test_includes_attachment(self, settings):
        attachment = Attachment(filename="brief.pdf", content_type="application/pdf", content=b"%PDF-1.4")
        msg = build_operator_notification(_submission(attachment=attachment), settings)

        attachments = list(msg.iter_attachments())
        assert len(attachments) == 1
        assert attachments[0].get_filename() == "brief.pdf"
        assert attachments[0].get_content_type() == "application/pdf"
        assert attachments[0].get_content() == b"%PDF-1.4"
        assert "brief.pdf" in _html(msg)

    def test_no_attachment_part_without_file(self, settings):
        msg = build_operator_notification(_submission(), settings)
        assert list(msg.iter_attachments()) == []


class TestSenderAcknowledgement:

    def test_headers(self, settings):
        msg = build_sender_acknowledgement(_submission(), settings)
        assert msg["To"] == "jo@x.com"
        assert msg["Subject"] == SENDER_SUBJECT
        assert msg["Reply-To"] is None

    def test_contains_copy_of_message(self, settings):
        msg = build_sender_acknowledgement(_submission(), settings)
        assert "Hi Jo Park," in _text(msg)
        assert "I'd like a quote for a small website." in _text(msg)
        assert "The Example Studio Team" in _text(msg)

    def test_copyright_year(self, settings):
        now = datetime(2031, 5, 1, tzinfo=timezone.utc)
        msg = build_sender_acknowledgement(_submission(), settings, now=now)
        assert "2031 Example Studio" in _html(msg)

    def test_mentions_but_never_carries_attachment(self, settings):
        attachment = Attachment(filename="brief.pdf", content_type="application/pdf", content=b"%PDF")
        msg = build_sender_acknowledgement(_submission(attachment=attachment), settings)

        assert list(msg.iter_attachments()) == []
        assert "Attachment: brief.pdf" in _text(msg)
        assert "brief.pdf" in _html(msg)


class TestSmtpTransport:

    @pytest.mark.asyncio
    async def test_sends_with_starttls(self, mocker, settings):
        send = mocker.patch("aiosmtplib.send", new_callable=AsyncMock)
        msg = build_sender_acknowledgement(_submission(), settings)

        await SmtpTransport(settings).send(msg)

        send.assert_awaited_once()
        args, kwargs = send.call_args
        assert args[0] is msg
        assert kwargs["hostname"] == "smtp.gmail.com"
        assert kwargs["port"] == 587
        assert kwargs["username"] == "mailer@example.com"
        assert kwargs["password"] == "app-password"
        assert kwargs["start_tls"] is True
        assert kwargs["use_tls"] is False
        assert kwargs["timeout"] == 30.0

    @pytest.mark.asyncio
    async def test_port_465_uses_implicit_tls(self, mocker, settings):
        from dataclasses import replace

        send = mocker.patch("aiosmtplib.send", new_callable=AsyncMock)
        await SmtpTransport(replace(settings, smtp_port=465)).send(
            build_sender_acknowledgement(_submission(), settings)
        )

        kwargs = send.call_args[1]
        assert kwargs["use_tls"] is True
        assert kwargs["start_tls"] is False

    @pytest.mark.asyncio
    async def test_auth_failure_maps_to_eauth(self, mocker, settings):
        mocker.patch(
            "aiosmtplib.send",
            new_callable=AsyncMock,
            side_effect=aiosmtplib.SMTPAuthenticationError(535, "Username and Password not accepted"),
        )

        with pytest.raises(MailDeliveryError) as exc_info:
            await SmtpTransport(settings).send(build_sender_acknowledgement(_submission(), settings))

        assert exc_info.value.error_code == "EAUTH"

    @pytest.mark.asyncio
    async def test_other_smtp_failure_maps_to_esend(self, mocker, settings):
        mocker.patch(
            "aiosmtplib.send",
            new_callable=AsyncMock,
            side_effect=aiosmtplib.SMTPConnectError("Connection refused"),
        )

        with pytest.raises(MailDeliveryError) as exc_info:
            await SmtpTransport(settings).send(build_sender_acknowledgement(_submission(), settings))

        assert exc_info.value.error_code == "ESEND"
