"""
Unit tests for the attempt() failure-policy helper.
"""

import asyncio

import pytest

from app.errors import (
    ContactError,
    MailDeliveryError,
    OperatorNotificationFailed,
    SenderNotificationFailed,
    SpamClassificationUnavailable,
)
from app.services.attempt import FailurePolicy, attempt


async def _ok():
    return "value"


async def _boom():
    raise RuntimeError("remote exploded")


async def _slow():
    await asyncio.sleep(5)
    return "late"


class TestAttempt:

    @pytest.mark.asyncio
    async def test_success_returns_value(self):
        result = await attempt(_ok, policy=FailurePolicy.FATAL)
        assert result.ok is True
        assert result.value == "value"
        assert result.error is None

    @pytest.mark.asyncio
    async def test_fatal_raises_given_error_class(self):
        with pytest.raises(SpamClassificationUnavailable) as exc_info:
            await attempt(
                _boom,
                policy=FailurePolicy.FATAL,
                error_class=SpamClassificationUnavailable,
                error_code="spam_classification_unavailable",
            )
        assert exc_info.value.status_code == 500
        assert exc_info.value.error_code == "spam_classification_unavailable"
        assert "remote exploded" in exc_info.value.message
        assert isinstance(exc_info.value.__cause__, RuntimeError)

    @pytest.mark.asyncio
    async def test_fatal_keeps_underlying_error_code(self):
        async def _auth_failure():
            raise MailDeliveryError("535 bad credentials", "EAUTH")

        with pytest.raises(OperatorNotificationFailed) as exc_info:
            await attempt(_auth_failure, policy=FailurePolicy.FATAL, error_class=OperatorNotificationFailed)
        assert exc_info.value.error_code == "EAUTH"

    @pytest.mark.asyncio
    async def test_record_returns_failure(self):
        result = await attempt(_boom, policy=FailurePolicy.RECORD)
        assert result.ok is False
        assert result.value is None
        assert isinstance(result.error, ContactError)
        assert isinstance(result.error.__cause__, RuntimeError)
        assert result.error_message == "remote exploded"

    @pytest.mark.asyncio
    async def test_record_wraps_in_given_error_class(self):
        result = await attempt(
            _boom,
            policy=FailurePolicy.RECORD,
            error_class=SenderNotificationFailed,
            error_code="sender_notification_failed",
        )
        assert isinstance(result.error, SenderNotificationFailed)
        assert result.error.error_code == "sender_notification_failed"

    @pytest.mark.asyncio
    async def test_fallback_returns_fallback_value(self):
        result = await attempt(_boom, policy=FailurePolicy.FALLBACK, fallback="generic thanks")
        assert result.ok is False
        assert result.value == "generic thanks"

    @pytest.mark.asyncio
    async def test_timeout_follows_policy(self):
        result = await attempt(_slow, policy=FailurePolicy.FALLBACK, fallback="generic", timeout=0.01)
        assert result.ok is False
        assert result.value == "generic"
        assert result.error_message == "Timed out waiting for a response."

    @pytest.mark.asyncio
    async def test_timeout_is_fatal_under_fatal_policy(self):
        with pytest.raises(SpamClassificationUnavailable):
            await attempt(
                _slow,
                policy=FailurePolicy.FATAL,
                error_class=SpamClassificationUnavailable,
                timeout=0.01,
            )

    @pytest.mark.asyncio
    async def test_operation_called_exactly_once(self):
        calls = []

        async def _counted():
            calls.append(1)
            raise RuntimeError("nope")

        await attempt(_counted, policy=FailurePolicy.RECORD)
        assert len(calls) == 1
