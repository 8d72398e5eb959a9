"""
Shared fixtures for the contact intake tests.

External collaborators (Claude, SMTP) are AsyncMocks; nothing here touches the
network.
"""

from unittest.mock import AsyncMock, Mock

import pytest

from app.config import ContactSettings
from app.models.contact import SpamVerdict
from app.services.pipeline import SubmissionPipeline
from app.services.rate_limiter import RateLimiter
from app.services.submission_log import SubmissionLog


@pytest.fixture()
def settings() -> ContactSettings:
    return ContactSettings(
        smtp_user="mailer@example.com",
        smtp_pass="app-password",
        from_email="noreply@example.com",
        to_email="owner@example.com",
        anthropic_api_key="test-anthropic-key",
        from_name="Example Studio",
    )


@pytest.fixture()
def classifier():
    mock = Mock()
    mock.classify = AsyncMock(return_value=SpamVerdict(is_spam=False, reason="Looks genuine."))
    return mock


@pytest.fixture()
def personalizer():
    mock = Mock()
    mock.personalize = AsyncMock(return_value="Thanks Jo!")
    return mock


@pytest.fixture()
def transport():
    mock = Mock()
    mock.send = AsyncMock(return_value=None)
    return mock


@pytest.fixture()
def submission_log():
    return Mock(spec=SubmissionLog)


@pytest.fixture()
def make_pipeline(settings, classifier, personalizer, transport, submission_log):
    """Factory for a pipeline wired to the mocks; keyword args override any part."""

    def _make(**overrides) -> SubmissionPipeline:
        pipeline_settings = overrides.pop("settings", settings)
        kwargs = dict(
            rate_limiter=RateLimiter(),
            log=submission_log,
            classifier=classifier,
            personalizer=personalizer,
            transport_factory=lambda s: transport,
            settings_loader=lambda: pipeline_settings,
        )
        kwargs.update(overrides)
        return SubmissionPipeline(**kwargs)

    return _make


@pytest.fixture()
def valid_fields() -> dict:
    return {
        "name": "Jo",
        "email": "jo@x.com",
        "message": "Hello there, this is long enough.",
        "honeypot": "",
    }
