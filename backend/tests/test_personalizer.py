"""
Unit tests for the personalized acknowledgement with a MOCKED Anthropic client.
"""

from unittest.mock import AsyncMock, MagicMock, Mock

import pytest

from app.services.personalizer import AnthropicPersonalizer


def _patch_reply(mocker, text: str) -> MagicMock:
    mock_response = Mock()
    mock_response.content = [Mock(text=text)]
    mock_client = MagicMock()
    mock_client.messages.create = AsyncMock(return_value=mock_response)
    mocker.patch("anthropic.AsyncAnthropic", return_value=mock_client)
    return mock_client


class TestAnthropicPersonalizer:

    @pytest.mark.asyncio
    async def test_returns_sentence(self, mocker):
        client = _patch_reply(mocker, "Thank you for your inquiry about pricing!\n")

        text = await AnthropicPersonalizer(api_key="k").personalize("How much for a logo?")

        assert text == "Thank you for your inquiry about pricing!"
        prompt = client.messages.create.call_args[1]["messages"][0]["content"]
        assert prompt.rstrip().endswith("How much for a logo?")

    @pytest.mark.asyncio
    async def test_strips_wrapping_quotes(self, mocker):
        _patch_reply(mocker, '"Thanks for reaching out!"')
        assert await AnthropicPersonalizer(api_key="k").personalize("hello there!!") == "Thanks for reaching out!"

    @pytest.mark.asyncio
    async def test_empty_reply_raises(self, mocker):
        _patch_reply(mocker, "   ")
        with pytest.raises(ValueError):
            await AnthropicPersonalizer(api_key="k").personalize("hello there!!")

    @pytest.mark.asyncio
    async def test_passes_timeout(self, mocker):
        client = _patch_reply(mocker, "Thanks!")
        await AnthropicPersonalizer(api_key="k", timeout=3).personalize("hello there!!")
        assert client.messages.create.call_args[1]["timeout"] == 3
