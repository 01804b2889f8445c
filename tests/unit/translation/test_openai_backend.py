"""
Tests for OpenAI translation backend.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from openai import OpenAIError

from page_translator.exceptions import BackendFailure
from page_translator.models.translation import TranslationContext
from page_translator.translation.openai_backend import OpenAITranslationBackend
from page_translator.translation.rate_limiter import RateLimitConfig, RateLimiter
from page_translator.translation.retry import RetryConfig, RetryHandler


def make_response(content, model="gpt-4o-mini", total_tokens=30):
    response = MagicMock()
    response.choices = [MagicMock()]
    response.choices[0].message.content = content
    response.usage.total_tokens = total_tokens
    response.model = model
    return response


@pytest.fixture
def client():
    client = MagicMock()
    client.chat.completions.create = AsyncMock(return_value=make_response("Hello"))
    return client


@pytest.fixture
def backend(client):
    return OpenAITranslationBackend(
        api_key="test-key",
        model="gpt-4o-mini",
        rate_limiter=RateLimiter(RateLimitConfig(requests_per_minute=100)),
        retry_handler=RetryHandler(RetryConfig(max_attempts=1)),
        client=client,
        max_tokens=500,
        temperature=0.3,
    )


class TestOpenAITranslationBackend:
    """Test OpenAI backend."""

    @pytest.mark.asyncio
    async def test_should_translate_text(self, backend, client):
        result = await backend.translate("你好", "en", "zh")

        assert result.translated_text == "Hello"
        assert result.model_identifier == "gpt-4o-mini"
        assert result.confidence == 0.9
        assert result.detected_source_language == "zh"
        assert result.tokens_used == 30

        kwargs = client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "gpt-4o-mini"
        assert kwargs["max_tokens"] == 500
        assert kwargs["temperature"] == 0.3
        assert '"你好"' in kwargs["messages"][0]["content"]

    @pytest.mark.asyncio
    async def test_should_pass_context_into_prompt(self, backend, client):
        context = TranslationContext(series_title="Solo Leveling")

        await backend.translate("你好", "en", context=context)

        prompt = client.chat.completions.create.call_args.kwargs["messages"][0]["content"]
        assert "Series: Solo Leveling" in prompt

    @pytest.mark.asyncio
    async def test_should_clean_wrapped_response(self, backend, client):
        client.chat.completions.create.return_value = make_response('"Translation: Hi"')

        result = await backend.translate("你好", "en")

        assert result.translated_text == "Hi"

    @pytest.mark.asyncio
    async def test_should_fail_on_empty_response(self, backend, client):
        client.chat.completions.create.return_value = make_response(None)

        with pytest.raises(BackendFailure, match="Empty translation response"):
            await backend.translate("你好", "en")

    @pytest.mark.asyncio
    async def test_should_wrap_sdk_errors(self, backend, client):
        client.chat.completions.create.side_effect = OpenAIError("quota exceeded")

        with pytest.raises(BackendFailure, match="OpenAI API call failed"):
            await backend.translate("你好", "en")

    @pytest.mark.asyncio
    async def test_should_wrap_unexpected_errors(self, backend, client):
        client.chat.completions.create.side_effect = RuntimeError("boom")

        with pytest.raises(BackendFailure, match="Unexpected error in OpenAI backend"):
            await backend.translate("你好", "en")

    def test_should_report_configuration(self):
        assert OpenAITranslationBackend(api_key="key").is_configured
        assert not OpenAITranslationBackend(api_key="").is_configured

    def test_should_return_name(self, backend):
        assert backend.get_name() == "openai"
        assert backend.model == "gpt-4o-mini"

    @patch("page_translator.translation.openai_backend.AsyncOpenAI")
    def test_should_create_client_lazily(self, mock_openai):
        backend = OpenAITranslationBackend(api_key="test-key")

        backend._get_client()
        backend._get_client()

        mock_openai.assert_called_once_with(api_key="test-key", max_retries=0)
