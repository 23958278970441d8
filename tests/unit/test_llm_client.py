"""Unit tests for the chat-completion client."""

from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest
from openai import OpenAIError

from settlr.config import Settings
from settlr.exceptions import DocumentGenerationError
from settlr.generators.llm_client import (
    AZURE_API_VERSION,
    EMPTY_RESPONSE,
    LLMClient,
    get_llm_client,
)


def _completion(content):
    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=content))]
    )


class TestLLMClient:
    """Tests for LLMClient.complete."""

    def test_sends_system_and_user_messages(self):
        openai_client = MagicMock()
        openai_client.chat.completions.create.return_value = _completion("Hello")
        client = LLMClient(openai_client, model="gpt-4.1", temperature=0.7)

        assert client.complete("system", "user") == "Hello"

        openai_client.chat.completions.create.assert_called_once_with(
            model="gpt-4.1",
            messages=[
                {"role": "system", "content": "system"},
                {"role": "user", "content": "user"},
            ],
            temperature=0.7,
        )

    def test_overrides(self):
        openai_client = MagicMock()
        openai_client.chat.completions.create.return_value = _completion("ok")
        client = LLMClient(openai_client)

        client.complete("s", "u", temperature=0.0, model="gpt-4o-mini")

        kwargs = openai_client.chat.completions.create.call_args.kwargs
        assert kwargs["temperature"] == 0.0
        assert kwargs["model"] == "gpt-4o-mini"

    @pytest.mark.parametrize("completion", [
        SimpleNamespace(choices=[]),
        _completion(None),
        _completion(""),
    ])
    def test_empty_reply(self, completion):
        openai_client = MagicMock()
        openai_client.chat.completions.create.return_value = completion

        assert LLMClient(openai_client).complete("s", "u") == EMPTY_RESPONSE

    def test_api_error_wrapped(self):
        openai_client = MagicMock()
        openai_client.chat.completions.create.side_effect = OpenAIError("quota exceeded")

        with pytest.raises(DocumentGenerationError) as exc_info:
            LLMClient(openai_client).complete("s", "u")

        assert exc_info.value.details["error"] == "quota exceeded"


class TestGetLLMClient:
    """Tests for the provider factory."""

    def test_openai(self):
        settings = Settings(openai_api_key="sk-test", llm_model="gpt-4o", llm_temperature=0.2)

        with patch("settlr.generators.llm_client.OpenAI") as openai_cls:
            client = get_llm_client(settings)

        openai_cls.assert_called_once_with(api_key="sk-test")
        assert client.model == "gpt-4o"
        assert client.temperature == 0.2

    def test_azure(self):
        settings = Settings(
            llm_provider="azure",
            azure_openai_api_key="key",
            azure_openai_base_url="https://example.openai.azure.com",
        )

        with patch("settlr.generators.llm_client.AzureOpenAI") as azure_cls:
            get_llm_client(settings)

        azure_cls.assert_called_once_with(
            api_version=AZURE_API_VERSION,
            azure_endpoint="https://example.openai.azure.com",
            api_key="key",
        )

    def test_unknown_provider(self):
        with pytest.raises(ValueError):
            get_llm_client(Settings(llm_provider="llama"))
