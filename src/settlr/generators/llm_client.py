"""Chat-completion client for OpenAI and Azure OpenAI."""

import logging
from typing import Any, Optional

from openai import AzureOpenAI, OpenAI, OpenAIError

from ..config.models import Settings
from ..exceptions import DocumentGenerationError
from ..interfaces.generator import ILLMClient


logger = logging.getLogger(__name__)

AZURE_API_VERSION = "2024-12-01-preview"
EMPTY_RESPONSE = "No response generated"


class LLMClient(ILLMClient):
    """
    Thin wrapper over an ``openai`` client.

    Sends one system and one user message per call and returns the text
    of the first choice.
    """

    def __init__(self, client: Any, model: str = "gpt-4.1", temperature: float = 0.7):
        """
        Args:
            client: An ``OpenAI`` or ``AzureOpenAI`` instance.
            model: Default model (or Azure deployment) name.
            temperature: Default sampling temperature.
        """
        self._client = client
        self._model = model
        self._temperature = temperature

    @property
    def model(self) -> str:
        return self._model

    @property
    def temperature(self) -> float:
        return self._temperature

    def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: Optional[float] = None,
        model: Optional[str] = None,
    ) -> str:
        model = model or self._model
        temperature = self._temperature if temperature is None else temperature

        logger.info(f"Requesting completion from {model} (temperature={temperature})")
        logger.debug(f"System prompt: {system_prompt}")
        logger.debug(f"User prompt: {user_prompt}")

        try:
            completion = self._client.chat.completions.create(
                model=model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                temperature=temperature,
            )
        except OpenAIError as e:
            logger.error(f"Completion request to {model} failed: {e}")
            raise DocumentGenerationError(
                "Language model request failed", {"model": model, "error": str(e)}
            ) from e

        if not completion.choices:
            return EMPTY_RESPONSE
        content = completion.choices[0].message.content
        return content or EMPTY_RESPONSE


def get_llm_client(settings: Settings) -> LLMClient:
    """
    Build the client for the configured provider.

    Raises:
        ValueError: For a provider other than ``openai`` or ``azure``.
    """
    provider = settings.llm_provider.lower()
    if provider == "openai":
        client = OpenAI(api_key=settings.openai_api_key)
    elif provider == "azure":
        client = AzureOpenAI(
            api_version=AZURE_API_VERSION,
            azure_endpoint=settings.azure_openai_base_url,
            api_key=settings.azure_openai_api_key,
        )
    else:
        raise ValueError(f"Unsupported LLM Provider: {settings.llm_provider}")

    return LLMClient(client, model=settings.llm_model, temperature=settings.llm_temperature)
