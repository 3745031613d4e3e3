"""
LLM provider abstraction.

Provides a provider-agnostic interface for model API calls with automatic retries
on the provider's overload/rate-limit signal. Any other failure status surfaces
immediately as ModelRequestError. Parsing of the reply text is the job of
resumefit.contexts.targeting.normalizer.
"""

import os
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from functools import partial
from typing import Callable, Optional, TypeVar

import requests
from dotenv import load_dotenv
from loguru import logger

from resumefit.exceptions import ConfigurationError, ModelRequestError

load_dotenv()

# Retry configuration
MAX_RETRIES = 5
BASE_DELAY = 1.0

# HTTP statuses that mean "try again later" rather than "your request is wrong"
RETRYABLE_STATUSES = (429, 503)

GEMINI_API_URL = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"
REQUEST_TIMEOUT_S = 120

T = TypeVar("T")


def _retry_with_backoff(
    operation: Callable[[], T],
    retryable_exception: type[Exception],
    error_message: str,
) -> T:
    """
    Execute operation with exponential backoff retry on specific exception.

    Args:
        operation: Callable that performs the API request and returns result
        retryable_exception: Exception type that triggers retry
        error_message: Message prefix for retry logging (e.g., "API overloaded")
    """
    for attempt in range(MAX_RETRIES):
        try:
            return operation()
        except retryable_exception:
            if attempt == MAX_RETRIES - 1:
                raise
            delay = BASE_DELAY * (2**attempt)
            logger.warning(
                f"  {error_message}, retrying in {delay:.1f}s... "
                f"(attempt {attempt + 1}/{MAX_RETRIES})"
            )
            time.sleep(delay)


class ModelOverloadedError(ModelRequestError):
    """Raised on a 429/503 reply; the only failure that is retried."""

    pass


@dataclass(frozen=True)
class GenerationConfig:
    """Sampling parameters for one model pass."""

    temperature: float = 0.0
    top_p: Optional[float] = None
    max_output_tokens: int = 2048
    json_response: bool = True


@dataclass
class LLMResponse:
    """Response from an LLM provider."""

    content: str
    model: str
    input_tokens: int
    output_tokens: int


class LLMProvider(ABC):
    """
    Abstract base for LLM providers.

    Subclasses must:
    - Set _provider_prefix class attribute (e.g., "gemini", "openai")
    - Set _retryable_exception to the exception type that triggers retry
    - Set _retry_message for logging during retries
    - Implement _call_api() for the actual API call
    - Call update_model(model) in __init__ to set model and name
    """

    _provider_prefix: str
    _retryable_exception: type[Exception]
    _retry_message: str

    name: str
    model: str

    def update_model(self, model: str):
        """Update the model and refresh the provider name."""
        self.model = model
        self.name = f"{self._provider_prefix}/{model}"

    @abstractmethod
    def _call_api(
        self, system_prompt: str, user_prompt: str, config: GenerationConfig
    ) -> LLMResponse:
        """Make a single API call (no retries). Implemented by subclasses."""
        pass

    def generate(
        self, system_prompt: str, user_prompt: str, config: Optional[GenerationConfig] = None
    ) -> LLMResponse:
        """
        Generate a response with automatic retry on transient errors.

        Raises:
            ModelRequestError: On a non-success reply, or once retries are exhausted
        """
        config = config or GenerationConfig()
        try:
            return _retry_with_backoff(
                partial(self._call_api, system_prompt, user_prompt, config),
                self._retryable_exception,
                self._retry_message,
            )
        except ModelRequestError:
            raise
        except self._retryable_exception as err:
            raise ModelRequestError(
                f"{self.name}: {self._retry_message} after {MAX_RETRIES} attempts",
                status=getattr(err, "status_code", None),
            ) from err


class GeminiProvider(LLMProvider):
    """Google Gemini provider over the generateContent REST endpoint."""

    _provider_prefix = "gemini"
    _retryable_exception = ModelOverloadedError
    _retry_message = "Model overloaded"

    def __init__(
        self,
        model: str = "gemini-2.0-flash",
        api_key: Optional[str] = None,
        session: Optional[requests.Session] = None,
    ):
        api_key = api_key or os.getenv("GEMINI_API_KEY")
        if not api_key:
            raise ConfigurationError("Missing API key in Options.")

        self.api_key = api_key
        self.session = session or requests.Session()
        self.update_model(model)

    def _payload(self, system_prompt: str, user_prompt: str, config: GenerationConfig) -> dict:
        generation = {
            "temperature": config.temperature,
            "maxOutputTokens": config.max_output_tokens,
        }
        if config.top_p is not None:
            generation["topP"] = config.top_p
        if config.json_response:
            generation["responseMimeType"] = "application/json"

        payload = {
            "contents": [{"role": "user", "parts": [{"text": user_prompt}]}],
            "generationConfig": generation,
        }
        if system_prompt:
            payload["systemInstruction"] = {"parts": [{"text": system_prompt}]}
        return payload

    def _call_api(
        self, system_prompt: str, user_prompt: str, config: GenerationConfig
    ) -> LLMResponse:
        response = self.session.post(
            GEMINI_API_URL.format(model=self.model),
            params={"key": self.api_key},
            json=self._payload(system_prompt, user_prompt, config),
            timeout=REQUEST_TIMEOUT_S,
        )

        if response.status_code in RETRYABLE_STATUSES:
            raise ModelOverloadedError(
                f"{self.name} is overloaded", status=response.status_code, body=response.text[:500]
            )
        if not response.ok:
            raise ModelRequestError(
                f"{self.name} request failed", status=response.status_code, body=response.text[:500]
            )

        data = response.json()
        candidates = data.get("candidates") or [{}]
        parts = (candidates[0].get("content") or {}).get("parts") or []
        usage = data.get("usageMetadata") or {}

        return LLMResponse(
            content="".join(part.get("text", "") for part in parts),
            model=self.model,
            input_tokens=usage.get("promptTokenCount", 0),
            output_tokens=usage.get("candidatesTokenCount", 0),
        )


class AnthropicProvider(LLMProvider):
    """Anthropic Claude provider with exponential backoff retry."""

    _provider_prefix = "anthropic"
    _retry_message = "API overloaded"

    def __init__(self, model: str = "claude-sonnet-4-20250514", api_key: Optional[str] = None):
        # Lazy import - anthropic SDK is heavy, only load if this provider is used
        try:
            import anthropic
        except ImportError:
            raise ImportError("anthropic package required. Install with: pip install anthropic")

        api_key = api_key or os.getenv("ANTHROPIC_API_KEY")
        if not api_key:
            raise ConfigurationError("Missing API key in Options.")

        self._sdk = anthropic
        self.client = anthropic.Anthropic(api_key=api_key)
        self._retryable_exception = anthropic.OverloadedError
        self.update_model(model)

    def _call_api(
        self, system_prompt: str, user_prompt: str, config: GenerationConfig
    ) -> LLMResponse:
        try:
            response = self.client.messages.create(
                model=self.model,
                max_tokens=config.max_output_tokens,
                temperature=config.temperature,
                system=system_prompt,
                messages=[{"role": "user", "content": user_prompt}],
            )
        except self._retryable_exception:
            raise
        except self._sdk.APIStatusError as err:
            raise ModelRequestError(f"{self.name} request failed", status=err.status_code) from err

        return LLMResponse(
            content=response.content[0].text,
            model=self.model,
            input_tokens=response.usage.input_tokens,
            output_tokens=response.usage.output_tokens,
        )


class OpenAIProvider(LLMProvider):
    """OpenAI GPT provider with exponential backoff retry."""

    _provider_prefix = "openai"
    _retry_message = "Rate limit hit"

    def __init__(self, model: str = "gpt-4o", api_key: Optional[str] = None):
        # Lazy import - openai SDK is heavy, only load if this provider is used
        try:
            import openai
        except ImportError:
            raise ImportError("openai package required. Install with: pip install openai")

        api_key = api_key or os.getenv("OPENAI_API_KEY")
        if not api_key:
            raise ConfigurationError("Missing API key in Options.")

        self._sdk = openai
        self.client = openai.OpenAI(api_key=api_key)
        self._retryable_exception = openai.RateLimitError
        self.update_model(model)

    def _call_api(
        self, system_prompt: str, user_prompt: str, config: GenerationConfig
    ) -> LLMResponse:
        options = {}
        if config.top_p is not None:
            options["top_p"] = config.top_p
        if config.json_response:
            options["response_format"] = {"type": "json_object"}

        try:
            response = self.client.chat.completions.create(
                model=self.model,
                max_tokens=config.max_output_tokens,
                temperature=config.temperature,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                **options,
            )
        except self._retryable_exception:
            raise
        except self._sdk.APIStatusError as err:
            raise ModelRequestError(f"{self.name} request failed", status=err.status_code) from err

        return LLMResponse(
            content=response.choices[0].message.content or "",
            model=self.model,
            input_tokens=response.usage.prompt_tokens,
            output_tokens=response.usage.completion_tokens,
        )


# --- Provider Factory ---

PROVIDERS = {
    "gemini": GeminiProvider,
    "anthropic": AnthropicProvider,
    "openai": OpenAIProvider,
}


def get_provider(
    provider_name: str = None, model: str = None, api_key: str = None
) -> LLMProvider:
    """
    Get an LLM provider instance.

    Args:
        provider_name: "gemini", "anthropic" or "openai" (default: from LLM_PROVIDER env var)
        model: Model name (default: provider-specific default)
        api_key: API key (default: provider-specific env var)

    Returns:
        LLMProvider instance
    """
    if provider_name is None:
        provider_name = os.getenv("LLM_PROVIDER", "gemini")
    provider_name = provider_name.lower()

    if provider_name not in PROVIDERS:
        raise ValueError(
            f"Unknown provider: {provider_name}. Use one of: {', '.join(sorted(PROVIDERS))}"
        )

    kwargs = {"api_key": api_key}
    if model:
        kwargs["model"] = model
    return PROVIDERS[provider_name](**kwargs)
