"""
Resilient LLM client.

Composes the Ollama client with the per-model circuit breaker and a
bounded tenacity retry. Each attempt passes through the breaker, so an
open circuit stops the retry loop at once: CircuitOpenError is never
retried. Generation defaults come from LLM settings.

Dependencies: edugen.boundary.llm.ollama_client, edugen.core.circuit_breaker,
    edugen.core.retry, edugen.configs
System role: The only path from the pipeline to the model server
"""

import logging

from edugen.boundary.llm.llm_schemas import LLMRequest, LLMResponse
from edugen.boundary.llm.ollama_client import OllamaClient
from edugen.configs.llm import LLMSettings
from edugen.core.circuit_breaker import CircuitBreakerRegistry
from edugen.core.exceptions import CallTimeoutError, LLMConnectionError
from edugen.core.retry import call_with_retry

logger = logging.getLogger(__name__)

RETRYABLE_LLM_ERRORS = (CallTimeoutError, LLMConnectionError)


class ResilientLLMClient:
    """LLM client with circuit breaking, retry and configured defaults."""

    def __init__(
        self,
        client: OllamaClient,
        breakers: CircuitBreakerRegistry,
        settings: LLMSettings,
    ) -> None:
        """
        Initialize resilient client.

        Args:
            client: Raw model server client
            breakers: Shared breaker registry (one breaker per model)
            settings: Generation defaults and retry policy
        """
        self._client = client
        self._breakers = breakers
        self._settings = settings

    @property
    def model(self) -> str:
        return self._settings.model

    @property
    def model_version(self) -> str:
        """Model identity used in cache keys."""
        return self._settings.model_version

    def build_request(self, prompt: str, **overrides) -> LLMRequest:
        """
        Build a request from configured defaults.

        Args:
            prompt: Full prompt text
            **overrides: Any LLMRequest field (temperature, model, ...)

        Returns:
            LLMRequest: Request ready to send
        """
        params = {
            "model": self._settings.model,
            "temperature": self._settings.temperature,
            "top_p": self._settings.top_p,
            "repeat_penalty": self._settings.repeat_penalty,
            "max_output_tokens": self._settings.max_output_tokens,
            "max_duration_seconds": self._settings.max_duration_seconds,
        }
        params.update(overrides)
        return LLMRequest(prompt=prompt, **params)

    async def generate(self, prompt: str, **overrides) -> LLMResponse:
        """
        Generate text through the breaker with bounded retry.

        Args:
            prompt: Full prompt text
            **overrides: LLMRequest field overrides

        Returns:
            LLMResponse: Generated text

        Raises:
            CircuitOpenError: When the model's circuit is open (not retried)
            LLMTimeoutError: When every attempt timed out
            LLMConnectionError: When every attempt failed to connect
            LLMError: Non-retryable server rejections and malformed output
        """
        request = self.build_request(prompt, **overrides)
        breaker = self._breakers.get(request.model)
        return await call_with_retry(
            breaker.call,
            self._client.generate,
            request,
            operation="generate",
            retry_on=RETRYABLE_LLM_ERRORS,
            max_attempts=self._settings.retry_max_attempts,
            initial_wait=self._settings.retry_initial_wait_seconds,
            max_wait=self._settings.retry_max_wait_seconds,
            jitter=self._settings.retry_jitter_seconds,
        )

    async def health_check(self) -> bool:
        return await self._client.health_check()

    async def aclose(self) -> None:
        await self._client.aclose()
