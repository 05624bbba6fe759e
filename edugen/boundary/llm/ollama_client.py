"""
Ollama-compatible LLM client.

Stateless HTTP client for ``POST /api/generate`` with ``stream=false``.
The whole call is bounded by the request's max duration. Failures are
typed: LLMTimeoutError, LLMConnectionError (refused, dropped, 5xx),
LLMError (4xx), LLMMalformedResponseError (unparseable body).

Dependencies: httpx, edugen.boundary.llm.llm_schemas
System role: Model server boundary
"""

import asyncio
import logging
from typing import Any

import httpx

from edugen.boundary.llm.llm_schemas import LLMRequest, LLMResponse
from edugen.core.exceptions import (
    LLMConnectionError,
    LLMError,
    LLMMalformedResponseError,
    LLMTimeoutError,
)

logger = logging.getLogger(__name__)

_NS_PER_MS = 1_000_000


class OllamaClient:
    """Async client for an Ollama-style REST API."""

    def __init__(
        self,
        base_url: str = "http://localhost:11434",
        connect_timeout_seconds: float = 10.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """
        Initialize client.

        Args:
            base_url: Model server base URL
            connect_timeout_seconds: TCP connect timeout
            http_client: Preconfigured client (tests inject a MockTransport)
        """
        self._base_url = base_url.rstrip("/")
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            base_url=self._base_url,
            # Read timeout is governed per call by max_duration.
            timeout=httpx.Timeout(None, connect=connect_timeout_seconds),
        )

    async def generate(self, request: LLMRequest) -> LLMResponse:
        """
        Generate a completion.

        Args:
            request: Prompt, model and sampling parameters

        Returns:
            LLMResponse: Generated text

        Raises:
            LLMTimeoutError: When the call exceeds max_duration_seconds
            LLMConnectionError: When the server is unreachable or answers 5xx
            LLMError: When the server rejects the request (4xx)
            LLMMalformedResponseError: When the body is not the expected JSON
        """
        body = self._build_body(request)
        try:
            response = await asyncio.wait_for(
                self._client.post(f"{self._base_url}/api/generate", json=body),
                timeout=request.max_duration_seconds,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException) as e:
            logger.warning(
                f"{__name__}:generate - Timed out after {request.max_duration_seconds}s "
                f"(model={request.model})"
            )
            raise LLMTimeoutError(request.max_duration_seconds, {"model": request.model}) from e
        except httpx.TransportError as e:
            raise LLMConnectionError(
                f"Model server unreachable: {type(e).__name__}",
                model=request.model,
            ) from e

        if response.status_code >= 500:
            raise LLMConnectionError(
                f"Model server error {response.status_code}",
                model=request.model,
                details={"status_code": response.status_code, "body": response.text[:200]},
            )
        if response.status_code >= 400:
            raise LLMError(
                f"Model server rejected request ({response.status_code})",
                model=request.model,
                details={"status_code": response.status_code, "body": response.text[:200]},
            )

        return self._parse_response(response, request.model)

    @staticmethod
    def _build_body(request: LLMRequest) -> dict[str, Any]:
        options: dict[str, Any] = {
            "temperature": request.temperature,
            "top_p": request.top_p,
            "repeat_penalty": request.repeat_penalty,
        }
        if request.max_output_tokens is not None:
            options["num_predict"] = request.max_output_tokens
        return {
            "model": request.model,
            "prompt": request.prompt,
            "stream": False,
            "options": options,
        }

    @staticmethod
    def _parse_response(response: httpx.Response, model: str) -> LLMResponse:
        try:
            data = response.json()
        except ValueError as e:
            raise LLMMalformedResponseError(
                "Model server returned non-JSON body",
                model=model,
                details={"body": response.text[:200]},
            ) from e

        text = data.get("response") if isinstance(data, dict) else None
        if not isinstance(text, str):
            raise LLMMalformedResponseError(
                "Model server response has no 'response' text",
                model=model,
                details={"keys": sorted(data) if isinstance(data, dict) else []},
            )

        total_duration = data.get("total_duration")
        return LLMResponse(
            text=text,
            model=data.get("model") or model,
            done=bool(data.get("done", True)),
            prompt_tokens=data.get("prompt_eval_count"),
            completion_tokens=data.get("eval_count"),
            total_duration_ms=total_duration / _NS_PER_MS if total_duration else None,
        )

    async def health_check(self) -> bool:
        """Whether the server answers ``GET /api/tags``."""
        try:
            response = await self._client.get(f"{self._base_url}/api/tags", timeout=5.0)
        except httpx.HTTPError as e:
            logger.warning(f"{__name__}:health_check - Model server unreachable: {e}")
            return False
        return response.status_code == 200

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
