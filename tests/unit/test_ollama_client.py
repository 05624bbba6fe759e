"""
Test suite for OllamaClient.

Tests request body construction, response parsing and the mapping of
transport failures and HTTP status codes to typed LLM errors. Uses
httpx.MockTransport so no model server is needed.

System role: Verification of the model server boundary
"""

import asyncio
import json

import httpx
import pytest

from edugen.boundary.llm.llm_schemas import LLMRequest
from edugen.boundary.llm.ollama_client import OllamaClient
from edugen.core.exceptions import (
    LLMConnectionError,
    LLMError,
    LLMMalformedResponseError,
    LLMTimeoutError,
)


def _client(handler) -> OllamaClient:
    transport = httpx.MockTransport(handler)
    return OllamaClient(
        base_url="http://model-server:11434/",
        http_client=httpx.AsyncClient(transport=transport),
    )


@pytest.fixture
def request_() -> LLMRequest:
    return LLMRequest(prompt="Explain fractions", model="llama3", max_output_tokens=128)


class TestOllamaClientGenerate:
    """Test suite for OllamaClient.generate()."""

    @pytest.mark.asyncio
    async def test_generate_should_post_non_streaming_body(self, request_: LLMRequest) -> None:
        """Test the request hits /api/generate with stream=false and sampling options."""
        # Arrange
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"response": "ok", "model": "llama3", "done": True})

        client = _client(handler)

        # Act
        await client.generate(request_)

        # Assert
        assert str(seen[0].url) == "http://model-server:11434/api/generate"
        body = json.loads(seen[0].content)
        assert body["stream"] is False
        assert body["model"] == "llama3"
        assert body["options"]["num_predict"] == 128
        assert body["options"]["temperature"] == 0.7

    @pytest.mark.asyncio
    async def test_generate_should_parse_accounting_fields(self, request_: LLMRequest) -> None:
        """Test token counts and duration (ns -> ms) are carried over."""
        # Arrange
        client = _client(
            lambda request: httpx.Response(
                200,
                json={
                    "response": "Fractions are parts of a whole.",
                    "model": "llama3",
                    "done": True,
                    "prompt_eval_count": 12,
                    "eval_count": 7,
                    "total_duration": 2_500_000,
                },
            )
        )

        # Act
        response = await client.generate(request_)

        # Assert
        assert response.text == "Fractions are parts of a whole."
        assert response.prompt_tokens == 12
        assert response.completion_tokens == 7
        assert response.total_duration_ms == pytest.approx(2.5)

    @pytest.mark.asyncio
    async def test_server_error_should_raise_connection_error(self, request_: LLMRequest) -> None:
        """Test 5xx responses count as connection failures."""
        # Arrange
        client = _client(lambda request: httpx.Response(503, text="loading model"))

        # Act & Assert
        with pytest.raises(LLMConnectionError) as exc_info:
            await client.generate(request_)
        assert exc_info.value.details["status_code"] == 503

    @pytest.mark.asyncio
    async def test_client_error_should_raise_plain_llm_error(self, request_: LLMRequest) -> None:
        """Test 4xx responses are rejections, not connection failures."""
        # Arrange
        client = _client(lambda request: httpx.Response(404, text="model not found"))

        # Act & Assert
        with pytest.raises(LLMError) as exc_info:
            await client.generate(request_)
        assert not isinstance(exc_info.value, LLMConnectionError)

    @pytest.mark.asyncio
    async def test_refused_connection_should_raise_connection_error(
        self, request_: LLMRequest
    ) -> None:
        """Test transport errors map to LLMConnectionError."""

        # Arrange
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        client = _client(handler)

        # Act & Assert
        with pytest.raises(LLMConnectionError):
            await client.generate(request_)

    @pytest.mark.asyncio
    async def test_slow_server_should_raise_timeout(self) -> None:
        """Test the whole call is bounded by max_duration_seconds."""

        # Arrange
        async def handler(request: httpx.Request) -> httpx.Response:
            await asyncio.sleep(1.0)
            return httpx.Response(200, json={"response": "late"})

        client = _client(handler)
        request = LLMRequest(prompt="p", model="llama3", max_duration_seconds=0.05)

        # Act & Assert
        with pytest.raises(LLMTimeoutError) as exc_info:
            await client.generate(request)
        assert exc_info.value.details["timeout_seconds"] == 0.05

    @pytest.mark.asyncio
    async def test_non_json_body_should_raise_malformed_response(
        self, request_: LLMRequest
    ) -> None:
        """Test an HTML error page with status 200 is malformed."""
        # Arrange
        client = _client(lambda request: httpx.Response(200, text="<html>oops</html>"))

        # Act & Assert
        with pytest.raises(LLMMalformedResponseError):
            await client.generate(request_)

    @pytest.mark.asyncio
    async def test_missing_response_field_should_raise_malformed_response(
        self, request_: LLMRequest
    ) -> None:
        """Test a JSON body without 'response' text is malformed."""
        # Arrange
        client = _client(lambda request: httpx.Response(200, json={"error": "busy"}))

        # Act & Assert
        with pytest.raises(LLMMalformedResponseError) as exc_info:
            await client.generate(request_)
        assert exc_info.value.details["keys"] == ["error"]


class TestOllamaClientHealth:
    """Test suite for OllamaClient.health_check()."""

    @pytest.mark.asyncio
    async def test_health_check_should_return_true_on_200(self) -> None:
        """Test a reachable server is healthy."""
        # Arrange
        client = _client(lambda request: httpx.Response(200, json={"models": []}))

        # Act & Assert
        assert await client.health_check() is True

    @pytest.mark.asyncio
    async def test_health_check_should_return_false_when_unreachable(self) -> None:
        """Test connection failures report unhealthy instead of raising."""

        # Arrange
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        client = _client(handler)

        # Act & Assert
        assert await client.health_check() is False
