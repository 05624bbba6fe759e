"""
LLM runtime boundary.

Exports:
  - OllamaClient: Raw HTTP client for the model server
  - ResilientLLMClient: Breaker + retry wrapper used by the pipeline
  - LLMRequest, LLMResponse: Request/response schemas
"""

from edugen.boundary.llm.llm_schemas import LLMRequest, LLMResponse
from edugen.boundary.llm.ollama_client import OllamaClient
from edugen.boundary.llm.resilient_client import ResilientLLMClient

__all__ = ["OllamaClient", "ResilientLLMClient", "LLMRequest", "LLMResponse"]
