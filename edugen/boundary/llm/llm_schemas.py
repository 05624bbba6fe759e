"""
LLM request/response schemas.

Dependencies: pydantic
System role: Contract between the pipeline and the model server
"""

from pydantic import BaseModel, Field


class LLMRequest(BaseModel):
    """A single non-streaming generation request."""

    prompt: str = Field(min_length=1)
    model: str
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    top_p: float = Field(default=0.9, ge=0.0, le=1.0)
    repeat_penalty: float = Field(default=1.1, ge=0.0)
    max_output_tokens: int | None = Field(default=None, ge=1)
    max_duration_seconds: float = Field(default=600.0, gt=0)


class LLMResponse(BaseModel):
    """Generated text with the server's accounting fields."""

    text: str
    model: str
    done: bool = True
    prompt_tokens: int | None = None
    completion_tokens: int | None = None
    total_duration_ms: float | None = None
