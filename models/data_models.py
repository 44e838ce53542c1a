"""
Core data models for the code review relay.

This module defines the Pydantic models used throughout the system for
request validation, upstream results and the JSON wire format.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field
from pydantic.alias_generators import to_camel


class ErrorCategory(str, Enum):
    """Client-visible failure categories."""
    BAD_INPUT = "bad_input"
    RATE_LIMITED = "rate_limited"
    UNAUTHENTICATED = "unauthenticated"
    THROTTLED = "throttled"
    UPSTREAM_VALIDATION = "upstream_validation"
    UNKNOWN = "unknown"


class ValidationErrorKind(str, Enum):
    """Reasons the ingress validator rejects a request."""
    MISSING_CODE = "missing_code"
    EMPTY_CODE = "empty_code"
    TOO_LONG = "too_long"


class ReviewRequest(BaseModel):
    """
    Raw review request body.

    Both fields are untrusted and deliberately typed as ``Any`` so that a
    non-string ``code`` reaches the validator instead of failing schema
    validation.
    """

    model_config = ConfigDict(extra="ignore")

    code: Any = None
    language: Any = None


class ValidatedRequest(BaseModel):
    """Sanitized, bounded request ready for the relay."""

    model_config = ConfigDict(frozen=True)

    sanitized_code: str = Field(..., min_length=1)
    language: str


class TokenUsage(BaseModel):
    """Token counters reported by the provider."""

    model_config = ConfigDict(frozen=True)

    input_tokens: int = Field(..., ge=0)
    output_tokens: int = Field(..., ge=0)

    @computed_field
    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens


class ReviewResult(BaseModel):
    """Result of one successful upstream call."""

    model_config = ConfigDict(frozen=True)

    content: str
    usage: TokenUsage


class ErrorOutcome(BaseModel):
    """Uniform failure shape carried back to the client."""

    category: ErrorCategory
    message: str
    request_id: str


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class UsageResponse(_CamelModel):
    """Token usage as exposed over HTTP."""
    prompt_tokens: int
    completion_tokens: int
    total_tokens: int


class ReviewResponse(_CamelModel):
    """Successful review response body."""
    success: bool = True
    review: str
    usage: UsageResponse
    request_id: str

    @classmethod
    def from_result(cls, result: ReviewResult, request_id: str) -> "ReviewResponse":
        return cls(
            review=result.content,
            usage=UsageResponse(
                prompt_tokens=result.usage.input_tokens,
                completion_tokens=result.usage.output_tokens,
                total_tokens=result.usage.total_tokens,
            ),
            request_id=request_id,
        )


class ErrorResponse(_CamelModel):
    """Error response body."""
    error: str
    request_id: Optional[str] = None


class HealthResponse(_CamelModel):
    """Health check response body."""
    status: str = "ok"
    timestamp: str
    version: str
    ai_provider: str
    model: str
