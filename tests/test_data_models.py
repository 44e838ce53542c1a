"""Tests for data models and their JSON wire format."""

import pytest
from pydantic import ValidationError

from models.data_models import (
    ErrorResponse,
    HealthResponse,
    ReviewRequest,
    ReviewResponse,
    ReviewResult,
    TokenUsage,
    ValidatedRequest,
)


def test_total_tokens_is_derived():
    usage = TokenUsage(input_tokens=5, output_tokens=3)
    assert usage.total_tokens == 8
    assert usage.model_dump() == {"input_tokens": 5, "output_tokens": 3, "total_tokens": 8}


def test_negative_token_counts_are_rejected():
    with pytest.raises(ValidationError):
        TokenUsage(input_tokens=-1, output_tokens=3)


def test_validated_request_requires_code():
    with pytest.raises(ValidationError):
        ValidatedRequest(sanitized_code="", language="python")


def test_review_request_accepts_any_values():
    request = ReviewRequest.model_validate({"code": 42, "language": ["x"], "extra": True})
    assert request.code == 42
    assert request.language == ["x"]


def test_review_request_defaults_to_missing():
    request = ReviewRequest.model_validate({})
    assert request.code is None
    assert request.language is None


def test_review_response_is_camel_case():
    result = ReviewResult(content="ok", usage=TokenUsage(input_tokens=5, output_tokens=3))
    body = ReviewResponse.from_result(result, "req_1_abc").model_dump(by_alias=True)

    assert body == {
        "success": True,
        "review": "ok",
        "usage": {"promptTokens": 5, "completionTokens": 3, "totalTokens": 8},
        "requestId": "req_1_abc",
    }


def test_error_response_is_camel_case():
    body = ErrorResponse(error="nope", request_id="req_1_abc").model_dump(by_alias=True)
    assert body == {"error": "nope", "requestId": "req_1_abc"}


def test_health_response_is_camel_case():
    body = HealthResponse(
        timestamp="2024-01-01T00:00:00.000Z",
        version="1.0.0",
        ai_provider="AWS Bedrock (Claude)",
        model="m",
    ).model_dump(by_alias=True)
    assert body["aiProvider"] == "AWS Bedrock (Claude)"
    assert body["status"] == "ok"
