"""Shared fixtures for the code review relay tests."""

import time
from typing import Any, Dict, List, Optional

import pytest
from botocore.exceptions import ClientError
from fastapi.testclient import TestClient

from api.main import create_app
from config.settings import Settings
from models.data_models import ReviewResult, TokenUsage


class FakeCompletionClient:
    """In-process stand-in for the Bedrock client."""

    provider_name = "AWS Bedrock (Claude)"

    def __init__(
        self,
        model: str = "anthropic.claude-test",
        content: str = "ok",
        input_tokens: int = 5,
        output_tokens: int = 3,
        error: Optional[BaseException] = None,
        delay: float = 0.0,
    ):
        self.model = model
        self.content = content
        self.input_tokens = input_tokens
        self.output_tokens = output_tokens
        self.error = error
        self.delay = delay
        self.calls: List[Dict[str, Any]] = []

    def invoke(self, prompt, system_prompt=None, temperature=0.7, max_tokens=4096):
        self.calls.append({
            "prompt": prompt,
            "system_prompt": system_prompt,
            "temperature": temperature,
            "max_tokens": max_tokens,
        })
        if self.delay:
            time.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return ReviewResult(
            content=self.content,
            usage=TokenUsage(input_tokens=self.input_tokens, output_tokens=self.output_tokens),
        )


def client_error(code: str, message: str = "provider said no") -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": message}}, "InvokeModel")


def make_settings(**overrides) -> Settings:
    values = {
        "environment": "test",
        "cors_origins": "http://localhost:5332,http://localhost:5333",
        "rate_limit_window_ms": 60000,
        "rate_limit_max_requests": 10,
        "max_code_length": 50000,
        "max_request_size": "1mb",
        "request_timeout_seconds": 5,
        "claude_model": "anthropic.claude-test",
        "log_level": "WARNING",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def fake_llm():
    return FakeCompletionClient()


@pytest.fixture
def settings():
    return make_settings()


@pytest.fixture
def client(settings, fake_llm):
    app = create_app(settings=settings, llm_client=fake_llm)
    with TestClient(app) as test_client:
        yield test_client
