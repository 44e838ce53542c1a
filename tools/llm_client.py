"""
LLM client for Anthropic Claude models hosted on Amazon Bedrock.

The client is constructed once at startup and injected into the review
relay. It performs exactly one ``InvokeModel`` call per request; botocore's
own retries are disabled.
"""

import json
from typing import Any, Dict, Optional

import boto3
from botocore.config import Config

from models.data_models import ReviewResult, TokenUsage


ANTHROPIC_VERSION = "bedrock-2023-05-31"


class MalformedResponseError(Exception):
    """Raised when the provider returns a body without the expected fields."""
    pass


class BedrockClient:
    """Client for invoking Claude through the Bedrock runtime API."""

    provider_name = "AWS Bedrock (Claude)"

    def __init__(
        self,
        model: str,
        region: str = "us-east-1",
        profile: Optional[str] = None,
        connect_timeout: float = 10.0,
        read_timeout: float = 60.0,
        client: Any = None,
    ):
        """
        Initialize the Bedrock client.

        Args:
            model: Bedrock model identifier
            region: AWS region
            profile: Named AWS profile (default credential chain if None)
            connect_timeout: Connection timeout in seconds
            read_timeout: Read timeout in seconds
            client: Pre-built ``bedrock-runtime`` client (tests, custom sessions)
        """
        self.model = model
        self.region = region
        self.profile = profile
        if client is None:
            client = self._init_bedrock(connect_timeout, read_timeout)
        self.client = client

    def _init_bedrock(self, connect_timeout: float, read_timeout: float):
        """Create the ``bedrock-runtime`` client with retries disabled."""
        session = boto3.Session(profile_name=self.profile, region_name=self.region)
        return session.client(
            service_name="bedrock-runtime",
            config=Config(
                connect_timeout=connect_timeout,
                read_timeout=read_timeout,
                retries={"total_max_attempts": 1, "mode": "standard"},
            ),
        )

    def build_payload(
        self,
        prompt: str,
        system_prompt: Optional[str],
        temperature: float,
        max_tokens: int,
    ) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "anthropic_version": ANTHROPIC_VERSION,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "messages": [{"role": "user", "content": prompt}],
        }
        if system_prompt:
            payload["system"] = system_prompt
        return payload

    def invoke(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        temperature: float = 0.7,
        max_tokens: int = 4096,
    ) -> ReviewResult:
        """
        Send one prompt to the model.

        Args:
            prompt: User message
            system_prompt: System prompt (optional)
            temperature: Sampling temperature
            max_tokens: Maximum tokens to generate

        Returns:
            ReviewResult with the completion text and token usage

        Raises:
            botocore.exceptions.ClientError: For provider-reported failures
            MalformedResponseError: If the response body cannot be parsed
        """
        body = json.dumps(self.build_payload(prompt, system_prompt, temperature, max_tokens))

        response = self.client.invoke_model(
            modelId=self.model,
            contentType="application/json",
            accept="application/json",
            body=body,
        )

        return self.parse_response(response["body"].read())

    @staticmethod
    def parse_response(raw_body) -> ReviewResult:
        """Extract completion text and usage counters from a response body."""
        try:
            response_body = json.loads(raw_body)
            usage = response_body["usage"]
            return ReviewResult(
                content=response_body["content"][0]["text"],
                usage=TokenUsage(
                    input_tokens=usage["input_tokens"],
                    output_tokens=usage["output_tokens"],
                ),
            )
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise MalformedResponseError(f"Unexpected Bedrock response: {e}") from e
