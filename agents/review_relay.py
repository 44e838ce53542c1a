"""
Model relay for code review.

Turns a validated request into one prompt, issues a single call to the
injected LLM client and maps any provider failure into a ``RelayError``.
"""

import time
from typing import Protocol

from models.data_models import ReviewResult, ValidatedRequest
from tools.error_handling import RelayError, classify_provider_error, provider_error_code
from tools.observability import get_logger, trace_operation


logger = get_logger(__name__)


SYSTEM_PROMPT = """You are an expert code reviewer. Review the submitted code and give a structured critique covering:

1. Style: formatting, naming and idiomatic use of the language.
2. Bugs: logic errors, unhandled edge cases and incorrect API usage.
3. Performance: unnecessary work, poor algorithmic choices and wasted resources.
4. Readability: structure, clarity and anything that would confuse the next reader.

Format your response with:
- **Feedback:** (numbered list of issues)
- **Updated Code:** (the improved version)

Be constructive and explain why each change improves the code."""


class CompletionClient(Protocol):
    """Anything that can run one completion and report token usage."""

    model: str

    def invoke(
        self,
        prompt: str,
        system_prompt: str = ...,
        temperature: float = ...,
        max_tokens: int = ...,
    ) -> ReviewResult:
        ...


def build_review_prompt(request: ValidatedRequest) -> str:
    """Embed the sanitized code and language into the user prompt."""
    language = request.language
    return (
        f"Please review the following {language} code snippet:\n\n"
        f"```{language}\n{request.sanitized_code}\n```"
    )


class ReviewRelay:
    """Relays validated review requests to the model provider."""

    def __init__(
        self,
        llm_client: CompletionClient,
        max_tokens: int = 4096,
        temperature: float = 0.7,
        system_prompt: str = SYSTEM_PROMPT,
    ):
        """
        Initialize the relay.

        Args:
            llm_client: Provider client, constructed once at startup
            max_tokens: Maximum output tokens per review
            temperature: Sampling temperature
            system_prompt: Instructional template sent with every request
        """
        self.llm_client = llm_client
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.system_prompt = system_prompt

    def review(self, request: ValidatedRequest) -> ReviewResult:
        """
        Review one validated request.

        Args:
            request: Output of the ingress validator

        Returns:
            ReviewResult with the model's review and token usage

        Raises:
            RelayError: If the provider call fails for any reason
        """
        prompt = build_review_prompt(request)
        started = time.perf_counter()

        try:
            with trace_operation(
                "bedrock.invoke_model",
                {"model": self.llm_client.model, "language": request.language},
            ):
                result = self.llm_client.invoke(
                    prompt,
                    system_prompt=self.system_prompt,
                    temperature=self.temperature,
                    max_tokens=self.max_tokens,
                )
        except Exception as e:
            category = classify_provider_error(e)
            logger.error(
                "upstream_error",
                category=category.value,
                error_type=type(e).__name__,
                error_code=provider_error_code(e),
                error_message=str(e),
            )
            raise RelayError(category, cause=e) from e

        logger.info(
            "upstream_completed",
            model=self.llm_client.model,
            duration_ms=round((time.perf_counter() - started) * 1000, 1),
            input_tokens=result.usage.input_tokens,
            output_tokens=result.usage.output_tokens,
        )
        return result
