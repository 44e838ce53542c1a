"""
Error handling for the code review relay.

This module provides:
- Exception types for ingress validation and relay failures
- Classification of provider errors into a closed set of categories
- Mapping of categories to HTTP status codes and safe client messages
"""

from typing import Dict, Optional, Union

from botocore.exceptions import (
    ClientError,
    NoCredentialsError,
    PartialCredentialsError,
    ProfileNotFound,
)

from models.data_models import ErrorCategory, ErrorOutcome, ValidationErrorKind


class InputValidationError(Exception):
    """Raised when a review request fails ingress validation."""

    def __init__(self, kind: ValidationErrorKind, message: str, limit: Optional[int] = None):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.limit = limit


class RelayError(Exception):
    """
    Raised when the upstream call fails.

    ``cause`` keeps the original exception for server-side logging only; it
    is never rendered into a client response.
    """

    def __init__(self, category: ErrorCategory, cause: Optional[BaseException] = None):
        super().__init__(SAFE_MESSAGES[category])
        self.category = category
        self.cause = cause


class RequestTooLarge(Exception):
    """Raised when a request body exceeds the configured size limit."""

    def __init__(self, limit: int):
        super().__init__("Request body too large")
        self.limit = limit


class RateLimitExceeded(Exception):
    """Raised when a client exceeds its request budget."""

    def __init__(self, retry_after: float):
        super().__init__(SAFE_MESSAGES[ErrorCategory.RATE_LIMITED])
        self.retry_after = retry_after


SAFE_MESSAGES: Dict[ErrorCategory, str] = {
    ErrorCategory.RATE_LIMITED: "Too many requests. Please try again later.",
    ErrorCategory.UNAUTHENTICATED: "AWS credentials error. Please check your AWS configuration.",
    ErrorCategory.THROTTLED: "Service is temporarily overloaded. Please try again later.",
    ErrorCategory.UPSTREAM_VALIDATION: "Invalid request. Please check your input and try again.",
    ErrorCategory.UNKNOWN: "Failed to generate code review. Please try again.",
}

STATUS_CODES: Dict[ErrorCategory, int] = {
    ErrorCategory.BAD_INPUT: 400,
    ErrorCategory.RATE_LIMITED: 429,
    ErrorCategory.UNAUTHENTICATED: 500,
    ErrorCategory.THROTTLED: 429,
    ErrorCategory.UPSTREAM_VALIDATION: 400,
    ErrorCategory.UNKNOWN: 500,
}

# Bedrock error codes, as reported in ClientError.response["Error"]["Code"]
PROVIDER_ERROR_CODES: Dict[str, ErrorCategory] = {
    "AccessDeniedException": ErrorCategory.UNAUTHENTICATED,
    "UnrecognizedClientException": ErrorCategory.UNAUTHENTICATED,
    "ExpiredTokenException": ErrorCategory.UNAUTHENTICATED,
    "InvalidSignatureException": ErrorCategory.UNAUTHENTICATED,
    "ThrottlingException": ErrorCategory.THROTTLED,
    "TooManyRequestsException": ErrorCategory.THROTTLED,
    "ServiceUnavailableException": ErrorCategory.THROTTLED,
    "ValidationException": ErrorCategory.UPSTREAM_VALIDATION,
}

CREDENTIAL_ERRORS = (NoCredentialsError, PartialCredentialsError, ProfileNotFound)


def provider_error_code(error: BaseException) -> Optional[str]:
    """Return the provider's error code for ``error``, if it carries one."""
    if isinstance(error, ClientError):
        return error.response.get("Error", {}).get("Code")
    return None


def classify_provider_error(error: BaseException) -> ErrorCategory:
    """
    Classify an upstream failure.

    Total over all exceptions: anything not recognised, including timeouts
    and malformed provider responses, is ``UNKNOWN``.

    Args:
        error: Exception raised while calling the provider

    Returns:
        One of the upstream error categories
    """
    if isinstance(error, RelayError):
        return error.category

    if isinstance(error, CREDENTIAL_ERRORS):
        return ErrorCategory.UNAUTHENTICATED

    code = provider_error_code(error)
    if code is not None:
        return PROVIDER_ERROR_CODES.get(code, ErrorCategory.UNKNOWN)

    return ErrorCategory.UNKNOWN


def status_code_for(category: ErrorCategory) -> int:
    return STATUS_CODES[category]


def outcome_for(
    error: Union[InputValidationError, RelayError, RateLimitExceeded],
    request_id: str,
) -> ErrorOutcome:
    """
    Build the client-visible outcome for a handled failure.

    Args:
        error: Validation, rate-limit or relay failure
        request_id: Correlation token of the current request

    Returns:
        ErrorOutcome with a safe message
    """
    if isinstance(error, InputValidationError):
        return ErrorOutcome(
            category=ErrorCategory.BAD_INPUT,
            message=error.message,
            request_id=request_id,
        )

    if isinstance(error, RateLimitExceeded):
        category = ErrorCategory.RATE_LIMITED
    else:
        category = error.category

    return ErrorOutcome(
        category=category,
        message=SAFE_MESSAGES[category],
        request_id=request_id,
    )
