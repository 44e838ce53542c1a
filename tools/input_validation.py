"""
Ingress validation for review requests.

Sanitizes untrusted code, normalizes the language identifier and enforces
the length and emptiness policies before any upstream cost is incurred.
"""

import re
from typing import Any, FrozenSet

from models.data_models import ValidatedRequest, ValidationErrorKind
from tools.error_handling import InputValidationError


# Null bytes and control characters, keeping tab, newline and carriage return
CONTROL_CHARACTERS = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]")

FALLBACK_LANGUAGE = "other"

ALLOWED_LANGUAGES: FrozenSet[str] = frozenset({
    "javascript", "typescript", "python", "php", "java", "csharp",
    "cpp", "go", "rust", "ruby", "swift", "kotlin", "sql", "html",
    "css", "shell", "bash", FALLBACK_LANGUAGE,
})

DEFAULT_MAX_CODE_LENGTH = 50000


def sanitize_input(text: Any) -> str:
    """
    Strip disallowed control characters from untrusted text.

    Args:
        text: Untrusted input

    Returns:
        Sanitized string, or an empty string for non-string input
    """
    if not isinstance(text, str):
        return ""
    return CONTROL_CHARACTERS.sub("", text)


def normalize_language(language: Any) -> str:
    """Lower-case and trim ``language``; unknown values become ``other``."""
    if not language:
        return FALLBACK_LANGUAGE
    normalized = str(language).strip().lower()
    return normalized if normalized in ALLOWED_LANGUAGES else FALLBACK_LANGUAGE


def validate_review_request(
    raw_code: Any,
    raw_language: Any = None,
    max_length: int = DEFAULT_MAX_CODE_LENGTH,
) -> ValidatedRequest:
    """
    Validate and sanitize a review request.

    Args:
        raw_code: Untrusted code from the request body
        raw_language: Untrusted language identifier
        max_length: Maximum allowed length of the sanitized code

    Returns:
        ValidatedRequest ready for the relay

    Raises:
        InputValidationError: If the code is missing, too long or empty
    """
    if raw_code is None or not isinstance(raw_code, str):
        raise InputValidationError(
            ValidationErrorKind.MISSING_CODE,
            "Code is required and must be a string",
        )

    sanitized = sanitize_input(raw_code)
    language = normalize_language(raw_language)

    if len(sanitized) > max_length:
        raise InputValidationError(
            ValidationErrorKind.TOO_LONG,
            f"Code is too long. Maximum {max_length:,} characters allowed.",
            limit=max_length,
        )

    if not sanitized.strip():
        raise InputValidationError(
            ValidationErrorKind.EMPTY_CODE,
            "Code cannot be empty or contain only whitespace",
        )

    return ValidatedRequest(sanitized_code=sanitized, language=language)
