"""
Building blocks for the code review relay.

This package contains:
- Ingress validation and sanitization of submitted code
- The per-client sliding window rate limiter
- The Amazon Bedrock client
- Error classification and observability helpers
"""

from tools.input_validation import normalize_language, sanitize_input, validate_review_request
from tools.rate_limiter import RateLimitDecision, SlidingWindowRateLimiter

__all__ = [
    "normalize_language",
    "sanitize_input",
    "validate_review_request",
    "RateLimitDecision",
    "SlidingWindowRateLimiter",
]
