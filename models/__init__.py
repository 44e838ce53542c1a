"""
Data models for the code review relay.
"""

from models.data_models import (
    # Enums
    ErrorCategory,
    ValidationErrorKind,
    # Core Models
    ReviewRequest,
    ValidatedRequest,
    TokenUsage,
    ReviewResult,
    ErrorOutcome,
    # Wire Models
    UsageResponse,
    ReviewResponse,
    ErrorResponse,
    HealthResponse,
)

__all__ = [
    # Enums
    "ErrorCategory",
    "ValidationErrorKind",
    # Core Models
    "ReviewRequest",
    "ValidatedRequest",
    "TokenUsage",
    "ReviewResult",
    "ErrorOutcome",
    # Wire Models
    "UsageResponse",
    "ReviewResponse",
    "ErrorResponse",
    "HealthResponse",
]
