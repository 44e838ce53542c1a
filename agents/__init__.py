"""
Model relay for code review.

This package contains:
- ReviewRelay: builds the review prompt and issues the single upstream call
"""

from agents.review_relay import SYSTEM_PROMPT, ReviewRelay, build_review_prompt

__version__ = "1.0.0"

__all__ = [
    "SYSTEM_PROMPT",
    "ReviewRelay",
    "build_review_prompt",
]
