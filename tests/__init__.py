"""
Test suite for the code review relay.

This package contains:
- Unit tests for validation, rate limiting and error classification
- Property-based tests using Hypothesis
- End-to-end API tests with a stubbed model provider
"""
