"""
HTTP and command-line surfaces for the code review relay.

This package contains:
- FastAPI application factory with the review and health endpoints
- CLI interface for serving the API and reviewing local files
"""
