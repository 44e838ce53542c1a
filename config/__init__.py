"""
Configuration management for the code review relay.

This package handles:
- Environment variable and .env loading
- Settings validation using Pydantic
"""

from config.settings import Environment, Settings, load_settings, parse_byte_size

__all__ = ["Environment", "Settings", "load_settings", "parse_byte_size"]
