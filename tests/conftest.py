"""Pytest configuration and fixtures shared across all test modules.

Environment variables are set before any app import so the global settings
object is built for tests: no .env file, no demo delay, canned mode.
"""

import os

# CRITICAL: Set these before any imports that might load settings
os.environ["APP_ENV"] = "testing"
os.environ.setdefault("APP_RESPONDER_MODE", "canned")
os.environ.setdefault("APP_CANNED_DELAY_MS", "0")
os.environ.setdefault("LLM_PROVIDER", "openai")
os.environ.setdefault("LLM_MODEL", "gpt-3.5-turbo")
os.environ.setdefault("LLM_API_KEY", "test-key-123")

import pytest

from app.core.rate_limit import get_rate_limiter


@pytest.fixture(autouse=True)
def reset_rate_limiter():
    """Give every test an empty process-wide limiter."""
    get_rate_limiter().reset()
    yield
    get_rate_limiter().reset()
