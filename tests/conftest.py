"""Pytest configuration and fixtures shared across all test modules.

This file is automatically loaded by pytest before running any tests.
Environment variables are set before anything imports the settings so the
app can be built without real credentials or a .env file.
"""

import os

# CRITICAL: Set this before any imports that might load settings
os.environ["APP_ENV"] = "testing"

os.environ.setdefault("LLM_PROVIDER", "groq")
os.environ.setdefault("LLM_MODEL", "llama-3.1-8b-instant")
os.environ.setdefault("LLM_API_KEY", "test-llm-key")
os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_ANON_KEY", "test-anon-key")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from typing import Iterator  # noqa: E402
from unittest.mock import AsyncMock  # noqa: E402

import pytest  # noqa: E402
from fastapi import FastAPI  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from bizplan.adapters.supabase import SupabaseUser  # noqa: E402
from bizplan.core.app_factory import create_app  # noqa: E402
from bizplan.core.auth import AuthenticatedUser  # noqa: E402

TEST_TOKEN = "test-access-token"


@pytest.fixture
def user() -> AuthenticatedUser:
    return AuthenticatedUser(id="user-123", email="owner@example.com", access_token=TEST_TOKEN)


@pytest.fixture
def app() -> FastAPI:
    """Fresh application with Supabase auth answering for ``user-123``."""
    application = create_app()
    application.state.supabase.get_user = AsyncMock(
        return_value=SupabaseUser(id="user-123", email="owner@example.com")
    )
    return application


@pytest.fixture
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def auth_headers() -> dict[str, str]:
    return {"Authorization": f"Bearer {TEST_TOKEN}"}
