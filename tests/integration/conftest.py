"""Pytest configuration and fixtures for integration tests.

Loads .env and skips the suite when the Gemini key is missing. YouTube and
MongoDB checks are per-fixture so a partial setup still exercises what it can.
"""

import os
from pathlib import Path

import pytest
from dotenv import load_dotenv


def pytest_configure(config):
    """Load .env from the project root before collection."""
    env_path = Path(__file__).parent.parent.parent / ".env"
    load_dotenv(env_path)

    print("\n" + "=" * 70)
    print("Note: These tests call the real Gemini and YouTube APIs")
    print(f"Environment loaded from: {env_path}")
    print(f"  - YouTube API: {'ENABLED' if os.getenv('YOUTUBE_API_KEY') else 'DISABLED'}")
    print(f"  - MongoDB sessions: {'ENABLED' if os.getenv('MONGO_URI') else 'DISABLED'}")
    print("=" * 70 + "\n")


@pytest.fixture(scope="session", autouse=True)
def check_api_keys():
    """Skip the whole suite if GEMINI_API_KEY is not configured."""
    if not os.getenv("GEMINI_API_KEY"):
        pytest.skip(
            "Integration tests skipped. Missing API keys: GEMINI_API_KEY. Please set it in your .env file.",
            allow_module_level=True,
        )


@pytest.fixture
def youtube_api_key():
    key = os.getenv("YOUTUBE_API_KEY")
    if not key:
        pytest.skip("YOUTUBE_API_KEY not configured")
    return key


@pytest.fixture
def mongo_uri():
    uri = os.getenv("MONGO_URI")
    if not uri:
        pytest.skip("MONGO_URI not configured")
    return uri
