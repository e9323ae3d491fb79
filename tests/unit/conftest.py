"""Shared fixtures for unit tests."""

import pytest

from src.adapters.session_backends import InMemorySessionBackend
from src.services.session_store import SessionStore
from tests.unit.fakes import make_raw_recipe, model_response


@pytest.fixture
def session_store() -> SessionStore:
    return SessionStore(InMemorySessionBackend(), ttl_seconds=3600, default_language="en")


@pytest.fixture
def three_recipe_response() -> str:
    return model_response(
        make_raw_recipe("Jeera Rice"),
        make_raw_recipe("Onion Pulao", calories=380),
        make_raw_recipe("Tomato Rice", calories=350),
    )
