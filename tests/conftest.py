"""
Pytest configuration and shared fixtures.

Provides settings, stores, scripted adapters and an API test client
for the ForgePad test suite.

IMPORTANT: Environment variables must be set BEFORE importing forgepad
modules that use pydantic-settings, as Settings validates on creation.
"""

import os

# Set test environment variables before importing forgepad modules
os.environ.pop("GEMINI_API_KEY", None)
os.environ.pop("STORE_PATH", None)
os.environ.pop("DEFAULT_PROVIDER", None)
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["DEBUG"] = "false"

# Now safe to import everything else
import pytest
from unittest.mock import patch
from fastapi.testclient import TestClient

from forgepad.config import Settings
from forgepad.dispatcher.orchestrator import FallbackOrchestrator
from forgepad.registry.providers import ProviderKind
from forgepad.storage.store import ProviderStore

from tests.fixtures import SAMPLE_KEYS, scripted_adapters


@pytest.fixture(autouse=True)
def reset_singletons():
    """
    Reset all singleton instances between tests.

    This ensures each test starts with a clean state.
    """
    yield

    from forgepad.config import get_settings
    from forgepad.registry import providers

    get_settings.cache_clear()
    providers._registry_instance = None


@pytest.fixture
def settings():
    """Settings isolated from any .env file in the working directory."""
    return Settings(_env_file=None)


@pytest.fixture
def store(settings):
    """Empty in-memory provider store."""
    return ProviderStore(settings=settings)


@pytest.fixture
def configure():
    """
    Factory fixture storing sample keys for the given providers.

    Usage:
        configure(store, ProviderKind.OPENAI, ProviderKind.ANTHROPIC)
    """

    def _configure(store: ProviderStore, *providers: ProviderKind):
        store.save_credentials({p: SAMPLE_KEYS[p] for p in providers})
        return store

    return _configure


@pytest.fixture
def make_orchestrator(settings):
    """
    Factory fixture building an orchestrator over scripted adapters.

    Usage:
        orchestrator, adapters = make_orchestrator(store, openai={"error": err})
    """

    def _create(store: ProviderStore, **overrides):
        adapters = scripted_adapters(store, **overrides)
        return FallbackOrchestrator(store, settings, adapters=adapters), adapters

    return _create


@pytest.fixture
def api_orchestrator(settings, store, configure, make_orchestrator):
    """Orchestrator served by the API tests: OpenAI and Anthropic configured."""
    configure(store, ProviderKind.OPENAI, ProviderKind.ANTHROPIC)
    store.save_preferences(default_provider=ProviderKind.OPENAI)
    orchestrator, adapters = make_orchestrator(store)
    return orchestrator


@pytest.fixture
def test_client(api_orchestrator):
    """
    Create a FastAPI TestClient whose lifespan installs api_orchestrator.

    build_orchestrator is patched where it is CALLED from (forgepad.main)
    so no SDK-backed adapters are created.
    """
    with patch("forgepad.main.build_orchestrator", return_value=api_orchestrator):
        from forgepad.main import app

        with TestClient(app) as client:
            yield client
