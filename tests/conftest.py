"""Shared test configuration and fixtures."""
import inspect
from typing import Callable, List, Tuple

import httpx
import pytest

# =============================================================================
# Environment Reset
# =============================================================================

_ENV_VARS = [
    "HF_API_KEY",
    "OPENROUTER_API_KEY",
    "GEMINI_API_KEY",
    "LLM_FANOUT_CONFIG",
    "LLM_FANOUT_TIMEOUT",
    "LLM_FANOUT_MAX_DETAIL_CHARS",
    "LLM_FANOUT_PREVIEW_CHARS",
    "LLM_FANOUT_LOG_LEVEL",
    "LLM_FANOUT_API_TOKEN",
]


@pytest.fixture(autouse=True)
def reset_env(monkeypatch):
    """Clear credential and service env vars before each test."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture(autouse=True)
def reset_server_state():
    """Drop cached gateway and dependency overrides between tests."""
    yield
    from llm_fanout import config as config_module
    from llm_fanout.http_server import app, get_request_gateway

    app.dependency_overrides.clear()
    get_request_gateway.cache_clear()
    config_module._global_config = None


# =============================================================================
# Network Spy
# =============================================================================


@pytest.fixture
def make_transport() -> Callable[..., Tuple[httpx.MockTransport, List[httpx.Request]]]:
    """Build an httpx MockTransport that records every request it sees.

    The handler may be sync or async and receives the httpx.Request.
    """

    def factory(handler=None):
        calls: List[httpx.Request] = []

        async def handle(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            if handler is None:
                return httpx.Response(200, json={"choices": [{"message": {"content": "ok"}}]})
            result = handler(request)
            if inspect.isawaitable(result):
                result = await result
            return result

        return httpx.MockTransport(handle), calls

    return factory


# =============================================================================
# Custom Pytest Markers
# =============================================================================


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')")
    config.addinivalue_line("markers", "integration: marks tests as integration tests")
