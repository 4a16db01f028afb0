"""Shared pytest fixtures for imagegate tests."""

import base64
from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient

from imagegate.api.main import create_app
from imagegate.core.config import GatewayConfig

STABILITY_BASE = "https://stability.test"
HUGGINGFACE_BASE = "https://hf.test"
STABILITY_URL = f"{STABILITY_BASE}/v1/generation/stable-diffusion-xl-1024-v1-0/text-to-image"
HUGGINGFACE_URL = f"{HUGGINGFACE_BASE}/models/stabilityai/stable-diffusion-xl-base-1.0"
TEST_API_KEY = "test-api-key"

# Minimal valid 1x1 PNG
VALID_PNG_CONTENT = (
    b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR"
    b"\x00\x00\x00\x01\x00\x00\x00\x01\x08\x06\x00\x00\x00\x1f\x15\xc4\x89"
    b"\x00\x00\x00\nIDATx\x9cc\x00\x01\x00\x00\x05\x00\x01\r\n-\xb4"
    b"\x00\x00\x00\x00IEND\xaeB`\x82"
)
VALID_PNG_B64 = base64.b64encode(VALID_PNG_CONTENT).decode("ascii")

_CREDENTIAL_VARS = (
    "IMAGEGATE_PROVIDER_API_KEY",
    "STABILITY_API_KEY",
    "HUGGINGFACE_API_KEY",
)


@pytest.fixture(autouse=True)
def clean_credential_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep a developer's real API keys out of every test."""
    for name in _CREDENTIAL_VARS:
        monkeypatch.delenv(name, raising=False)


def make_config(**overrides) -> GatewayConfig:
    """Build a GatewayConfig pointed at the test provider hosts.

    Args:
        **overrides: Fields to override

    Returns:
        GatewayConfig that ignores any .env file
    """
    values = {
        "provider_api_key": TEST_API_KEY,
        "stability_api_base": STABILITY_BASE,
        "huggingface_api_base": HUGGINGFACE_BASE,
    }
    values.update(overrides)
    return GatewayConfig(_env_file=None, **values)


@pytest.fixture
def test_config() -> GatewayConfig:
    """Stability-backed configuration with a credential.

    Returns:
        GatewayConfig instance for testing
    """
    return make_config()


@pytest.fixture
def huggingface_config() -> GatewayConfig:
    """Hugging Face-backed configuration with a credential."""
    return make_config(provider="huggingface")


@pytest.fixture
def unconfigured_config() -> GatewayConfig:
    """Configuration with no provider credential."""
    return make_config(provider_api_key=None)


@pytest.fixture
def stability_success_body() -> dict:
    """A Stability response carrying one PNG artifact."""
    return {
        "artifacts": [
            {"base64": VALID_PNG_B64, "seed": 1234, "finishReason": "SUCCESS"},
        ]
    }


@pytest.fixture
def test_client(test_config: GatewayConfig) -> Generator[TestClient, None, None]:
    """TestClient for an app served with ``test_config``.

    The lifespan runs, so the app owns a real ``httpx.AsyncClient``; tests
    mock the provider with respx.
    """
    with TestClient(create_app(test_config)) as client:
        yield client
