"""Core functionality for the image generation gateway.

- **GatewayConfig / config**: Configuration management using Pydantic Settings
- **ImageGenerationGateway**: Validate, call the provider, normalise the result
- **Provider adapters**: Per-provider request bodies and response decoding
- **provider_registry**: Registry for discovering and instantiating adapters
- **Errors**: ValidationError, ConfigurationError, UpstreamError, InternalError

Architecture Overview
---------------------
1. **Configuration Layer** (config.py):
   - Environment-based configuration, IMAGEGATE_ prefix
   - Credential held as a SecretStr, read once at startup

2. **Provider Adapter Layer** (provider_adapters.py, adapters/):
   - Stability AI (JSON envelope) and Hugging Face (raw image body)
   - Registry pattern for provider selection by name

3. **Gateway Layer** (gateway.py):
   - Linear validate -> call -> decode/classify pipeline
   - Returns GenerationSuccess or GenerationFailure, never raises

Usage Example
-------------
    from imagegate.core import ImageGenerationGateway, config

    gateway = ImageGenerationGateway(config)
    result = await gateway.generate("A futuristic city skyline at sunset")
    if result.success:
        print(result.data_uri[:40])
    else:
        print(result.status_code, result.message)
"""

# Import adapters to ensure they're registered
from imagegate.core.adapters import HuggingFaceAdapter, StabilityAdapter  # noqa: F401
from imagegate.core.config import GatewayConfig, config
from imagegate.core.errors import (
    ConfigurationError,
    GatewayError,
    InternalError,
    ProviderResponseError,
    UpstreamError,
    ValidationError,
)
from imagegate.core.gateway import ImageGenerationGateway, classify_upstream_failure
from imagegate.core.models import (
    GenerationFailure,
    GenerationRequest,
    GenerationResult,
    GenerationSuccess,
    validate_prompt,
)
from imagegate.core.provider_adapters import ProviderAdapterBase, provider_registry

__all__ = [
    "ConfigurationError",
    "GatewayConfig",
    "GatewayError",
    "GenerationFailure",
    "GenerationRequest",
    "GenerationResult",
    "GenerationSuccess",
    "ImageGenerationGateway",
    "InternalError",
    "ProviderAdapterBase",
    "ProviderResponseError",
    "UpstreamError",
    "ValidationError",
    "classify_upstream_failure",
    "config",
    "provider_registry",
    "validate_prompt",
]
