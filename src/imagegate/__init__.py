"""imagegate - server-side proxy for text-to-image generation APIs."""

__version__ = "0.1.0"

from imagegate.core.config import GatewayConfig, config
from imagegate.core.gateway import ImageGenerationGateway
from imagegate.core.provider_adapters import ProviderAdapterBase, provider_registry

__all__ = [
    "GatewayConfig",
    "ImageGenerationGateway",
    "ProviderAdapterBase",
    "config",
    "provider_registry",
]
