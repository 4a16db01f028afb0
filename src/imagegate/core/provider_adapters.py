"""Base classes and registry for provider adapters.

Each text-to-image provider has its own request body and its own response
shape. A provider adapter hides those differences so the gateway can stay
provider-agnostic: it builds the body, names any extra headers, and decodes a
successful response into raw image bytes.

Provider Adapter Pattern
------------------------
Each adapter encapsulates:
- The fixed endpoint for the configured model
- The JSON body built from a GenerationRequest
- Non-auth headers (the gateway adds the bearer credential itself)
- Decoding of a 2xx response into ``(image_bytes, mime_type)``

Response Shapes
---------------
Two shapes occur across the supported providers:
- **JSON envelope**: the body is JSON with a base64 image field (Stability AI)
- **Raw image**: the body is the image itself (Hugging Face Inference)

Usage Example
-------------
    >>> from imagegate.core.provider_adapters import provider_registry
    >>> from imagegate.core.config import config
    >>>
    >>> print(provider_registry.list_available())
    ['huggingface', 'stability']
    >>>
    >>> adapter = provider_registry.instantiate("stability", config)
    >>> adapter.endpoint
    'https://api.stability.ai/v1/generation/stable-diffusion-xl-1024-v1-0/text-to-image'

See Also
--------
- ImageGenerationGateway: The only consumer of adapters
- GatewayConfig: Provider selection and endpoints
"""

import logging
from abc import ABC, abstractmethod
from typing import Any

import httpx

from .config import GatewayConfig
from .models import GenerationRequest

logger = logging.getLogger(__name__)


class ProviderAdapterBase(ABC):
    """Abstract base class for all provider adapters.

    Adapters are stateless apart from the configuration they are built with,
    so a single instance can serve any number of concurrent requests.

    Attributes
    ----------
    name : str
        Registry key, matched against ``GatewayConfig.provider``
    description : str
        Brief description of the provider
    mime_type : str
        Image format the provider emits
    config : GatewayConfig
        Configuration object holding endpoints and model settings

    Examples
    --------
    Creating a custom adapter:

        >>> class MyProviderAdapter(ProviderAdapterBase):
        ...     name = "my-provider"
        ...     description = "Example provider"
        ...
        ...     @property
        ...     def endpoint(self) -> str:
        ...         return "https://example.com/generate"
        ...
        ...     def build_payload(self, request):
        ...         return {"prompt": request.prompt}
        ...
        ...     def decode_image(self, response):
        ...         return response.content, self.mime_type
        >>>
        >>> provider_registry.register(MyProviderAdapter)
    """

    name: str = "base"
    description: str = "Base class for provider adapters"
    mime_type: str = "image/png"

    def __init__(self, config: GatewayConfig) -> None:
        """Initialize the provider adapter.

        Args:
            config: Configuration object containing provider settings
        """
        self.config = config
        logger.info(f"Initialized {self.name} provider adapter")

    @property
    def model_id(self) -> str:
        """Model identifier sent to this provider."""
        return self.config.model_id

    @property
    @abstractmethod
    def endpoint(self) -> str:
        """Fixed URL the generation request is POSTed to."""

    @abstractmethod
    def build_payload(self, request: GenerationRequest) -> dict[str, Any]:
        """Build the provider-specific JSON body.

        Args:
            request: Prompt plus generation parameters

        Returns
        -------
        dict[str, Any]
            JSON-serialisable request body
        """

    def extra_headers(self) -> dict[str, str]:
        """Headers besides Authorization and Content-Type.

        Returns
        -------
        dict[str, str]
            Header mapping, empty by default
        """
        return {}

    @abstractmethod
    def decode_image(self, response: httpx.Response) -> tuple[bytes, str]:
        """Decode a successful provider response.

        Args:
            response: A 2xx response from the provider

        Returns
        -------
        tuple[bytes, str]
            Raw image bytes and their mime type

        Raises
        ------
        ProviderResponseError
            If the response does not contain a usable image
        """

    def get_adapter_info(self) -> dict[str, Any]:
        """Get information about this adapter.

        Returns
        -------
        dict[str, Any]
            Dictionary containing adapter metadata
        """
        return {
            "name": self.name,
            "description": self.description,
            "mime_type": self.mime_type,
            "model_id": self.model_id,
            "endpoint": self.endpoint,
        }


class ProviderRegistry:
    """Registry for managing available provider adapters.

    Usage
    -----
    Registering a new adapter:

        >>> provider_registry.register(MyProviderAdapter)

    Instantiating the configured adapter:

        >>> adapter = provider_registry.instantiate(config.provider, config)

    Notes
    -----
    - Adapters must be registered before they can be instantiated
    - Registry is global and shared across the application
    """

    def __init__(self) -> None:
        """Initialize the provider registry."""
        self._adapters: dict[str, type[ProviderAdapterBase]] = {}

    def register(self, adapter_class: type[ProviderAdapterBase]) -> type[ProviderAdapterBase]:
        """Register a provider adapter class.

        Returns the class unchanged so this can be used as a decorator.

        Args:
            adapter_class: Provider adapter class to register
        """
        adapter_name = adapter_class.name

        if adapter_name in self._adapters:
            logger.warning(f"Provider adapter '{adapter_name}' is already registered, overwriting")

        self._adapters[adapter_name] = adapter_class
        logger.debug(f"Registered provider adapter: {adapter_name}")
        return adapter_class

    def instantiate(self, adapter_name: str, config: GatewayConfig) -> ProviderAdapterBase:
        """Create an instance of a registered provider adapter.

        Args:
            adapter_name: Name of the adapter to instantiate
            config: Configuration object

        Returns
        -------
        ProviderAdapterBase
            New instance of the specified adapter

        Raises
        ------
        KeyError
            If adapter_name is not registered
        """
        if adapter_name not in self._adapters:
            available = ", ".join(self.list_available())
            raise KeyError(
                f"Provider adapter '{adapter_name}' not found. Available adapters: {available}"
            )

        return self._adapters[adapter_name](config=config)

    def get_adapter_class(self, adapter_name: str) -> type[ProviderAdapterBase] | None:
        """Get the adapter class for a given name, or None if unknown."""
        return self._adapters.get(adapter_name)

    def list_available(self) -> list[str]:
        """List all registered adapter names."""
        return list(self._adapters.keys())

    def get_adapter_info(self, adapter_name: str) -> dict[str, Any] | None:
        """Get class-level information about a registered adapter.

        Args:
            adapter_name: Name of the adapter

        Returns
        -------
        dict[str, Any] | None
            Adapter metadata or None if not found
        """
        adapter_class = self._adapters.get(adapter_name)
        if adapter_class is None:
            return None

        return {
            "name": adapter_class.name,
            "description": adapter_class.description,
            "mime_type": adapter_class.mime_type,
        }


# Global provider registry instance
provider_registry = ProviderRegistry()
