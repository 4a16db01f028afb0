"""Stability AI provider adapter.

Stability's v1 text-to-image endpoint answers with a JSON envelope:

    {
        "artifacts": [
            {"base64": "<png>", "seed": 1234, "finishReason": "SUCCESS"}
        ]
    }

Only the first artifact is used, since the gateway always asks for a
single sample.

Usage Example
-------------
    >>> from imagegate.core.adapters.stability import StabilityAdapter
    >>> from imagegate.core.config import config
    >>>
    >>> adapter = StabilityAdapter(config)
    >>> adapter.build_payload(request)["text_prompts"]
    [{'text': 'a lighthouse at dusk', 'weight': 1}]
"""

import base64
import binascii
import logging
from typing import Any

import httpx

from imagegate.core.errors import ProviderResponseError
from imagegate.core.models import GenerationRequest
from imagegate.core.provider_adapters import ProviderAdapterBase, provider_registry

logger = logging.getLogger(__name__)


class StabilityAdapter(ProviderAdapterBase):
    """Adapter for the Stability AI REST API (JSON envelope responses)."""

    name = "stability"
    description = "Stability AI text-to-image (JSON artifacts with base64 images)"
    mime_type = "image/png"

    @property
    def model_id(self) -> str:
        return self.config.stability_model_id

    @property
    def endpoint(self) -> str:
        base = self.config.stability_api_base.rstrip("/")
        return f"{base}/v1/generation/{self.model_id}/text-to-image"

    def build_payload(self, request: GenerationRequest) -> dict[str, Any]:
        return {
            "text_prompts": [{"text": request.prompt, "weight": 1}],
            "cfg_scale": request.cfg_scale,
            "steps": request.steps,
            "width": request.width,
            "height": request.height,
            "samples": request.samples,
        }

    def extra_headers(self) -> dict[str, str]:
        return {"Accept": "application/json"}

    def decode_image(self, response: httpx.Response) -> tuple[bytes, str]:
        try:
            data = response.json()
        except ValueError as e:
            raise ProviderResponseError("Provider returned a non-JSON body") from e

        artifacts = data.get("artifacts") if isinstance(data, dict) else None
        if not artifacts:
            raise ProviderResponseError("No image data in response")

        artifact = artifacts[0]
        encoded = artifact.get("base64") if isinstance(artifact, dict) else None
        if not encoded:
            raise ProviderResponseError("First artifact has no base64 payload")

        finish_reason = artifact.get("finishReason")
        if finish_reason and finish_reason != "SUCCESS":
            logger.warning(f"Stability artifact finished with reason {finish_reason}")

        try:
            image_bytes = base64.b64decode(encoded, validate=True)
        except (binascii.Error, ValueError) as e:
            raise ProviderResponseError("Artifact payload is not valid base64") from e

        return image_bytes, self.mime_type


# Register the adapter with the global provider registry
provider_registry.register(StabilityAdapter)
