"""Hugging Face Inference API provider adapter.

The serverless Inference API returns the generated image as the raw response
body, with the image format in ``Content-Type``. Errors come back as JSON,
which is also what a cold model sometimes returns with a 200 while it is
still loading, so a JSON body on a successful status is treated as a decode
failure rather than an image.
"""

import logging
from typing import Any

import httpx

from imagegate.core.errors import ProviderResponseError
from imagegate.core.models import GenerationRequest
from imagegate.core.provider_adapters import ProviderAdapterBase, provider_registry

logger = logging.getLogger(__name__)


class HuggingFaceAdapter(ProviderAdapterBase):
    """Adapter for the Hugging Face Inference API (raw image responses)."""

    name = "huggingface"
    description = "Hugging Face Inference API text-to-image (raw image body)"
    mime_type = "image/png"

    @property
    def model_id(self) -> str:
        return self.config.huggingface_model_id

    @property
    def endpoint(self) -> str:
        base = self.config.huggingface_api_base.rstrip("/")
        return f"{base}/models/{self.model_id}"

    def build_payload(self, request: GenerationRequest) -> dict[str, Any]:
        return {
            "inputs": request.prompt,
            "parameters": {
                "num_inference_steps": request.steps,
                "guidance_scale": request.cfg_scale,
                "width": request.width,
                "height": request.height,
            },
            "options": {"wait_for_model": True, "use_cache": False},
        }

    def extra_headers(self) -> dict[str, str]:
        return {"Accept": "image/png"}

    def decode_image(self, response: httpx.Response) -> tuple[bytes, str]:
        content_type = response.headers.get("content-type", "").split(";")[0].strip().lower()

        if content_type == "application/json":
            raise ProviderResponseError("Provider returned JSON instead of an image")

        image_bytes = response.content
        if not image_bytes:
            raise ProviderResponseError("Provider returned an empty body")

        if content_type.startswith("image/"):
            return image_bytes, content_type

        logger.debug(f"Unexpected content type {content_type!r}, assuming {self.mime_type}")
        return image_bytes, self.mime_type


# Register the adapter with the global provider registry
provider_registry.register(HuggingFaceAdapter)
