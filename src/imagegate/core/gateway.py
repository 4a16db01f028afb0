"""Image generation gateway: prompt in, image (or classified failure) out.

Processing flow
---------------
1. Validate the prompt (no network call on failure).
2. Check that a provider credential is configured (no network call on failure).
3. Build the provider body through the configured adapter and POST it once.
4. On 2xx, decode the image through the adapter.
5. On non-2xx, classify the status into auth / loading / rate-limit / other.
6. Convert transport faults and undecodable responses into a generic
   internal failure.

``generate`` never raises. Every outcome is returned as a
:class:`GenerationSuccess` or :class:`GenerationFailure`, so the serving layer
only has to map ``status_code`` and ``message`` onto its response.

Timeouts
--------
The upstream call is bounded by ``GatewayConfig.request_timeout`` (120 s by
default). A timeout is reported as an internal failure. There are no retries.

Provider diagnostics
--------------------
Provider error bodies are logged (truncated) but not returned to the caller.
With ``expose_provider_diagnostics`` enabled, the body is appended to the
message of unclassified failures only; this can disclose provider-internal
detail and is off by default.
"""

import logging
from typing import Any

import httpx

# Import adapters to ensure they're registered
import imagegate.core.adapters  # noqa: F401
from imagegate.core.config import GatewayConfig
from imagegate.core.errors import (
    ConfigurationError,
    GatewayError,
    InternalError,
    ProviderResponseError,
    UpstreamError,
)
from imagegate.core.models import (
    GenerationFailure,
    GenerationRequest,
    GenerationResult,
    GenerationSuccess,
    validate_prompt,
)
from imagegate.core.provider_adapters import ProviderAdapterBase, provider_registry

logger = logging.getLogger(__name__)

# Longest provider body excerpt written to logs or exposed diagnostics.
MAX_DIAGNOSTIC_LENGTH = 500

AUTH_FAILED_MESSAGE = "API authentication failed. Please check the provider API key."
MODEL_LOADING_MESSAGE = "Model is loading, please try again in a few moments"
RATE_LIMITED_MESSAGE = "Rate limit exceeded, please wait before trying again"
GENERIC_UPSTREAM_MESSAGE = "Failed to generate image"


def _truncate(text: str, limit: int = MAX_DIAGNOSTIC_LENGTH) -> str:
    if len(text) <= limit:
        return text
    return text[:limit] + "..."


def classify_upstream_failure(
    status_code: int, body: str = "", expose_diagnostics: bool = False
) -> UpstreamError:
    """Map a non-2xx provider status onto a caller-safe UpstreamError.

    Args:
        status_code: HTTP status returned by the provider
        body: Provider response text, used only for the unclassified bucket
        expose_diagnostics: Append ``body`` to the unclassified message

    Returns:
        UpstreamError carrying 401, 429 or 503 as sent by the provider, or
        500 for any other status
    """
    if status_code == 401:
        logger.error("401 Error: provider rejected the API key")
        return UpstreamError(AUTH_FAILED_MESSAGE, status_code=401)

    if status_code == 503:
        logger.info("503 Error: model loading")
        return UpstreamError(MODEL_LOADING_MESSAGE, status_code=503)

    if status_code == 429:
        logger.info("429 Error: provider rate limit")
        return UpstreamError(RATE_LIMITED_MESSAGE, status_code=429)

    logger.error(f"HTTP Error {status_code}: {_truncate(body)}")
    message = GENERIC_UPSTREAM_MESSAGE
    if expose_diagnostics and body:
        message = f"{GENERIC_UPSTREAM_MESSAGE} ({status_code}): {_truncate(body)}"
    return UpstreamError(message, status_code=500)


class ImageGenerationGateway:
    """Provider-agnostic front door to one text-to-image provider.

    The gateway holds no per-request state. A single instance is built at
    startup and shared by all concurrent requests.

    Attributes:
        config: Deployment configuration, including the credential
        adapter: Provider adapter that owns the request/response shapes
        client: Optional shared ``httpx.AsyncClient``. When absent, a client
            is opened for each call with ``config.request_timeout``.
    """

    def __init__(
        self,
        config: GatewayConfig,
        adapter: ProviderAdapterBase | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.config = config
        self.adapter = adapter or provider_registry.instantiate(config.provider, config)
        self.client = client

    def _build_headers(self) -> dict[str, str]:
        api_key = self.config.provider_api_key.get_secret_value()
        headers = {
            "Content-Type": "application/json",
            **self.adapter.extra_headers(),
        }
        headers["Authorization"] = f"Bearer {api_key}"
        return headers

    async def _post(self, payload: dict[str, Any]) -> httpx.Response:
        headers = self._build_headers()
        if self.client is not None:
            return await self.client.post(self.adapter.endpoint, json=payload, headers=headers)

        async with httpx.AsyncClient(timeout=self.config.request_timeout) as client:
            return await client.post(self.adapter.endpoint, json=payload, headers=headers)

    async def generate(self, prompt_raw: Any) -> GenerationResult:
        """Generate one image for a caller-supplied prompt.

        Args:
            prompt_raw: The caller's ``prompt`` value, of any type

        Returns:
            GenerationSuccess with the decoded image and the untrimmed prompt,
            or GenerationFailure wrapping a ValidationError,
            ConfigurationError, UpstreamError or InternalError
        """
        try:
            prompt = validate_prompt(prompt_raw)
        except GatewayError as e:
            return GenerationFailure(e)

        if not self.config.has_credential:
            primary, legacy = self.config.credential_env_vars
            logger.error(
                f"No API key configured for provider '{self.adapter.name}'; "
                f"set {primary} (or {legacy})"
            )
            return GenerationFailure(ConfigurationError())

        logger.info(f'Generating image for prompt: "{prompt}"')
        request = GenerationRequest.from_config(prompt, self.config, model_id=self.adapter.model_id)

        try:
            response = await self._post(self.adapter.build_payload(request))
            logger.info(f"{self.adapter.name} API response status: {response.status_code}")

            if not response.is_success:
                return GenerationFailure(
                    classify_upstream_failure(
                        response.status_code,
                        response.text,
                        expose_diagnostics=self.config.expose_provider_diagnostics,
                    )
                )

            image_bytes, mime_type = self.adapter.decode_image(response)
        except ProviderResponseError as e:
            logger.error(f"Undecodable response from {self.adapter.name}: {e}")
            return GenerationFailure(InternalError())
        except (httpx.HTTPError, ValueError, KeyError, TypeError) as e:
            logger.exception(f"Error generating image: {e}")
            return GenerationFailure(InternalError())

        logger.info(f'Image generated successfully for prompt: "{prompt}"')
        return GenerationSuccess(image_bytes=image_bytes, mime_type=mime_type, prompt=prompt)
