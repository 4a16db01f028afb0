"""Configuration management for the imagegate image generation gateway.

This module provides centralized configuration management using Pydantic Settings.
All configuration is loaded from environment variables with the IMAGEGATE_ prefix,
allowing a deployment to be retargeted without code changes.

Environment Variable Loading
-----------------------------
Configuration values are loaded in the following priority order:
1. Environment variables (IMAGEGATE_* prefix)
2. .env file in the working directory
3. Default values defined in GatewayConfig

The provider credential is read from ``IMAGEGATE_PROVIDER_API_KEY``. When that
is unset, the variable the original Node deployments used for the selected
provider is read instead (``STABILITY_API_KEY`` or ``HUGGINGFACE_API_KEY``), so
existing ``.env`` files keep working. A key named for one provider is never
sent to the other.

Example .env file:
    IMAGEGATE_PROVIDER=stability
    IMAGEGATE_PROVIDER_API_KEY=sk-...
    IMAGEGATE_STEPS=30
    IMAGEGATE_SERVER_PORT=3000

Global Configuration Instance
------------------------------
A global `config` instance is created at module import time and is the
single source of truth for the serving process. The gateway itself never
reads the environment: it receives a GatewayConfig through its constructor.

Usage Example
-------------
    from imagegate.core.config import config

    print(config.provider)
    print(config.has_credential)

    # The credential is a SecretStr and never prints its value
    print(config.provider_api_key)  # SecretStr('**********')
"""

from pathlib import Path
from typing import Literal

from pydantic import AliasChoices, Field, SecretStr, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Bundled frontend, served when no static_dir override is given.
DEFAULT_STATIC_DIR = Path(__file__).resolve().parent.parent / "static"

CREDENTIAL_ENV_VAR = "IMAGEGATE_PROVIDER_API_KEY"

# Variables read by the original deployments, keyed by provider.
LEGACY_CREDENTIAL_ENV_VARS = {
    "stability": "STABILITY_API_KEY",
    "huggingface": "HUGGINGFACE_API_KEY",
}


class GatewayConfig(BaseSettings):
    """Main configuration for the imagegate service.

    Attributes
    ----------
    Provider Settings:
        provider : Literal["stability", "huggingface"]
            Registered provider adapter used for every request
        provider_api_key : SecretStr | None
            Bearer credential for the provider (absence is a configuration error)
        stability_api_key, huggingface_api_key : SecretStr | None
            Legacy per-provider credentials, used only as a fallback for
            provider_api_key when they match the selected provider
        stability_api_base : str
            Base URL of the Stability AI REST API
        huggingface_api_base : str
            Base URL of the Hugging Face Inference API
        request_timeout : float
            Seconds to wait on the upstream call before giving up

    Generation Settings:
        stability_model_id : str
            Stability AI engine identifier
        huggingface_model_id : str
            Hugging Face model repository identifier
        steps : int
            Sampling steps
        cfg_scale : float
            Classifier-free guidance scale
        width : int
            Output width in pixels
        height : int
            Output height in pixels
        samples : int
            Images per request (always 1)

    Error Reporting:
        expose_provider_diagnostics : bool
            Append provider error text to "other" upstream failures

    Server Settings:
        server_host, server_port, environment, cors_origins, static_dir,
        rate_limit_requests, rate_limit_window_seconds, max_body_bytes

    Notes
    -----
    - Configuration is immutable after initialization
    - To modify config, set environment variables and restart the application
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="IMAGEGATE_",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
        populate_by_name=True,
    )

    # Provider selection and credential
    provider: Literal["stability", "huggingface"] = Field(
        default="stability",
        description="Provider adapter to use for image generation",
    )
    # Legacy per-provider variables, only consulted for the selected provider
    stability_api_key: SecretStr | None = Field(
        default=None,
        validation_alias=AliasChoices("stability_api_key", "STABILITY_API_KEY"),
        exclude=True,
    )
    huggingface_api_key: SecretStr | None = Field(
        default=None,
        validation_alias=AliasChoices("huggingface_api_key", "HUGGINGFACE_API_KEY"),
        exclude=True,
    )
    provider_api_key: SecretStr | None = Field(
        default=None,
        validate_default=True,
        description="Bearer credential for the provider API",
    )
    stability_api_base: str = Field(
        default="https://api.stability.ai",
        description="Stability AI REST API base URL",
    )
    huggingface_api_base: str = Field(
        default="https://api-inference.huggingface.co",
        description="Hugging Face Inference API base URL",
    )
    request_timeout: float = Field(
        default=120.0,
        description="Upstream request timeout in seconds",
        gt=0,
    )

    # Generation constants (deployment-wide, never caller supplied)
    stability_model_id: str = Field(
        default="stable-diffusion-xl-1024-v1-0",
        description="Stability AI engine identifier",
    )
    huggingface_model_id: str = Field(
        default="stabilityai/stable-diffusion-xl-base-1.0",
        description="Hugging Face model repository identifier",
    )
    steps: int = Field(default=30, ge=1, le=150)
    cfg_scale: float = Field(default=7.0, ge=0.0, le=35.0)
    width: int = Field(default=1024, ge=64, le=2048)
    height: int = Field(default=1024, ge=64, le=2048)
    samples: int = Field(
        default=1,
        ge=1,
        le=1,
        description="Images per request (the gateway returns a single image)",
    )

    expose_provider_diagnostics: bool = Field(
        default=False,
        description="Include provider error text in unclassified upstream failures",
    )

    # Server settings
    server_host: str = Field(default="0.0.0.0")
    server_port: int = Field(default=3000, ge=1, le=65535)
    environment: str = Field(default="development")
    cors_origins: list[str] = Field(
        default=["http://localhost:3000", "http://127.0.0.1:3000"],
        description="Origins allowed to call the API",
    )
    rate_limit_requests: int = Field(
        default=20,
        description="Requests allowed per client within one window",
        ge=1,
    )
    rate_limit_window_seconds: int = Field(
        default=15 * 60,
        description="Rate limit window length in seconds",
        ge=1,
    )
    max_body_bytes: int = Field(
        default=1024 * 1024,
        description="Largest accepted request body in bytes",
        ge=1,
    )
    static_dir: Path = Field(
        default=DEFAULT_STATIC_DIR,
        description="Directory holding the browser frontend",
    )

    @field_validator("provider_api_key", mode="after")
    @classmethod
    def fall_back_to_legacy_key(
        cls, value: SecretStr | None, info: ValidationInfo
    ) -> SecretStr | None:
        """Use the selected provider's legacy variable when no key is set.

        The other provider's legacy variable is never consulted.
        """
        if value is not None and value.get_secret_value().strip():
            return value
        provider = info.data.get("provider")
        legacy = info.data.get(f"{provider}_api_key")
        return legacy if legacy is not None else value

    @property
    def credential_env_vars(self) -> tuple[str, str]:
        """Environment variables that can supply the selected provider's key."""
        return CREDENTIAL_ENV_VAR, LEGACY_CREDENTIAL_ENV_VARS[self.provider]

    @property
    def model_id(self) -> str:
        """Model identifier for the selected provider."""
        if self.provider == "huggingface":
            return self.huggingface_model_id
        return self.stability_model_id

    @property
    def has_credential(self) -> bool:
        """Whether a non-blank provider credential is configured."""
        if self.provider_api_key is None:
            return False
        return bool(self.provider_api_key.get_secret_value().strip())


# Global configuration instance
config = GatewayConfig()
