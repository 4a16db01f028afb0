"""Data models for prompts, generation requests and generation results."""

import base64
from dataclasses import dataclass
from typing import Any, Union

from .config import GatewayConfig
from .errors import GatewayError, ValidationError

MIN_PROMPT_LENGTH = 3
MAX_PROMPT_LENGTH = 500


def validate_prompt(prompt_raw: Any) -> str:
    """Check that a caller-supplied prompt is usable.

    The minimum length is measured on the trimmed text, the maximum on the
    raw text. The prompt itself is returned unmodified.

    Args:
        prompt_raw: Whatever the caller sent in the ``prompt`` field

    Returns:
        The prompt, untrimmed

    Raises:
        ValidationError: If the prompt is missing, not a string, too short
            or too long
    """
    if not isinstance(prompt_raw, str) or len(prompt_raw.strip()) < MIN_PROMPT_LENGTH:
        raise ValidationError("prompt too short or missing")

    if len(prompt_raw) > MAX_PROMPT_LENGTH:
        raise ValidationError("prompt too long")

    return prompt_raw


@dataclass(frozen=True)
class GenerationRequest:
    """A prompt plus the deployment-constant generation parameters."""

    prompt: str
    model_id: str
    steps: int
    cfg_scale: float
    width: int
    height: int
    samples: int = 1

    @classmethod
    def from_config(
        cls, prompt: str, config: GatewayConfig, model_id: str | None = None
    ) -> "GenerationRequest":
        """Build a request for *prompt* using the parameters in *config*.

        ``model_id`` overrides the identifier of the configured provider.
        """
        return cls(
            prompt=prompt,
            model_id=model_id or config.model_id,
            steps=config.steps,
            cfg_scale=config.cfg_scale,
            width=config.width,
            height=config.height,
            samples=config.samples,
        )


@dataclass(frozen=True)
class GenerationSuccess:
    """A decoded image returned by the provider.

    Attributes:
        image_bytes: Raw image payload (already decoded from base64 if the
            provider used it)
        mime_type: Image format, e.g. ``image/png``
        prompt: The prompt exactly as the caller sent it
    """

    image_bytes: bytes
    mime_type: str
    prompt: str

    success = True

    @property
    def data_uri(self) -> str:
        """Image encoded as a ``data:`` URI for direct use in an ``<img>`` tag."""
        encoded = base64.b64encode(self.image_bytes).decode("ascii")
        return f"data:{self.mime_type};base64,{encoded}"


@dataclass(frozen=True)
class GenerationFailure:
    """A classified failure. ``error`` says which kind."""

    error: GatewayError

    success = False

    @property
    def status_code(self) -> int:
        return self.error.status_code

    @property
    def message(self) -> str:
        return self.error.message


GenerationResult = Union[GenerationSuccess, GenerationFailure]
