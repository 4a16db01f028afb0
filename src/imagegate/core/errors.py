"""Error taxonomy for the image generation gateway.

Every failure the gateway can report is one of four kinds. Each carries the
HTTP status the serving layer should answer with and a message that is safe
to show to the caller.

========================  ======  ==========================================
Class                     Status  Raised when
========================  ======  ==========================================
``ValidationError``       400     The prompt is missing, not text, too short
                                  or too long.
``ConfigurationError``    500     The deployment has no provider credential.
``UpstreamError``         varies  The provider answered with a non-2xx status.
``InternalError``         500     Network faults and undecodable responses.
========================  ======  ==========================================
"""


class GatewayError(Exception):
    """Base class for all gateway failures.

    Attributes:
        status_code: HTTP status the serving layer should return.
        message: Caller-facing description. Never contains the credential.
    """

    status_code: int = 500
    default_message: str = "internal error"

    def __init__(self, message: str | None = None, status_code: int | None = None) -> None:
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(status_code={self.status_code}, message={self.message!r})"


class ValidationError(GatewayError):
    """Caller input is malformed."""

    status_code = 400
    default_message = "invalid prompt"


class ConfigurationError(GatewayError):
    """The deployment is misconfigured (e.g. no provider credential)."""

    status_code = 500
    default_message = "Server configuration error. Please check API key setup."


class UpstreamError(GatewayError):
    """The provider rejected or failed the request.

    ``status_code`` mirrors the provider's status for the classified buckets
    (401, 429, 503) and is 500 otherwise.
    """

    default_message = "Failed to generate image"


class InternalError(GatewayError):
    """Anything unexpected. Details go to the log, never to the caller."""

    status_code = 500
    default_message = "internal error"


class ProviderResponseError(InternalError):
    """A successful provider response could not be decoded into an image."""
