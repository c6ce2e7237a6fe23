# core/errors.py
"""
The error taxonomy shared by the relay and the HTTP layer.

Every error carries a caller-safe `public_message`. The `detail` passed at
construction time is for server-side logs only and never crosses the API
boundary.
"""


class RelayError(Exception):
    """Base class for every failure the relay reports to a caller."""
    status_code: int = 500
    public_message: str = "An error occurred while processing your request"

    def __init__(self, detail: str | None = None, public_message: str | None = None):
        super().__init__(detail or self.public_message)
        if public_message is not None:
            self.public_message = public_message

    @property
    def kind(self) -> str:
        return type(self).__name__


class ValidationError(RelayError):
    """Bad or missing input. The caller can correct it and resend."""
    status_code = 400
    public_message = "Invalid request"


class AuthError(RelayError):
    """No credential configured, or the provider rejected it."""
    status_code = 400
    public_message = "Invalid API key. Please check your Groq API key."


class RateLimitError(RelayError):
    """The provider throttled the request. Not retried by the relay."""
    status_code = 429
    public_message = "Rate limit exceeded. Please try again later."


class TransportError(RelayError):
    """Network or channel failure while streaming."""
    status_code = 502
    public_message = "Network error. Please check your connection."


class UpstreamError(RelayError):
    """The provider reported a generation failure."""
    status_code = 502
    public_message = "Error generating response"


class CallerDisconnected(TransportError):
    """The caller closed the output channel mid-stream."""
    public_message = "Client disconnected"
