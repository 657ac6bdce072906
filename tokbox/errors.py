"""Exception hierarchy for the TokBox client.

WHY: Callers need to tell apart failures they can retry (network), failures
they should report (remote rejection), and programmer errors (bad
configuration). A small typed hierarchy makes that a matter of `except`.

HOW: Every exception derives from TokboxError. Wrapping sites raise with
`from exc` so the original cause stays on the chain.

RULES:
- No message ever embeds the API secret
- RemoteError always carries status_code and the raw response body
- The library never retries; TransportError is the caller's retry signal
"""

from __future__ import annotations


class TokboxError(Exception):
    """Base class for every error raised by this package."""


class ConfigurationError(TokboxError):
    """Raised when credentials are missing or a request cannot be built."""


class SigningError(TokboxError):
    """Raised when a token signature or digest cannot be computed."""


class TransportError(TokboxError):
    """Raised when the remote service cannot be reached."""


class RemoteError(TokboxError):
    """Raised when the TokBox API returns a non-200 response.

    WHY: The platform's error bodies are the only diagnostic available, so
    they are kept verbatim.

    RULES:
    - status_code is the HTTP status
    - body is the response text, unmodified
    """

    def __init__(self, status_code: int, body: str) -> None:
        self.status_code = status_code
        self.body = body
        super().__init__(f"TokBox API error {status_code}: {body}")


class DecodeError(TokboxError):
    """Raised when a response body does not have the expected JSON shape."""
