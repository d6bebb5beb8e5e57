from __future__ import annotations

from typing import Any, Dict


class RelayError(Exception):
    """Base error for everything the relay reports back to the client.

    ``message`` is what the client sees under ``error.message``;
    ``status_code`` is the HTTP status of the response.
    """

    status_code: int = 500

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def to_body(self) -> Dict[str, Any]:
        return {"error": {"message": self.message}}


class ConfigurationError(RelayError):
    """Server-side configuration is missing (e.g. no API key)."""


class ClientInputError(RelayError):
    status_code = 400


class UpstreamApiError(RelayError):
    """Upstream answered with a non-success status; carries that status."""


class UpstreamTransportError(RelayError):
    """Network failure or unparseable upstream body."""


class UpstreamShapeError(RelayError):
    """Upstream succeeded but the reply text is not where it should be."""
