"""
Relay error taxonomy.

Each error carries the machine-readable code surfaced to the browser, either
in a JSON body or in a redirect fragment, and the HTTP status used when it is
rendered as JSON.
"""

from typing import Optional


class RelayError(Exception):
    """Base class for errors the relay translates into a response."""

    error_code = "server_error"
    status_code = 500

    def __init__(self, message: Optional[str] = None, error_code: Optional[str] = None):
        super().__init__(message or self.error_code)
        self.message = message
        if error_code is not None:
            self.error_code = error_code

    def to_dict(self) -> dict:
        """Render as a JSON error body."""
        body = {"error": self.error_code}
        if self.message:
            body["message"] = self.message
        return body


class ConfigError(RelayError):
    """Required configuration is missing or invalid. Fatal at startup."""

    error_code = "config_error"


class ForbiddenOrigin(RelayError):
    """The requested return URL is not on the allow-list."""

    error_code = "forbidden"
    status_code = 403

    def to_dict(self) -> dict:
        # The rejected URL is not echoed back
        return {"error": self.error_code}


class StateMismatch(RelayError):
    """
    The callback state is absent or differs from the issued one.

    Only ever delivered in the callback redirect fragment.
    """

    error_code = "state_mismatch"


class UpstreamExchangeFailure(RelayError):
    """Network error, non-2xx status or malformed body from the token endpoint."""

    error_code = "invalid_token"
    status_code = 400

    def __init__(self, message: Optional[str] = None, status: Optional[int] = None,
                 error_code: Optional[str] = None):
        super().__init__(message, error_code)
        self.status = status


class MissingParameter(RelayError):
    """A required request parameter was not supplied."""

    status_code = 400

    def __init__(self, parameter: str, error_code: Optional[str] = None):
        super().__init__(f"Missing required parameter: {parameter}",
                         error_code or f"missing_{parameter}")
        self.parameter = parameter

    def to_dict(self) -> dict:
        return {"error": self.error_code}
