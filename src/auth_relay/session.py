"""
Cookie-backed login session.

``/login`` issues an ``AuthSession`` as two short-lived cookies; ``/callback``
reads it back once and attaches the deletion of both cookies to whatever
response it returns, so a session can never be replayed.
"""

from fastapi import Request, Response

from ..shared.oauth_models import AuthSession
from .config import RelayConfig


STATE_COOKIE = "spotify_auth_state"
ORIGIN_COOKIE = "origin_url"


class SessionCookies:
    """Issue, read and clear the login session cookies."""

    def __init__(self, config: RelayConfig):
        self.max_age = config.cookie_max_age
        self.secure = config.cookie_secure

    def _cookie_options(self) -> dict:
        return {
            "path": "/",
            "secure": self.secure,
            "httponly": True,
            "samesite": "lax",
        }

    def issue(self, response: Response, session: AuthSession) -> None:
        """Store the session on the response as two cookies."""
        options = self._cookie_options()
        response.set_cookie(ORIGIN_COOKIE, session.origin_url, max_age=self.max_age, **options)
        response.set_cookie(STATE_COOKIE, session.state, max_age=self.max_age, **options)

    def read(self, request: Request) -> AuthSession:
        """Read the session from request cookies; missing values become None."""
        return AuthSession(
            state=request.cookies.get(STATE_COOKIE) or None,
            origin_url=request.cookies.get(ORIGIN_COOKIE) or None,
        )

    def clear(self, response: Response) -> None:
        """Invalidate both session cookies."""
        options = self._cookie_options()
        response.delete_cookie(STATE_COOKIE, **options)
        response.delete_cookie(ORIGIN_COOKIE, **options)
