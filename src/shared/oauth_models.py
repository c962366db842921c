"""
OAuth 2.0 Pydantic models for the authorization relay.

This module defines the transient data carried through the relay: the
allow-listed return origins, the cookie-backed login session, the token
exchange request sent upstream and the token result handed back to the
browser. None of these values are persisted.
"""

from pydantic import BaseModel, Field, validator
from typing import Dict, Optional
from enum import Enum


class GrantType(str, Enum):
    """OAuth 2.0 grant types used against the upstream token endpoint."""
    AUTHORIZATION_CODE = "authorization_code"
    REFRESH_TOKEN = "refresh_token"


class ResponseType(str, Enum):
    """OAuth 2.0 response types."""
    CODE = "code"


class AllowedOrigin(BaseModel):
    """
    One entry of the configured origin allow-list.

    ``host`` is the lower-cased network location including any port. ``path``
    is None for root entries, otherwise the normalised path without a
    trailing slash.
    """
    scheme: str = Field(..., min_length=1, description="URL scheme (http or https)")
    host: str = Field(..., min_length=1, description="Host with optional port")
    path: Optional[str] = Field(default=None, description="Optional path prefix")

    @validator('scheme', 'host')
    def lower_case(cls, v):
        """Scheme and host compare case-insensitively."""
        return v.lower()

    @validator('path')
    def normalize_path(cls, v):
        """Root paths collapse to None and trailing slashes are removed."""
        if v is None:
            return None
        v = v.rstrip('/')
        return v or None

    def __str__(self) -> str:
        return f"{self.scheme}://{self.host}{self.path or ''}"

    class Config:
        """Pydantic model configuration."""
        frozen = True


class AuthSession(BaseModel):
    """
    Cookie-backed login session.

    Issued by ``/login`` and consumed exactly once by ``/callback``. Either
    value may be missing when the browser did not send the cookie back.
    """
    state: Optional[str] = Field(default=None, description="CSRF state issued at login")
    origin_url: Optional[str] = Field(default=None, description="Return URL after the flow")

    class Config:
        """Pydantic model configuration."""
        frozen = True


class TokenExchangeRequest(BaseModel):
    """
    Form body for a server-to-server token request.

    ``code`` and ``redirect_uri`` belong to the authorization code grant,
    ``refresh_token`` to the refresh grant.
    """
    grant_type: GrantType = Field(..., description="OAuth grant type")
    code: Optional[str] = Field(default=None, description="Authorization code")
    refresh_token: Optional[str] = Field(default=None, description="Refresh token")
    redirect_uri: Optional[str] = Field(default=None, description="Registered redirect URI")

    def to_form_data(self) -> Dict[str, str]:
        """
        Serialise the request as form fields.

        Raises:
            ValueError: If the grant is missing its required credential
        """
        if self.grant_type == GrantType.AUTHORIZATION_CODE:
            if not self.code or not self.redirect_uri:
                raise ValueError("authorization_code grant requires code and redirect_uri")
            return {
                "grant_type": self.grant_type,
                "code": self.code,
                "redirect_uri": self.redirect_uri,
            }

        if not self.refresh_token:
            raise ValueError("refresh_token grant requires refresh_token")
        return {
            "grant_type": self.grant_type,
            "refresh_token": self.refresh_token,
        }

    class Config:
        """Pydantic model configuration."""
        use_enum_values = True


class TokenExchangeResult(BaseModel):
    """
    Tokens returned by the upstream token endpoint.

    Extra upstream fields (scope, token_type) are accepted and ignored.
    """
    access_token: str = Field(..., min_length=1, description="OAuth access token")
    refresh_token: Optional[str] = Field(
        default=None,
        description="Refresh token (new or rotated)"
    )
    expires_in: int = Field(
        default=3600,
        ge=1,
        description="Access token lifetime in seconds"
    )

    @validator('refresh_token')
    def empty_refresh_token_is_none(cls, v):
        """Treat an empty refresh token as absent."""
        return v or None

    def fragment_params(self) -> Dict[str, str]:
        """Parameters for the success redirect, in wire order."""
        params = {"access_token": self.access_token}
        if self.refresh_token:
            params["refresh_token"] = self.refresh_token
        params["expires_in"] = str(self.expires_in)
        return params


class RefreshTokenResponse(BaseModel):
    """JSON body returned by ``/refresh_token`` on success."""
    access_token: str = Field(..., description="New access token")
    expires_in: int = Field(..., description="Access token lifetime in seconds")
    refresh_token: Optional[str] = Field(
        default=None,
        description="Rotated refresh token, present only when upstream issued one"
    )


class ErrorResponse(BaseModel):
    """
    Relay error body.

    ``error`` is a machine-readable code such as ``forbidden`` or
    ``invalid_grant``.
    """
    error: str = Field(..., description="Error code")
    message: Optional[str] = Field(default=None, description="Human-readable detail")


class HealthResponse(BaseModel):
    """Health check body."""
    status: str = Field(default="OK", description="Service status")
    timestamp: str = Field(..., description="ISO-8601 timestamp")
    environment: str = Field(..., description="Runtime environment label")
