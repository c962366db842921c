"""
Relay configuration.

The configuration is read from the environment once at startup into a frozen
``RelayConfig`` and then passed explicitly to the application. Nothing below
the entry point reads ``os.environ``.
"""

import os
from pathlib import Path
from typing import Mapping, Optional, Tuple

from pydantic import BaseModel, Field, ValidationError, validator

from ..shared.oauth_models import AllowedOrigin
from ..shared.security import OriginValidator, parse_allowed_origins
from .errors import ConfigError


REQUIRED_ENV_VARS = ('CLIENT_ID', 'CLIENT_SECRET', 'REDIRECT_URI')

DEFAULT_ALLOWED_ORIGINS = "http://localhost:3000,http://localhost:8888"
DEFAULT_ORIGIN = "http://localhost:8888"
DEFAULT_SCOPES = "user-read-private user-read-email"
DEFAULT_AUTHORIZE_URL = "https://accounts.spotify.com/authorize"
DEFAULT_TOKEN_URL = "https://accounts.spotify.com/api/token"
DEFAULT_PROFILE_URL = "https://api.spotify.com/v1/me"

TRUE_VALUES = {"1", "true", "yes", "on"}


class RelayConfig(BaseModel):
    """
    Immutable relay configuration.

    Attributes mirror the environment variables documented in the README;
    ``allowed_origins`` is already parsed into ``AllowedOrigin`` entries.
    """
    client_id: str = Field(..., min_length=1, description="OAuth client identifier")
    client_secret: str = Field(..., min_length=1, description="OAuth client secret")
    redirect_uri: str = Field(..., min_length=1, description="Registered callback URI")
    allowed_origins: Tuple[AllowedOrigin, ...] = Field(..., min_length=1)
    default_origin: str = Field(default=DEFAULT_ORIGIN, description="Fallback return URL")
    default_scopes: str = Field(default=DEFAULT_SCOPES, description="Scope string used when none is requested")
    authorize_url: str = Field(default=DEFAULT_AUTHORIZE_URL)
    token_url: str = Field(default=DEFAULT_TOKEN_URL)
    profile_url: Optional[str] = Field(default=DEFAULT_PROFILE_URL, description="Diagnostic profile endpoint")
    host: str = Field(default="localhost")
    port: int = Field(default=5000, ge=1, le=65535)
    environment: str = Field(default="development")
    upstream_timeout: float = Field(default=10.0, gt=0)
    state_length: int = Field(default=16, ge=16, le=128)
    cookie_max_age: int = Field(default=600, ge=1)
    cookie_secure: bool = Field(default=False)
    static_dir: Optional[Path] = Field(default=None)

    @validator('profile_url')
    def blank_profile_url_disables_fetch(cls, v):
        """An empty profile URL disables the diagnostic fetch."""
        return v or None

    def is_origin_allowed(self, url: str) -> bool:
        """Check a return URL against the configured allow-list."""
        return OriginValidator.is_allowed(url, self.allowed_origins)

    class Config:
        """Pydantic model configuration."""
        frozen = True


def _as_bool(value: str) -> bool:
    return value.strip().lower() in TRUE_VALUES


def load_config(environ: Optional[Mapping[str, str]] = None) -> RelayConfig:
    """
    Build the relay configuration from environment variables.

    Args:
        environ: Mapping to read from (default: ``os.environ``)

    Returns:
        RelayConfig: Frozen configuration

    Raises:
        ConfigError: If a required variable is missing or a value is invalid
    """
    if environ is None:
        environ = os.environ

    missing = [name for name in REQUIRED_ENV_VARS if not environ.get(name, '').strip()]
    if missing:
        raise ConfigError(f"Missing required environment variables: {', '.join(missing)}")

    try:
        allowed_origins = parse_allowed_origins(
            environ.get('ALLOWED_ORIGINS') or DEFAULT_ALLOWED_ORIGINS
        )
    except ValueError as e:
        raise ConfigError(str(e)) from e

    if not allowed_origins:
        raise ConfigError("ALLOWED_ORIGINS must list at least one origin")

    values = {
        "client_id": environ['CLIENT_ID'].strip(),
        "client_secret": environ['CLIENT_SECRET'].strip(),
        "redirect_uri": environ['REDIRECT_URI'].strip(),
        "allowed_origins": allowed_origins,
    }

    optional = {
        "default_origin": 'DEFAULT_ORIGIN',
        "default_scopes": 'SCOPES',
        "authorize_url": 'AUTHORIZE_URL',
        "token_url": 'TOKEN_URL',
        "host": 'HOST',
        "port": 'PORT',
        "upstream_timeout": 'UPSTREAM_TIMEOUT',
        "state_length": 'STATE_LENGTH',
        "cookie_max_age": 'COOKIE_MAX_AGE',
        "static_dir": 'STATIC_DIR',
    }
    for field_name, env_name in optional.items():
        value = environ.get(env_name)
        if value is not None and value.strip():
            values[field_name] = value.strip()

    if "default_origin" not in values and not OriginValidator.is_allowed(DEFAULT_ORIGIN, allowed_origins):
        # Fall back to the first allow-listed origin
        values["default_origin"] = str(allowed_origins[0])

    if 'PROFILE_URL' in environ:
        values["profile_url"] = environ['PROFILE_URL'].strip()

    environment = environ.get('ENVIRONMENT') or environ.get('NODE_ENV')
    if environment:
        values["environment"] = environment.strip()

    if environ.get('COOKIE_SECURE'):
        values["cookie_secure"] = _as_bool(environ['COOKIE_SECURE'])

    try:
        config = RelayConfig(**values)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e

    if not config.is_origin_allowed(config.default_origin):
        raise ConfigError(f"DEFAULT_ORIGIN {config.default_origin!r} is not in ALLOWED_ORIGINS")

    return config
