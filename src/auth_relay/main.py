"""
Authorization Relay - Server-side OAuth 2.0 Authorization Code Flow

This FastAPI application lets a browser client obtain tokens from a
third-party provider (Spotify Accounts by default) without the client secret
ever reaching the browser.

Key Features:
- Origin allow-list check before any cookie is issued
- Alphanumeric CSRF state stored in a short-lived cookie, consumed once
- Server-to-server code exchange with HTTP Basic client authentication
- Tokens handed back in the URL fragment of the return origin
- Stateless refresh endpoint that surfaces rotated refresh tokens

Security Features:
- Exact scheme/host origin matching, sub-path matching for path entries
- Constant-time state comparison
- Session cookies are HttpOnly, SameSite=Lax and cleared on every callback
- Token material is truncated in all log output
"""

import sys

import uvicorn
from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from ..shared.logging_utils import OAuthLogger
from ..shared.security import SecurityHeaders
from .config import RelayConfig, load_config
from .errors import ConfigError, RelayError
from .routes import router
from .session import SessionCookies
from .upstream import UpstreamClient

# Initialize logger
logger = OAuthLogger("AUTH-RELAY")


def create_app(config: RelayConfig) -> FastAPI:
    """
    Build the relay application.

    Args:
        config: Frozen relay configuration

    Returns:
        FastAPI: Configured application
    """
    app = FastAPI(
        title="Authorization Relay",
        description="""
        Server-side half of the OAuth 2.0 authorization code flow.

        **Key Endpoints:**
        - `/login` - Start the flow and redirect to the provider
        - `/callback` - Provider redirect target; exchanges the code
        - `/refresh_token` - Exchange a refresh token for a new access token
        - `/health` - Health check endpoint
        """,
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    app.state.config = config
    app.state.upstream = UpstreamClient(config)
    app.state.session_cookies = SessionCookies(config)

    # CORS origins are scheme://host only
    cors_origins = sorted({f"{origin.scheme}://{origin.host}" for origin in config.allowed_origins})
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-Requested-With"],
    )

    @app.middleware("http")
    async def add_security_headers(request, call_next):
        """Add security headers to all HTTP responses."""
        response = await call_next(request)

        for header_name, header_value in SecurityHeaders.get_oauth_security_headers().items():
            response.headers[header_name] = header_value

        return response

    @app.exception_handler(RelayError)
    async def relay_error_handler(request: Request, exc: RelayError) -> JSONResponse:
        """Render relay errors as JSON error bodies."""
        logger.log_oauth_message(
            "AUTH-RELAY", "BROWSER",
            "Request Failed",
            {
                "path": str(request.url.path),
                "error": exc.error_code,
                "status_code": exc.status_code
            },
            success=False
        )
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    app.include_router(router)

    # Mounted last so API routes take precedence
    if config.static_dir is not None and config.static_dir.is_dir():
        app.mount("/", StaticFiles(directory=str(config.static_dir), html=True), name="static")
        logger.log_info("Serving static files", {"directory": str(config.static_dir)})

    return app


def create_app_from_env() -> FastAPI:
    """
    Application factory for ``uvicorn --factory``.

    Raises:
        ConfigError: If required environment variables are missing
    """
    load_dotenv()
    return create_app(load_config())


def main():
    """Load configuration, refuse to start without credentials, and serve."""
    load_dotenv()

    try:
        config = load_config()
    except ConfigError as e:
        logger.log_error(
            "config_error",
            str(e),
            {"hint": "Set CLIENT_ID, CLIENT_SECRET and REDIRECT_URI before running the relay"}
        )
        sys.exit(1)

    app = create_app(config)

    logger.log_startup(
        config.host,
        config.port,
        {
            "health_check": f"http://{config.host}:{config.port}/health",
            "login_endpoint": f"http://{config.host}:{config.port}/login",
            "environment": config.environment,
            "allowed_origins": ", ".join(str(origin) for origin in config.allowed_origins)
        }
    )

    uvicorn.run(app, host=config.host, port=config.port, log_level="info")


if __name__ == "__main__":
    main()
