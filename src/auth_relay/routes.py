"""
Authorization Relay Routes

This module contains the three steps of the relayed authorization code flow:
``/login`` issues state and sends the browser upstream, ``/callback`` checks
the returned state and exchanges the code, and ``/refresh_token`` mints new
access tokens. Each handler gets its collaborators from ``app.state``.
"""

from datetime import datetime, timezone
from typing import Optional
from urllib.parse import urlencode

from fastapi import APIRouter, BackgroundTasks, Depends, Request
from fastapi.responses import RedirectResponse

from ..shared.crypto_utils import StateGenerator, constant_time_compare
from ..shared.logging_utils import ComponentType, MessageType, create_logger
from ..shared.oauth_models import (
    AuthSession,
    ErrorResponse,
    HealthResponse,
    RefreshTokenResponse,
    ResponseType,
)
from ..shared.security import build_redirect_url
from .config import RelayConfig
from .errors import ForbiddenOrigin, MissingParameter, StateMismatch, UpstreamExchangeFailure
from .session import SessionCookies
from .upstream import UpstreamClient

# Initialize router and logger
router = APIRouter()
logger = create_logger(ComponentType.RELAY.value)


def get_config(request: Request) -> RelayConfig:
    return request.app.state.config


def get_upstream(request: Request) -> UpstreamClient:
    return request.app.state.upstream


def get_session_cookies(request: Request) -> SessionCookies:
    return request.app.state.session_cookies


def resolve_return_origin(stored_origin: Optional[str], config: RelayConfig) -> str:
    """
    Pick the URL the callback redirects back to.

    The stored cookie is re-checked against the allow-list; a missing or
    tampered value falls back to the configured default origin.
    """
    if stored_origin and config.is_origin_allowed(stored_origin):
        return stored_origin
    return config.default_origin


async def log_profile(upstream: UpstreamClient, access_token: str) -> None:
    """
    Fetch the user's profile for diagnostics.

    Runs after the redirect has been sent. Failures are logged and discarded.
    """
    try:
        profile = await upstream.fetch_profile(access_token)
    except Exception as e:
        logger.log_error(
            "profile_fetch_failed",
            f"Error fetching user data: {type(e).__name__}",
            {"endpoint": upstream.config.profile_url}
        )
        return

    if not isinstance(profile, dict):
        profile = {"profile": profile}

    logger.log_oauth_message(
        ComponentType.UPSTREAM.value, ComponentType.RELAY.value,
        MessageType.PROFILE_FETCH.value,
        {
            "id": profile.get("id"),
            "display_name": profile.get("display_name"),
            "country": profile.get("country"),
            "product": profile.get("product")
        }
    )


@router.get("/login", responses={403: {"model": ErrorResponse}})
async def login(
    origin: Optional[str] = None,
    scopes: Optional[str] = None,
    config: RelayConfig = Depends(get_config),
    cookies: SessionCookies = Depends(get_session_cookies)
):
    """
    Start the authorization code flow.

    Validates the requested return origin, stores it alongside a fresh
    state value in short-lived cookies, and redirects the browser to the
    upstream authorization endpoint.
    """
    origin_url = origin or config.default_origin
    scope = scopes.strip() if scopes and scopes.strip() else config.default_scopes

    state = StateGenerator.generate_state_parameter(config.state_length)

    if not config.is_origin_allowed(origin_url):
        logger.log_oauth_message(
            "BROWSER", "AUTH-RELAY",
            "Login Rejected",
            {
                "origin": origin_url,
                "error": "forbidden",
                "reason": "Origin is not in the allow-list"
            },
            success=False
        )
        raise ForbiddenOrigin(f"Origin not allowed: {origin_url}")

    auth_params = {
        "response_type": ResponseType.CODE.value,
        "client_id": config.client_id,
        "scope": scope,
        "redirect_uri": config.redirect_uri,
        "state": state
    }
    authorization_url = f"{config.authorize_url}?{urlencode(auth_params)}"

    logger.log_oauth_message(
        "AUTH-RELAY", "BROWSER",
        "Authorization Redirect",
        {
            "client_id": config.client_id,
            "redirect_uri": config.redirect_uri,
            "scope": scope,
            "state": state,
            "origin": origin_url,
            "authorize_endpoint": config.authorize_url
        }
    )

    response = RedirectResponse(authorization_url, status_code=302)
    cookies.issue(response, AuthSession(state=state, origin_url=origin_url))
    return response


@router.get("/callback")
async def callback(
    request: Request,
    background_tasks: BackgroundTasks,
    code: Optional[str] = None,
    state: Optional[str] = None,
    error: Optional[str] = None,
    config: RelayConfig = Depends(get_config),
    upstream: UpstreamClient = Depends(get_upstream),
    cookies: SessionCookies = Depends(get_session_cookies)
):
    """
    Handle the upstream redirect after the user authorizes.

    Consumes the login session, checks the state, exchanges the code, and
    redirects back to the stored origin with either the tokens or an error
    code in the URL fragment. Both session cookies are cleared on every path.
    """
    session = cookies.read(request)
    origin_url = resolve_return_origin(session.origin_url, config)

    logger.log_oauth_message(
        "UPSTREAM", "AUTH-RELAY",
        "Authorization Callback Received",
        {
            "code": code,
            "state": state,
            "error": error,
            "stored_state_present": session.state is not None,
            "origin": origin_url
        }
    )

    try:
        if not state or not session.state or not constant_time_compare(state, session.state):
            raise StateMismatch("State parameter validation failed")

        if not code:
            raise UpstreamExchangeFailure(f"No authorization code returned (error={error})")

        result = await upstream.exchange_code(code)

    except StateMismatch as e:
        logger.log_oauth_message(
            ComponentType.RELAY.value, ComponentType.BROWSER.value,
            MessageType.STATE_VALIDATION.value,
            {
                "received_state": state,
                "expected_state": session.state,
                "security_risk": "Possible CSRF attack"
            },
            success=False
        )
        target = build_redirect_url(origin_url, {"error": e.error_code})

    except UpstreamExchangeFailure as e:
        logger.log_error(
            "invalid_token",
            "Error during token exchange",
            {"reason": e.message, "status": e.status}
        )
        target = build_redirect_url(origin_url, {"error": UpstreamExchangeFailure.error_code})

    else:
        if config.profile_url:
            background_tasks.add_task(log_profile, upstream, result.access_token)

        logger.log_oauth_message(
            "AUTH-RELAY", "BROWSER",
            "Tokens Delivered",
            {
                "origin": origin_url,
                "access_token": result.access_token,
                "expires_in": result.expires_in
            }
        )
        target = build_redirect_url(origin_url, result.fragment_params())

    response = RedirectResponse(target, status_code=302)
    cookies.clear(response)
    return response


@router.get(
    "/refresh_token",
    response_model=RefreshTokenResponse,
    response_model_exclude_none=True,
    responses={400: {"model": ErrorResponse}}
)
async def refresh_access_token(
    refresh_token: Optional[str] = None,
    upstream: UpstreamClient = Depends(get_upstream)
):
    """
    Exchange a refresh token for a new access token.

    Stateless: no cookies are read or written. A rotated refresh token from
    upstream is passed through so the caller can replace the old one.
    """
    if not refresh_token or not refresh_token.strip():
        logger.log_error("missing_refresh_token", "Refresh requested without a refresh token")
        raise MissingParameter("refresh_token")

    try:
        result = await upstream.refresh_access_token(refresh_token.strip())
    except UpstreamExchangeFailure as e:
        logger.log_error("invalid_grant", "Error refreshing token", {"reason": e.message})
        raise UpstreamExchangeFailure(
            e.message or "Refresh token was rejected",
            status=e.status,
            error_code="invalid_grant"
        ) from e

    logger.log_token_operation(
        "REFRESHED",
        {
            "access_token": result.access_token,
            "expires_in": result.expires_in,
            "refresh_token_rotated": result.refresh_token is not None
        }
    )

    return RefreshTokenResponse(
        access_token=result.access_token,
        expires_in=result.expires_in,
        refresh_token=result.refresh_token
    )


@router.get("/health", response_model=HealthResponse)
async def health_check(config: RelayConfig = Depends(get_config)):
    """
    Health check endpoint for monitoring relay status.

    Returns:
        HealthResponse: Status, current UTC timestamp and environment label
    """
    return HealthResponse(
        status="OK",
        timestamp=datetime.now(timezone.utc).isoformat(),
        environment=config.environment
    )
