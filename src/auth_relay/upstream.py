"""
Upstream authorization server client.

Server-to-server calls to the provider's token endpoint (authorization code
and refresh grants, HTTP Basic client authentication) and the diagnostic
profile endpoint. Every failure on the token path is translated into
``UpstreamExchangeFailure``; calls are bounded by the configured timeout and
never retried.
"""

from typing import Any, Dict, Optional

import httpx
from pydantic import ValidationError

from ..shared.crypto_utils import build_basic_auth_header
from ..shared.logging_utils import ComponentType, MessageType, create_logger
from ..shared.oauth_models import GrantType, TokenExchangeRequest, TokenExchangeResult
from .config import RelayConfig
from .errors import UpstreamExchangeFailure


logger = create_logger(ComponentType.RELAY.value)


class UpstreamClient:
    """
    Client for the upstream token and profile endpoints.

    Args:
        config: Relay configuration
    """

    def __init__(self, config: RelayConfig):
        self.config = config
        self._basic_auth = build_basic_auth_header(config.client_id, config.client_secret)

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.config.upstream_timeout)

    async def exchange_code(self, code: str) -> TokenExchangeResult:
        """Exchange an authorization code for tokens."""
        return await self.request_token(TokenExchangeRequest(
            grant_type=GrantType.AUTHORIZATION_CODE,
            code=code,
            redirect_uri=self.config.redirect_uri,
        ))

    async def refresh_access_token(self, refresh_token: str) -> TokenExchangeResult:
        """Exchange a refresh token for a new access token."""
        return await self.request_token(TokenExchangeRequest(
            grant_type=GrantType.REFRESH_TOKEN,
            refresh_token=refresh_token,
        ))

    async def request_token(self, token_request: TokenExchangeRequest) -> TokenExchangeResult:
        """
        POST a token request to the upstream token endpoint.

        Args:
            token_request: Grant to exchange

        Returns:
            TokenExchangeResult: Parsed tokens

        Raises:
            UpstreamExchangeFailure: On network errors, timeouts, non-2xx
                responses or bodies without a usable access token
        """
        try:
            form_data = token_request.to_form_data()
        except ValueError as e:
            raise UpstreamExchangeFailure(str(e)) from e

        logger.log_token_operation(
            "REQUEST",
            {
                "grant_type": token_request.grant_type,
                "code": token_request.code,
                "refresh_token": token_request.refresh_token,
                "redirect_uri": token_request.redirect_uri,
                "endpoint": self.config.token_url
            }
        )

        try:
            async with self._client() as client:
                response = await client.post(
                    self.config.token_url,
                    data=form_data,
                    headers={
                        "Authorization": self._basic_auth,
                        "Content-Type": "application/x-www-form-urlencoded"
                    }
                )
        except httpx.HTTPError as e:
            self._log_failure(token_request, f"{type(e).__name__}: {e}")
            raise UpstreamExchangeFailure(f"Token endpoint unreachable: {type(e).__name__}") from e

        if not response.is_success:
            description = _error_description(response)
            self._log_failure(token_request, description, response.status_code)
            raise UpstreamExchangeFailure(description, status=response.status_code)

        try:
            body = response.json()
        except ValueError as e:
            self._log_failure(token_request, "Response body is not JSON", response.status_code)
            raise UpstreamExchangeFailure("Malformed token response") from e

        if not isinstance(body, dict):
            self._log_failure(token_request, "Response body is not an object", response.status_code)
            raise UpstreamExchangeFailure("Malformed token response")

        try:
            result = TokenExchangeResult(**body)
        except ValidationError as e:
            self._log_failure(token_request, "Response is missing a usable access token", response.status_code)
            raise UpstreamExchangeFailure("Malformed token response") from e

        if token_request.grant_type == GrantType.REFRESH_TOKEN:
            message_type = MessageType.TOKEN_REFRESH
        else:
            message_type = MessageType.TOKEN_EXCHANGE

        logger.log_oauth_message(
            ComponentType.UPSTREAM.value, ComponentType.RELAY.value,
            message_type.value,
            {
                "grant_type": token_request.grant_type,
                "access_token": result.access_token,
                "refresh_token_issued": result.refresh_token is not None,
                "expires_in": result.expires_in
            }
        )
        return result

    async def fetch_profile(self, access_token: str) -> Dict[str, Any]:
        """
        Fetch the user's profile with a Bearer token.

        Raises:
            httpx.HTTPError: On network errors or non-2xx responses
        """
        async with self._client() as client:
            response = await client.get(
                self.config.profile_url,
                headers={"Authorization": f"Bearer {access_token}"}
            )
            response.raise_for_status()
            return response.json()

    def _log_failure(self, token_request: TokenExchangeRequest, reason: str,
                     status_code: Optional[int] = None) -> None:
        logger.log_token_operation(
            "FAILED",
            {
                "grant_type": token_request.grant_type,
                "status_code": status_code,
                "reason": reason,
                "endpoint": self.config.token_url
            },
            success=False
        )


def _error_description(response: httpx.Response) -> str:
    """Best-effort error text from a failed token response."""
    try:
        error_data = response.json()
    except ValueError:
        error_data = None

    if isinstance(error_data, dict):
        description = error_data.get("error_description") or error_data.get("error")
        if isinstance(description, str) and description:
            return description

    return f"Token endpoint returned HTTP {response.status_code}"
