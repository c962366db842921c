"""
Unit tests for relay Pydantic models.

Tests allow-list entries, the cookie session value, token exchange request
serialisation and token result parsing.
"""

import pytest
from pydantic import ValidationError

from src.shared.oauth_models import (
    AllowedOrigin,
    AuthSession,
    GrantType,
    RefreshTokenResponse,
    ResponseType,
    TokenExchangeRequest,
    TokenExchangeResult,
)


class TestEnums:
    """Test cases for enum values."""

    def test_grant_types(self):
        assert GrantType.AUTHORIZATION_CODE == "authorization_code"
        assert GrantType.REFRESH_TOKEN == "refresh_token"

    def test_response_type(self):
        assert ResponseType.CODE == "code"


class TestAllowedOrigin:
    """Test cases for AllowedOrigin model."""

    def test_normalises_case_and_path(self):
        origin = AllowedOrigin(scheme="HTTPS", host="Example.COM", path="/app/")

        assert origin.scheme == "https"
        assert origin.host == "example.com"
        assert origin.path == "/app"

    def test_root_path_collapses(self):
        assert AllowedOrigin(scheme="http", host="localhost:3000", path="/").path is None

    def test_is_immutable(self):
        origin = AllowedOrigin(scheme="http", host="localhost:3000")

        with pytest.raises(ValidationError):
            origin.host = "evil.com"

    def test_str(self):
        assert str(AllowedOrigin(scheme="http", host="localhost:3000")) == "http://localhost:3000"


class TestAuthSession:
    """Test cases for AuthSession model."""

    def test_defaults_to_empty(self):
        session = AuthSession()

        assert session.state is None
        assert session.origin_url is None

    def test_is_immutable(self):
        session = AuthSession(state="abc", origin_url="http://localhost:3000")

        with pytest.raises(ValidationError):
            session.state = "other"


class TestTokenExchangeRequest:
    """Test cases for TokenExchangeRequest model."""

    def test_authorization_code_form(self):
        request = TokenExchangeRequest(
            grant_type=GrantType.AUTHORIZATION_CODE,
            code="X",
            redirect_uri="http://localhost:5000/callback"
        )

        assert request.to_form_data() == {
            "grant_type": "authorization_code",
            "code": "X",
            "redirect_uri": "http://localhost:5000/callback"
        }

    def test_refresh_token_form(self):
        request = TokenExchangeRequest(grant_type="refresh_token", refresh_token="R")

        assert request.to_form_data() == {
            "grant_type": "refresh_token",
            "refresh_token": "R"
        }

    def test_authorization_code_requires_code(self):
        request = TokenExchangeRequest(
            grant_type=GrantType.AUTHORIZATION_CODE,
            redirect_uri="http://localhost:5000/callback"
        )

        with pytest.raises(ValueError):
            request.to_form_data()

    def test_refresh_requires_token(self):
        request = TokenExchangeRequest(grant_type=GrantType.REFRESH_TOKEN)

        with pytest.raises(ValueError):
            request.to_form_data()

    def test_unknown_grant_type_rejected(self):
        with pytest.raises(ValidationError):
            TokenExchangeRequest(grant_type="password")


class TestTokenExchangeResult:
    """Test cases for TokenExchangeResult model."""

    def test_parses_upstream_body(self):
        result = TokenExchangeResult(**{
            "access_token": "A",
            "token_type": "Bearer",
            "scope": "user-read-private",
            "expires_in": 3600,
            "refresh_token": "R"
        })

        assert result.access_token == "A"
        assert result.refresh_token == "R"
        assert result.expires_in == 3600

    def test_expires_in_default(self):
        assert TokenExchangeResult(access_token="A").expires_in == 3600

    def test_missing_access_token_rejected(self):
        with pytest.raises(ValidationError):
            TokenExchangeResult(refresh_token="R", expires_in=3600)

    def test_empty_access_token_rejected(self):
        with pytest.raises(ValidationError):
            TokenExchangeResult(access_token="")

    def test_empty_refresh_token_is_none(self):
        assert TokenExchangeResult(access_token="A", refresh_token="").refresh_token is None

    def test_fragment_params_order(self):
        result = TokenExchangeResult(access_token="A", refresh_token="R", expires_in=3600)

        assert list(result.fragment_params().items()) == [
            ("access_token", "A"),
            ("refresh_token", "R"),
            ("expires_in", "3600")
        ]

    def test_fragment_params_without_refresh_token(self):
        result = TokenExchangeResult(access_token="A", expires_in=60)

        assert result.fragment_params() == {"access_token": "A", "expires_in": "60"}


class TestRefreshTokenResponse:
    """Test cases for RefreshTokenResponse model."""

    def test_refresh_token_optional(self):
        response = RefreshTokenResponse(access_token="A", expires_in=3600)

        assert response.refresh_token is None
