"""
Unit tests for relay logging utilities.

Tests the OAuthLogger class to ensure proper message formatting, color
coding, and that token material never reaches the console in full.
"""

import pytest
from unittest.mock import patch

from src.shared.logging_utils import (
    OAuthLogger,
    ComponentType,
    MessageType,
    create_logger
)


class TestEnums:
    """Test cases for ComponentType and MessageType enums."""

    def test_component_type_values(self):
        assert ComponentType.BROWSER == "BROWSER"
        assert ComponentType.RELAY == "AUTH-RELAY"
        assert ComponentType.UPSTREAM == "UPSTREAM"
        assert ComponentType.SYSTEM == "SYSTEM"

    def test_message_type_values(self):
        assert MessageType.REQUEST == "REQUEST"
        assert MessageType.STATE_VALIDATION == "STATE-VALIDATION"
        assert MessageType.TOKEN_EXCHANGE == "TOKEN-EXCHANGE"
        assert MessageType.PROFILE_FETCH == "PROFILE-FETCH"


class TestOAuthLogger:
    """Test cases for OAuthLogger class."""

    def test_logger_initialization(self):
        logger = OAuthLogger("auth-relay")

        assert logger.component_name == "AUTH-RELAY"
        assert isinstance(logger.colors, dict)
        assert "AUTH-RELAY" in logger.colors
        assert "UPSTREAM" in logger.colors

    def test_format_timestamp(self):
        timestamp = OAuthLogger("auth-relay")._format_timestamp()

        assert "-" in timestamp
        assert ":" in timestamp
        assert "." in timestamp

    def test_sanitize_data_credentials(self):
        """Test that secrets and authorization headers are redacted."""
        logger = OAuthLogger("auth-relay")

        sanitized = logger._sanitize_data({
            "client_id": "test-client-id",
            "client_secret": "very_secret",
            "Authorization": "Basic abcdef",
            "api_key": "key123"
        })

        assert sanitized["client_id"] == "test-client-id"
        assert sanitized["client_secret"] == "[REDACTED]"
        assert sanitized["Authorization"] == "[REDACTED]"
        assert sanitized["api_key"] == "[REDACTED]"

    def test_sanitize_data_tokens(self):
        """Test that tokens, codes and state values are truncated."""
        logger = OAuthLogger("auth-relay")

        sanitized = logger._sanitize_data({
            "access_token": "very_long_access_token_string_here",
            "refresh_token": "refresh_token_value_123",
            "code": "authorization_code_value",
            "state": "AbCdEfGhIjKlMnOp",
            "short_token": "short"
        })

        assert sanitized["access_token"] == "very_long_..."
        assert sanitized["refresh_token"] == "refresh_to..."
        assert sanitized["code"] == "authorizat..."
        assert sanitized["state"] == "AbCdEfGhIj..."
        assert sanitized["short_token"] == "short"

    def test_sanitize_data_leaves_other_fields(self):
        logger = OAuthLogger("auth-relay")
        data = {
            "origin": "http://localhost:3000",
            "scope": "user-read-private user-read-email",
            "status_code": 400,
            "expires_in": 3600
        }

        assert logger._sanitize_data(data) == data

    @patch('builtins.print')
    def test_log_oauth_message(self, mock_print):
        logger = OAuthLogger("auth-relay")

        logger.log_oauth_message(
            source="AUTH-RELAY",
            destination="BROWSER",
            message_type="Authorization Redirect",
            data={"client_id": "test-client-id", "access_token": "A" * 40}
        )

        logged_content = " ".join(str(call) for call in mock_print.call_args_list)
        assert "AUTH-RELAY" in logged_content
        assert "BROWSER" in logged_content
        assert "test-client-id" in logged_content
        assert "A" * 40 not in logged_content

    @patch('builtins.print')
    def test_log_token_operation(self, mock_print):
        logger = OAuthLogger("auth-relay")

        logger.log_token_operation("exchange", {"grant_type": "authorization_code"})

        logged_content = " ".join(str(call) for call in mock_print.call_args_list)
        assert "TOKEN-EXCHANGE" in logged_content
        assert "UPSTREAM" in logged_content

    @patch('builtins.print')
    def test_log_error(self, mock_print):
        logger = OAuthLogger("auth-relay")

        logger.log_error("invalid_token", "Error during token exchange", {"status": 400})

        logged_content = " ".join(str(call) for call in mock_print.call_args_list)
        assert "ERROR" in logged_content
        assert "invalid_token" in logged_content
        assert "400" in logged_content

    @patch('builtins.print')
    def test_log_info_sanitizes_details(self, mock_print):
        logger = OAuthLogger("auth-relay")

        logger.log_info("Refreshing", {"refresh_token": "R" * 30})

        logged_content = " ".join(str(call) for call in mock_print.call_args_list)
        assert "Refreshing" in logged_content
        assert "R" * 30 not in logged_content

    @patch('builtins.print')
    def test_log_startup(self, mock_print):
        logger = OAuthLogger("auth-relay")

        logger.log_startup("localhost", 5000, {"environment": "test"})

        logged_content = " ".join(str(call) for call in mock_print.call_args_list)
        assert "http://localhost:5000" in logged_content
        assert "environment" in logged_content


def test_create_logger():
    logger = create_logger("upstream")

    assert isinstance(logger, OAuthLogger)
    assert logger.component_name == "UPSTREAM"
