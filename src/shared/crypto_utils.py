"""
Random token and credential utilities for the authorization relay.

This module generates the unguessable state values used for CSRF protection,
compares secrets in constant time, and builds the HTTP Basic credentials the
relay presents to the upstream token endpoint.
"""

import base64
import secrets
import string


STATE_ALPHABET = string.ascii_letters + string.digits


class StateGenerator:
    """
    Generator for opaque alphanumeric state strings.

    Every character is drawn independently from the 62-symbol alphabet
    using the operating system CSPRNG, so outputs cannot be predicted from
    previous ones.
    """

    @staticmethod
    def generate_random_string(length: int) -> str:
        """
        Generate a random alphanumeric string.

        Args:
            length: Number of characters to produce (must be >= 1)

        Returns:
            str: String of exactly ``length`` characters from [A-Za-z0-9]

        Raises:
            ValueError: If length is not a positive integer

        Example:
            state = StateGenerator.generate_random_string(16)
            # Returns: "q3ZkT0bPm1xYc9Ra"
        """
        if isinstance(length, bool) or not isinstance(length, int):
            raise ValueError("Length must be an integer")

        if length < 1:
            raise ValueError("Length must be at least 1")

        return ''.join(secrets.choice(STATE_ALPHABET) for _ in range(length))

    @staticmethod
    def generate_state_parameter(length: int = 16) -> str:
        """Generate a state parameter for CSRF protection."""
        return StateGenerator.generate_random_string(length)


def generate_random_string(length: int) -> str:
    """Generate a random alphanumeric string of the given length."""
    return StateGenerator.generate_random_string(length)


def constant_time_compare(a: str, b: str) -> bool:
    """
    Perform constant-time string comparison.

    Comparison is exact and case-sensitive. Non-string inputs never match.

    Args:
        a: First string
        b: Second string

    Returns:
        bool: True if strings are equal, False otherwise
    """
    if not isinstance(a, str) or not isinstance(b, str):
        return False

    return secrets.compare_digest(a.encode('utf-8'), b.encode('utf-8'))


def build_basic_auth_header(client_id: str, client_secret: str) -> str:
    """
    Build an HTTP Basic Authorization header value.

    Args:
        client_id: OAuth client identifier
        client_secret: OAuth client secret

    Returns:
        str: Header value of the form ``Basic <base64(id:secret)>``
    """
    credentials = f"{client_id}:{client_secret}".encode('utf-8')
    return "Basic " + base64.b64encode(credentials).decode('ascii')
