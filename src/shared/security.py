"""
Security utilities for the authorization relay.

This module decides whether a caller-supplied return URL is on the configured
allow-list, builds the fragment-carrying redirect back to that URL, and
provides the security headers applied to every relay response.
"""

from typing import Iterable, List, Mapping, Optional, Tuple
from urllib.parse import unquote, urlencode, urlsplit

from .oauth_models import AllowedOrigin


ALLOWED_SCHEMES = ('http', 'https')
ENCODED_SEPARATORS = ('%2f', '%5c')
DOT_SEGMENTS = ('.', '..')


class OriginValidator:
    """
    Origin allow-list matching.

    Root entries (no path or ``/``) match on the exact ``(scheme, host)``
    pair. Path-qualified entries additionally require the candidate path to
    equal the entry path or sit beneath it. There is no subdomain, scheme or
    substring wildcarding.
    """

    @staticmethod
    def split_url(url: str) -> Optional[Tuple[str, str, str]]:
        """
        Split an absolute http(s) URL into ``(scheme, host, path)``.

        The host is lower-cased and keeps an explicit port. The path has its
        trailing slash removed. Anything ambiguous returns None: relative
        URLs, other schemes, embedded credentials, backslashes, whitespace,
        query strings, fragments, dot-segments or encoded path separators.

        Args:
            url: URL to split

        Returns:
            Optional[Tuple[str, str, str]]: Normalised parts, or None if rejected
        """
        if not isinstance(url, str) or not url:
            return None

        if any(char.isspace() or ord(char) < 32 or char == '\\' for char in url):
            return None

        try:
            parsed = urlsplit(url)
            port = parsed.port
        except ValueError:
            return None

        scheme = parsed.scheme.lower()
        if scheme not in ALLOWED_SCHEMES:
            return None

        if not parsed.hostname or parsed.username is not None or parsed.password is not None:
            return None

        if parsed.query or parsed.fragment or '#' in url or '?' in url:
            return None

        path = parsed.path
        if any(separator in path.lower() for separator in ENCODED_SEPARATORS):
            return None

        # Browsers resolve dot-segments before navigating
        if any(segment in DOT_SEGMENTS for segment in unquote(path).split('/')):
            return None

        host = parsed.hostname.lower()
        if ':' in host:
            host = f"[{host}]"
        if port is not None:
            host = f"{host}:{port}"

        return scheme, host, path.rstrip('/')

    @staticmethod
    def parse_allowed_origin(url: str) -> AllowedOrigin:
        """
        Parse one configured allow-list entry.

        Raises:
            ValueError: If the entry is not an absolute http(s) URL
        """
        parts = OriginValidator.split_url(url.strip() if isinstance(url, str) else url)
        if parts is None:
            raise ValueError(f"Invalid allowed origin: {url!r}")

        scheme, host, path = parts
        return AllowedOrigin(scheme=scheme, host=host, path=path or None)

    @staticmethod
    def parse_allowed_origins(raw: str) -> Tuple[AllowedOrigin, ...]:
        """
        Parse a comma-separated allow-list.

        Blank items are skipped; duplicates are kept once.
        """
        origins: List[AllowedOrigin] = []
        for item in raw.split(','):
            item = item.strip()
            if not item:
                continue
            origin = OriginValidator.parse_allowed_origin(item)
            if origin not in origins:
                origins.append(origin)
        return tuple(origins)

    @staticmethod
    def is_allowed(candidate_url: str, allow_list: Iterable[AllowedOrigin]) -> bool:
        """
        Check a candidate return URL against the allow-list.

        Args:
            candidate_url: Caller-supplied URL
            allow_list: Configured origins

        Returns:
            bool: True if an entry matches, False otherwise (including
            unparseable candidates)

        Example:
            allow_list = parse_allowed_origins("http://localhost:3000")
            OriginValidator.is_allowed("http://localhost:3000", allow_list)  # True
            OriginValidator.is_allowed("http://localhost:3000.evil.com", allow_list)  # False
        """
        parts = OriginValidator.split_url(candidate_url)
        if parts is None:
            return False

        scheme, host, path = parts
        for entry in allow_list:
            if entry.scheme != scheme or entry.host != host:
                continue

            if entry.path is None:
                return True

            if path == entry.path or path.startswith(entry.path + '/'):
                return True

        return False


def build_redirect_url(origin_url: str, params: Mapping[str, str]) -> str:
    """
    Build the browser redirect back to the caller.

    Strips a single trailing slash from ``origin_url`` and appends
    ``/#`` plus the urlencoded parameters. Data stays in the fragment so it
    is never sent to a server on the next navigation.

    Args:
        origin_url: Validated return URL
        params: Result parameters

    Returns:
        str: Redirect target

    Example:
        build_redirect_url("http://x.com/", {"a": "1"})
        # Returns: "http://x.com/#a=1"
    """
    if origin_url.endswith('/'):
        origin_url = origin_url[:-1]

    return f"{origin_url}/#{urlencode(params)}"


class SecurityHeaders:
    """
    Security headers for HTTP responses.

    Relay responses carry tokens, so nothing may be cached or framed.
    """

    @staticmethod
    def get_oauth_security_headers() -> dict:
        """
        Get security headers for relay endpoints.

        Returns:
            dict: Dictionary of security headers
        """
        return {
            'X-Content-Type-Options': 'nosniff',
            'X-Frame-Options': 'DENY',
            'Referrer-Policy': 'no-referrer',
            'Cache-Control': 'no-cache, no-store, must-revalidate',
            'Pragma': 'no-cache',
            'Expires': '0'
        }


# Convenience functions
def is_origin_allowed(candidate_url: str, allow_list: Iterable[AllowedOrigin]) -> bool:
    """Check a candidate return URL against the allow-list."""
    return OriginValidator.is_allowed(candidate_url, allow_list)


def parse_allowed_origins(raw: str) -> Tuple[AllowedOrigin, ...]:
    """Parse a comma-separated allow-list."""
    return OriginValidator.parse_allowed_origins(raw)
