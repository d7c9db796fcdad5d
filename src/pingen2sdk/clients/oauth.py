"""OAuth helpers for obtaining Pingen access tokens.

Covers the three flows the API offers: building the authorization URL for
the authorization-code flow, exchanging a grant for a token, and reading the
token from an implicit-flow redirect fragment.
"""

import logging
from typing import Any, Dict, Optional
from urllib.parse import urlencode, urlsplit, urlunsplit

import requests

from ..config.config import Config
from ..core.errors import AuthenticationError, PingenError
from ..core.response import flatten_headers

logger = logging.getLogger(__name__)

TOKEN_ENDPOINT = "/auth/access-tokens"


def authorize_url(config: Config, params: Optional[Dict[str, str]] = None) -> str:
    """Build the URL the user is sent to for the authorization-code flow.

    ``client_id`` always comes from the configuration and ``response_type``
    defaults to "code".
    """
    values = dict(params or {})
    values["client_id"] = config.client_id
    if not values.get("response_type"):
        values["response_type"] = "code"

    parts = urlsplit(config.auth_base_url)
    query = urlencode(sorted(values.items()))
    return urlunsplit((parts.scheme, parts.netloc, parts.path, query, parts.fragment))


def get_token(config: Config, params: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
    """Exchange a grant for an access token.

    Args:
        config: The client configuration supplying credentials.
        params: Grant parameters, e.g. ``{"grant_type": "client_credentials",
            "scope": "letter batch webhook"}``.

    Returns:
        The decoded token response (``access_token``, ``expires_in``, ...).

    Raises:
        PingenError: If the request cannot be sent or the response is not JSON.
        AuthenticationError: If the token endpoint rejects the request.
    """
    data = dict(params or {})
    data["client_id"] = config.client_id
    data["client_secret"] = config.client_secret

    url = config.api_base_url + TOKEN_ENDPOINT
    headers = {
        "Content-Type": "application/x-www-form-urlencoded",
        "User-Agent": config.user_agent,
    }

    logger.debug("Requesting access token from %s (grant_type=%s)", url, data.get("grant_type"))

    try:
        response = requests.post(url, data=data, headers=headers, timeout=config.request_timeout)
    except requests.RequestException as e:
        logger.error("Token request failed: %s", e)
        raise PingenError("Internal error", f"Failed to send request: {e}", 500) from e

    if not 200 <= response.status_code < 300:
        logger.error("Token request failed with status %d: %s", response.status_code, response.text[:200])
        raise AuthenticationError(
            "Failed to obtain access token",
            response.text,
            response.status_code,
            flatten_headers(response.headers),
        )

    try:
        token = response.json()
    except ValueError as e:
        logger.error("Failed to parse token response: %s", e)
        raise PingenError(
            "Failed to parse response body",
            response.text,
            response.status_code,
            flatten_headers(response.headers),
        ) from e

    logger.info("Obtained access token (expires in %s s)", token.get("expires_in"))
    return token


def get_token_from_implicit(fragment: str) -> Dict[str, str]:
    """Read the access token from an implicit-flow redirect fragment.

    Args:
        fragment: The URL fragment, e.g. "access_token=abc&expires_in=3600".

    Raises:
        ValueError: If a pair in the fragment has no "=".
    """
    values: Dict[str, str] = {}
    for pair in fragment.split("&"):
        key, sep, value = pair.partition("=")
        if not sep:
            raise ValueError(f"invalid fragment format: {fragment}")
        values[key] = value

    return {
        "access_token": values.get("access_token", ""),
        "expires_in": values.get("expires_in", ""),
    }
