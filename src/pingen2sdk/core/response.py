"""Turns raw HTTP responses from the Pingen API into results or errors."""

import json
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

import requests

from .errors import AuthenticationError, PingenError

logger = logging.getLogger(__name__)

NO_BODY_STATUSES = (requests.codes.no_content, requests.codes.accepted)


@dataclass(frozen=True)
class DefaultResponse:
    """Acknowledgement for calls answered with 202 Accepted or 204 No Content."""

    body: str
    status_code: int


def flatten_headers(headers: Any) -> Dict[str, str]:
    """Reduce a response header mapping to one string value per name."""
    flat: Dict[str, str] = {}
    for key, value in headers.items():
        if isinstance(value, (list, tuple)):
            if not value:
                continue
            value = value[0]
        flat[key] = value
    return flat


def interpret_response(
    response: requests.Response,
    target: Optional[Callable[[Any], Any]] = None,
) -> Any:
    """Interpret a Pingen API response.

    Args:
        response: The response returned by the transport.
        target: Optional callable applied to the decoded JSON document, e.g.
            a dataclass ``from_dict``. Without it the decoded document is
            returned as is.

    Returns:
        A DefaultResponse for 202/204, otherwise the decoded (and converted)
        JSON document.

    Raises:
        PingenError: If the body cannot be read or parsed, or the status is
            4xx/5xx. A 401 raises AuthenticationError.
    """
    status_code = response.status_code
    headers = flatten_headers(response.headers)

    try:
        body = response.content.decode("utf-8", errors="replace")
    except requests.RequestException as e:
        logger.error("Failed to read response body (status %d): %s", status_code, e)
        raise PingenError("Failed to read response body", str(e), status_code, headers) from e

    if status_code in NO_BODY_STATUSES:
        return DefaultResponse(body=body, status_code=status_code)

    if requests.codes.ok <= status_code < requests.codes.bad_request:
        try:
            data = json.loads(body)
            return target(data) if target is not None else data
        except (ValueError, TypeError, KeyError) as e:
            logger.error("Failed to parse response body (status %d): %s", status_code, e)
            raise PingenError("Failed to parse response body", body, status_code, headers) from e

    logger.error("API error: status %d: %s", status_code, body[:200])
    if status_code == requests.codes.unauthorized:
        raise AuthenticationError("API error", body, status_code, headers)
    raise PingenError("API error", body, status_code, headers)
