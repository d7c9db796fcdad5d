"""Error types raised by the Pingen client.

Every failed HTTP call surfaces as a PingenError carrying the message, the
decoded JSON error body (when the server sent one), the status code, the
response headers and the X-Request-Id correlation id. Webhook signature
failures are not HTTP errors and use the unrelated WebhookSignatureError.
"""

import json
import logging
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-Id"


def header_value(headers: Optional[Mapping[str, str]], name: str) -> Optional[str]:
    """Look up a header by name, ignoring case. Returns None if absent."""
    if not headers:
        return None
    if name in headers:
        return headers[name]
    lowered = name.lower()
    for key, value in headers.items():
        if key.lower() == lowered:
            return value
    return None


class PingenError(Exception):
    """Raised when a call to the Pingen API fails.

    Attributes:
        message: Human readable description of the failure.
        json_body: The parsed JSON error document, or None if the body was
            empty or not valid JSON.
        status_code: HTTP status code of the failed call.
        headers: Response headers, one value per name.
        request_id: Value of the X-Request-Id response header, or "".
    """

    type_label = "PingenError"
    is_authentication_error = False

    def __init__(
        self,
        message: str,
        body: Optional[str] = "",
        status_code: int = 0,
        headers: Optional[Dict[str, str]] = None,
    ):
        self._message = message
        self._status_code = status_code
        self._headers = dict(headers) if headers is not None else None
        self._json_body: Any = None
        self._request_id = ""

        if body:
            try:
                self._json_body = json.loads(body)
            except ValueError:
                logger.debug("Error body is not valid JSON, leaving json_body empty")

        request_id = header_value(self._headers, REQUEST_ID_HEADER)
        if request_id is not None:
            self._request_id = request_id

        super().__init__(message, body, status_code, self._headers)

    @property
    def message(self) -> str:
        return self._message

    @property
    def json_body(self) -> Any:
        return self._json_body

    @property
    def status_code(self) -> int:
        return self._status_code

    @property
    def headers(self) -> Optional[Mapping[str, str]]:
        if self._headers is None:
            return None
        return MappingProxyType(self._headers)

    @property
    def request_id(self) -> str:
        return self._request_id

    def to_dict(self) -> Dict[str, Any]:
        """Serializable form. Status code, headers and request id are left out."""
        return {"message": self._message, "json_body": self._json_body}

    def __str__(self) -> str:
        return (
            f"{self.type_label}: {self._message} "
            f"(Status Code: {self._status_code}, Request ID: {self._request_id})"
        )

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(message={self._message!r}, "
            f"status_code={self._status_code}, request_id={self._request_id!r})"
        )


class AuthenticationError(PingenError):
    """A PingenError caused by rejected credentials (HTTP 401 or a failed token exchange).

    Renders exactly like PingenError; callers that want to special-case
    authentication failures check the type or ``is_authentication_error``.
    """

    is_authentication_error = True


class WebhookSignatureError(Exception):
    """Raised when an inbound webhook fails signature verification."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return f"WebhookSignatureError: {self.message}"
