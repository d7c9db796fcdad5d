"""HTTP requestor shared by every Pingen API resource.

ApiRequestor builds the request URL and headers, performs the call with the
configured timeout, and hands the response to the response interpreter. It
keeps no per-call state, so one instance can be shared between threads.
"""

import logging
from http.cookiejar import DefaultCookiePolicy
from typing import IO, Any, Callable, Dict, Optional
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

import requests
from requests.structures import CaseInsensitiveDict

from ..config.config import Config
from ..core.errors import PingenError
from ..core.response import interpret_response

logger = logging.getLogger(__name__)

JSON_API_CONTENT_TYPE = "application/vnd.api+json"
OCTET_STREAM_CONTENT_TYPE = "application/octet-stream"

# Only Content-Type goes to the upload host; None drops the requests defaults
UPLOAD_HEADERS = {
    "Content-Type": OCTET_STREAM_CONTENT_TYPE,
    "Accept": None,
    "Accept-Encoding": None,
    "User-Agent": None,
}


def build_url(base_url: str, path: str, params: Optional[Dict[str, str]] = None) -> str:
    """Build an absolute URL with a percent-encoded query sorted by key.

    Args:
        base_url: The API base URL (e.g. "https://api.pingen.com").
        path: The API path, which may carry its own query string.
        params: Optional query parameters to add.

    Returns:
        The full URL. There is no trailing "?" when the query is empty.

    Raises:
        PingenError: If the URL cannot be parsed.
    """
    try:
        parts = urlsplit(base_url + path)
    except ValueError as e:
        raise PingenError("Invalid request URL", str(e), 500) from e

    query = parse_qsl(parts.query, keep_blank_values=True)
    if params:
        query.extend(params.items())
    query.sort(key=lambda pair: pair[0])

    return urlunsplit((parts.scheme, parts.netloc, parts.path, urlencode(query), parts.fragment))


class ApiRequestor:
    """Performs authenticated requests against the Pingen API.

    Attributes:
        config: The client configuration (base URLs, timeout, user agent).
    """

    def __init__(self, access_token: str, config: Config, session: Optional[requests.Session] = None):
        """Initialize the requestor.

        Args:
            access_token: OAuth access token sent as a bearer token.
            config: The client configuration.
            session: Optional requests session to reuse connections with.
        """
        self._access_token = access_token
        self.config = config
        if session is None:
            session = requests.Session()
            # Calls must not share state through Set-Cookie
            session.cookies.set_policy(DefaultCookiePolicy(allowed_domains=[]))
        self._session = session

    def build_url(self, path: str, params: Optional[Dict[str, str]] = None) -> str:
        return build_url(self.config.api_base_url, path, params)

    def request_headers(self, extra_headers: Optional[Dict[str, str]] = None) -> CaseInsensitiveDict:
        """Compose the headers for an API request.

        Extra headers are added after the base headers. A name that is
        already set keeps its value and gets the extra value appended.
        """
        headers = CaseInsensitiveDict()
        headers["User-Agent"] = self.config.user_agent
        headers["Authorization"] = f"Bearer {self._access_token}"
        headers["Content-Type"] = JSON_API_CONTENT_TYPE
        headers["Accept"] = JSON_API_CONTENT_TYPE

        for key, value in (extra_headers or {}).items():
            if key in headers:
                headers[key] = f"{headers[key]}, {value}"
            else:
                headers[key] = value

        return headers

    def _send(
        self,
        method: str,
        url: str,
        headers: Any,
        data: Any = None,
        stream: bool = False,
    ) -> requests.Response:
        logger.debug("Making %s request to %s", method, url)
        try:
            return self._session.request(
                method,
                url,
                data=data,
                headers=headers,
                timeout=self.config.request_timeout,
                stream=stream,
            )
        except requests.RequestException as e:
            logger.error("%s %s failed: %s", method, url, e)
            raise PingenError("Internal error", f"Failed to send {method} request: {e}", 500) from e

    def _request(
        self,
        method: str,
        path: str,
        payload: Optional[bytes] = None,
        extra_headers: Optional[Dict[str, str]] = None,
        params: Optional[Dict[str, str]] = None,
        target: Optional[Callable[[Any], Any]] = None,
    ) -> Any:
        url = self.build_url(path, params)
        response = self._send(method, url, self.request_headers(extra_headers), data=payload)
        try:
            return interpret_response(response, target)
        finally:
            response.close()

    def get(
        self,
        path: str,
        target: Optional[Callable[[Any], Any]] = None,
        params: Optional[Dict[str, str]] = None,
        extra_headers: Optional[Dict[str, str]] = None,
    ) -> Any:
        return self._request("GET", path, extra_headers=extra_headers, params=params, target=target)

    def post(
        self,
        path: str,
        payload: bytes,
        target: Optional[Callable[[Any], Any]] = None,
        extra_headers: Optional[Dict[str, str]] = None,
    ) -> Any:
        """POST a JSON:API document. The payload bytes are sent unchanged."""
        return self._request("POST", path, payload=payload, extra_headers=extra_headers, target=target)

    def patch(
        self,
        path: str,
        payload: bytes,
        target: Optional[Callable[[Any], Any]] = None,
        extra_headers: Optional[Dict[str, str]] = None,
    ) -> Any:
        return self._request("PATCH", path, payload=payload, extra_headers=extra_headers, target=target)

    def cancel(self, path: str) -> Any:
        """Send a bodyless PATCH, as used by the cancel actions."""
        return self._request("PATCH", path)

    def delete(self, path: str) -> Any:
        return self._request("DELETE", path)

    def put_file(self, url: str, file: IO[bytes]) -> None:
        """Upload file contents to a pre-signed URL.

        The upload target is not the API host, so no API headers are sent.

        Raises:
            PingenError: "Internal error" (500) if the request cannot be sent,
                "Api error" with the response status if it is 4xx/5xx.
        """
        logger.debug("Uploading file to %s", url)
        try:
            response = requests.put(
                url,
                data=file,
                headers=UPLOAD_HEADERS,
                timeout=self.config.request_timeout,
            )
        except requests.RequestException as e:
            logger.error("File upload to %s failed: %s", url, e)
            raise PingenError("Internal error", f"Failed to send PUT request: {e}", 500) from e

        with response:
            if response.status_code >= requests.codes.bad_request:
                logger.error("File upload to %s returned %d", url, response.status_code)
                raise PingenError(
                    "Api error",
                    f"PUT request failed with status {response.status_code}",
                    response.status_code,
                )

    def stream(self, path: str) -> IO[bytes]:
        """GET a binary resource (e.g. a letter PDF) without buffering it.

        Returns:
            The open response body. The caller must close it.

        Raises:
            PingenError: "Invalid HTTP response" if the status is not 200.
        """
        url = self.build_url(path)
        response = self._send("GET", url, self.request_headers(), stream=True)

        if response.status_code != requests.codes.ok:
            response.close()
            logger.error("Stream request to %s returned %d", url, response.status_code)
            raise PingenError(
                "Invalid HTTP response",
                f"Stream request failed with status {response.status_code}",
                response.status_code,
            )

        response.raw.decode_content = True
        return response.raw

    def close(self) -> None:
        self._session.close()
