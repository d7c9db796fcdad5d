"""Pytest configuration and fixtures."""

import pytest
import requests
from requests.structures import CaseInsensitiveDict

from pingen2sdk.clients.http import ApiRequestor
from pingen2sdk.config.config import Config

BASE_URL = "http://pingen.test"
ACCESS_TOKEN = "dummyToken"


@pytest.fixture
def config() -> Config:
    c = Config(client_id="testClientId", client_secret="testClientSecret")
    c.set_api_base_url(BASE_URL)
    return c


@pytest.fixture
def requestor(config: Config):
    r = ApiRequestor(ACCESS_TOKEN, config)
    yield r
    r.close()


@pytest.fixture
def make_response():
    """Factory for in-memory requests.Response objects."""

    def _make(status_code, body=b"", headers=None):
        response = requests.Response()
        response.status_code = status_code
        response._content = body
        response.headers = CaseInsensitiveDict(headers or {})
        return response

    return _make
