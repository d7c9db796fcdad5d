"""Tests for the OAuth helpers."""

from urllib.parse import parse_qs

import pytest
import requests
import responses

from pingen2sdk.clients.oauth import authorize_url, get_token, get_token_from_implicit
from pingen2sdk.config.config import Config
from pingen2sdk.core.errors import AuthenticationError, PingenError

TOKEN_URL = "https://api.pingen.com/auth/access-tokens"


@pytest.fixture
def production_config():
    return Config(client_id="testClientId", client_secret="testClientSecret")


class TestAuthorizeUrl:
    def test_defaults(self, production_config):
        url = authorize_url(production_config, {"state": "xyz"})
        assert url == "https://identity.pingen.com?client_id=testClientId&response_type=code&state=xyz"

    def test_keeps_response_type_and_overrides_client_id(self, production_config):
        url = authorize_url(production_config, {"response_type": "token", "client_id": "spoofed"})
        assert url == "https://identity.pingen.com?client_id=testClientId&response_type=token"

    def test_staging(self):
        config = Config(client_id="cid", client_secret="cs", environment="staging")
        assert authorize_url(config).startswith("https://identity-staging.pingen.com?")


class TestGetToken:
    @responses.activate
    def test_success(self, production_config):
        responses.add(
            responses.POST,
            TOKEN_URL,
            json={"token_type": "Bearer", "expires_in": 43200, "access_token": "tok"},
            status=200,
        )

        token = get_token(production_config, {"grant_type": "client_credentials", "scope": "letter batch"})

        assert token["access_token"] == "tok"
        request = responses.calls[0].request
        assert request.headers["Content-Type"] == "application/x-www-form-urlencoded"
        assert request.headers["User-Agent"] == "PINGEN.SDK.PYTHON"
        form = parse_qs(request.body)
        assert form["grant_type"] == ["client_credentials"]
        assert form["scope"] == ["letter batch"]
        assert form["client_id"] == ["testClientId"]
        assert form["client_secret"] == ["testClientSecret"]

    @responses.activate
    def test_rejected(self, production_config):
        responses.add(
            responses.POST,
            TOKEN_URL,
            json={"error": "invalid_client"},
            status=401,
            headers={"X-Request-Id": "tok-req"},
        )

        with pytest.raises(AuthenticationError) as excinfo:
            get_token(production_config, {"grant_type": "client_credentials"})

        err = excinfo.value
        assert err.status_code == 401
        assert err.request_id == "tok-req"
        assert err.json_body == {"error": "invalid_client"}
        assert str(err) == "PingenError: Failed to obtain access token (Status Code: 401, Request ID: tok-req)"

    @responses.activate
    def test_invalid_json(self, production_config):
        responses.add(responses.POST, TOKEN_URL, body="<html>", status=200)
        with pytest.raises(PingenError) as excinfo:
            get_token(production_config)
        assert excinfo.value.message == "Failed to parse response body"

    @responses.activate
    def test_connection_error(self, production_config):
        responses.add(responses.POST, TOKEN_URL, body=requests.exceptions.ConnectionError("refused"))
        with pytest.raises(PingenError) as excinfo:
            get_token(production_config)
        assert excinfo.value.message == "Internal error"
        assert excinfo.value.status_code == 500


class TestGetTokenFromImplicit:
    def test_valid_fragment(self):
        token = get_token_from_implicit("access_token=abc&token_type=Bearer&expires_in=3600")
        assert token == {"access_token": "abc", "expires_in": "3600"}

    def test_missing_keys(self):
        assert get_token_from_implicit("state=1") == {"access_token": "", "expires_in": ""}

    def test_invalid_fragment(self):
        with pytest.raises(ValueError, match="invalid fragment format"):
            get_token_from_implicit("access_token")
