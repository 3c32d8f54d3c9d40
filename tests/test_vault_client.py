"""Tests for the Vault HTTP client and its error detection."""
import json

import httpx
import pytest

from dbvault.credentials.domains.exceptions import ServiceError
from dbvault.credentials.domains.vault_client import VaultClient

URL = "https://vault.example.com/v1/sys/health"


def client_returning(status, body, seen=None):
    """Build a VaultClient whose transport answers every request the same way."""

    def handler(request):
        if seen is not None:
            seen.append(request)
        content = body if isinstance(body, bytes) else body.encode()
        return httpx.Response(status, content=content)

    return VaultClient(transport=httpx.MockTransport(handler))


class TestErrorDetection:
    """Test classification of Vault responses."""

    def test_404_with_errors_list(self):
        """Test that a structured 404 surfaces its message and status code."""
        client = client_returning(404, '{"errors":["no such path"]}')

        with pytest.raises(ServiceError) as exc_info:
            client.request("GET", URL)

        assert "no such path" in str(exc_info.value)
        assert "404" in str(exc_info.value)
        assert exc_info.value.status_code == 404

    def test_200_with_error_field_fails(self):
        """Test that an error envelope in a 200 response is still a failure."""
        client = client_returning(200, '{"error":"internal"}')

        with pytest.raises(ServiceError) as exc_info:
            client.request("GET", URL)

        assert "internal" in str(exc_info.value)
        assert exc_info.value.status_code == 200

    def test_200_without_envelope_returns_body_unchanged(self):
        """Test that a clean 200 returns the raw bytes untouched."""
        body = b'{"data": {"keys": ["a", "b"]}, "errors": []}'
        client = client_returning(200, body)

        assert client.request("GET", URL) == body

    def test_non_json_error_is_generic(self):
        """Test that an unstructured failure reports a generic message."""
        client = client_returning(502, "<html>Bad Gateway</html>")

        with pytest.raises(ServiceError) as exc_info:
            client.request("GET", URL)

        assert str(exc_info.value) == "HTTP 502: request failed"

    def test_empty_envelope_is_generic(self):
        """Test that an empty errors list on a failure is a generic message."""
        client = client_returning(500, '{"errors": []}')

        with pytest.raises(ServiceError) as exc_info:
            client.request("GET", URL)

        assert str(exc_info.value) == "HTTP 500: request failed"

    def test_error_takes_precedence_over_errors(self):
        """Test that the single error field wins over the errors list."""
        client = client_returning(400, '{"error": "primary", "errors": ["secondary"]}')

        with pytest.raises(ServiceError) as exc_info:
            client.request("GET", URL)

        assert "primary" in str(exc_info.value)
        assert "secondary" not in str(exc_info.value)

    def test_multiple_errors_joined(self):
        """Test that every message of the errors list is reported."""
        client = client_returning(403, '{"errors": ["permission denied", "invalid token"]}')

        with pytest.raises(ServiceError) as exc_info:
            client.request("GET", URL)

        assert "permission denied; invalid token" in str(exc_info.value)

    def test_transport_failure(self):
        """Test that a connection error is a ServiceError."""

        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = VaultClient(transport=httpx.MockTransport(handler))

        with pytest.raises(ServiceError) as exc_info:
            client.request("GET", URL)

        assert exc_info.value.status_code is None


class TestRequestBuilding:
    """Test how requests are assembled."""

    def test_body_serialized_as_json(self):
        """Test that the body is sent as JSON."""
        seen = []
        client = client_returning(200, "{}", seen)

        client.request("POST", URL, {"password": "pw"})

        assert json.loads(seen[0].content) == {"password": "pw"}

    def test_empty_body_sent_for_get(self):
        """Test that a missing body is sent as an empty JSON object."""
        seen = []
        client = client_returning(200, "{}", seen)

        client.request("GET", URL)

        assert seen[0].content == b"{}"

    def test_non_string_headers_skipped(self):
        """Test that header values that aren't strings are dropped."""
        seen = []
        client = client_returning(200, "{}", seen)

        client.request("GET", URL, headers={"X-Vault-Token": "tok", "X-Retries": 3, "X-None": None})

        assert seen[0].headers["X-Vault-Token"] == "tok"
        assert "X-Retries" not in seen[0].headers
        assert "X-None" not in seen[0].headers

    def test_list_method_passed_through(self):
        """Test that Vault's LIST verb is sent literally."""
        seen = []
        client = client_returning(200, '{"data": {"keys": []}}', seen)

        client.request("LIST", "https://vault.example.com/v1/database/config?list=true")

        assert seen[0].method == "LIST"
        assert seen[0].url.params["list"] == "true"

    def test_context_manager_closes_client(self):
        """Test that leaving the with block closes the HTTP client."""
        with client_returning(200, "{}") as client:
            client.request("GET", URL)
        assert client._client.is_closed
