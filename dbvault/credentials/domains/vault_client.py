"""HTTP client for the HashiCorp Vault API."""
import json
import logging
from typing import Any, Mapping, Optional

import httpx

from .exceptions import ServiceError

logger = logging.getLogger(__name__)


def _error_message(body: bytes) -> Optional[str]:
    """
    Extract the message of a Vault error envelope.

    Vault reports failures as ``{"errors": [...]}``; some endpoints use
    ``{"error": "..."}``. Returns None when the body carries neither.
    """
    try:
        payload = json.loads(body)
    except ValueError:
        return None
    if not isinstance(payload, dict):
        return None

    error = payload.get("error")
    if isinstance(error, str) and error:
        return error
    errors = payload.get("errors")
    if isinstance(errors, list) and errors:
        return "; ".join(str(item) for item in errors)
    return None


class VaultClient:
    """Sends JSON requests to Vault and detects its error envelopes."""

    def __init__(
        self,
        timeout: float = 30.0,
        verify: bool = True,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._client = httpx.Client(timeout=timeout, verify=verify, transport=transport)

    def __enter__(self) -> "VaultClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def request(
        self,
        method: str,
        url: str,
        body: Optional[Mapping[str, Any]] = None,
        headers: Optional[Mapping[str, Any]] = None,
    ) -> bytes:
        """
        Send a request and return the raw response body.

        Args:
            method: HTTP method; Vault's ``LIST`` is passed through as-is
            url: Absolute request URL
            body: JSON body, sent with every method
            headers: Request headers; values that aren't strings are skipped

        Raises:
            ServiceError: On transport failure, a non-2xx status, or an error
                envelope in a 2xx response
        """
        content = json.dumps(dict(body or {})).encode()
        request_headers = {
            key: value for key, value in (headers or {}).items() if isinstance(value, str)
        }

        try:
            response = self._client.request(method, url, content=content, headers=request_headers)
        except httpx.RequestError as exc:
            raise ServiceError(f"error while running the vault request: {exc}") from exc

        status = response.status_code
        raw = response.content
        logger.debug(f"{method} {response.request.url.path} -> HTTP {status}")

        message = _error_message(raw)
        if status < 200 or status >= 300:
            if message:
                raise ServiceError(f"HTTP {status}: Vault error: {message}", status_code=status)
            raise ServiceError(f"HTTP {status}: request failed", status_code=status)
        if message:
            raise ServiceError(f"HTTP {status}: Vault returned errors: {message}", status_code=status)

        return raw
