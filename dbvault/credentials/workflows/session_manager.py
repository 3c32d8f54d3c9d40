"""Bitwarden session state machine."""
import json
import logging

from ..domains.bitwarden_cli import BitwardenCLI
from ..domains.exceptions import AuthError, CommandError
from ..domains.models import SessionStatus
from ..domains.session_cache import SessionCache

logger = logging.getLogger(__name__)


class SessionManager:
    """Turns the cached session and ``bw status`` into a usable session token."""

    def __init__(self, gateway: BitwardenCLI, cache: SessionCache):
        self.gateway = gateway
        self.cache = cache

    def _read_cached_token(self) -> str:
        try:
            return self.cache.read()
        except OSError as e:
            logger.warning(f"Could not read cached session at {self.cache.path}: {e}")
            return ""

    def _query_status(self, cached_token: str) -> SessionStatus:
        try:
            output = self.gateway.status(cached_token)
        except CommandError as e:
            raise AuthError(f"error checking bitwarden status: {e}") from e

        try:
            data = json.loads(output)
        except ValueError as e:
            raise AuthError(f"error parsing bitwarden status: {e}") from e
        if not isinstance(data, dict):
            raise AuthError("error parsing bitwarden status: expected a JSON object")

        raw_status = data.get("status")
        status = SessionStatus.parse(raw_status)
        if status is SessionStatus.UNRECOGNIZED:
            raise AuthError(f"unknown bitwarden status: {raw_status!r}")
        return status

    def _unlock(self) -> str:
        try:
            token = self.gateway.unlock()
        except CommandError as e:
            raise AuthError(f"unlock failed: {e}") from e
        if not token:
            raise AuthError("unlock failed: bw returned an empty session")
        return token

    def acquire_session(self) -> str:
        """
        Return a session token, logging in or unlocking as the status requires.

        Behavior:
            - unauthenticated: login, unlock, cache the session (cache failure is fatal)
            - locked: unlock, cache the session (cache failure only warns)
            - unlocked: reuse the cached session; fail if there isn't one

        Raises:
            AuthError: If the status can't be determined or any step fails
        """
        cached_token = self._read_cached_token()
        status = self._query_status(cached_token)
        print(f"Status: {status.value}")

        if status is SessionStatus.UNAUTHENTICATED:
            try:
                self.gateway.login()
            except CommandError as e:
                raise AuthError(f"login failed: {e}") from e
            token = self._unlock()
            try:
                self.cache.write(token)
            except OSError as e:
                raise AuthError(f"unlock after login failed to cache the session: {e}") from e
            return token

        if status is SessionStatus.LOCKED:
            print("Bitwarden locked, unlocking...")
            token = self._unlock()
            try:
                self.cache.write(token)
            except OSError as e:
                logger.warning(f"Warning: failed to cache session: {e}")
            return token

        if cached_token:
            return cached_token
        raise AuthError("vault unlocked but no session token found")
