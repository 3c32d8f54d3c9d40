"""Vault token, database listing and static credential retrieval."""
import json
import logging
import re
from typing import Any, Callable, Dict, List

from ..domains.exceptions import ServiceError
from ..domains.models import DatabaseDescriptor, DatabaseListing, ResolvedCredentials, ServiceConfig
from ..domains.vault_client import VaultClient

logger = logging.getLogger(__name__)

DEFAULT_DATABASE_PREFIX = "jangl-"
DEFAULT_ROLE_PREFIX = "ops-"

PLACEHOLDER_PATTERN = re.compile(r"\{\{(username|password|database)\}\}")


def _decode(raw: bytes, what: str) -> Dict[str, Any]:
    try:
        payload = json.loads(raw)
    except ValueError as e:
        raise ServiceError(f"error while unmarshalling {what}: {e}") from e
    if not isinstance(payload, dict):
        raise ServiceError(f"error while unmarshalling {what}: expected a JSON object")
    return payload


def _dig(payload: Dict[str, Any], *keys: str) -> Any:
    value: Any = payload
    for key in keys:
        if not isinstance(value, dict):
            return None
        value = value.get(key)
    return value


def _token_headers(token: str) -> Dict[str, str]:
    return {"Content-Type": "application/json", "X-Vault-Token": token}


def get_token(config: ServiceConfig, client: VaultClient) -> str:
    """
    Log in to Vault with userpass and return the client token.

    Raises:
        ServiceError: If the login fails or the response has no token
    """
    login_url = f"{config.vault_url}/v1/auth/userpass/login/{config.username}"
    try:
        raw = client.request(
            "POST",
            login_url,
            {"password": config.password},
            {"Content-Type": "application/json"},
        )
        payload = _decode(raw, "vault login response")
    except ServiceError as e:
        raise ServiceError(f"error while retrieving the vault token: {e}", e.status_code) from e

    token = _dig(payload, "auth", "client_token")
    if not isinstance(token, str) or not token:
        raise ServiceError("error while retrieving the vault token: response has no client token")
    logger.debug("Vault token acquired")
    return token


def list_vault_databases(
    environment: str, config: ServiceConfig, client: VaultClient
) -> List[DatabaseDescriptor]:
    """List database configuration names in Vault, tagged with ``environment``."""
    token = get_token(config, client)
    list_url = f"{config.vault_url}/v1/database/config?list=true"
    try:
        raw = client.request("LIST", list_url, {}, _token_headers(token))
        payload = _decode(raw, "vault database list")
    except ServiceError as e:
        raise ServiceError(f"error while doing vault database list request: {e}", e.status_code) from e

    keys = _dig(payload, "data", "keys") or []
    if not isinstance(keys, list):
        raise ServiceError("error while unmarshalling vault database list: 'keys' is not a list")
    return [DatabaseDescriptor(name=str(key), environment=environment) for key in keys]


DatabaseLister = Callable[[str, ServiceConfig, VaultClient], List[DatabaseDescriptor]]

# Environments missing here have no database source yet (AWS-hosted ones)
DATABASE_LISTERS: Dict[str, DatabaseLister] = {
    "prod": list_vault_databases,
}


def get_database_list(
    environment: str, config: ServiceConfig, client: VaultClient
) -> DatabaseListing:
    """
    List the databases for an environment.

    Returns:
        A listing; ``supported`` is False for environments without a lister

    Raises:
        ServiceError: If a supported environment's listing fails
    """
    lister = DATABASE_LISTERS.get(environment)
    if lister is None:
        logger.info(f"No database lister for environment '{environment}'")
        return DatabaseListing(environment=environment, supported=False)

    try:
        databases = lister(environment, config, client)
    except ServiceError as e:
        raise ServiceError(
            f"error while retrieving the database list from vault: {e}", e.status_code
        ) from e
    return DatabaseListing(environment=environment, databases=databases)


def get_database_connection_url(
    config: ServiceConfig, token: str, db_name: str, client: VaultClient
) -> str:
    """
    Return the connection URL template stored in a database's Vault config.

    Raises:
        ServiceError: If the request fails or the config has no connection URL
    """
    config_url = f"{config.vault_url}/v1/database/config/{db_name}"
    try:
        raw = client.request("GET", config_url, {}, _token_headers(token))
        payload = _decode(raw, "config response")
    except ServiceError as e:
        raise ServiceError(f"error retrieving database config: {e}", e.status_code) from e

    connection_url = _dig(payload, "data", "connection_details", "connection_url")
    if not isinstance(connection_url, str) or not connection_url:
        raise ServiceError(f"database config for '{db_name}' has no connection_url")
    return connection_url


def derive_role_name(selected: str, prefix: str = DEFAULT_DATABASE_PREFIX) -> str:
    """Strip the first occurrence of ``prefix`` from a database name."""
    return selected.replace(prefix, "", 1)


def get_database_credentials(
    config: ServiceConfig,
    token: str,
    selected: str,
    client: VaultClient,
    database_prefix: str = DEFAULT_DATABASE_PREFIX,
    role_prefix: str = DEFAULT_ROLE_PREFIX,
) -> ResolvedCredentials:
    """
    Fetch the static credentials for the role backing ``selected``.

    Raises:
        ServiceError: If the request fails or the response lacks credentials
    """
    role = derive_role_name(selected, database_prefix)
    creds_url = f"{config.vault_url}/v1/database/static-creds/{role_prefix}{role}"
    try:
        raw = client.request("GET", creds_url, {}, _token_headers(token))
        payload = _decode(raw, "the credentials")
    except ServiceError as e:
        raise ServiceError(
            f"error in the http request while retrieving the credentials: {e}", e.status_code
        ) from e

    username = _dig(payload, "data", "username")
    password = _dig(payload, "data", "password")
    if not isinstance(username, str) or not isinstance(password, str):
        raise ServiceError(f"static credentials for role '{role_prefix}{role}' are incomplete")
    return ResolvedCredentials(username=username, password=password)


def expand(template: str, credentials: ResolvedCredentials, db_name: str) -> str:
    """Replace every {{username}}, {{password}} and {{database}} in one pass."""
    values = {
        "username": credentials.username,
        "password": credentials.password,
        "database": db_name,
    }
    return PLACEHOLDER_PATTERN.sub(lambda match: values[match.group(1)], template)
