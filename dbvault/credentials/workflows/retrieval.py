"""End-to-end credential retrieval for one CLI run."""
import logging
from pathlib import Path
from typing import Callable, Optional, Protocol, Sequence, TypeVar

from ..domains.bitwarden_cli import BitwardenCLI
from ..domains.config_loader import Settings
from ..domains.exceptions import EmptyListingError
from ..domains.models import RetrievalResult, RunOptions, ServiceConfig
from ..domains.session_cache import SessionCache
from ..domains.vault_client import VaultClient
from . import credential_pipeline
from .record_resolver import RecordResolver
from .session_manager import SessionManager
from dbvault.integrations.connections_file import connection_name, upsert_connection
from dbvault.integrations.prompts import Prompter

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Selector(Protocol):
    def choose_one(self, items: Sequence[T], render: Callable[[T], str]) -> int:
        ...


def retrieve_credentials(
    options: RunOptions,
    settings: Settings,
    *,
    gateway: BitwardenCLI,
    prompter: Prompter,
    selector: Selector,
    clipboard_writer: Callable[[str], None],
    client: VaultClient,
    connections_path: Optional[Path] = None,
) -> RetrievalResult:
    """
    Resolve credentials for one database and hand them to the clipboard.

    Every credential is resolved before anything is copied or written, so a
    failure leaves no partial output.

    Raises:
        DbVaultError: From whichever step fails first
    """
    environment = options.environment
    if environment is None:
        environments = list(settings.environments)
        environment = environments[selector.choose_one(environments, str)]
    print(f"Selected env: {environment}")

    session = SessionManager(gateway, SessionCache(settings.session_file)).acquire_session()
    record = RecordResolver(gateway, prompter).get_or_create(settings.item_name(environment), session)
    config = ServiceConfig.from_record(record)

    token = credential_pipeline.get_token(config, client)
    listing = credential_pipeline.get_database_list(environment, config, client)
    if not listing.supported:
        return RetrievalResult(environment=environment, supported=False)
    if not listing.databases:
        raise EmptyListingError(f"no databases found for environment '{environment}'")

    databases = listing.databases
    selected = databases[selector.choose_one(databases, lambda db: db.label())]
    print(f"Selected: {selected.name}")

    connection_url = credential_pipeline.get_database_connection_url(config, token, selected.name, client)
    credentials = credential_pipeline.get_database_credentials(
        config,
        token,
        selected.name,
        client,
        database_prefix=settings.database_prefix,
        role_prefix=settings.role_prefix,
    )
    full_url = credential_pipeline.expand(connection_url, credentials, selected.name)

    if options.copy_url:
        clipboard_writer(full_url)
        print("✓ Full database URL copied to clipboard")
    else:
        clipboard_writer(credentials.password)
        print("✓ Password copied to clipboard")

    result = RetrievalResult(environment=environment, database=selected, full_url=full_url)
    if options.update_connections:
        name = connection_name(selected.environment, selected.name)
        path = connections_path or settings.connections_file
        result.connection_name = name
        result.connection_updated = upsert_connection(path, name, full_url)
        action = "Updated" if result.connection_updated else "Added new"
        print(f"✓ {action} connection: {name}")

    return result
