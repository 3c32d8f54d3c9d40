"""Domain models for credential retrieval."""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from .exceptions import ConfigError

URL_FIELD = "URL"
DATABASE_URL_FIELD = "DB-URL"


class SessionStatus(str, Enum):
    """Lock state reported by ``bw status``."""
    UNAUTHENTICATED = "unauthenticated"
    LOCKED = "locked"
    UNLOCKED = "unlocked"
    UNRECOGNIZED = "unrecognized"

    @classmethod
    def parse(cls, raw: Any) -> "SessionStatus":
        """Decode a raw status value, mapping anything unknown to UNRECOGNIZED."""
        if isinstance(raw, str):
            for status in (cls.UNAUTHENTICATED, cls.LOCKED, cls.UNLOCKED):
                if raw == status.value:
                    return status
        return cls.UNRECOGNIZED


class ItemLookupStatus(str, Enum):
    """Outcome of ``bw get item``."""
    FOUND = "found"
    NOT_FOUND = "not_found"


@dataclass
class ItemLookup:
    """Decoded result of looking up a Bitwarden item by name."""
    status: ItemLookupStatus
    output: str = ""


@dataclass
class SecretRecord:
    """Transient copy of a Bitwarden login item."""
    name: str
    username: str
    password: str
    fields: Dict[str, str] = field(default_factory=dict)
    id: Optional[str] = None

    @classmethod
    def from_item(cls, item: Dict[str, Any]) -> "SecretRecord":
        """Build a record from the JSON object returned by ``bw get item``."""
        login = item.get("login") or {}
        fields = {}
        for entry in item.get("fields") or []:
            name = entry.get("name")
            if name:
                fields[name] = entry.get("value") or ""
        return cls(
            name=item.get("name") or "",
            username=login.get("username") or "",
            password=login.get("password") or "",
            fields=fields,
            id=item.get("id"),
        )

    def __repr__(self) -> str:
        return f"SecretRecord(name={self.name!r}, username={self.username!r}, fields={sorted(self.fields)!r})"


@dataclass(frozen=True)
class ServiceConfig:
    """Vault connection settings extracted from a Bitwarden item."""
    vault_url: str
    username: str
    password: str = field(repr=False)
    database_url: str = ""

    @classmethod
    def from_record(cls, record: SecretRecord) -> "ServiceConfig":
        """
        Extract the Vault URL and login from a record.

        Raises:
            ConfigError: If the URL field, username or password is empty.
        """
        vault_url = record.fields.get(URL_FIELD, "").strip().rstrip("/")
        missing = []
        if not vault_url:
            missing.append(f"field '{URL_FIELD}'")
        if not record.username:
            missing.append("login username")
        if not record.password:
            missing.append("login password")
        if missing:
            raise ConfigError(
                f"Bitwarden item '{record.name}' is missing: {', '.join(missing)}"
            )
        return cls(
            vault_url=vault_url,
            username=record.username,
            password=record.password,
            database_url=record.fields.get(DATABASE_URL_FIELD, ""),
        )


@dataclass(frozen=True)
class DatabaseDescriptor:
    """A database configuration name known to Vault."""
    name: str
    environment: str

    def label(self) -> str:
        return f"{self.name} ({self.environment})"


@dataclass
class DatabaseListing:
    """Databases available for an environment, or a not-supported marker."""
    environment: str
    databases: List[DatabaseDescriptor] = field(default_factory=list)
    supported: bool = True


@dataclass(frozen=True)
class ResolvedCredentials:
    """Static credentials for one database role."""
    username: str
    password: str = field(repr=False)


@dataclass(frozen=True)
class RunOptions:
    """Flags for a single retrieval run, built once by the CLI."""
    environment: Optional[str] = None
    copy_url: bool = False
    update_connections: bool = False


@dataclass
class RetrievalResult:
    """What a retrieval run produced."""
    environment: str
    supported: bool = True
    database: Optional[DatabaseDescriptor] = None
    full_url: str = field(default="", repr=False)
    connection_name: str = ""
    connection_updated: Optional[bool] = None
