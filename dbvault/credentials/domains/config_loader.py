"""Configuration loader for dbvault."""
import os
import logging
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, Optional, Tuple
import yaml

from .exceptions import ConfigError

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "DBVAULT_CONFIG"
DEFAULT_ENVIRONMENTS = ("prod", "sqa", "dev")


@dataclass(frozen=True)
class Settings:
    """Tool settings; every value has a default so the config file is optional."""
    environments: Tuple[str, ...] = DEFAULT_ENVIRONMENTS
    connections_file: Path = field(
        default_factory=lambda: Path.home() / ".config" / "dbqueries" / "connections.json"
    )
    bw_binary: str = "bw"
    item_prefix: str = "vault-"
    session_file: Path = field(default_factory=lambda: Path.home() / ".cache" / ".bw_session")
    command_timeout: float = 60.0
    vault_timeout: float = 30.0
    verify_ssl: bool = True
    database_prefix: str = "jangl-"
    role_prefix: str = "ops-"

    def item_name(self, environment: str) -> str:
        """Name of the Bitwarden item holding the Vault login for an environment."""
        return f"{self.item_prefix}{environment}"


def _get_config_path() -> Path:
    """
    Get config file path.

    Priority order:
    1. DBVAULT_CONFIG environment variable
    2. Default location: ~/.config/dbvault/config.yml
    """
    override = os.getenv(CONFIG_ENV_VAR)
    if override:
        return Path(override).expanduser()
    return Path.home() / ".config" / "dbvault" / "config.yml"


def _section(config: Dict[str, Any], name: str) -> Dict[str, Any]:
    value = config.get(name)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigError(f"'{name}' must be a mapping in the config file")
    return value


def _expect(value: Any, kind: type, key: str) -> Any:
    if kind is float and isinstance(value, int) and not isinstance(value, bool):
        return float(value)
    if not isinstance(value, kind) or (kind is not bool and isinstance(value, bool)):
        raise ConfigError(f"'{key}' must be of type {kind.__name__}, got {type(value).__name__}")
    return value


def parse_settings(config: Dict[str, Any]) -> Settings:
    """
    Validate a parsed config mapping and build Settings from it.

    Raises:
        ConfigError: If a known key has the wrong type or an invalid value
    """
    defaults = Settings()
    overrides: Dict[str, Any] = {}

    if "environments" in config:
        environments = config["environments"]
        if not isinstance(environments, list) or not environments:
            raise ConfigError("'environments' must be a non-empty list")
        overrides["environments"] = tuple(_expect(env, str, "environments[]") for env in environments)

    if "connections_file" in config:
        overrides["connections_file"] = Path(
            _expect(config["connections_file"], str, "connections_file")
        ).expanduser()

    bitwarden = _section(config, "bitwarden")
    if "binary" in bitwarden:
        overrides["bw_binary"] = _expect(bitwarden["binary"], str, "bitwarden.binary")
    if "item_prefix" in bitwarden:
        overrides["item_prefix"] = _expect(bitwarden["item_prefix"], str, "bitwarden.item_prefix")
    if "session_file" in bitwarden:
        overrides["session_file"] = Path(
            _expect(bitwarden["session_file"], str, "bitwarden.session_file")
        ).expanduser()
    if "command_timeout" in bitwarden:
        overrides["command_timeout"] = _expect(bitwarden["command_timeout"], float, "bitwarden.command_timeout")

    vault = _section(config, "vault")
    if "timeout" in vault:
        overrides["vault_timeout"] = _expect(vault["timeout"], float, "vault.timeout")
    if "verify_ssl" in vault:
        overrides["verify_ssl"] = _expect(vault["verify_ssl"], bool, "vault.verify_ssl")
    if "database_prefix" in vault:
        overrides["database_prefix"] = _expect(vault["database_prefix"], str, "vault.database_prefix")
    if "role_prefix" in vault:
        overrides["role_prefix"] = _expect(vault["role_prefix"], str, "vault.role_prefix")

    for key in ("command_timeout", "vault_timeout"):
        if key in overrides and overrides[key] <= 0:
            raise ConfigError(f"'{key}' must be greater than zero")

    return replace(defaults, **overrides)


def load_settings(config_path: Optional[Path] = None) -> Settings:
    """
    Load settings from the YAML config file, falling back to defaults.

    Returns:
        Settings built from the config file, or defaults if it doesn't exist

    Raises:
        ConfigError: If the config file can't be read, parsed or validated
    """
    # Resolved on every call so DBVAULT_CONFIG changes apply immediately
    path = config_path or _get_config_path()

    if not path.exists():
        logger.debug(f"No config file at {path}, using defaults")
        return Settings()

    try:
        with open(path, 'r') as f:
            config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Failed to parse YAML config at {path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"Failed to read config file at {path}: {e}") from e

    if config is None:
        logger.debug(f"Config file at {path} is empty, using defaults")
        return Settings()

    if not isinstance(config, dict):
        raise ConfigError(f"Config file at {path} must contain a mapping")

    settings = parse_settings(config)
    logger.info(f"Configuration loaded from {path}")
    return settings
