"""Editor connections file (``~/.config/dbqueries/connections.json``) patcher.

The file is a JSON list of ``{"name": ..., "url": ...}`` records.
"""
import json
import logging
from pathlib import Path
from typing import Any, Dict, List

from dbvault.credentials.domains.exceptions import ConnectionsFileError

logger = logging.getLogger(__name__)


def connection_name(environment: str, database: str) -> str:
    return f"{environment}-{database}"


def _load_connections(path: Path) -> List[Dict[str, Any]]:
    try:
        with open(path, 'r') as f:
            connections = json.load(f)
    except FileNotFoundError as e:
        raise ConnectionsFileError(f"error opening db connections file {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise ConnectionsFileError(f"error parsing the db connections file {path}: {e}") from e
    except OSError as e:
        raise ConnectionsFileError(f"error reading db connections file {path}: {e}") from e

    if not isinstance(connections, list) or not all(isinstance(c, dict) for c in connections):
        raise ConnectionsFileError(f"db connections file {path} must contain a list of objects")
    return connections


def upsert_connection(path: Path, name: str, url: str) -> bool:
    """
    Set the URL of the connection called ``name``, adding it if absent.

    Returns:
        True if an existing entry was updated, False if one was appended

    Raises:
        ConnectionsFileError: If the file can't be read, parsed or written
    """
    path = Path(path)
    connections = _load_connections(path)

    updated = False
    for connection in connections:
        if connection.get("name") == name:
            connection["url"] = url
            updated = True
            break
    if not updated:
        connections.append({"name": name, "url": url})

    try:
        with open(path, 'w') as f:
            json.dump(connections, f, indent=2)
    except OSError as e:
        raise ConnectionsFileError(f"error writing db connections file {path}: {e}") from e

    logger.info(f"{'Updated' if updated else 'Added'} connection '{name}' in {path}")
    return updated
