"""Local cache for the Bitwarden session token.

The cache holds a single line, ``BW_SESSION=<token>``, readable by the owner only.
"""
import os
import logging
from pathlib import Path

logger = logging.getLogger(__name__)

SESSION_PREFIX = "BW_SESSION="


class SessionCache:
    """Reads and writes the cached Bitwarden session token."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def read(self) -> str:
        """
        Read the cached token.

        Returns:
            The token, or an empty string if the file doesn't exist

        Raises:
            OSError: If the file exists but can't be read
        """
        if not self.path.exists():
            return ""

        content = self.path.read_text().strip()
        if content.startswith(SESSION_PREFIX):
            return content[len(SESSION_PREFIX):].strip()
        return content

    def write(self, token: str) -> None:
        """
        Persist the token, restricting the file to the owning user.

        Raises:
            OSError: If the directory or file can't be written
        """
        self.path.parent.mkdir(mode=0o700, parents=True, exist_ok=True)
        fd = os.open(self.path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, 'w') as f:
            f.write(f"{SESSION_PREFIX}{token}\n")
        # O_CREAT's mode doesn't apply to an existing file
        os.chmod(self.path, 0o600)
        logger.debug(f"Session cached at {self.path}")
