"""Bitwarden CLI wrapper.

Every ``bw`` invocation goes through this module. Non-interactive calls capture
output and run with a timeout; ``login`` and ``unlock`` hand the terminal to
``bw`` and wait for the user.
"""
import os
import logging
import subprocess
from typing import Dict, List, Optional

from .exceptions import CommandError
from .models import ItemLookup, ItemLookupStatus

logger = logging.getLogger(__name__)

NOT_FOUND_SENTINEL = "not found."


def _is_not_found(output: str) -> bool:
    """True if any line of ``bw`` output is the not-found message."""
    return any(line.strip().lower() == NOT_FOUND_SENTINEL for line in output.splitlines())


class BitwardenCLI:
    """Runs ``bw`` subcommands and returns their raw output."""

    def __init__(self, binary: str = "bw", timeout: Optional[float] = 60.0):
        self.binary = binary
        self.timeout = timeout

    def _run(
        self,
        args: List[str],
        input_text: Optional[str] = None,
        env: Optional[Dict[str, str]] = None,
        check: bool = True,
    ) -> subprocess.CompletedProcess:
        command = [self.binary, *args]
        logger.debug(f"Running: {' '.join(command[:3])}")
        try:
            result = subprocess.run(
                command,
                input=input_text,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                env=env,
                timeout=self.timeout,
                check=False,
            )
        except FileNotFoundError as e:
            raise CommandError(f"'{self.binary}' not found on PATH") from e
        except subprocess.TimeoutExpired as e:
            raise CommandError(f"'{self.binary} {args[0]}' timed out after {self.timeout}s") from e

        if check and result.returncode != 0:
            raise CommandError(
                f"'{self.binary} {args[0]}' exited with code {result.returncode}",
                returncode=result.returncode,
                output=result.stdout,
            )
        return result

    def status(self, session: str = "") -> str:
        """Run ``bw status``, passing a cached session through the environment."""
        env = None
        if session:
            env = {**os.environ, "BW_SESSION": session}
        return self._run(["status"], env=env).stdout

    def login(self) -> None:
        """Run ``bw login`` with the terminal attached."""
        try:
            subprocess.run([self.binary, "login"], check=True)
        except FileNotFoundError as e:
            raise CommandError(f"'{self.binary}' not found on PATH") from e
        except subprocess.CalledProcessError as e:
            raise CommandError(
                f"'{self.binary} login' exited with code {e.returncode}", returncode=e.returncode
            ) from e

    def unlock(self) -> str:
        """
        Run ``bw unlock --raw``; ``bw`` reads the master password from the terminal.

        Returns:
            The raw session string
        """
        try:
            result = subprocess.run(
                [self.binary, "unlock", "--raw"],
                stdout=subprocess.PIPE,
                text=True,
                check=True,
            )
        except FileNotFoundError as e:
            raise CommandError(f"'{self.binary}' not found on PATH") from e
        except subprocess.CalledProcessError as e:
            raise CommandError(
                f"'{self.binary} unlock' exited with code {e.returncode}", returncode=e.returncode
            ) from e
        return result.stdout.strip()

    def get_item(self, name: str, session: str) -> ItemLookup:
        """Look up an item by name, decoding the not-found message."""
        result = self._run(["get", "item", name, "--session", session], check=False)
        if _is_not_found(result.stdout):
            return ItemLookup(ItemLookupStatus.NOT_FOUND, result.stdout)
        if result.returncode != 0:
            raise CommandError(
                f"'{self.binary} get item' exited with code {result.returncode}",
                returncode=result.returncode,
                output=result.stdout,
            )
        return ItemLookup(ItemLookupStatus.FOUND, result.stdout)

    def get_template(self, session: str) -> str:
        """Fetch the blank item template as JSON text."""
        return self._run(["get", "template", "item", "--session", session]).stdout

    def encode(self, payload: str, session: str) -> str:
        """Encode item JSON into the form ``bw create`` accepts."""
        return self._run(["encode", "--session", session], input_text=payload).stdout

    def create_item(self, encoded: str, session: str) -> str:
        """Create an item from its encoded form, returning ``bw``'s response."""
        return self._run(["create", "item", "--session", session], input_text=encoded).stdout
