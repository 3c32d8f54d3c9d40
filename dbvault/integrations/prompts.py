"""Terminal input used when a Bitwarden item has to be created."""
import getpass
from typing import Protocol


class Prompter(Protocol):
    def prompt_text(self, label: str) -> str:
        ...

    def prompt_secret(self, label: str) -> str:
        ...


class TerminalPrompter:
    """Reads plain text with input() and secrets without echo."""

    def prompt_text(self, label: str) -> str:
        return input(label)

    def prompt_secret(self, label: str) -> str:
        return getpass.getpass(label)
