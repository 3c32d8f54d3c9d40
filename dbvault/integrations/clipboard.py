"""System clipboard access through the platform's copy command."""
import logging
import platform
import subprocess
from typing import List

from dbvault.credentials.domains.exceptions import ClipboardError

logger = logging.getLogger(__name__)


def _clipboard_commands() -> List[List[str]]:
    system = platform.system()
    if system == "Darwin":
        return [["pbcopy"]]
    if system == "Windows":
        return [["clip"]]
    # Wayland first, then X11
    return [
        ["wl-copy"],
        ["xclip", "-selection", "clipboard"],
        ["xsel", "--clipboard", "--input"],
    ]


def copy_to_clipboard(text: str) -> None:
    """
    Copy text to the system clipboard.

    Raises:
        ClipboardError: If no clipboard command is installed or all of them fail
    """
    failures = []
    for command in _clipboard_commands():
        try:
            subprocess.run(command, input=text, text=True, check=True, timeout=10)
            logger.debug(f"Copied to clipboard with {command[0]}")
            return
        except FileNotFoundError:
            failures.append(f"{command[0]}: not installed")
        except (subprocess.CalledProcessError, subprocess.TimeoutExpired) as e:
            failures.append(f"{command[0]}: {e}")

    raise ClipboardError(f"could not access the clipboard ({'; '.join(failures)})")
