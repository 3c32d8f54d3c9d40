"""Numbered terminal menu for picking an environment or a database."""
import logging
from typing import Callable, Sequence, TypeVar

from dbvault.credentials.domains.exceptions import SelectionCancelled

logger = logging.getLogger(__name__)

T = TypeVar("T")

CANCEL_INPUTS = {"", "q", "quit"}


class TerminalSelector:
    """Prints the items as a numbered list and reads the choice from stdin."""

    def __init__(self, title: str = "Choose an option:", input_fn: Callable[[str], str] = input):
        self.title = title
        self._input = input_fn

    def choose_one(self, items: Sequence[T], render: Callable[[T], str]) -> int:
        """
        Let the user pick one item.

        Returns:
            Index of the chosen item

        Raises:
            SelectionCancelled: On empty input, 'q', EOF, Ctrl-C, or no items
        """
        if not items:
            raise SelectionCancelled("nothing to choose from")

        print(self.title)
        for number, item in enumerate(items, start=1):
            print(f"{number}. {render(item)}")

        while True:
            try:
                choice = self._input(f"\nEnter choice (1-{len(items)}, q to cancel): ").strip()
            except (EOFError, KeyboardInterrupt) as e:
                print()
                raise SelectionCancelled("selection aborted") from e

            if choice.lower() in CANCEL_INPUTS:
                raise SelectionCancelled("no option chosen")
            if choice.isdigit() and 1 <= int(choice) <= len(items):
                return int(choice) - 1
            print("Invalid choice.")
