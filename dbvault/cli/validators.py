"""Input validation for CLI arguments."""
import sys
from typing import Optional, Sequence


def validate_environment(environment: Optional[str], environments: Sequence[str]) -> None:
    """
    Validate that --env names a configured environment.

    Args:
        environment: Value of --env, or None when not given
        environments: Environments from the settings

    Raises:
        SystemExit with code 2 if validation fails
    """
    if environment is None:
        return

    if not environment.strip():
        print("Error: Environment cannot be empty", file=sys.stderr)
        sys.exit(2)

    if environment not in environments:
        print(f"Error: Unknown environment '{environment}'", file=sys.stderr)
        print(f"\nConfigured environments: {', '.join(environments)}", file=sys.stderr)
        print("Add more under 'environments' in ~/.config/dbvault/config.yml", file=sys.stderr)
        sys.exit(2)
