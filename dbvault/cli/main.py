"""CLI entrypoint for dbvault."""
import sys
import argparse
import logging

from .validators import validate_environment
from dbvault.credentials.domains.exceptions import DbVaultError, SelectionCancelled

VERSION = "0.1.0"

# Configure logging to stderr
logging.basicConfig(
    level=logging.WARNING,
    format="%(message)s",
    stream=sys.stderr
)
logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dbvault",
        description="Retrieve database credentials from Hashicorp Vault",
        epilog="""
The Vault login for each environment is kept in a Bitwarden item named
'vault-<env>' (fields: URL, optional DB-URL). It is created on first use.

Exit codes:
  0 - Credentials copied, or selection cancelled
  1 - Retrieval failed
  2 - Invalid arguments
        """,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--env",
        help="Environment to use (skips the environment menu)"
    )
    parser.add_argument(
        "-u", "--url",
        action="store_true",
        help="Copy full URL to the clipboard instead of the password"
    )
    parser.add_argument(
        "-n", "--setNvimDB",
        dest="set_nvim_db",
        action="store_true",
        help="Set the NVIM DB connection with the new URL"
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Show debug logging on stderr"
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"dbvault {VERSION}"
    )
    return parser


def cmd_retrieve(args) -> int:
    """Run one credential retrieval."""
    from dbvault.credentials.domains.bitwarden_cli import BitwardenCLI
    from dbvault.credentials.domains.config_loader import load_settings
    from dbvault.credentials.domains.models import RunOptions
    from dbvault.credentials.domains.vault_client import VaultClient
    from dbvault.credentials.workflows.retrieval import retrieve_credentials
    from dbvault.integrations.clipboard import copy_to_clipboard
    from dbvault.integrations.prompts import TerminalPrompter
    from dbvault.integrations.selection import TerminalSelector

    settings = load_settings()
    validate_environment(args.env, settings.environments)

    options = RunOptions(
        environment=args.env,
        copy_url=args.url,
        update_connections=args.set_nvim_db,
    )

    print("Credentials Retriever")
    with VaultClient(timeout=settings.vault_timeout, verify=settings.verify_ssl) as client:
        result = retrieve_credentials(
            options,
            settings,
            gateway=BitwardenCLI(settings.bw_binary, timeout=settings.command_timeout),
            prompter=TerminalPrompter(),
            selector=TerminalSelector(),
            clipboard_writer=copy_to_clipboard,
            client=client,
        )

    if not result.supported:
        print(f"Database listing for '{result.environment}' is not supported yet")
    return 0


def main(argv=None):
    """Main CLI entrypoint."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    try:
        code = cmd_retrieve(args)
    except SelectionCancelled as e:
        print(f"Selection cancelled: {e}")
        code = 0
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        code = 1
    except DbVaultError as e:
        print(f"Error: {e}", file=sys.stderr)
        code = 1
    except Exception as e:
        logger.debug("Unexpected failure", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        code = 1

    sys.exit(code)


if __name__ == "__main__":
    main()
