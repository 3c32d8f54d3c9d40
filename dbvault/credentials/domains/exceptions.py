"""Exceptions raised while retrieving database credentials."""


class DbVaultError(Exception):
    """Base error for every failure dbvault reports to the user."""


class CommandError(DbVaultError):
    """A Bitwarden CLI subprocess failed, timed out or could not be started."""

    def __init__(self, message: str, returncode: int = None, output: str = ""):
        super().__init__(message)
        self.returncode = returncode
        self.output = output


class AuthError(DbVaultError):
    """The Bitwarden session could not be established."""


class RecordError(DbVaultError):
    """A Bitwarden item could not be read or created."""


class ServiceError(DbVaultError):
    """A Vault request failed or returned an unusable response."""

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        self.status_code = status_code


class ConfigError(DbVaultError):
    """Configuration is missing required values or cannot be parsed."""


class EmptyListingError(DbVaultError):
    """A supported environment returned no databases to choose from."""


class SelectionCancelled(DbVaultError):
    """The user backed out of an interactive selection."""


class ClipboardError(DbVaultError):
    """No clipboard command accepted the text."""


class ConnectionsFileError(DbVaultError):
    """The editor connections file could not be read or written."""
