"""Fetch-or-create for the Bitwarden item holding Vault credentials."""
import json
import logging
from typing import Any, Dict

from ..domains.bitwarden_cli import BitwardenCLI
from ..domains.exceptions import CommandError, RecordError
from ..domains.models import URL_FIELD, ItemLookupStatus, SecretRecord
from dbvault.integrations.prompts import Prompter

logger = logging.getLogger(__name__)

# Bitwarden custom field type for plain text
TEXT_FIELD_TYPE = 0


def _parse_item(output: str, what: str) -> Dict[str, Any]:
    try:
        item = json.loads(output)
    except ValueError as e:
        raise RecordError(f"error parsing {what}: {e}") from e
    if not isinstance(item, dict):
        raise RecordError(f"error parsing {what}: expected a JSON object")
    return item


class RecordResolver:
    """Resolves a named Bitwarden item, creating it interactively when missing."""

    def __init__(self, gateway: BitwardenCLI, prompter: Prompter):
        self.gateway = gateway
        self.prompter = prompter

    def get_or_create(self, name: str, session: str) -> SecretRecord:
        """
        Fetch the item called ``name``, or create it if Bitwarden has none.

        Raises:
            RecordError: If the item can't be read, parsed or created
        """
        print("Retrieving BW item")
        try:
            lookup = self.gateway.get_item(name, session)
        except CommandError as e:
            raise RecordError(f"error getting bitwarden item '{name}': {e}") from e

        if lookup.status is ItemLookupStatus.NOT_FOUND:
            logger.info(f"Bitwarden item '{name}' not found, creating it")
            return self.create(name, session)

        return SecretRecord.from_item(_parse_item(lookup.output, f"bitwarden item '{name}'"))

    def create(self, name: str, session: str) -> SecretRecord:
        """
        Prompt for the Vault login, then create the item from Bitwarden's template.

        Returns:
            The populated record (not Bitwarden's create response)
        """
        print("Creating BW item.")
        username = self.prompter.prompt_text("Enter Vault username: ").strip()
        password = self.prompter.prompt_secret("Enter Vault password: ")
        vault_url = self.prompter.prompt_text("Enter Vault URL: ").strip()

        try:
            template_output = self.gateway.get_template(session)
        except CommandError as e:
            raise RecordError(f"error getting the bitwarden item template: {e}") from e
        item = _parse_item(template_output, "bitwarden item template")

        item["name"] = name
        login = item.get("login") or {}
        login["username"] = username
        login["password"] = password
        item["login"] = login
        if vault_url:
            item["fields"] = [{"name": URL_FIELD, "value": vault_url, "type": TEXT_FIELD_TYPE}]

        try:
            encoded = self.gateway.encode(json.dumps(item), session)
        except CommandError as e:
            raise RecordError(f"failed to encode bitwarden item: {e}") from e

        try:
            self.gateway.create_item(encoded.strip(), session)
        except CommandError as e:
            raise RecordError(f"failed to create bitwarden item '{name}': {e}") from e

        print(f"✓ Created BW item '{name}'")
        return SecretRecord.from_item(item)
