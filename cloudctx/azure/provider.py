"""
Azure provider

Azure keeps no local profile store: subscriptions are always read live from
the Azure CLI (``az``). cloudctx only remembers the last subscription it
selected in its state file.
"""

import json
import logging
import os
import subprocess
from typing import Any, Dict, List, Mapping, Optional

from ..config import Settings
from ..errors import AuthError, ContextNotFoundError, RemoteError
from ..provider.base import Context, Identity, Provider, SyncResult
from ..utils.state_file import StateFile

__all__ = [
    'AzureProvider',
]

logger = logging.getLogger(__name__)

CLOUD = "azure"
SUBSCRIPTION_ENV_VAR = "AZURE_SUBSCRIPTION_ID"


class AzureProvider(Provider):
    """Azure subscriptions, managed through the Azure CLI."""

    override_env_var = SUBSCRIPTION_ENV_VAR

    def __init__(self, settings: Settings, state_file: Optional[StateFile] = None,
                 environ: Optional[Mapping[str, str]] = None):
        self.settings = settings
        self._environ = os.environ if environ is None else environ
        self._selected: Optional[Context] = None
        self.state_file = state_file or StateFile(settings.state_dir, CLOUD)

    def name(self) -> str:
        return CLOUD

    def _run_az(self, *args: str) -> subprocess.CompletedProcess:
        cmd = ["az", *args]
        try:
            return subprocess.run(cmd, capture_output=True, text=True)
        except OSError as e:
            raise AuthError("Azure CLI not found. Install it from https://aka.ms/azure-cli") from e

    def _az_json(self, *args: str) -> Any:
        result = self._run_az(*args, "--output", "json")
        if result.returncode != 0:
            raise RemoteError(f"az {' '.join(args)} failed: {result.stderr.strip()}")
        try:
            return json.loads(result.stdout)
        except json.JSONDecodeError as e:
            raise RemoteError(f"Could not parse output of az {' '.join(args)}: {e}") from e

    def _show_account(self) -> Optional[Dict[str, Any]]:
        result = self._run_az("account", "show", "--output", "json")
        if result.returncode != 0:
            return None
        try:
            return json.loads(result.stdout)
        except json.JSONDecodeError as e:
            raise RemoteError(f"Could not parse output of az account show: {e}") from e

    def login(self) -> None:
        """
        Run ``az login`` and wait for the browser flow to finish.

        Raises:
            AuthError: If the Azure CLI is missing or the login fails
        """
        # Turn off the CLI's own subscription picker; cloudctx has one
        self._run_az("config", "set", "core.login_experience_v2=off")

        try:
            result = subprocess.run(["az", "login", "--output", "none"])
        except OSError as e:
            raise AuthError("Azure CLI not found. Install it from https://aka.ms/azure-cli") from e
        if result.returncode != 0:
            raise AuthError(f"Azure login failed (exit code {result.returncode})")

    def sync(self) -> SyncResult:
        """
        Check that subscriptions can be listed.

        Subscriptions are always fetched live, so there is nothing to store.
        """
        contexts = self.list_contexts()
        return SyncResult(accounts=len(contexts), profiles=len(contexts))

    def list_contexts(self) -> List[Context]:
        """
        List enabled subscriptions, sorted by name.

        Raises:
            RemoteError: If ``az account list`` fails
        """
        subscriptions = self._az_json("account", "list")

        contexts = []
        for sub in subscriptions:
            if sub.get("state") != "Enabled":
                continue
            contexts.append(Context(
                name=sub.get("name", ""),
                cloud=CLOUD,
                account_id=sub.get("id"),
                region=self.settings.azure_default_location,
                active=bool(sub.get("isDefault")),
                managed=True,
            ))

        return sorted(contexts, key=lambda c: c.name)

    def set_context(self, name: str) -> None:
        """
        Select a subscription by name or id.

        Raises:
            ContextNotFoundError: If no enabled subscription matches
            RemoteError: If the Azure CLI fails
        """
        match = next((c for c in self.list_contexts()
                      if c.name == name or c.account_id == name), None)
        if match is None:
            raise ContextNotFoundError(name)

        result = self._run_az("account", "set", "--subscription", match.account_id)
        if result.returncode != 0:
            raise RemoteError(f"Failed to set subscription: {result.stderr.strip()}")

        logger.info("Switched Azure subscription to %s", name)
        self._selected = match
        self.state_file.write_best_effort(name)

    def env_override_conflict(self, name: str) -> Optional[str]:
        """
        Return AZURE_SUBSCRIPTION_ID if it is set and names another subscription.

        The variable may hold a subscription name or id; the id of the
        subscription selected by set_context is accepted as a match too.
        """
        value = self._environ.get(SUBSCRIPTION_ENV_VAR)
        if not value or value == name:
            return None
        selected = self._selected
        if selected is not None and selected.name == name and value == selected.account_id:
            return None
        return value

    def current_context(self) -> Optional[Context]:
        account = self._show_account()
        if account is None:
            # Not logged in, or no subscription selected
            return None

        return Context(
            name=account.get("name", ""),
            cloud=CLOUD,
            account_id=account.get("id"),
            active=True,
            managed=True,
        )

    def whoami(self) -> Identity:
        """
        Describe the signed-in user and subscription.

        Raises:
            AuthError: If the Azure CLI reports no logged-in account
        """
        account = self._show_account()
        if account is None:
            raise AuthError("Not logged in to Azure")

        return Identity(
            cloud=CLOUD,
            account_id=account.get("id"),
            account_name=account.get("name"),
            user_id=(account.get("user") or {}).get("name"),
            arn=f"/subscriptions/{account.get('id')}",
            region=self.settings.azure_default_location,
        )
