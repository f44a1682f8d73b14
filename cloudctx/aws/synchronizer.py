"""
AWS SSO profile synchronizer

Rebuilds the cloudctx-managed ``[profile ...]`` sections of ~/.aws/config from
the accounts and roles AWS SSO currently grants. Every run clears the managed
sections and regenerates them, so running it twice against the same remote
state leaves the file unchanged. Sections without the managed marker belong to
the user and are never modified.
"""

import logging
from typing import Any, Callable, Dict, List, Optional

from ..config import Settings
from ..errors import NotConfiguredError, RemoteError
from ..provider.base import SyncResult
from .profile_store import PROFILE_PREFIX, ProfileStore, profile_section_name
from .sso_directory import SSODirectoryClient
from .token_cache import latest_access_token

__all__ = [
    'SSO_SESSION_NAME',
    'SSO_SESSION_SECTION',
    'Synchronizer',
    'build_profile_name',
    'ensure_sso_session',
]

logger = logging.getLogger(__name__)

SSO_SESSION_NAME = "cloudctx-cli"
SSO_SESSION_SECTION = f"sso-session {SSO_SESSION_NAME}"
SSO_SCOPES = "sso:account:access"


def build_profile_name(account_name: str, role_name: str) -> str:
    """
    Derive the profile name for an account/role pair.

    "My Account" + "AdminRole" -> "my-account:adminrole"
    """
    account = account_name.lower().replace(" ", "-")
    return f"{account}:{role_name.lower()}"


def ensure_sso_session(store: ProfileStore, settings: Settings) -> None:
    """
    Write the shared ``[sso-session cloudctx-cli]`` section.

    The section is rewritten in full so settings changes replace old values.

    Raises:
        NotConfiguredError: If no SSO start URL is configured
    """
    if not settings.sso_start_url:
        raise NotConfiguredError("SSO start URL not configured. Run 'init' first")

    section = store.new_section(SSO_SESSION_SECTION)
    section.set("sso_start_url", settings.sso_start_url)
    section.set("sso_region", settings.sso_region)
    section.set("sso_registration_scopes", SSO_SCOPES)


DirectoryFactory = Callable[[str], Any]


class Synchronizer:
    """
    Reconciles managed profile sections with AWS SSO.
    """

    def __init__(self, settings: Settings, directory_factory: Optional[DirectoryFactory] = None):
        """
        Initialize the synchronizer.

        Args:
            settings: cloudctx settings (SSO portal, regions, file paths)
            directory_factory: Builds a directory client from an access token;
                defaults to SSODirectoryClient in the configured SSO region
        """
        self.settings = settings
        self._directory_factory = directory_factory or self._default_directory

    def _default_directory(self, access_token: str) -> SSODirectoryClient:
        return SSODirectoryClient(self.settings.sso_region, access_token)

    def _profile_values(self, account: Dict[str, Any], role: Dict[str, Any]) -> Dict[str, str]:
        return {
            "sso_session": SSO_SESSION_NAME,
            "sso_account_id": account.get("accountId", ""),
            "sso_role_name": role.get("roleName", ""),
            "region": self.settings.default_region,
            "output": "json",
        }

    def sync(self) -> SyncResult:
        """
        Regenerate the managed profiles.

        Returns:
            SyncResult: Accounts seen, profiles written and skipped accounts

        Raises:
            NotConfiguredError: If no SSO start URL is configured
            NoSessionError: If there is no cached SSO access token
            RemoteError: If the account listing fails
            StoreReadError: If ~/.aws/config cannot be parsed
            StoreWriteError: If ~/.aws/config cannot be written
        """
        if not self.settings.sso_start_url:
            raise NotConfiguredError("SSO start URL not configured. Run 'init' first")

        token = latest_access_token(self.settings.sso_cache_dir)
        directory = self._directory_factory(token.token)

        # Fetch everything before touching the store
        accounts = list(directory.iter_accounts())
        logger.info("Found %d SSO accounts", len(accounts))

        config_path = self.settings.aws_config_path
        store = ProfileStore.read(config_path)
        ensure_sso_session(store, self.settings)

        for section in store.sections():
            if section.managed and section.name.startswith(PROFILE_PREFIX):
                store.delete_section(section.name)

        generated: Dict[str, Dict[str, str]] = {}
        skipped: List[str] = []
        for account in accounts:
            account_id = account.get("accountId", "")
            try:
                roles = list(directory.iter_roles(account_id))
            except RemoteError as e:
                logger.warning("Skipping account %s: %s", account_id, e)
                skipped.append(account_id)
                continue

            account_name = account.get("accountName") or account_id
            for role in roles:
                name = build_profile_name(account_name, role.get("roleName", ""))
                generated[name] = self._profile_values(account, role)

        written = 0
        for name in sorted(generated):
            section_name = profile_section_name(name)
            existing = store.section(section_name)
            if existing is not None and not existing.managed:
                logger.warning("Not overwriting user profile '%s'", name)
                continue

            section = store.new_section(section_name, managed=True)
            for key, value in generated[name].items():
                section.set(key, value)
            written += 1

        store.save(config_path)
        logger.info("Wrote %d managed profiles to %s", written, config_path)

        return SyncResult(accounts=len(accounts), profiles=written, skipped_accounts=skipped)
