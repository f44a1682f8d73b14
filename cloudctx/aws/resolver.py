"""
AWS context resolver

Merges the profiles defined in ~/.aws/config and ~/.aws/credentials into one
listing, works out which profile is active, and switches profiles by rewriting
the ``[default]`` sections the AWS CLI and SDKs fall back to.
"""

import logging
import os
from typing import Dict, List, Mapping, Optional

from ..config import Settings
from ..errors import ContextNotFoundError
from ..provider.base import Context
from ..utils.state_file import StateFile
from .profile_store import (
    CURRENT_KEY,
    DEFAULT_SECTION,
    PROFILE_PREFIX,
    SOURCE_KEY,
    ProfileStore,
    profile_section_name,
)
from .synchronizer import ensure_sso_session

__all__ = [
    'PROFILE_ENV_VAR',
    'ContextResolver',
]

logger = logging.getLogger(__name__)

PROFILE_ENV_VAR = "AWS_PROFILE"
CLOUD = "aws"


class ContextResolver:
    """
    Lists, resolves and switches AWS profiles.
    """

    def __init__(self, settings: Settings, environ: Optional[Mapping[str, str]] = None,
                 state_file: Optional[StateFile] = None):
        """
        Initialize the resolver.

        Args:
            settings: cloudctx settings (file paths, default region)
            environ: Process environment to consult (defaults to os.environ)
            state_file: Last-selection record (defaults to aws_current in the
                state directory)
        """
        self.settings = settings
        self._environ = os.environ if environ is None else environ
        self.state_file = state_file or StateFile(settings.state_dir, CLOUD)

    def _collect(self) -> Dict[str, Context]:
        contexts: Dict[str, Context] = {}

        config = ProfileStore.load(self.settings.aws_config_path)
        for section in config.sections():
            if not section.name.startswith(PROFILE_PREFIX):
                continue
            name = section.name[len(PROFILE_PREFIX):]
            contexts[name] = Context(
                name=name,
                cloud=CLOUD,
                account_id=section.get("sso_account_id"),
                role=section.get("sso_role_name"),
                region=section.get("region"),
                managed=section.managed,
            )

        # Config entries carry richer metadata and win name clashes
        credentials = ProfileStore.load(self.settings.aws_credentials_path)
        for section in credentials.sections():
            if section.name.lower() == DEFAULT_SECTION or section.name in contexts:
                continue
            contexts[section.name] = Context(
                name=section.name,
                cloud=CLOUD,
                region=section.get("region"),
                managed=False,
            )

        return contexts

    def list_contexts(self) -> List[Context]:
        """
        List every profile from both AWS files, sorted by name.

        A name defined in both files appears once, with the config-file
        metadata. The active profile is flagged.

        Returns:
            List[Context]: The merged profiles
        """
        current = self.resolve_current_name()
        contexts = sorted(self._collect().values(), key=lambda c: c.name)
        for context in contexts:
            context.active = context.name == current
        return contexts

    def resolve_current_name(self) -> Optional[str]:
        """
        Return the name of the active profile.

        Precedence, first hit wins: AWS_PROFILE, the state file, then the
        marker left in the config ``[default]`` section by the last switch.

        Returns:
            The profile name, or None when nothing has been selected
        """
        profile = self._environ.get(PROFILE_ENV_VAR)
        if profile:
            return profile

        profile = self.state_file.read()
        if profile:
            return profile

        config = ProfileStore.load(self.settings.aws_config_path)
        default = config.section(DEFAULT_SECTION)
        if default is not None and default.get(CURRENT_KEY):
            return default.get(CURRENT_KEY)

        return None

    def current_context(self) -> Optional[Context]:
        """
        Return the active profile.

        A selection whose profile no longer exists is still returned, as a
        bare context carrying only its name.

        Returns:
            The active Context, or None when nothing has been selected
        """
        name = self.resolve_current_name()
        if not name:
            return None

        context = self._collect().get(name)
        if context is None:
            return Context(name=name, cloud=CLOUD, active=True)

        context.active = True
        return context

    def env_override_conflict(self, name: str) -> Optional[str]:
        """
        Return the AWS_PROFILE value if it is set and would override ``name``.
        """
        profile = self._environ.get(PROFILE_ENV_VAR)
        if profile and profile != name:
            return profile
        return None

    def set_context(self, name: str) -> None:
        """
        Make ``name`` the default profile.

        The config ``[default]`` section is rebuilt from scratch. For a
        config-file profile its settings are copied and the credentials
        ``[default]`` is emptied so stale static keys cannot take precedence
        (a missing credentials file is not created).
        For a credentials-only profile its keys are copied into the
        credentials ``[default]`` and the config default gets a region.

        Args:
            name: Profile to activate

        Raises:
            ContextNotFoundError: If neither file defines the profile
            StoreReadError: If either file cannot be parsed
            StoreWriteError: If either file cannot be written
        """
        config_path = self.settings.aws_config_path
        credentials_path = self.settings.aws_credentials_path

        config = ProfileStore.read(config_path)
        credentials = ProfileStore.read(credentials_path)
        # A missing credentials file is left missing
        save_credentials = credentials_path.exists()

        source = config.section(profile_section_name(name))
        credentials_source = credentials.section(name)
        if source is None and credentials_source is None:
            raise ContextNotFoundError(name)

        config.delete_section(DEFAULT_SECTION)
        default = config.new_section(DEFAULT_SECTION)

        if source is not None:
            for key, value in source.items():
                default.set(key, value)

            if self.settings.sso_start_url:
                ensure_sso_session(config, self.settings)
            else:
                logger.debug("SSO start URL not configured, leaving sso-session untouched")

            credentials.delete_section(DEFAULT_SECTION)
            credentials.new_section(DEFAULT_SECTION, managed=True)
        else:
            values = credentials_source.items()
            credentials.delete_section(DEFAULT_SECTION)
            default_credentials = credentials.new_section(DEFAULT_SECTION)
            for key, value in values:
                default_credentials.set(key, value)
            default_credentials.set(SOURCE_KEY, name)
            save_credentials = True

            default.set("region", self.settings.default_region)

        default.set(CURRENT_KEY, name)

        if save_credentials:
            credentials.save(credentials_path)
        config.save(config_path)
        logger.info("Switched AWS profile to %s", name)

        self.state_file.write_best_effort(name)
