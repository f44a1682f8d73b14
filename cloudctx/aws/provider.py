"""
AWS provider

Wires the profile store, synchronizer and resolver together behind the
Provider contract, and adds SSO login and caller-identity lookup.
"""

import logging
import shutil
import subprocess
from typing import Any, Callable, List, Mapping, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ..config import Settings
from ..errors import AuthError
from ..provider.base import Context, Identity, Provider, SyncResult
from .profile_store import ProfileStore
from .resolver import PROFILE_ENV_VAR, ContextResolver
from .synchronizer import SSO_SESSION_NAME, DirectoryFactory, Synchronizer, ensure_sso_session

__all__ = [
    'AWSProvider',
]

logger = logging.getLogger(__name__)

AWS_CLI_INSTALL_URL = "https://docs.aws.amazon.com/cli/latest/userguide/getting-started-install.html"


class AWSProvider(Provider):
    """
    AWS SSO profiles stored in ~/.aws/config and ~/.aws/credentials.
    """

    override_env_var = PROFILE_ENV_VAR

    def __init__(self, settings: Settings, environ: Optional[Mapping[str, str]] = None,
                 directory_factory: Optional[DirectoryFactory] = None,
                 session_factory: Optional[Callable[[], Any]] = None):
        """
        Initialize the AWS provider.

        Args:
            settings: cloudctx settings
            environ: Process environment (defaults to os.environ)
            directory_factory: Builds the SSO directory client used by sync
            session_factory: Builds the boto3 session used by whoami
        """
        self.settings = settings
        self.resolver = ContextResolver(settings, environ=environ)
        self.synchronizer = Synchronizer(settings, directory_factory=directory_factory)
        self._session_factory = session_factory or boto3.Session

    def name(self) -> str:
        return "aws"

    def _check_aws_cli_installed(self) -> bool:
        """
        Check if the AWS CLI is installed and available.

        Returns:
            bool: True if the AWS CLI is installed, False otherwise
        """
        return shutil.which("aws") is not None

    def login(self) -> None:
        """
        Run ``aws sso login`` against the cloudctx SSO session.

        The browser flow belongs to the AWS CLI; this waits for it to finish.

        Raises:
            AuthError: If the AWS CLI is missing or the login fails
            NotConfiguredError: If no SSO start URL is configured
        """
        if not self._check_aws_cli_installed():
            raise AuthError(f"AWS CLI not found. Please install AWS CLI v2: {AWS_CLI_INSTALL_URL}")

        config_path = self.settings.aws_config_path
        store = ProfileStore.read(config_path)
        ensure_sso_session(store, self.settings)
        store.save(config_path)

        cmd = ["aws", "sso", "login", "--sso-session", SSO_SESSION_NAME]
        result = subprocess.run(cmd)
        if result.returncode != 0:
            raise AuthError(f"SSO login failed (exit code {result.returncode})")

    def sync(self) -> SyncResult:
        return self.synchronizer.sync()

    def list_contexts(self) -> List[Context]:
        return self.resolver.list_contexts()

    def set_context(self, name: str) -> None:
        self.resolver.set_context(name)

    def current_context(self) -> Optional[Context]:
        return self.resolver.current_context()

    def env_override_conflict(self, name: str) -> Optional[str]:
        return self.resolver.env_override_conflict(name)

    def whoami(self) -> Identity:
        """
        Look up the caller identity of the active credentials via STS.

        Raises:
            AuthError: If no credentials are available or STS rejects them
        """
        try:
            session = self._session_factory()
            identity = session.client("sts").get_caller_identity()
        except (BotoCoreError, ClientError) as e:
            raise AuthError(f"Failed to get caller identity: {e}") from e

        return Identity(
            cloud="aws",
            account_id=identity.get("Account"),
            user_id=identity.get("UserId"),
            arn=identity.get("Arn"),
            region=session.region_name,
        )
