"""
cloudctx - switch between cloud contexts (AWS SSO profiles, Azure
subscriptions) with one command.
"""

from .config import Settings, load_settings, write_settings
from .errors import (
    CloudctxError,
    NotConfiguredError,
    NoSessionError,
    RemoteError,
    ContextNotFoundError,
    StoreReadError,
    StoreWriteError,
    AuthError
)
from .provider import Context, Identity, Provider, SyncResult
from .aws import AWSProvider
from .azure import AzureProvider

__version__ = "0.1.0"

CLOUDS = ("aws", "azure")


def get_provider(cloud: str, settings: Settings) -> Provider:
    """
    Return the provider for a cloud name.

    Args:
        cloud: "aws" or "azure"
        settings: cloudctx settings

    Returns:
        Provider: The provider instance
    """
    if cloud == "aws":
        return AWSProvider(settings)
    if cloud == "azure":
        return AzureProvider(settings)
    raise NotConfiguredError(f"Unknown cloud '{cloud}'. Expected one of: {', '.join(CLOUDS)}")
