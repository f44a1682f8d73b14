"""
Error types raised by cloudctx.

Library code raises these; the command line catches CloudctxError and
decides how to present it.
"""

__all__ = [
    'CloudctxError',
    'NotConfiguredError',
    'NoSessionError',
    'RemoteError',
    'ContextNotFoundError',
    'StoreReadError',
    'StoreWriteError',
    'AuthError',
]


class CloudctxError(Exception):
    """Base class for all cloudctx errors."""


class NotConfiguredError(CloudctxError):
    """A required setting is missing; the user must run init."""


class NoSessionError(CloudctxError):
    """No valid cached session exists; the user must log in first."""


class RemoteError(CloudctxError):
    """A remote listing call failed."""


class ContextNotFoundError(CloudctxError):
    """The requested context name matches nothing."""

    def __init__(self, name: str):
        super().__init__(f"Context '{name}' not found")
        self.name = name


class StoreReadError(CloudctxError):
    """A persisted store could not be read or parsed."""


class StoreWriteError(CloudctxError):
    """A persisted store could not be written."""


class AuthError(CloudctxError):
    """Authentication failed or no identity could be determined."""
