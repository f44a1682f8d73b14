"""
Provider contract shared by the AWS and Azure implementations.
"""

from .base import (
    Context,
    Identity,
    SyncResult,
    Provider
)
