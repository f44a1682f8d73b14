"""
AWS profile management: profile stores, SSO sync and context switching.
"""

from .profile_store import ProfileStore, Section
from .token_cache import AccessToken, latest_access_token
from .sso_directory import SSODirectoryClient
from .synchronizer import Synchronizer, build_profile_name
from .resolver import ContextResolver
from .provider import AWSProvider

__all__ = [
    'ProfileStore',
    'Section',
    'AccessToken',
    'latest_access_token',
    'SSODirectoryClient',
    'Synchronizer',
    'build_profile_name',
    'ContextResolver',
    'AWSProvider',
]
