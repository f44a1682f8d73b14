"""
AWS SSO directory client.

Thin wrapper around the boto3 ``sso`` client exposing the two listings sync
needs as lazy generators. Pages are fetched on demand and the pagination token
is followed until AWS stops returning one.
"""

import logging
from typing import Any, Dict, Iterator, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ..errors import RemoteError

__all__ = [
    'SSODirectoryClient',
]

logger = logging.getLogger(__name__)


class SSODirectoryClient:
    """
    Lists the accounts and roles an SSO access token can reach.
    """

    def __init__(self, region: str, access_token: str, client: Optional[Any] = None):
        """
        Initialize the directory client.

        Args:
            region: Region of the IAM Identity Center instance
            access_token: Bearer token from the SSO cache
            client: Optional pre-built boto3 ``sso`` client
        """
        self.region = region
        self._access_token = access_token
        self._client = client or boto3.client("sso", region_name=region)

    def _paginate(self, operation: str, result_key: str, **kwargs: Any) -> Iterator[Dict[str, Any]]:
        paginator = self._client.get_paginator(operation)
        try:
            for page in paginator.paginate(accessToken=self._access_token, **kwargs):
                for item in page.get(result_key, []):
                    yield item
        except (ClientError, BotoCoreError) as e:
            raise RemoteError(f"{operation} failed: {e}") from e

    def iter_accounts(self) -> Iterator[Dict[str, Any]]:
        """
        Yield every account visible to the token.

        Yields:
            Dict[str, Any]: accountId, accountName and emailAddress

        Raises:
            RemoteError: If any page cannot be fetched
        """
        return self._paginate("list_accounts", "accountList")

    def iter_roles(self, account_id: str) -> Iterator[Dict[str, Any]]:
        """
        Yield every role the token may assume in an account.

        Raises:
            RemoteError: If any page cannot be fetched
        """
        return self._paginate("list_account_roles", "roleList", accountId=account_id)
