"""
Shared test fixtures and configuration.
"""

import pytest
import os
import sys

# Add the parent directory to the path so we can import the cloudctx package
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from cloudctx.config import Settings
from cloudctx.errors import RemoteError


# Fake SSO directory
class FakeDirectory:
    """In-memory stand-in for SSODirectoryClient."""

    def __init__(self, accounts=None, roles=None, failing_accounts=(), fail_accounts=False):
        self.accounts = accounts or []
        self.roles = roles or {}
        self.failing_accounts = set(failing_accounts)
        self.fail_accounts = fail_accounts
        self.tokens = []

    def factory(self, access_token):
        """Directory factory handed to the synchronizer."""
        self.tokens.append(access_token)
        return self

    def iter_accounts(self):
        for account in self.accounts:
            yield account
        if self.fail_accounts:
            raise RemoteError("list_accounts failed")

    def iter_roles(self, account_id):
        if account_id in self.failing_accounts:
            raise RemoteError(f"list_account_roles failed for {account_id}")
        for role_name in self.roles.get(account_id, []):
            yield {"roleName": role_name, "accountId": account_id}


@pytest.fixture
def settings(tmp_path):
    """Settings with every file rooted in a temporary home directory."""
    return Settings(
        sso_start_url="https://example.awsapps.com/start",
        sso_region="us-east-1",
        default_region="eu-west-1",
        home=tmp_path,
    )


@pytest.fixture
def sso_token(settings):
    """Write a cached SSO token."""
    settings.sso_cache_dir.mkdir(parents=True)
    cache_file = settings.sso_cache_dir / "session.json"
    cache_file.write_text('{"startUrl": "https://example.awsapps.com/start", '
                          '"accessToken": "tok-123", "expiresAt": "2030-01-01T00:00:00Z"}')
    return cache_file


@pytest.fixture
def directory():
    """Three accounts with two roles each."""
    return FakeDirectory(
        accounts=[
            {"accountId": "111111111111", "accountName": "My Account"},
            {"accountId": "222222222222", "accountName": "Staging"},
            {"accountId": "333333333333", "accountName": "Prod Main"},
        ],
        roles={
            "111111111111": ["AdminRole", "ReadOnly"],
            "222222222222": ["AdminRole"],
            "333333333333": ["ReadOnly", "Developer"],
        },
    )


@pytest.fixture
def make_directory():
    """Build a FakeDirectory with custom accounts, roles and failures."""
    return FakeDirectory
