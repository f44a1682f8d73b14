"""
Tests for the SSO profile synchronizer.
"""

import pytest
from cloudctx.aws.profile_store import ProfileStore
from cloudctx.aws.synchronizer import (
    SSO_SESSION_SECTION,
    Synchronizer,
    build_profile_name
)
from cloudctx.errors import NoSessionError, NotConfiguredError, RemoteError, StoreReadError

USER_SECTION = "[profile manual]\nregion = eu-central-1\nsso_role_name = Custom\n\n"


def managed_sections(path):
    """Return {section name: values} for every managed section."""
    store = ProfileStore.load(path)
    return {s.name: s.values for s in store.sections() if s.managed}


def test_build_profile_name():
    """Test the account/role naming rule."""
    assert build_profile_name("My Account", "AdminRole") == "my-account:adminrole"
    assert build_profile_name("Prod Main", "ReadOnly") == "prod-main:readonly"


def test_build_profile_name_is_deterministic():
    """Test that the same pair always yields the same name."""
    names = {build_profile_name("My Account", "AdminRole") for _ in range(10)}
    assert names == {"my-account:adminrole"}


def test_sync_writes_managed_profiles(settings, sso_token, directory):
    """Test that every account/role pair becomes a managed profile."""
    result = Synchronizer(settings, directory_factory=directory.factory).sync()

    sections = managed_sections(settings.aws_config_path)
    assert sorted(sections) == [
        "profile my-account:adminrole",
        "profile my-account:readonly",
        "profile prod-main:developer",
        "profile prod-main:readonly",
        "profile staging:adminrole",
    ]
    assert sections["profile my-account:adminrole"] == {
        "sso_session": "cloudctx-cli",
        "sso_account_id": "111111111111",
        "sso_role_name": "AdminRole",
        "region": "eu-west-1",
        "output": "json",
    }
    assert result.accounts == 3
    assert result.profiles == 5
    assert result.skipped_accounts == []
    assert directory.tokens == ["tok-123"]


def test_sync_writes_sso_session(settings, sso_token, directory):
    """Test that the shared SSO session section is written."""
    Synchronizer(settings, directory_factory=directory.factory).sync()

    session = ProfileStore.load(settings.aws_config_path).section(SSO_SESSION_SECTION)
    assert session.values == {
        "sso_start_url": "https://example.awsapps.com/start",
        "sso_region": "us-east-1",
        "sso_registration_scopes": "sso:account:access",
    }


def test_sync_is_idempotent(settings, sso_token, directory):
    """Test that a second run with the same remote state changes nothing."""
    synchronizer = Synchronizer(settings, directory_factory=directory.factory)

    synchronizer.sync()
    first = settings.aws_config_path.read_bytes()
    synchronizer.sync()

    assert settings.aws_config_path.read_bytes() == first


def test_sync_preserves_user_sections(settings, sso_token, directory, make_directory):
    """Test that unmanaged sections survive sync byte for byte."""
    settings.aws_config_path.parent.mkdir(parents=True, exist_ok=True)
    settings.aws_config_path.write_text(USER_SECTION)

    Synchronizer(settings, directory_factory=directory.factory).sync()
    Synchronizer(settings, directory_factory=make_directory().factory).sync()

    assert USER_SECTION in settings.aws_config_path.read_text()


HAND_WRITTEN_SECTION = "[profile manual]\n# my team's deploy role\nregion=eu-central-1\n\n"


def test_sync_keeps_hand_written_formatting(settings, sso_token, directory):
    """Test that comments and compact keys in user sections survive sync."""
    settings.aws_config_path.parent.mkdir(parents=True, exist_ok=True)
    settings.aws_config_path.write_text(HAND_WRITTEN_SECTION)
    synchronizer = Synchronizer(settings, directory_factory=directory.factory)

    synchronizer.sync()
    first = settings.aws_config_path.read_text()
    synchronizer.sync()

    assert first.startswith(HAND_WRITTEN_SECTION)
    assert settings.aws_config_path.read_text() == first


def test_sync_removes_stale_managed_profiles(settings, sso_token, directory, make_directory):
    """Test that profiles no longer granted are removed."""
    Synchronizer(settings, directory_factory=directory.factory).sync()

    smaller = make_directory(
        accounts=[{"accountId": "222222222222", "accountName": "Staging"}],
        roles={"222222222222": ["AdminRole"]},
    )
    Synchronizer(settings, directory_factory=smaller.factory).sync()

    assert list(managed_sections(settings.aws_config_path)) == ["profile staging:adminrole"]


def test_sync_skips_accounts_whose_roles_fail(settings, sso_token, make_directory):
    """Test that a role listing failure skips only that account."""
    directory = make_directory(
        accounts=[
            {"accountId": "1", "accountName": "One"},
            {"accountId": "2", "accountName": "Two"},
            {"accountId": "3", "accountName": "Three"},
        ],
        roles={"1": ["Admin"], "2": ["Admin"], "3": ["Admin"]},
        failing_accounts=["2"],
    )

    result = Synchronizer(settings, directory_factory=directory.factory).sync()

    assert sorted(managed_sections(settings.aws_config_path)) == [
        "profile one:admin",
        "profile three:admin",
    ]
    assert result.skipped_accounts == ["2"]
    assert result.profiles == 2


def test_sync_account_listing_failure_writes_nothing(settings, sso_token, directory, make_directory):
    """Test that a failed account listing leaves the store untouched."""
    Synchronizer(settings, directory_factory=directory.factory).sync()
    before = settings.aws_config_path.read_bytes()

    failing = make_directory(accounts=[{"accountId": "1", "accountName": "One"}],
                             fail_accounts=True)
    with pytest.raises(RemoteError):
        Synchronizer(settings, directory_factory=failing.factory).sync()

    assert settings.aws_config_path.read_bytes() == before


def test_sync_requires_start_url(settings, sso_token, directory):
    """Test that sync refuses to run without an SSO start URL."""
    settings.sso_start_url = ""

    with pytest.raises(NotConfiguredError):
        Synchronizer(settings, directory_factory=directory.factory).sync()

    assert not settings.aws_config_path.exists()


def test_sync_requires_session(settings, directory):
    """Test that sync refuses to run without a cached token."""
    with pytest.raises(NoSessionError):
        Synchronizer(settings, directory_factory=directory.factory).sync()

    assert directory.tokens == []
    assert not settings.aws_config_path.exists()


def test_sync_never_overwrites_user_profile_with_same_name(settings, sso_token, directory):
    """Test that a user profile with a generated name is left alone."""
    settings.aws_config_path.parent.mkdir(parents=True, exist_ok=True)
    settings.aws_config_path.write_text("[profile staging:adminrole]\nregion = ap-south-1\n\n")

    result = Synchronizer(settings, directory_factory=directory.factory).sync()

    section = ProfileStore.load(settings.aws_config_path).section("profile staging:adminrole")
    assert section.managed is False
    assert section.values == {"region": "ap-south-1"}
    assert result.profiles == 4


def test_sync_refuses_unparsable_config(settings, sso_token, directory):
    """Test that sync does not replace a config file it cannot parse."""
    settings.aws_config_path.parent.mkdir(parents=True, exist_ok=True)
    settings.aws_config_path.write_text("garbage without sections\n")

    with pytest.raises(StoreReadError):
        Synchronizer(settings, directory_factory=directory.factory).sync()

    assert settings.aws_config_path.read_text() == "garbage without sections\n"
