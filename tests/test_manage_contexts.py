"""
Tests for the command-line script.
"""

import os
import sys
from types import SimpleNamespace
from unittest.mock import MagicMock

sys.path.append(os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "scripts"))

import manage_contexts
from cloudctx.provider.base import Context


def make_provider(cloud, var, override):
    provider = MagicMock()
    provider.name.return_value = cloud
    provider.override_env_var = var
    provider.list_contexts.return_value = [Context(name="Production", cloud=cloud)]
    provider.env_override_conflict.return_value = override
    return provider


def test_use_warns_about_azure_subscription_variable(capsys):
    """Test that AZURE_SUBSCRIPTION_ID naming another subscription is reported."""
    provider = make_provider("azure", "AZURE_SUBSCRIPTION_ID", "sub-1")

    manage_contexts.handle_use(SimpleNamespace(name="Prod"), provider)

    out = capsys.readouterr().out
    provider.set_context.assert_called_once_with("Production")
    assert "Warning: AZURE_SUBSCRIPTION_ID=sub-1 is set" in out
    assert "Run: unset AZURE_SUBSCRIPTION_ID" in out


def test_use_without_conflict(capsys):
    """Test that no warning is printed when nothing overrides the switch."""
    provider = make_provider("aws", "AWS_PROFILE", None)

    manage_contexts.handle_use(SimpleNamespace(name="Production"), provider)

    assert "Warning" not in capsys.readouterr().out


def test_shell_helpers_leave_environment_alone(capsys):
    """Test that the ctx function never unsets variables in the user's shell."""
    manage_contexts.handle_shell_helpers(SimpleNamespace())

    out = capsys.readouterr().out
    assert "ctx()" in out
    assert "unset " not in out
