#!/usr/bin/env python3
"""
cloudctx CLI

A command-line utility for switching between cloud contexts.
This tool helps you list, sync, and switch between AWS SSO profiles and
Azure subscriptions.
"""

import argparse
import json
import sys
import textwrap
from pathlib import Path

# Add the parent directory to sys.path to import cloudctx
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))
from cloudctx import (
    CLOUDS,
    CloudctxError,
    ContextNotFoundError,
    NoSessionError,
    NotConfiguredError,
    get_provider,
    load_settings,
    write_settings,
)
from cloudctx.utils import setup_logging


def format_context_list(contexts):
    """Format contexts for display."""
    if not contexts:
        return "No contexts found."

    output = []
    for c in contexts:
        marker = "→ " if c.active else "  "
        output.append(f"{marker}{c}")

    return "\n".join(output)


def find_matches(contexts, name):
    """Return the exact match for name, or every context containing it."""
    for c in contexts:
        if c.name == name:
            return [c]
    return [c for c in contexts if name in c.name]


def handle_list(args, provider):
    """Handle the list command."""
    contexts = provider.list_contexts()
    print(f"{provider.name().upper()} contexts:")
    print(format_context_list(contexts))
    print(f"\nTotal: {len(contexts)} context(s)")

    if not contexts and provider.name() == "aws":
        print("Run 'sync' to fetch profiles from AWS SSO")


def handle_current(args, provider):
    """Handle the current command."""
    current = provider.current_context()
    if current:
        print(current.name)
    else:
        print(f"No {provider.name()} context set")
        print("Set one with: use <name>")


def handle_use(args, provider):
    """Handle the use command."""
    matches = find_matches(provider.list_contexts(), args.name)

    if not matches:
        raise ContextNotFoundError(args.name)

    if len(matches) > 1:
        print(f"'{args.name}' matches {len(matches)} contexts:")
        print(format_context_list(matches))
        sys.exit(1)

    name = matches[0].name
    provider.set_context(name)
    print(f"Switched to {name}")

    # A variable set in the calling shell beats the selected context
    override = provider.env_override_conflict(name)
    if override:
        var = provider.override_env_var
        print(f"\nWarning: {var}={override} is set and will override this")
        print(f"Run: unset {var}")


def handle_sync(args, provider):
    """Handle the sync command."""
    result = provider.sync()
    print(f"Synced {result.profiles} profile(s) from {result.accounts} account(s)")
    for account_id in result.skipped_accounts:
        print(f"  skipped account {account_id} (could not list roles)")


def handle_login(args, provider):
    """Handle the login command."""
    provider.login()
    print("Login successful")


def handle_whoami(args, provider):
    """Handle the whoami command."""
    identity = provider.whoami()
    if args.json:
        print(json.dumps(identity.to_dict(), indent=2))
        return

    current = provider.current_context()
    if current:
        print(f"Context:  {current.name}")
    if identity.account_name:
        print(f"Account:  {identity.account_name} ({identity.account_id})")
    else:
        print(f"Account:  {identity.account_id}")
    print(f"User:     {identity.user_id}")
    print(f"ARN:      {identity.arn}")
    print(f"Region:   {identity.region}")


def handle_init(args, settings):
    """Handle the init command."""
    settings.sso_start_url = args.sso_start_url
    settings.sso_region = args.sso_region
    settings.default_region = args.default_region
    path = write_settings(settings)

    print(f"Configuration saved to {path}")
    print("\nNext steps:")
    print("  1. login    # Authenticate with SSO")
    print("  2. sync     # Fetch available profiles")
    print("  3. use <profile>")


def handle_shell_helpers(args):
    """Display shell helper functions."""
    helpers = textwrap.dedent("""
    # cloudctx helper function
    # Add this to your ~/.bashrc or ~/.zshrc

    ctx() {
        if [ "$1" = "--help" ] || [ "$1" = "-h" ] || [ "$1" = "help" ] || [ "$#" -eq 0 ]; then
            echo "cloudctx - switch cloud contexts"
            echo ""
            echo "Usage: ctx [aws|azure] <command> [options]"
            echo ""
            echo "Commands:"
            echo "  ls, list            List all contexts"
            echo "  current             Show current context"
            echo "  use <name>          Switch to a context"
            echo "  sync                Sync profiles from AWS SSO"
            echo "  login               Log in"
            echo "  whoami              Show current identity"
            return
        fi

        local cloud=""
        if [ "$1" = "aws" ] || [ "$1" = "azure" ]; then
            cloud="--cloud $1"
            shift
        fi

        case "$1" in
            ls|list)
                python3 PATH_TO_SCRIPT/manage_contexts.py $cloud list
                ;;
            use|switch)
                if [ -z "$2" ]; then
                    echo "Error: Context name required"
                    return 1
                fi
                python3 PATH_TO_SCRIPT/manage_contexts.py $cloud use "$2"
                ;;
            current|sync|login|whoami)
                python3 PATH_TO_SCRIPT/manage_contexts.py $cloud "$@"
                ;;
            *)
                python3 PATH_TO_SCRIPT/manage_contexts.py $cloud use "$1"
                ;;
        esac
    }

    _ctx_completion() {
        local cur="${COMP_WORDS[COMP_CWORD]}"
        if [ "$COMP_CWORD" -eq 1 ]; then
            COMPREPLY=( $(compgen -W "aws azure ls list current use sync login whoami help" -- "$cur") )
        fi
    }
    complete -F _ctx_completion ctx
    """)

    # Replace PATH_TO_SCRIPT with the actual path
    script_path = Path(__file__).resolve().parent
    helpers = helpers.replace("PATH_TO_SCRIPT", str(script_path))

    print(helpers)


def error_hint(error):
    """Return a follow-up hint for an error, if there is one."""
    if isinstance(error, NotConfiguredError):
        return "Run 'init --sso-start-url <url>' or set CLOUDCTX_AWS_SSO_START_URL"
    if isinstance(error, NoSessionError):
        return "Run 'login' first"
    return None


def build_parser():
    parser = argparse.ArgumentParser(
        description="cloudctx - Switch between cloud contexts"
    )
    parser.add_argument("--cloud", choices=CLOUDS,
                        help="Cloud provider (defaults to default_cloud from config.yaml)")
    parser.add_argument("--config", help="Path to config.yaml")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    list_parser = subparsers.add_parser("list", aliases=["ls"], help="List all contexts")
    list_parser.set_defaults(func=handle_list)

    current_parser = subparsers.add_parser("current", help="Show the current context")
    current_parser.set_defaults(func=handle_current)

    use_parser = subparsers.add_parser("use", aliases=["switch"], help="Switch to a context")
    use_parser.add_argument("name", help="Context name (or a unique part of it)")
    use_parser.set_defaults(func=handle_use)

    sync_parser = subparsers.add_parser("sync", help="Sync profiles from AWS SSO")
    sync_parser.set_defaults(func=handle_sync)

    login_parser = subparsers.add_parser("login", help="Log in to the cloud")
    login_parser.set_defaults(func=handle_login)

    whoami_parser = subparsers.add_parser("whoami", help="Show the current identity")
    whoami_parser.add_argument("--json", action="store_true", help="Output as JSON")
    whoami_parser.set_defaults(func=handle_whoami)

    init_parser = subparsers.add_parser("init", help="Configure AWS SSO settings")
    init_parser.add_argument("--sso-start-url", required=True,
                             help="AWS SSO portal URL, e.g. https://your-org.awsapps.com/start")
    init_parser.add_argument("--sso-region", default="us-east-1", help="AWS SSO region")
    init_parser.add_argument("--default-region", default="us-east-1",
                             help="Default region for generated profiles")
    init_parser.set_defaults(func=handle_init)

    helpers_parser = subparsers.add_parser("shell-helpers", help="Display shell helper functions")
    helpers_parser.set_defaults(func=handle_shell_helpers)

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(0)

    setup_logging("DEBUG" if args.verbose else "WARNING")

    try:
        if args.func is handle_shell_helpers:
            args.func(args)
            return

        settings = load_settings(args.config)
        if args.func is handle_init:
            args.func(args, settings)
            return

        provider = get_provider(args.cloud or settings.default_cloud, settings)
        args.func(args, provider)
    except CloudctxError as e:
        print(f"Error: {e}", file=sys.stderr)
        hint = error_hint(e)
        if hint:
            print(hint, file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
