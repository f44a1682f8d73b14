"""
cloudctx settings

Holds the tool's own settings (SSO portal, regions) and the locations of every
file cloudctx reads or writes. A Settings value is created once per command and
passed into each component, so tests can point everything at a temporary
directory.
"""

import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from .errors import NotConfiguredError

__all__ = [
    'Settings',
    'load_settings',
    'write_settings',
    'default_settings_path',
]

DEFAULT_REGION = "us-east-1"
DEFAULT_AZURE_LOCATION = "eastus"

# Environment variable -> (yaml section, key)
_ENV_OVERRIDES = {
    "CLOUDCTX_DEFAULT_CLOUD": (None, "default_cloud"),
    "CLOUDCTX_AWS_SSO_START_URL": ("aws", "sso_start_url"),
    "CLOUDCTX_AWS_SSO_REGION": ("aws", "sso_region"),
    "CLOUDCTX_AWS_DEFAULT_REGION": ("aws", "default_region"),
    "CLOUDCTX_AZURE_DEFAULT_LOCATION": ("azure", "default_location"),
}


def _get_aws_dir(home: Path) -> Path:
    """Get the path to the AWS CLI directory."""
    return home / ".aws"


def _get_state_dir(home: Path) -> Path:
    """Get the path to the cloudctx state directory."""
    return home / ".config" / "cloudctx"


def default_settings_path(home: Optional[Path] = None) -> Path:
    """Get the path to the cloudctx settings file."""
    return _get_state_dir(home or Path.home()) / "config.yaml"


class Settings:
    """Settings and file locations for one cloudctx invocation."""

    def __init__(self, sso_start_url: str = "", sso_region: str = DEFAULT_REGION,
                 default_region: str = DEFAULT_REGION,
                 azure_default_location: str = DEFAULT_AZURE_LOCATION,
                 default_cloud: str = "aws", home: Optional[Path] = None,
                 aws_config_path: Optional[Path] = None,
                 aws_credentials_path: Optional[Path] = None,
                 sso_cache_dir: Optional[Path] = None,
                 state_dir: Optional[Path] = None):
        home = Path(home) if home else Path.home()
        aws_dir = _get_aws_dir(home)

        self.sso_start_url = sso_start_url
        self.sso_region = sso_region or DEFAULT_REGION
        self.default_region = default_region or DEFAULT_REGION
        self.azure_default_location = azure_default_location or DEFAULT_AZURE_LOCATION
        self.default_cloud = default_cloud or "aws"
        self.aws_config_path = Path(aws_config_path) if aws_config_path else aws_dir / "config"
        self.aws_credentials_path = (Path(aws_credentials_path) if aws_credentials_path
                                     else aws_dir / "credentials")
        self.sso_cache_dir = Path(sso_cache_dir) if sso_cache_dir else aws_dir / "sso" / "cache"
        self.state_dir = Path(state_dir) if state_dir else _get_state_dir(home)

    def __repr__(self) -> str:
        return (f"Settings(default_cloud={self.default_cloud!r}, "
                f"sso_start_url={self.sso_start_url!r}, sso_region={self.sso_region!r}, "
                f"default_region={self.default_region!r})")

    def to_dict(self) -> Dict[str, Any]:
        """Return the settings in the layout of config.yaml."""
        return {
            "default_cloud": self.default_cloud,
            "aws": {
                "sso_start_url": self.sso_start_url,
                "sso_region": self.sso_region,
                "default_region": self.default_region,
            },
            "azure": {
                "default_location": self.azure_default_location,
            },
        }


def _read_settings_file(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}

    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
    except (yaml.YAMLError, OSError) as e:
        raise NotConfiguredError(f"Could not read settings from {path}: {e}") from e

    if not isinstance(raw, dict):
        raise NotConfiguredError(f"Settings file {path} must contain a mapping")
    return raw


def load_settings(path: Optional[Path] = None, environ: Optional[Mapping[str, str]] = None,
                  home: Optional[Path] = None) -> Settings:
    """
    Load settings from config.yaml and CLOUDCTX_* environment variables.

    Environment variables take precedence over the file; a missing file
    yields the defaults.

    Args:
        path: Settings file (defaults to ~/.config/cloudctx/config.yaml)
        environ: Environment mapping (defaults to os.environ)
        home: Home directory used to derive the default file locations

    Returns:
        Settings: The merged settings

    Raises:
        NotConfiguredError: If the settings file exists but cannot be parsed
    """
    environ = os.environ if environ is None else environ
    path = Path(path) if path else default_settings_path(home)
    raw = _read_settings_file(path)

    aws = raw.get("aws") or {}
    azure = raw.get("azure") or {}
    values = {
        (None, "default_cloud"): raw.get("default_cloud", "aws"),
        ("aws", "sso_start_url"): aws.get("sso_start_url", ""),
        ("aws", "sso_region"): aws.get("sso_region", DEFAULT_REGION),
        ("aws", "default_region"): aws.get("default_region", DEFAULT_REGION),
        ("azure", "default_location"): azure.get("default_location", DEFAULT_AZURE_LOCATION),
    }

    for env_name, target in _ENV_OVERRIDES.items():
        if environ.get(env_name):
            values[target] = environ[env_name]

    return Settings(
        sso_start_url=values[("aws", "sso_start_url")] or "",
        sso_region=values[("aws", "sso_region")],
        default_region=values[("aws", "default_region")],
        azure_default_location=values[("azure", "default_location")],
        default_cloud=values[(None, "default_cloud")],
        home=home,
    )


def write_settings(settings: Settings, path: Optional[Path] = None) -> Path:
    """
    Write settings to config.yaml.

    Args:
        settings: Settings to persist
        path: Target file (defaults to config.yaml in the state directory)

    Returns:
        Path: The file that was written
    """
    path = Path(path) if path else settings.state_dir / "config.yaml"
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        f.write("# cloudctx configuration\n")
        yaml.safe_dump(settings.to_dict(), f, default_flow_style=False, sort_keys=False)
    return path
