"""
AWS SSO token cache reader.

The AWS CLI leaves one JSON document per login in ~/.aws/sso/cache. Several
sessions can coexist, and nothing indexes them, so the newest file carrying an
access token is taken to be the current session.
"""

import logging
import re
from pathlib import Path
from typing import Optional

from ..errors import NoSessionError

__all__ = [
    'AccessToken',
    'extract_access_token',
    'latest_access_token',
]

logger = logging.getLogger(__name__)

_TOKEN_FIELD = '"accessToken"'
_TOKEN_VALUE_RE = re.compile(r'\s*:\s*"([^"]+)"')


class AccessToken:
    """A bearer token plus the modification time of the file it came from."""
    def __init__(self, token: str, modified: float, source: Optional[Path] = None):
        self.token = token
        self.modified = modified
        self.source = source

    def __str__(self) -> str:
        return self.token

    def __repr__(self) -> str:
        return f"AccessToken(source={self.source!r}, modified={self.modified})"


def extract_access_token(content: str) -> Optional[str]:
    """
    Locate the accessToken field in a cache document.

    The document is not parsed as JSON: only the first "accessToken" key and
    the quoted string that follows its colon are looked at.

    Args:
        content: Raw file content

    Returns:
        The token value, or None if the field is missing or malformed
    """
    start = content.find(_TOKEN_FIELD)
    if start == -1:
        return None

    match = _TOKEN_VALUE_RE.match(content, start + len(_TOKEN_FIELD))
    if not match:
        return None
    return match.group(1)


def latest_access_token(cache_dir: Path) -> AccessToken:
    """
    Return the access token from the most recently modified cache file.

    Args:
        cache_dir: The SSO cache directory

    Returns:
        AccessToken: The newest well-formed token

    Raises:
        NoSessionError: If the directory is missing or holds no usable token
    """
    cache_dir = Path(cache_dir)
    if not cache_dir.is_dir():
        raise NoSessionError("SSO cache not found. Log in first")

    newest = None
    for entry in sorted(cache_dir.iterdir()):
        if entry.is_dir() or entry.suffix != ".json":
            continue

        try:
            content = entry.read_text(encoding="utf-8")
            modified = entry.stat().st_mtime
        except (OSError, UnicodeDecodeError) as e:
            logger.debug("Skipping unreadable cache file %s: %s", entry, e)
            continue

        token = extract_access_token(content)
        if token is None:
            continue

        # Strictly newer wins; ties keep the first file found
        if newest is None or modified > newest.modified:
            newest = AccessToken(token, modified, source=entry)

    if newest is None:
        raise NoSessionError("No valid SSO access token found. Log in first")

    logger.debug("Using SSO access token from %s", newest.source)
    return newest
