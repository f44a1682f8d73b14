"""
Last-selected context, kept per cloud in ~/.config/cloudctx/<cloud>_current.

The file is a convenience hint for resolving the active context. It never
decides whether a context exists.
"""

import logging
from pathlib import Path
from typing import Optional

__all__ = [
    'StateFile',
]

logger = logging.getLogger(__name__)


class StateFile:
    """A single scalar value stored in one file."""

    def __init__(self, state_dir: Path, cloud: str):
        self.path = Path(state_dir) / f"{cloud}_current"

    def read(self) -> Optional[str]:
        """
        Return the stored context name.

        Returns:
            The name, or None if the file is missing, unreadable or empty
        """
        try:
            value = self.path.read_text(encoding="utf-8").strip()
        except (OSError, UnicodeDecodeError):
            return None
        return value or None

    def write(self, name: str) -> None:
        """Overwrite the stored name. Raises OSError on failure."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(name, encoding="utf-8")

    def write_best_effort(self, name: str) -> bool:
        """
        Overwrite the stored name, logging instead of raising on failure.

        Returns:
            bool: True if the file was written
        """
        try:
            self.write(name)
        except OSError as e:
            logger.warning("Could not write state file %s: %s", self.path, e)
            return False
        return True
