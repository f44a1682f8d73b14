"""
Provider contract

Context and Identity are the values every cloud provider hands back to the
command line; Provider is the set of operations each cloud implements.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

__all__ = [
    'Context',
    'Identity',
    'SyncResult',
    'Provider',
]


class Context:
    """A named, switchable cloud identity binding (AWS profile, Azure subscription)."""
    def __init__(self, name: str, cloud: str, account_id: Optional[str] = None,
                 account_name: Optional[str] = None, role: Optional[str] = None,
                 region: Optional[str] = None, active: bool = False,
                 managed: bool = False):
        self.name = name
        self.cloud = cloud
        self.account_id = account_id
        self.account_name = account_name
        self.role = role
        self.region = region
        self.active = active
        self.managed = managed  # regenerable by sync

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Context):
            return NotImplemented
        return vars(self) == vars(other)

    def __repr__(self) -> str:
        return f"Context(name={self.name!r}, cloud={self.cloud!r}, active={self.active})"

    def __str__(self) -> str:
        """Return string representation of the context."""
        status = []
        if self.active:
            status.append("ACTIVE")
        if self.managed:
            status.append("MANAGED")

        status_str = f" ({', '.join(status)})" if status else ""
        region_str = f" - {self.region}" if self.region else ""
        account_str = f" - Account: {self.account_id}" if self.account_id else ""
        role_str = f" [{self.role}]" if self.role else ""

        return f"{self.name}{region_str}{account_str}{role_str}{status_str}"


class Identity:
    """The identity currently authenticated against a cloud."""
    def __init__(self, cloud: str, account_id: Optional[str] = None,
                 account_name: Optional[str] = None, user_id: Optional[str] = None,
                 arn: Optional[str] = None, region: Optional[str] = None):
        self.cloud = cloud
        self.account_id = account_id
        self.account_name = account_name
        self.user_id = user_id
        self.arn = arn
        self.region = region

    def to_dict(self) -> Dict[str, Any]:
        return dict(vars(self))


class SyncResult:
    """Outcome of a sync run."""
    def __init__(self, accounts: int = 0, profiles: int = 0,
                 skipped_accounts: Optional[List[str]] = None):
        self.accounts = accounts
        self.profiles = profiles
        self.skipped_accounts = skipped_accounts or []


class Provider(ABC):
    """Operations every cloud provider exposes to the command line."""

    # Environment variable that outranks the context set by set_context
    override_env_var: Optional[str] = None

    @abstractmethod
    def name(self) -> str:
        """Return the provider name (e.g. "aws")."""

    @abstractmethod
    def login(self) -> None:
        """Authenticate, typically by launching the cloud's own CLI login."""

    @abstractmethod
    def sync(self) -> SyncResult:
        """Refresh the available contexts from the cloud."""

    @abstractmethod
    def list_contexts(self) -> List[Context]:
        """Return all contexts, sorted by name."""

    @abstractmethod
    def set_context(self, name: str) -> None:
        """Make the named context the active one."""

    @abstractmethod
    def current_context(self) -> Optional[Context]:
        """Return the active context, or None when nothing is selected."""

    @abstractmethod
    def whoami(self) -> Identity:
        """Return the identity of the active credentials."""

    def env_override_conflict(self, name: str) -> Optional[str]:
        """
        Return the value of ``override_env_var`` if it is set and would
        override switching to ``name``, else None.
        """
        return None
