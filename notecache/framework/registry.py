"""Interfaces of the collaborators the cache and reminders depend on."""

from typing import Any, Dict, List, Optional, Protocol, Sequence

from notecache.schemas.models import Account, AccountKey


class Platform(Protocol):
    """Per-game query capability."""

    async def notes(self, account: Account) -> Dict[str, Any]:
        """Return ``{"success": bool, "data": {...}}`` for the account."""
        ...


class AccountRegistry(Protocol):
    """Upstream account and platform registry."""

    def get_active_accounts(self, blacklist: Sequence[str] = ()) -> List[Account]:
        """Active accounts, excluding platforms in the blacklist."""
        ...

    def get_active_platforms(self) -> List[str]:
        """Names of platforms with at least one active account."""
        ...

    def get(self, name: str) -> Optional[Platform]:
        """Platform by name."""
        ...

    def get_account_by_id(self, uid: AccountKey) -> Optional[Account]:
        """Account by upstream id."""
        ...

    def get_region(self, region: str) -> str:
        """Human readable region name."""
        ...


class SecondaryStore(Protocol):
    """Durable key-value store mirrored by the cache."""

    async def get(self, key: str) -> Optional[Any]:
        ...

    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        ...

    async def delete(self, key: str) -> int:
        ...


class EmbedChannel(Protocol):
    """Chat channel accepting rich embeds (e.g. a Discord webhook)."""

    async def send(
        self,
        embed: Dict[str, Any],
        *,
        content: Optional[str] = None,
        author: Optional[str] = None,
        icon: Optional[str] = None,
    ) -> None:
        ...


class TextChannel(Protocol):
    """Chat channel accepting escaped plain text (e.g. Telegram)."""

    async def send(self, text: str) -> None:
        ...
