"""Dailies reminder job."""

from typing import Optional, Sequence

import structlog

from notecache.framework.notes import CachedNotes
from notecache.framework.registry import AccountRegistry, EmbedChannel, TextChannel
from notecache.reminders.messages import build_dailies_embed, build_dailies_text
from notecache.schemas.models import Account

DEFAULT_BLACKLIST = ("honkai", "tot")


class DailiesReminder:
    """Reminds account owners who have not finished their dailies."""

    name = "dailies-reminder"

    def __init__(
        self,
        registry: AccountRegistry,
        notes: CachedNotes,
        webhook: Optional[EmbedChannel] = None,
        telegram: Optional[TextChannel] = None,
        blacklist: Sequence[str] = DEFAULT_BLACKLIST,
    ):
        self.registry = registry
        self.notes = notes
        self.webhook = webhook
        self.telegram = telegram
        self.blacklist = tuple(blacklist)
        self.logger = structlog.get_logger("cron-dailies-reminder")

    async def __call__(self) -> int:
        return await self.run()

    async def run(self) -> int:
        """Send reminders; returns how many accounts were reminded."""
        accounts = self.registry.get_active_accounts(blacklist=self.blacklist)
        if not accounts:
            self.logger.warning("No active accounts found to run dailies reminder for")
            return 0

        reminded = 0
        for platform_name in self.registry.get_active_platforms():
            if platform_name in self.blacklist:
                continue

            for account in (a for a in accounts if a.platform == platform_name):
                if not account.dailies_check:
                    continue

                try:
                    if await self._remind(platform_name, account):
                        reminded += 1
                except Exception as e:
                    self.logger.error(
                        "Error sending dailies reminder",
                        platform=platform_name,
                        uid=str(account.uid),
                        error=str(e),
                    )

        self.logger.info("Dailies reminder finished", reminded=reminded)
        return reminded

    async def _remind(self, platform_name: str, account: Account) -> bool:
        # dailies progress is not simulated, so always ask upstream
        data = await self.notes.get(platform_name, account, refresh=True)
        if data is None:
            return False

        dailies = data.get("dailies") or {}
        if dailies.get("task") == dailies.get("maxTask"):
            return False

        region = self.registry.get_region(account.region)
        assets = data.get("assets") or {}

        if self.webhook is not None:
            await self.webhook.send(
                build_dailies_embed(account, data, region),
                content=account.mention,
                author=assets.get("author"),
                icon=assets.get("logo"),
            )

        if self.telegram is not None:
            await self.telegram.send(build_dailies_text(account, data, region))

        return True
