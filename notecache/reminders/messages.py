"""Message composition for reminder notifications."""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from notecache.schemas.models import Account

# Telegram MarkdownV2 reserved characters; "*" is left alone for bold text.
MARKDOWN_RESERVED = set("_[]()~`>#+-=|{}.!\\")

DAILIES_TITLE = "Dailies Reminder"


def format_time(seconds: Any) -> str:
    """Render a duration such as ``1h 2m 5s``."""
    remaining = max(0, int(seconds or 0))
    days, remaining = divmod(remaining, 86400)
    hours, remaining = divmod(remaining, 3600)
    minutes, secs = divmod(remaining, 60)

    parts = []
    for value, unit in ((days, "d"), (hours, "h"), (minutes, "m"), (secs, "s")):
        if value:
            parts.append(f"{value}{unit}")
    return " ".join(parts) or "0s"


def escape_characters(text: str) -> str:
    return "".join(f"\\{char}" if char in MARKDOWN_RESERVED else char for char in text)


def _stamina_line(data: Dict[str, Any]) -> str:
    stamina = data.get("stamina") or {}
    current = stamina.get("currentStamina", 0)
    maximum = stamina.get("maxStamina", 0)
    return f"{current}/{maximum} ({format_time(stamina.get('recoveryTime'))})"


def _dailies_line(data: Dict[str, Any]) -> str:
    dailies = data.get("dailies") or {}
    return f"{dailies.get('task', 0)}/{dailies.get('maxTask', 0)}"


def build_dailies_embed(
    account: Account,
    data: Dict[str, Any],
    region: str,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """Chat embed reminding the account owner to finish their dailies."""
    assets = data.get("assets") or {}
    timestamp = (now or datetime.now(timezone.utc)).isoformat()

    return {
        "color": assets.get("color"),
        "title": DAILIES_TITLE,
        "author": {
            "name": assets.get("author"),
            "icon_url": assets.get("logo"),
        },
        "description": "Don't forget to complete your dailies!",
        "fields": [
            {"name": "UID", "value": str(account.uid), "inline": True},
            {"name": "Username", "value": account.nickname, "inline": True},
            {"name": "Region", "value": region, "inline": True},
            {"name": "Completed Dailies", "value": _dailies_line(data), "inline": True},
            {"name": "Current Stamina", "value": _stamina_line(data), "inline": True},
        ],
        "timestamp": timestamp,
        "footer": {
            "text": DAILIES_TITLE,
            "icon_url": assets.get("logo"),
        },
    }


def build_dailies_text(account: Account, data: Dict[str, Any], region: str) -> str:
    """Plain text reminder, already escaped for Telegram."""
    assets = data.get("assets") or {}
    lines = [
        "📢 Dailies Reminder, Don't Forget to Do Your Dailies!",
        f"🎮 *Game*: {assets.get('game', '')}",
        f"🆔 *UID*: {account.uid} {account.nickname}",
        f"🌍 *Region*: {region}",
        f"📅 *Completed Dailies*: {_dailies_line(data)}",
        f"🔋 *Current Stamina*: {_stamina_line(data)}",
    ]
    return escape_characters("\n".join(lines))
