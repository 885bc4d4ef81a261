"""
Data models for the notes cache.

Defines the cached snapshot of an account's daily notes and the
account record supplied by the registry, with validation and
serialization support.
"""

import copy
from dataclasses import dataclass, field
from typing import Dict, Any, Optional, List, Union

from notecache.utils.errors import ValidationError


AccountKey = Union[str, int]

FINISHED_STATE = "Finished"

# Upstream notes keys that map onto snapshot fields rather than identity.
NOTES_SECTIONS = ("stamina", "expedition", "shop", "realm", "threshold", "lastUpdate")


def _require(data: Dict[str, Any], key: str, section: str) -> Any:
    if not isinstance(data, dict):
        raise ValidationError(f"{section} must be a mapping", field=section, value=data)
    if data.get(key) is None:
        raise ValidationError(f"{section} is missing {key}", field=f"{section}.{key}")
    return data[key]


def _non_negative_int(value: Any, name: str) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{name} must be an integer", field=name, value=value)
    if number < 0:
        raise ValidationError(f"{name} must not be negative", field=name, value=value)
    return number


def _check_bounds(current: int, maximum: int, section: str) -> None:
    if current > maximum:
        raise ValidationError(
            f"{section} current amount exceeds its maximum",
            field=f"{section}.current_amount",
            value=current,
            details={"max_amount": maximum},
        )


@dataclass
class ResourcePool:
    """Regenerating resource with fractional carry-over."""
    current_amount: int
    max_amount: int
    recovery_time_seconds: int = 0
    fractional_accumulator: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "current_amount": self.current_amount,
            "max_amount": self.max_amount,
            "recovery_time_seconds": self.recovery_time_seconds,
            "fractional_accumulator": self.fractional_accumulator,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ResourcePool":
        """Create from dictionary."""
        current = _non_negative_int(_require(data, "current_amount", "resource_pool"), "resource_pool.current_amount")
        maximum = _non_negative_int(_require(data, "max_amount", "resource_pool"), "resource_pool.max_amount")
        _check_bounds(current, maximum, "resource_pool")

        fractional = float(data.get("fractional_accumulator") or 0.0)
        if not 0.0 <= fractional < 1.0:
            raise ValidationError(
                "resource_pool fractional accumulator must be in [0, 1)",
                field="resource_pool.fractional_accumulator",
                value=fractional,
            )

        return cls(
            current_amount=current,
            max_amount=maximum,
            recovery_time_seconds=_non_negative_int(data.get("recovery_time_seconds", 0), "resource_pool.recovery_time_seconds"),
            fractional_accumulator=fractional,
        )


@dataclass
class TimedTask:
    """Dispatched background activity counting down to completion."""
    remaining_time_seconds: int

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {"remaining_time_seconds": self.remaining_time_seconds}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TimedTask":
        """Create from dictionary."""
        remaining = _require(data, "remaining_time_seconds", "timed_task")
        return cls(remaining_time_seconds=_non_negative_int(remaining, "timed_task.remaining_time_seconds"))


@dataclass
class RotationFlag:
    """Status of a rotating shop or offer."""
    state: str

    @property
    def is_finished(self) -> bool:
        return self.state == FINISHED_STATE

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {"state": self.state}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RotationFlag":
        """Create from dictionary."""
        return cls(state=str(_require(data, "state", "rotation_flag")))


@dataclass
class SecondaryCurrency:
    """Second regenerating quantity with its own terminal conditions."""
    current_amount: int
    max_amount: int
    recovery_time_seconds: int = 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "current_amount": self.current_amount,
            "max_amount": self.max_amount,
            "recovery_time_seconds": self.recovery_time_seconds,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SecondaryCurrency":
        """Create from dictionary."""
        current = _non_negative_int(_require(data, "current_amount", "secondary_currency"), "secondary_currency.current_amount")
        maximum = _non_negative_int(_require(data, "max_amount", "secondary_currency"), "secondary_currency.max_amount")
        _check_bounds(current, maximum, "secondary_currency")
        return cls(
            current_amount=current,
            max_amount=maximum,
            recovery_time_seconds=_non_negative_int(data.get("recovery_time_seconds", 0), "secondary_currency.recovery_time_seconds"),
        )


@dataclass
class Snapshot:
    """Cached, time-projectable daily notes of one account."""
    identity: Dict[str, Any] = field(default_factory=dict)
    resource_pool: Optional[ResourcePool] = None
    timed_tasks: Optional[List[TimedTask]] = None
    rotation_flag: Optional[RotationFlag] = None
    secondary_currency: Optional[SecondaryCurrency] = None
    threshold: Optional[int] = None
    last_update: int = 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "identity": copy.deepcopy(self.identity),
            "resource_pool": self.resource_pool.to_dict() if self.resource_pool else None,
            "timed_tasks": [task.to_dict() for task in self.timed_tasks] if self.timed_tasks is not None else None,
            "rotation_flag": self.rotation_flag.to_dict() if self.rotation_flag else None,
            "secondary_currency": self.secondary_currency.to_dict() if self.secondary_currency else None,
            "threshold": self.threshold,
            "last_update": self.last_update,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Snapshot":
        """Create from dictionary, validating every present section."""
        if not isinstance(data, dict):
            raise ValidationError("snapshot must be a mapping", value=type(data).__name__)

        timed_tasks = data.get("timed_tasks")
        if timed_tasks is not None and not isinstance(timed_tasks, list):
            raise ValidationError("timed_tasks must be a list", field="timed_tasks", value=timed_tasks)

        threshold = data.get("threshold")
        return cls(
            identity=copy.deepcopy(data.get("identity") or {}),
            resource_pool=ResourcePool.from_dict(data["resource_pool"]) if data.get("resource_pool") is not None else None,
            timed_tasks=[TimedTask.from_dict(task) for task in timed_tasks] if timed_tasks is not None else None,
            rotation_flag=RotationFlag.from_dict(data["rotation_flag"]) if data.get("rotation_flag") is not None else None,
            secondary_currency=SecondaryCurrency.from_dict(data["secondary_currency"]) if data.get("secondary_currency") is not None else None,
            threshold=_non_negative_int(threshold, "threshold") if threshold is not None else None,
            last_update=_non_negative_int(data.get("last_update", 0), "last_update"),
        )

    @classmethod
    def from_notes(cls, data: Dict[str, Any]) -> "Snapshot":
        """
        Build a snapshot from upstream daily notes.

        Maps ``stamina``, ``expedition``, ``shop`` and ``realm`` onto the
        simulated fields; every other key is kept as identity.
        """
        if not isinstance(data, dict):
            raise ValidationError("notes data must be a mapping", value=type(data).__name__)

        raw: Dict[str, Any] = {
            "identity": {k: v for k, v in data.items() if k not in NOTES_SECTIONS},
        }

        stamina = data.get("stamina")
        if stamina is not None:
            raw["resource_pool"] = {
                "current_amount": _require(stamina, "currentStamina", "stamina"),
                "max_amount": _require(stamina, "maxStamina", "stamina"),
                "recovery_time_seconds": stamina.get("recoveryTime", 0),
                "fractional_accumulator": stamina.get("fractionalStamina", 0.0),
            }
            if stamina.get("threshold") is not None:
                raw["threshold"] = stamina["threshold"]

        expedition = data.get("expedition")
        if expedition is not None:
            raw["timed_tasks"] = [
                {"remaining_time_seconds": _require(item, "remaining_time", "expedition")}
                for item in _require(expedition, "list", "expedition")
            ]

        shop = data.get("shop")
        if shop is not None:
            raw["rotation_flag"] = {"state": _require(shop, "state", "shop")}

        realm = data.get("realm")
        if realm is not None:
            raw["secondary_currency"] = {
                "current_amount": _require(realm, "currentCoin", "realm"),
                "max_amount": _require(realm, "maxCoin", "realm"),
                "recovery_time_seconds": realm.get("recoveryTime", 0),
            }

        if data.get("threshold") is not None:
            raw["threshold"] = data["threshold"]

        return cls.from_dict(raw)

    def to_notes(self) -> Dict[str, Any]:
        """Rebuild the upstream daily notes shape from this snapshot."""
        notes = copy.deepcopy(self.identity)

        if self.resource_pool:
            notes["stamina"] = {
                "currentStamina": self.resource_pool.current_amount,
                "maxStamina": self.resource_pool.max_amount,
                "recoveryTime": self.resource_pool.recovery_time_seconds,
                "fractionalStamina": self.resource_pool.fractional_accumulator,
            }
            if self.threshold is not None:
                notes["stamina"]["threshold"] = self.threshold

        if self.timed_tasks is not None:
            notes["expedition"] = {
                "list": [{"remaining_time": task.remaining_time_seconds} for task in self.timed_tasks],
            }

        if self.rotation_flag:
            notes["shop"] = {"state": self.rotation_flag.state}

        if self.secondary_currency:
            notes["realm"] = {
                "currentCoin": self.secondary_currency.current_amount,
                "maxCoin": self.secondary_currency.max_amount,
                "recoveryTime": self.secondary_currency.recovery_time_seconds,
            }

        notes["lastUpdate"] = self.last_update
        return notes


@dataclass
class Account:
    """Upstream account as supplied by the registry."""
    uid: AccountKey
    platform: str
    nickname: str = ""
    region: str = ""
    dailies_check: bool = True
    discord_user_id: Optional[str] = None
    stamina_threshold: Optional[int] = None

    @property
    def mention(self) -> Optional[str]:
        if self.discord_user_id:
            return f"<@{self.discord_user_id}>"
        return None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "uid": self.uid,
            "platform": self.platform,
            "nickname": self.nickname,
            "region": self.region,
            "dailies_check": self.dailies_check,
            "discord_user_id": self.discord_user_id,
            "stamina_threshold": self.stamina_threshold,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Account":
        """Create from dictionary."""
        return cls(
            uid=data["uid"],
            platform=data["platform"],
            nickname=data.get("nickname", ""),
            region=data.get("region", ""),
            dailies_check=data.get("dailies_check", True),
            discord_user_id=data.get("discord_user_id"),
            stamina_threshold=data.get("stamina_threshold"),
        )
