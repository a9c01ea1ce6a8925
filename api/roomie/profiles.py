from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

PREFERENCE_FIELDS = (
    "cleanliness",
    "noiseLevel",
    "smoking",
    "pets",
    "guests",
    "sleepSchedule",
    "budget",
    "leaseLength",
)

TIER_FREE = "free"
TIER_PREMIUM = "premium"


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


def canonical_pair(user_a: str, user_b: str) -> tuple[str, str]:
    return tuple(sorted((user_a, user_b)))


def _escape_id(user_id: str) -> str:
    return user_id.replace("%", "%25").replace("_", "%5F")


def pair_key(user_a: str, user_b: str) -> str:
    """Match id and chat room id for an unordered pair of users.

    Each id is escaped before joining so the separator only ever appears once;
    ("a_b", "c") and ("a", "b_c") get different keys.
    """
    a, b = canonical_pair(user_a, user_b)
    return f"{_escape_id(a)}_{_escape_id(b)}"


def _pick(data: dict[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return default


def _string_list(values: Any) -> list[str]:
    if values is None:
        return []
    if isinstance(values, str):
        values = [values]
    if not isinstance(values, (list, tuple, set)):
        return []
    out: list[str] = []
    for value in values:
        v = str(value or "").strip()
        if v and v not in out:
            out.append(v)
    return out


@dataclass
class Profile:
    id: str
    gender: str | None = None
    gender_preference: list[str] = field(default_factory=list)
    neighborhoods: list[str] = field(default_factory=list)
    preferences: dict[str, Any] | None = None
    open_to_non_matches: bool = False
    subscription_tier: str = TIER_FREE
    direct_messages_sent: int = 0
    display_name: str | None = None
    profile_complete: bool = True

    @property
    def is_free_tier(self) -> bool:
        return (self.subscription_tier or TIER_FREE) == TIER_FREE

    @classmethod
    def from_mapping(cls, data: dict[str, Any]) -> "Profile":
        """Build a profile from a stored document.

        Accepts both the camelCase keys of the document store and snake_case
        column names. A legacy single ``neighborhood`` value is folded into
        ``neighborhoods``.
        """
        neighborhoods = _pick(data, "neighborhoods")
        if neighborhoods is None and data.get("neighborhood"):
            neighborhoods = [data["neighborhood"]]
        preferences = data.get("preferences")
        return cls(
            id=str(data["id"]),
            gender=_pick(data, "gender"),
            gender_preference=_string_list(_pick(data, "genderPreference", "gender_preference")),
            neighborhoods=_string_list(neighborhoods),
            preferences=dict(preferences) if isinstance(preferences, dict) else None,
            open_to_non_matches=bool(_pick(data, "openToNonMatches", "open_to_non_matches", default=False)),
            subscription_tier=str(_pick(data, "subscriptionTier", "subscription_tier", default=TIER_FREE)),
            direct_messages_sent=max(0, int(_pick(data, "directMessagesSent", "direct_messages_sent", default=0))),
            display_name=_pick(data, "displayName", "display_name"),
            profile_complete=bool(_pick(data, "profileComplete", "profile_complete", default=True)),
        )

    def to_mapping(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "display_name": self.display_name,
            "gender": self.gender,
            "gender_preference": list(self.gender_preference),
            "neighborhoods": list(self.neighborhoods),
            "preferences": dict(self.preferences) if self.preferences is not None else None,
            "open_to_non_matches": self.open_to_non_matches,
            "subscription_tier": self.subscription_tier,
            "direct_messages_sent": self.direct_messages_sent,
            "profile_complete": self.profile_complete,
        }


@dataclass(frozen=True)
class LikeRecord:
    liker_id: str
    liked_id: str
    created_at: Any = None


@dataclass(frozen=True)
class PassRecord:
    passer_id: str
    passed_id: str
    created_at: Any = None


@dataclass(frozen=True)
class Match:
    user_id_1: str
    user_id_2: str
    created_at: Any = None

    @property
    def key(self) -> str:
        return pair_key(self.user_id_1, self.user_id_2)

    def involves(self, user_id: str) -> bool:
        return user_id in (self.user_id_1, self.user_id_2)

    def other(self, user_id: str) -> str:
        return self.user_id_2 if user_id == self.user_id_1 else self.user_id_1


@dataclass(frozen=True)
class ChatMessage:
    id: str
    room_id: str
    sender_id: str
    recipient_id: str
    body: str
    created_at: Any = None


REPORT_CONTEXTS = ("match", "message")
DEFAULT_REPORT_REASON = "No reason provided"


@dataclass(frozen=True)
class Report:
    id: str
    reporter_id: str
    reported_id: str
    reason: str
    context: str
    details: str | None = None
    created_at: Any = None
