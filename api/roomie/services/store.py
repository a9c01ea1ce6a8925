from __future__ import annotations

import copy
import threading
from dataclasses import replace
from typing import Protocol

from ..profiles import ChatMessage, LikeRecord, Match, PassRecord, Profile, Report, _now_utc, canonical_pair


class MatchStore(Protocol):
    """Persistence operations the matching core depends on.

    ``put_like``, ``put_pass`` and ``put_match`` must be idempotent upserts keyed
    by the ordered pair (likes, passes) or the canonical pair key (matches).
    ``increment_direct_message_count`` must be atomic; with a ``limit`` it only
    increments while the counter is below it and reports whether it did.
    ``put_profile`` never overwrites the stored tier or counter of an existing row.
    """

    def get_profile(self, user_id: str) -> Profile | None: ...
    def put_profile(self, profile: Profile) -> None: ...
    def list_profiles(self, exclude_user_id: str | None = None) -> list[Profile]: ...
    def put_like(self, liker_id: str, liked_id: str) -> None: ...
    def has_like(self, liker_id: str, liked_id: str) -> bool: ...
    def get_likes(self, user_id: str) -> list[LikeRecord]: ...
    def put_pass(self, passer_id: str, passed_id: str) -> None: ...
    def has_pass(self, passer_id: str, passed_id: str) -> bool: ...
    def get_passes(self, user_id: str) -> list[PassRecord]: ...
    def put_match(self, pair_key: str, user_id_1: str, user_id_2: str) -> None: ...
    def get_match(self, pair_key: str) -> Match | None: ...
    def get_matches_for_user(self, user_id: str) -> list[Match]: ...
    def increment_direct_message_count(self, user_id: str, limit: int | None = None) -> bool: ...
    def put_block(self, blocker_id: str, blocked_id: str) -> None: ...
    def is_blocked_pair(self, user_a: str, user_b: str) -> bool: ...
    def get_blocked_ids(self, user_id: str) -> set[str]: ...
    def put_report(self, report: Report) -> None: ...
    def get_reports(self, reported_id: str) -> list[Report]: ...
    def put_message(self, message: ChatMessage) -> None: ...
    def get_messages(self, room_id: str) -> list[ChatMessage]: ...
    def list_rooms_for_user(self, user_id: str) -> list[str]: ...


class InMemoryMatchStore:
    def __init__(self) -> None:
        self._profiles: dict[str, Profile] = {}
        self._likes: dict[tuple[str, str], LikeRecord] = {}
        self._passes: dict[tuple[str, str], PassRecord] = {}
        self._matches: dict[str, Match] = {}
        self._match_pairs: dict[tuple[str, str], str] = {}
        self._blocks: set[tuple[str, str]] = set()
        self._reports: list[Report] = []
        self._messages: dict[str, list[ChatMessage]] = {}
        self._lock = threading.Lock()

    def get_profile(self, user_id: str) -> Profile | None:
        with self._lock:
            profile = self._profiles.get(user_id)
            return copy.deepcopy(profile) if profile else None

    def put_profile(self, profile: Profile) -> None:
        # Tier and counter are owned by the store once a row exists.
        with self._lock:
            stored = copy.deepcopy(profile)
            existing = self._profiles.get(profile.id)
            if existing is not None:
                stored = replace(
                    stored,
                    subscription_tier=existing.subscription_tier,
                    direct_messages_sent=existing.direct_messages_sent,
                )
            self._profiles[profile.id] = stored

    def list_profiles(self, exclude_user_id: str | None = None) -> list[Profile]:
        with self._lock:
            return [
                copy.deepcopy(p)
                for uid, p in sorted(self._profiles.items())
                if uid != exclude_user_id and p.profile_complete
            ]

    def put_like(self, liker_id: str, liked_id: str) -> None:
        with self._lock:
            self._likes.setdefault((liker_id, liked_id), LikeRecord(liker_id, liked_id, _now_utc()))

    def has_like(self, liker_id: str, liked_id: str) -> bool:
        with self._lock:
            return (liker_id, liked_id) in self._likes

    def get_likes(self, user_id: str) -> list[LikeRecord]:
        with self._lock:
            return [r for (liker, _), r in self._likes.items() if liker == user_id]

    def put_pass(self, passer_id: str, passed_id: str) -> None:
        with self._lock:
            self._passes.setdefault((passer_id, passed_id), PassRecord(passer_id, passed_id, _now_utc()))

    def has_pass(self, passer_id: str, passed_id: str) -> bool:
        with self._lock:
            return (passer_id, passed_id) in self._passes

    def get_passes(self, user_id: str) -> list[PassRecord]:
        with self._lock:
            return [r for (passer, _), r in self._passes.items() if passer == user_id]

    def put_match(self, pair_key: str, user_id_1: str, user_id_2: str) -> None:
        pair = canonical_pair(user_id_1, user_id_2)
        with self._lock:
            if pair in self._match_pairs or pair_key in self._matches:
                return
            self._matches[pair_key] = Match(pair[0], pair[1], _now_utc())
            self._match_pairs[pair] = pair_key

    def get_match(self, pair_key: str) -> Match | None:
        with self._lock:
            return self._matches.get(pair_key)

    def get_matches_for_user(self, user_id: str) -> list[Match]:
        with self._lock:
            return [m for m in self._matches.values() if m.involves(user_id)]

    def increment_direct_message_count(self, user_id: str, limit: int | None = None) -> bool:
        with self._lock:
            profile = self._profiles.get(user_id)
            if profile is None:
                return False
            if limit is not None and profile.direct_messages_sent >= limit:
                return False
            profile.direct_messages_sent += 1
            return True

    def put_block(self, blocker_id: str, blocked_id: str) -> None:
        with self._lock:
            self._blocks.add((blocker_id, blocked_id))

    def is_blocked_pair(self, user_a: str, user_b: str) -> bool:
        with self._lock:
            return (user_a, user_b) in self._blocks or (user_b, user_a) in self._blocks

    def get_blocked_ids(self, user_id: str) -> set[str]:
        """Users on the other side of a block with ``user_id``, in either direction."""
        with self._lock:
            return {b if a == user_id else a for a, b in self._blocks if user_id in (a, b)}

    def put_report(self, report: Report) -> None:
        with self._lock:
            self._reports.append(report)

    def get_reports(self, reported_id: str) -> list[Report]:
        with self._lock:
            return [r for r in self._reports if r.reported_id == reported_id]

    def put_message(self, message: ChatMessage) -> None:
        with self._lock:
            self._messages.setdefault(message.room_id, []).append(message)

    def get_messages(self, room_id: str) -> list[ChatMessage]:
        with self._lock:
            return list(self._messages.get(room_id, []))

    def list_rooms_for_user(self, user_id: str) -> list[str]:
        with self._lock:
            return [
                room
                for room, messages in self._messages.items()
                if any(user_id in (m.sender_id, m.recipient_id) for m in messages)
            ]
