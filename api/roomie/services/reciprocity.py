from __future__ import annotations

import logging
from dataclasses import dataclass

from ..profiles import LikeRecord, Match, PassRecord, canonical_pair, pair_key
from .store import MatchStore

logger = logging.getLogger(__name__)


class LedgerInputError(ValueError):
    pass


@dataclass(frozen=True)
class LikeResult:
    is_match: bool


def _require_pair(actor_id: str | None, target_id: str | None, actor_label: str, target_label: str) -> tuple[str, str]:
    actor = str(actor_id or "").strip()
    target = str(target_id or "").strip()
    if not actor or not target:
        raise LedgerInputError(f"{actor_label} and {target_label} are required")
    if actor == target:
        raise LedgerInputError(f"{actor_label} and {target_label} must differ")
    return actor, target


class ReciprocityLedger:
    """One-directional likes and passes, and the matches they turn into.

    The like insert and the match insert are separate idempotent writes, so a
    retried ``record_like`` after a failure between them completes the match
    without duplicating anything.
    """

    def __init__(self, store: MatchStore) -> None:
        self.store = store

    def record_like(self, liker_id: str, liked_id: str) -> LikeResult:
        liker, liked = _require_pair(liker_id, liked_id, "likerId", "likedId")
        self.store.put_like(liker, liked)
        if not self.store.has_like(liked, liker):
            return LikeResult(is_match=False)

        a, b = canonical_pair(liker, liked)
        self.store.put_match(pair_key(a, b), a, b)
        logger.info("[ledger] mutual like, match %s", pair_key(a, b))
        return LikeResult(is_match=True)

    def record_pass(self, passer_id: str, passed_id: str) -> None:
        passer, passed = _require_pair(passer_id, passed_id, "passerId", "passedId")
        self.store.put_pass(passer, passed)

    def get_matches(self, user_id: str) -> list[Match]:
        if not user_id:
            return []
        return self.store.get_matches_for_user(user_id)

    def is_matched(self, user_id: str, other_id: str) -> bool:
        if not user_id or not other_id or user_id == other_id:
            return False
        return self.store.get_match(pair_key(user_id, other_id)) is not None

    def get_likes(self, user_id: str) -> list[LikeRecord]:
        if not user_id:
            return []
        return self.store.get_likes(user_id)

    def get_passes(self, user_id: str) -> list[PassRecord]:
        if not user_id:
            return []
        return self.store.get_passes(user_id)

    def has_liked(self, liker_id: str, liked_id: str) -> bool:
        if not liker_id or not liked_id:
            return False
        return self.store.has_like(liker_id, liked_id)

    def has_passed(self, passer_id: str, passed_id: str) -> bool:
        if not passer_id or not passed_id:
            return False
        return self.store.has_pass(passer_id, passed_id)
