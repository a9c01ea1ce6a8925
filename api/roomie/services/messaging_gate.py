from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from ..config import FREE_TIER_DIRECT_MESSAGE_LIMIT
from ..profiles import Profile
from .store import MatchStore

logger = logging.getLogger(__name__)


class DirectMessageQuotaExceeded(Exception):
    def __init__(self, user_id: str) -> None:
        self.user_id = user_id
        super().__init__(f"Free tier direct message limit reached: {user_id}")


class GateReason(str, Enum):
    MATCHED = "matched"
    RECIPIENT_OPEN = "recipient_open"
    SENDER_OPEN = "sender_open"
    NOT_MATCHED = "not_matched"
    FREE_TIER_LIMIT = "free_tier_limit_reached"
    BLOCKED = "blocked"


DENIAL_MESSAGES = {
    GateReason.NOT_MATCHED: "not matched and neither party open to non-match messages",
    GateReason.FREE_TIER_LIMIT: "free tier limit reached",
    GateReason.BLOCKED: "messaging is unavailable between these users",
}


@dataclass(frozen=True)
class SendDecision:
    allowed: bool
    reason: GateReason

    @property
    def quota_denied(self) -> bool:
        return not self.allowed and self.reason is GateReason.FREE_TIER_LIMIT

    @property
    def message(self) -> str | None:
        return DENIAL_MESSAGES.get(self.reason)


Rule = Callable[[Profile, Profile, bool], bool]

# Evaluated in order, first hit wins. The sender's own flag admitting the send
# is kept as observed in the product, pending review.
VISIBILITY_RULES: tuple[tuple[Rule, GateReason], ...] = (
    (lambda sender, recipient, matched: matched, GateReason.MATCHED),
    (lambda sender, recipient, matched: bool(recipient.open_to_non_matches), GateReason.RECIPIENT_OPEN),
    (lambda sender, recipient, matched: bool(sender.open_to_non_matches), GateReason.SENDER_OPEN),
)


class MessagingGate:
    def __init__(self, store: MatchStore | None = None, *, free_direct_message_limit: int = FREE_TIER_DIRECT_MESSAGE_LIMIT) -> None:
        self.store = store
        self.free_direct_message_limit = free_direct_message_limit

    def can_send(self, sender: Profile, recipient: Profile, match_exists: bool) -> SendDecision:
        for rule, reason in VISIBILITY_RULES:
            if rule(sender, recipient, match_exists):
                return SendDecision(allowed=True, reason=reason)
        return SendDecision(allowed=False, reason=GateReason.NOT_MATCHED)

    def quota_exhausted(self, sender: Profile, match_exists: bool) -> bool:
        if match_exists or not sender.is_free_tier:
            return False
        return sender.direct_messages_sent >= self.free_direct_message_limit

    def authorize_send(self, sender: Profile, recipient: Profile, match_exists: bool) -> SendDecision:
        """Decision for an actual send: the free tier quota applies before visibility."""
        if self.quota_exhausted(sender, match_exists):
            logger.info(
                "[gate] free tier limit reached sender=%s sent=%s",
                sender.id,
                sender.direct_messages_sent,
            )
            return SendDecision(allowed=False, reason=GateReason.FREE_TIER_LIMIT)
        decision = self.can_send(sender, recipient, match_exists)
        if not decision.allowed:
            logger.debug("[gate] denied sender=%s recipient=%s reason=%s", sender.id, recipient.id, decision.reason.value)
        return decision

    def record_accepted_send(self, sender: Profile, match_exists: bool) -> bool:
        """Counts a free tier non-match send; returns whether it counted.

        The store only increments while the counter is below the limit, so a
        concurrent send that took the last slot raises DirectMessageQuotaExceeded.
        """
        if match_exists or not sender.is_free_tier:
            return False
        if self.store is None:
            raise RuntimeError("MessagingGate needs a store to record direct message usage")
        if not self.store.increment_direct_message_count(sender.id, limit=self.free_direct_message_limit):
            logger.info("[gate] free tier limit reached on commit sender=%s", sender.id)
            raise DirectMessageQuotaExceeded(sender.id)
        logger.info("[gate] direct message counted sender=%s", sender.id)
        return True

    def remaining_direct_messages(self, sender: Profile, match_exists: bool) -> int | None:
        """Remaining non-match sends, or None when unlimited."""
        if match_exists or not sender.is_free_tier:
            return None
        return max(0, self.free_direct_message_limit - sender.direct_messages_sent)
