from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from ..config import MESSAGE_MAX_LENGTH
from ..profiles import ChatMessage, _now_utc, pair_key
from .messaging_gate import DirectMessageQuotaExceeded, GateReason, MessagingGate, SendDecision
from .store import MatchStore

logger = logging.getLogger(__name__)


class MessageInputError(ValueError):
    pass


class UnknownProfileError(LookupError):
    def __init__(self, user_id: str) -> None:
        self.user_id = user_id
        super().__init__(f"Profile not found: {user_id}")


@dataclass(frozen=True)
class SendResult:
    decision: SendDecision
    message: ChatMessage | None = None
    counted: bool = False


def _clean_body(body: Any) -> str:
    text = str(body or "").strip()
    if not text:
        raise MessageInputError("Message body required")
    if len(text) > MESSAGE_MAX_LENGTH:
        raise MessageInputError("Message too long")
    return text


def send_direct_message(
    store: MatchStore,
    gate: MessagingGate,
    sender_id: str,
    recipient_id: str,
    body: Any,
) -> SendResult:
    text = _clean_body(body)
    if not sender_id or not recipient_id or sender_id == recipient_id:
        raise MessageInputError("sender and recipient must be two different users")

    sender = store.get_profile(sender_id)
    if sender is None:
        raise UnknownProfileError(sender_id)
    recipient = store.get_profile(recipient_id)
    if recipient is None:
        raise UnknownProfileError(recipient_id)

    if store.is_blocked_pair(sender_id, recipient_id):
        return SendResult(decision=SendDecision(allowed=False, reason=GateReason.BLOCKED))

    room_id = pair_key(sender_id, recipient_id)
    match_exists = store.get_match(room_id) is not None
    decision = gate.authorize_send(sender, recipient, match_exists)
    if not decision.allowed:
        return SendResult(decision=decision)

    # The quota slot is claimed before the message is stored.
    try:
        counted = gate.record_accepted_send(sender, match_exists)
    except DirectMessageQuotaExceeded:
        return SendResult(decision=SendDecision(allowed=False, reason=GateReason.FREE_TIER_LIMIT))

    message = ChatMessage(
        id=str(uuid.uuid4()),
        room_id=room_id,
        sender_id=sender_id,
        recipient_id=recipient_id,
        body=text,
        created_at=_now_utc(),
    )
    store.put_message(message)
    logger.debug("[chat] message stored room=%s reason=%s counted=%s", room_id, decision.reason.value, counted)
    return SendResult(decision=decision, message=message, counted=counted)


def _sort_time(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value)
        except ValueError:
            return datetime.min.replace(tzinfo=timezone.utc)
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    return datetime.min.replace(tzinfo=timezone.utc)


def list_conversations(store: MatchStore, user_id: str) -> dict[str, list[dict[str, Any]]]:
    """Rooms the user takes part in, split by whether the pair is matched."""
    if not user_id:
        return {"matches": [], "direct_messages": []}

    matched_ids = {m.other(user_id) for m in store.get_matches_for_user(user_id)}
    matches: list[dict[str, Any]] = []
    direct: list[dict[str, Any]] = []
    for room_id in store.list_rooms_for_user(user_id):
        messages = store.get_messages(room_id)
        if not messages:
            continue
        latest = max(messages, key=lambda m: _sort_time(m.created_at))
        other_id = latest.recipient_id if latest.sender_id == user_id else latest.sender_id
        entry = {
            "room_id": room_id,
            "user_id": other_id,
            "last_message": latest.body,
            "last_message_time": latest.created_at,
        }
        (matches if other_id in matched_ids else direct).append(entry)

    matches.sort(key=lambda c: _sort_time(c["last_message_time"]), reverse=True)
    direct.sort(key=lambda c: _sort_time(c["last_message_time"]), reverse=True)
    return {"matches": matches, "direct_messages": direct}
