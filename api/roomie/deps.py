from fastapi import Depends, Header, HTTPException

from .config import FREE_TIER_DIRECT_MESSAGE_LIMIT
from .repo import SqlMatchStore
from .services.messaging_gate import MessagingGate
from .services.reciprocity import ReciprocityLedger
from .services.store import MatchStore

_store = SqlMatchStore()


def get_store() -> MatchStore:
    return _store


def get_ledger(store: MatchStore = Depends(get_store)) -> ReciprocityLedger:
    return ReciprocityLedger(store)


def get_gate(store: MatchStore = Depends(get_store)) -> MessagingGate:
    return MessagingGate(store, free_direct_message_limit=FREE_TIER_DIRECT_MESSAGE_LIMIT)


def parse_actor_user_id(raw_actor_user_id: str | None) -> str:
    value = (raw_actor_user_id or "").strip()
    if not value:
        raise HTTPException(status_code=400, detail="X-Actor-User-Id header required")
    return value


def actor_user_id(x_actor_user_id: str | None = Header(default=None)) -> str:
    return parse_actor_user_id(x_actor_user_id)
