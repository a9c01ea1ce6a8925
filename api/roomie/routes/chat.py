from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse

from ..config import RL_MESSAGE_LIMIT, RL_WINDOW_SECONDS
from ..deps import actor_user_id, get_gate, get_store
from ..profiles import pair_key
from ..schemas import GateResponse, SendMessageRequest
from ..services.conversations import MessageInputError, UnknownProfileError, list_conversations, send_direct_message
from ..services.messaging_gate import GateReason, MessagingGate, SendDecision
from ..services.rate_limit import rate_limit_dependency
from ..services.store import MatchStore

router = APIRouter()

RL_MESSAGE = rate_limit_dependency("message", RL_MESSAGE_LIMIT, RL_WINDOW_SECONDS)


def _decision_payload(decision: SendDecision, remaining: int | None = None) -> dict[str, Any]:
    return GateResponse(
        allowed=decision.allowed,
        reason=decision.reason.value,
        message=decision.message,
        remaining_direct_messages=remaining,
    ).model_dump()


@router.get("/messages/can-send/{recipient_id}")
def can_send_message(
    recipient_id: str,
    user_id: str = Depends(actor_user_id),
    store: MatchStore = Depends(get_store),
    gate: MessagingGate = Depends(get_gate),
) -> dict[str, Any]:
    sender = store.get_profile(user_id)
    recipient = store.get_profile(recipient_id)
    if sender is None or recipient is None:
        raise HTTPException(status_code=404, detail="Profile not found")
    if store.is_blocked_pair(user_id, recipient_id):
        return _decision_payload(SendDecision(allowed=False, reason=GateReason.BLOCKED))
    match_exists = store.get_match(pair_key(user_id, recipient_id)) is not None
    return _decision_payload(
        gate.can_send(sender, recipient, match_exists),
        remaining=gate.remaining_direct_messages(sender, match_exists),
    )


@router.post("/messages", dependencies=[RL_MESSAGE])
def send_message(
    payload: SendMessageRequest,
    user_id: str = Depends(actor_user_id),
    store: MatchStore = Depends(get_store),
    gate: MessagingGate = Depends(get_gate),
):
    try:
        result = send_direct_message(store, gate, user_id, payload.recipient_id, payload.body)
    except MessageInputError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except UnknownProfileError:
        raise HTTPException(status_code=404, detail="Profile not found")

    if not result.decision.allowed:
        return JSONResponse(status_code=403, content=_decision_payload(result.decision))

    m = result.message
    return JSONResponse(
        status_code=201,
        content={
            "message": {
                "id": m.id,
                "room_id": m.room_id,
                "sender_id": m.sender_id,
                "recipient_id": m.recipient_id,
                "body": m.body,
                "created_at": m.created_at.isoformat() if hasattr(m.created_at, "isoformat") else m.created_at,
            },
            "reason": result.decision.reason.value,
            "counted_direct_message": result.counted,
        },
    )


@router.get("/conversations")
def get_conversations(user_id: str = Depends(actor_user_id), store: MatchStore = Depends(get_store)) -> dict[str, Any]:
    return list_conversations(store, user_id)
