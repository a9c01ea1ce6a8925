from typing import Any

from fastapi import APIRouter, Depends, HTTPException

from ..config import RL_LIKE_LIMIT, RL_PASS_LIMIT, RL_WINDOW_SECONDS
from ..deps import actor_user_id, get_ledger
from ..schemas import LikeRequest, LikeResponse, PassRequest
from ..services.rate_limit import rate_limit_dependency
from ..services.reciprocity import LedgerInputError, ReciprocityLedger


router = APIRouter()

RL_LIKE = rate_limit_dependency("like", RL_LIKE_LIMIT, RL_WINDOW_SECONDS)
RL_PASS = rate_limit_dependency("pass", RL_PASS_LIMIT, RL_WINDOW_SECONDS)


@router.post("/likes", response_model=LikeResponse, dependencies=[RL_LIKE])
def like_user(
    payload: LikeRequest,
    user_id: str = Depends(actor_user_id),
    ledger: ReciprocityLedger = Depends(get_ledger),
) -> LikeResponse:
    try:
        result = ledger.record_like(user_id, payload.liked_id)
    except LedgerInputError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return LikeResponse(is_match=result.is_match)


@router.post("/passes", dependencies=[RL_PASS])
def pass_user(
    payload: PassRequest,
    user_id: str = Depends(actor_user_id),
    ledger: ReciprocityLedger = Depends(get_ledger),
) -> dict[str, str]:
    try:
        ledger.record_pass(user_id, payload.passed_id)
    except LedgerInputError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return {"status": "ok"}


@router.get("/matches")
def list_matches(user_id: str = Depends(actor_user_id), ledger: ReciprocityLedger = Depends(get_ledger)) -> dict[str, Any]:
    matches = ledger.get_matches(user_id)
    return {
        "matches": [
            {
                "id": m.key,
                "user_id": m.other(user_id),
                "created_at": m.created_at,
            }
            for m in matches
        ]
    }
