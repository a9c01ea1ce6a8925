import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException

from ..deps import actor_user_id, get_store
from ..profiles import DEFAULT_REPORT_REASON, REPORT_CONTEXTS, Report, _now_utc
from ..schemas import BlockRequest, ReportRequest
from ..services.store import MatchStore

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/blocks")
def block_user(
    payload: BlockRequest,
    user_id: str = Depends(actor_user_id),
    store: MatchStore = Depends(get_store),
) -> dict[str, str]:
    blocked_id = payload.blocked_id.strip()
    if not blocked_id or blocked_id == user_id:
        raise HTTPException(status_code=400, detail="blocked_id must be another user")
    store.put_block(user_id, blocked_id)
    logger.info("[safety] block created blocker=%s blocked=%s", user_id, blocked_id)
    return {"status": "ok"}


@router.post("/reports", status_code=201)
def report_user(
    payload: ReportRequest,
    user_id: str = Depends(actor_user_id),
    store: MatchStore = Depends(get_store),
) -> dict[str, str]:
    reported_id = payload.reported_id.strip()
    if not reported_id or reported_id == user_id:
        raise HTTPException(status_code=400, detail="reported_id must be another user")
    context = payload.context.strip().lower()
    if context not in REPORT_CONTEXTS:
        raise HTTPException(status_code=400, detail=f"context must be one of {', '.join(REPORT_CONTEXTS)}")
    if store.get_profile(reported_id) is None:
        raise HTTPException(status_code=404, detail="Profile not found")

    details = payload.details.strip() if payload.details is not None else None
    report = Report(
        id=str(uuid.uuid4()),
        reporter_id=user_id,
        reported_id=reported_id,
        reason=(payload.reason or "").strip() or DEFAULT_REPORT_REASON,
        context=context,
        details=details or None,
        created_at=_now_utc(),
    )
    store.put_report(report)
    logger.info("[safety] report filed reporter=%s reported=%s context=%s", user_id, reported_id, context)
    return {"status": "reported", "report_id": report.id}
