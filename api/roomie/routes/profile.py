from typing import Any

from fastapi import APIRouter, Depends, HTTPException

from ..config import CANDIDATE_PAGE_SIZE
from ..deps import actor_user_id, get_store
from ..profiles import Profile
from ..schemas import ProfileInput
from ..services.compatibility import compatibility_report, rank_candidates
from ..services.store import MatchStore

router = APIRouter()


def public_profile(profile: Profile) -> dict[str, Any]:
    return {
        "id": profile.id,
        "display_name": profile.display_name,
        "gender": profile.gender,
        "gender_preference": list(profile.gender_preference),
        "neighborhoods": list(profile.neighborhoods),
        "preferences": profile.preferences,
        "open_to_non_matches": profile.open_to_non_matches,
    }


def _require_profile(store: MatchStore, user_id: str) -> Profile:
    profile = store.get_profile(user_id)
    if profile is None:
        raise HTTPException(status_code=404, detail="Profile not found")
    return profile


@router.put("/profiles/me")
def upsert_my_profile(
    payload: ProfileInput,
    user_id: str = Depends(actor_user_id),
    store: MatchStore = Depends(get_store),
) -> dict[str, Any]:
    # exclude_unset keeps "never answered" apart from an explicit null slider.
    preferences = payload.preferences.model_dump(exclude_unset=True) if payload.preferences is not None else None
    store.put_profile(
        Profile(
            id=user_id,
            display_name=payload.display_name,
            gender=payload.gender,
            gender_preference=payload.gender_preference,
            neighborhoods=payload.neighborhoods,
            preferences=preferences,
            open_to_non_matches=payload.open_to_non_matches,
            profile_complete=payload.profile_complete,
        )
    )
    profile = _require_profile(store, user_id)
    return {
        "profile": {
            **public_profile(profile),
            "subscription_tier": profile.subscription_tier,
            "direct_messages_sent": profile.direct_messages_sent,
        }
    }


@router.get("/profiles/{user_id}")
def get_profile(user_id: str, store: MatchStore = Depends(get_store), _: str = Depends(actor_user_id)) -> dict[str, Any]:
    return {"profile": public_profile(_require_profile(store, user_id))}


@router.get("/compatibility/{other_id}")
def get_compatibility(
    other_id: str,
    user_id: str = Depends(actor_user_id),
    store: MatchStore = Depends(get_store),
) -> dict[str, Any]:
    viewer = _require_profile(store, user_id)
    other = _require_profile(store, other_id)
    report = compatibility_report(viewer, other)
    return {"user_id": other_id, "compatibility": report["score_total"], "breakdown": report["score_breakdown"]}


@router.get("/candidates")
def list_candidates(
    limit: int = CANDIDATE_PAGE_SIZE,
    user_id: str = Depends(actor_user_id),
    store: MatchStore = Depends(get_store),
) -> dict[str, Any]:
    viewer = _require_profile(store, user_id)
    ranked = rank_candidates(
        viewer,
        store.list_profiles(exclude_user_id=user_id),
        liked_ids=[r.liked_id for r in store.get_likes(user_id)],
        passed_ids=[r.passed_id for r in store.get_passes(user_id)],
        blocked_ids=store.get_blocked_ids(user_id),
        limit=max(1, min(limit, 50)),
    )
    return {"candidates": [{"profile": public_profile(c.profile), "compatibility": c.score} for c in ranked]}
