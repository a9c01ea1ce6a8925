from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Iterable

from ..config import CANDIDATE_PAGE_SIZE, DEFAULT_SCORING_CONFIG
from ..profiles import Profile

DISTANCE_FIELDS = ("cleanliness", "noiseLevel", "guests", "sleepSchedule", "budget", "leaseLength")
# Tiered fields only count when both sides set them; the null fallbacks differ.
TIERED_FIELD_DEFAULTS = {"smoking": 0.0, "pets": 50.0}
MIDPOINT = 50.0


@dataclass
class ScoredCandidate:
    profile: Profile
    score: int


def _to_float(value: Any, default: float = MIDPOINT) -> float:
    if value is None or isinstance(value, bool):
        return float(default)
    try:
        return float(value)
    except (TypeError, ValueError):
        return float(default)


def _normalize_gender(value: Any) -> str | None:
    if value is None:
        return None
    v = str(value).strip().lower()
    return v or None


def _parse_preference(values: Any) -> set[str]:
    if not isinstance(values, (list, tuple, set)):
        return set()
    out: set[str] = set()
    for item in values:
        g = _normalize_gender(item)
        if g:
            out.add(g)
    return out


def _accepts(preference: set[str], gender: str) -> bool:
    return "any" in preference or gender in preference


def gender_gate(a: Profile, b: Profile) -> bool | None:
    """Mutual gender preference check.

    Returns None when the check does not apply (either side lacks a gender or a
    stated preference), otherwise whether both sides accept each other.
    """
    a_gender = _normalize_gender(a.gender)
    b_gender = _normalize_gender(b.gender)
    a_pref = _parse_preference(a.gender_preference)
    b_pref = _parse_preference(b.gender_preference)
    if not a_pref or not b_pref or not a_gender or not b_gender:
        return None
    return _accepts(b_pref, a_gender) and _accepts(a_pref, b_gender)


def _distance_score(a: float, b: float) -> float:
    return max(0.0, 100.0 - abs(a - b) * 2)


def _tiered_score(a: float, b: float, cfg: dict[str, Any]) -> float:
    diff = abs(a - b)
    if diff < float(cfg["TIER_FULL_BELOW"]):
        return 100.0
    if diff < float(cfg["TIER_HALF_BELOW"]):
        return 50.0
    return 0.0


def _neighborhoods_overlap(a: Profile, b: Profile) -> bool | None:
    if not a.neighborhoods or not b.neighborhoods:
        return None
    return bool(set(a.neighborhoods) & set(b.neighborhoods))


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def compatibility_report(a: Profile, b: Profile, cfg: dict[str, Any] | None = None) -> dict[str, Any]:
    cfg = {**DEFAULT_SCORING_CONFIG, **(cfg or {})}

    if a.preferences is None or b.preferences is None:
        return {
            "score_total": 0,
            "score_breakdown": {"reason": "missing_preferences", "components": {}, "factors": 0},
        }

    gate = gender_gate(a, b)
    if gate is False:
        return {
            "score_total": 0,
            "score_breakdown": {"reason": "gender_dealbreaker", "gender_gate": False, "components": {}, "factors": 0},
        }

    prefs_a = a.preferences
    prefs_b = b.preferences
    components: dict[str, float] = {}

    for name in DISTANCE_FIELDS:
        components[name] = _distance_score(_to_float(prefs_a.get(name)), _to_float(prefs_b.get(name)))

    for name, fallback in TIERED_FIELD_DEFAULTS.items():
        if name in prefs_a and name in prefs_b:
            components[name] = _tiered_score(
                _to_float(prefs_a.get(name), fallback),
                _to_float(prefs_b.get(name), fallback),
                cfg,
            )

    if _neighborhoods_overlap(a, b):
        components["neighborhood_bonus"] = float(cfg["NEIGHBORHOOD_BONUS"])

    if gate is True:
        components["gender_bonus"] = float(cfg["GENDER_MATCH_BONUS"])

    factors = len(components)
    total = _round_half_up(sum(components.values()) / factors) if factors else 0
    return {
        "score_total": max(0, min(100, total)),
        "score_breakdown": {
            "reason": None,
            "gender_gate": gate,
            "components": components,
            "factors": factors,
        },
    }


def compute_compatibility(a: Profile, b: Profile, cfg: dict[str, Any] | None = None) -> int:
    return compatibility_report(a, b, cfg)["score_total"]


def rank_candidates(
    viewer: Profile,
    profiles: Iterable[Profile],
    *,
    liked_ids: Iterable[str] = (),
    passed_ids: Iterable[str] = (),
    blocked_ids: Iterable[str] = (),
    limit: int = CANDIDATE_PAGE_SIZE,
    cfg: dict[str, Any] | None = None,
) -> list[ScoredCandidate]:
    seen = set(liked_ids) | set(passed_ids) | set(blocked_ids)
    scored: list[ScoredCandidate] = []
    for profile in profiles:
        if profile.id == viewer.id or profile.id in seen or not profile.profile_complete:
            continue
        scored.append(ScoredCandidate(profile=profile, score=compute_compatibility(viewer, profile, cfg)))
    scored.sort(key=lambda c: (-c.score, c.profile.id))
    return scored[: max(0, limit)]
