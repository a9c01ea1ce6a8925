import random
from collections import Counter
from typing import Any

from ..profiles import PREFERENCE_FIELDS, TIER_FREE, TIER_PREMIUM, Profile
from .store import MatchStore

GENDER_OPTIONS = ["male", "female", "non-binary"]
PREFERENCE_PROFILES: dict[str, list[list[str]]] = {
    "male": [["female"], ["male"], ["any"], ["female", "non-binary"]],
    "female": [["male"], ["female"], ["any"], ["male", "non-binary"]],
    "non-binary": [["any"], ["non-binary"], ["male", "female", "non-binary"]],
}
NEIGHBORHOODS = [
    "Mission",
    "Castro",
    "SoMa",
    "Noe Valley",
    "Sunset",
    "Richmond",
    "Nob Hill",
    "Hayes Valley",
]


def _slider(rng: random.Random, center: float, spread: float = 25.0) -> int:
    return max(0, min(100, int(round(rng.gauss(center, spread)))))


def generate_profiles(n_users: int, seed: int = 42, premium_ratio: float = 0.1) -> list[Profile]:
    rng = random.Random(seed)
    profiles: list[Profile] = []
    for i in range(n_users):
        gender = rng.choice(GENDER_OPTIONS)
        preferences: dict[str, Any] = {name: _slider(rng, rng.choice([25, 50, 75])) for name in PREFERENCE_FIELDS}
        # Not everyone answers the lifestyle questions.
        for optional in ("smoking", "pets"):
            if rng.random() < 0.2:
                preferences.pop(optional)
        profiles.append(
            Profile(
                id=f"seed-{seed}-{i:04d}",
                display_name=f"Roomie {i + 1}",
                gender=gender,
                gender_preference=list(rng.choice(PREFERENCE_PROFILES[gender])) if rng.random() < 0.8 else [],
                neighborhoods=rng.sample(NEIGHBORHOODS, k=rng.randint(0, 3)),
                preferences=preferences,
                open_to_non_matches=rng.random() < 0.3,
                subscription_tier=TIER_PREMIUM if rng.random() < premium_ratio else TIER_FREE,
            )
        )
    return profiles


def seed_profiles(store: MatchStore, n_users: int = 50, seed: int = 42) -> dict[str, Any]:
    profiles = generate_profiles(n_users, seed=seed)
    for profile in profiles:
        store.put_profile(profile)
    tiers = Counter(p.subscription_tier for p in profiles)
    return {
        "users_created": len(profiles),
        "premium_users": tiers.get(TIER_PREMIUM, 0),
        "open_to_non_matches": sum(1 for p in profiles if p.open_to_non_matches),
    }
