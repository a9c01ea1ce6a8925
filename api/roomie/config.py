import json
import os
from typing import Any

FREE_TIER_DIRECT_MESSAGE_LIMIT = int(os.getenv("FREE_TIER_DIRECT_MESSAGE_LIMIT", "1"))
CANDIDATE_PAGE_SIZE = int(os.getenv("CANDIDATE_PAGE_SIZE", "10"))
MESSAGE_MAX_LENGTH = int(os.getenv("MESSAGE_MAX_LENGTH", "2000"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
DEV_MODE = os.getenv("DEV_MODE", "false").lower() == "true"

DEFAULT_SCORING_CONFIG: dict[str, Any] = {
    "NEIGHBORHOOD_BONUS": float(os.getenv("NEIGHBORHOOD_BONUS", "20")),
    "GENDER_MATCH_BONUS": float(os.getenv("GENDER_MATCH_BONUS", "15")),
    "TIER_FULL_BELOW": float(os.getenv("TIER_FULL_BELOW", "33")),
    "TIER_HALF_BELOW": float(os.getenv("TIER_HALF_BELOW", "66")),
}

if os.getenv("SCORING_CONFIG_JSON"):
    try:
        DEFAULT_SCORING_CONFIG.update(json.loads(os.getenv("SCORING_CONFIG_JSON", "{}")))
    except json.JSONDecodeError:
        pass

RL_LIKE_LIMIT = int(os.getenv("RL_LIKE_LIMIT", "120"))
RL_PASS_LIMIT = int(os.getenv("RL_PASS_LIMIT", "120"))
RL_MESSAGE_LIMIT = int(os.getenv("RL_MESSAGE_LIMIT", "60"))
RL_WINDOW_SECONDS = int(os.getenv("RL_WINDOW_SECONDS", "60"))
