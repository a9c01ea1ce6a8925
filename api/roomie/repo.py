import json
import logging
import uuid
from typing import Any

from sqlalchemy import text

from roomie.database import SessionLocal
from roomie.profiles import ChatMessage, LikeRecord, Match, PassRecord, Profile, Report, _now_utc, canonical_pair

logger = logging.getLogger(__name__)

_PROFILE_COLUMNS = """
    id, display_name, gender, gender_preference, neighborhoods, preferences,
    open_to_non_matches, subscription_tier, direct_messages_sent, profile_complete
"""


def _load_json(value: Any, default: Any) -> Any:
    if value is None:
        return default
    if isinstance(value, (bytes, str)):
        try:
            return json.loads(value)
        except json.JSONDecodeError:
            return default
    return value


def _profile_from_row(row: Any) -> Profile:
    data = dict(row)
    data["gender_preference"] = _load_json(data.get("gender_preference"), [])
    data["neighborhoods"] = _load_json(data.get("neighborhoods"), [])
    data["preferences"] = _load_json(data.get("preferences"), None)
    return Profile.from_mapping(data)


class SqlMatchStore:
    """MatchStore over the relational schema in ``roomie.models``.

    Like, pass and match rows are written with ``ON CONFLICT DO NOTHING`` on
    their unique pair keys, so two concurrent writers for the same pair leave
    exactly one row behind. The profile upsert leaves ``subscription_tier`` and
    ``direct_messages_sent`` alone on existing rows.
    """

    def __init__(self, session_factory=None) -> None:
        self.session_factory = session_factory or SessionLocal

    def get_profile(self, user_id: str) -> Profile | None:
        with self.session_factory() as db:
            row = db.execute(
                text(f"SELECT {_PROFILE_COLUMNS} FROM user_profile WHERE id=:id"),
                {"id": user_id},
            ).mappings().first()
        return _profile_from_row(row) if row else None

    def put_profile(self, profile: Profile) -> None:
        data = profile.to_mapping()
        with self.session_factory() as db:
            db.execute(
                text(
                    """
                    INSERT INTO user_profile (
                      id, display_name, gender, gender_preference, neighborhoods, preferences,
                      open_to_non_matches, subscription_tier, direct_messages_sent, profile_complete, updated_at
                    )
                    VALUES (
                      :id, :display_name, :gender, :gender_preference, :neighborhoods, :preferences,
                      :open_to_non_matches, :subscription_tier, :direct_messages_sent, :profile_complete, :updated_at
                    )
                    ON CONFLICT (id)
                    DO UPDATE SET
                      display_name = EXCLUDED.display_name,
                      gender = EXCLUDED.gender,
                      gender_preference = EXCLUDED.gender_preference,
                      neighborhoods = EXCLUDED.neighborhoods,
                      preferences = EXCLUDED.preferences,
                      open_to_non_matches = EXCLUDED.open_to_non_matches,
                      profile_complete = EXCLUDED.profile_complete,
                      updated_at = EXCLUDED.updated_at
                    """
                ),
                {
                    **data,
                    "gender_preference": json.dumps(data["gender_preference"]),
                    "neighborhoods": json.dumps(data["neighborhoods"]),
                    "preferences": json.dumps(data["preferences"]) if data["preferences"] is not None else None,
                    "updated_at": _now_utc().isoformat(),
                },
            )
            db.commit()

    def list_profiles(self, exclude_user_id: str | None = None) -> list[Profile]:
        with self.session_factory() as db:
            rows = db.execute(
                text(
                    f"""
                    SELECT {_PROFILE_COLUMNS}
                    FROM user_profile
                    WHERE profile_complete = :complete
                      AND (:exclude_id IS NULL OR id <> :exclude_id)
                    ORDER BY id
                    """
                ),
                {"complete": True, "exclude_id": exclude_user_id},
            ).mappings().all()
        return [_profile_from_row(r) for r in rows]

    def put_like(self, liker_id: str, liked_id: str) -> None:
        with self.session_factory() as db:
            db.execute(
                text(
                    """
                    INSERT INTO user_like (id, liker_id, liked_id, created_at)
                    VALUES (:id, :liker_id, :liked_id, :created_at)
                    ON CONFLICT (liker_id, liked_id) DO NOTHING
                    """
                ),
                {"id": str(uuid.uuid4()), "liker_id": liker_id, "liked_id": liked_id, "created_at": _now_utc().isoformat()},
            )
            db.commit()

    def has_like(self, liker_id: str, liked_id: str) -> bool:
        with self.session_factory() as db:
            row = db.execute(
                text("SELECT 1 FROM user_like WHERE liker_id=:liker_id AND liked_id=:liked_id LIMIT 1"),
                {"liker_id": liker_id, "liked_id": liked_id},
            ).first()
        return bool(row)

    def get_likes(self, user_id: str) -> list[LikeRecord]:
        with self.session_factory() as db:
            rows = db.execute(
                text(
                    """
                    SELECT liker_id, liked_id, created_at
                    FROM user_like
                    WHERE liker_id=:user_id
                    ORDER BY created_at ASC
                    """
                ),
                {"user_id": user_id},
            ).mappings().all()
        return [LikeRecord(r["liker_id"], r["liked_id"], r["created_at"]) for r in rows]

    def put_pass(self, passer_id: str, passed_id: str) -> None:
        with self.session_factory() as db:
            db.execute(
                text(
                    """
                    INSERT INTO user_pass (id, passer_id, passed_id, created_at)
                    VALUES (:id, :passer_id, :passed_id, :created_at)
                    ON CONFLICT (passer_id, passed_id) DO NOTHING
                    """
                ),
                {"id": str(uuid.uuid4()), "passer_id": passer_id, "passed_id": passed_id, "created_at": _now_utc().isoformat()},
            )
            db.commit()

    def has_pass(self, passer_id: str, passed_id: str) -> bool:
        with self.session_factory() as db:
            row = db.execute(
                text("SELECT 1 FROM user_pass WHERE passer_id=:passer_id AND passed_id=:passed_id LIMIT 1"),
                {"passer_id": passer_id, "passed_id": passed_id},
            ).first()
        return bool(row)

    def get_passes(self, user_id: str) -> list[PassRecord]:
        with self.session_factory() as db:
            rows = db.execute(
                text(
                    """
                    SELECT passer_id, passed_id, created_at
                    FROM user_pass
                    WHERE passer_id=:user_id
                    ORDER BY created_at ASC
                    """
                ),
                {"user_id": user_id},
            ).mappings().all()
        return [PassRecord(r["passer_id"], r["passed_id"], r["created_at"]) for r in rows]

    def put_match(self, pair_key: str, user_id_1: str, user_id_2: str) -> None:
        a, b = canonical_pair(user_id_1, user_id_2)
        with self.session_factory() as db:
            result = db.execute(
                text(
                    """
                    INSERT INTO user_match (id, user_id_1, user_id_2, status, created_at)
                    VALUES (:id, :a, :b, 'matched', :created_at)
                    ON CONFLICT DO NOTHING
                    """
                ),
                {"id": pair_key, "a": a, "b": b, "created_at": _now_utc().isoformat()},
            )
            db.commit()
        if not result.rowcount:
            logger.debug("[store] match %s already exists", pair_key)

    def get_match(self, pair_key: str) -> Match | None:
        with self.session_factory() as db:
            row = db.execute(
                text("SELECT user_id_1, user_id_2, created_at FROM user_match WHERE id=:id"),
                {"id": pair_key},
            ).mappings().first()
        return Match(row["user_id_1"], row["user_id_2"], row["created_at"]) if row else None

    def get_matches_for_user(self, user_id: str) -> list[Match]:
        with self.session_factory() as db:
            rows = db.execute(
                text(
                    """
                    SELECT user_id_1, user_id_2, created_at
                    FROM user_match
                    WHERE user_id_1=:user_id OR user_id_2=:user_id
                    ORDER BY created_at DESC
                    """
                ),
                {"user_id": user_id},
            ).mappings().all()
        return [Match(r["user_id_1"], r["user_id_2"], r["created_at"]) for r in rows]

    def increment_direct_message_count(self, user_id: str, limit: int | None = None) -> bool:
        with self.session_factory() as db:
            result = db.execute(
                text(
                    """
                    UPDATE user_profile
                    SET direct_messages_sent = direct_messages_sent + 1
                    WHERE id=:id
                      AND (:limit IS NULL OR direct_messages_sent < :limit)
                    """
                ),
                {"id": user_id, "limit": limit},
            )
            db.commit()
        return bool(result.rowcount)

    def put_block(self, blocker_id: str, blocked_id: str) -> None:
        with self.session_factory() as db:
            db.execute(
                text(
                    """
                    INSERT INTO user_block (id, blocker_id, blocked_id, created_at)
                    VALUES (:id, :blocker_id, :blocked_id, :created_at)
                    ON CONFLICT (blocker_id, blocked_id) DO NOTHING
                    """
                ),
                {"id": str(uuid.uuid4()), "blocker_id": blocker_id, "blocked_id": blocked_id, "created_at": _now_utc().isoformat()},
            )
            db.commit()

    def is_blocked_pair(self, user_a: str, user_b: str) -> bool:
        with self.session_factory() as db:
            row = db.execute(
                text(
                    """
                    SELECT 1
                    FROM user_block
                    WHERE (blocker_id=:a AND blocked_id=:b)
                       OR (blocker_id=:b AND blocked_id=:a)
                    LIMIT 1
                    """
                ),
                {"a": user_a, "b": user_b},
            ).first()
        return bool(row)

    def get_blocked_ids(self, user_id: str) -> set[str]:
        with self.session_factory() as db:
            rows = db.execute(
                text(
                    """
                    SELECT blocker_id, blocked_id
                    FROM user_block
                    WHERE blocker_id=:user_id OR blocked_id=:user_id
                    """
                ),
                {"user_id": user_id},
            ).mappings().all()
        return {str(r["blocked_id"]) if r["blocker_id"] == user_id else str(r["blocker_id"]) for r in rows}

    def put_report(self, report: Report) -> None:
        created_at = report.created_at or _now_utc()
        with self.session_factory() as db:
            db.execute(
                text(
                    """
                    INSERT INTO user_report (id, reporter_id, reported_id, reason, details, context, created_at)
                    VALUES (:id, :reporter_id, :reported_id, :reason, :details, :context, :created_at)
                    """
                ),
                {
                    "id": report.id,
                    "reporter_id": report.reporter_id,
                    "reported_id": report.reported_id,
                    "reason": report.reason,
                    "details": report.details,
                    "context": report.context,
                    "created_at": created_at.isoformat() if hasattr(created_at, "isoformat") else created_at,
                },
            )
            db.commit()

    def get_reports(self, reported_id: str) -> list[Report]:
        with self.session_factory() as db:
            rows = db.execute(
                text(
                    """
                    SELECT id, reporter_id, reported_id, reason, details, context, created_at
                    FROM user_report
                    WHERE reported_id=:reported_id
                    ORDER BY created_at ASC
                    """
                ),
                {"reported_id": reported_id},
            ).mappings().all()
        return [Report(**dict(r)) for r in rows]

    def put_message(self, message: ChatMessage) -> None:
        created_at = message.created_at or _now_utc()
        with self.session_factory() as db:
            db.execute(
                text(
                    """
                    INSERT INTO chat_message (id, room_id, sender_id, recipient_id, body, created_at)
                    VALUES (:id, :room_id, :sender_id, :recipient_id, :body, :created_at)
                    """
                ),
                {
                    "id": message.id,
                    "room_id": message.room_id,
                    "sender_id": message.sender_id,
                    "recipient_id": message.recipient_id,
                    "body": message.body,
                    "created_at": created_at.isoformat() if hasattr(created_at, "isoformat") else created_at,
                },
            )
            db.commit()

    def get_messages(self, room_id: str) -> list[ChatMessage]:
        with self.session_factory() as db:
            rows = db.execute(
                text(
                    """
                    SELECT id, room_id, sender_id, recipient_id, body, created_at
                    FROM chat_message
                    WHERE room_id=:room_id
                    ORDER BY created_at ASC
                    """
                ),
                {"room_id": room_id},
            ).mappings().all()
        return [ChatMessage(**dict(r)) for r in rows]

    def list_rooms_for_user(self, user_id: str) -> list[str]:
        with self.session_factory() as db:
            rows = db.execute(
                text(
                    """
                    SELECT DISTINCT room_id
                    FROM chat_message
                    WHERE sender_id=:user_id OR recipient_id=:user_id
                    """
                ),
                {"user_id": user_id},
            ).all()
        return [str(r[0]) for r in rows]
