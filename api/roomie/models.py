from sqlalchemy import JSON, Boolean, Column, DateTime, Index, Integer, String, Text, UniqueConstraint, func
from .database import Base


class UserProfile(Base):
    __tablename__ = "user_profile"

    id = Column(String, primary_key=True)
    display_name = Column(String, nullable=True)
    gender = Column(String, nullable=True)
    gender_preference = Column(JSON, nullable=False, default=list)
    neighborhoods = Column(JSON, nullable=False, default=list)
    preferences = Column(JSON, nullable=True)
    open_to_non_matches = Column(Boolean, nullable=False, default=False)
    subscription_tier = Column(String, nullable=False, default="free")
    direct_messages_sent = Column(Integer, nullable=False, default=0)
    profile_complete = Column(Boolean, nullable=False, default=False)
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class UserLike(Base):
    __tablename__ = "user_like"

    id = Column(String, primary_key=True)
    liker_id = Column(String, nullable=False)
    liked_id = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (
        UniqueConstraint("liker_id", "liked_id", name="uq_like_pair"),
        Index("idx_user_like_liked_id", "liked_id"),
    )


class UserPass(Base):
    __tablename__ = "user_pass"

    id = Column(String, primary_key=True)
    passer_id = Column(String, nullable=False)
    passed_id = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (UniqueConstraint("passer_id", "passed_id", name="uq_pass_pair"),)


class UserMatch(Base):
    __tablename__ = "user_match"

    # profiles.pair_key of the sorted pair; the primary key is what makes creation idempotent.
    id = Column(String, primary_key=True)
    user_id_1 = Column(String, nullable=False, index=True)
    user_id_2 = Column(String, nullable=False, index=True)
    status = Column(String, nullable=False, default="matched")
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (UniqueConstraint("user_id_1", "user_id_2", name="uq_match_pair"),)


class UserBlock(Base):
    __tablename__ = "user_block"

    id = Column(String, primary_key=True)
    blocker_id = Column(String, nullable=False)
    blocked_id = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (UniqueConstraint("blocker_id", "blocked_id", name="uq_block_pair"),)


class ChatMessage(Base):
    __tablename__ = "chat_message"

    id = Column(String, primary_key=True)
    room_id = Column(String, nullable=False)
    sender_id = Column(String, nullable=False)
    recipient_id = Column(String, nullable=False)
    body = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (Index("idx_chat_message_room_created", "room_id", "created_at"),)


class UserReport(Base):
    __tablename__ = "user_report"

    id = Column(String, primary_key=True)
    reporter_id = Column(String, nullable=False, index=True)
    reported_id = Column(String, nullable=False, index=True)
    reason = Column(String, nullable=False)
    details = Column(Text, nullable=True)
    context = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
