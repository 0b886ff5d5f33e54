from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, Index, Integer, String, Text, UniqueConstraint, func
from .database import Base


class ParticipantProfile(Base):
    __tablename__ = "participant_profile"

    # Surrogate id doubles as discovery order for ranking tie-breaks.
    id = Column(Integer, primary_key=True, autoincrement=True)
    identity = Column(String(128), nullable=False, unique=True)
    display_name = Column(String(80), nullable=False)
    contact_handle = Column(String(50), nullable=True)
    gender = Column(String(2), nullable=False)
    preference = Column(String(2), nullable=False)
    course_code = Column(String(40), nullable=False)
    study_year = Column(String(16), nullable=False)
    romantic = Column(Integer, nullable=False, default=0)
    adventurous = Column(Integer, nullable=False, default=0)
    intellectual = Column(Integer, nullable=False, default=0)
    creative = Column(Integer, nullable=False, default=0)
    chill = Column(Integer, nullable=False, default=0)
    social = Column(Integer, nullable=False, default=0)
    ambitious = Column(Integer, nullable=False, default=0)
    answers = Column(JSON, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class MatchEdge(Base):
    __tablename__ = "match_edge"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_a_id = Column(String(128), nullable=False)
    user_b_id = Column(String(128), nullable=False)
    score_ab = Column(Integer, nullable=False)
    score_ba = Column(Integer, nullable=False)
    mutual_top3 = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (
        UniqueConstraint("user_a_id", "user_b_id", name="uq_match_edge_pair"),
        Index("idx_match_edge_user_b", "user_b_id"),
    )


class TribeGroup(Base):
    __tablename__ = "tribe_group"

    id = Column(String(36), primary_key=True)
    group_key = Column(String(32), nullable=False, unique=True)
    label = Column(String(80), nullable=False)
    description = Column(Text, nullable=False)
    sort_order = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class GroupThread(Base):
    __tablename__ = "group_thread"

    id = Column(String(36), primary_key=True)
    group_id = Column(String(36), ForeignKey("tribe_group.id"), nullable=False, unique=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class GroupMembership(Base):
    __tablename__ = "group_membership"

    identity = Column(String(128), primary_key=True)
    group_id = Column(String(36), ForeignKey("tribe_group.id"), nullable=False)
    group_thread_id = Column(String(36), ForeignKey("group_thread.id"), nullable=False)
    alias = Column(String(80), nullable=False)
    joined_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (Index("idx_group_membership_group", "group_id"),)


class ChatThread(Base):
    __tablename__ = "chat_thread"

    id = Column(String(36), primary_key=True)
    user_a_id = Column(String(128), nullable=False)
    user_b_id = Column(String(128), nullable=False)
    user_a_alias = Column(String(80), nullable=False)
    user_b_alias = Column(String(80), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    revealed_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        UniqueConstraint("user_a_id", "user_b_id", name="uq_chat_thread_pair"),
        Index("idx_chat_thread_user_b", "user_b_id"),
    )


class ChatMessage(Base):
    __tablename__ = "chat_message"

    id = Column(Integer, primary_key=True, autoincrement=True)
    thread_id = Column(String(36), ForeignKey("chat_thread.id"), nullable=False)
    sender_user_id = Column(String(128), nullable=False)
    body = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (Index("idx_chat_message_thread", "thread_id", "id"),)


class GroupMessage(Base):
    __tablename__ = "group_message"

    id = Column(Integer, primary_key=True, autoincrement=True)
    thread_id = Column(String(36), ForeignKey("group_thread.id"), nullable=False)
    sender_user_id = Column(String(128), nullable=False)
    sender_alias = Column(String(80), nullable=False)
    body = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (Index("idx_group_message_thread", "thread_id", "id"),)


class AppSetting(Base):
    __tablename__ = "app_setting"

    id = Column(Integer, primary_key=True)
    reveal_enabled = Column(Boolean, nullable=False, default=False)
    reveal_toggled_at = Column(DateTime(timezone=True), nullable=True)
    reveal_version = Column(Integer, nullable=False, default=0)
    profile_generation = Column(Integer, nullable=False, default=0)


class ProfileEvent(Base):
    __tablename__ = "profile_event"

    id = Column(String(36), primary_key=True)
    user_id = Column(String(128), nullable=True)
    event_type = Column(String(64), nullable=False)
    payload = Column(JSON, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (Index("idx_profile_event_user", "user_id"),)


class ChatEvent(Base):
    __tablename__ = "chat_event"

    id = Column(String(36), primary_key=True)
    user_id = Column(String(128), nullable=True)
    thread_id = Column(String(36), nullable=True)
    event_type = Column(String(64), nullable=False)
    payload = Column(JSON, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
