import uuid
from datetime import datetime, timezone
from sqlalchemy import (
    JSON,
    Column,
    String,
    Text,
    Boolean,
    Integer,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Uuid,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship

from .session import Base

# JSONB on Postgres, plain JSON elsewhere (tests run on SQLite)
JSONType = JSON().with_variant(JSONB(), "postgresql")


def uuid4_str():
    return str(uuid.uuid4())


class Task(Base):
    __tablename__ = "tasks"

    id = Column(Uuid(as_uuid=False), primary_key=True, default=uuid4_str)
    user_id = Column(String(128), nullable=False)

    title = Column(Text, nullable=False, default="")
    summary = Column(Text, nullable=True)
    due_date = Column(Date, nullable=True)
    assignee = Column(String(255), nullable=True)
    priority = Column(String(20), nullable=False, default="Medium")
    category = Column(String(100), nullable=False, default="General")
    estimated_minutes = Column(Integer, nullable=False, default=0)
    estimated_time = Column(String(20), nullable=True)  # 5 min | 15 min | 30 min | 1 hr+
    energy_level = Column(String(40), nullable=True)  # High Focus | Low Energy/Admin
    is_weekly_win = Column(Boolean, nullable=False, default=False)
    theme_tag = Column(String(255), nullable=True)

    status = Column(String(20), nullable=False, default="todo")
    original_source = Column(String(100), nullable=True)
    fingerprint = Column(Text, nullable=True)
    fingerprint_version = Column(Integer, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=lambda: datetime.now(timezone.utc))
    archived_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (Index("ix_tasks_user_fingerprint", "user_id", "fingerprint"),)


class WellbeingLog(Base):
    __tablename__ = "wellbeing_logs"

    id = Column(Uuid(as_uuid=False), primary_key=True, default=uuid4_str)
    user_id = Column(String(128), nullable=False)
    mood = Column(String(50), nullable=False, default="Okay")
    energy = Column(String(50), nullable=False, default="Medium")
    summary = Column(Text, nullable=True)
    source = Column(String(100), nullable=True)
    date = Column(Date, nullable=True)
    fingerprint = Column(Text, nullable=True)
    fingerprint_version = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (Index("ix_wellbeing_logs_user_created", "user_id", "created_at"),)


class StaffMember(Base):
    __tablename__ = "staff"

    id = Column(Uuid(as_uuid=False), primary_key=True, default=uuid4_str)
    user_id = Column(String(128), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    initials = Column(String(20), nullable=True)
    role = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    insights = relationship("StaffInsight", back_populates="staff")
    interactions = relationship("StaffInteraction", back_populates="staff", cascade="all, delete-orphan")


class StaffInsight(Base):
    __tablename__ = "staff_insights"

    id = Column(Uuid(as_uuid=False), primary_key=True, default=uuid4_str)
    user_id = Column(String(128), nullable=False)
    staff_id = Column(Uuid(as_uuid=False), ForeignKey("staff.id", ondelete="SET NULL"), nullable=True)
    staff_name = Column(String(255), nullable=True)
    summary = Column(Text, nullable=True)
    date = Column(Date, nullable=True)
    type = Column(String(20), nullable=False, default="neutral")  # praise | concern | neutral
    fingerprint = Column(Text, nullable=True)
    fingerprint_version = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    staff = relationship("StaffMember", back_populates="insights")

    __table_args__ = (Index("ix_staff_insights_user_created", "user_id", "created_at"),)


class StaffInteraction(Base):
    """Interaction log entry for one staff member (challenge/support history)."""
    __tablename__ = "staff_interactions"

    id = Column(Uuid(as_uuid=False), primary_key=True, default=uuid4_str)
    staff_id = Column(Uuid(as_uuid=False), ForeignKey("staff.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(String(128), nullable=False)
    staff_name = Column(String(255), nullable=True)
    date = Column(Date, nullable=True)
    type = Column(String(20), nullable=False)  # Challenge | Support
    interaction_type = Column(String(20), nullable=False)  # CHALLENGE | SUPPORT | ADMIN
    buck_tag = Column(String(20), nullable=True)
    summary = Column(Text, nullable=True)
    source = Column(String(100), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    staff = relationship("StaffMember", back_populates="interactions")


class StrategyNote(Base):
    __tablename__ = "strategy_notes"

    id = Column(Uuid(as_uuid=False), primary_key=True, default=uuid4_str)
    user_id = Column(String(128), nullable=False)
    theme = Column(String(255), nullable=True)
    note = Column(Text, nullable=True)
    linked_to = Column(String(255), nullable=True)
    fingerprint = Column(Text, nullable=True)
    fingerprint_version = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (Index("ix_strategy_notes_user_created", "user_id", "created_at"),)


class UserContext(Base):
    """Per-account context document: calendar events and goals live embedded here."""
    __tablename__ = "user_contexts"

    id = Column(Uuid(as_uuid=False), primary_key=True, default=uuid4_str)
    user_id = Column(String(128), nullable=False, unique=True)
    events = Column(JSONType, nullable=False, default=list)
    goals = Column(JSONType, nullable=False, default=list)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=lambda: datetime.now(timezone.utc),
    )
