from sqlalchemy import Column, String, Text, Integer, Date, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func, text
import uuid
from codejudge.db.base import Base


class Profile(Base):
    """Subset of the profile row the grading core reads and writes."""
    __tablename__ = "profiles"
    __table_args__ = {"extend_existing": True}

    id = Column(UUID(as_uuid=True), primary_key=True)  # Supabase auth user id
    email = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, server_default="user")
    subscription_type = Column(String(20), nullable=False, server_default="free")
    streak_current = Column(Integer, nullable=False, server_default="0")
    streak_longest = Column(Integer, nullable=False, server_default="0")
    streak_last_solved_date = Column(Date, nullable=True)


class SolvedProblem(Base):
    __tablename__ = "solved_problems"
    __table_args__ = (
        # Guard for "add to set if absent"
        UniqueConstraint("user_id", "problem_id", name="uq_solved_user_problem"),
        {"extend_existing": True},
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, server_default=text("gen_random_uuid()"))
    user_id = Column(UUID(as_uuid=True), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    problem_id = Column(UUID(as_uuid=True), ForeignKey("problems.id", ondelete="CASCADE"), nullable=False)
    difficulty = Column(String(16), nullable=True)
    solved_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


class UserBadge(Base):
    __tablename__ = "user_badges"
    __table_args__ = (
        UniqueConstraint("user_id", "name", name="uq_user_badge_name"),
        {"extend_existing": True},
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, server_default=text("gen_random_uuid()"))
    user_id = Column(UUID(as_uuid=True), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(64), nullable=False)
    description = Column(Text, nullable=True)
    icon_url = Column(Text, nullable=True)
    earned_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
