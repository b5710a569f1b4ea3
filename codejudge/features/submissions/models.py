from sqlalchemy import Column, String, Text, Integer, Float, DateTime, ForeignKey, Index
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func, text
import uuid
from codejudge.db.base import Base


class Submission(Base):
    __tablename__ = "submissions"
    __table_args__ = (
        Index("ix_submissions_user_problem", "user_id", "problem_id"),
        Index("ix_submissions_problem_status", "problem_id", "status"),
        {"extend_existing": True},
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, server_default=text("gen_random_uuid()"))
    user_id = Column(UUID(as_uuid=True), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False)
    problem_id = Column(UUID(as_uuid=True), ForeignKey("problems.id", ondelete="CASCADE"), nullable=False)
    code = Column(Text, nullable=False)
    language = Column(String(20), nullable=False)
    status = Column(String(32), nullable=False, server_default="pending")
    runtime_ms = Column(Integer, nullable=False, server_default="0")
    runtime_seconds = Column(Float, nullable=False, server_default="0")
    memory_kb = Column(Integer, nullable=False, server_default="0")
    tests_passed = Column(Integer, nullable=False, server_default="0")
    tests_total = Column(Integer, nullable=False, server_default="0")
    error_message = Column(Text, nullable=False, server_default="")
    notes_text = Column(Text, nullable=False, server_default="")
    notes_time_taken = Column(Float, nullable=False, server_default="0")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    finalized_at = Column(DateTime(timezone=True), nullable=True)

    def __repr__(self):
        return f"<Submission(id={self.id}, status={self.status})>"
