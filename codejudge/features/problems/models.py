from sqlalchemy import Column, String, Text, Boolean, DateTime
from sqlalchemy.dialects.postgresql import UUID, JSONB
from sqlalchemy.sql import func
import uuid
from codejudge.db.base import Base


class Problem(Base):
    """Problem catalogue row. Test cases are stored in evaluation order."""
    __tablename__ = "problems"
    __table_args__ = {"extend_existing": True}

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    difficulty = Column(String(16), nullable=False)  # easy | medium | hard
    visible_test_cases = Column(JSONB, nullable=False, server_default="[]")
    hidden_test_cases = Column(JSONB, nullable=False, server_default="[]")
    start_code = Column(JSONB, nullable=False, server_default="[]")
    is_active = Column(Boolean, nullable=False, server_default="true")
    is_premium = Column(Boolean, nullable=False, server_default="false")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<Problem(id={self.id}, difficulty={self.difficulty})>"
