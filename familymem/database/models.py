"""
SQLAlchemy models for the local memory store
"""

from datetime import datetime, timezone

from sqlalchemy import DateTime, Index, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class StoredMemory(Base):
    """One memory owned by a user and an AI family member"""

    __tablename__ = "memories"

    memory_id: Mapped[str] = mapped_column(String(255), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(255), nullable=False)
    family: Mapped[str] = mapped_column(String(255), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    memory_type: Mapped[str] = mapped_column(String(50), default="custom")
    source: Mapped[str] = mapped_column(String(100), default="familymem")
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow)

    __table_args__ = (
        Index("idx_memories_owner", "user_id", "family"),
        Index("idx_memories_created", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<StoredMemory {self.memory_id} user={self.user_id} family={self.family}>"
