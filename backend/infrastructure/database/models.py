from datetime import datetime, timezone

from sqlalchemy import JSON, Column, DateTime, Index, Integer, String, Text

from .connection import Base


class MemoryRecord(Base):
    """
    A memory document.

    Column names (user_id, username, image_url, likes, likedBy, created_at)
    follow the layout of existing stored data; the domain model uses the
    canonical names.
    """

    __tablename__ = "memories"
    __table_args__ = (
        Index("ix_memories_created_at", "created_at"),
        Index("ix_memories_user_id", "user_id"),
        Index("ix_memories_username", "username"),
    )

    id = Column(String(32), primary_key=True)
    user_id = Column(Integer, nullable=False)
    username = Column(String, nullable=False)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=False, default="")
    image_url = Column(Text, nullable=False)  # URL or base64 data URI
    likes = Column(Integer, nullable=False, default=0)
    liked_by = Column("likedBy", JSON, nullable=False, default=list)
    # List of {"userId", "username", "text", "created_at"} in arrival order
    comments = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
