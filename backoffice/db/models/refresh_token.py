from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, func

from backoffice.db.base import Base


class RefreshToken(Base):
    """One live refresh token per user; rows are replaced, never appended."""

    __tablename__ = "refresh_tokens"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True
    )
    refresh_token = Column(String(128), nullable=False, unique=True, index=True)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
