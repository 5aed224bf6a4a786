"""Revoked access tokens, keyed by JWT ID."""

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.sql import func

from db.database import Base


class TokenBlacklist(Base):
    """
    A row here means the access token with this ``jti`` was revoked
    (logout) before its natural expiry and must be rejected.
    """

    __tablename__ = "token_blacklist"

    id = Column(Integer, primary_key=True, index=True)
    jti = Column(String(36), unique=True, nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=True)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    reason = Column(String(100), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        Index("ix_token_blacklist_expires_at", "expires_at"),
    )

    def __repr__(self):
        return f"<TokenBlacklist(id={self.id}, jti='{self.jti[:8]}...', user_id={self.user_id})>"
