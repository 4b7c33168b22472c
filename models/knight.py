from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey
from sqlalchemy.sql import func

from .base import Base


class Knight(Base):
    __tablename__ = "knights"

    id = Column(String(36), primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    image_url = Column(String(512), nullable=True)
    slug = Column(String(128), nullable=True)
    created_by = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<Knight {self.id} {self.name}>"


class Stigma(Base):
    __tablename__ = "stigmas"

    id = Column(String(36), primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    image_url = Column(String(512), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<Stigma {self.id} {self.name}>"


class UserKnight(Base):
    __tablename__ = "user_knights"

    id = Column(String(36), primary_key=True, index=True)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    knight_id = Column(String(36), ForeignKey("knights.id", ondelete="CASCADE"), nullable=False)
    is_used = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<UserKnight user={self.user_id} knight={self.knight_id} used={self.is_used}>"
