from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, JSON, Text, UniqueConstraint
from sqlalchemy.sql import func

from .base import Base


class Battle(Base):
    __tablename__ = "battles"

    id = Column(String(36), primary_key=True, index=True)
    # ordered lists of knight ids
    winner_team = Column(JSON, nullable=False, default=list)
    loser_team = Column(JSON, nullable=False, default=list)
    winner_team_stigma = Column(String(36), ForeignKey("stigmas.id", ondelete="SET NULL"), nullable=True)
    loser_team_stigma = Column(String(36), ForeignKey("stigmas.id", ondelete="SET NULL"), nullable=True)
    tipo = Column(String(32), nullable=True)
    meta = Column(Boolean, default=False, nullable=False)
    created_by = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<Battle {self.winner_team} x {self.loser_team} tipo={self.tipo}>"


class BattleComment(Base):
    __tablename__ = "battle_comments"

    id = Column(String(36), primary_key=True, index=True)
    battle_id = Column(String(36), ForeignKey("battles.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    content = Column(Text, nullable=False)
    parent_id = Column(String(36), ForeignKey("battle_comments.id", ondelete="CASCADE"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<BattleComment {self.id} battle={self.battle_id} parent={self.parent_id}>"


class BattleReaction(Base):
    __tablename__ = "battle_reactions"
    __table_args__ = (
        UniqueConstraint("battle_id", "user_id", name="uq_battle_reactions_battle_user"),
    )

    id = Column(String(36), primary_key=True, index=True)
    battle_id = Column(String(36), ForeignKey("battles.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    reaction_type = Column(String(16), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self) -> str:
        return f"<BattleReaction {self.user_id} {self.reaction_type} battle={self.battle_id}>"
