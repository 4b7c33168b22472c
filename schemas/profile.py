from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from .battle import BattleRead
from .knight import KnightRead


class MemberStats(BaseModel):
    knights: int = 0
    battles: int = 0
    comments: int = 0


class MemberRead(BaseModel):
    id: str
    user_id: str
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None
    favorite_knight_id: Optional[str] = None
    url: str = Field(..., description="Human-readable member URL")
    stats: MemberStats = MemberStats()

    class Config:
        from_attributes = True


class UserKnightRead(BaseModel):
    id: str
    knight_id: str
    is_used: bool
    knight: Optional[KnightRead] = None

    class Config:
        from_attributes = True


class MemberCommentRead(BaseModel):
    id: str
    battle_id: str
    battle_tipo: Optional[str] = None
    content: str
    created_at: datetime


class PageInfo(BaseModel):
    page: int
    total_pages: int
    total: int


class MemberBattles(PageInfo):
    items: List[BattleRead]


class MemberComments(PageInfo):
    items: List[MemberCommentRead]


class MemberDetail(BaseModel):
    member: MemberRead
    favorite_knight: Optional[KnightRead] = None
    can_manage: bool
    knights: List[UserKnightRead]
    battles: MemberBattles
    comments: MemberComments


class KnightSelection(BaseModel):
    knight_ids: List[str] = Field(default_factory=list)


class FavoriteKnightUpdate(BaseModel):
    knight_id: Optional[str] = None
