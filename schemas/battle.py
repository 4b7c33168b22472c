from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from .comment import CommentThread
from .reaction import ReactionSummaryRead


class BattleCreate(BaseModel):
    winner_team: List[str] = Field(default_factory=list, description="Ordered knight ids of the winners")
    loser_team: List[str] = Field(default_factory=list, description="Ordered knight ids of the losers")
    winner_team_stigma: Optional[str] = None
    loser_team_stigma: Optional[str] = None
    tipo: Optional[str] = Field(None, max_length=32, description="Battle category")
    meta: bool = False


class BattleRead(BaseModel):
    id: str
    winner_team: List[str]
    loser_team: List[str]
    winner_team_stigma: Optional[str] = None
    loser_team_stigma: Optional[str] = None
    tipo: Optional[str] = None
    meta: bool = False
    created_by: Optional[str] = None
    creator_name: Optional[str] = None
    url: str = Field(..., description="Share fragment built from both rosters")
    created_at: datetime

    class Config:
        from_attributes = True


class BattleList(BaseModel):
    items: List[BattleRead]
    total: int
    limit: int
    offset: int


class BattleDetail(BaseModel):
    battle: BattleRead
    knights: Dict[str, "KnightRead"]
    winner_stigma: Optional["StigmaRead"] = None
    loser_stigma: Optional["StigmaRead"] = None
    related_battles: List[BattleRead]
    reactions: ReactionSummaryRead
    comments: List[CommentThread]


class BattleStatsRead(BaseModel):
    total_battles: int
    total_knights: int
    meta_battles: int
    battles_by_type: Dict[str, int]


from .knight import KnightRead, StigmaRead  # noqa: E402

BattleDetail.model_rebuild()
