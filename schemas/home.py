from typing import List

from pydantic import BaseModel

from .battle import BattleRead, BattleStatsRead
from .knight import KnightUsage


class HomeRead(BaseModel):
    recent_battles: List[BattleRead]
    stats: BattleStatsRead
    top_knights: List[KnightUsage]
