from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import settings
from core.database import get_db
from schemas.battle import BattleStatsRead
from schemas.home import HomeRead
from schemas.knight import KnightUsage
from services import catalog
from services.aggregation import battle_stats, index_by, index_by_id, top_used_knights
from utils.serializers import to_battle_reads, to_knight_read

router = APIRouter(tags=["home"])


@router.get(
    "/",
    response_model=HomeRead,
    summary="Recent battles, totals and the most used knights",
)
async def home(db: AsyncSession = Depends(get_db)) -> HomeRead:
    battles = await catalog.load_battles(db)
    knights = await catalog.load_knights(db)
    knights_by_id = index_by_id(knights)
    profiles_by_user = index_by(await catalog.load_profiles(db), "user_id")

    stats = battle_stats(battles, knights)
    recent = battles[:settings.RECENT_BATTLES_LIMIT]
    top = top_used_knights(battles, settings.TOP_KNIGHTS_LIMIT, known=knights_by_id)

    return HomeRead(
        recent_battles=to_battle_reads(recent, knights_by_id, profiles_by_user),
        stats=BattleStatsRead(
            total_battles=stats.total_battles,
            total_knights=stats.total_knights,
            meta_battles=stats.meta_battles,
            battles_by_type=stats.battles_by_type,
        ),
        top_knights=[
            KnightUsage(knight=to_knight_read(knights_by_id[kid]), count=count)
            for kid, count in top
        ],
    )
