"""Loaders for the small lookup tables every page needs."""
import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from models.battle import Battle
from models.knight import Knight, Stigma
from models.profile import Profile

logger = logging.getLogger(__name__)


async def load_knights(db: AsyncSession) -> List[Knight]:
    result = await db.execute(select(Knight).order_by(Knight.created_at.desc()))
    return list(result.scalars().all())


async def load_stigmas(db: AsyncSession) -> List[Stigma]:
    result = await db.execute(select(Stigma).order_by(Stigma.name))
    return list(result.scalars().all())


async def load_profiles(db: AsyncSession) -> List[Profile]:
    result = await db.execute(select(Profile))
    return list(result.scalars().all())


async def load_battles(db: AsyncSession, limit: Optional[int] = None) -> List[Battle]:
    stmt = select(Battle).order_by(Battle.created_at.desc(), Battle.id)
    if limit is not None:
        stmt = stmt.limit(limit)
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def find_knight_by_prefix(db: AsyncSession, id_prefix: str) -> Optional[Knight]:
    """First knight (oldest) whose id starts with ``id_prefix``.

    Several knights can share a prefix; the collision is logged and the
    oldest one wins.
    """
    result = await db.execute(
        select(Knight)
        .where(Knight.id.startswith(id_prefix, autoescape=True))
        .order_by(Knight.created_at.asc(), Knight.id)
    )
    matches = list(result.scalars().all())
    if len(matches) > 1:
        logger.warning(
            "Knight id prefix %s matches %d knights, using %s",
            id_prefix, len(matches), matches[0].id,
        )
    return matches[0] if matches else None


async def find_profile_by_prefix(db: AsyncSession, id_prefix: str) -> Optional[Profile]:
    result = await db.execute(
        select(Profile)
        .where(Profile.user_id.startswith(id_prefix, autoescape=True))
        .order_by(Profile.created_at.asc(), Profile.id)
    )
    matches = list(result.scalars().all())
    if len(matches) > 1:
        logger.warning(
            "Member id prefix %s matches %d profiles, using %s",
            id_prefix, len(matches), matches[0].user_id,
        )
    return matches[0] if matches else None
