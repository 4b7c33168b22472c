import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import settings
from core.database import get_db
from core.security import get_current_user
from models.knight import Knight
from models.user import User
from schemas.knight import KnightCreate, KnightDetail, KnightRead, KnightUsage, StigmaRead
from services import catalog
from services.aggregation import (
    filter_knights,
    index_by,
    index_by_id,
    knight_battles,
    knight_history,
    related_knights,
    top_used_knights,
)
from utils.serializers import to_battle_reads, to_knight_read
from utils.slugs import parse_knight_url, slugify

router = APIRouter(prefix="/knights", tags=["knights"])
stigma_router = APIRouter(prefix="/stigmas", tags=["knights"])
logger = logging.getLogger("uvicorn.error")


@router.get(
    "/",
    response_model=List[KnightRead],
    summary="Knights sorted by name, optionally filtered",
)
async def list_knights(
    search: Optional[str] = Query(None, description="Part of the knight name"),
    db: AsyncSession = Depends(get_db),
) -> List[KnightRead]:
    knights = filter_knights(await catalog.load_knights(db), search)
    return [to_knight_read(k) for k in knights]


@router.post(
    "/",
    response_model=KnightRead,
    status_code=status.HTTP_201_CREATED,
    summary="Register a knight",
)
async def create_knight(
    payload: KnightCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> KnightRead:
    name = payload.name.strip()
    if not name:
        raise HTTPException(status_code=400, detail="Name is required")

    image_url = (payload.image_url or "").strip() or None
    knight = Knight(
        name=name,
        image_url=image_url,
        slug=slugify(name),
        created_by=current_user.id,
    )
    db.add(knight)
    await db.commit()
    await db.refresh(knight)
    logger.info(f"Knight {knight.id} '{knight.name}' created by {current_user.id}")
    return to_knight_read(knight)


@router.get(
    "/top",
    response_model=List[KnightUsage],
    summary="Most used knights across all battles",
)
async def top_knights(
    limit: int = Query(settings.TOP_KNIGHTS_LIMIT, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
) -> List[KnightUsage]:
    knights_by_id = index_by_id(await catalog.load_knights(db))
    ranked = top_used_knights(await catalog.load_battles(db), limit, known=knights_by_id)
    return [
        KnightUsage(knight=to_knight_read(knights_by_id[kid]), count=count)
        for kid, count in ranked
    ]


@router.get(
    "/{knight_url}",
    response_model=KnightDetail,
    summary="Knight page by its URL (id prefix + slug)",
)
async def read_knight(
    knight_url: str,
    db: AsyncSession = Depends(get_db),
) -> KnightDetail:
    parsed = parse_knight_url(knight_url)
    # fall back to the first three characters when the URL has no slug
    id_prefix = parsed.id_prefix if parsed else knight_url[:3]

    knight = await catalog.find_knight_by_prefix(db, id_prefix)
    if not knight:
        raise HTTPException(status_code=404, detail="Knight not found")

    knights = await catalog.load_knights(db)
    knights_by_id = index_by_id(knights)
    battles = await catalog.load_battles(db)
    profiles_by_user = index_by(await catalog.load_profiles(db), "user_id")

    history = knight_history(knight.id, battles)
    return KnightDetail(
        knight=to_knight_read(knight),
        victories=len(history.victories),
        defeats=len(history.defeats),
        appearances=history.appearances,
        battles=to_battle_reads(knight_battles(knight.id, battles), knights_by_id, profiles_by_user),
        related_knights=[
            to_knight_read(k)
            for k in related_knights(
                knight.id, battles, knights_by_id, limit=settings.RELATED_KNIGHTS_LIMIT
            )
        ],
    )


@stigma_router.get(
    "/",
    response_model=List[StigmaRead],
    summary="All stigmas",
)
async def list_stigmas(
    db: AsyncSession = Depends(get_db),
) -> List[StigmaRead]:
    return [StigmaRead.model_validate(s) for s in await catalog.load_stigmas(db)]
