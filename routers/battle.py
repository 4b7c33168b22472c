import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import settings
from core.database import get_db
from core.security import SessionContext, get_current_session, get_optional_session, require_admin
from models.battle import Battle, BattleComment
from models.knight import Knight, Stigma
from schemas.battle import BattleCreate, BattleDetail, BattleList, BattleRead
from schemas.reaction import ReactionSummaryRead
from services import catalog, reactions
from services.aggregation import (
    BATTLE_TYPES,
    battle_knight_ids,
    build_comment_tree,
    filter_battles,
    index_by,
    index_by_id,
    related_battles,
)
from utils.serializers import (
    to_battle_read,
    to_battle_reads,
    to_comment_threads,
    to_knight_read,
    to_stigma_read,
)

router = APIRouter(prefix="/battles", tags=["battles"])
logger = logging.getLogger("uvicorn.error")


@router.get(
    "/",
    response_model=BattleList,
    summary="List battles, newest first, filtered by type and knight name",
)
async def list_battles(
    tipo: Optional[str] = Query(None, description="Battle type, 'Todos' for all"),
    search: Optional[str] = Query(None, description="Part of a knight name"),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
) -> BattleList:
    battles = await catalog.load_battles(db)
    knights_by_id = index_by_id(await catalog.load_knights(db))
    profiles_by_user = index_by(await catalog.load_profiles(db), "user_id")

    filtered = filter_battles(battles, knights_by_id, tipo=tipo, search=search)
    page = filtered[offset:offset + limit]
    return BattleList(
        items=to_battle_reads(page, knights_by_id, profiles_by_user),
        total=len(filtered),
        limit=limit,
        offset=offset,
    )


@router.post(
    "/",
    response_model=BattleRead,
    status_code=status.HTTP_201_CREATED,
    summary="Register a battle",
)
async def create_battle(
    payload: BattleCreate,
    db: AsyncSession = Depends(get_db),
    session: SessionContext = Depends(get_current_session),
) -> BattleRead:
    if not payload.winner_team or not payload.loser_team:
        raise HTTPException(status_code=400, detail="Add at least one knight to each team")
    for team in (payload.winner_team, payload.loser_team):
        if len(set(team)) != len(team):
            raise HTTPException(status_code=400, detail="A knight can only appear once per team")
    if not payload.winner_team_stigma or not payload.loser_team_stigma:
        raise HTTPException(status_code=400, detail="Select a stigma for each team")
    if payload.tipo is not None and payload.tipo not in BATTLE_TYPES:
        raise HTTPException(status_code=400, detail="Unknown battle type")

    knight_ids = set(payload.winner_team) | set(payload.loser_team)
    result = await db.execute(select(Knight.id).where(Knight.id.in_(knight_ids)))
    missing = knight_ids - {row[0] for row in result.all()}
    if missing:
        raise HTTPException(status_code=400, detail="Unknown knights: " + ", ".join(sorted(missing)))

    stigma_ids = {payload.winner_team_stigma, payload.loser_team_stigma}
    result = await db.execute(select(Stigma.id).where(Stigma.id.in_(stigma_ids)))
    if stigma_ids - {row[0] for row in result.all()}:
        raise HTTPException(status_code=400, detail="Unknown stigma")

    battle = Battle(
        winner_team=list(payload.winner_team),
        loser_team=list(payload.loser_team),
        winner_team_stigma=payload.winner_team_stigma,
        loser_team_stigma=payload.loser_team_stigma,
        tipo=payload.tipo,
        meta=payload.meta,
        created_by=session.user_id,
    )
    db.add(battle)
    try:
        await db.commit()
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.exception("Saving battle failed: %s", exc)
        raise HTTPException(status_code=500, detail="Could not save the battle") from exc
    await db.refresh(battle)

    knights_by_id = index_by_id(await catalog.load_knights(db))
    profiles_by_user = {session.user_id: session.profile} if session.profile else {}
    return to_battle_read(battle, knights_by_id, profiles_by_user)


@router.get(
    "/{battle_id}",
    response_model=BattleDetail,
    summary="Battle with stigmas, related battles, reactions and comments",
)
async def read_battle(
    battle_id: str,
    db: AsyncSession = Depends(get_db),
    session: Optional[SessionContext] = Depends(get_optional_session),
) -> BattleDetail:
    battle = await db.get(Battle, battle_id)
    if not battle:
        raise HTTPException(status_code=404, detail="Battle not found")

    knights_by_id = index_by_id(await catalog.load_knights(db))
    stigmas_by_id = index_by_id(await catalog.load_stigmas(db))
    profiles_by_user = index_by(await catalog.load_profiles(db), "user_id")

    related = related_battles(
        battle,
        await catalog.load_battles(db),
        limit=settings.RELATED_BATTLES_LIMIT,
    )

    result = await db.execute(
        select(BattleComment)
        .where(BattleComment.battle_id == battle_id)
        .order_by(BattleComment.created_at.asc(), BattleComment.id)
    )
    comments = list(result.scalars().all())

    summary = await reactions.reaction_summary(db, battle_id, session.user_id if session else None)

    shown_ids = set(battle_knight_ids(battle))
    for other in related:
        shown_ids.update(battle_knight_ids(other))

    return BattleDetail(
        battle=to_battle_read(battle, knights_by_id, profiles_by_user),
        knights={
            kid: to_knight_read(knights_by_id[kid]) for kid in shown_ids if kid in knights_by_id
        },
        winner_stigma=to_stigma_read(stigmas_by_id.get(battle.winner_team_stigma)),
        loser_stigma=to_stigma_read(stigmas_by_id.get(battle.loser_team_stigma)),
        related_battles=to_battle_reads(related, knights_by_id, profiles_by_user),
        reactions=ReactionSummaryRead.model_validate(summary),
        comments=to_comment_threads(build_comment_tree(comments), profiles_by_user),
    )


@router.delete(
    "/{battle_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a battle (admin only)",
)
async def delete_battle(
    battle_id: str,
    db: AsyncSession = Depends(get_db),
    admin: SessionContext = Depends(require_admin),
):
    battle = await db.get(Battle, battle_id)
    if not battle:
        raise HTTPException(status_code=404, detail="Battle not found")

    await db.delete(battle)
    await db.commit()
    logger.info(f"Battle {battle_id} deleted by {admin.user_id}")
    return
