from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import settings
from core.database import get_db
from core.security import SessionContext, get_current_session, get_optional_session
from models.battle import Battle, BattleComment
from models.knight import Knight, UserKnight
from models.profile import Profile
from schemas.profile import (
    FavoriteKnightUpdate,
    KnightSelection,
    MemberBattles,
    MemberCommentRead,
    MemberComments,
    MemberDetail,
    MemberRead,
    UserKnightRead,
)
from services import catalog
from services.aggregation import index_by, index_by_id, paginate
from utils.serializers import to_battle_reads, to_knight_read, to_member_read
from utils.slugs import parse_member_url

router = APIRouter(prefix="/members", tags=["members"])


async def _count_by(db: AsyncSession, column) -> Dict[str, int]:
    result = await db.execute(select(column, func.count()).group_by(column))
    return {key: count for key, count in result.all()}


async def _get_profile_or_404(db: AsyncSession, user_id: str) -> Profile:
    result = await db.execute(select(Profile).where(Profile.user_id == user_id))
    profile = result.scalar_one_or_none()
    if not profile:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Member not found")
    return profile


def _ensure_can_manage(session: SessionContext, user_id: str) -> None:
    if not session.can_manage(user_id):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not allowed to manage this member")


async def _load_user_knights(db: AsyncSession, user_id: str) -> List[UserKnightRead]:
    result = await db.execute(
        select(UserKnight, Knight)
        .join(Knight, Knight.id == UserKnight.knight_id)
        .where(UserKnight.user_id == user_id)
        .order_by(Knight.name)
    )
    return [
        UserKnightRead(
            id=user_knight.id,
            knight_id=user_knight.knight_id,
            is_used=user_knight.is_used,
            knight=to_knight_read(knight),
        )
        for user_knight, knight in result.all()
    ]


@router.get(
    "/",
    response_model=List[MemberRead],
    summary="Community members with knight, battle and comment counts",
)
async def list_members(
    search: Optional[str] = Query(None, description="Part of the member name"),
    db: AsyncSession = Depends(get_db),
) -> List[MemberRead]:
    result = await db.execute(select(Profile).order_by(Profile.full_name))
    profiles = list(result.scalars().all())
    if search:
        needle = search.lower()
        profiles = [p for p in profiles if p.full_name and needle in p.full_name.lower()]

    knights = await _count_by(db, UserKnight.user_id)
    battles = await _count_by(db, Battle.created_by)
    comments = await _count_by(db, BattleComment.user_id)

    return [
        to_member_read(
            p,
            {
                "knights": knights.get(p.user_id, 0),
                "battles": battles.get(p.user_id, 0),
                "comments": comments.get(p.user_id, 0),
            },
        )
        for p in profiles
    ]


@router.get(
    "/{member_url}",
    response_model=MemberDetail,
    summary="Member page: knights, battles and comments",
)
async def read_member(
    member_url: str,
    battles_page: int = Query(1, ge=1),
    comments_page: int = Query(1, ge=1),
    db: AsyncSession = Depends(get_db),
    session: Optional[SessionContext] = Depends(get_optional_session),
) -> MemberDetail:
    parsed = parse_member_url(member_url)
    id_prefix = parsed.id_prefix if parsed else member_url[:3]
    profile = await catalog.find_profile_by_prefix(db, id_prefix)
    if not profile:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Member not found")
    user_id = profile.user_id

    knights_by_id = index_by_id(await catalog.load_knights(db))
    profiles_by_user = index_by(await catalog.load_profiles(db), "user_id")

    result = await db.execute(
        select(Battle)
        .where(Battle.created_by == user_id)
        .order_by(Battle.created_at.desc(), Battle.id)
    )
    battles = paginate(list(result.scalars().all()), battles_page, settings.MEMBER_PAGE_SIZE)

    result = await db.execute(
        select(BattleComment, Battle.tipo)
        .join(Battle, Battle.id == BattleComment.battle_id)
        .where(BattleComment.user_id == user_id)
        .order_by(BattleComment.created_at.desc(), BattleComment.id)
    )
    comments = paginate(
        [
            MemberCommentRead(
                id=comment.id,
                battle_id=comment.battle_id,
                battle_tipo=tipo,
                content=comment.content,
                created_at=comment.created_at,
            )
            for comment, tipo in result.all()
        ],
        comments_page,
        settings.MEMBER_PAGE_SIZE,
    )

    favorite = knights_by_id.get(profile.favorite_knight_id) if profile.favorite_knight_id else None
    return MemberDetail(
        member=to_member_read(profile),
        favorite_knight=to_knight_read(favorite) if favorite else None,
        can_manage=bool(session and session.can_manage(user_id)),
        knights=await _load_user_knights(db, user_id),
        battles=MemberBattles(
            items=to_battle_reads(battles.items, knights_by_id, profiles_by_user),
            page=battles.page,
            total_pages=battles.total_pages,
            total=battles.total,
        ),
        comments=MemberComments(
            items=comments.items,
            page=comments.page,
            total_pages=comments.total_pages,
            total=comments.total,
        ),
    )


@router.put(
    "/{user_id}/knights",
    response_model=List[UserKnightRead],
    summary="Replace the member's knight selection",
)
async def save_knight_selection(
    user_id: str,
    payload: KnightSelection,
    db: AsyncSession = Depends(get_db),
    session: SessionContext = Depends(get_current_session),
) -> List[UserKnightRead]:
    _ensure_can_manage(session, user_id)
    await _get_profile_or_404(db, user_id)

    knight_ids = list(dict.fromkeys(payload.knight_ids))
    if knight_ids:
        result = await db.execute(select(Knight.id).where(Knight.id.in_(knight_ids)))
        if set(knight_ids) - {row[0] for row in result.all()}:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Unknown knight")

    await db.execute(delete(UserKnight).where(UserKnight.user_id == user_id))
    for knight_id in knight_ids:
        db.add(UserKnight(user_id=user_id, knight_id=knight_id, is_used=False))
    await db.commit()

    return await _load_user_knights(db, user_id)


@router.patch(
    "/{user_id}/knights/{user_knight_id}",
    response_model=UserKnightRead,
    summary="Toggle the 'used' flag of one of the member's knights",
)
async def toggle_knight_usage(
    user_id: str,
    user_knight_id: str,
    db: AsyncSession = Depends(get_db),
    session: SessionContext = Depends(get_current_session),
) -> UserKnightRead:
    _ensure_can_manage(session, user_id)

    user_knight = await db.get(UserKnight, user_knight_id)
    if not user_knight or user_knight.user_id != user_id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Knight not in member's list")

    user_knight.is_used = not user_knight.is_used
    await db.commit()
    await db.refresh(user_knight)

    knight = await db.get(Knight, user_knight.knight_id)
    return UserKnightRead(
        id=user_knight.id,
        knight_id=user_knight.knight_id,
        is_used=user_knight.is_used,
        knight=to_knight_read(knight) if knight else None,
    )


@router.post(
    "/{user_id}/knights/reset",
    response_model=List[UserKnightRead],
    summary="Mark all of the member's knights as unused",
)
async def reset_knights(
    user_id: str,
    db: AsyncSession = Depends(get_db),
    session: SessionContext = Depends(get_current_session),
) -> List[UserKnightRead]:
    _ensure_can_manage(session, user_id)

    await db.execute(
        update(UserKnight)
        .where(UserKnight.user_id == user_id)
        .values(is_used=False)
    )
    await db.commit()
    return await _load_user_knights(db, user_id)


@router.put(
    "/{user_id}/favorite-knight",
    response_model=MemberRead,
    summary="Set or clear the member's favorite knight",
)
async def set_favorite_knight(
    user_id: str,
    payload: FavoriteKnightUpdate,
    db: AsyncSession = Depends(get_db),
    session: SessionContext = Depends(get_current_session),
) -> MemberRead:
    _ensure_can_manage(session, user_id)
    profile = await _get_profile_or_404(db, user_id)

    if payload.knight_id is not None and not await db.get(Knight, payload.knight_id):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Unknown knight")

    profile.favorite_knight_id = payload.knight_id
    await db.commit()
    await db.refresh(profile)
    return to_member_read(profile)
