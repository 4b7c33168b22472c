from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from core.database import get_db
from core.security import SessionContext, get_current_session, get_optional_session, require_admin
from models.battle import Battle, BattleComment
from schemas.comment import CommentCreate, CommentRead, CommentThread
from schemas.reaction import ReactionRequest, ReactionSummaryRead
from services import catalog, reactions
from services.aggregation import build_comment_tree, index_by
from utils.serializers import to_comment_read, to_comment_threads

router = APIRouter(prefix="/battles/{battle_id}", tags=["interactions"])


async def _get_battle_or_404(db: AsyncSession, battle_id: str) -> Battle:
    battle = await db.get(Battle, battle_id)
    if not battle:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Battle not found")
    return battle


@router.get(
    "/comments",
    response_model=List[CommentThread],
    summary="Comments of a battle with their replies",
)
async def list_comments(
    battle_id: str,
    db: AsyncSession = Depends(get_db),
) -> List[CommentThread]:
    await _get_battle_or_404(db, battle_id)
    result = await db.execute(
        select(BattleComment)
        .where(BattleComment.battle_id == battle_id)
        .order_by(BattleComment.created_at.asc(), BattleComment.id)
    )
    comments = list(result.scalars().all())
    profiles_by_user = index_by(await catalog.load_profiles(db), "user_id")
    return to_comment_threads(build_comment_tree(comments), profiles_by_user)


@router.post(
    "/comments",
    response_model=CommentRead,
    status_code=status.HTTP_201_CREATED,
    summary="Comment on a battle or reply to a comment",
)
async def create_comment(
    battle_id: str,
    payload: CommentCreate,
    db: AsyncSession = Depends(get_db),
    session: SessionContext = Depends(get_current_session),
) -> CommentRead:
    await _get_battle_or_404(db, battle_id)

    content = payload.content.strip()
    if not content:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Comment cannot be empty")

    if payload.parent_id is not None:
        parent = await db.get(BattleComment, payload.parent_id)
        if not parent or parent.battle_id != battle_id:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid parent comment")
        if parent.parent_id is not None:
            # threads are one level deep
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Cannot reply to a reply")

    comment = BattleComment(
        battle_id=battle_id,
        user_id=session.user_id,
        content=content,
        parent_id=payload.parent_id,
    )
    db.add(comment)
    await db.commit()
    await db.refresh(comment)

    profiles_by_user = {session.user_id: session.profile} if session.profile else {}
    return to_comment_read(comment, profiles_by_user)


@router.delete(
    "/comments/{comment_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a comment (admin only)",
)
async def delete_comment(
    battle_id: str,
    comment_id: str,
    db: AsyncSession = Depends(get_db),
    admin: SessionContext = Depends(require_admin),
):
    comment = await db.get(BattleComment, comment_id)
    if not comment or comment.battle_id != battle_id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Comment not found")

    await db.delete(comment)
    await db.commit()
    return


@router.get(
    "/reactions",
    response_model=ReactionSummaryRead,
    summary="Like/dislike counts and the caller's reaction",
)
async def read_reactions(
    battle_id: str,
    db: AsyncSession = Depends(get_db),
    session: Optional[SessionContext] = Depends(get_optional_session),
) -> ReactionSummaryRead:
    await _get_battle_or_404(db, battle_id)
    summary = await reactions.reaction_summary(db, battle_id, session.user_id if session else None)
    return ReactionSummaryRead.model_validate(summary)


@router.post(
    "/reactions",
    response_model=ReactionSummaryRead,
    summary="Toggle like or dislike",
)
async def react(
    battle_id: str,
    payload: ReactionRequest,
    db: AsyncSession = Depends(get_db),
    session: SessionContext = Depends(get_current_session),
) -> ReactionSummaryRead:
    await _get_battle_or_404(db, battle_id)
    summary = await reactions.set_reaction(db, battle_id, session.user_id, payload.reaction_type)
    return ReactionSummaryRead.model_validate(summary)
