import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import delete, func, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from core.id_generator import generate_random_id
from models.battle import BattleReaction

logger = logging.getLogger(__name__)

LIKE = "like"
DISLIKE = "dislike"
REACTION_TYPES = (LIKE, DISLIKE)

# Per (battle, user) states
NONE = "none"
LIKED = "liked"
DISLIKED = "disliked"

_STATE_BY_TYPE = {None: NONE, LIKE: LIKED, DISLIKE: DISLIKED}


def reaction_state(reaction_type: Optional[str]) -> str:
    return _STATE_BY_TYPE[reaction_type]


def next_reaction(current: Optional[str], selected: str) -> Optional[str]:
    """Reaction type after the user clicks ``selected``.

    Clicking the active reaction clears it; clicking the other one switches
    straight to it.
    """
    if selected not in REACTION_TYPES:
        raise ValueError(f"Unknown reaction type: {selected}")
    if current == selected:
        return None
    return selected


@dataclass
class ReactionSummary:
    likes: int
    dislikes: int
    state: str


async def get_user_reaction(
    db: AsyncSession, battle_id: str, user_id: str
) -> Optional[str]:
    result = await db.execute(
        select(BattleReaction.reaction_type).where(
            BattleReaction.battle_id == battle_id,
            BattleReaction.user_id == user_id,
        )
    )
    return result.scalar_one_or_none()


async def reaction_summary(
    db: AsyncSession, battle_id: str, user_id: Optional[str] = None
) -> ReactionSummary:
    result = await db.execute(
        select(BattleReaction.reaction_type, func.count(BattleReaction.id))
        .where(BattleReaction.battle_id == battle_id)
        .group_by(BattleReaction.reaction_type)
    )
    counts = dict(result.all())
    current = await get_user_reaction(db, battle_id, user_id) if user_id else None
    return ReactionSummary(
        likes=counts.get(LIKE, 0),
        dislikes=counts.get(DISLIKE, 0),
        state=reaction_state(current),
    )


def _upsert_statement(db: AsyncSession, battle_id: str, user_id: str, reaction_type: str):
    dialect = db.get_bind().dialect.name
    insert = sqlite_insert if dialect == "sqlite" else pg_insert
    stmt = insert(BattleReaction).values(
        id=generate_random_id(BattleReaction.__tablename__),
        battle_id=battle_id,
        user_id=user_id,
        reaction_type=reaction_type,
    )
    return stmt.on_conflict_do_update(
        index_elements=[BattleReaction.battle_id, BattleReaction.user_id],
        set_={"reaction_type": stmt.excluded.reaction_type},
    )


async def set_reaction(
    db: AsyncSession, battle_id: str, user_id: str, selected: str
) -> ReactionSummary:
    """Apply a like/dislike click and return the resulting counts and state.

    The new reaction is written with a single upsert on (battle_id, user_id),
    so switching between like and dislike never passes through an empty state.
    """
    current = await get_user_reaction(db, battle_id, user_id)
    target = next_reaction(current, selected)

    if target is None:
        await db.execute(
            delete(BattleReaction).where(
                BattleReaction.battle_id == battle_id,
                BattleReaction.user_id == user_id,
            )
        )
    else:
        await db.execute(_upsert_statement(db, battle_id, user_id, target))
    await db.commit()

    logger.info(
        "Reaction of %s on battle %s: %s -> %s",
        user_id, battle_id, reaction_state(current), reaction_state(target),
    )
    return await reaction_summary(db, battle_id, user_id)
