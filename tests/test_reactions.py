import pytest
from sqlalchemy import func, select

from models.battle import BattleReaction
from services.reactions import (
    DISLIKE,
    DISLIKED,
    LIKE,
    LIKED,
    NONE,
    next_reaction,
    reaction_summary,
    set_reaction,
)
from tests.factories import create_battle, create_knight, create_member


def test_next_reaction_toggles_and_switches():
    assert next_reaction(None, LIKE) == LIKE
    assert next_reaction(LIKE, LIKE) is None
    assert next_reaction(LIKE, DISLIKE) == DISLIKE
    assert next_reaction(DISLIKE, LIKE) == LIKE


def test_next_reaction_rejects_unknown_type():
    with pytest.raises(ValueError):
        next_reaction(None, "love")


@pytest.mark.asyncio
async def test_set_reaction_sequence(db):
    user = await create_member(db, "seiya@example.com")
    seiya = await create_knight(db, "Seiya")
    ikki = await create_knight(db, "Ikki")
    battle = await create_battle(db, [seiya], [ikki])

    summary = await reaction_summary(db, battle.id, user.id)
    assert (summary.likes, summary.dislikes, summary.state) == (0, 0, NONE)

    summary = await set_reaction(db, battle.id, user.id, LIKE)
    assert (summary.likes, summary.dislikes, summary.state) == (1, 0, LIKED)

    summary = await set_reaction(db, battle.id, user.id, LIKE)
    assert (summary.likes, summary.dislikes, summary.state) == (0, 0, NONE)

    await set_reaction(db, battle.id, user.id, LIKE)
    summary = await set_reaction(db, battle.id, user.id, DISLIKE)
    assert (summary.likes, summary.dislikes, summary.state) == (0, 1, DISLIKED)

    result = await db.execute(
        select(func.count(BattleReaction.id)).where(BattleReaction.battle_id == battle.id)
    )
    assert result.scalar_one() == 1


@pytest.mark.asyncio
async def test_reaction_counts_across_users(db):
    first = await create_member(db, "a@example.com")
    second = await create_member(db, "b@example.com")
    seiya = await create_knight(db, "Seiya")
    ikki = await create_knight(db, "Ikki")
    battle = await create_battle(db, [seiya], [ikki])

    await set_reaction(db, battle.id, first.id, LIKE)
    await set_reaction(db, battle.id, second.id, DISLIKE)

    summary = await reaction_summary(db, battle.id, first.id)
    assert (summary.likes, summary.dislikes, summary.state) == (1, 1, LIKED)

    anonymous = await reaction_summary(db, battle.id)
    assert anonymous.state == NONE
