"""Helpers turning ORM rows into response schemas."""
from collections.abc import Iterable, Mapping
from typing import Any, Dict, List, Optional

from models.battle import Battle, BattleComment
from models.knight import Knight, Stigma
from models.profile import Profile
from schemas.battle import BattleRead
from schemas.comment import CommentRead, CommentThread
from schemas.knight import KnightRead, StigmaRead
from schemas.profile import MemberRead, MemberStats
from services.aggregation import CommentNode
from utils.slugs import create_battle_url, create_knight_url, create_member_url


def to_knight_read(knight: Knight) -> KnightRead:
    return KnightRead(
        id=knight.id,
        name=knight.name,
        image_url=knight.image_url,
        slug=knight.slug,
        url=create_knight_url(knight.id, knight.name),
        created_at=knight.created_at,
    )


def to_stigma_read(stigma: Optional[Stigma]) -> Optional[StigmaRead]:
    if stigma is None:
        return None
    return StigmaRead.model_validate(stigma)


def to_battle_read(
    battle: Battle,
    knights_by_id: Mapping[str, Knight],
    profiles_by_user: Mapping[str, Profile],
) -> BattleRead:
    """Convert a battle into BattleRead with its share URL and creator name."""
    creator = profiles_by_user.get(battle.created_by) if battle.created_by else None
    return BattleRead(
        id=battle.id,
        winner_team=list(battle.winner_team or []),
        loser_team=list(battle.loser_team or []),
        winner_team_stigma=battle.winner_team_stigma,
        loser_team_stigma=battle.loser_team_stigma,
        tipo=battle.tipo,
        meta=bool(battle.meta),
        created_by=battle.created_by,
        creator_name=creator.full_name if creator else None,
        url=create_battle_url(battle.winner_team or [], battle.loser_team or [], knights_by_id),
        created_at=battle.created_at,
    )


def to_battle_reads(
    battles: Iterable[Battle],
    knights_by_id: Mapping[str, Knight],
    profiles_by_user: Mapping[str, Profile],
) -> List[BattleRead]:
    return [to_battle_read(b, knights_by_id, profiles_by_user) for b in battles]


def to_comment_read(comment: BattleComment, profiles_by_user: Mapping[str, Profile]) -> CommentRead:
    author = profiles_by_user.get(comment.user_id)
    return CommentRead(
        id=comment.id,
        battle_id=comment.battle_id,
        user_id=comment.user_id,
        author_name=author.full_name if author else None,
        content=comment.content,
        parent_id=comment.parent_id,
        created_at=comment.created_at,
    )


def to_comment_threads(
    tree: Iterable[CommentNode], profiles_by_user: Mapping[str, Profile]
) -> List[CommentThread]:
    threads: List[CommentThread] = []
    for node in tree:
        root = to_comment_read(node.comment, profiles_by_user)
        threads.append(
            CommentThread(
                **root.model_dump(),
                replies=[to_comment_read(r.comment, profiles_by_user) for r in node.replies],
            )
        )
    return threads


def to_member_read(profile: Profile, stats: Optional[Dict[str, Any]] = None) -> MemberRead:
    return MemberRead(
        id=profile.id,
        user_id=profile.user_id,
        full_name=profile.full_name,
        avatar_url=profile.avatar_url,
        favorite_knight_id=profile.favorite_knight_id,
        url=create_member_url(profile.user_id, profile.full_name),
        stats=MemberStats(**(stats or {})),
    )
