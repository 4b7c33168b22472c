"""In-memory derivations over rows already fetched for a page.

Everything here is pure: callers load rows once per request, build the
lookup maps they need and pass them in.
"""
from collections import Counter
from collections.abc import Container, Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone
from math import ceil
from typing import Any, Dict, List, Optional, Tuple

ALL_TYPES = "Todos"
BATTLE_TYPES = ["Padrão", "Athena", "Econômico", "Hades", "Lua", "Poseidon"]

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def index_by_id(rows: Iterable[Any]) -> Dict[str, Any]:
    return {row.id: row for row in rows}


def index_by(rows: Iterable[Any], attr: str) -> Dict[Any, Any]:
    """Lookup map keyed by ``attr``; on duplicates the first row wins."""
    index: Dict[Any, Any] = {}
    for row in rows:
        index.setdefault(getattr(row, attr), row)
    return index


def battle_knight_ids(battle: Any) -> List[str]:
    return list(battle.winner_team or []) + list(battle.loser_team or [])


def knight_usage_counts(battles: Iterable[Any]) -> Counter:
    """Occurrences of each knight id across winner and loser rosters.

    Keys keep the order in which each id was first seen.
    """
    counts: Counter = Counter()
    for battle in battles:
        counts.update(battle_knight_ids(battle))
    return counts


def top_used_knights(
    battles: Iterable[Any], n: int, known: Optional[Container[str]] = None
) -> List[Tuple[str, int]]:
    """``n`` most used knight ids, ties broken by first occurrence.

    With ``known``, ids outside it (deleted knights) are skipped before the cut.
    """
    counts = knight_usage_counts(battles)
    items = [item for item in counts.items() if known is None or item[0] in known]
    # sorted() is stable, so equal counts stay in first-seen order
    ranked = sorted(items, key=lambda item: item[1], reverse=True)
    return ranked[:n]


def _created_at(row: Any) -> datetime:
    value = getattr(row, "created_at", None)
    if value is None:
        return _EPOCH
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def is_related_battle(battle: Any, candidate: Any) -> bool:
    if candidate.id == battle.id:
        return False
    roster = set(battle_knight_ids(candidate))
    return any(knight_id in roster for knight_id in battle.winner_team or [])


def related_battles(battle: Any, candidates: Iterable[Any], limit: int = 4) -> List[Any]:
    """Battles sharing a knight with ``battle``'s winners, newest first."""
    related = [c for c in candidates if is_related_battle(battle, c)]
    related.sort(key=_created_at, reverse=True)
    return related[:limit]


@dataclass
class CommentNode:
    comment: Any
    replies: List["CommentNode"] = field(default_factory=list)


def main_comments(comments: Iterable[Any]) -> List[Any]:
    return [c for c in comments if c.parent_id is None]


def replies_for(comments: Iterable[Any], comment_id: str) -> List[Any]:
    return [c for c in comments if c.parent_id == comment_id]


def build_comment_tree(comments: Sequence[Any]) -> List[CommentNode]:
    """Two-level thread: top-level comments with their direct replies.

    Deeper descendants stay in the data but are not expanded, and replies
    whose parent is missing from ``comments`` are dropped.
    """
    children: Dict[str, List[Any]] = {}
    for comment in comments:
        if comment.parent_id is not None:
            children.setdefault(comment.parent_id, []).append(comment)

    return [
        CommentNode(
            comment=root,
            replies=[CommentNode(comment=reply) for reply in children.get(root.id, [])],
        )
        for root in main_comments(comments)
    ]


@dataclass
class KnightHistory:
    victories: List[Any]
    defeats: List[Any]

    @property
    def appearances(self) -> int:
        return len({b.id for b in self.victories} | {b.id for b in self.defeats})


def knight_history(knight_id: str, battles: Iterable[Any]) -> KnightHistory:
    battles = list(battles)
    return KnightHistory(
        victories=[b for b in battles if knight_id in (b.winner_team or [])],
        defeats=[b for b in battles if knight_id in (b.loser_team or [])],
    )


def knight_battles(knight_id: str, battles: Iterable[Any]) -> List[Any]:
    return [b for b in battles if knight_id in battle_knight_ids(b)]


def related_knights(
    knight_id: str,
    battles: Iterable[Any],
    knights_by_id: Mapping[str, Any],
    limit: int = 6,
) -> List[Any]:
    """Knights that shared any battle with ``knight_id``, first seen first."""
    seen: Dict[str, None] = {}
    for battle in knight_battles(knight_id, battles):
        for other_id in battle_knight_ids(battle):
            if other_id != knight_id:
                seen.setdefault(other_id, None)
    related = [knights_by_id[kid] for kid in seen if kid in knights_by_id]
    return related[:limit]


@dataclass
class BattleStats:
    total_battles: int
    total_knights: int
    meta_battles: int
    battles_by_type: Dict[str, int]


def battle_stats(battles: Iterable[Any], knights: Iterable[Any]) -> BattleStats:
    battles = list(battles)
    by_type: Counter = Counter(b.tipo for b in battles)
    return BattleStats(
        total_battles=len(battles),
        total_knights=len(list(knights)),
        meta_battles=sum(1 for b in battles if b.meta),
        battles_by_type={str(k): v for k, v in by_type.items()},
    )


def filter_battles(
    battles: Iterable[Any],
    knights_by_id: Mapping[str, Any],
    tipo: Optional[str] = None,
    search: Optional[str] = None,
) -> List[Any]:
    """Battles of the given type whose rosters contain a matching knight name."""
    filtered = list(battles)
    if tipo and tipo != ALL_TYPES:
        filtered = [b for b in filtered if b.tipo == tipo]
    if search:
        needle = search.lower()

        def _matches(battle: Any) -> bool:
            for knight_id in battle_knight_ids(battle):
                knight = knights_by_id.get(knight_id)
                if knight is not None and needle in knight.name.lower():
                    return True
            return False

        filtered = [b for b in filtered if _matches(b)]
    return filtered


def filter_knights(knights: Iterable[Any], search: Optional[str] = None) -> List[Any]:
    needle = (search or "").lower()
    matched = [k for k in knights if needle in k.name.lower()]
    return sorted(matched, key=lambda k: k.name.lower())


@dataclass
class Page:
    items: List[Any]
    page: int
    total_pages: int
    total: int


def paginate(items: Sequence[Any], page: int, per_page: int) -> Page:
    page = max(page, 1)
    start = (page - 1) * per_page
    return Page(
        items=list(items[start:start + per_page]),
        page=page,
        total_pages=ceil(len(items) / per_page) if per_page else 0,
        total=len(items),
    )
