"""Human-readable URL fragments derived from entity ids and names."""
import re
import unicodedata
from collections.abc import Iterable, Mapping
from typing import Any, NamedTuple, Optional, Union

_KNIGHT_URL_RE = re.compile(r"(\w{3})-(.+)", re.ASCII)
_NON_ALNUM_RE = re.compile(r"[^a-z0-9]+")
_DIACRITICS_RE = re.compile("[\u0300-\u036f]")

UNKNOWN_KNIGHT = "unknown"
DEFAULT_MEMBER_SLUG = "usuario"
TEAM_SEPARATOR = "-x-"


class KnightUrl(NamedTuple):
    id_prefix: str
    slug: str


def slugify(text: str) -> str:
    """Convert text to a URL-safe slug.

    Lowercases, strips the combining marks U+0300..U+036F left by NFD, collapses
    every run of characters outside ``[a-z0-9]`` into one hyphen and trims hyphens from both ends.

    >>> slugify("São Jorge!!")
    'sao-jorge'
    """
    text = unicodedata.normalize("NFD", text.lower())
    text = _DIACRITICS_RE.sub("", text)
    text = _NON_ALNUM_RE.sub("-", text)
    return text.strip("-")


def create_knight_url(knight_id: str, knight_name: str) -> str:
    return f"{knight_id[:3]}-{slugify(knight_name)}"


def create_member_url(user_id: str, full_name: Optional[str]) -> str:
    slug = slugify(full_name) if full_name else ""
    return f"{user_id[:3]}-{slug or DEFAULT_MEMBER_SLUG}"


def _knight_name(knights: Union[Mapping[str, Any], Iterable[Any]], knight_id: str) -> str:
    if isinstance(knights, Mapping):
        knight = knights.get(knight_id)
    else:
        knight = next((k for k in knights if _get(k, "id") == knight_id), None)
    if knight is None:
        return UNKNOWN_KNIGHT
    return _get(knight, "name") or UNKNOWN_KNIGHT


def _get(row: Any, attr: str) -> Any:
    if isinstance(row, Mapping):
        return row.get(attr)
    return getattr(row, attr, None)


def create_battle_url(
    winner_ids: Iterable[str],
    loser_ids: Iterable[str],
    knights: Union[Mapping[str, Any], Iterable[Any]],
) -> str:
    """Share-link fragment such as ``seiya-shiryu-x-ikki``.

    ``knights`` is either a lookup map keyed by id or any iterable of rows
    (ORM objects or dicts) with ``id`` and ``name``. Ids that do not resolve
    render as ``unknown``. The result is neither unique nor reversible.
    """
    if not isinstance(knights, Mapping):
        knights = list(knights)
    winners = "-".join(slugify(_knight_name(knights, kid)) for kid in winner_ids)
    losers = "-".join(slugify(_knight_name(knights, kid)) for kid in loser_ids)
    return f"{winners}{TEAM_SEPARATOR}{losers}"


def parse_knight_url(param: str) -> Optional[KnightUrl]:
    """Split ``abc-some-slug`` into ``KnightUrl("abc", "some-slug")``; None on mismatch."""
    match = _KNIGHT_URL_RE.fullmatch(param)
    if not match:
        return None
    return KnightUrl(match.group(1), match.group(2))


# Member URLs share the knight URL shape
parse_member_url = parse_knight_url
