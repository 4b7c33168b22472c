from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class KnightCreate(BaseModel):
    name: str = Field(..., max_length=100, description="Knight name")
    image_url: Optional[str] = Field(None, max_length=512, description="Image URL")


class KnightRead(BaseModel):
    id: str
    name: str
    image_url: Optional[str] = None
    slug: Optional[str] = None
    url: str = Field(..., description="Human-readable knight URL")
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class KnightUsage(BaseModel):
    knight: KnightRead
    count: int


class StigmaRead(BaseModel):
    id: str
    name: str
    image_url: Optional[str] = None

    class Config:
        from_attributes = True


class KnightDetail(BaseModel):
    knight: KnightRead
    victories: int
    defeats: int
    appearances: int
    battles: List["BattleRead"]
    related_knights: List[KnightRead]


from .battle import BattleRead  # noqa: E402

KnightDetail.model_rebuild()
