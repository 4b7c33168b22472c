from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class CommentCreate(BaseModel):
    content: str = Field(..., max_length=2000)
    parent_id: Optional[str] = Field(None, description="Comment being replied to")


class CommentRead(BaseModel):
    id: str
    battle_id: str
    user_id: str
    author_name: Optional[str] = None
    content: str
    parent_id: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class CommentThread(CommentRead):
    replies: List[CommentRead] = []
