from typing import Literal

from pydantic import BaseModel


class ReactionRequest(BaseModel):
    reaction_type: Literal["like", "dislike"]


class ReactionSummaryRead(BaseModel):
    likes: int
    dislikes: int
    state: Literal["none", "liked", "disliked"]

    class Config:
        from_attributes = True
