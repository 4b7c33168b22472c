from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field


class ManagedUserRead(BaseModel):
    id: str
    user_id: str
    email: str
    full_name: Optional[str] = None
    active: bool
    role: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class ManagedUserUpdate(BaseModel):
    full_name: Optional[str] = Field(None, max_length=100)
    email: Optional[str] = Field(None, max_length=255, pattern=r"^[^@\s]+@[^@\s]+$")


class RoleUpdate(BaseModel):
    role: Literal["admin", "user"]
