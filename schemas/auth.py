from typing import Literal, Optional

from pydantic import BaseModel, Field


class SignUpSchema(BaseModel):
    """
    Data sent by the sign-up form.
    """
    email: str = Field(..., min_length=3, max_length=255, pattern=r"^[^@\s]+@[^@\s]+$")
    password: str = Field(..., min_length=6, max_length=128)
    full_name: Optional[str] = Field(None, max_length=100)


class SignUpResponse(BaseModel):
    profile_id: str
    email: str
    active: bool


class TokenResponse(BaseModel):
    """
    Response to a successful login.
    """
    access_token: str
    token_type: Literal["bearer"]
    expires_in_ms: int


class SessionRead(BaseModel):
    user_id: str
    email: str
    full_name: Optional[str] = None
    profile_id: Optional[str] = None
    favorite_knight_id: Optional[str] = None
    is_admin: bool
