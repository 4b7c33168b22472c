# core/security.py
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
from fastapi import HTTPException, Depends
from fastapi.security import OAuth2PasswordBearer
from jose import jwt, JWTError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from starlette import status

from core.config import settings
from core.database import get_db
from models.profile import Profile
from models.user import AuthSession, User
from services import roles

ALGORITHM = "HS256"

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")
optional_oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login", auto_error=False)


@dataclass
class SessionContext:
    """Everything a handler needs to know about the signed-in caller."""
    user: User
    profile: Optional[Profile]
    session_id: str
    is_admin: bool = False

    @property
    def user_id(self) -> str:
        return self.user.id

    def can_manage(self, user_id: str) -> bool:
        return self.is_admin or self.user.id == user_id


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))


def create_access_token(user_id: str, session_id: str, expires: datetime) -> str:
    token_payload = {
        "user_id": user_id,
        "sid": session_id,
        "exp": expires,
    }
    return jwt.encode(token_payload, settings.SECRET_KEY, algorithm=ALGORITHM)


def token_expiry() -> datetime:
    return datetime.now(timezone.utc) + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)


async def load_session(db: AsyncSession, token: str) -> SessionContext:
    """
    Resolves a bearer token into a SessionContext.
    Raises HTTPException(401) if the token is invalid, expired or signed out,
    and (403) if the account has been deactivated meanwhile.
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[ALGORITHM])
        user_id: str = payload.get("user_id")
        session_id: str = payload.get("sid")
        if user_id is None or session_id is None:
            raise credentials_exception
    except JWTError:
        raise credentials_exception

    auth_session = await db.get(AuthSession, session_id)
    if not auth_session or auth_session.user_id != user_id:
        raise credentials_exception

    user = await db.get(User, user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")

    result = await db.execute(select(Profile).where(Profile.user_id == user_id))
    profile = result.scalar_one_or_none()
    if profile is None or not profile.active:
        await db.delete(auth_session)
        await db.commit()
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is not active. Contact an administrator.",
        )

    return SessionContext(
        user=user,
        profile=profile,
        session_id=session_id,
        is_admin=await roles.is_admin(db, user_id),
    )


async def get_current_session(
    token: str = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db),
) -> SessionContext:
    return await load_session(db, token)


async def get_optional_session(
    token: Optional[str] = Depends(optional_oauth2_scheme),
    db: AsyncSession = Depends(get_db),
) -> Optional[SessionContext]:
    if not token:
        return None
    try:
        return await load_session(db, token)
    except HTTPException:
        return None


async def get_current_user(
    session: SessionContext = Depends(get_current_session),
) -> User:
    return session.user


async def require_admin(
    session: SessionContext = Depends(get_current_session),
) -> SessionContext:
    if not session.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin role required")
    return session
