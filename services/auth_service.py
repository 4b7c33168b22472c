import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from fastapi import HTTPException, status
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from core.security import create_access_token, hash_password, token_expiry, verify_password
from models.profile import Profile
from models.user import AuthSession, User, UserRole
from services import roles

logger = logging.getLogger(__name__)

INACTIVE_ACCOUNT = "Account is not active yet. Wait for an administrator to activate it."


@dataclass
class IssuedToken:
    access_token: str
    expires: datetime
    user: User
    profile: Profile


def normalize_email(email: str) -> str:
    return email.strip().lower()


async def get_user_by_email(db: AsyncSession, email: str) -> Optional[User]:
    result = await db.execute(
        select(User).where(func.lower(User.email) == normalize_email(email))
    )
    return result.scalar_one_or_none()


async def sign_up(
    db: AsyncSession, email: str, password: str, full_name: Optional[str]
) -> Profile:
    """Creates the auth user, an inactive profile and the default role."""
    email = normalize_email(email)
    if await get_user_by_email(db, email):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already registered")

    user = User(email=email, password_hash=hash_password(password))
    try:
        db.add(user)
        await db.flush()

        profile = Profile(
            user_id=user.id,
            email=email,
            full_name=(full_name or "").strip() or None,
            active=False,
        )
        db.add(profile)
        db.add(UserRole(user_id=user.id, role=roles.USER))
        await db.commit()
    except IntegrityError as exc:
        # a concurrent sign-up took the email between the check and the insert
        await db.rollback()
        logger.info("Sign-up of %s lost a race on the unique email", email)
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already registered") from exc
    await db.refresh(profile)

    logger.info("Signed up %s (profile %s)", email, profile.id)
    return profile


async def sign_in(db: AsyncSession, email: str, password: str) -> IssuedToken:
    user = await get_user_by_email(db, email)
    if not user or not verify_password(password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    result = await db.execute(select(Profile).where(Profile.user_id == user.id))
    profile = result.scalar_one_or_none()
    if profile is None or not profile.active:
        logger.info("Refused sign-in of inactive account %s", user.email)
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=INACTIVE_ACCOUNT)

    expires = token_expiry()
    auth_session = AuthSession(user_id=user.id, expires_at=expires)
    db.add(auth_session)
    await db.commit()
    await db.refresh(auth_session)

    return IssuedToken(
        access_token=create_access_token(user.id, auth_session.id, expires),
        expires=expires,
        user=user,
        profile=profile,
    )


async def sign_out(db: AsyncSession, session_id: str) -> None:
    auth_session = await db.get(AuthSession, session_id)
    if auth_session:
        await db.delete(auth_session)
        await db.commit()
