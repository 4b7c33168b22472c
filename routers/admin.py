import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from core.database import get_db
from core.security import SessionContext, require_admin
from models.profile import Profile
from models.user import User, UserRole
from schemas.admin import ManagedUserRead, ManagedUserUpdate, RoleUpdate
from services import roles
from services.auth_service import get_user_by_email, normalize_email

router = APIRouter(prefix="/admin", tags=["Admin"])
logger = logging.getLogger("uvicorn.error")


def _to_managed_user(profile: Profile, role: Optional[str]) -> ManagedUserRead:
    return ManagedUserRead(
        id=profile.id,
        user_id=profile.user_id,
        email=profile.email,
        full_name=profile.full_name,
        active=bool(profile.active),
        role=role,
        created_at=profile.created_at,
    )


async def _get_profile_or_404(db: AsyncSession, profile_id: str) -> Profile:
    profile = await db.get(Profile, profile_id)
    if not profile:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return profile


@router.get(
    "/users",
    response_model=List[ManagedUserRead],
    summary="All users with their roles, newest first",
)
async def list_users(
    search: Optional[str] = Query(None, description="Part of the name or email"),
    db: AsyncSession = Depends(get_db),
    admin: SessionContext = Depends(require_admin),
) -> List[ManagedUserRead]:
    result = await db.execute(select(Profile).order_by(Profile.created_at.desc(), Profile.id))
    profiles = list(result.scalars().all())

    result = await db.execute(select(UserRole.user_id, UserRole.role))
    role_by_user = dict(result.all())

    if search:
        needle = search.lower()
        profiles = [
            p for p in profiles
            if (p.full_name and needle in p.full_name.lower()) or needle in p.email.lower()
        ]
    return [_to_managed_user(p, role_by_user.get(p.user_id)) for p in profiles]


@router.patch(
    "/users/{profile_id}",
    response_model=ManagedUserRead,
    summary="Edit a user's name and email",
)
async def update_user(
    profile_id: str,
    payload: ManagedUserUpdate,
    db: AsyncSession = Depends(get_db),
    admin: SessionContext = Depends(require_admin),
) -> ManagedUserRead:
    profile = await _get_profile_or_404(db, profile_id)

    if payload.full_name is not None:
        profile.full_name = payload.full_name.strip() or None
    if payload.email is not None:
        email = normalize_email(payload.email)
        owner = await get_user_by_email(db, email)
        if owner and owner.id != profile.user_id:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already registered")
        profile.email = email
        user = await db.get(User, profile.user_id)
        if user:
            user.email = email

    await db.commit()
    await db.refresh(profile)
    return _to_managed_user(profile, await roles.get_role(db, profile.user_id))


@router.post(
    "/users/{profile_id}/toggle-active",
    response_model=ManagedUserRead,
    summary="Activate or deactivate a user",
)
async def toggle_active(
    profile_id: str,
    db: AsyncSession = Depends(get_db),
    admin: SessionContext = Depends(require_admin),
) -> ManagedUserRead:
    profile = await _get_profile_or_404(db, profile_id)
    profile.active = not profile.active
    await db.commit()
    await db.refresh(profile)

    logger.info(
        "User %s %s by %s",
        profile.user_id, "activated" if profile.active else "deactivated", admin.user_id,
    )
    return _to_managed_user(profile, await roles.get_role(db, profile.user_id))


@router.delete(
    "/users/{profile_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a user and everything they own",
)
async def delete_user(
    profile_id: str,
    db: AsyncSession = Depends(get_db),
    admin: SessionContext = Depends(require_admin),
):
    profile = await _get_profile_or_404(db, profile_id)
    if profile.user_id == admin.user_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You cannot delete yourself")

    user = await db.get(User, profile.user_id)
    # the profile and the rest of the user's rows go with the user
    await db.delete(user or profile)
    await db.commit()
    logger.info("User %s deleted by %s", profile.user_id, admin.user_id)
    return


@router.put(
    "/users/{user_id}/role",
    response_model=ManagedUserRead,
    summary="Change a user's role",
)
async def change_role(
    user_id: str,
    payload: RoleUpdate,
    db: AsyncSession = Depends(get_db),
    admin: SessionContext = Depends(require_admin),
) -> ManagedUserRead:
    result = await db.execute(select(Profile).where(Profile.user_id == user_id))
    profile = result.scalar_one_or_none()
    if not profile:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    user_role = await roles.set_role(db, user_id, payload.role)
    return _to_managed_user(profile, user_role.role)
