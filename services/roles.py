from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from models.user import UserRole

ADMIN = "admin"
MODERATOR = "moderator"
USER = "user"
ROLES = (ADMIN, MODERATOR, USER)


async def get_role(db: AsyncSession, user_id: str) -> Optional[str]:
    result = await db.execute(select(UserRole.role).where(UserRole.user_id == user_id))
    return result.scalar_one_or_none()


async def is_admin(db: AsyncSession, user_id: str) -> bool:
    return await get_role(db, user_id) == ADMIN


async def set_role(db: AsyncSession, user_id: str, role: str) -> UserRole:
    """Update the user's role row, inserting one if it does not exist yet."""
    if role not in ROLES:
        raise ValueError(f"Unknown role: {role}")

    result = await db.execute(select(UserRole).where(UserRole.user_id == user_id))
    user_role = result.scalar_one_or_none()
    if user_role:
        user_role.role = role
    else:
        user_role = UserRole(user_id=user_id, role=role)
        db.add(user_role)
    await db.commit()
    await db.refresh(user_role)
    return user_role
