# routers/auth.py
from fastapi import APIRouter, Depends, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.ext.asyncio import AsyncSession

from core.database import get_db
from core.security import SessionContext, get_current_session
from schemas.auth import SessionRead, SignUpResponse, SignUpSchema, TokenResponse
from services import auth_service

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post(
    "/signup",
    response_model=SignUpResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create an account (inactive until an admin activates it)",
)
async def signup(
    payload: SignUpSchema,
    db: AsyncSession = Depends(get_db),
) -> SignUpResponse:
    profile = await auth_service.sign_up(db, payload.email, payload.password, payload.full_name)
    return SignUpResponse(profile_id=profile.id, email=profile.email, active=profile.active)


@router.post(
    "/login",
    response_model=TokenResponse,
    summary="Sign in with email and password, returns a JWT",
)
async def login(
    form: OAuth2PasswordRequestForm = Depends(),
    db: AsyncSession = Depends(get_db),
) -> TokenResponse:
    issued = await auth_service.sign_in(db, form.username, form.password)
    return TokenResponse(
        access_token=issued.access_token,
        token_type="bearer",
        expires_in_ms=int(issued.expires.timestamp() * 1000),
    )


@router.post(
    "/logout",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="End the current session",
)
async def logout(
    session: SessionContext = Depends(get_current_session),
    db: AsyncSession = Depends(get_db),
):
    await auth_service.sign_out(db, session.session_id)
    return


@router.get(
    "/session",
    response_model=SessionRead,
    summary="Current session",
)
async def read_session(
    session: SessionContext = Depends(get_current_session),
) -> SessionRead:
    profile = session.profile
    return SessionRead(
        user_id=session.user.id,
        email=session.user.email,
        full_name=profile.full_name if profile else None,
        profile_id=profile.id if profile else None,
        favorite_knight_id=profile.favorite_knight_id if profile else None,
        is_admin=session.is_admin,
    )
