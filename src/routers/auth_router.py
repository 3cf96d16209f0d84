# src/routers/auth_router.py
from fastapi import APIRouter, Depends, status
from sqlmodel.ext.asyncio.session import AsyncSession

from ..dependencies.auth import AuthenticatedUser, get_current_user
from ..dependencies.db import get_session_dep
from ..UAA.repository import UserRepository
from ..UAA.services import UserService
from ..UAA.schemas import AuthResponse, IdentityRead, SigninRequest, SignupRequest, UserPublic

router = APIRouter(prefix="/auth", tags=["auth"])


def _auth_response(svc: UserService, user) -> AuthResponse:
    access = svc.issue_token(user)
    return AuthResponse(
        token=access["token"],
        expires_in=access["expires_in"],
        user=UserPublic.model_validate(user),
    )


@router.post("/signup", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def signup(user_in: SignupRequest, session: AsyncSession = Depends(get_session_dep)):
    svc = UserService(UserRepository(session), session)
    created = await svc.register_user(user_in)
    return _auth_response(svc, created)


@router.post("/signin", response_model=AuthResponse)
async def signin(form_data: SigninRequest, session: AsyncSession = Depends(get_session_dep)):
    """
    Expects JSON: {"email": "...", "password": "..."}
    Unknown email and wrong password produce the same 401 INVALID_CREDENTIALS.
    """
    svc = UserService(UserRepository(session), session)
    user = await svc.authenticate_user(form_data.email, form_data.password)
    return _auth_response(svc, user)


@router.get("/profile", response_model=IdentityRead)
async def profile(current_user: AuthenticatedUser = Depends(get_current_user)):
    """Echo the identity carried by the bearer credential."""
    return IdentityRead(user_id=current_user.user_id, email=current_user.email)
