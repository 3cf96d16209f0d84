# src/routers/user_router.py
from fastapi import APIRouter, Depends
from sqlmodel.ext.asyncio.session import AsyncSession
from src.dependencies.auth import AuthenticatedUser, get_current_user
from src.dependencies.db import get_session_dep
from src.exceptions import UnauthorizedError
from src.UAA.repository import UserRepository
from src.UAA.schemas import UserRead

router = APIRouter(prefix="/users", tags=["users"])

@router.get("/me", response_model=UserRead)
async def me(current_user: AuthenticatedUser = Depends(get_current_user), session: AsyncSession = Depends(get_session_dep)):
    user = await UserRepository(session).get_by_id(current_user.user_id)
    if not user:
        # signature is valid but the account is gone
        raise UnauthorizedError("Token is not valid")
    return UserRead.model_validate(user)
