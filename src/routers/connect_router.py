# src/routers/connect_router.py
from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import RedirectResponse
from sqlmodel.ext.asyncio.session import AsyncSession

from src.dependencies.auth import AuthenticatedUser, get_current_user
from src.dependencies.clients import get_linkedin_client
from src.dependencies.db import get_session_dep
from src.infrastructure.linkedin_client import LinkedInClient
from src.schemas.connect_schema import (
    ConnectionStatus,
    ConnectionTestResponse,
    ConnectUrlResponse,
    DisconnectResponse,
    LinkedInUserInfo,
)
from src.services.connect_service import ConnectService

router = APIRouter(prefix="/connect", tags=["connect"])


def get_connect_service(
    session: AsyncSession = Depends(get_session_dep),
    client: LinkedInClient = Depends(get_linkedin_client),
) -> ConnectService:
    return ConnectService(session, client)


@router.get("", response_model=ConnectUrlResponse)
async def connect_start(
    svc: ConnectService = Depends(get_connect_service),
    current_user: AuthenticatedUser = Depends(get_current_user),
):
    started = svc.start(current_user.user_id)
    return ConnectUrlResponse(url=started["url"], state=started["state"])


@router.get("/callback")
async def connect_callback(
    code: Optional[str] = None,
    state: Optional[str] = None,
    error: Optional[str] = None,
    svc: ConnectService = Depends(get_connect_service),
):
    """Browser lands here from LinkedIn; the identity travels in `state`."""
    target = await svc.complete(code, state, error)
    return RedirectResponse(target, status_code=302)


@router.get("/status", response_model=ConnectionStatus)
async def connect_status(
    svc: ConnectService = Depends(get_connect_service),
    current_user: AuthenticatedUser = Depends(get_current_user),
):
    state = await svc.status(current_user.user_id)
    return ConnectionStatus(connected=state.connected, expiry=state.expiry, is_expired=state.is_expired)


@router.post("/disconnect", response_model=DisconnectResponse)
async def connect_disconnect(
    svc: ConnectService = Depends(get_connect_service),
    current_user: AuthenticatedUser = Depends(get_current_user),
):
    await svc.disconnect(current_user.user_id)
    return DisconnectResponse()


@router.get("/test", response_model=ConnectionTestResponse)
async def connect_test(
    svc: ConnectService = Depends(get_connect_service),
    current_user: AuthenticatedUser = Depends(get_current_user),
):
    info = await svc.check_connection(current_user.user_id)
    return ConnectionTestResponse(user_info=LinkedInUserInfo(**info))
