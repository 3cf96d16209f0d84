# src/routers/post_router.py
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlmodel.ext.asyncio.session import AsyncSession

from src.dependencies.auth import AuthenticatedUser, get_current_user
from src.dependencies.clients import get_storage
from src.dependencies.db import get_session_dep
from src.exceptions import NotFoundError
from src.infrastructure.object_storage import StorageBackend
from src.schemas.base import parse_uuid
from src.schemas.media_schema import DeleteResponse
from src.schemas.post_schema import CreatePostResponse, PostCreate, PostListResponse, PostRead, PostUpdate
from src.services.media_service import MediaService
from src.services.post_service import PostService, post_view

router = APIRouter(prefix="/posts", tags=["posts"])


def get_post_service(
    session: AsyncSession = Depends(get_session_dep),
    storage: StorageBackend = Depends(get_storage),
) -> PostService:
    return PostService(session, MediaService(session, storage))


def _post_id(raw: str):
    post_id = parse_uuid(raw)
    if post_id is None:
        raise NotFoundError("Post not found")
    return post_id


@router.post("/create", response_model=CreatePostResponse, status_code=status.HTTP_201_CREATED)
async def create_post(
    payload: PostCreate,
    svc: PostService = Depends(get_post_service),
    current_user: AuthenticatedUser = Depends(get_current_user),
):
    post, assets = await svc.create_post_with_media(current_user.user_id, payload)
    return CreatePostResponse(
        post=post_view(post, assets),
        is_scheduled=post.scheduled_at is not None,
        media_count=len(assets),
    )


@router.get("", response_model=PostListResponse)
async def list_posts(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    status_filter: Optional[Literal["posted", "draft", "scheduled"]] = Query(None, alias="status"),
    svc: PostService = Depends(get_post_service),
    current_user: AuthenticatedUser = Depends(get_current_user),
):
    rows, pagination = await svc.list_posts(current_user.user_id, page, limit, status_filter)
    return PostListResponse(posts=[post_view(p, assets) for p, assets in rows], pagination=pagination)


@router.get("/{post_id}", response_model=PostRead)
async def get_post(
    post_id: str,
    svc: PostService = Depends(get_post_service),
    current_user: AuthenticatedUser = Depends(get_current_user),
):
    post, assets = await svc.get_post(_post_id(post_id), current_user.user_id)
    return post_view(post, assets)


@router.put("/{post_id}", response_model=PostRead)
async def update_post(
    post_id: str,
    payload: PostUpdate,
    svc: PostService = Depends(get_post_service),
    current_user: AuthenticatedUser = Depends(get_current_user),
):
    post, assets = await svc.update_post(_post_id(post_id), current_user.user_id, payload)
    return post_view(post, assets)


@router.delete("/{post_id}", response_model=DeleteResponse)
async def delete_post(
    post_id: str,
    svc: PostService = Depends(get_post_service),
    current_user: AuthenticatedUser = Depends(get_current_user),
):
    await svc.delete_post(_post_id(post_id), current_user.user_id)
    return DeleteResponse(message="Post deleted successfully")
