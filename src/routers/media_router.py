# src/routers/media_router.py
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Query, UploadFile, status
from sqlmodel.ext.asyncio.session import AsyncSession

from src.dependencies.auth import AuthenticatedUser, get_current_user
from src.dependencies.clients import get_storage
from src.dependencies.db import get_session_dep
from src.exceptions import NotFoundError, TooManyFilesError
from src.infrastructure.object_storage import (
    MAX_FILES_PER_UPLOAD,
    MAX_VIDEO_SIZE,
    IncomingFile,
    StorageBackend,
)
from src.schemas.base import parse_uuid
from src.schemas.media_schema import (
    DeleteResponse,
    MediaAssetDetail,
    MediaAssetRead,
    MediaListResponse,
    MediaType,
    PostSummary,
    PrepareLinkedInRequest,
    PrepareLinkedInResponse,
    UploadResponse,
)
from src.services.media_service import MediaService

router = APIRouter(prefix="/media", tags=["media"])


def get_media_service(
    session: AsyncSession = Depends(get_session_dep),
    storage: StorageBackend = Depends(get_storage),
) -> MediaService:
    return MediaService(session, storage)


@router.post("/upload", response_model=UploadResponse, status_code=status.HTTP_201_CREATED)
async def upload_media(
    media: List[UploadFile] = File(...),
    svc: MediaService = Depends(get_media_service),
    current_user: AuthenticatedUser = Depends(get_current_user),
):
    """Multipart upload, field "media". Max 10 files, images <= 5MB, videos <= 15MB."""
    if len(media) > MAX_FILES_PER_UPLOAD:
        raise TooManyFilesError(
            f"Maximum {MAX_FILES_PER_UPLOAD} files allowed per upload",
            details={"count": len(media), "limit": MAX_FILES_PER_UPLOAD},
        )
    files = []
    for f in media:
        # one byte past the largest ceiling is enough to reject an oversized file
        data = await f.read(MAX_VIDEO_SIZE + 1)
        files.append(
            IncomingFile(
                file_name=f.filename or "upload",
                mime_type=f.content_type or "application/octet-stream",
                data=data,
            )
        )
    created = await svc.upload(current_user.user_id, files)
    return UploadResponse(
        message=f"Successfully uploaded {len(created)} file(s)",
        uploaded_files=[MediaAssetRead.model_validate(a) for a in created],
        total_uploaded=len(created),
    )


@router.get("/assets", response_model=MediaListResponse)
async def list_media(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    type: Optional[MediaType] = Query(None),
    svc: MediaService = Depends(get_media_service),
    current_user: AuthenticatedUser = Depends(get_current_user),
):
    assets, pagination = await svc.list_assets(current_user.user_id, page, limit, type)
    return MediaListResponse(assets=[MediaAssetRead.model_validate(a) for a in assets], pagination=pagination)


@router.get("/assets/{asset_id}", response_model=MediaAssetDetail)
async def get_media(
    asset_id: str,
    svc: MediaService = Depends(get_media_service),
    current_user: AuthenticatedUser = Depends(get_current_user),
):
    parsed = parse_uuid(asset_id)
    if parsed is None:
        raise NotFoundError("Media asset not found")
    asset, post = await svc.get_asset(parsed, current_user.user_id)
    detail = MediaAssetDetail.model_validate(asset)
    if post is not None:
        detail.post = PostSummary.model_validate(post)
    return detail


@router.delete("/assets/{asset_id}", response_model=DeleteResponse)
async def delete_media(
    asset_id: str,
    svc: MediaService = Depends(get_media_service),
    current_user: AuthenticatedUser = Depends(get_current_user),
):
    parsed = parse_uuid(asset_id)
    if parsed is None:
        raise NotFoundError("Media asset not found")
    await svc.delete_asset(parsed, current_user.user_id)
    return DeleteResponse(message="Media asset deleted successfully")


@router.post("/prepare-linkedin", response_model=PrepareLinkedInResponse)
async def prepare_for_linkedin(
    payload: PrepareLinkedInRequest,
    svc: MediaService = Depends(get_media_service),
    current_user: AuthenticatedUser = Depends(get_current_user),
):
    share, assets = await svc.prepare_for_linkedin(payload.asset_ids, current_user.user_id, payload.post_content)
    return PrepareLinkedInResponse(
        linkedin_payload=share,
        assets=[MediaAssetRead.model_validate(a) for a in assets],
    )
