# src/services/media_service.py
import os
from typing import Any, Dict, List, Optional, Sequence, Tuple
import uuid

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel.ext.asyncio.session import AsyncSession

from src.exceptions import InvalidMediaReferenceError, NotFoundError
from src.infrastructure.media_repo import MediaRepository
from src.infrastructure.object_storage import (
    DeleteOutcome,
    IncomingFile,
    StorageBackend,
    StoredObject,
    media_type_for,
    validate_batch,
)
from src.models.media_asset import MEDIA_TYPE_IMAGE, MediaAsset
from src.models.post import Post
from src.schemas.base import Pagination

logger = structlog.get_logger(__name__)


def parse_asset_ids(raw_ids: Sequence[str]) -> List[uuid.UUID]:
    """Parse and de-duplicate ids, keeping request order. A malformed id cannot
    reference an asset, so it is reported as an invalid reference."""
    parsed: List[uuid.UUID] = []
    for raw in raw_ids:
        try:
            asset_id = uuid.UUID(str(raw))
        except ValueError:
            raise InvalidMediaReferenceError(details={"invalidIds": [raw]})
        if asset_id not in parsed:
            parsed.append(asset_id)
    return parsed


class MediaService:
    def __init__(self, session: AsyncSession, storage: StorageBackend):
        self.session = session
        self.storage = storage
        self.repo = MediaRepository(session)

    async def upload(self, owner_id: uuid.UUID, files: Sequence[IncomingFile]) -> List[MediaAsset]:
        # the whole batch is checked before the first byte is stored
        validate_batch(files)

        stored: List[Tuple[IncomingFile, StoredObject]] = []
        try:
            for f in files:
                obj = await self.storage.store(f.data, f.mime_type, str(owner_id), f.file_name)
                stored.append((f, obj))
        except Exception:
            await self._discard_blobs([obj for _, obj in stored])
            raise

        assets = []
        for f, obj in stored:
            media_type = media_type_for(f.mime_type)
            assets.append(
                MediaAsset(
                    user_id=owner_id,
                    file_name=f.file_name,
                    mime_type=f.mime_type,
                    size=f.size,
                    storage_key=obj.key,
                    url=obj.url,
                    type=media_type,
                    title=os.path.splitext(f.file_name)[0] or None,
                    description=f"{media_type.lower()} uploaded for LinkedIn sharing",
                )
            )
        try:
            created = await self.repo.create_many(assets)
        except SQLAlchemyError:
            await self.session.rollback()
            await self._discard_blobs([obj for _, obj in stored])
            raise
        logger.info("media_uploaded", user_id=str(owner_id), count=len(created))
        return created

    async def _discard_blobs(self, objects: Sequence[StoredObject]) -> None:
        for obj in objects:
            await self.storage.delete(obj.key)
        if objects:
            logger.warning("media_upload_rolled_back", discarded=len(objects))

    async def list_assets(
        self,
        owner_id: uuid.UUID,
        page: int,
        limit: int,
        media_type: Optional[str] = None,
    ) -> Tuple[List[MediaAsset], Pagination]:
        assets, total = await self.repo.page_owned(owner_id, (page - 1) * limit, limit, media_type)
        return assets, Pagination.build(page, limit, total)

    async def get_asset(self, asset_id: uuid.UUID, owner_id: uuid.UUID) -> Tuple[MediaAsset, Optional[Post]]:
        asset = await self.repo.get_owned(asset_id, owner_id)
        if not asset:
            raise NotFoundError("Media asset not found")
        post = await self.session.get(Post, asset.post_id) if asset.post_id else None
        return asset, post

    async def delete_asset(self, asset_id: uuid.UUID, owner_id: uuid.UUID) -> DeleteOutcome:
        asset = await self.repo.get_owned(asset_id, owner_id)
        if not asset:
            raise NotFoundError("Media asset not found")

        outcome = await self.storage.delete(asset.storage_key)
        if outcome is DeleteOutcome.DELETE_FAILED_NON_FATAL:
            logger.warning("media_blob_delete_failed", asset_id=str(asset_id), key=asset.storage_key)

        # the row is authoritative; it goes regardless of the blob outcome
        await self.repo.delete_owned(asset_id, owner_id)
        logger.info("media_deleted", asset_id=str(asset_id), user_id=str(owner_id), blob=outcome.value)
        return outcome

    async def resolve_owned(self, raw_ids: Sequence[str], owner_id: uuid.UUID) -> List[MediaAsset]:
        """Load every referenced asset or fail; partial matches are rejected."""
        asset_ids = parse_asset_ids(raw_ids)
        if not asset_ids:
            return []
        assets = await self.repo.list_owned_by_ids(asset_ids, owner_id)
        if len(assets) != len(asset_ids):
            found = {a.id for a in assets}
            missing = [str(i) for i in asset_ids if i not in found]
            logger.info("media_reference_rejected", user_id=str(owner_id), missing=len(missing))
            raise InvalidMediaReferenceError(details={"invalidIds": missing})
        by_id = {a.id: a for a in assets}
        return [by_id[i] for i in asset_ids]

    async def prepare_for_linkedin(
        self,
        raw_ids: Sequence[str],
        owner_id: uuid.UUID,
        post_content: Optional[str] = None,
    ) -> Tuple[Dict[str, Any], List[MediaAsset]]:
        assets = await self.resolve_owned(raw_ids, owner_id)
        if not assets:
            raise InvalidMediaReferenceError("Asset IDs are required")
        payload = build_linkedin_share(assets, post_content)
        return payload, assets


def build_linkedin_share(assets: Sequence[MediaAsset], post_content: Optional[str]) -> Dict[str, Any]:
    """UGC share body for the selected assets. LinkedIn takes a single media
    category per share, so a lone video is VIDEO and anything else is IMAGE."""
    if len(assets) == 1 and assets[0].type != MEDIA_TYPE_IMAGE:
        category = assets[0].type
    else:
        category = MEDIA_TYPE_IMAGE
    return {
        "lifecycleState": "PUBLISHED",
        "specificContent": {
            "com.linkedin.ugc.ShareContent": {
                "shareCommentary": {"text": post_content or "Check out these media files!"},
                "shareMediaCategory": category,
                "media": [
                    {
                        "status": "READY",
                        "description": {"text": a.description or a.title or a.file_name},
                        "originalUrl": a.url,
                        "title": {"text": a.title or a.file_name},
                    }
                    for a in assets
                ],
            }
        },
        "visibility": {"com.linkedin.ugc.MemberNetworkVisibility": "PUBLIC"},
    }
