# src/services/post_service.py
from collections import defaultdict
from datetime import datetime
from typing import Dict, List, Optional, Sequence, Tuple
import re
import uuid

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel.ext.asyncio.session import AsyncSession

from src.exceptions import InvalidContentError, InvalidScheduleError, NotFoundError
from src.infrastructure.media_repo import MediaRepository
from src.infrastructure.post_repo import PostRepository
from src.models.columns import utcnow
from src.models.media_asset import MediaAsset
from src.models.post import Post
from src.schemas.base import Pagination, to_utc
from src.schemas.media_schema import MediaAssetRead
from src.schemas.post_schema import PostCreate, PostRead, PostUpdate
from src.services.media_service import MediaService

logger = structlog.get_logger(__name__)

# calendar date plus at least hours and minutes; bare dates and epoch numbers are refused
_ISO_DATETIME = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}")


def normalize_content(content: Optional[str]) -> str:
    text = (content or "").strip()
    if not text:
        raise InvalidContentError()
    return text


def parse_schedule(raw: Optional[str], now: Optional[datetime] = None) -> Optional[datetime]:
    """Parse an ISO-8601 date-time that must lie strictly in the future.

    Naive values are taken as UTC. Returns aware UTC, or None when no
    schedule was given.
    """
    if not raw:
        return None
    text = raw.strip()
    if not _ISO_DATETIME.match(text):
        raise InvalidScheduleError("Please provide a valid date for scheduling")
    if text[-1] in "Zz":
        text = text[:-1] + "+00:00"
    try:
        value = to_utc(datetime.fromisoformat(text))
    except ValueError:
        raise InvalidScheduleError("Please provide a valid date for scheduling")
    if value <= (now or utcnow()):
        raise InvalidScheduleError("Scheduled date must be in the future")
    return value


def post_view(post: Post, assets: Sequence[MediaAsset]) -> PostRead:
    return PostRead(
        id=post.id,
        user_id=post.user_id,
        content=post.content,
        convo=post.convo,
        socials=list(post.socials or []),
        scheduled_at=post.scheduled_at,
        is_posted=post.is_posted,
        created_at=post.created_at,
        updated_at=post.updated_at,
        media_assets=[MediaAssetRead.model_validate(a) for a in assets],
    )


class PostService:
    """
    Post writes are single units of work: the post row and its media links are
    committed together, after every check has passed.

    Two requests linking the same asset to different posts are not serialized;
    whichever commits last owns the asset.
    """

    def __init__(self, session: AsyncSession, media_service: MediaService):
        self.session = session
        self.media = media_service
        self.posts = PostRepository(session)
        self.media_repo = MediaRepository(session)

    async def _commit(self) -> None:
        try:
            await self.session.commit()
        except SQLAlchemyError:
            await self.session.rollback()
            raise

    async def create_post_with_media(self, owner_id: uuid.UUID, payload: PostCreate) -> Tuple[Post, List[MediaAsset]]:
        content = normalize_content(payload.content)
        assets = await self.media.resolve_owned(payload.media_asset_ids, owner_id)
        scheduled_at = parse_schedule(payload.scheduled_at)

        post = Post(
            user_id=owner_id,
            content=content,
            convo=payload.convo,
            socials=list(payload.socials),
            scheduled_at=scheduled_at,
            is_posted=False,
        )
        self.posts.stage(post)
        await self.session.flush()
        await self.media_repo.stage_attach([a.id for a in assets], owner_id, post.id)
        await self._commit()

        linked = await self.media_repo.list_by_post(post.id)
        logger.info(
            "post_created",
            post_id=str(post.id),
            user_id=str(owner_id),
            media_count=len(linked),
            scheduled=scheduled_at is not None,
        )
        return post, linked

    async def get_post(self, post_id: uuid.UUID, owner_id: uuid.UUID) -> Tuple[Post, List[MediaAsset]]:
        post = await self.posts.get_owned(post_id, owner_id)
        if not post:
            raise NotFoundError("Post not found")
        return post, await self.media_repo.list_by_post(post.id)

    async def list_posts(
        self,
        owner_id: uuid.UUID,
        page: int,
        limit: int,
        status: Optional[str] = None,
    ) -> Tuple[List[Tuple[Post, List[MediaAsset]]], Pagination]:
        posts, total = await self.posts.page_owned(owner_id, (page - 1) * limit, limit, status)
        media_by_post: Dict[uuid.UUID, List[MediaAsset]] = defaultdict(list)
        for asset in await self.media_repo.list_by_posts([p.id for p in posts]):
            media_by_post[asset.post_id].append(asset)
        return [(p, media_by_post[p.id]) for p in posts], Pagination.build(page, limit, total)

    async def update_post(self, post_id: uuid.UUID, owner_id: uuid.UUID, payload: PostUpdate) -> Tuple[Post, List[MediaAsset]]:
        post = await self.posts.get_owned(post_id, owner_id)
        if not post:
            raise NotFoundError("Post not found")

        fields = payload.model_fields_set
        content = normalize_content(payload.content) if "content" in fields else None
        new_assets = None
        if "media_asset_ids" in fields and payload.media_asset_ids is not None:
            new_assets = await self.media.resolve_owned(payload.media_asset_ids, owner_id)
        if "scheduled_at" in fields:
            post.scheduled_at = parse_schedule(payload.scheduled_at)

        if content is not None:
            post.content = content
        if "socials" in fields and payload.socials is not None:
            post.socials = list(payload.socials)
        if "convo" in fields:
            post.convo = payload.convo
        post.updated_at = utcnow()
        self.posts.stage(post)

        if new_assets is not None:
            await self.session.flush()
            await self.media_repo.stage_detach_post(post.id)
            await self.media_repo.stage_attach([a.id for a in new_assets], owner_id, post.id)
        await self._commit()

        linked = await self.media_repo.list_by_post(post.id)
        logger.info("post_updated", post_id=str(post.id), user_id=str(owner_id), fields=sorted(fields))
        return post, linked

    async def delete_post(self, post_id: uuid.UUID, owner_id: uuid.UUID) -> None:
        post = await self.posts.get_owned(post_id, owner_id)
        if not post:
            raise NotFoundError("Post not found")
        # assets survive their post; they go back to the owner's library
        await self.media_repo.stage_detach_post(post.id)
        await self.posts.stage_delete(post)
        await self._commit()
        logger.info("post_deleted", post_id=str(post_id), user_id=str(owner_id))
