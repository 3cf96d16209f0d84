# src/infrastructure/media_repo.py
from typing import List, Optional, Sequence, Tuple
from sqlmodel.ext.asyncio.session import AsyncSession
from sqlalchemy import delete, func, update
from sqlmodel import select
from src.models.media_asset import MediaAsset
import uuid

class MediaRepository:
    """
    Repository for MediaAsset rows. Every lookup is scoped to the owning user.
    Methods that only stage changes leave the commit to the caller so they can
    join a larger unit of work.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create_many(self, assets: Sequence[MediaAsset]) -> List[MediaAsset]:
        self.session.add_all(list(assets))
        await self.session.commit()
        for asset in assets:
            await self.session.refresh(asset)
        return list(assets)

    async def get_owned(self, asset_id: uuid.UUID, user_id: uuid.UUID) -> Optional[MediaAsset]:
        q = select(MediaAsset).where(MediaAsset.id == asset_id, MediaAsset.user_id == user_id)
        res = await self.session.execute(q)
        return res.scalar_one_or_none()

    async def list_owned_by_ids(self, asset_ids: Sequence[uuid.UUID], user_id: uuid.UUID) -> List[MediaAsset]:
        if not asset_ids:
            return []
        q = select(MediaAsset).where(MediaAsset.id.in_(list(asset_ids)), MediaAsset.user_id == user_id)
        res = await self.session.execute(q)
        return list(res.scalars().all())

    async def list_by_post(self, post_id: uuid.UUID) -> List[MediaAsset]:
        q = select(MediaAsset).where(MediaAsset.post_id == post_id).order_by(MediaAsset.uploaded_at)
        res = await self.session.execute(q)
        return list(res.scalars().all())

    async def list_by_posts(self, post_ids: Sequence[uuid.UUID]) -> List[MediaAsset]:
        if not post_ids:
            return []
        q = select(MediaAsset).where(MediaAsset.post_id.in_(list(post_ids))).order_by(MediaAsset.uploaded_at)
        res = await self.session.execute(q)
        return list(res.scalars().all())

    async def page_owned(
        self,
        user_id: uuid.UUID,
        offset: int,
        limit: int,
        media_type: Optional[str] = None,
    ) -> Tuple[List[MediaAsset], int]:
        filters = [MediaAsset.user_id == user_id]
        if media_type:
            filters.append(MediaAsset.type == media_type)
        q = (
            select(MediaAsset)
            .where(*filters)
            .order_by(MediaAsset.uploaded_at.desc(), MediaAsset.id)
            .offset(offset)
            .limit(limit)
        )
        res = await self.session.execute(q)
        total = await self.session.execute(select(func.count()).select_from(MediaAsset).where(*filters))
        return list(res.scalars().all()), total.scalar_one()

    async def stage_detach_post(self, post_id: uuid.UUID) -> None:
        """Clear post_id on every asset linked to the post (no commit)."""
        await self.session.execute(
            update(MediaAsset).where(MediaAsset.post_id == post_id).values(post_id=None)
        )

    async def stage_attach(self, asset_ids: Sequence[uuid.UUID], user_id: uuid.UUID, post_id: uuid.UUID) -> None:
        """Point the owned assets at the post (no commit)."""
        if not asset_ids:
            return
        await self.session.execute(
            update(MediaAsset)
            .where(MediaAsset.id.in_(list(asset_ids)), MediaAsset.user_id == user_id)
            .values(post_id=post_id)
        )

    async def delete_owned(self, asset_id: uuid.UUID, user_id: uuid.UUID) -> None:
        await self.session.execute(
            delete(MediaAsset).where(MediaAsset.id == asset_id, MediaAsset.user_id == user_id)
        )
        await self.session.commit()
