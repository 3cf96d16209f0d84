# src/infrastructure/post_repo.py
from typing import List, Optional, Tuple
from sqlmodel.ext.asyncio.session import AsyncSession
from sqlalchemy import func
from sqlmodel import select
from src.models.post import Post
import uuid

POST_STATUS_POSTED = "posted"
POST_STATUS_DRAFT = "draft"
POST_STATUS_SCHEDULED = "scheduled"

class PostRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_owned(self, post_id: uuid.UUID, user_id: uuid.UUID) -> Optional[Post]:
        q = select(Post).where(Post.id == post_id, Post.user_id == user_id)
        res = await self.session.execute(q)
        return res.scalar_one_or_none()

    async def page_owned(
        self,
        user_id: uuid.UUID,
        offset: int,
        limit: int,
        status: Optional[str] = None,
    ) -> Tuple[List[Post], int]:
        filters = [Post.user_id == user_id]
        if status == POST_STATUS_POSTED:
            filters.append(Post.is_posted.is_(True))
        elif status == POST_STATUS_DRAFT:
            filters += [Post.is_posted.is_(False), Post.scheduled_at.is_(None)]
        elif status == POST_STATUS_SCHEDULED:
            filters += [Post.is_posted.is_(False), Post.scheduled_at.is_not(None)]

        q = (
            select(Post)
            .where(*filters)
            .order_by(Post.created_at.desc(), Post.id)
            .offset(offset)
            .limit(limit)
        )
        res = await self.session.execute(q)
        total = await self.session.execute(select(func.count()).select_from(Post).where(*filters))
        return list(res.scalars().all()), total.scalar_one()

    def stage(self, post: Post) -> None:
        self.session.add(post)

    async def stage_delete(self, post: Post) -> None:
        await self.session.delete(post)
