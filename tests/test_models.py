"""Tests for timestamp storage."""

import uuid
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.exc import StatementError

from src.infrastructure.database import get_session
from src.models.columns import UTCDateTimeType, utcnow
from src.models.post import Post
from src.UAA.models import User

from tests.api_utils import bearer, signup


class TestUTCDateTimeType:
    def test_utcnow_is_aware(self):
        assert utcnow().utcoffset() == timedelta(0)

    def test_naive_value_is_refused_on_bind(self):
        with pytest.raises(ValueError, match="timezone"):
            UTCDateTimeType().process_bind_param(datetime(2030, 1, 1, 12, 0), None)

    def test_offsets_are_converted_on_bind(self):
        value = datetime(2030, 1, 1, 14, 0, tzinfo=timezone(timedelta(hours=2)))
        bound = UTCDateTimeType().process_bind_param(value, None)
        assert bound == value
        assert bound.tzinfo == timezone.utc

    def test_offsetless_result_is_tagged_utc(self):
        loaded = UTCDateTimeType().process_result_value(datetime(2030, 1, 1, 12, 0), None)
        assert loaded == datetime(2030, 1, 1, 12, 0, tzinfo=timezone.utc)


class TestPersistedTimestamps:
    @pytest.mark.asyncio
    async def test_naive_write_fails(self, engine):
        user = User(
            email="naive@example.com",
            username="naive",
            hashed_password="x",
            created_at=datetime(2030, 1, 1, 12, 0),
        )
        async with get_session(bind=engine) as session:
            session.add(user)
            with pytest.raises(StatementError):
                await session.commit()

    @pytest.mark.asyncio
    async def test_timestamps_read_back_aware(self, client, engine):
        created = await signup(client, "alice", "alice@example.com", "secret1")
        await client.post("/auth/signin", json={"email": "alice@example.com", "password": "secret1"})
        user_id = uuid.UUID(created["user"]["id"])
        scheduled = utcnow().replace(microsecond=0) + timedelta(days=3)

        async with get_session(bind=engine) as session:
            session.add(Post(user_id=user_id, content="later", scheduled_at=scheduled))
            await session.commit()

        async with get_session(bind=engine) as session:
            user = await session.get(User, user_id)
            assert user.created_at.tzinfo is not None
            assert user.last_login.tzinfo is not None
            assert abs((utcnow() - user.created_at).total_seconds()) < 60

        response = await client.get("/posts", headers=bearer(created["token"]))
        [post] = response.json()["posts"]
        assert datetime.fromisoformat(post["scheduledAt"].replace("Z", "+00:00")) == scheduled
