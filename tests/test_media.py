"""API tests for the media registry."""

import uuid

import pytest

from src.infrastructure.object_storage import MAX_IMAGE_SIZE

from tests.api_utils import MP4_BYTES, PNG_BYTES, upload


class TestUpload:
    @pytest.mark.asyncio
    async def test_upload_creates_assets(self, client, alice, tmp_path):
        assets = await upload(
            client,
            alice["headers"],
            ("holiday.png", PNG_BYTES, "image/png"),
            ("clip.mp4", MP4_BYTES, "video/mp4"),
        )

        assert [a["type"] for a in assets] == ["IMAGE", "VIDEO"]
        image = assets[0]
        assert image["userId"] == alice["id"]
        assert image["postId"] is None
        assert image["fileName"] == "holiday.png"
        assert image["title"] == "holiday"
        assert image["description"] == "image uploaded for LinkedIn sharing"
        assert image["size"] == len(PNG_BYTES)
        assert image["url"].startswith("/static/images/")
        assert assets[1]["url"].startswith("/static/videos/")

        blobs = list((tmp_path / "blobs").rglob("*.*"))
        assert len(blobs) == 2

    @pytest.mark.asyncio
    async def test_response_reports_total(self, client, alice):
        response = await client.post(
            "/media/upload",
            files=[("media", ("a.png", PNG_BYTES, "image/png"))],
            headers=alice["headers"],
        )
        assert response.status_code == 201
        assert response.json()["success"] is True
        assert response.json()["totalUploaded"] == 1

    @pytest.mark.asyncio
    async def test_unsupported_type_writes_nothing(self, client, alice, tmp_path):
        response = await client.post(
            "/media/upload",
            files=[
                ("media", ("a.png", PNG_BYTES, "image/png")),
                ("media", ("doc.pdf", b"%PDF-1.4", "application/pdf")),
            ],
            headers=alice["headers"],
        )
        assert response.status_code == 415
        assert response.json()["error"]["code"] == "UNSUPPORTED_MEDIA_TYPE"
        assert not (tmp_path / "blobs").exists()

        listing = await client.get("/media/assets", headers=alice["headers"])
        assert listing.json()["pagination"]["total"] == 0

    @pytest.mark.asyncio
    async def test_image_at_exact_limit_is_accepted(self, client, alice):
        response = await client.post(
            "/media/upload",
            files=[("media", ("edge.png", b"\x00" * MAX_IMAGE_SIZE, "image/png"))],
            headers=alice["headers"],
        )
        assert response.status_code == 201
        [asset] = response.json()["uploadedFiles"]
        assert asset["type"] == "IMAGE"
        assert asset["size"] == MAX_IMAGE_SIZE

    @pytest.mark.asyncio
    async def test_oversized_image_is_rejected(self, client, alice):
        response = await client.post(
            "/media/upload",
            files=[("media", ("big.png", b"\x00" * (MAX_IMAGE_SIZE + 1), "image/png"))],
            headers=alice["headers"],
        )
        assert response.status_code == 413
        assert response.json()["error"]["code"] == "PAYLOAD_TOO_LARGE"

    @pytest.mark.asyncio
    async def test_more_than_ten_files_is_rejected(self, client, alice):
        files = [("media", (f"{i}.png", PNG_BYTES, "image/png")) for i in range(11)]
        response = await client.post("/media/upload", files=files, headers=alice["headers"])
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "TOO_MANY_FILES"

    @pytest.mark.asyncio
    async def test_store_failure_mid_batch_discards_earlier_blobs(self, client, alice, storage, tmp_path, monkeypatch):
        real_put = storage._put
        calls = []

        async def flaky_put(key, data, mime_type, metadata):
            calls.append(key)
            if len(calls) == 2:
                raise OSError("disk full")
            await real_put(key, data, mime_type, metadata)

        monkeypatch.setattr(storage, "_put", flaky_put)
        response = await client.post(
            "/media/upload",
            files=[
                ("media", ("a.png", PNG_BYTES, "image/png")),
                ("media", ("b.png", PNG_BYTES, "image/png")),
            ],
            headers=alice["headers"],
        )

        assert response.status_code == 502
        assert response.json()["error"]["code"] == "UPSTREAM_ERROR"
        assert list((tmp_path / "blobs").rglob("*.*")) == []
        listing = await client.get("/media/assets", headers=alice["headers"])
        assert listing.json()["assets"] == []


class TestListing:
    @pytest.mark.asyncio
    async def test_pagination_and_type_filter(self, client, alice):
        await upload(client, alice["headers"], *[(f"{i}.png", PNG_BYTES, "image/png") for i in range(3)])
        await upload(client, alice["headers"], ("clip.mp4", MP4_BYTES, "video/mp4"))

        page = await client.get("/media/assets?page=2&limit=3", headers=alice["headers"])
        assert page.status_code == 200
        body = page.json()
        assert body["pagination"] == {"page": 2, "limit": 3, "total": 4, "totalPages": 2}
        assert len(body["assets"]) == 1

        videos = await client.get("/media/assets?type=VIDEO", headers=alice["headers"])
        assert [a["fileName"] for a in videos.json()["assets"]] == ["clip.mp4"]

    @pytest.mark.asyncio
    async def test_newest_first(self, client, alice):
        await upload(client, alice["headers"], ("first.png", PNG_BYTES, "image/png"))
        await upload(client, alice["headers"], ("second.png", PNG_BYTES, "image/png"))

        body = (await client.get("/media/assets", headers=alice["headers"])).json()
        assert [a["fileName"] for a in body["assets"]] == ["second.png", "first.png"]

    @pytest.mark.asyncio
    async def test_limit_is_bounded(self, client, alice):
        response = await client.get("/media/assets?limit=101", headers=alice["headers"])
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_listing_is_scoped_to_owner(self, client, alice, bob):
        await upload(client, alice["headers"], ("a.png", PNG_BYTES, "image/png"))
        body = (await client.get("/media/assets", headers=bob["headers"])).json()
        assert body["assets"] == []
        assert body["pagination"]["total"] == 0


class TestAssetDetail:
    @pytest.mark.asyncio
    async def test_detail_includes_owning_post(self, client, alice):
        [asset] = await upload(client, alice["headers"], ("a.png", PNG_BYTES, "image/png"))

        detail = (await client.get(f"/media/assets/{asset['id']}", headers=alice["headers"])).json()
        assert detail["post"] is None

        created = await client.post(
            "/posts/create",
            json={"content": "hello", "mediaAssetIds": [asset["id"]]},
            headers=alice["headers"],
        )
        post_id = created.json()["post"]["id"]

        detail = (await client.get(f"/media/assets/{asset['id']}", headers=alice["headers"])).json()
        assert detail["postId"] == post_id
        assert detail["post"]["id"] == post_id
        assert detail["post"]["content"] == "hello"

    @pytest.mark.asyncio
    async def test_foreign_and_malformed_ids_are_not_found(self, client, alice, bob):
        [asset] = await upload(client, alice["headers"], ("a.png", PNG_BYTES, "image/png"))

        for path in [f"/media/assets/{asset['id']}", f"/media/assets/{uuid.uuid4()}", "/media/assets/not-a-uuid"]:
            response = await client.get(path, headers=bob["headers"])
            assert response.status_code == 404, path


class TestDelete:
    @pytest.mark.asyncio
    async def test_delete_removes_row_and_blob(self, client, alice, tmp_path):
        [asset] = await upload(client, alice["headers"], ("a.png", PNG_BYTES, "image/png"))

        response = await client.delete(f"/media/assets/{asset['id']}", headers=alice["headers"])
        assert response.status_code == 200
        assert response.json()["success"] is True
        assert list((tmp_path / "blobs").rglob("*.*")) == []

        again = await client.get(f"/media/assets/{asset['id']}", headers=alice["headers"])
        assert again.status_code == 404

    @pytest.mark.asyncio
    async def test_delete_succeeds_when_blob_is_already_gone(self, client, alice, tmp_path):
        [asset] = await upload(client, alice["headers"], ("a.png", PNG_BYTES, "image/png"))
        for blob in (tmp_path / "blobs").rglob("*.*"):
            blob.unlink()

        response = await client.delete(f"/media/assets/{asset['id']}", headers=alice["headers"])
        assert response.status_code == 200

        again = await client.get(f"/media/assets/{asset['id']}", headers=alice["headers"])
        assert again.status_code == 404

    @pytest.mark.asyncio
    async def test_cannot_delete_another_users_asset(self, client, alice, bob):
        [asset] = await upload(client, alice["headers"], ("a.png", PNG_BYTES, "image/png"))

        response = await client.delete(f"/media/assets/{asset['id']}", headers=bob["headers"])
        assert response.status_code == 404

        still_there = await client.get(f"/media/assets/{asset['id']}", headers=alice["headers"])
        assert still_there.status_code == 200

    @pytest.mark.asyncio
    async def test_deleting_linked_asset_unlinks_it_from_post(self, client, alice):
        [asset] = await upload(client, alice["headers"], ("a.png", PNG_BYTES, "image/png"))
        created = await client.post(
            "/posts/create",
            json={"content": "hello", "mediaAssetIds": [asset["id"]]},
            headers=alice["headers"],
        )
        post_id = created.json()["post"]["id"]

        await client.delete(f"/media/assets/{asset['id']}", headers=alice["headers"])

        post = (await client.get(f"/posts/{post_id}", headers=alice["headers"])).json()
        assert post["mediaAssets"] == []


class TestPrepareForLinkedIn:
    @pytest.mark.asyncio
    async def test_builds_share_payload(self, client, alice):
        assets = await upload(
            client,
            alice["headers"],
            ("a.png", PNG_BYTES, "image/png"),
            ("b.png", PNG_BYTES, "image/png"),
        )
        response = await client.post(
            "/media/prepare-linkedin",
            json={"assetIds": [a["id"] for a in assets], "postContent": "Launch day"},
            headers=alice["headers"],
        )

        assert response.status_code == 200
        share = response.json()["linkedinPayload"]["specificContent"]["com.linkedin.ugc.ShareContent"]
        assert share["shareCommentary"]["text"] == "Launch day"
        assert share["shareMediaCategory"] == "IMAGE"
        assert [m["originalUrl"] for m in share["media"]] == [a["url"] for a in assets]

    @pytest.mark.asyncio
    async def test_single_video_is_video_share(self, client, alice):
        [asset] = await upload(client, alice["headers"], ("clip.mp4", MP4_BYTES, "video/mp4"))
        response = await client.post(
            "/media/prepare-linkedin",
            json={"assetIds": [asset["id"]]},
            headers=alice["headers"],
        )
        share = response.json()["linkedinPayload"]["specificContent"]["com.linkedin.ugc.ShareContent"]
        assert share["shareMediaCategory"] == "VIDEO"

    @pytest.mark.asyncio
    async def test_foreign_asset_is_invalid_reference(self, client, alice, bob):
        [asset] = await upload(client, alice["headers"], ("a.png", PNG_BYTES, "image/png"))
        response = await client.post(
            "/media/prepare-linkedin",
            json={"assetIds": [asset["id"]]},
            headers=bob["headers"],
        )
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "INVALID_MEDIA_REFERENCE"

    @pytest.mark.asyncio
    async def test_empty_selection_is_rejected(self, client, alice):
        response = await client.post("/media/prepare-linkedin", json={"assetIds": []}, headers=alice["headers"])
        assert response.status_code == 400
