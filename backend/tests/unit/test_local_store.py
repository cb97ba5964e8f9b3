"""Tests for the local fallback store."""

import json

import pytest
from client.local_store import LocalFallbackStore
from core.settings import FALLBACK_MEMORIES_KEY
from domain.exceptions import NotFoundError, PermissionDeniedError, UnavailableError, ValidationError
from domain.value_objects.enums import ConnectionState


def _stored_records(path):
    return json.loads(path.read_text())[FALLBACK_MEMORIES_KEY]


class TestLocalFallbackStore:
    async def test_always_available(self, fallback_store):
        assert fallback_store.is_available()
        assert fallback_store.state == ConnectionState.CONNECTED

    async def test_empty_store_lists_nothing(self, fallback_store):
        assert await fallback_store.list() == []

    async def test_create_stores_legacy_layout(self, fallback_store, fallback_path):
        memory = await fallback_store.create(
            title="Beach day", image_ref="https://x/img.jpg", author_id=7, author_name="ana"
        )

        assert memory.like_count == 0
        assert memory.liked_by == []
        assert memory.comments == []

        [record] = _stored_records(fallback_path)
        assert record["id"] == memory.id
        assert record["user_id"] == 7
        assert record["username"] == "ana"
        assert record["image_url"] == "https://x/img.jpg"
        assert record["likes"] == 0
        assert record["likedBy"] == []

    async def test_create_validation_persists_nothing(self, fallback_store, fallback_path):
        with pytest.raises(ValidationError):
            await fallback_store.create(title="", image_ref="https://x/img.jpg", author_id=7, author_name="ana")
        with pytest.raises(ValidationError):
            await fallback_store.create(title="Beach", image_ref="", author_id=7, author_name="ana")

        assert not fallback_path.exists() or _stored_records(fallback_path) == []

    async def test_list_newest_first_with_limit(self, fallback_store):
        first = await fallback_store.create(title="one", image_ref="https://x/1.jpg", author_id=7, author_name="ana")
        second = await fallback_store.create(title="two", image_ref="https://x/2.jpg", author_id=7, author_name="ana")
        third = await fallback_store.create(title="three", image_ref="https://x/3.jpg", author_id=7, author_name="ana")

        assert [m.id for m in await fallback_store.list()] == [third.id, second.id, first.id]
        assert [m.id for m in await fallback_store.list(limit=2)] == [third.id, second.id]

        with pytest.raises(ValidationError):
            await fallback_store.list(limit=0)

    async def test_toggle_like_parity(self, fallback_store, fallback_path):
        memory = await fallback_store.create(title="one", image_ref="https://x/1.jpg", author_id=7, author_name="ana")

        liked = await fallback_store.toggle_like(memory.id, 9)
        assert liked.liked_by == [9]
        assert liked.like_count == 1
        assert _stored_records(fallback_path)[0]["likes"] == 1

        unliked = await fallback_store.toggle_like(memory.id, 9)
        assert unliked.liked_by == []
        assert unliked.like_count == 0

    async def test_toggle_like_unknown_memory(self, fallback_store):
        with pytest.raises(NotFoundError):
            await fallback_store.toggle_like("missing", 9)

    async def test_comments_append_in_order(self, fallback_store):
        memory = await fallback_store.create(title="one", image_ref="https://x/1.jpg", author_id=7, author_name="ana")

        for text in ["first", "second", "first"]:
            await fallback_store.add_comment(memory.id, author_id=9, author_name="cy", text=text)

        stored = await fallback_store.get_by_id(memory.id)
        assert [c.text for c in stored.comments] == ["first", "second", "first"]

        with pytest.raises(ValidationError):
            await fallback_store.add_comment(memory.id, author_id=9, author_name="cy", text="  ")

    async def test_delete_permissions(self, fallback_store, author, other_member, admin):
        memory = await fallback_store.create(title="one", image_ref="https://x/1.jpg", author_id=7, author_name="ana")

        with pytest.raises(PermissionDeniedError):
            await fallback_store.delete(memory.id, other_member)
        with pytest.raises(PermissionDeniedError):
            await fallback_store.delete(memory.id, None)
        assert (await fallback_store.get_by_id(memory.id)).id == memory.id

        await fallback_store.delete(memory.id, admin)
        with pytest.raises(NotFoundError):
            await fallback_store.get_by_id(memory.id)

    async def test_author_can_delete(self, fallback_store, author):
        memory = await fallback_store.create(title="one", image_ref="https://x/1.jpg", author_id=7, author_name="ana")
        await fallback_store.delete(memory.id, author)
        assert await fallback_store.list() == []

    async def test_legacy_records_are_backfilled(self, fallback_path, clock):
        fallback_path.write_text(
            json.dumps(
                {
                    FALLBACK_MEMORIES_KEY: [
                        {
                            "id": 1700000000000,
                            "user_id": 2,
                            "username": "demo",
                            "title": "Old post",
                            "image_url": "https://x/old.jpg",
                            "likes": 12,
                            "created_at": "2023-11-14T22:13:20.000Z",
                        }
                    ]
                }
            )
        )
        store = LocalFallbackStore(fallback_path, clock=clock)

        [memory] = await store.list()
        assert memory.id == "1700000000000"
        assert memory.like_count == 0
        assert memory.comments == []

        # Numeric legacy ids are matched by their string form
        liked = await store.toggle_like("1700000000000", 9)
        assert liked.liked_by == [9]
        [record] = _stored_records(fallback_path)
        assert record["likes"] == 1
        assert record["comments"] == []

    async def test_corrupt_storage_is_unavailable(self, fallback_path, clock):
        fallback_path.write_text("{not json")
        store = LocalFallbackStore(fallback_path, clock=clock)

        with pytest.raises(UnavailableError):
            await store.list()

    async def test_unreadable_records_are_skipped(self, fallback_path, clock):
        good = {"id": "ok", "user_id": 7, "username": "ana", "title": "Fine", "image_url": "https://x/ok.jpg"}
        fallback_path.write_text(
            json.dumps(
                {
                    FALLBACK_MEMORIES_KEY: [
                        good,
                        {**good, "id": "guest-comment", "comments": [{"userId": "guest", "text": "hi"}]},
                        {**good, "id": "far-future", "created_at": 10**20},
                    ]
                }
            )
        )
        store = LocalFallbackStore(fallback_path, clock=clock)

        memories = await store.list()

        assert sorted(m.id for m in memories) == ["far-future", "ok"]
        far_future = next(m for m in memories if m.id == "far-future")
        assert far_future.created_at.year == 1970

    async def test_bad_liked_by_entries_are_dropped(self, fallback_path, clock):
        fallback_path.write_text(
            json.dumps(
                {
                    FALLBACK_MEMORIES_KEY: [
                        {"id": "1", "user_id": 2, "title": "t", "image_url": "https://x/1.jpg", "likedBy": ["abc", 3, "3"]}
                    ]
                }
            )
        )
        store = LocalFallbackStore(fallback_path, clock=clock)

        liked = await store.toggle_like("1", 9)

        assert liked.liked_by == [3, 9]
        assert liked.like_count == 2
        assert _stored_records(fallback_path)[0]["likedBy"] == [3, 9]

    async def test_create_replaces_non_list_storage_key(self, fallback_path, clock):
        fallback_path.write_text(json.dumps({FALLBACK_MEMORIES_KEY: {"oops": 1}, "other": "kept"}))
        store = LocalFallbackStore(fallback_path, clock=clock)

        memory = await store.create(title="Fresh", image_ref="https://x/f.jpg", author_id=7, author_name="ana")

        assert [m.id for m in await store.list()] == [memory.id]
        assert json.loads(fallback_path.read_text())["other"] == "kept"

    async def test_bad_author_id_only_lets_admins_delete(self, fallback_path, clock, author, admin):
        fallback_path.write_text(
            json.dumps({FALLBACK_MEMORIES_KEY: [{"id": "1", "user_id": "nobody", "title": "t", "image_url": "https://x/1.jpg"}]})
        )
        store = LocalFallbackStore(fallback_path, clock=clock)

        with pytest.raises(PermissionDeniedError):
            await store.delete("1", author)
        await store.delete("1", admin)
        assert _stored_records(fallback_path) == []
