"""Post Routes: HTTP contract for list, create, and delete.

Invariants:
    - GET /api/posts and /api/data return the cached feed array
    - POST accepts multipart/urlencoded forms; JSON bodies are a 400
    - DELETE returns a confirmation, 404 for unknown ids
    - POST /api/save replaces the feed in the file, the cache, and on open sockets
    - Oversize uploads are rejected from their declared size without reading them
    - Storage failures map to 500 STORAGE_ERROR without leaking details
"""

import json

import pytest
from starlette.datastructures import UploadFile

from livefeed.core.errors import StorageError


async def test_empty_feed_on_both_paths(client):
    for path in ("/api/posts", "/api/data"):
        res = await client.get(path)
        assert res.status_code == 200
        assert res.json() == []


async def test_create_with_form_fields(client):
    res = await client.post("/api/posts", data={"author": "A", "message": "hi"})

    assert res.status_code == 200
    body = res.json()
    assert body["author"] == "A"
    assert body["message"] == "hi"
    assert body["attachmentRef"] == ""
    assert body["id"]
    assert body["createdAt"]


async def test_create_with_image_upload(client, runtime):
    res = await client.post(
        "/api/posts",
        data={"author": "B", "message": "pic"},
        files={"image": ("cat.PNG", b"\x89PNG\r\n", "image/png")},
    )

    assert res.status_code == 200
    ref = res.json()["attachmentRef"]
    assert ref.startswith("/uploads/") and ref.endswith(".png")
    assert runtime.attachments.resolve(ref).read_bytes() == b"\x89PNG\r\n"


async def test_create_without_fields_stores_empty_post(client):
    res = await client.post(
        "/api/posts", files={"image": ("", b"", "application/octet-stream")},
    )
    assert res.status_code == 200
    assert res.json()["author"] == ""
    assert res.json()["attachmentRef"] == ""


async def test_create_with_json_body_is_rejected(client):
    res = await client.post("/api/posts", json={"author": "A", "message": "hi"})

    assert res.status_code == 400
    assert res.json()["error"]["code"] == "VALIDATION_ERROR"
    assert (await client.get("/api/posts")).json() == []


async def test_create_with_non_file_image_part_is_rejected(client):
    res = await client.post(
        "/api/posts",
        data={"author": "A", "image": "not-a-file"},
        files={"other": ("x.txt", b"x", "text/plain")},
    )
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "VALIDATION_ERROR"


async def test_oversize_image_is_rejected(client, runtime):
    res = await client.post(
        "/api/posts", files={"image": ("big.png", b"x" * 4096, "image/png")},
    )
    assert res.status_code == 400
    assert await runtime.store.load() == ()


async def test_oversize_image_is_rejected_without_reading_it(client, monkeypatch):
    async def unexpected_read(self, size=-1):
        raise AssertionError("oversize upload was read")

    monkeypatch.setattr(UploadFile, "read", unexpected_read)

    res = await client.post(
        "/api/posts", files={"image": ("big.png", b"x" * 4096, "image/png")},
    )

    assert res.status_code == 400
    assert res.json()["error"]["code"] == "VALIDATION_ERROR"


async def test_get_returns_created_posts_in_order(client):
    for text in ("one", "two", "three"):
        await client.post("/api/posts", data={"message": text})

    res = await client.get("/api/posts")
    assert [p["message"] for p in res.json()] == ["one", "two", "three"]


async def test_delete_returns_confirmation(client):
    post = (await client.post("/api/posts", data={"message": "bye"})).json()

    res = await client.delete(f"/api/posts/{post['id']}")

    assert res.status_code == 200
    assert res.json() == {"message": "Post deleted", "id": post["id"]}
    assert (await client.get("/api/posts")).json() == []


async def test_delete_unknown_returns_404(client):
    res = await client.delete("/api/posts/nope")
    assert res.status_code == 404
    assert res.json()["error"]["code"] == "RESOURCE_NOT_FOUND"


async def test_delete_twice_returns_404_second_time(client):
    post = (await client.post("/api/posts", data={"message": "x"})).json()
    assert (await client.delete(f"/api/posts/{post['id']}")).status_code == 200
    assert (await client.delete(f"/api/posts/{post['id']}")).status_code == 404


async def test_storage_failure_returns_500(client, runtime, monkeypatch):
    async def broken_save(posts):
        raise StorageError("[Errno 5] Input/output error", "save")

    monkeypatch.setattr(runtime.store, "save", broken_save)

    res = await client.post("/api/posts", data={"message": "x"})

    assert res.status_code == 500
    error = res.json()["error"]
    assert error["code"] == "STORAGE_ERROR"
    assert "Errno" not in error["message"]
    assert (await client.get("/api/posts")).json() == []


@pytest.mark.parametrize("path", ["/api/posts", "/api/data"])
async def test_scenario_create_create_delete(client, runtime, path):
    first = (await client.post(
        "/api/posts", data={"author": "A", "message": "hi"},
    )).json()
    assert len((await client.get(path)).json()) == 1

    second = (await client.post(
        "/api/posts",
        data={"author": "B", "message": "pic"},
        files={"image": ("p.jpg", b"\xff\xd8\xff", "image/jpeg")},
    )).json()
    assert runtime.attachments.resolve(second["attachmentRef"]).is_file()
    assert len((await client.get(path)).json()) == 2

    assert (await client.delete(f"/api/posts/{first['id']}")).status_code == 200

    feed = (await client.get(path)).json()
    assert feed == [second]


# ─── Whole-feed save ────────────────────────────────────────────

async def test_save_replaces_file_cache_and_subscribers(
    client, runtime, settings, connection_factory,
):
    await client.post("/api/posts", data={"message": "old"})
    conn = connection_factory()
    await runtime.hub.subscribe(conn)
    body = [
        {"id": "s1", "author": "A", "message": "one"},
        {"id": "s2", "name": "B", "text": "two"},
    ]

    res = await client.post("/api/save", json=body)

    assert res.status_code == 200
    assert res.json() == {"message": "Data saved", "count": 2}
    with open(settings.data_file, encoding="utf-8") as f:
        on_disk = json.load(f)
    assert [p["id"] for p in on_disk] == ["s1", "s2"]
    assert on_disk[1]["author"] == "B"
    assert (await client.get("/api/posts")).json() == on_disk
    assert conn.feeds[-1] == on_disk


async def test_save_rejects_non_array_body(client):
    res = await client.post("/api/save", json={"id": "x"})

    assert res.status_code == 400
    assert res.json()["error"]["code"] == "VALIDATION_ERROR"
    assert (await client.get("/api/posts")).json() == []


async def test_save_rejects_duplicate_ids(client):
    res = await client.post("/api/save", json=[{"id": "d"}, {"id": "d"}])

    assert res.status_code == 400
    assert (await client.get("/api/posts")).json() == []
