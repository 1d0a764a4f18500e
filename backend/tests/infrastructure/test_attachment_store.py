"""Filesystem Attachment Store: naming, resolution, and best-effort removal."""

import aiofiles.os
import pytest

from livefeed.core.errors import AttachmentCleanupError, StorageError
from livefeed.infrastructure.attachment_store import FilesystemAttachmentStore


@pytest.fixture
def store(tmp_path):
    return FilesystemAttachmentStore(tmp_path / "uploads", url_prefix="/uploads")


async def test_store_creates_root_and_writes_blob(store):
    ref = await store.store(b"\x89PNG data", ".PNG")

    assert ref.startswith("/uploads/")
    assert ref.endswith(".png")
    path = store.resolve(ref)
    assert path.parent == store.root
    assert path.read_bytes() == b"\x89PNG data"


async def test_store_is_idempotent_about_root(store):
    first = await store.store(b"a", ".txt")
    second = await store.store(b"b", ".txt")
    assert first != second
    assert len(list(store.root.iterdir())) == 2


async def test_store_failure_raises_storage_error(tmp_path):
    blocker = tmp_path / "uploads"
    blocker.write_text("file, not dir")
    with pytest.raises(StorageError):
        await FilesystemAttachmentStore(blocker).store(b"x", ".png")


@pytest.mark.parametrize("ref", [
    "", "/elsewhere/a.png", "/uploads/", "/uploads/../secret", "/uploads/a/b.png", "/uploads/..",
])
def test_resolve_rejects_foreign_references(store, ref):
    assert store.resolve(ref) is None


async def test_remove_deletes_file(store):
    ref = await store.store(b"x", ".png")
    assert await store.remove(ref) is True
    assert not store.resolve(ref).exists()


async def test_remove_missing_file_is_not_an_error(store):
    assert await store.remove("/uploads/0123456789abcdef.png") is False


async def test_remove_foreign_reference_raises_cleanup_error(store):
    with pytest.raises(AttachmentCleanupError):
        await store.remove("/etc/passwd")


async def test_remove_os_failure_raises_cleanup_error(store, monkeypatch):
    ref = await store.store(b"x", ".png")

    async def broken_remove(path):
        raise PermissionError("read-only filesystem")

    monkeypatch.setattr(aiofiles.os, "remove", broken_remove)
    with pytest.raises(AttachmentCleanupError) as exc:
        await store.remove(ref)
    assert exc.value.attachment_ref == ref
