"""Root conftest: shared test configuration and fakes."""

import asyncio
import os
import tempfile

import pytest

# Keep app import side effects (uploads dir creation) out of the working tree
_TMP = tempfile.mkdtemp(prefix="livefeed-tests-")
os.environ.setdefault("DATA_FILE", os.path.join(_TMP, "posts.json"))
os.environ.setdefault("UPLOADS_DIR", os.path.join(_TMP, "uploads"))
os.environ.setdefault("PUBLIC_DIR", os.path.join(_TMP, "public"))
os.environ.setdefault("LOG_FORMAT", "text")

from livefeed.config import Settings  # noqa: E402


class FakeConnection:
    """Push connection that records events; can be told to fail or stall."""

    def __init__(self, fail: bool = False, delay: float = 0.0):
        self.events: list[dict] = []
        self.fail = fail
        self.delay = delay
        self.close_codes: list[int] = []

    async def send_json(self, data: dict) -> None:
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail:
            raise RuntimeError("socket closed")
        self.events.append(data)

    async def close(self, code: int = 1000, reason: str | None = None) -> None:
        self.close_codes.append(code)

    @property
    def feeds(self) -> list[list[dict]]:
        return [e["data"] for e in self.events if e["type"] == "feed"]


@pytest.fixture
def settings(tmp_path):
    return Settings(
        data_file=str(tmp_path / "data" / "posts.json"),
        uploads_dir=str(tmp_path / "uploads"),
        public_dir=str(tmp_path / "public"),
        broadcast_send_timeout_seconds=0.5,
        max_attachment_bytes=1024,
    )


@pytest.fixture
def connection_factory():
    return FakeConnection
