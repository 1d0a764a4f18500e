"""API test fixtures: FastAPI clients bound to a temp-directory runtime.

Invariants:
    - client: httpx AsyncClient over ASGITransport, runtime installed directly
      (ASGITransport does not run the lifespan)
    - live_client: TestClient context manager, runs the real lifespan; needed
      for the WebSocket channel
    - feed_runtime.runtime and the settings cache are reset after every test
"""

import pytest
from fastapi.testclient import TestClient
from httpx import ASGITransport, AsyncClient

from livefeed.config import get_settings
from livefeed.main import app
from livefeed.services import feed_runtime


@pytest.fixture
async def runtime(settings):
    rt = feed_runtime.init_runtime(settings)
    await rt.pipeline.bootstrap()
    yield rt
    await rt.hub.close()
    feed_runtime.runtime = None


@pytest.fixture
async def client(runtime):
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c


@pytest.fixture
def live_client(tmp_path, monkeypatch):
    """Lifespan-driven client; uploads stay under the app's mounted directory."""
    monkeypatch.setenv("DATA_FILE", str(tmp_path / "posts.json"))
    get_settings.cache_clear()
    with TestClient(app) as c:
        yield c
    get_settings.cache_clear()
    feed_runtime.runtime = None
