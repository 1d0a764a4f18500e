"""Service test fixtures: a fully wired runtime over a temp directory.

Invariants:
    - Every test gets its own data file and uploads root (tmp_path)
    - The runtime is bootstrapped before the test body runs
"""

import pytest

from livefeed.services.feed_runtime import build_runtime


@pytest.fixture
async def runtime(settings):
    rt = build_runtime(settings)
    await rt.pipeline.bootstrap()
    yield rt
    await rt.hub.close()
