import asyncio

import pytest


@pytest.fixture
def sleeps(monkeypatch):
    """Replace asyncio.sleep with a recorder so backoff and page delays cost nothing."""
    recorded = []

    async def fake_sleep(delay, *args, **kwargs):
        recorded.append(delay)

    monkeypatch.setattr(asyncio, "sleep", fake_sleep)
    return recorded
