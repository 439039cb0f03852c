from unittest.mock import patch

import pytest

from cacheable.config import reset_settings


class FakeClock:
    """Controllable stand-in for ``time.monotonic``."""

    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture(autouse=True)
def _reset_settings(monkeypatch: pytest.MonkeyPatch):
    """Isolate tests from the developer's CACHEABLE_* environment."""
    monkeypatch.delenv("CACHEABLE_NAMESPACE", raising=False)
    monkeypatch.delenv("CACHEABLE_LOG_LEVEL", raising=False)
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def clock():
    """Patch the store's clock only, leaving the event loop's untouched."""
    fake = FakeClock()
    with patch("cacheable.storage.expiring_map.time") as mock_time:
        mock_time.monotonic.side_effect = lambda: fake.now
        yield fake
