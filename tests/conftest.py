from datetime import datetime

import pytest


def _local_millis(year, month, day, hour=0, minute=0, second=0, millis=0) -> int:
    """Epoch milliseconds of a local wall-clock time."""
    return int(datetime(year, month, day, hour, minute, second).timestamp()) * 1000 + millis


class FakeClock:
    def __init__(self, now_ms: int):
        self.now_ms = now_ms

    def __call__(self) -> int:
        return self.now_ms


@pytest.fixture
def at():
    return _local_millis


@pytest.fixture
def clock():
    return FakeClock(_local_millis(2004, 11, 23, 12, 0, 0))


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for key in ("CONFIG_PATH", "FILE_NAME_PATTERN", "ACTIVE_FILE_NAME",
                "WRITE_INTERVAL", "RUN_TIME", "LOG_LEVEL"):
        monkeypatch.delenv(key, raising=False)
