"""Shared fixtures: a throwaway SQLite database per test and a stepping clock."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from docstore.core.config import Settings
from docstore.core.db import create_engine_from_settings, create_session_factory, init_schema


class StepClock:
    """Deterministic clock: every call is one second after the previous one."""

    def __init__(self, start: datetime | None = None):
        self.current = start or datetime(2026, 1, 1, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        self.current += timedelta(seconds=1)
        return self.current


def make_settings(database_url: str, **overrides) -> Settings:
    return Settings(_env_file=None, database_url=database_url, snapshot_version="test-1", **overrides)


@pytest.fixture()
def clock():
    return StepClock()


@pytest.fixture()
def settings(tmp_path):
    return make_settings(f"sqlite+aiosqlite:///{tmp_path / 'docstore.db'}")


@pytest.fixture()
def broken_settings(tmp_path):
    # parent directory does not exist, so every connection attempt fails
    return make_settings(f"sqlite+aiosqlite:///{tmp_path / 'missing' / 'docstore.db'}")


@pytest.fixture()
async def engine(settings):
    engine = create_engine_from_settings(settings)
    await init_schema(engine)
    yield engine
    await engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return create_session_factory(engine)


@pytest.fixture()
async def session(session_factory):
    async with session_factory() as session:
        yield session
