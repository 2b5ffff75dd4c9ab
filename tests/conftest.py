from __future__ import annotations

from typing import Iterator

import pytest
from sqlalchemy import Engine

from luxlibris.config import get_settings
from luxlibris.db.base import Base
from luxlibris.db.session import dispose_engine, get_engine

ADMIN_TOKEN = "test-admin-token"


@pytest.fixture
def database(tmp_path, monkeypatch) -> Iterator[Engine]:
    monkeypatch.setenv("LUX_DATABASE_URL", f"sqlite:///{tmp_path / 'luxlibris.db'}")
    get_settings.cache_clear()
    dispose_engine()
    engine = get_engine()
    Base.metadata.create_all(engine)
    yield engine
    dispose_engine()
    get_settings.cache_clear()


@pytest.fixture
def admin_headers(database, monkeypatch) -> dict[str, str]:
    monkeypatch.setenv("LUX_ADMIN_TOKEN", ADMIN_TOKEN)
    get_settings.cache_clear()
    return {"X-Admin-Token": ADMIN_TOKEN}
