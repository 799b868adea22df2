from __future__ import annotations

from collections.abc import Generator
from datetime import UTC, datetime

import fakeredis
import pytest

from arena.entity_store import EntityStore
from rng_helpers import FixedRandom


@pytest.fixture(scope="session", autouse=True)
def _init_item_catalog() -> None:
    """Initialize the item catalog from the repo's assets/items.csv."""

    from arena.assets.singleton import init_item_catalog, reset_item_catalog_for_tests
    from arena.config import PROJECT_ROOT

    reset_item_catalog_for_tests()
    init_item_catalog(path=PROJECT_ROOT / "assets" / "items.csv", strict=True)


@pytest.fixture()
def server() -> fakeredis.FakeServer:
    return fakeredis.FakeServer()


@pytest.fixture()
def r(server: fakeredis.FakeServer) -> fakeredis.FakeRedis:
    return fakeredis.FakeRedis(server=server, decode_responses=True)


@pytest.fixture()
def store(r: fakeredis.FakeRedis) -> EntityStore:
    return EntityStore(r)


@pytest.fixture()
def fixed_now() -> datetime:
    return datetime(2025, 1, 1, 12, 0, tzinfo=UTC)


@pytest.fixture()
def client_and_redis():
    """FastAPI TestClient wired to fakeredis and a rng that always rolls the minimum."""

    from fastapi.testclient import TestClient

    from arena.api.deps import get_random_source, get_redis
    from arena.main import app

    fake = fakeredis.FakeRedis(server=fakeredis.FakeServer(), decode_responses=True)

    def _override() -> Generator[fakeredis.FakeRedis, None, None]:
        yield fake

    app.dependency_overrides[get_redis] = _override
    app.dependency_overrides[get_random_source] = lambda: FixedRandom(0)
    with TestClient(app) as c:
        yield c, fake
    app.dependency_overrides.clear()
