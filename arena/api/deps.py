from __future__ import annotations

from collections.abc import Generator

import redis
from fastapi import Depends

from arena.assets.singleton import get_item_catalog
from arena.combat import RandomSource, SeededRandomSource
from arena.config import settings_from_env
from arena.engine import GameEngine
from arena.entity_store import EntityStore
from arena.infra.redis_client import create_redis


def get_redis() -> Generator[redis.Redis, None, None]:
    client = create_redis()
    try:
        yield client
    finally:
        try:
            client.close()
        except Exception:
            # Some redis client versions don't require explicit close.
            pass


def get_random_source() -> RandomSource:
    return SeededRandomSource()


def get_engine(
    r: redis.Redis = Depends(get_redis),
    rng: RandomSource = Depends(get_random_source),
) -> GameEngine:
    settings = settings_from_env()
    store = EntityStore(r, key_prefix=settings.key_prefix, max_retries=settings.tx_max_retries)
    return GameEngine(store=store, rng=rng, catalog=get_item_catalog())
