from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import TypeVar
from uuid import uuid4

import redis
from redis.client import Pipeline

from arena.api.models import Game, Player, Unit, UnitType
from arena.errors import TransientError

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_MAX_RETRIES = 5

# Roster units share a creation time; list them in roster order.
_UNIT_TYPE_ORDER = {t: i for i, t in enumerate(UnitType)}


def new_id() -> str:
    return uuid4().hex


@dataclass(frozen=True, slots=True)
class StoreKeys:
    prefix: str = "arena"

    def game(self, game_id: str) -> str:
        return f"{self.prefix}:game:{game_id}"

    def player(self, player_id: str) -> str:
        return f"{self.prefix}:player:{player_id}"

    def unit(self, unit_id: str) -> str:
        return f"{self.prefix}:unit:{unit_id}"

    def roster(self, game_id: str) -> str:
        # username -> player id, one hash per game
        return f"{self.prefix}:game:{game_id}:roster"

    def player_units(self, player_id: str) -> str:
        return f"{self.prefix}:player:{player_id}:units"

    @property
    def games_by_created(self) -> str:
        return f"{self.prefix}:games:by_created"


def _dump(doc: Game | Player | Unit) -> str:
    return doc.model_dump_json(by_alias=True)


class StoreTransaction:
    """A single optimistic read-modify-write attempt.

    Every document read through this object is WATCHed first; writes are buffered
    and applied in one MULTI/EXEC by `EntityStore.run_transaction`. If any watched
    key changes before EXEC, redis aborts the whole batch.
    """

    def __init__(self, *, pipe: Pipeline, keys: StoreKeys):
        self._pipe = pipe
        self._keys = keys
        self._writes: list[Callable[[Pipeline], object]] = []

    def _watched_get(self, key: str) -> str | None:
        self._pipe.watch(key)
        return self._pipe.get(key)

    def get_game(self, game_id: str) -> Game | None:
        raw = self._watched_get(self._keys.game(game_id))
        return Game.model_validate_json(raw) if raw else None

    def get_player(self, player_id: str) -> Player | None:
        raw = self._watched_get(self._keys.player(player_id))
        return Player.model_validate_json(raw) if raw else None

    def get_unit(self, unit_id: str) -> Unit | None:
        raw = self._watched_get(self._keys.unit(unit_id))
        return Unit.model_validate_json(raw) if raw else None

    def roster(self, game_id: str) -> dict[str, str]:
        key = self._keys.roster(game_id)
        self._pipe.watch(key)
        return dict(self._pipe.hgetall(key))

    def put_player(self, player: Player) -> None:
        keys = self._keys
        self._writes.append(lambda p: p.set(keys.player(player.id), _dump(player)))
        self._writes.append(lambda p: p.hset(keys.roster(player.game_id), player.username, player.id))

    def put_unit(self, unit: Unit) -> None:
        keys = self._keys
        self._writes.append(lambda p: p.set(keys.unit(unit.id), _dump(unit)))
        self._writes.append(lambda p: p.sadd(keys.player_units(unit.player_id), unit.id))

    def delete_unit(self, unit: Unit) -> None:
        keys = self._keys
        self._writes.append(lambda p: p.delete(keys.unit(unit.id)))
        self._writes.append(lambda p: p.srem(keys.player_units(unit.player_id), unit.id))

    def commit(self) -> None:
        self._pipe.multi()
        for write in self._writes:
            write(self._pipe)
        self._pipe.execute()


class EntityStore:
    """Games, players and units as JSON documents in redis.

    Plain getters/queries read the latest committed state and are never cached.
    Anything that mutates existing documents goes through `run_transaction`.
    """

    def __init__(self, r: redis.Redis, *, key_prefix: str = "arena", max_retries: int = DEFAULT_MAX_RETRIES):
        if max_retries < 1:
            raise ValueError("max_retries must be >= 1")
        self._r = r
        self.keys = StoreKeys(prefix=key_prefix)
        self.max_retries = max_retries

    # --- reads -----------------------------------------------------------

    def get_game(self, game_id: str) -> Game | None:
        raw = self._r.get(self.keys.game(game_id))
        return Game.model_validate_json(raw) if raw else None

    def get_player(self, player_id: str) -> Player | None:
        raw = self._r.get(self.keys.player(player_id))
        return Player.model_validate_json(raw) if raw else None

    def get_unit(self, unit_id: str) -> Unit | None:
        raw = self._r.get(self.keys.unit(unit_id))
        return Unit.model_validate_json(raw) if raw else None

    def games_created_since(self, since: datetime) -> list[Game]:
        # Exclusive lower bound: a game created exactly at `since` is already out of the window.
        ids = self._r.zrangebyscore(self.keys.games_by_created, f"({since.timestamp()}", "+inf")
        if not ids:
            return []
        raws = self._r.mget([self.keys.game(gid) for gid in ids])
        return [Game.model_validate_json(raw) for raw in raws if raw]

    def players_in_game(self, game_id: str) -> list[Player]:
        roster = self._r.hgetall(self.keys.roster(game_id))
        if not roster:
            return []
        raws = self._r.mget([self.keys.player(pid) for pid in roster.values()])
        return [Player.model_validate_json(raw) for raw in raws if raw]

    def units_of_player(self, player_id: str) -> list[Unit]:
        ids = sorted(self._r.smembers(self.keys.player_units(player_id)))
        if not ids:
            return []
        raws = self._r.mget([self.keys.unit(uid) for uid in ids])
        units = [Unit.model_validate_json(raw) for raw in raws if raw]
        units.sort(key=lambda u: (u.created_at, _UNIT_TYPE_ORDER[u.type], u.id))
        return units

    # --- writes ----------------------------------------------------------

    def add_game(self, game: Game) -> None:
        with self._r.pipeline(transaction=True) as pipe:
            pipe.set(self.keys.game(game.id), _dump(game))
            pipe.zadd(self.keys.games_by_created, {game.id: game.created_at.timestamp()})
            pipe.execute()

    def run_transaction(self, fn: Callable[[StoreTransaction], T], *, name: str = "transaction") -> T:
        """Run `fn` as an optimistic transaction, re-running it on contention.

        `fn` must do all of its reads through the transaction it is handed and must
        be safe to call again: on a WatchError the whole function is re-executed
        against fresh documents. Engine errors raised by `fn` abort without writing.
        """

        for attempt in range(1, self.max_retries + 1):
            with self._r.pipeline() as pipe:
                tx = StoreTransaction(pipe=pipe, keys=self.keys)
                try:
                    result = fn(tx)
                    tx.commit()
                except redis.WatchError:
                    logger.debug("%s: watched document changed, retrying (attempt %d/%d)", name, attempt, self.max_retries)
                    continue
            return result

        logger.warning("%s: gave up after %d contended attempts", name, self.max_retries)
        raise TransientError(f"Too much contention on {name}; try again")
