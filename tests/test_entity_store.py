from __future__ import annotations

from datetime import UTC, datetime, timedelta

import fakeredis
import pytest

from arena.api.models import Game, Player, Unit, UnitType
from arena.entity_store import EntityStore, StoreTransaction
from arena.errors import NotFoundError, TransientError


def _unit(unit_id: str = "u1", player_id: str = "p1") -> Unit:
    return Unit(
        id=unit_id,
        type=UnitType.soldier,
        game_id="g1",
        player_id=player_id,
        health=100,
        max_health=100,
        created_at=datetime(2025, 1, 1, tzinfo=UTC),
    )


def _seed_unit(store: EntityStore, unit: Unit) -> None:
    def _put(tx: StoreTransaction) -> None:
        tx.put_unit(unit)

    store.run_transaction(_put)


def test_documents_are_stored_as_camel_case_json(store: EntityStore, r: fakeredis.FakeRedis) -> None:
    _seed_unit(store, _unit())

    raw = r.get("arena:unit:u1")
    assert raw is not None
    assert '"maxHealth":100' in raw
    assert '"playerId":"p1"' in raw
    assert store.get_unit("u1") == _unit()


def test_unit_index_tracks_puts_and_deletes(store: EntityStore) -> None:
    _seed_unit(store, _unit("u1"))
    _seed_unit(store, _unit("u2"))

    assert [u.id for u in store.units_of_player("p1")] == ["u1", "u2"]

    def _delete(tx: StoreTransaction) -> None:
        unit = tx.get_unit("u1")
        assert unit is not None
        tx.delete_unit(unit)

    store.run_transaction(_delete)

    assert store.get_unit("u1") is None
    assert [u.id for u in store.units_of_player("p1")] == ["u2"]


def test_games_created_since_uses_exclusive_window(store: EntityStore) -> None:
    now = datetime(2025, 1, 2, tzinfo=UTC)
    old = Game(id="old", name="old", created_at=now - timedelta(hours=30))
    edge = Game(id="edge", name="edge", created_at=now - timedelta(hours=24))
    fresh = Game(id="fresh", name="fresh", created_at=now - timedelta(hours=1))
    for g in (old, edge, fresh):
        store.add_game(g)

    ids = {g.id for g in store.games_created_since(now - timedelta(hours=24))}

    assert ids == {"fresh"}


def test_players_in_game_reads_roster(store: EntityStore) -> None:
    store.add_game(Game(id="g1", name="g", created_at=datetime(2025, 1, 1, tzinfo=UTC)))

    def _put(tx: StoreTransaction) -> None:
        tx.put_player(Player(id="p1", username="alice", game_id="g1"))
        tx.put_player(Player(id="p2", username="bob", game_id="g1"))

    store.run_transaction(_put)

    assert sorted(p.username for p in store.players_in_game("g1")) == ["alice", "bob"]
    assert store.players_in_game("missing") == []


def test_engine_error_aborts_without_writing(store: EntityStore) -> None:
    def _fail(tx: StoreTransaction) -> None:
        tx.put_unit(_unit())
        raise NotFoundError("nope")

    with pytest.raises(NotFoundError):
        store.run_transaction(_fail)

    assert store.get_unit("u1") is None


def test_transaction_reruns_against_fresh_snapshot_after_concurrent_write(
    store: EntityStore, server: fakeredis.FakeServer
) -> None:
    _seed_unit(store, _unit())
    other = EntityStore(fakeredis.FakeRedis(server=server, decode_responses=True))
    seen_health: list[int] = []

    def _damage(tx: StoreTransaction) -> None:
        unit = tx.get_unit("u1")
        assert unit is not None
        seen_health.append(unit.health)
        if len(seen_health) == 1:
            # Someone else lands a write between our read and our EXEC.
            _seed_unit(other, unit.model_copy(update={"health": 70}))
        tx.put_unit(unit.model_copy(update={"health": unit.health - 10}))

    store.run_transaction(_damage, name="damage")

    assert seen_health == [100, 70]
    unit = store.get_unit("u1")
    assert unit is not None
    assert unit.health == 60


def test_transaction_gives_up_after_max_retries(r: fakeredis.FakeRedis, server: fakeredis.FakeServer) -> None:
    store = EntityStore(r, max_retries=3)
    _seed_unit(store, _unit())
    other = fakeredis.FakeRedis(server=server, decode_responses=True)
    attempts: list[int] = []

    def _always_contended(tx: StoreTransaction) -> None:
        unit = tx.get_unit("u1")
        assert unit is not None
        attempts.append(1)
        other.set(store.keys.unit("u1"), unit.model_dump_json(by_alias=True))
        tx.put_unit(unit.model_copy(update={"health": 1}))

    with pytest.raises(TransientError):
        store.run_transaction(_always_contended, name="contended")

    assert len(attempts) == 3
    unit = store.get_unit("u1")
    assert unit is not None
    assert unit.health == 100


def test_max_retries_must_be_positive(r: fakeredis.FakeRedis) -> None:
    with pytest.raises(ValueError):
        EntityStore(r, max_retries=0)
