from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import timedelta
from typing import Any

import redis

from arena.api.models import (
    AttackReport,
    EngineResult,
    GameCreated,
    GameSummary,
    HealReport,
    ItemInfo,
    JoinResponse,
    PickupReport,
    Unit,
)
from arena.combat import KILL_EXPERIENCE, AttackOutcome, HealOutcome, RandomSource, resolve_attack, resolve_heal
from arena.entity_store import EntityStore, StoreTransaction
from arena.errors import EngineError, ErrorKind, InvalidInputError
from arena.items import ItemCatalog, ItemOutcome, apply_item
from arena.sessions import RECENT_GAMES_WINDOW, GameSessions, require_identifier
from arena.validators import ActionContext, pipeline_for_action

logger = logging.getLogger(__name__)

KILL_MESSAGE = f"Target unit has been killed and the attacker was awarded {KILL_EXPERIENCE} experience."


class GameEngine:
    """Entry point for the request router.

    Every public method returns an `EngineResult`; engine errors are turned into
    failure envelopes instead of escaping. Unit mutations run inside store
    transactions so concurrent actions on the same units never lose a write.
    """

    def __init__(
        self,
        *,
        store: EntityStore,
        rng: RandomSource,
        catalog: ItemCatalog,
        sessions: GameSessions | None = None,
    ):
        self._store = store
        self._rng = rng
        self._catalog = catalog
        self._sessions = sessions or GameSessions(store)

    def _run(self, name: str, fn: Callable[[], Any]) -> EngineResult:
        try:
            return EngineResult.success(fn())
        except EngineError as e:
            logger.debug("%s rejected (%s): %s", name, e.kind.value, e.message)
            return EngineResult.from_error(e)
        except redis.RedisError as e:
            logger.warning("%s: store error: %s", name, e)
            return EngineResult.failure(ErrorKind.transient, "Game store is unavailable; try again")

    # --- sessions --------------------------------------------------------

    def create_game(self, name: str) -> EngineResult:
        return self._run("create_game", lambda: GameCreated(id=self._sessions.create_game(name).id))

    def list_recent_games(self, *, window: timedelta = RECENT_GAMES_WINDOW) -> EngineResult:
        def _list() -> list[GameSummary]:
            return self._sessions.list_recent_games(window=window)

        return self._run("list_recent_games", _list)

    def join_game(self, game_id: str, username: str) -> EngineResult:
        def _join() -> JoinResponse:
            joined = self._sessions.join_game(game_id, username)
            return JoinResponse(joined=True, player_id=joined.player.id, units=joined.units)

        return self._run("join_game", _join)

    def list_units(self, game_id: str, player_id: str | None = None) -> EngineResult:
        def _list() -> list[Unit]:
            return self._sessions.list_units(game_id, player_id)

        return self._run("list_units", _list)

    def list_items(self) -> EngineResult:
        return self._run(
            "list_items",
            lambda: [ItemInfo(name=i.name, effect=i.effect, amount=i.amount) for i in self._catalog.items],
        )

    # --- unit actions ----------------------------------------------------

    def attack(self, game_id: str, player_id: str, unit_id: str, target_id: str) -> EngineResult:
        return self._run("attack", lambda: self._attack(game_id, player_id, unit_id, target_id))

    def heal(self, game_id: str, player_id: str, unit_id: str, target_id: str) -> EngineResult:
        return self._run("heal", lambda: self._heal(game_id, player_id, unit_id, target_id))

    def pickup_item(self, game_id: str, unit_id: str, item_name: str) -> EngineResult:
        return self._run("pickup_item", lambda: self._pickup_item(game_id, unit_id, item_name))

    def _attack(self, game_id: str, player_id: str, unit_id: str, target_id: str) -> str | AttackReport:
        _require_ids(game_id=game_id, player_id=player_id, unit_id=unit_id, target_id=target_id)
        pipeline = pipeline_for_action("attack")

        def _apply(tx: StoreTransaction) -> AttackOutcome:
            ctx = ActionContext(
                action="attack",
                game_id=game_id,
                player=tx.get_player(player_id),
                unit=tx.get_unit(unit_id),
                target=tx.get_unit(target_id),
                actor_label="Attacker",
            )
            pipeline.validate(ctx=ctx)
            attacker, target = ctx.require_unit(), ctx.require_target()

            outcome = resolve_attack(attacker=attacker, target=target, rng=self._rng)
            tx.put_unit(outcome.attacker)
            if outcome.target is None:
                tx.delete_unit(target)
            else:
                tx.put_unit(outcome.target)
            return outcome

        outcome = self._store.run_transaction(_apply, name="attack")
        if outcome.target_destroyed:
            return KILL_MESSAGE
        return AttackReport(
            message="Attack was successful",
            dealt_damage=outcome.damage,
            target_new_health=outcome.target_new_health,
        )

    def _heal(self, game_id: str, player_id: str, unit_id: str, target_id: str) -> HealReport:
        _require_ids(game_id=game_id, player_id=player_id, unit_id=unit_id, target_id=target_id)
        pipeline = pipeline_for_action("heal")

        def _apply(tx: StoreTransaction) -> HealOutcome:
            healer = tx.get_unit(unit_id)
            ctx = ActionContext(
                action="heal",
                game_id=game_id,
                player=tx.get_player(player_id),
                unit=healer,
                target=healer if target_id == unit_id else tx.get_unit(target_id),
                actor_label="Healer",
            )
            pipeline.validate(ctx=ctx)

            outcome = resolve_heal(healer=ctx.require_unit(), target=ctx.require_target(), rng=self._rng)
            tx.put_unit(outcome.healer)
            if outcome.target.id != outcome.healer.id:
                tx.put_unit(outcome.target)
            return outcome

        outcome = self._store.run_transaction(_apply, name="heal")
        return HealReport(
            message="Healing was successful",
            healed_amount=outcome.healing,
            target_new_health=outcome.target_new_health,
        )

    def _pickup_item(self, game_id: str, unit_id: str, item_name: str) -> PickupReport:
        _require_ids(game_id=game_id, unit_id=unit_id)
        item = self._catalog.get(item_name) if isinstance(item_name, str) else None
        if item is None:
            raise InvalidInputError(f"Unknown item: {item_name!r}")
        pipeline = pipeline_for_action("pickup")

        def _apply(tx: StoreTransaction) -> ItemOutcome:
            ctx = ActionContext(action="pickup", game_id=game_id, player=None, unit=tx.get_unit(unit_id))
            pipeline.validate(ctx=ctx)

            outcome = apply_item(ctx.require_unit(), item)
            tx.put_unit(outcome.unit)
            return outcome

        outcome = self._store.run_transaction(_apply, name="pickup_item")
        return PickupReport(
            message="Item was picked up",
            effect=outcome.effect,
            amount=outcome.amount,
            new_amount=outcome.new_amount,
        )


def _require_ids(**ids: str) -> None:
    for what, value in ids.items():
        require_identifier(value, what=what.replace("_", " "))
