from __future__ import annotations

from datetime import timedelta
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, status

from arena.api.deps import get_engine
from arena.api.models import EngineResult, GameCreated, GameSummary, HealReport, ItemInfo, JoinResponse, PickupReport, Unit
from arena.config import settings_from_env
from arena.engine import GameEngine
from arena.errors import ErrorKind

router = APIRouter()

STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.not_found: status.HTTP_404_NOT_FOUND,
    ErrorKind.conflict: status.HTTP_400_BAD_REQUEST,
    ErrorKind.invalid_input: status.HTTP_400_BAD_REQUEST,
    ErrorKind.invalid_state: status.HTTP_400_BAD_REQUEST,
    ErrorKind.transient: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def unwrap(result: EngineResult) -> Any:
    """Return the payload of a successful result, or raise the matching HTTP error."""

    if result.ok:
        return result.data
    kind = result.error_kind or ErrorKind.invalid_state
    raise HTTPException(
        status_code=STATUS_BY_KIND[kind],
        detail={"errorKind": kind.value, "message": result.message},
    )


@router.get("/healthcheck")
def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/games", response_model=list[GameSummary])
def list_games_route(engine: GameEngine = Depends(get_engine)) -> Any:
    window = timedelta(hours=settings_from_env().recent_games_hours)
    return unwrap(engine.list_recent_games(window=window))


@router.post("/games/{name}", response_model=GameCreated)
def create_game_route(name: str, engine: GameEngine = Depends(get_engine)) -> Any:
    return unwrap(engine.create_game(name))


@router.post("/games/{game_id}/players/{username}", response_model=JoinResponse)
def join_game_route(game_id: str, username: str, engine: GameEngine = Depends(get_engine)) -> Any:
    return unwrap(engine.join_game(game_id, username))


@router.get("/games/{game_id}/units", response_model=list[Unit])
def list_game_units_route(game_id: str, engine: GameEngine = Depends(get_engine)) -> Any:
    return unwrap(engine.list_units(game_id))


@router.get("/games/{game_id}/players/{player_id}/units", response_model=list[Unit])
def list_player_units_route(game_id: str, player_id: str, engine: GameEngine = Depends(get_engine)) -> Any:
    return unwrap(engine.list_units(game_id, player_id))


# Returns a plain string when the target dies, an AttackReport otherwise.
@router.post("/games/{game_id}/players/{player_id}/unit/{unit_id}/attack/{target_id}", response_model=None)
def attack_route(
    game_id: str,
    player_id: str,
    unit_id: str,
    target_id: str,
    engine: GameEngine = Depends(get_engine),
) -> Any:
    return unwrap(engine.attack(game_id, player_id, unit_id, target_id))


@router.post("/games/{game_id}/players/{player_id}/unit/{unit_id}/heal/{target_id}", response_model=HealReport)
def heal_route(
    game_id: str,
    player_id: str,
    unit_id: str,
    target_id: str,
    engine: GameEngine = Depends(get_engine),
) -> Any:
    return unwrap(engine.heal(game_id, player_id, unit_id, target_id))


@router.post("/games/{game_id}/unit/{unit_id}/pickup/{item_name}", response_model=PickupReport)
def pickup_route(game_id: str, unit_id: str, item_name: str, engine: GameEngine = Depends(get_engine)) -> Any:
    return unwrap(engine.pickup_item(game_id, unit_id, item_name))


@router.get("/items", response_model=list[ItemInfo])
def list_items_route(engine: GameEngine = Depends(get_engine)) -> Any:
    return unwrap(engine.list_items())
