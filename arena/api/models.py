from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from arena.errors import EngineError, ErrorKind


class WireModel(BaseModel):
    """Base for everything that crosses the store or the HTTP boundary.

    Python code uses snake_case; documents and responses use camelCase.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class UnitType(StrEnum):
    soldier = "Soldier"
    archer = "Archer"
    wizard = "Wizard"
    knight = "Knight"
    zombie = "Zombie"


class ItemEffect(StrEnum):
    health = "health"
    experience = "experience"


class Game(WireModel):
    id: str
    name: str
    created_at: datetime


class Player(WireModel):
    id: str
    username: str
    game_id: str


class Unit(WireModel):
    id: str
    type: UnitType
    game_id: str
    player_id: str
    health: int
    max_health: int = Field(..., ge=1)
    level: int = Field(1, ge=1)
    experience: int = Field(0, ge=0)
    created_at: datetime


class PlayerRef(WireModel):
    id: str
    username: str


class GameSummary(WireModel):
    id: str
    name: str
    created_at: datetime
    players: list[PlayerRef] = Field(default_factory=list)


class GameCreated(WireModel):
    id: str


class JoinResponse(WireModel):
    joined: bool = True
    player_id: str
    units: list[Unit]


class AttackReport(WireModel):
    message: str
    dealt_damage: int
    target_new_health: int


class HealReport(WireModel):
    message: str
    healed_amount: int
    target_new_health: int


class PickupReport(WireModel):
    message: str
    effect: ItemEffect
    amount: int
    new_amount: int


class ItemInfo(WireModel):
    name: str
    effect: ItemEffect
    amount: int


class EngineResult(WireModel):
    """Uniform envelope returned by every engine operation."""

    ok: bool
    data: Any = None
    error_kind: ErrorKind | None = None
    message: str | None = None

    @classmethod
    def success(cls, data: Any) -> "EngineResult":
        return cls(ok=True, data=data)

    @classmethod
    def failure(cls, kind: ErrorKind, message: str) -> "EngineResult":
        return cls(ok=False, error_kind=kind, message=message)

    @classmethod
    def from_error(cls, err: EngineError) -> "EngineResult":
        return cls.failure(err.kind, err.message)
