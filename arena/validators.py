from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from arena.api.models import Player, Unit, UnitType
from arena.errors import ConflictError, InvalidStateError, NotFoundError


@dataclass(frozen=True, slots=True)
class ActionContext:
    """Snapshots an action is checked against, as read inside its transaction."""

    action: str
    game_id: str
    player: Player | None
    unit: Unit | None
    target: Unit | None = None
    # Used in messages: "Attacker or target does not exist".
    actor_label: str = "Unit"

    def require_unit(self) -> Unit:
        if self.unit is None:
            raise InvalidStateError(f"{self.actor_label} does not exist")
        return self.unit

    def require_target(self) -> Unit:
        if self.target is None:
            raise InvalidStateError("Target does not exist")
        return self.target

    def require_player(self) -> Player:
        if self.player is None:
            raise NotFoundError("Player does not exist")
        return self.player


class ActionValidator(ABC):
    """A small, composable precondition for an incoming action."""

    @abstractmethod
    def validate(self, *, ctx: ActionContext) -> None:
        raise NotImplementedError


@dataclass(frozen=True, slots=True)
class PlayerInGameValidator(ActionValidator):
    def validate(self, *, ctx: ActionContext) -> None:
        if ctx.player is None:
            raise NotFoundError("Player does not exist")
        if ctx.player.game_id != ctx.game_id:
            raise InvalidStateError("Player is not part of this game")


@dataclass(frozen=True, slots=True)
class UnitsExistValidator(ActionValidator):
    """Destroyed units are deleted, so this also rejects acting on a dead target."""

    needs_target: bool = True

    def validate(self, *, ctx: ActionContext) -> None:
        if self.needs_target:
            if ctx.unit is None or ctx.target is None:
                raise InvalidStateError(f"{ctx.actor_label} or target does not exist")
        elif ctx.unit is None:
            raise InvalidStateError(f"{ctx.actor_label} does not exist")


@dataclass(frozen=True, slots=True)
class UnitInGameValidator(ActionValidator):
    def validate(self, *, ctx: ActionContext) -> None:
        if ctx.require_unit().game_id != ctx.game_id:
            raise InvalidStateError(f"{ctx.actor_label} is not part of this game")


@dataclass(frozen=True, slots=True)
class UnitOwnershipValidator(ActionValidator):
    def validate(self, *, ctx: ActionContext) -> None:
        if ctx.require_unit().player_id != ctx.require_player().id:
            raise InvalidStateError(f"{ctx.actor_label} is not owned by this player")


@dataclass(frozen=True, slots=True)
class SameGameValidator(ActionValidator):
    def validate(self, *, ctx: ActionContext) -> None:
        if ctx.require_unit().game_id != ctx.require_target().game_id:
            raise InvalidStateError(f"{ctx.actor_label} and target are not in the same game")


@dataclass(frozen=True, slots=True)
class DifferentOwnerValidator(ActionValidator):
    def validate(self, *, ctx: ActionContext) -> None:
        if ctx.require_unit().player_id == ctx.require_target().player_id:
            raise ConflictError(f"{ctx.actor_label} and target are owned by the same player")


@dataclass(frozen=True, slots=True)
class UnitTypeValidator(ActionValidator):
    allowed_types: frozenset[UnitType]

    def validate(self, *, ctx: ActionContext) -> None:
        if ctx.require_unit().type not in self.allowed_types:
            allowed = " or ".join(sorted(t.value for t in self.allowed_types))
            raise InvalidStateError(f"Only the {allowed} can {ctx.action}")


@dataclass(frozen=True, slots=True)
class ValidatorPipeline:
    validators: tuple[ActionValidator, ...]

    def validate(self, *, ctx: ActionContext) -> None:
        for v in self.validators:
            v.validate(ctx=ctx)


# Order matters: later validators assume the snapshots earlier ones checked exist.
DEFAULT_ACTION_PIPELINES: dict[str, ValidatorPipeline] = {
    "attack": ValidatorPipeline(
        validators=(
            PlayerInGameValidator(),
            UnitsExistValidator(),
            UnitInGameValidator(),
            UnitOwnershipValidator(),
            SameGameValidator(),
            DifferentOwnerValidator(),
        )
    ),
    "heal": ValidatorPipeline(
        validators=(
            PlayerInGameValidator(),
            UnitsExistValidator(),
            UnitInGameValidator(),
            UnitOwnershipValidator(),
            SameGameValidator(),
            UnitTypeValidator(allowed_types=frozenset({UnitType.wizard})),
        )
    ),
    "pickup": ValidatorPipeline(
        validators=(
            UnitsExistValidator(needs_target=False),
            UnitInGameValidator(),
        )
    ),
}


def pipeline_for_action(action: str) -> ValidatorPipeline:
    pipe = DEFAULT_ACTION_PIPELINES.get(action)
    if pipe is None:
        raise ValueError(f"Unknown action: {action}")
    return pipe
