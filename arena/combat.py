from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import Protocol

from arena.api.models import Unit, UnitType
from arena.errors import InvalidStateError
from arena.progression import award_experience

logger = logging.getLogger(__name__)

STRENGTH: dict[UnitType, int] = {
    UnitType.zombie: 12,
    UnitType.soldier: 20,
    UnitType.archer: 10,
    UnitType.wizard: 5,
    UnitType.knight: 18,
}

ATTACK_SPREAD = 15
HEAL_SPREAD = 11
HEAL_BASE = 15

KILL_EXPERIENCE = 15
HIT_EXPERIENCE = 5
HEAL_EXPERIENCE = 10


class RandomSource(Protocol):
    def int_in_range(self, low: int, high: int) -> int:
        """Return an integer n with low <= n < high."""
        ...


class SeededRandomSource:
    """RandomSource backed by `random.Random`; pass a seed for reproducible fights."""

    def __init__(self, seed: int | str | None = None):
        self._rng = random.Random(seed)

    def int_in_range(self, low: int, high: int) -> int:
        return self._rng.randrange(low, high)


@dataclass(frozen=True, slots=True)
class AttackOutcome:
    damage: int
    target_new_health: int
    target_destroyed: bool
    experience_awarded: int
    attacker: Unit
    # None when the target was destroyed.
    target: Unit | None


@dataclass(frozen=True, slots=True)
class HealOutcome:
    healing: int
    target_new_health: int
    experience_awarded: int
    healer: Unit
    target: Unit


def roll_damage(attacker: Unit, rng: RandomSource) -> int:
    return rng.int_in_range(0, ATTACK_SPREAD) + STRENGTH[attacker.type]


def roll_healing(rng: RandomSource) -> int:
    return rng.int_in_range(0, HEAL_SPREAD) + HEAL_BASE


def resolve_attack(*, attacker: Unit, target: Unit, rng: RandomSource) -> AttackOutcome:
    """Work out what one attack does to both units. Nothing is persisted here."""

    damage = roll_damage(attacker, rng)
    new_health = target.health - damage

    if new_health <= 0:
        logger.info("unit %s destroyed unit %s (%d damage)", attacker.id, target.id, damage)
        return AttackOutcome(
            damage=damage,
            target_new_health=new_health,
            target_destroyed=True,
            experience_awarded=KILL_EXPERIENCE,
            attacker=award_experience(attacker, KILL_EXPERIENCE),
            target=None,
        )

    return AttackOutcome(
        damage=damage,
        target_new_health=new_health,
        target_destroyed=False,
        experience_awarded=HIT_EXPERIENCE,
        attacker=award_experience(attacker, HIT_EXPERIENCE),
        target=target.model_copy(update={"health": new_health}),
    )


def resolve_heal(*, healer: Unit, target: Unit, rng: RandomSource) -> HealOutcome:
    """Heal `target` by 15-25, capped at its max health.

    The reported healing is what was actually applied. The healer earns
    experience even when the target was already at full health.
    """

    if healer.type != UnitType.wizard:
        raise InvalidStateError("Only the Wizard can heal")

    rolled = roll_healing(rng)
    new_health = min(target.health + rolled, target.max_health)
    healing = new_health - target.health
    healed_target = target.model_copy(update={"health": new_health})

    if healer.id == target.id:
        # Self-heal: one document gets both the health and the experience.
        healed_self = award_experience(healed_target, HEAL_EXPERIENCE)
        return HealOutcome(
            healing=healing,
            target_new_health=new_health,
            experience_awarded=HEAL_EXPERIENCE,
            healer=healed_self,
            target=healed_self,
        )

    return HealOutcome(
        healing=healing,
        target_new_health=new_health,
        experience_awarded=HEAL_EXPERIENCE,
        healer=award_experience(healer, HEAL_EXPERIENCE),
        target=healed_target,
    )
