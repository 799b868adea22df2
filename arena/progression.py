from __future__ import annotations

import logging

from arena.api.models import Unit

logger = logging.getLogger(__name__)

HEALTH_BONUS_PER_LEVEL = 10


def max_experience(level: int) -> int:
    """Experience needed to leave `level`."""

    return 10 * (level + 1)


def _round_half_up(numerator: int, denominator: int) -> int:
    return (2 * numerator + denominator) // (2 * denominator)


def level_up(level: int, experience: int, health: int, max_health: int) -> tuple[int, int, int, int]:
    """Convert banked experience into levels.

    Several levels can be gained from one award. Max health grows once, by
    10 * the final level reached, and current health keeps its pre-levelup
    fraction of max health. Returns the inputs unchanged when no level is gained.
    """

    if level < 1:
        raise ValueError("level must be >= 1")
    if experience < 0:
        raise ValueError("experience must be >= 0")
    if max_health < 1:
        raise ValueError("max_health must be >= 1")

    new_level = level
    remaining = experience
    while remaining >= max_experience(new_level):
        remaining -= max_experience(new_level)
        new_level += 1

    if new_level == level:
        return level, experience, health, max_health

    new_max_health = max_health + HEALTH_BONUS_PER_LEVEL * new_level
    # Exact integer form of round(health / max_health * new_max_health).
    new_health = _round_half_up(health * new_max_health, max_health)
    return new_level, remaining, new_health, new_max_health


def award_experience(unit: Unit, amount: int) -> Unit:
    """Return a copy of `unit` with `amount` experience added and progression applied."""

    if amount < 0:
        raise ValueError("amount must be >= 0")

    level, experience, health, max_health = level_up(
        unit.level,
        unit.experience + amount,
        unit.health,
        unit.max_health,
    )
    if level > unit.level:
        logger.info("unit %s (%s) reached level %d", unit.id, unit.type.value, level)
    return unit.model_copy(
        update={"level": level, "experience": experience, "health": health, "max_health": max_health}
    )
