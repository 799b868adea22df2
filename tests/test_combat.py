from __future__ import annotations

from datetime import UTC, datetime

import pytest

from arena.api.models import Unit, UnitType
from arena.combat import (
    ATTACK_SPREAD,
    STRENGTH,
    SeededRandomSource,
    resolve_attack,
    resolve_heal,
)
from arena.errors import InvalidStateError
from rng_helpers import FixedRandom


def _unit(unit_id: str, unit_type: UnitType, *, player_id: str = "p1", **overrides) -> Unit:  # type: ignore[no-untyped-def]
    max_health = overrides.pop("max_health", 100)
    data = {
        "id": unit_id,
        "type": unit_type,
        "game_id": "g1",
        "player_id": player_id,
        "health": max_health,
        "max_health": max_health,
        "level": 1,
        "experience": 0,
        "created_at": datetime(2025, 1, 1, tzinfo=UTC),
    }
    data.update(overrides)
    return Unit(**data)


def test_attack_damages_target_and_awards_hit_experience() -> None:
    attacker = _unit("a", UnitType.soldier)
    target = _unit("t", UnitType.knight, player_id="p2", max_health=120)
    rng = FixedRandom(4)

    outcome = resolve_attack(attacker=attacker, target=target, rng=rng)

    assert rng.ranges == [(0, ATTACK_SPREAD)]
    assert outcome.damage == 24
    assert outcome.target_new_health == 96
    assert outcome.target_destroyed is False
    assert outcome.experience_awarded == 5
    assert outcome.attacker.experience == 5
    assert outcome.target is not None
    assert outcome.target.health == 96
    # inputs are snapshots, never mutated
    assert target.health == 120
    assert attacker.experience == 0


def test_attack_that_reaches_zero_destroys_target() -> None:
    attacker = _unit("a", UnitType.archer)
    target = _unit("t", UnitType.wizard, player_id="p2", max_health=60, health=10)

    outcome = resolve_attack(attacker=attacker, target=target, rng=FixedRandom(0))

    assert outcome.damage == 10
    assert outcome.target_new_health == 0
    assert outcome.target_destroyed is True
    assert outcome.target is None
    assert outcome.experience_awarded == 15
    assert outcome.attacker.experience == 15


def test_kill_can_level_up_attacker() -> None:
    attacker = _unit("a", UnitType.zombie, max_health=90, health=45, experience=10)
    target = _unit("t", UnitType.wizard, player_id="p2", max_health=60, health=1)

    outcome = resolve_attack(attacker=attacker, target=target, rng=FixedRandom(0))

    # 10 + 15 = 25 -> level 2 with 5 left, max health 90 + 20
    assert outcome.attacker.level == 2
    assert outcome.attacker.experience == 5
    assert outcome.attacker.max_health == 110
    assert outcome.attacker.health == 55


@pytest.mark.parametrize("unit_type", list(UnitType))
def test_attack_damage_stays_within_strength_band(unit_type: UnitType) -> None:
    rng = SeededRandomSource(seed=1234)
    attacker = _unit("a", unit_type)
    target = _unit("t", UnitType.knight, player_id="p2", max_health=10_000)

    for _ in range(200):
        outcome = resolve_attack(attacker=attacker, target=target, rng=rng)
        assert STRENGTH[unit_type] <= outcome.damage <= STRENGTH[unit_type] + ATTACK_SPREAD


def test_heal_adds_rolled_amount_and_awards_experience() -> None:
    healer = _unit("w", UnitType.wizard, max_health=60)
    target = _unit("t", UnitType.soldier, health=50)

    outcome = resolve_heal(healer=healer, target=target, rng=FixedRandom(3))

    assert outcome.healing == 18
    assert outcome.target_new_health == 68
    assert outcome.target.health == 68
    assert outcome.healer.experience == 10


def test_heal_is_capped_and_reports_effective_amount() -> None:
    healer = _unit("w", UnitType.wizard, max_health=60)
    target = _unit("t", UnitType.soldier, health=95)

    outcome = resolve_heal(healer=healer, target=target, rng=FixedRandom(10))

    assert outcome.healing == 5
    assert outcome.target_new_health == 100


def test_heal_on_full_health_target_still_awards_experience() -> None:
    healer = _unit("w", UnitType.wizard, max_health=60)
    target = _unit("t", UnitType.soldier)

    outcome = resolve_heal(healer=healer, target=target, rng=FixedRandom(0))

    assert outcome.healing == 0
    assert outcome.target_new_health == 100
    assert outcome.healer.experience == 10


def test_heal_roll_range_is_15_to_25() -> None:
    rng = SeededRandomSource(seed=7)
    healer = _unit("w", UnitType.wizard, max_health=60)
    target = _unit("t", UnitType.knight, max_health=1000, health=1)

    seen = {resolve_heal(healer=healer, target=target, rng=rng).healing for _ in range(500)}

    assert min(seen) >= 15
    assert max(seen) <= 25


def test_only_wizards_heal() -> None:
    healer = _unit("s", UnitType.soldier)
    target = _unit("t", UnitType.archer, health=10, max_health=80)

    with pytest.raises(InvalidStateError) as e:
        resolve_heal(healer=healer, target=target, rng=FixedRandom(0))

    assert str(e.value) == "Only the Wizard can heal"


def test_wizard_self_heal_applies_health_and_experience_to_one_snapshot() -> None:
    wizard = _unit("w", UnitType.wizard, max_health=60, health=30, experience=12)

    outcome = resolve_heal(healer=wizard, target=wizard, rng=FixedRandom(0))

    assert outcome.healer is outcome.target
    assert outcome.healing == 15
    # 45/60 healed, then 22 experience -> level 2, max 80, health 60
    assert outcome.healer.level == 2
    assert outcome.healer.experience == 2
    assert outcome.healer.max_health == 80
    assert outcome.healer.health == 60


def test_seeded_random_source_is_reproducible() -> None:
    a = SeededRandomSource(seed=99)
    b = SeededRandomSource(seed=99)

    assert [a.int_in_range(0, 15) for _ in range(20)] == [b.int_in_range(0, 15) for _ in range(20)]
