from __future__ import annotations

import re
from dataclasses import dataclass

from arena.api.models import ItemEffect, Unit
from arena.progression import award_experience


def item_key(name: str) -> str:
    """Forgiving lookup key: 'Health Potion', 'health-potion' and 'health_potion' all match."""

    s = name.strip().casefold()
    s = re.sub(r"[^a-z0-9]+", "_", s)
    return s.strip("_")


@dataclass(frozen=True, slots=True)
class ItemDef:
    name: str
    effect: ItemEffect
    amount: int


@dataclass(frozen=True, slots=True)
class ItemCatalog:
    items: tuple[ItemDef, ...]
    _by_key: dict[str, ItemDef]

    @staticmethod
    def from_items(items: list[ItemDef]) -> "ItemCatalog":
        by_key: dict[str, ItemDef] = {}
        for item in items:
            key = item_key(item.name)
            if not key:
                raise ValueError(f"Item name has no usable characters: {item.name!r}")
            if key in by_key:
                raise ValueError(f"Duplicate item: {item.name}")
            if item.amount <= 0:
                raise ValueError(f"Item amount must be positive: {item.name}")
            by_key[key] = item
        return ItemCatalog(items=tuple(items), _by_key=by_key)

    def get(self, name: str) -> ItemDef | None:
        return self._by_key.get(item_key(name))

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.get(name) is not None

    def __len__(self) -> int:
        return len(self.items)


@dataclass(frozen=True, slots=True)
class ItemOutcome:
    effect: ItemEffect
    # Effective amount; below the catalog amount when health was capped.
    amount: int
    new_amount: int
    unit: Unit


def apply_item(unit: Unit, item: ItemDef) -> ItemOutcome:
    if item.effect == ItemEffect.experience:
        updated = award_experience(unit, item.amount)
        return ItemOutcome(effect=item.effect, amount=item.amount, new_amount=updated.experience, unit=updated)

    if item.effect == ItemEffect.health:
        new_health = min(unit.health + item.amount, unit.max_health)
        updated = unit.model_copy(update={"health": new_health})
        return ItemOutcome(effect=item.effect, amount=new_health - unit.health, new_amount=new_health, unit=updated)

    raise ValueError(f"Unknown item effect: {item.effect}")
