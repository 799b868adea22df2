from __future__ import annotations

import csv
from pathlib import Path

from arena.api.models import ItemEffect
from arena.items import ItemCatalog, ItemDef


class AssetLoadError(RuntimeError):
    pass


def _read_csv_rows(path: Path) -> list[list[str]]:
    try:
        with path.open(encoding="utf-8-sig", newline="") as f:
            rows = [[c.strip() for c in row if c is not None] for row in csv.reader(f)]
    except FileNotFoundError as e:
        raise AssetLoadError(f"Asset file not found: {path}") from e

    return [row for row in rows if any(cell.strip() for cell in row)]


def load_item_csv(path: Path) -> ItemCatalog:
    rows = _read_csv_rows(path)
    if not rows:
        raise AssetLoadError(f"Empty item CSV: {path}")

    header = [c.casefold() for c in rows[0]]
    if header[:3] != ["name", "effect", "amount"]:
        raise AssetLoadError(f"Unexpected header in {path}: {rows[0]}")

    out: list[ItemDef] = []
    for lineno, row in enumerate(rows[1:], start=2):
        if len(row) < 3 or not row[0]:
            continue
        name, effect, amount = row[0], row[1].casefold(), row[2]
        try:
            out.append(ItemDef(name=name, effect=ItemEffect(effect), amount=int(amount)))
        except ValueError as e:
            raise AssetLoadError(f"{path}:{lineno}: bad item row {row}") from e

    try:
        return ItemCatalog.from_items(out)
    except ValueError as e:
        raise AssetLoadError(f"{path}: {e}") from e


def fallback_item_catalog() -> ItemCatalog:
    """Built-in catalog used when no item CSV ships with the deployment."""

    return ItemCatalog.from_items(
        [
            ItemDef(name="health_potion", effect=ItemEffect.health, amount=25),
            ItemDef(name="greater_health_potion", effect=ItemEffect.health, amount=50),
            ItemDef(name="experience_tome", effect=ItemEffect.experience, amount=15),
            ItemDef(name="ancient_scroll", effect=ItemEffect.experience, amount=40),
        ]
    )


def load_item_catalog(*, path: Path, strict: bool = False) -> ItemCatalog:
    """Load the item catalog from `path`, or the built-in one if the file is missing.

    With `strict=True` a missing file is an error instead.
    """

    if not path.exists():
        if strict:
            raise AssetLoadError(f"Asset file not found: {path}")
        return fallback_item_catalog()
    return load_item_csv(path)
