from __future__ import annotations

from pathlib import Path

from arena.assets.registry import load_item_catalog
from arena.items import ItemCatalog


_CATALOG: ItemCatalog | None = None


def init_item_catalog(*, path: Path, strict: bool = False) -> ItemCatalog:
    """Load the item catalog once and cache it.

    Safe to call multiple times; subsequent calls return the already loaded instance.
    """

    global _CATALOG
    if _CATALOG is None:
        _CATALOG = load_item_catalog(path=path, strict=strict)
    return _CATALOG


def reset_item_catalog_for_tests() -> None:
    global _CATALOG
    _CATALOG = None


def get_item_catalog() -> ItemCatalog:
    if _CATALOG is None:
        raise RuntimeError("Item catalog not initialized. Call init_item_catalog() at startup.")
    return _CATALOG
