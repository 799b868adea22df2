from __future__ import annotations

import os

from arena.assets.singleton import init_item_catalog
from arena.config import load_settings


def init_assets_for_app() -> None:
    settings = load_settings()
    strict = os.environ.get("ARENA_STRICT_ASSETS") == "1"
    init_item_catalog(path=settings.items_csv, strict=strict)
