import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from arena.api.routes import router
from arena.assets.startup import init_assets_for_app
from arena.config import load_settings

settings = load_settings()

# Configure logging
logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    init_assets_for_app()
    logger.info("unit-arena ready (key prefix %r)", settings.key_prefix)
    yield


app = FastAPI(title="unit-arena", version="0.1.0", lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.cors_origins),
    allow_methods=["*"],
    allow_headers=["*"],
)
app.include_router(router)


@app.get("/info")
async def info() -> dict[str, str]:
    return {"name": "unit-arena", "version": "0.1.0"}
