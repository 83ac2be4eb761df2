"""FastAPI application with lifespan and REST routes."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from stokvis.api.routes import router
from stokvis.config import settings
from stokvis.database import HuntStore, close_db, get_db
from stokvis.services.counter_store import build_counter_store

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Stokvis starting — initialising database")
    app.state.db = await get_db()
    if settings.seed_demo_route:
        await HuntStore(app.state.db).seed_demo_route()
    app.state.counter_store = build_counter_store(
        settings.redis_url, timeout_s=settings.counter_store_timeout_s
    )
    yield
    logger.info("Stokvis shutting down — closing database and counter store")
    await app.state.counter_store.close()
    await close_db()


app = FastAPI(
    title="Stokvis",
    description="Team scavenger hunt: geofenced stops, throttled answer checks and hints",
    version="1.0.0",
    lifespan=lifespan,
)

app.include_router(router)
