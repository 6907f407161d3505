# app.py -- FastAPI application
# Single process: web server + in-memory dish viewer tracking.
# Entry point: `foodie-live` CLI.

from __future__ import annotations

import logging
import time
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from .config import config
from .hub import DishViewersHub
from .viewers import ActiveDishViewers
from .ws import ConnectionManager

log = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Build the shared tracker and hub on startup."""
    viewers = ActiveDishViewers(prune_empty=config.prune_empty_dishes)
    app.state.viewers = viewers
    app.state.hub = DishViewersHub(viewers, ConnectionManager())
    app.state.start_time = time.time()

    log.info("Foodie Live started -- listening on http://%s:%d", config.web_host, config.web_port)
    yield

    log.info("Foodie Live stopped (%d dish(es) still tracked)", len(viewers.snapshot()))


app = FastAPI(title="Foodie Live", version="0.1.0", lifespan=lifespan)

# Import and include routes (uses dependency injection via app.state)
from .api.routes import router  # noqa: E402

app.include_router(router)


def main() -> None:
    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s %(levelname)-7s %(name)s  %(message)s",
        datefmt="%H:%M:%S",
    )
    uvicorn.run(
        "foodie_live.app:app",
        host=config.web_host,
        port=config.web_port,
        log_level=config.log_level.lower(),
    )


if __name__ == "__main__":
    main()
