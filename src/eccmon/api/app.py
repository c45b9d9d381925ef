"""FastAPI application factory for the ECC property endpoint."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from eccmon import __version__
from eccmon.core.monitor import EccMonitor
from eccmon.core.scheduler import PollingScheduler
from eccmon.utils.logging import get_logger

logger = get_logger(__name__)


def create_app(monitor: EccMonitor, scheduler: PollingScheduler | None = None) -> FastAPI:
    """Create the FastAPI application.

    Args:
        monitor: Monitor whose published properties are served.
        scheduler: Polling loop started and stopped with the app lifespan.
            Pass None when the loop is driven elsewhere.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info("eccmon_api_starting")
        if scheduler is not None:
            scheduler.start()
        yield
        if scheduler is not None:
            scheduler.stop()
        monitor.sink.close()
        logger.info("eccmon_api_stopped")

    app = FastAPI(
        title="eccmon API",
        description="Memory ECC error counters and state",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.monitor = monitor
    app.state.scheduler = scheduler

    from eccmon.api.routes import ecc
    app.include_router(ecc.router, prefix="/api")

    return app
