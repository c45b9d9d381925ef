"""ECC property and health endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Request
from pydantic import BaseModel

from eccmon.models.ecc import EccProperties, PollStats

router = APIRouter(tags=["ecc"])


class EccHealth(BaseModel):
    """Polling loop status."""

    running: bool
    interval_s: float
    mode: str
    max_log_limit: int | None = None
    suppression_active: bool = False
    suppression_started_at: float | None = None
    ce_offset: int = 0
    stats: PollStats


@router.get("/ecc", response_model=EccProperties)
async def get_ecc_properties(request: Request) -> EccProperties:
    """Current ceCount, ueCount, isLoggingLimitReached and state."""
    return request.app.state.monitor.publisher.snapshot()


@router.get("/ecc/health", response_model=EccHealth)
async def get_ecc_health(request: Request) -> EccHealth:
    """Polling statistics and effective configuration."""
    monitor = request.app.state.monitor
    scheduler = request.app.state.scheduler
    state = monitor.state
    return EccHealth(
        running=scheduler is not None and scheduler.is_running,
        interval_s=monitor.settings.poll_interval_s,
        mode=monitor.strategy.mode.value,
        max_log_limit=state.max_log_limit,
        suppression_active=state.suppression_active,
        suppression_started_at=state.suppression_started_at,
        ce_offset=state.ce_offset,
        stats=monitor.publisher.stats(),
    )
