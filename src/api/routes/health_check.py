from fastapi import APIRouter, Depends

from src.adapter.services.retention_scheduler import RetentionSweepScheduler
from src.depends import get_retention_scheduler

router = APIRouter()


@router.get("/health")
async def health_check(scheduler: RetentionSweepScheduler = Depends(get_retention_scheduler)):
    return {
        "status": "ok",
        "retention_sweep": {
            "enabled": scheduler.enabled,
            "in_progress": scheduler.sweep_in_progress,
        },
    }
