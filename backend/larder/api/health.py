"""Liveness, readiness and dependency health endpoints."""

import os
import platform
import time
from datetime import datetime, timezone

import psutil
from fastapi import APIRouter
from fastapi.responses import JSONResponse

from larder.services.healthcheck import CRITICAL_CHECKS, VERSION, HealthStatus, get_health_checker

router = APIRouter(tags=["health"])

_STARTED = time.time()
_GB = 1024 ** 3


@router.get("/health")
async def health_check():
    """Liveness: the process is up."""
    return {
        "status": "healthy",
        "version": VERSION,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/health/detailed")
async def detailed_health():
    """Liveness plus host and process resource usage."""
    process = psutil.Process(os.getpid())
    memory = psutil.virtual_memory()

    return {
        "status": "healthy",
        "version": VERSION,
        "uptimeSeconds": round(time.time() - _STARTED),
        "host": {
            "platform": platform.platform(),
            "python": platform.python_version(),
            "cpuPercent": psutil.cpu_percent(interval=None),
            "memoryPercent": memory.percent,
            "memoryTotalGb": round(memory.total / _GB, 2),
        },
        "process": {
            "rssMb": round(process.memory_info().rss / (1024 ** 2), 1),
            "threads": process.num_threads(),
        },
    }


@router.get("/health/full")
async def services_health():
    """Probe every dependency (database, OpenAI, Open Food Facts)."""
    report = await get_health_checker().run_all_checks()
    return report.to_dict()


@router.get("/health/ready")
async def readiness_check():
    """Readiness: 503 until the critical dependencies answer."""
    report = await get_health_checker().run_all_checks()
    failing = [
        name for name in sorted(CRITICAL_CHECKS)
        if (check := report.get(name)) is None or check.status != HealthStatus.HEALTHY
    ]

    if failing:
        return JSONResponse(status_code=503, content={"ready": False, "failing": failing})
    return {"ready": True, "status": report.status.value}
