"""
Dependency health checks.

Each probe returns (status, message, details); ``run_check`` times it and
turns any exception into an unhealthy result. The database is critical:
if it is down the report is unhealthy, while a missing OpenAI key or an
unreachable Open Food Facts only degrades it.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from functools import lru_cache
from typing import Optional

import httpx

from larder.config import Settings, get_settings

logger = logging.getLogger(__name__)

VERSION = "0.1.0"

CHECKS = ("api", "supabase", "openai", "open_food_facts")
CRITICAL_CHECKS = {"api", "supabase"}

# Known-good product used to probe Open Food Facts
PROBE_BARCODE = "737628064502"


class HealthStatus(str, Enum):
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"
    UNKNOWN = "unknown"


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class CheckResult:
    """Outcome of one probe."""

    name: str
    status: HealthStatus
    message: str = ""
    latency_ms: float = 0
    details: dict = field(default_factory=dict)
    timestamp: datetime = field(default_factory=_now)


@dataclass
class HealthReport:
    """All probe results plus the overall verdict."""

    status: HealthStatus
    checks: list[CheckResult]
    timestamp: datetime = field(default_factory=_now)
    version: str = VERSION

    @property
    def healthy_count(self) -> int:
        return sum(1 for check in self.checks if check.status == HealthStatus.HEALTHY)

    @property
    def total_count(self) -> int:
        return len(self.checks)

    def get(self, name: str) -> Optional[CheckResult]:
        return next((check for check in self.checks if check.name == name), None)

    def to_dict(self) -> dict:
        return {
            "status": self.status.value,
            "version": self.version,
            "timestamp": self.timestamp.isoformat(),
            "summary": f"{self.healthy_count}/{self.total_count} checks passing",
            "checks": {
                check.name: {
                    "status": check.status.value,
                    "message": check.message,
                    "latencyMs": round(check.latency_ms, 1),
                    "details": check.details,
                }
                for check in self.checks
            },
        }


def overall_status(results: list[CheckResult]) -> HealthStatus:
    """Unhealthy if a critical check failed, degraded if anything else is off."""
    if any(r.name in CRITICAL_CHECKS and r.status == HealthStatus.UNHEALTHY for r in results):
        return HealthStatus.UNHEALTHY
    if all(r.status == HealthStatus.HEALTHY for r in results):
        return HealthStatus.HEALTHY
    return HealthStatus.DEGRADED


class HealthChecker:
    """Probes the database, the LLM configuration and Open Food Facts."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()

    async def run_all_checks(self) -> HealthReport:
        results = await asyncio.gather(*(self.run_check(name) for name in CHECKS))
        return HealthReport(status=overall_status(list(results)), checks=list(results))

    async def run_check(self, name: str) -> CheckResult:
        """Run one named probe, timing it and catching its failure."""
        probe = getattr(self, f"_probe_{name}")
        start = time.perf_counter()
        try:
            status, message, details = await probe()
        except Exception as e:
            logger.warning(f"Health check '{name}' failed: {e}")
            status, message, details = HealthStatus.UNHEALTHY, str(e), {}

        return CheckResult(
            name=name,
            status=status,
            message=message,
            latency_ms=(time.perf_counter() - start) * 1000,
            details=details,
        )

    async def _probe_api(self):
        return HealthStatus.HEALTHY, "Serving requests", {"environment": self.settings.environment}

    async def _probe_supabase(self):
        from larder.services.supabase import TABLES, get_supabase_client

        client = get_supabase_client()
        for table in TABLES.values():
            client.table(table).select("user_id").limit(1).execute()
        return HealthStatus.HEALTHY, "All list tables readable", {"tables": sorted(TABLES.values())}

    async def _probe_openai(self):
        details = {
            "model": self.settings.openai_model,
            "planModel": self.settings.openai_plan_model,
            "timeoutSeconds": self.settings.ai_timeout_seconds,
        }
        if not self.settings.openai_api_key:
            return HealthStatus.DEGRADED, "API key missing; generation and scans disabled", details
        return HealthStatus.HEALTHY, "Configured", details

    async def _probe_open_food_facts(self):
        from larder.services.barcode import OFF_BASE_URL

        if not self.settings.feature_barcode_lookup:
            return HealthStatus.HEALTHY, "Barcode lookup disabled", {"enabled": False}

        async with httpx.AsyncClient(
            timeout=10.0,
            headers={"User-Agent": self.settings.off_user_agent},
        ) as client:
            response = await client.get(
                f"{OFF_BASE_URL}/product/{PROBE_BARCODE}",
                params={"fields": "code"},
            )

        if response.status_code == 200:
            return HealthStatus.HEALTHY, "Reachable", {"enabled": True}
        return HealthStatus.DEGRADED, f"Returned HTTP {response.status_code}", {"enabled": True}


@lru_cache
def get_health_checker() -> HealthChecker:
    return HealthChecker()
