#!/usr/bin/env python3
"""
Check that larder's backing services are reachable.

    python check_health.py                     # table of every check
    python check_health.py --json              # machine-readable report
    python check_health.py --strict            # exit 1 on degraded too
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent))

from larder.services.healthcheck import HealthReport, HealthStatus, get_health_checker  # noqa: E402

MARKS = {
    HealthStatus.HEALTHY: "ok",
    HealthStatus.DEGRADED: "warn",
    HealthStatus.UNHEALTHY: "FAIL",
    HealthStatus.UNKNOWN: "?",
}


def render(report: HealthReport) -> str:
    """Plain-text table of a health report."""
    lines = [
        f"larder {report.version} @ {report.timestamp:%Y-%m-%d %H:%M:%S %Z}",
        f"overall: {report.status.value} ({report.healthy_count}/{report.total_count} healthy)",
        "",
    ]
    width = max((len(check.name) for check in report.checks), default=8)
    for check in report.checks:
        latency = f"{check.latency_ms:>6.0f}ms" if check.latency_ms else "      - "
        lines.append(f"[{MARKS[check.status]:>4}] {check.name:<{width}}  {latency}  {check.message}")
    return "\n".join(lines)


def exit_code(report: HealthReport, strict: bool) -> int:
    if report.status == HealthStatus.UNHEALTHY:
        return 1
    if strict and report.status != HealthStatus.HEALTHY:
        return 1
    return 0


async def main():
    parser = argparse.ArgumentParser(description="Check larder dependencies")
    parser.add_argument("--json", action="store_true", help="Print the report as JSON")
    parser.add_argument("--strict", action="store_true", help="Treat a degraded report as a failure")
    args = parser.parse_args()

    report = await get_health_checker().run_all_checks()
    print(json.dumps(report.to_dict(), indent=2) if args.json else render(report))
    sys.exit(exit_code(report, args.strict))


if __name__ == "__main__":
    asyncio.run(main())
