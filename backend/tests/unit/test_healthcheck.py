"""
Unit tests for dependency health checks.
"""

import pytest
from unittest.mock import AsyncMock, patch

import httpx

from larder.config import get_settings
from larder.services.healthcheck import (
    CheckResult,
    HealthChecker,
    HealthReport,
    HealthStatus,
    overall_status,
)


def _result(name, status):
    return CheckResult(name=name, status=status)


class TestOverallStatus:
    """Critical checks decide between degraded and unhealthy."""

    @pytest.mark.unit
    def test_all_healthy(self):
        results = [_result("api", HealthStatus.HEALTHY), _result("supabase", HealthStatus.HEALTHY)]
        assert overall_status(results) == HealthStatus.HEALTHY

    @pytest.mark.unit
    def test_optional_failure_degrades(self):
        results = [
            _result("supabase", HealthStatus.HEALTHY),
            _result("open_food_facts", HealthStatus.UNHEALTHY),
        ]
        assert overall_status(results) == HealthStatus.DEGRADED

    @pytest.mark.unit
    def test_database_failure_is_unhealthy(self):
        results = [
            _result("supabase", HealthStatus.UNHEALTHY),
            _result("openai", HealthStatus.HEALTHY),
        ]
        assert overall_status(results) == HealthStatus.UNHEALTHY


class TestHealthReport:

    @pytest.mark.unit
    def test_to_dict_keys_checks_by_name(self):
        report = HealthReport(
            status=HealthStatus.DEGRADED,
            checks=[
                CheckResult(name="api", status=HealthStatus.HEALTHY, latency_ms=0.04),
                CheckResult(name="openai", status=HealthStatus.DEGRADED, message="API key missing"),
            ],
        )

        data = report.to_dict()

        assert data["summary"] == "1/2 checks passing"
        assert data["checks"]["openai"]["status"] == "degraded"
        assert data["checks"]["api"]["latencyMs"] == 0.0
        assert report.get("openai").message == "API key missing"
        assert report.get("missing") is None


class TestHealthChecker:

    @pytest.fixture
    def checker(self):
        return HealthChecker(get_settings().model_copy())

    @pytest.mark.unit
    async def test_supabase_probes_every_table(self, checker, mock_supabase):
        with patch("larder.services.supabase.get_supabase_client", return_value=mock_supabase):
            result = await checker.run_check("supabase")

        assert result.status == HealthStatus.HEALTHY
        tables = {call.args[0] for call in mock_supabase.table.call_args_list}
        assert tables == {"active_shopping_lists", "active_pantries", "saved_lists"}

    @pytest.mark.unit
    async def test_check_exception_becomes_unhealthy(self, checker):
        with patch("larder.services.supabase.get_supabase_client", side_effect=RuntimeError("Connection refused")):
            result = await checker.run_check("supabase")

        assert result.status == HealthStatus.UNHEALTHY
        assert result.message == "Connection refused"
        assert result.latency_ms >= 0

    @pytest.mark.unit
    async def test_openai_without_key_degrades(self, checker):
        checker.settings.openai_api_key = ""

        result = await checker.run_check("openai")

        assert result.status == HealthStatus.DEGRADED
        assert result.details["planModel"] == checker.settings.openai_plan_model

    @pytest.mark.unit
    async def test_barcode_lookup_disabled_skips_network(self, checker):
        checker.settings.feature_barcode_lookup = False

        with patch("httpx.AsyncClient") as client_cls:
            result = await checker.run_check("open_food_facts")

        client_cls.assert_not_called()
        assert result.status == HealthStatus.HEALTHY
        assert result.details == {"enabled": False}

    @pytest.mark.unit
    async def test_open_food_facts_error_status_degrades(self, checker):
        response = httpx.Response(503, request=httpx.Request("GET", "https://world.openfoodfacts.org"))

        with patch("httpx.AsyncClient.get", new_callable=AsyncMock, return_value=response):
            result = await checker.run_check("open_food_facts")

        assert result.status == HealthStatus.DEGRADED
        assert "503" in result.message

    @pytest.mark.unit
    async def test_run_all_checks(self, checker):
        with patch.object(checker, "_probe_supabase", new_callable=AsyncMock) as db, \
             patch.object(checker, "_probe_open_food_facts", new_callable=AsyncMock) as off:
            db.return_value = (HealthStatus.HEALTHY, "ok", {})
            off.side_effect = httpx.ConnectError("offline")

            report = await checker.run_all_checks()

        assert [check.name for check in report.checks] == ["api", "supabase", "openai", "open_food_facts"]
        assert report.get("open_food_facts").status == HealthStatus.UNHEALTHY
        assert report.status == HealthStatus.DEGRADED
