"""Unit tests for request, result and service models."""

from pathlib import Path

import pytest

from stackdeploy.exceptions import BootstrapError, ReadinessTimeoutError
from stackdeploy.models import (
    BackupRecord,
    ComposeProfile,
    DeploymentOutcome,
    DeploymentRequest,
    Environment,
    ExecutionResult,
    ResultStatus,
    ServiceDescriptor,
    StageResult,
)


class TestEnvironment:
    """Tests for Environment parsing."""

    def test_parse_is_case_insensitive(self):
        assert Environment.parse("Production") is Environment.PRODUCTION
        assert Environment.parse(" development ") is Environment.DEVELOPMENT

    def test_parse_unknown(self):
        with pytest.raises(ValueError, match="staging"):
            Environment.parse("staging")


class TestDeploymentRequest:
    """Tests for URLs derived from a request."""

    def test_development_urls(self):
        request = DeploymentRequest(environment=Environment.DEVELOPMENT)

        assert request.domain == "localhost"
        assert not request.is_production
        assert request.app_url == "http://localhost"
        assert request.api_url == "http://localhost/api"
        assert request.dev_server_url == "http://localhost:5173"

    def test_production_urls(self):
        request = DeploymentRequest(environment=Environment.PRODUCTION, domain="example.com")

        assert request.is_production
        assert request.app_url == "https://example.com"
        assert request.api_url == "https://example.com/api"
        assert request.dev_server_url is None

    def test_development_ignores_domain_for_urls(self):
        request = DeploymentRequest(environment=Environment.DEVELOPMENT, domain="example.com")
        assert request.app_url == "http://localhost"


class TestComposeProfile:
    """Tests for dependency ordering."""

    def _profile(self, graph):
        services = {
            name: ServiceDescriptor(name=name, depends_on=tuple(deps))
            for name, deps in graph.items()
        }
        return ComposeProfile(path=Path("docker-compose.yml"), services=services)

    def test_startup_order_puts_dependencies_first(self):
        profile = self._profile(
            {"nginx": ["laravel", "react"], "laravel": ["mysql", "redis"], "react": [], "mysql": [], "redis": []}
        )
        order = profile.startup_order()

        assert order.index("mysql") < order.index("laravel")
        assert order.index("redis") < order.index("laravel")
        assert order.index("laravel") < order.index("nginx")
        assert order.index("react") < order.index("nginx")
        assert sorted(order) == sorted(profile.service_names)

    def test_cycle_is_rejected(self):
        profile = self._profile({"a": ["b"], "b": ["c"], "c": ["a"]})

        with pytest.raises(ValueError, match="Dependency cycle"):
            profile.startup_order()

    def test_lookup(self):
        profile = self._profile({"mysql": []})

        assert profile.has_service("mysql")
        assert profile.get("redis") is None


class TestResults:
    """Tests for execution and deployment results."""

    def test_execution_result_output(self):
        result = ExecutionResult(returncode=1, stdout="out", stderr="err")

        assert result.is_failure
        assert result.output == "out\nerr"

    def test_outcome_collects_warnings_in_stage_order(self):
        outcome = DeploymentOutcome(
            success=True,
            stages=[
                StageResult("environment", ResultStatus.WARNING, warnings=["created backend/.env"]),
                StageResult("bootstrap", ResultStatus.WARNING, warnings=["db:seed failed"]),
            ],
        )

        assert outcome.exit_code == 0
        assert outcome.warnings == ["created backend/.env", "db:seed failed"]
        assert outcome.stage("bootstrap").status is ResultStatus.WARNING
        assert outcome.stage("health") is None

    def test_failed_outcome_to_dict(self, tmp_path):
        backup = BackupRecord(path=tmp_path / "20240501_120000", timestamp="20240501_120000")
        outcome = DeploymentOutcome(
            success=False,
            failed_stage="readiness",
            error=ReadinessTimeoutError("mysql", 30, 2),
            stages=[StageResult("readiness", ResultStatus.FAILURE, 1.23456)],
            backup=backup,
        )
        data = outcome.to_dict()

        assert outcome.exit_code == 1
        assert data["failed_stage"] == "readiness"
        assert "mysql" in data["error"]
        assert data["stages"][0] == {
            "stage": "readiness",
            "status": "failure",
            "duration_seconds": 1.235,
            "message": "",
            "warnings": [],
        }
        assert data["backup"]["timestamp"] == "20240501_120000"

    def test_backup_record_is_empty(self, tmp_path):
        record = BackupRecord(path=tmp_path, timestamp="t")
        assert record.is_empty

        record.database_dump = tmp_path / "database_backup.sql"
        assert not record.is_empty
        assert record.to_dict()["database_dump"] == "database_backup.sql"


class TestErrors:
    def test_bootstrap_error_names_step(self):
        error = BootstrapError("migrate", "SQLSTATE[HY000]")

        assert error.step == "migrate"
        assert error.message == "Bootstrap step 'migrate' failed"
        assert "SQLSTATE" in str(error)

    def test_readiness_timeout_context(self):
        error = ReadinessTimeoutError("mysql", 30, 2)
        assert error.context == "Gave up after 30 attempts at 2s intervals"
