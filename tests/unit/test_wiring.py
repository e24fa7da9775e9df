"""Tests for app wiring — error mapping, settings, logging, CLI and exports."""

import json
import logging

import pytest
from typer.testing import CliRunner

from vuelve_engine.cli import app as cli_app
from vuelve_engine.common.config import VuelveSettings
from vuelve_engine.common.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConfigurationError,
    ConflictError,
    EntitlementError,
    ExternalDependencyError,
    NotFoundError,
    RateLimitedError,
    ValidationError,
    VuelveError,
)
from vuelve_engine.common.logging import JSONFormatter, get_logger
from tests.conftest import make_settings

runner = CliRunner()


class TestExceptionStatuses:
    @pytest.mark.parametrize(
        "exc,status",
        [
            (ValidationError(), 400),
            (AuthenticationError(), 401),
            (AuthorizationError(), 403),
            (EntitlementError(), 403),
            (NotFoundError(), 404),
            (ConflictError(), 409),
            (RateLimitedError(retry_after=3), 429),
            (ExternalDependencyError(), 500),
            (ConfigurationError(), 503),
        ],
    )
    def test_status(self, exc, status):
        assert isinstance(exc, VuelveError)
        assert exc.status_code == status
        assert exc.message

    async def test_handler_maps_errors(self, client):
        resp = await client.post("/staff/login", json={"slug": "x", "pin": "1"})
        assert resp.status_code == 400
        assert resp.json() == {"error": "Invalid PIN", "code": "VALIDATION_ERROR"}


class TestSettings:
    def test_env_prefix(self, monkeypatch):
        monkeypatch.setenv("VUELVE_SUPER_ADMIN_EMAILS", " A@x.cl ,b@x.cl,, ")
        assert VuelveSettings().admin_allowlist == ["a@x.cl", "b@x.cl"]

    def test_production_rejects_default_secret(self):
        settings = VuelveSettings(environment="production")
        with pytest.raises(RuntimeError, match="VUELVE_ADMIN_PANEL_SECRET"):
            settings.validate_for_production()

    def test_production_with_secret(self):
        make_settings(environment="production").validate_for_production()


class TestLogging:
    def test_json_formatter(self):
        record = logging.LogRecord(
            "vuelve_engine.auth.sso", logging.INFO, __file__, 1, "issued %s", ("cafe",), None
        )
        entry = json.loads(JSONFormatter().format(record))
        assert entry["level"] == "INFO"
        assert entry["logger"] == "vuelve_engine.auth.sso"
        assert entry["message"] == "issued cafe"

    def test_get_logger_namespaced(self):
        assert get_logger("billing").name == "vuelve_engine.billing"


class TestCli:
    def test_hash_pin(self):
        result = runner.invoke(cli_app, ["hash-pin", "1234"])
        assert result.exit_code == 0
        assert "scrypt$" in result.output

    def test_hash_pin_invalid(self):
        result = runner.invoke(cli_app, ["hash-pin", "12"])
        assert result.exit_code == 1

    def test_tier(self):
        result = runner.invoke(cli_app, ["tier", "100"])
        assert result.exit_code == 0
        assert "oro" in result.output

    def test_plans(self):
        result = runner.invoke(cli_app, ["plans"])
        assert result.exit_code == 0
        assert "Full" in result.output


class TestLibraryExports:
    def test_top_level_functions(self):
        from vuelve_engine import calculate_tier, get_effective_plan, get_motor_config

        assert calculate_tier(30) == "plata"
        assert get_effective_plan(None, None) == "pro"
        assert get_motor_config({}, "sellos") == {}
