"""Tests for settings and structured logging."""

import io
import json
import logging

import pytest

from payrollkit.config import DEFAULT_VACATION_DAYS, Settings
from payrollkit.domain.entities import TaxOption
from payrollkit.domain.errors import NotFoundError, ValidationError
from payrollkit.logging_config import LogContext, configure_logging, get_logger


class TestSettings:
    """Tests for Settings.from_env."""

    def test_defaults(self):
        settings = Settings.from_env({})
        assert settings.db_path is None
        assert settings.log_level == "WARNING"
        assert settings.tax_tables_path is None
        assert settings.vacation_days == DEFAULT_VACATION_DAYS

    def test_from_environment(self):
        settings = Settings.from_env(
            {
                "PAYROLLKIT_DB_PATH": "/tmp/payroll.db",
                "PAYROLLKIT_LOG_LEVEL": "debug",
                "PAYROLLKIT_TAX_TABLES": "/etc/payrollkit/taxes.yaml",
                "PAYROLLKIT_VACATION_DAYS": "20",
            }
        )
        assert settings.db_path == "/tmp/payroll.db"
        assert settings.log_level == "DEBUG"
        assert settings.tax_tables_path == "/etc/payrollkit/taxes.yaml"
        assert settings.vacation_days == 20

    @pytest.mark.parametrize("value", ["abc", "0", "-3"])
    def test_invalid_vacation_days(self, value):
        with pytest.raises(ValidationError):
            Settings.from_env({"PAYROLLKIT_VACATION_DAYS": value})


@pytest.fixture
def log_stream():
    stream = io.StringIO()
    configure_logging(level="INFO", stream=stream)
    return stream


def records(stream):
    return [json.loads(line) for line in stream.getvalue().splitlines()]


class TestStructuredLogging:
    """Tests for the JSON formatter and log context."""

    def test_json_line_with_extra_fields(self, log_stream):
        get_logger("test").info("payroll_closed", extra={"amount": 500000, "tax_option": TaxOption.FULL})

        [record] = records(log_stream)
        assert record["message"] == "payroll_closed"
        assert record["level"] == "INFO"
        assert record["logger"] == "payrollkit.test"
        assert record["amount"] == 500000
        assert record["tax_option"] == "full"

    def test_level_filters(self, log_stream):
        get_logger("test").debug("hidden")
        assert records(log_stream) == []

    def test_context_fields(self, log_stream):
        logger = get_logger("test")
        with LogContext.bind(payroll_id=7, actor_id=3):
            logger.info("inside")
        logger.info("outside")

        inside, outside = records(log_stream)
        assert (inside["payroll_id"], inside["actor_id"]) == (7, 3)
        assert "payroll_id" not in outside

    def test_domain_error_fields(self, log_stream):
        try:
            raise NotFoundError("Payroll 9 not found", entity="Payroll", entity_id=9)
        except NotFoundError:
            get_logger("test").exception("lookup_failed")

        [record] = records(log_stream)
        assert record["exc_type"] == "NotFoundError"
        assert record["exc_entity"] == "Payroll"
        assert record["exc_entity_id"] == 9
        assert "Traceback" in record["traceback"]

    def test_configure_is_idempotent(self, log_stream):
        configure_logging(level="DEBUG", stream=io.StringIO())
        assert len(logging.getLogger("payrollkit").handlers) == 1
        assert logging.getLogger("payrollkit").level == logging.INFO

    def test_services_log_events(self, log_stream, payroll_service, june_payroll):
        messages = [r["message"] for r in records(log_stream)]
        assert "payroll_created" in messages
        created = next(r for r in records(log_stream) if r["message"] == "payroll_created")
        assert created["payroll_id"] == june_payroll.payroll.id
        assert created["period_start"] == "2024-06-01"
