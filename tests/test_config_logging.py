"""Tests for config and logging."""

import json
import logging
import os
import sys
from decimal import Decimal
from pathlib import Path
from typing import Iterator
from unittest.mock import patch

import pytest

from winery_finance.config import (
    EngineConfig,
    KafkaConfig,
    OutputConfig,
    RestructureConfig,
    WarningThreeConfig,
)
from winery_finance.exceptions import ConfigurationError
from winery_finance.engine import LoanDistressEngine
from winery_finance.logging import JsonFormatter, setup_logging
from winery_finance.store.finance import FinanceDataStore


class TestKafkaConfig:
    """Tests for KafkaConfig."""

    def test_default_values(self) -> None:
        """Test default configuration values."""
        config = KafkaConfig()

        assert config.bootstrap_servers == "localhost:9092"
        assert config.acks == "all"
        assert config.topic_prefix == "dev.winery"


class TestEngineConfig:
    """Tests for EngineConfig."""

    def test_penalty_defaults(self) -> None:
        """Test the escalation and restructure defaults."""
        config = EngineConfig()

        assert config.warning_one.late_fee_percent == Decimal("0.02")
        assert config.warning_two.interest_rate_increase == Decimal("0.005")
        assert config.warning_three.max_vineyard_seizure_percent == Decimal("0.50")
        assert config.default.prestige_penalty == -75.0
        assert config.emergency.origination_fee_penalty_multiplier == Decimal("1.4")
        assert config.restructure.consolidated_duration_seasons == 48
        assert config.administration.loan_restructure == 22
        assert config.output.json_output_dir == Path("output")

    def test_validate_defaults(self) -> None:
        """Test defaults are valid."""
        EngineConfig().validate()

    def test_validate_sale_penalty(self) -> None:
        """Test a 100% haircut is rejected."""
        config = EngineConfig(warning_three=WarningThreeConfig(sale_penalty_rate=Decimal("1")))

        with pytest.raises(ConfigurationError, match="sale_penalty_rate"):
            config.validate()

    def test_validate_cellar_step(self) -> None:
        """Test cellar passes must sell something."""
        config = EngineConfig(restructure=RestructureConfig(cellar_step_percent_of_debt=Decimal("0")))

        with pytest.raises(ConfigurationError):
            config.validate()

    def test_from_env(self) -> None:
        """Test environment overrides."""
        env = {
            "KAFKA_BOOTSTRAP_SERVERS": "kafka:29092",
            "TOPIC_PREFIX": "prod.winery",
            "OUTPUT_DIR": "/tmp/winery",
            "PRETTY_JSON": "true",
            "START_YEAR": "2030",
            "SEED": "7",
            "LOG_LEVEL": "DEBUG",
        }
        with patch.dict(os.environ, env, clear=True):
            config = EngineConfig.from_env()

        assert config.kafka.bootstrap_servers == "kafka:29092"
        assert config.kafka.topic_prefix == "prod.winery"
        assert config.output == OutputConfig(json_output_dir=Path("/tmp/winery"), pretty_json=True)
        assert config.start_year == 2030
        assert config.seed == 7
        assert config.log_level == "DEBUG"

    def test_from_env_defaults(self) -> None:
        """Test an empty environment."""
        with patch.dict(os.environ, {}, clear=True):
            config = EngineConfig.from_env()

        assert config.seed is None
        assert config.start_year == 2024

    def test_from_env_bad_number(self) -> None:
        """Test a non-numeric seed."""
        with patch.dict(os.environ, {"SEED": "abc"}, clear=True):
            with pytest.raises(ConfigurationError, match="Invalid numeric"):
                EngineConfig.from_env()

    def test_engine_uses_configured_start_year(self, store: FinanceDataStore) -> None:
        """Test game weeks count from the engine's campaign year."""
        assert store.current_game_week == 13

        LoanDistressEngine(store, EngineConfig(start_year=2023))

        assert store.start_year == 2023
        assert store.current_game_week == 61


@pytest.fixture
def restore_root_logger() -> Iterator[None]:
    """Put root logger handlers back after setup_logging replaces them."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.mark.usefixtures("restore_root_logger")
class TestLogging:
    """Tests for logging setup."""

    def test_setup_standard(self) -> None:
        """Test standard formatter."""
        setup_logging(level="DEBUG")
        root = logging.getLogger()

        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        assert not isinstance(root.handlers[0].formatter, JsonFormatter)
        assert logging.getLogger("confluent_kafka").level == logging.WARNING

    def test_setup_json(self) -> None:
        """Test JSON formatter."""
        setup_logging(level="INFO", format_type="json")

        assert isinstance(logging.getLogger().handlers[0].formatter, JsonFormatter)

    def test_unknown_level_falls_back_to_info(self) -> None:
        """Test an invalid level name."""
        setup_logging(level="LOUD")

        assert logging.getLogger().level == logging.INFO

    def test_json_formatter_output(self) -> None:
        """Test JSON record fields and extra payload."""
        record = logging.LogRecord("winery_finance.engine", logging.WARNING, __file__, 1, "Loan %s", ("x",), None)
        record.loan_id = "loan-001"
        record.offer_id = None

        data = json.loads(JsonFormatter().format(record))

        assert data["level"] == "WARNING"
        assert data["logger"] == "winery_finance.engine"
        assert data["message"] == "Loan x"
        assert data["loan_id"] == "loan-001"
        assert "offer_id" not in data

    def test_json_formatter_exception(self) -> None:
        """Test exception info is included."""
        try:
            raise ValueError("bad rate")
        except ValueError:
            record = logging.LogRecord("x", logging.ERROR, __file__, 1, "failed", (), sys.exc_info())

        data = json.loads(JsonFormatter().format(record))

        assert "bad rate" in data["exception"]

    def test_engine_records_carry_loan_id(
        self, engine: LoanDistressEngine, store: FinanceDataStore, make_loan, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Test a missed payment is logged with its loan and lender ids."""
        make_loan()
        store.company.money = Decimal("0")

        with caplog.at_level(logging.INFO, logger="winery_finance"):
            engine.process_seasonal_loan_payments()

        record = next(r for r in caplog.records if "missed its payment" in r.getMessage())
        data = json.loads(JsonFormatter().format(record))
        assert data["loan_id"] == "loan-001"
        assert data["lender_id"] == "lender-bank"
