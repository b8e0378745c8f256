"""Configuration management for winery-finance."""

from dataclasses import dataclass, field
from decimal import Decimal
from pathlib import Path

from winery_finance.exceptions import ConfigurationError


@dataclass
class WarningOneConfig:
    """Penalties for the first missed payment."""

    late_fee_percent: Decimal = Decimal("0.02")  # of the seasonal payment
    credit_rating_loss: float = -0.05
    bookkeeping_work: int = 20


@dataclass
class WarningTwoConfig:
    """Penalties for the second consecutive missed payment."""

    interest_rate_increase: Decimal = Decimal("0.005")
    balance_penalty_percent: Decimal = Decimal("0.05")
    credit_rating_loss: float = -0.05
    prestige_penalty: float = -25.0
    prestige_decay_rate: float = 0.998667  # ~10-year half-life
    bookkeeping_work: int = 50


@dataclass
class WarningThreeConfig:
    """Penalties for the third consecutive missed payment (asset seizure)."""

    cellar_liquidation_percent_of_balance: Decimal = Decimal("0.20")
    max_vineyard_seizure_percent: Decimal = Decimal("0.50")
    sale_penalty_rate: Decimal = Decimal("0.25")
    credit_rating_loss: float = -0.10
    bookkeeping_work: int = 100


@dataclass
class DefaultConfig:
    """Penalties once a loan defaults (four or more missed payments)."""

    prestige_penalty: float = -75.0
    prestige_decay_rate: float = 0.999334  # ~20-year half-life


@dataclass
class EmergencyQuickLoanConfig:
    """Forced quick loan taken when company cash goes negative."""

    negative_balance_buffer: Decimal = Decimal("0.10")
    base_interest_penalty_multiplier: Decimal = Decimal("1.5")
    disqualified_interest_penalty_multiplier: Decimal = Decimal("1.9")
    origination_fee_penalty_multiplier: Decimal = Decimal("1.4")
    max_adjustment_iterations: int = 4
    prestige_penalty: float = -15.0
    prestige_decay_rate: float = 0.99735  # ~5-year half-life


@dataclass
class RestructureConfig:
    """Year-boundary consolidation of forced loans."""

    cellar_step_percent_of_debt: Decimal = Decimal("0.20")
    max_seizure_percent_of_debt: Decimal = Decimal("0.50")
    max_seizure_percent_of_portfolio: Decimal = Decimal("0.50")
    sale_penalty_rate: Decimal = Decimal("0.25")
    consolidated_duration_seasons: int = 48
    interest_penalty_multiplier: Decimal = Decimal("1.25")
    origination_penalty_multiplier: Decimal = Decimal("1.35")
    override_interest_multiplier: Decimal = Decimal("1.55")
    override_origination_multiplier: Decimal = Decimal("1.6")
    override_duration_seasons: int = 60
    prestige_penalty: float = -35.0
    prestige_decay_rate: float = 0.998667
    epsilon: Decimal = Decimal("0.01")


@dataclass
class PaymentFeeConfig:
    """Fees on voluntary extra payments and early payoff."""

    extra_payment_admin_fee_rate: Decimal = Decimal("0.08")
    extra_payment_min_admin_fee: Decimal = Decimal("250")
    prepayment_remaining_interest_factor: Decimal = Decimal("0.25")
    prepayment_min_penalty: Decimal = Decimal("1000")


@dataclass
class AdministrationPenaltyConfig:
    """Bookkeeping work units added after loan operations."""

    loan_taken: int = 12
    loan_extra_payment: int = 6
    loan_full_repayment: int = 10
    loan_restructure: int = 22


@dataclass
class BorrowingConfig:
    """Borrowing limit applied to player-initiated loans."""

    min_limit: Decimal = Decimal("50000")
    asset_multiplier: Decimal = Decimal("1.0")


@dataclass
class KafkaConfig:
    """Kafka producer configuration."""

    bootstrap_servers: str = "localhost:9092"
    acks: str = "all"
    batch_size: int = 16384
    linger_ms: int = 5
    compression: str = "snappy"
    retries: int = 3
    topic_prefix: str = "dev.winery"


@dataclass
class OutputConfig:
    """Output configuration."""

    json_output_dir: Path = field(default_factory=lambda: Path("output"))
    pretty_json: bool = False


@dataclass
class EngineConfig:
    """Main configuration for the loan distress engine."""

    warning_one: WarningOneConfig = field(default_factory=WarningOneConfig)
    warning_two: WarningTwoConfig = field(default_factory=WarningTwoConfig)
    warning_three: WarningThreeConfig = field(default_factory=WarningThreeConfig)
    default: DefaultConfig = field(default_factory=DefaultConfig)
    emergency: EmergencyQuickLoanConfig = field(default_factory=EmergencyQuickLoanConfig)
    restructure: RestructureConfig = field(default_factory=RestructureConfig)
    payment_fees: PaymentFeeConfig = field(default_factory=PaymentFeeConfig)
    administration: AdministrationPenaltyConfig = field(default_factory=AdministrationPenaltyConfig)
    borrowing: BorrowingConfig = field(default_factory=BorrowingConfig)
    kafka: KafkaConfig = field(default_factory=KafkaConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    start_year: int = 2024
    seed: int | None = None
    log_level: str = "INFO"

    def validate(self) -> None:
        """Check that percentages and multipliers are usable.

        Raises
        ------
        ConfigurationError
            If a rate is negative or a penalty rate is not below 1.
        """
        penalty_rates = {
            "warning_three.sale_penalty_rate": self.warning_three.sale_penalty_rate,
            "restructure.sale_penalty_rate": self.restructure.sale_penalty_rate,
        }
        for name, value in penalty_rates.items():
            if not Decimal("0") <= value < Decimal("1"):
                raise ConfigurationError(f"{name} must be in [0, 1), got {value}")

        if self.emergency.max_adjustment_iterations < 1:
            raise ConfigurationError("emergency.max_adjustment_iterations must be at least 1")

        if self.restructure.cellar_step_percent_of_debt <= 0:
            raise ConfigurationError("restructure.cellar_step_percent_of_debt must be positive")

        if self.restructure.epsilon <= 0:
            raise ConfigurationError("restructure.epsilon must be positive")

    @classmethod
    def from_env(cls) -> "EngineConfig":
        """Create config from environment variables."""
        import os

        kafka = KafkaConfig(
            bootstrap_servers=os.getenv("KAFKA_BOOTSTRAP_SERVERS", "localhost:9092"),
            acks=os.getenv("KAFKA_ACKS", "all"),
            topic_prefix=os.getenv("TOPIC_PREFIX", "dev.winery"),
        )

        output = OutputConfig(
            json_output_dir=Path(os.getenv("OUTPUT_DIR", "output")),
            pretty_json=os.getenv("PRETTY_JSON", "false").lower() == "true",
        )

        try:
            start_year = int(os.getenv("START_YEAR", "2024"))
            seed = int(os.getenv("SEED")) if os.getenv("SEED") else None
        except ValueError as exc:
            raise ConfigurationError(f"Invalid numeric environment value: {exc}") from exc

        config = cls(
            kafka=kafka,
            output=output,
            start_year=start_year,
            seed=seed,
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )
        config.validate()
        return config
