"""Lender models for finance domain."""

from dataclasses import dataclass
from decimal import Decimal

from winery_finance.models.finance.enums import LenderType


@dataclass
class OriginationFeeConfig:
    """Lender-specific origination fee parameters."""

    base_percent: Decimal  # Share of principal (e.g., 0.02 for 2%)
    min_fee: Decimal
    max_fee: Decimal
    credit_rating_modifier: Decimal  # Applied in full for excellent credit
    duration_modifier: Decimal  # Applied in full for very long loans


@dataclass
class Lender:
    """Lender in the company's catalog."""

    lender_id: str
    name: str
    lender_type: LenderType
    base_interest_rate: Decimal  # Seasonal rate before modifiers
    risk_tolerance: float  # Minimum credit rating (0-1) the lender accepts
    flexibility: float
    market_presence: float
    min_loan_amount: Decimal
    max_loan_amount: Decimal
    min_duration_seasons: int
    max_duration_seasons: int
    origination_fee: OriginationFeeConfig
    blacklisted: bool = False

    def accepts_amount(self, amount: Decimal) -> bool:
        return self.min_loan_amount <= amount <= self.max_loan_amount

    def accepts_duration(self, seasons: int) -> bool:
        return self.min_duration_seasons <= seasons <= self.max_duration_seasons
