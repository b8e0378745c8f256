"""Forced-loan restructure offer models."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

from winery_finance.models.base import GameDate
from winery_finance.models.finance.enums import LenderType, LiquidationKind


@dataclass
class CellarLot:
    """Bottles taken from one wine batch in a cellar sale."""

    batch_id: str
    label: str
    bottles: int
    unit_price: Decimal
    value: Decimal
    whole_batch: bool


@dataclass
class LiquidationStep:
    """One pass of the liquidation plan (a cellar sale or a vineyard seizure)."""

    step_number: int
    kind: LiquidationKind
    recovered_value: Decimal  # Book value taken
    proceeds: Decimal  # Cash after the sale penalty
    lots: list[CellarLot] = field(default_factory=list)
    vineyard_id: str | None = None
    vineyard_name: str | None = None


@dataclass
class ProposedLoanTerms:
    """Consolidated loan terms quoted in a restructure offer."""

    lender_id: str
    lender_name: str
    lender_type: LenderType
    principal: Decimal
    effective_interest_rate: Decimal
    duration_seasons: int
    origination_fee: Decimal
    origination_fee_multiplier: Decimal
    seasonal_payment: Decimal
    is_emergency_override: bool = False


@dataclass
class ForcedLoanRestructureOffer:
    """Simulated liquidation-and-consolidation plan awaiting a player decision."""

    offer_id: str
    created_date: GameDate
    expires_date: GameDate
    loan_ids: list[str]
    total_forced_balance: Decimal
    debt_allowance: Decimal
    portfolio_allowance: Decimal
    max_seizure_value: Decimal
    steps: list[LiquidationStep]
    total_recovered_value: Decimal
    total_proceeds: Decimal
    cellar_lots_at_risk: list[str]
    vineyards_at_risk: list[str]
    consolidated_principal_estimate: Decimal
    proposed_terms: ProposedLoanTerms | None
    prestige_penalty: float
    summary_lines: list[str] = field(default_factory=list)
    created_at: datetime | None = None

    def is_expired(self, current: GameDate) -> bool:
        return current.sort_key() >= self.expires_date.sort_key()
