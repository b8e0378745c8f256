"""Loan models for finance domain."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any

from winery_finance.models.base import GameDate
from winery_finance.models.finance.enums import (
    EconomyPhase,
    LenderType,
    LoanCategory,
    LoanStatus,
    WarningSeverity,
    WarningType,
)


@dataclass
class Loan:
    """Loan contract between the company and a lender."""

    loan_id: str
    lender_id: str
    lender_name: str
    lender_type: LenderType
    principal_amount: Decimal
    base_interest_rate: Decimal
    effective_interest_rate: Decimal  # Seasonal rate after all modifiers
    origination_fee: Decimal
    remaining_balance: Decimal
    seasonal_payment: Decimal
    seasons_remaining: int
    total_seasons: int
    start_date: GameDate
    next_payment_due: GameDate
    economy_phase_at_creation: EconomyPhase = EconomyPhase.STABLE
    missed_payments: int = 0
    status: LoanStatus = LoanStatus.ACTIVE
    is_forced: bool = False
    category: LoanCategory = LoanCategory.STANDARD
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_active(self) -> bool:
        return self.status == LoanStatus.ACTIVE


@dataclass
class PendingLoanWarning:
    """Warning or decision queued for the player.

    Missed-payment warnings are keyed by loan id, so a newer warning for the
    same loan replaces the older one. Restructure decisions carry the offer id
    in ``decision`` and are keyed by it.
    """

    loan_id: str | None
    lender_name: str
    missed_payments: int
    severity: WarningSeverity
    title: str
    message: str
    details: str
    penalties: dict[str, Any] = field(default_factory=dict)
    warning_type: WarningType = WarningType.MISSED_PAYMENT
    decision: dict[str, Any] | None = None
    created_game_week: int = 0
    acknowledged: bool = False
    created_at: datetime | None = None

    @property
    def key(self) -> str:
        if self.decision and "offer_id" in self.decision:
            return self.decision["offer_id"]
        if self.loan_id is None:
            raise ValueError("Warning has neither a loan id nor a decision offer id")
        return self.loan_id
