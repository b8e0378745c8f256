"""Forced quick loans that cover a negative cash balance."""

from __future__ import annotations

import logging
import random
from decimal import Decimal

from winery_finance.config import EngineConfig
from winery_finance.engine.money import format_money, round_money, round_whole
from winery_finance.engine.origination import LoanService
from winery_finance.engine.terms import calculate_lender_availability, calculate_origination_fee
from winery_finance.models.finance import Lender, LenderType, Loan, LoanCategory
from winery_finance.store.finance import FinanceDataStore

logger = logging.getLogger(__name__)

MAX_FEE_RATE = Decimal("0.9")


class EmergencyLoanInjector:
    """Take a penalized QuickLoan whenever company cash drops below zero.

    The loan skips the usual eligibility checks and is flagged as forced,
    so it is picked up by the year-end restructure.
    """

    def __init__(
        self,
        store: FinanceDataStore,
        config: EngineConfig | None = None,
        loan_service: LoanService | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.store = store
        self.config = config or EngineConfig()
        self.loan_service = loan_service or LoanService(store, self.config)
        self.rng = rng or random.Random(self.config.seed)

    def enforce_emergency_quick_loan_if_needed(self) -> Loan | None:
        """Cover negative cash with a forced QuickLoan.

        Returns
        -------
        Loan | None
            The new loan, or None when cash is not negative, no QuickLoan
            lender is available, or origination failed.
        """
        try:
            return self._enforce()
        except Exception:
            logger.exception("Emergency quick loan failed")
            return None

    def _enforce(self) -> Loan | None:
        company = self.store.company
        if company.money >= 0:
            return None

        deficit = -company.money
        lender = self._pick_lender()
        if lender is None:
            logger.warning("Cash is %s but no QuickLoan lender is available", company.money)
            return None

        settings = self.config.emergency
        availability = calculate_lender_availability(lender, company.credit_rating, company.prestige)
        interest_multiplier = (
            settings.base_interest_penalty_multiplier
            if availability.is_available
            else settings.disqualified_interest_penalty_multiplier
        )
        duration = lender.max_duration_seasons

        principal = self._size_principal(lender, deficit, duration)
        loan = self.loan_service.originate_loan(
            lender,
            principal,
            duration,
            interest_multiplier=interest_multiplier,
            origination_fee_multiplier=settings.origination_fee_penalty_multiplier,
            is_forced=True,
            category=LoanCategory.EMERGENCY,
        )

        self.store.add_prestige_event(
            settings.prestige_penalty,
            settings.prestige_decay_rate,
            {
                "reason": "Emergency Quick Loan",
                "lender_name": lender.name,
                "lender_type": lender.lender_type.value,
                "loan_amount": principal,
                "deficit": deficit,
            },
            source_id=loan.loan_id,
        )
        self.store.add_notification(
            f"Cash fell to {format_money(-deficit)}. {lender.name} forced an emergency loan of "
            f"{format_money(principal)} (fee {format_money(loan.origination_fee)}). "
            "It will be consolidated at the start of next year.",
            "loan.emergencyQuickLoan",
            "Emergency Quick Loan",
        )
        self.store.trigger_update()

        logger.warning(
            "Emergency quick loan %s from %s: principal %s for deficit %s",
            loan.loan_id,
            lender.name,
            principal,
            deficit,
            extra={"loan_id": loan.loan_id, "lender_id": lender.lender_id, "game_date": company.current_date},
        )
        return loan

    def _pick_lender(self) -> Lender | None:
        candidates = sorted(
            (
                lender
                for lender in self.store.lenders.values()
                if lender.lender_type == LenderType.QUICK_LOAN and not lender.blacklisted
            ),
            key=lambda lender: lender.lender_id,
        )
        if not candidates:
            return None
        return self.rng.choice(candidates)

    def _size_principal(self, lender: Lender, deficit: Decimal, duration: int) -> Decimal:
        """Grow the principal until the cash left after the fee covers the deficit."""
        settings = self.config.emergency

        principal = max(lender.min_loan_amount, round_money(deficit * (1 + settings.negative_balance_buffer)))
        for _ in range(settings.max_adjustment_iterations):
            shortfall = deficit - (principal - self._fee(lender, principal, duration))
            if shortfall <= 0:
                return principal
            principal = round_money(principal + shortfall)

        # The last step also raised the fee; scale by the fee rate until covered
        fee = self._fee(lender, principal, duration)
        while principal - fee < deficit:
            fee_rate = min(fee / principal, MAX_FEE_RATE)
            principal = round_money(principal + (deficit - principal + fee) / (1 - fee_rate) + 1)
            fee = self._fee(lender, principal, duration)
        return principal

    def _fee(self, lender: Lender, principal: Decimal, duration: int) -> Decimal:
        base_fee = calculate_origination_fee(principal, lender, self.store.company.credit_rating, duration)
        return round_whole(base_fee * self.config.emergency.origination_fee_penalty_multiplier)
