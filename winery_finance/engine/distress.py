"""Facade wiring the loan distress services around one store."""

from __future__ import annotations

import logging
import random
from decimal import Decimal

from winery_finance.config import EngineConfig
from winery_finance.engine.emergency import EmergencyLoanInjector
from winery_finance.engine.escalation import EscalationLadder
from winery_finance.engine.origination import LoanActionResult, LoanService
from winery_finance.engine.payments import LoanPaymentResult, PaymentProcessor
from winery_finance.engine.restructure import (
    RestructureExecutor,
    RestructureOfferBuilder,
    RestructureResult,
)
from winery_finance.models.finance import ForcedLoanRestructureOffer, Loan, PendingLoanWarning
from winery_finance.store.finance import FinanceDataStore

logger = logging.getLogger(__name__)


class LoanDistressEngine:
    """Entry point for the finance tick and the player's loan actions.

    Parameters
    ----------
    store : FinanceDataStore
        Company data the engine reads and writes.
    config : EngineConfig | None
        Penalty and fee settings. Defaults are used when omitted.
    rng : random.Random | None
        Random source for lender selection. Seeded from ``config.seed``
        when omitted.
    """

    def __init__(
        self,
        store: FinanceDataStore,
        config: EngineConfig | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.store = store
        self.config = config or EngineConfig()
        self.config.validate()
        # Game weeks count from the configured campaign year
        store.start_year = self.config.start_year

        self.loans = LoanService(store, self.config)
        self.ladder = EscalationLadder(store, self.config)
        self.payments = PaymentProcessor(store, self.config, self.ladder)
        self.emergency = EmergencyLoanInjector(
            store,
            self.config,
            self.loans,
            rng or random.Random(self.config.seed),
        )
        self.offers = RestructureOfferBuilder(store, self.config)
        self.executor = RestructureExecutor(store, self.config, self.loans)

    # Tick operations
    def process_seasonal_loan_payments(self) -> list[LoanPaymentResult]:
        return self.payments.process_seasonal_loan_payments()

    def enforce_emergency_quick_loan_if_needed(self) -> Loan | None:
        return self.emergency.enforce_emergency_quick_loan_if_needed()

    def restructure_forced_loans_if_needed(self) -> ForcedLoanRestructureOffer | None:
        return self.offers.restructure_forced_loans_if_needed()

    # Player decisions
    def accept_forced_loan_restructure(self, offer_id: str) -> RestructureResult:
        return self.executor.accept_forced_loan_restructure(offer_id)

    def decline_forced_loan_restructure(self, offer_id: str) -> None:
        self.executor.decline_forced_loan_restructure(offer_id)

    def apply_for_loan(self, lender_id: str, amount: Decimal, duration_seasons: int) -> Loan:
        return self.loans.apply_for_loan(lender_id, amount, duration_seasons)

    def make_extra_payment(self, loan_id: str, amount: Decimal) -> LoanActionResult:
        return self.loans.make_extra_payment(loan_id, amount)

    def repay_loan_in_full(self, loan_id: str) -> LoanActionResult:
        return self.loans.repay_loan_in_full(loan_id)

    # Warning queue
    def next_warning(self) -> PendingLoanWarning | None:
        """Oldest warning the player has not seen yet."""
        return self.store.get_first_unacknowledged_warning()

    def acknowledge_warning(self, key: str) -> None:
        self.store.acknowledge_loan_warning(key)
        self.store.trigger_update()
