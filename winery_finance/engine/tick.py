"""Week tick orchestration for the finance engine."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from winery_finance.engine.distress import LoanDistressEngine
from winery_finance.engine.payments import LoanPaymentResult
from winery_finance.models.base import GameDate
from winery_finance.models.finance import ForcedLoanRestructureOffer, Loan

logger = logging.getLogger(__name__)


@dataclass
class TickReport:
    """What the finance engine did during one week."""

    date: GameDate
    payments: list[LoanPaymentResult] = field(default_factory=list)
    restructure_offer: ForcedLoanRestructureOffer | None = None
    emergency_loan: Loan | None = None


class FinanceTickHandler:
    """Advance the calendar and run the finance hooks for each week.

    Payments are collected on week 1 of every season. On week 1 of Spring the
    restructure offer is built after payments. The emergency quick loan is
    checked last, every week.
    """

    def __init__(self, engine: LoanDistressEngine) -> None:
        self.engine = engine
        self.store = engine.store

    def advance_week(self) -> TickReport:
        company = self.store.company
        company.current_date = company.current_date.next_week()
        today = company.current_date
        report = TickReport(date=today)

        if today.is_season_start:
            report.payments = self.engine.process_seasonal_loan_payments()
        if today.is_year_start:
            report.restructure_offer = self.engine.restructure_forced_loans_if_needed()
        report.emergency_loan = self.engine.enforce_emergency_quick_loan_if_needed()

        logger.debug(
            "Tick %s: %d payments, offer=%s, emergency=%s",
            today,
            len(report.payments),
            report.restructure_offer is not None,
            report.emergency_loan is not None,
        )
        return report

    def run(self, weeks: int) -> list[TickReport]:
        """Advance ``weeks`` weeks and return one report per week."""
        return [self.advance_week() for _ in range(weeks)]
