"""Seasonal loan payment processing."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal

from winery_finance.config import EngineConfig
from winery_finance.engine.escalation import EscalationLadder
from winery_finance.engine.money import ZERO, format_money
from winery_finance.models.base import GameDate
from winery_finance.models.finance import (
    Loan,
    LoanStatus,
    PaymentOutcome,
    TransactionCategory,
)
from winery_finance.store.finance import FinanceDataStore

logger = logging.getLogger(__name__)


@dataclass
class LoanPaymentResult:
    """Outcome of one loan's seasonal payment."""

    loan_id: str
    outcome: PaymentOutcome
    amount_paid: Decimal
    missed_payments: int
    remaining_balance: Decimal


def is_payment_due(payment_date: GameDate, current_date: GameDate) -> bool:
    """A payment is due anywhere in the season it was scheduled for."""
    return payment_date.same_season(current_date)


class PaymentProcessor:
    """Collect seasonal payments for every active loan that is due.

    Loans are processed one at a time against the live store. A failure on
    one loan is logged and does not stop the others.
    """

    def __init__(
        self,
        store: FinanceDataStore,
        config: EngineConfig | None = None,
        ladder: EscalationLadder | None = None,
    ) -> None:
        self.store = store
        self.config = config or EngineConfig()
        self.ladder = ladder or EscalationLadder(store, self.config)

    def process_seasonal_loan_payments(self) -> list[LoanPaymentResult]:
        """Process every due loan, then signal a UI refresh.

        Returns
        -------
        list[LoanPaymentResult]
            One result per loan that was due and processed without error.
        """
        results: list[LoanPaymentResult] = []
        today = self.store.company.current_date

        try:
            due = [
                loan.loan_id
                for loan in self.store.get_active_loans()
                if is_payment_due(loan.next_payment_due, today)
            ]
            logger.info("Processing %d due loan payments for %s", len(due), today)

            for loan_id in due:
                try:
                    results.append(self.process_loan_payment(loan_id))
                except Exception:
                    logger.exception("Payment processing failed for loan %s", loan_id, extra={"loan_id": loan_id})

            self.store.trigger_update()
        except Exception:
            logger.exception("Seasonal loan payment run failed")

        return results

    def process_loan_payment(self, loan_id: str) -> LoanPaymentResult:
        """Collect one loan's payment and escalate on a shortfall."""
        loan = self.store.get_loan(loan_id)
        if loan.remaining_balance <= 0:
            return self._mark_paid_off(loan, ZERO)

        # The final installment can be smaller than the scheduled payment
        due = min(loan.seasonal_payment, loan.remaining_balance)
        available = self.store.company.money
        if available >= due:
            return self._full_payment(loan, due)
        if available > 0:
            return self._partial_payment(loan, available, due)
        return self._missed_payment(loan)

    def _full_payment(self, loan: Loan, payment: Decimal) -> LoanPaymentResult:
        self.store.add_transaction(
            -payment,
            f"Loan payment to {loan.lender_name}",
            TransactionCategory.LOAN_PAYMENT,
            loan_id=loan.loan_id,
        )

        new_balance = loan.remaining_balance - payment
        seasons_remaining = loan.seasons_remaining - 1
        missed = max(0, loan.missed_payments - 1)

        if new_balance <= 0 or seasons_remaining <= 0:
            return self._mark_paid_off(loan, payment)

        had_warnings = loan.missed_payments > 0
        loan = self.store.update_loan(
            loan.loan_id,
            remaining_balance=new_balance,
            seasons_remaining=seasons_remaining,
            missed_payments=missed,
            next_payment_due=self.store.company.current_date.next_season_start(),
        )

        if had_warnings and missed == 0:
            self.store.clear_loan_warning(loan.loan_id)
            self.store.add_notification(
                f"You've caught up on payments for {loan.lender_name}! Warning status cleared.",
                "loan.warningCleared",
                "Loan Update",
            )

        return self._result(loan, PaymentOutcome.PAID, payment)

    def _partial_payment(self, loan: Loan, available: Decimal, due: Decimal) -> LoanPaymentResult:
        self.store.add_transaction(
            -available,
            f"Partial loan payment to {loan.lender_name} "
            f"({format_money(available)} of {format_money(due)} due)",
            TransactionCategory.LOAN_PAYMENT,
            loan_id=loan.loan_id,
        )

        loan = self.store.update_loan(
            loan.loan_id,
            remaining_balance=loan.remaining_balance - available,
            seasons_remaining=max(0, loan.seasons_remaining - 1),
            missed_payments=loan.missed_payments + 1,
            next_payment_due=self.store.company.current_date.next_season_start(),
        )
        self.ladder.escalate(loan.loan_id)

        self.store.add_notification(
            f"Partial loan payment made to {loan.lender_name}. "
            f"{format_money(due - available)} still owed. "
            f"Warning level: {loan.missed_payments}",
            "loan.partialPayment",
            "Partial Loan Payment",
        )
        return self._result(self.store.get_loan(loan.loan_id), PaymentOutcome.PARTIAL, available)

    def _missed_payment(self, loan: Loan) -> LoanPaymentResult:
        loan = self.store.update_loan(
            loan.loan_id,
            missed_payments=loan.missed_payments + 1,
            next_payment_due=self.store.company.current_date.next_season_start(),
        )
        logger.info(
            "Loan %s missed its payment (%d missed)",
            loan.loan_id,
            loan.missed_payments,
            extra={"loan_id": loan.loan_id, "lender_id": loan.lender_id},
        )
        self.ladder.escalate(loan.loan_id)
        return self._result(self.store.get_loan(loan.loan_id), PaymentOutcome.MISSED, ZERO)

    def _mark_paid_off(self, loan: Loan, payment: Decimal) -> LoanPaymentResult:
        loan = self.store.update_loan(
            loan.loan_id,
            remaining_balance=ZERO,
            seasons_remaining=0,
            missed_payments=0,
            status=LoanStatus.PAID_OFF,
            is_forced=False,
        )
        self.store.clear_loan_warning(loan.loan_id)
        self.store.add_notification(
            f"Loan from {loan.lender_name} has been paid off! Credit rating improved.",
            "loan.paidOff",
            "Loan Update",
        )
        logger.info("Loan %s paid off", loan.loan_id, extra={"loan_id": loan.loan_id})
        return self._result(loan, PaymentOutcome.PAID_OFF, payment)

    @staticmethod
    def _result(loan: Loan, outcome: PaymentOutcome, amount: Decimal) -> LoanPaymentResult:
        return LoanPaymentResult(
            loan_id=loan.loan_id,
            outcome=outcome,
            amount_paid=amount,
            missed_payments=loan.missed_payments,
            remaining_balance=loan.remaining_balance,
        )
