"""Loan origination, extra payments and early payoff."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from decimal import Decimal

from winery_finance.config import EngineConfig
from winery_finance.engine.money import ZERO, format_money, round_money, round_whole
from winery_finance.engine.terms import (
    calculate_effective_interest_rate,
    calculate_lender_availability,
    calculate_origination_fee,
    calculate_remaining_interest,
    calculate_seasonal_payment,
)
from winery_finance.exceptions import InvalidEntityStateError, LenderUnavailableError
from winery_finance.models.finance import (
    Lender,
    Loan,
    LoanCategory,
    LoanStatus,
    NotificationCategory,
    TransactionCategory,
)
from winery_finance.store.finance import FinanceDataStore

logger = logging.getLogger(__name__)

ONE = Decimal("1")


@dataclass
class LoanActionResult:
    """Outcome of a player payment action on a loan."""

    success: bool
    loan_id: str
    message: str
    amount_paid: Decimal = ZERO
    fee: Decimal = ZERO
    remaining_balance: Decimal = ZERO


def calculate_borrowing_limit(store: FinanceDataStore, config: EngineConfig) -> Decimal:
    """Total debt the company may carry from voluntary loans.

    Asset value (vineyards, cellar and positive cash) scaled by the credit
    rating, never below the configured minimum.
    """
    borrowing = config.borrowing
    assets = store.total_vineyard_value() + store.total_cellar_value() + max(store.company.money, ZERO)
    credit_factor = Decimal("0.5") + Decimal(str(store.company.credit_rating))
    return max(borrowing.min_limit, round_money(assets * borrowing.asset_multiplier * credit_factor))


class LoanService:
    """Create loans and handle voluntary repayments."""

    def __init__(self, store: FinanceDataStore, config: EngineConfig | None = None) -> None:
        self.store = store
        self.config = config or EngineConfig()

    def originate_loan(
        self,
        lender: Lender,
        principal: Decimal,
        duration_seasons: int,
        *,
        interest_multiplier: Decimal = ONE,
        origination_fee_multiplier: Decimal = ONE,
        effective_interest_rate: Decimal | None = None,
        is_forced: bool = False,
        category: LoanCategory = LoanCategory.STANDARD,
        disburse: bool = True,
    ) -> Loan:
        """Create a loan and store it.

        Parameters
        ----------
        lender : Lender
            Lender carrying the loan. No eligibility checks are made here.
        principal : Decimal
            Amount borrowed.
        duration_seasons : int
            Term in seasons.
        interest_multiplier : Decimal
            Applied on top of the computed effective rate.
        origination_fee_multiplier : Decimal
            Applied to the computed origination fee.
        effective_interest_rate : Decimal | None
            Use this rate instead of computing one.
        is_forced : bool
            Mark the loan for year-end consolidation.
        category : LoanCategory
            Origin of the loan.
        disburse : bool
            When True the principal is deposited and the fee charged in
            cash. When False no cash moves and the fee is added to the
            balance.

        Returns
        -------
        Loan
            The stored loan.
        """
        company = self.store.company
        if effective_interest_rate is None:
            effective_interest_rate = calculate_effective_interest_rate(
                lender.base_interest_rate,
                company.economy_phase,
                lender.lender_type,
                company.credit_rating,
                duration_seasons,
            )
        rate = effective_interest_rate * interest_multiplier

        fee = calculate_origination_fee(principal, lender, company.credit_rating, duration_seasons)
        fee = round_whole(fee * origination_fee_multiplier)

        balance = principal if disburse else principal + fee
        loan = Loan(
            loan_id=uuid.uuid4().hex,
            lender_id=lender.lender_id,
            lender_name=lender.name,
            lender_type=lender.lender_type,
            principal_amount=principal,
            base_interest_rate=lender.base_interest_rate,
            effective_interest_rate=rate,
            origination_fee=fee,
            remaining_balance=balance,
            seasonal_payment=calculate_seasonal_payment(balance, rate, duration_seasons),
            seasons_remaining=duration_seasons,
            total_seasons=duration_seasons,
            start_date=company.current_date,
            next_payment_due=company.current_date.next_season_start(),
            economy_phase_at_creation=company.economy_phase,
            is_forced=is_forced,
            category=category,
        )
        self.store.add_loan(loan)

        if disburse:
            self.store.add_transaction(
                principal,
                f"Loan received from {lender.name}",
                TransactionCategory.LOAN_RECEIVED,
                loan_id=loan.loan_id,
            )
            self.store.add_transaction(
                -fee,
                f"Origination fee for loan from {lender.name}",
                TransactionCategory.LOAN_ORIGINATION_FEE,
                loan_id=loan.loan_id,
            )

        logger.info(
            "Originated %s loan %s: %s from %s over %d seasons at %s",
            category.value,
            loan.loan_id,
            principal,
            lender.name,
            duration_seasons,
            rate,
        )
        return loan

    def apply_for_loan(self, lender_id: str, amount: Decimal, duration_seasons: int) -> Loan:
        """Take a voluntary loan.

        Raises
        ------
        EntityNotFoundError
            If the lender does not exist.
        LenderUnavailableError
            If the lender is blacklisted, the amount or duration is outside
            its range, the company's credit is too weak, or the loan would
            exceed the borrowing limit.
        """
        lender = self.store.get_lender(lender_id)
        company = self.store.company

        if lender.blacklisted:
            raise LenderUnavailableError(f"{lender.name} has blacklisted the company")
        if not lender.accepts_amount(amount):
            raise LenderUnavailableError(
                f"{lender.name} lends between {lender.min_loan_amount} and {lender.max_loan_amount}, got {amount}"
            )
        if not lender.accepts_duration(duration_seasons):
            raise LenderUnavailableError(
                f"{lender.name} lends for {lender.min_duration_seasons}-{lender.max_duration_seasons} "
                f"seasons, got {duration_seasons}"
            )

        availability = calculate_lender_availability(lender, company.credit_rating, company.prestige)
        if not availability.is_available:
            raise LenderUnavailableError(
                f"{lender.name} requires a credit rating of {availability.adjusted_requirement:.2f}, "
                f"company has {company.credit_rating:.2f}"
            )

        limit = calculate_borrowing_limit(self.store, self.config)
        outstanding = self.store.total_outstanding_balance()
        if outstanding + amount > limit:
            raise LenderUnavailableError(
                f"Loan of {format_money(amount)} would exceed the borrowing limit of {format_money(limit)} "
                f"({format_money(outstanding)} outstanding)"
            )

        loan = self.originate_loan(lender, amount, duration_seasons)
        self._queue_admin_work(self.config.administration.loan_taken, f"new loan from {lender.name}")
        self.store.trigger_update()
        return loan

    def make_extra_payment(self, loan_id: str, amount: Decimal) -> LoanActionResult:
        """Pay down principal ahead of schedule.

        An administration fee is charged on top of the payment. The seasonal
        payment is recalculated over the remaining seasons.

        Raises
        ------
        InvalidEntityStateError
            If the loan is not active or the amount is not positive.
        """
        loan = self.store.get_loan(loan_id)
        if not loan.is_active:
            raise InvalidEntityStateError(f"Loan {loan_id} is {loan.status.value}")
        if amount <= 0:
            raise InvalidEntityStateError(f"Extra payment must be positive, got {amount}")

        fees = self.config.payment_fees
        amount = min(amount, loan.remaining_balance)
        fee = round_whole(
            max(fees.extra_payment_min_admin_fee, loan.seasonal_payment * fees.extra_payment_admin_fee_rate)
        )

        if self.store.company.money < amount + fee:
            return LoanActionResult(
                success=False,
                loan_id=loan_id,
                message=f"Insufficient funds: {format_money(amount + fee)} required including fees",
                fee=fee,
                remaining_balance=loan.remaining_balance,
            )

        self.store.add_transaction(
            -amount,
            f"Extra loan payment to {loan.lender_name}",
            TransactionCategory.LOAN_PAYMENT,
            loan_id=loan_id,
        )
        self.store.add_transaction(
            -fee,
            f"Extra payment administration fee for {loan.lender_name}",
            TransactionCategory.LOAN_EXTRA_PAYMENT_FEE,
            loan_id=loan_id,
        )

        new_balance = loan.remaining_balance - amount
        if new_balance <= 0:
            self._close_loan(loan)
        else:
            self.store.update_loan(
                loan_id,
                remaining_balance=new_balance,
                seasonal_payment=calculate_seasonal_payment(
                    new_balance, loan.effective_interest_rate, max(1, loan.seasons_remaining)
                ),
            )

        self._queue_admin_work(self.config.administration.loan_extra_payment, f"extra payment to {loan.lender_name}")
        self.store.trigger_update()

        loan = self.store.get_loan(loan_id)
        return LoanActionResult(
            success=True,
            loan_id=loan_id,
            message=f"Paid {format_money(amount)} towards {loan.lender_name} (fee {format_money(fee)})",
            amount_paid=amount,
            fee=fee,
            remaining_balance=loan.remaining_balance,
        )

    def repay_loan_in_full(self, loan_id: str) -> LoanActionResult:
        """Pay off the remaining balance plus a prepayment penalty.

        Raises
        ------
        InvalidEntityStateError
            If the loan is not active.
        """
        loan = self.store.get_loan(loan_id)
        if not loan.is_active:
            raise InvalidEntityStateError(f"Loan {loan_id} is {loan.status.value}")

        fees = self.config.payment_fees
        penalty = round_whole(
            max(
                fees.prepayment_min_penalty,
                calculate_remaining_interest(loan) * fees.prepayment_remaining_interest_factor,
            )
        )
        balance = loan.remaining_balance

        if self.store.company.money < balance + penalty:
            return LoanActionResult(
                success=False,
                loan_id=loan_id,
                message=f"Insufficient funds: {format_money(balance + penalty)} required to repay in full",
                fee=penalty,
                remaining_balance=balance,
            )

        self.store.add_transaction(
            -balance,
            f"Early loan payoff to {loan.lender_name}",
            TransactionCategory.LOAN_PAYMENT,
            loan_id=loan_id,
        )
        self.store.add_transaction(
            -penalty,
            f"Prepayment penalty for {loan.lender_name}",
            TransactionCategory.LOAN_PREPAYMENT_FEE,
            loan_id=loan_id,
        )
        self._close_loan(loan)
        self.store.add_notification(
            f"Loan from {loan.lender_name} paid off early! Credit rating improved.",
            "loan.earlyPayoff",
            "Loan Update",
        )

        self._queue_admin_work(self.config.administration.loan_full_repayment, f"early payoff to {loan.lender_name}")
        self.store.trigger_update()

        return LoanActionResult(
            success=True,
            loan_id=loan_id,
            message=f"Repaid {format_money(balance)} to {loan.lender_name} (penalty {format_money(penalty)})",
            amount_paid=balance,
            fee=penalty,
            remaining_balance=ZERO,
        )

    def _close_loan(self, loan: Loan) -> None:
        self.store.update_loan(
            loan.loan_id,
            remaining_balance=ZERO,
            seasons_remaining=0,
            missed_payments=0,
            status=LoanStatus.PAID_OFF,
            is_forced=False,
        )
        self.store.clear_loan_warning(loan.loan_id)

    def _queue_admin_work(self, work_units: int, reason: str) -> None:
        self.store.queue_penalty_work(work_units)
        self.store.add_notification(
            f"Additional {work_units} work units will be added to next bookkeeping task ({reason}).",
            "loan.administrationPenalty",
            "Administration Penalty",
            NotificationCategory.ADMINISTRATION,
        )
