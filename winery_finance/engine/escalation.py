"""Graduated penalties for missed loan payments."""

from __future__ import annotations

import logging
from decimal import Decimal

from winery_finance.config import EngineConfig
from winery_finance.engine.liquidation import apply_liquidation_plan, plan_loan_seizure
from winery_finance.engine.money import ZERO, format_money, format_percent, round_whole
from winery_finance.exceptions import InvalidEntityStateError
from winery_finance.models.finance import (
    Loan,
    LoanStatus,
    NotificationCategory,
    PendingLoanWarning,
    TransactionCategory,
    WarningSeverity,
    WarningType,
)
from winery_finance.store.finance import FinanceDataStore

logger = logging.getLogger(__name__)

DEFAULT_THRESHOLD = 4


class EscalationLadder:
    """Apply the penalty tier matching a loan's missed-payment count.

    Tier 1 adds a late fee, tier 2 raises the rate and charges a balance
    surcharge, tier 3 seizes assets and sweeps cash into the loan, and from
    the fourth miss the loan defaults. Each tier replaces the loan's pending
    warning.
    """

    def __init__(self, store: FinanceDataStore, config: EngineConfig | None = None) -> None:
        self.store = store
        self.config = config or EngineConfig()

    def escalate(self, loan_id: str) -> PendingLoanWarning:
        """Apply penalties for the loan's current missed-payment count.

        Parameters
        ----------
        loan_id : str
            Loan that just missed (or partially paid) a payment.

        Returns
        -------
        PendingLoanWarning
            The warning queued for the player.

        Raises
        ------
        InvalidEntityStateError
            If the loan has no missed payments.
        """
        loan = self.store.get_loan(loan_id)
        missed = loan.missed_payments

        if missed <= 0:
            raise InvalidEntityStateError(f"Loan {loan_id} has no missed payments to escalate")
        if missed == 1:
            return self.apply_warning_one(loan)
        if missed == 2:
            return self.apply_warning_two(loan)
        if missed == 3:
            return self.apply_warning_three(loan)
        return self.apply_default(loan)

    def apply_warning_one(self, loan: Loan) -> PendingLoanWarning:
        """Late fee on the balance."""
        penalties = self.config.warning_one
        late_fee = round_whole(loan.seasonal_payment * penalties.late_fee_percent)
        loan = self.store.update_loan(loan.loan_id, remaining_balance=loan.remaining_balance + late_fee)

        self._queue_penalty_work(penalties.bookkeeping_work, loan.lender_name, 1)

        warning = PendingLoanWarning(
            loan_id=loan.loan_id,
            lender_name=loan.lender_name,
            missed_payments=1,
            severity=WarningSeverity.WARNING,
            title="Missed Loan Payment - Warning #1",
            message=(
                f"You failed to make your scheduled payment of "
                f"{format_money(loan.seasonal_payment)} to {loan.lender_name}."
            ),
            details="\n".join(
                [
                    "Penalties applied:",
                    f"- Late fee of {format_money(late_fee)} added to loan balance",
                    f"- Credit rating decreased by {format_percent(abs(penalties.credit_rating_loss), 0)}",
                    f"- Additional {penalties.bookkeeping_work} work units added to next bookkeeping task",
                    "",
                    f"New loan balance: {format_money(loan.remaining_balance)}",
                ]
            ),
            penalties={
                "late_fee": late_fee,
                "credit_rating_loss": penalties.credit_rating_loss,
                "bookkeeping_work": penalties.bookkeeping_work,
            },
        )
        self.store.set_loan_warning(warning)

        self.store.add_notification(
            f"Missed payment to {loan.lender_name}! Late fee of {format_money(late_fee)} applied. "
            "WARNING #1 - check loan details.",
            "loan.missedPayment1",
            "Loan Warning",
        )
        logger.info("Loan %s warning 1: late fee %s", loan.loan_id, late_fee, extra={"loan_id": loan.loan_id})
        return warning

    def apply_warning_two(self, loan: Loan) -> PendingLoanWarning:
        """Rate increase, balance surcharge and a prestige hit."""
        penalties = self.config.warning_two
        old_rate = loan.effective_interest_rate
        new_rate = old_rate + penalties.interest_rate_increase
        surcharge = round_whole(loan.remaining_balance * penalties.balance_penalty_percent)

        loan = self.store.update_loan(
            loan.loan_id,
            effective_interest_rate=new_rate,
            remaining_balance=loan.remaining_balance + surcharge,
        )

        self.store.add_prestige_event(
            penalties.prestige_penalty,
            penalties.prestige_decay_rate,
            self._prestige_payload(loan, "Loan Payment Missed (Warning #2)"),
            source_id=loan.loan_id,
        )
        self._queue_penalty_work(penalties.bookkeeping_work, loan.lender_name, 2)

        warning = PendingLoanWarning(
            loan_id=loan.loan_id,
            lender_name=loan.lender_name,
            missed_payments=2,
            severity=WarningSeverity.ERROR,
            title="Missed Loan Payment - Warning #2",
            message=(
                f"You have now missed 2 consecutive payments to {loan.lender_name}. "
                "Severe penalties are being applied."
            ),
            details="\n".join(
                [
                    "Penalties applied:",
                    f"- Interest rate increased from {format_percent(old_rate)} to {format_percent(new_rate)}",
                    f"- Balance penalty of {format_money(surcharge)} added",
                    f"- Credit rating decreased by {format_percent(abs(penalties.credit_rating_loss), 0)}",
                    f"- Company prestige reduced by {abs(penalties.prestige_penalty):g}",
                    f"- Additional {penalties.bookkeeping_work} work units added to next bookkeeping task",
                    "",
                    f"New loan balance: {format_money(loan.remaining_balance)}",
                ]
            ),
            penalties={
                "interest_rate_increase": penalties.interest_rate_increase,
                "balance_penalty": surcharge,
                "credit_rating_loss": penalties.credit_rating_loss,
                "prestige_loss": penalties.prestige_penalty,
                "bookkeeping_work": penalties.bookkeeping_work,
            },
        )
        self.store.set_loan_warning(warning)

        self.store.add_notification(
            f"Second missed payment to {loan.lender_name}! Interest rate increased, "
            f"{format_money(surcharge)} penalty applied. WARNING #2 - CRITICAL!",
            "loan.missedPayment2",
            "Loan Warning",
        )
        logger.info(
            "Loan %s warning 2: rate %s -> %s, surcharge %s",
            loan.loan_id,
            old_rate,
            new_rate,
            surcharge,
            extra={"loan_id": loan.loan_id},
        )
        return warning

    def apply_warning_three(self, loan: Loan) -> PendingLoanWarning:
        """Seize cellar wine and vineyards, then sweep all cash into the loan."""
        penalties = self.config.warning_three

        plan = plan_loan_seizure(
            self.store.get_bottled_batches(),
            list(self.store.vineyards.values()),
            loan.remaining_balance,
            penalties.cellar_liquidation_percent_of_balance,
            penalties.max_vineyard_seizure_percent,
            penalties.sale_penalty_rate,
        )
        proceeds = apply_liquidation_plan(self.store, plan, loan.lender_name)

        swept = self._sweep_cash(loan.loan_id)
        loan = self.store.get_loan(loan.loan_id)

        self._queue_penalty_work(penalties.bookkeeping_work, loan.lender_name, 3)

        vineyard_names = plan.vineyard_names
        bottles_sold = sum(lot.bottles for lot in plan.cellar_lots)
        lines = ["Penalties applied:"]
        if bottles_sold:
            lines.append(f"- {bottles_sold} bottles sold from the cellar")
        if vineyard_names:
            lines.append(f"- {len(vineyard_names)} vineyard(s) forcibly sold")
        else:
            lines.append("- Attempted to seize vineyards but none available")
        lines += [
            f"- Asset value seized: {format_money(plan.total_recovered_value)}",
            f"- Sale proceeds after penalty: {format_money(proceeds)}",
            f"- Credit rating decreased by {format_percent(abs(penalties.credit_rating_loss), 0)}",
            f"- Additional {penalties.bookkeeping_work} work units added to next bookkeeping task",
        ]
        lines += [f"  * {name}" for name in vineyard_names]
        lines += ["", f"Remaining loan balance: {format_money(loan.remaining_balance)}"]

        warning = PendingLoanWarning(
            loan_id=loan.loan_id,
            lender_name=loan.lender_name,
            missed_payments=3,
            severity=WarningSeverity.CRITICAL,
            title="Missed Loan Payment - Warning #3: ASSET SEIZURE",
            message=(
                f"You have missed 3 consecutive payments to {loan.lender_name}. "
                "Emergency measures are being taken."
            ),
            details="\n".join(lines),
            penalties={
                "bottles_sold": bottles_sold,
                "vineyards_seized": len(vineyard_names),
                "vineyard_names": vineyard_names,
                "value_recovered": plan.total_recovered_value,
                "sale_proceeds": proceeds,
                "cash_applied": swept,
                "credit_rating_loss": penalties.credit_rating_loss,
                "bookkeeping_work": penalties.bookkeeping_work,
            },
        )
        self.store.set_loan_warning(warning)

        self.store.add_notification(
            f"THIRD missed payment to {loan.lender_name}! {len(vineyard_names)} vineyard(s) forcibly sold "
            f"for {format_money(plan.total_recovered_value)}. WARNING #3 - FINAL WARNING!",
            "loan.missedPayment3",
            "Loan Warning",
        )
        logger.warning(
            "Loan %s warning 3: seized %s of assets, %s applied to balance",
            loan.loan_id,
            plan.total_recovered_value,
            swept,
            extra={"loan_id": loan.loan_id},
        )
        return warning

    def apply_default(self, loan: Loan) -> PendingLoanWarning:
        """Tier 3 effects, then default the loan and blacklist the lender."""
        self.apply_warning_three(loan)
        loan = self.store.get_loan(loan.loan_id)
        penalties = self.config.default

        loan = self.store.update_loan(loan.loan_id, status=LoanStatus.DEFAULTED)
        self.store.add_prestige_event(
            penalties.prestige_penalty,
            penalties.prestige_decay_rate,
            self._prestige_payload(loan, "Loan Default"),
            source_id=loan.loan_id,
        )
        self.store.set_lender_blacklist(loan.lender_id, True)

        warning = PendingLoanWarning(
            loan_id=loan.loan_id,
            lender_name=loan.lender_name,
            missed_payments=loan.missed_payments,
            severity=WarningSeverity.CRITICAL,
            title="Loan Default",
            message=f"You have defaulted on your loan from {loan.lender_name}.",
            details="\n".join(
                [
                    f"- {loan.lender_name} has blacklisted your company",
                    f"- Company prestige reduced by {abs(penalties.prestige_penalty):g}",
                    f"- Outstanding balance: {format_money(loan.remaining_balance)}",
                ]
            ),
            penalties={
                "prestige_loss": penalties.prestige_penalty,
                "blacklisted": True,
            },
            warning_type=WarningType.DEFAULT,
        )
        self.store.set_loan_warning(warning)

        self.store.add_notification(
            f"Loan payment missed! You have been blacklisted by {loan.lender_name}. "
            "Prestige and credit rating severely impacted.",
            "loan.default",
            "Loan Default",
        )
        logger.warning(
            "Loan %s defaulted; lender %s blacklisted",
            loan.loan_id,
            loan.lender_id,
            extra={"loan_id": loan.loan_id, "lender_id": loan.lender_id},
        )
        return warning

    def _sweep_cash(self, loan_id: str) -> Decimal:
        """Pay as much of the balance as current cash allows."""
        loan = self.store.get_loan(loan_id)
        available = self.store.company.money
        if available <= 0 or loan.remaining_balance <= 0:
            return ZERO

        amount = min(available, loan.remaining_balance)
        self.store.add_transaction(
            -amount,
            f"Emergency loan payment to {loan.lender_name} using all available funds",
            TransactionCategory.LOAN_PAYMENT,
            loan_id=loan_id,
        )
        self.store.update_loan(loan_id, remaining_balance=loan.remaining_balance - amount)
        self.store.add_notification(
            f"Emergency payment of {format_money(amount)} made to {loan.lender_name} using all available funds.",
            "loan.emergencyPayment",
            "Emergency Loan Payment",
        )
        return amount

    def _queue_penalty_work(self, work_units: int, lender_name: str, level: int) -> None:
        self.store.queue_penalty_work(work_units)
        self.store.add_notification(
            f"Additional {work_units} work units will be added to next bookkeeping task "
            f"due to missed payment ({lender_name}, Warning #{level}).",
            "loan.bookkeepingPenalty",
            "Bookkeeping Penalty",
            NotificationCategory.ADMINISTRATION,
        )

    @staticmethod
    def _prestige_payload(loan: Loan, reason: str) -> dict:
        return {
            "reason": reason,
            "lender_name": loan.lender_name,
            "lender_type": loan.lender_type.value,
            "loan_amount": loan.principal_amount,
            "missed_payment_amount": loan.seasonal_payment,
        }
