"""Year-end consolidation of forced loans.

The builder simulates a liquidation and a consolidated loan and stores the
result as an offer without touching loans, assets or cash. The executor
commits an accepted offer against the live data.
"""

from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass, field
from decimal import Decimal

from winery_finance.config import EngineConfig
from winery_finance.engine.liquidation import LiquidationPlan, apply_liquidation_plan, plan_liquidation
from winery_finance.engine.money import ZERO, format_money, format_percent, round_money, round_whole
from winery_finance.engine.origination import LoanService
from winery_finance.engine.terms import (
    calculate_effective_interest_rate,
    calculate_origination_fee,
    calculate_seasonal_payment,
)
from winery_finance.exceptions import NoLenderAvailableError, RestructureOfferError
from winery_finance.models.finance import (
    ForcedLoanRestructureOffer,
    Lender,
    LenderType,
    Loan,
    LoanCategory,
    LoanStatus,
    NotificationCategory,
    PendingLoanWarning,
    ProposedLoanTerms,
    TransactionCategory,
    WarningSeverity,
    WarningType,
)
from winery_finance.store.finance import FinanceDataStore

logger = logging.getLogger(__name__)

CONSOLIDATION_LENDER_TYPES = (LenderType.BANK, LenderType.INVESTMENT_FUND)


def make_offer_id(year: int, loan_ids: list[str]) -> str:
    """Stable offer id for a year and a set of forced loans."""
    digest = hashlib.sha1(",".join(sorted(loan_ids)).encode("utf-8")).hexdigest()
    return f"restructure-{year}-{digest[:12]}"


@dataclass
class RestructureResult:
    """Outcome of an accepted restructure."""

    success: bool
    offer_id: str
    message: str
    proceeds: Decimal = ZERO
    paid_off_loan_ids: list[str] = field(default_factory=list)
    consolidated_loan: Loan | None = None
    plan: LiquidationPlan | None = None


class RestructureOfferBuilder:
    """Prepare a forced-loan restructure offer at the start of a year."""

    def __init__(self, store: FinanceDataStore, config: EngineConfig | None = None) -> None:
        self.store = store
        self.config = config or EngineConfig()

    def restructure_forced_loans_if_needed(self) -> ForcedLoanRestructureOffer | None:
        """Build and queue an offer when forced loans are outstanding.

        Returns
        -------
        ForcedLoanRestructureOffer | None
            The pending offer, or None when there are no forced loans or the
            offer could not be built.
        """
        try:
            return self.build_offer()
        except NoLenderAvailableError as exc:
            logger.error("Cannot build restructure offer: %s", exc)
            return None
        except Exception:
            logger.exception("Restructure offer build failed")
            return None

    def build_offer(self) -> ForcedLoanRestructureOffer | None:
        """Simulate the restructure and store the offer.

        Raises
        ------
        NoLenderAvailableError
            If a consolidated loan is needed but no lender can carry it.
        """
        forced = self.store.get_forced_loans()
        if not forced:
            if self.store.pending_restructure_offer is not None:
                logger.info("No forced loans left; clearing pending restructure offer")
                self.store.clear_restructure_offer()
            return None

        today = self.store.company.current_date
        loan_ids = [loan.loan_id for loan in forced]
        offer_id = make_offer_id(today.year, loan_ids)

        pending = self.store.pending_restructure_offer
        if pending is not None and pending.offer_id == offer_id and not pending.is_expired(today):
            logger.debug("Restructure offer %s already pending", offer_id)
            return pending

        settings = self.config.restructure
        total = sum((loan.remaining_balance for loan in forced), ZERO)
        debt_allowance = total * settings.max_seizure_percent_of_debt
        portfolio_allowance = self.store.total_vineyard_value() * settings.max_seizure_percent_of_portfolio
        cap = min(debt_allowance, portfolio_allowance)

        plan = plan_liquidation(
            self.store.get_bottled_batches(),
            list(self.store.vineyards.values()),
            cap,
            total,
            settings.cellar_step_percent_of_debt,
            settings.sale_penalty_rate,
            settings.epsilon,
        )
        consolidated = max(ZERO, round_money(total - plan.total_proceeds))
        terms = self.propose_terms(consolidated) if consolidated > 0 else None

        offer = ForcedLoanRestructureOffer(
            offer_id=offer_id,
            created_date=today,
            expires_date=today.next_year_start(),
            loan_ids=loan_ids,
            total_forced_balance=total,
            debt_allowance=debt_allowance,
            portfolio_allowance=portfolio_allowance,
            max_seizure_value=cap,
            steps=plan.steps,
            total_recovered_value=plan.total_recovered_value,
            total_proceeds=plan.total_proceeds,
            cellar_lots_at_risk=[f"{lot.label} ({lot.bottles} bottles)" for lot in plan.cellar_lots],
            vineyards_at_risk=plan.vineyard_names,
            consolidated_principal_estimate=consolidated,
            proposed_terms=terms,
            prestige_penalty=settings.prestige_penalty,
        )
        offer.summary_lines = self._summary_lines(offer)

        self.store.save_restructure_offer(offer)
        self.store.set_loan_warning(
            PendingLoanWarning(
                loan_id=None,
                lender_name=terms.lender_name if terms else "Forced lenders",
                missed_payments=0,
                severity=WarningSeverity.CRITICAL,
                title="Forced Loan Restructure",
                message=(
                    f"{len(loan_ids)} forced loan(s) totalling {format_money(total)} must be restructured. "
                    "Accept to liquidate assets and consolidate the rest, or decline to keep them as they are."
                ),
                details="\n".join(offer.summary_lines),
                penalties={"prestige_loss": settings.prestige_penalty},
                warning_type=WarningType.FORCED_LOAN_RESTRUCTURE,
                decision={"offer_id": offer_id, "actions": ["accept", "decline"]},
            )
        )
        self.store.add_notification(
            f"Your lenders demand a restructure of {format_money(total)} in forced loans. "
            "Review the offer before the end of the year.",
            "loan.restructureOffer",
            "Forced Loan Restructure",
        )
        self.store.trigger_update()

        logger.info(
            "Built restructure offer %s: %d loans, %s forced debt, %s projected proceeds",
            offer_id,
            len(loan_ids),
            total,
            plan.total_proceeds,
            extra={"offer_id": offer_id},
        )
        return offer

    def propose_terms(self, principal: Decimal) -> ProposedLoanTerms:
        """Quote the consolidated loan.

        The cheapest Bank or Investment Fund that lends ``principal`` is used
        with penalty multipliers. Without one, the lender with the largest
        capacity of any type carries it on override terms.
        """
        settings = self.config.restructure
        lenders = [lender for lender in self.store.lenders.values() if not lender.blacklisted]

        regular = [
            lender
            for lender in lenders
            if lender.lender_type in CONSOLIDATION_LENDER_TYPES and lender.accepts_amount(principal)
        ]
        if regular:
            quotes = []
            for lender in regular:
                duration = min(
                    max(settings.consolidated_duration_seasons, lender.min_duration_seasons),
                    lender.max_duration_seasons,
                )
                quotes.append((self._rate(lender, duration), lender.lender_id, lender, duration))
            rate, _, lender, duration = min(quotes)
            return self._terms(
                lender,
                principal,
                duration,
                rate * settings.interest_penalty_multiplier,
                settings.origination_penalty_multiplier,
                is_emergency_override=False,
            )

        if not lenders:
            raise NoLenderAvailableError(f"No lender can consolidate {format_money(principal)} of forced debt")

        lender = max(lenders, key=lambda lender: (lender.max_loan_amount, lender.lender_id))
        duration = settings.override_duration_seasons
        return self._terms(
            lender,
            principal,
            duration,
            self._rate(lender, duration) * settings.interest_penalty_multiplier * settings.override_interest_multiplier,
            settings.origination_penalty_multiplier * settings.override_origination_multiplier,
            is_emergency_override=True,
        )

    def _rate(self, lender: Lender, duration: int) -> Decimal:
        company = self.store.company
        return calculate_effective_interest_rate(
            lender.base_interest_rate,
            company.economy_phase,
            lender.lender_type,
            company.credit_rating,
            duration,
        )

    def _terms(
        self,
        lender: Lender,
        principal: Decimal,
        duration: int,
        rate: Decimal,
        fee_multiplier: Decimal,
        is_emergency_override: bool,
    ) -> ProposedLoanTerms:
        base_fee = calculate_origination_fee(principal, lender, self.store.company.credit_rating, duration)
        fee = round_whole(base_fee * fee_multiplier)
        return ProposedLoanTerms(
            lender_id=lender.lender_id,
            lender_name=lender.name,
            lender_type=lender.lender_type,
            principal=principal,
            effective_interest_rate=rate,
            duration_seasons=duration,
            origination_fee=fee,
            origination_fee_multiplier=fee_multiplier,
            seasonal_payment=calculate_seasonal_payment(principal + fee, rate, duration),
            is_emergency_override=is_emergency_override,
        )

    @staticmethod
    def _summary_lines(offer: ForcedLoanRestructureOffer) -> list[str]:
        lines = [
            f"Forced loans: {len(offer.loan_ids)} totalling {format_money(offer.total_forced_balance)}",
            f"Seizure cap: {format_money(offer.max_seizure_value)}",
        ]
        for step in offer.steps:
            if step.vineyard_name:
                target = f"vineyard {step.vineyard_name}"
            else:
                target = f"{sum(lot.bottles for lot in step.lots)} bottles from the cellar"
            lines.append(
                f"Step {step.step_number}: {target} "
                f"({format_money(step.recovered_value)} value, {format_money(step.proceeds)} proceeds)"
            )
        if not offer.steps:
            lines.append("No assets would be liquidated")

        lines.append(f"Projected proceeds: {format_money(offer.total_proceeds)}")
        terms = offer.proposed_terms
        if terms is None:
            lines.append("Proceeds cover the forced debt; no consolidated loan needed")
        else:
            override = " (emergency override)" if terms.is_emergency_override else ""
            lines.append(
                f"Consolidated loan{override}: {format_money(terms.principal)} from {terms.lender_name} "
                f"at {format_percent(terms.effective_interest_rate)} per season over "
                f"{terms.duration_seasons} seasons, fee {format_money(terms.origination_fee)}"
            )
        lines.append(f"Prestige penalty: {offer.prestige_penalty:g}")
        return lines


class RestructureExecutor:
    """Accept or decline the pending restructure offer."""

    def __init__(
        self,
        store: FinanceDataStore,
        config: EngineConfig | None = None,
        loan_service: LoanService | None = None,
    ) -> None:
        self.store = store
        self.config = config or EngineConfig()
        self.loan_service = loan_service or LoanService(store, self.config)

    def validate_offer(self, offer_id: str) -> ForcedLoanRestructureOffer:
        """Return the pending offer if ``offer_id`` names it and it is live.

        Raises
        ------
        RestructureOfferError
            If there is no pending offer, the id does not match, or the
            offer has expired.
        """
        offer = self.store.pending_restructure_offer
        if offer is None:
            raise RestructureOfferError("No restructure offer is pending")
        if offer.offer_id != offer_id:
            raise RestructureOfferError(f"Offer {offer_id} is not the pending offer ({offer.offer_id})")
        if offer.is_expired(self.store.company.current_date):
            raise RestructureOfferError(f"Offer {offer_id} expired on {offer.expires_date}")
        return offer

    def accept_forced_loan_restructure(self, offer_id: str) -> RestructureResult:
        """Liquidate assets, settle the forced loans and consolidate the rest.

        Raises
        ------
        RestructureOfferError
            If the offer is not the pending, unexpired offer. Nothing is
            changed in that case.
        """
        offer = self.validate_offer(offer_id)
        try:
            return self._execute(offer)
        except Exception as exc:
            logger.exception("Restructure %s failed", offer_id, extra={"offer_id": offer_id})
            self.store.add_notification(
                "The forced loan restructure failed. Your forced loans remain active.",
                "loan.restructureFailed",
                "Restructure Failed",
            )
            self.store.trigger_update()
            return RestructureResult(success=False, offer_id=offer_id, message=str(exc))

    def decline_forced_loan_restructure(self, offer_id: str) -> None:
        """Drop the offer and leave the forced loans on the normal ladder."""
        self.validate_offer(offer_id)
        self.store.clear_restructure_offer()
        self.store.add_notification(
            "You declined the forced loan restructure. Forced loans remain active and "
            "missed payments will keep escalating.",
            "loan.restructureDeclined",
            "Restructure Declined",
        )
        self.store.trigger_update()
        logger.info("Restructure offer %s declined", offer_id, extra={"offer_id": offer_id})

    def _execute(self, offer: ForcedLoanRestructureOffer) -> RestructureResult:
        settings = self.config.restructure
        loans = [
            loan
            for loan in (self.store.get_loan(loan_id) for loan_id in offer.loan_ids)
            if loan.status != LoanStatus.PAID_OFF and loan.remaining_balance > 0
        ]
        total = sum((loan.remaining_balance for loan in loans), ZERO)

        plan = plan_liquidation(
            self.store.get_bottled_batches(),
            list(self.store.vineyards.values()),
            offer.max_seizure_value,
            total,
            settings.cellar_step_percent_of_debt,
            settings.sale_penalty_rate,
            settings.epsilon,
        )
        # Nothing is sold until the consolidation lender is settled
        remainder = max(ZERO, round_money(total - plan.total_proceeds))
        consolidated = None
        if remainder > 0:
            terms = offer.proposed_terms
            if terms is None:
                raise NoLenderAvailableError(f"Offer {offer.offer_id} has no consolidation lender")
            lender = self.store.get_lender(terms.lender_id)
            consolidated = self.loan_service.originate_loan(
                lender,
                remainder,
                terms.duration_seasons,
                effective_interest_rate=terms.effective_interest_rate,
                origination_fee_multiplier=terms.origination_fee_multiplier,
                category=LoanCategory.RESTRUCTURED,
                disburse=False,
            )

        proceeds = apply_liquidation_plan(self.store, plan, "forced restructure")
        applied = min(proceeds, total)
        if applied > 0:
            self.store.add_transaction(
                -applied,
                f"Forced restructure payment on {len(loans)} loan(s)",
                TransactionCategory.LOAN_PAYMENT,
            )

        for loan in loans:
            self.store.update_loan(
                loan.loan_id,
                remaining_balance=ZERO,
                seasons_remaining=0,
                missed_payments=0,
                status=LoanStatus.PAID_OFF,
                is_forced=False,
            )
            self.store.clear_loan_warning(loan.loan_id)

        self.store.add_prestige_event(
            settings.prestige_penalty,
            settings.prestige_decay_rate,
            {
                "reason": "Forced Loan Restructure",
                "offer_id": offer.offer_id,
                "forced_balance": total,
                "proceeds": proceeds,
            },
            source_id=offer.offer_id,
        )

        work = self.config.administration.loan_restructure
        self.store.queue_penalty_work(work)
        self.store.add_notification(
            f"Additional {work} work units will be added to next bookkeeping task (forced loan restructure).",
            "loan.administrationPenalty",
            "Administration Penalty",
            NotificationCategory.ADMINISTRATION,
        )

        self.store.clear_restructure_offer()

        message = (
            f"Restructure complete: {len(loans)} forced loan(s) settled, "
            f"{format_money(proceeds)} raised from {len(plan.steps)} liquidation step(s)"
        )
        if consolidated is not None:
            message += (
                f", {format_money(consolidated.remaining_balance)} consolidated with "
                f"{consolidated.lender_name} over {consolidated.total_seasons} seasons"
            )
        self.store.add_notification(message + ".", "loan.restructureCompleted", "Restructure Complete")
        self.store.trigger_update()

        logger.info(
            "Restructure %s executed: proceeds %s, remainder %s",
            offer.offer_id,
            proceeds,
            remainder,
            extra={"offer_id": offer.offer_id},
        )
        return RestructureResult(
            success=True,
            offer_id=offer.offer_id,
            message=message,
            proceeds=proceeds,
            paid_off_loan_ids=[loan.loan_id for loan in loans],
            consolidated_loan=consolidated,
            plan=plan,
        )
