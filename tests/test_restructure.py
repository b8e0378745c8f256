"""Tests for forced-loan restructure offers and their execution."""

from decimal import Decimal
from unittest.mock import patch

import pytest

from winery_finance.config import EngineConfig, RestructureConfig
from winery_finance.engine import LoanDistressEngine, make_offer_id
from winery_finance.exceptions import NoLenderAvailableError, RestructureOfferError
from winery_finance.models.base import GameDate, Season
from winery_finance.models.finance import (
    LenderType,
    Loan,
    LoanCategory,
    LoanStatus,
    TransactionCategory,
    WarningSeverity,
    WarningType,
)
from winery_finance.store.finance import FinanceDataStore


def codes(store: FinanceDataStore) -> list[str]:
    return [n.code for n in store.notifications]


class TestOfferId:
    """Tests for offer ids."""

    def test_stable_for_same_loans(self) -> None:
        """Test ordering of loan ids does not matter."""
        assert make_offer_id(2025, ["b", "a"]) == make_offer_id(2025, ["a", "b"])

    def test_changes_with_year_and_loans(self) -> None:
        """Test different inputs give different ids."""
        base = make_offer_id(2025, ["a"])

        assert base.startswith("restructure-2025-")
        assert make_offer_id(2026, ["a"]) != base
        assert make_offer_id(2025, ["a", "b"]) != base


class TestBuildOffer:
    """Tests for RestructureOfferBuilder."""

    def test_no_forced_loans(self, engine: LoanDistressEngine, store: FinanceDataStore, make_loan) -> None:
        """Test no offer without forced loans."""
        make_loan()

        assert engine.restructure_forced_loans_if_needed() is None
        assert store.pending_restructure_offer is None

    def test_offer_is_a_pure_simulation(
        self, engine: LoanDistressEngine, store: FinanceDataStore, forced_loan: Loan
    ) -> None:
        """Test building an offer leaves loans, assets and cash untouched."""
        offer = engine.restructure_forced_loans_if_needed()

        assert offer is not None
        assert forced_loan.remaining_balance == Decimal("20000")
        assert forced_loan.is_forced is True
        assert store.wine_batches["wb-premium"].quantity == 1000
        assert len(store.vineyards) == 3
        assert store.company.money == Decimal("10000")
        assert store.transactions == []

    def test_offer_contents(self, engine: LoanDistressEngine, store: FinanceDataStore, forced_loan: Loan) -> None:
        """Test cap, plan and consolidated terms for 20000 of forced debt."""
        offer = engine.restructure_forced_loans_if_needed()

        assert offer.loan_ids == ["loan-forced"]
        assert offer.total_forced_balance == Decimal("20000")
        assert offer.debt_allowance == Decimal("10000")
        assert offer.portfolio_allowance == Decimal("100000")
        assert offer.max_seizure_value == Decimal("10000")
        assert len(offer.steps) == 3
        assert offer.total_recovered_value == Decimal("10000")
        assert offer.total_proceeds == Decimal("7500")
        assert offer.cellar_lots_at_risk == [
            "Rossi Estate Sangiovese 2023 (200 bottles)",
            "Rossi Estate Sangiovese 2023 (200 bottles)",
            "Rossi Estate Sangiovese 2023 (100 bottles)",
        ]
        assert offer.vineyards_at_risk == []
        assert offer.consolidated_principal_estimate == Decimal("12500")
        assert offer.expires_date == GameDate(1, Season.SPRING, 2025)
        assert offer.summary_lines

    def test_regular_terms_from_cheapest_bank_or_fund(
        self, engine: LoanDistressEngine, store: FinanceDataStore, forced_loan: Loan
    ) -> None:
        """Test the bank carries the consolidated loan with penalties."""
        terms = engine.restructure_forced_loans_if_needed().proposed_terms

        assert terms.lender_id == "lender-bank"
        assert terms.is_emergency_override is False
        assert terms.duration_seasons == 48
        # 0.05 * 0.9 (bank) * 1.15 (credit) * 0.90 (48 seasons) * 1.25 (penalty)
        assert terms.effective_interest_rate == Decimal("0.05821875")
        # 1000 minimum fee * 1.35
        assert terms.origination_fee == Decimal("1350")
        assert terms.origination_fee_multiplier == Decimal("1.35")

    def test_override_terms_when_no_regular_lender(
        self, engine: LoanDistressEngine, store: FinanceDataStore, forced_loan: Loan
    ) -> None:
        """Test the largest lender carries the loan on override terms."""
        store.set_lender_blacklist("lender-bank", True)

        terms = engine.restructure_forced_loans_if_needed().proposed_terms

        assert terms.lender_id == "lender-fund"
        assert terms.is_emergency_override is True
        assert terms.duration_seasons == 60
        assert terms.origination_fee_multiplier == Decimal("2.160")

    def test_override_any_lender_type(
        self, engine: LoanDistressEngine, store: FinanceDataStore, forced_loan: Loan
    ) -> None:
        """Test an override consolidation can land on a QuickLoan lender."""
        store.set_lender_blacklist("lender-bank", True)
        store.set_lender_blacklist("lender-fund", True)

        terms = engine.restructure_forced_loans_if_needed().proposed_terms

        assert terms.lender_type == LenderType.QUICK_LOAN
        assert terms.is_emergency_override is True

    def test_no_lender_at_all(
        self,
        engine: LoanDistressEngine,
        store: FinanceDataStore,
        forced_loan: Loan,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        """Test the offer is abandoned when every lender is blacklisted."""
        for lender_id in list(store.lenders):
            store.set_lender_blacklist(lender_id, True)

        assert engine.restructure_forced_loans_if_needed() is None
        assert store.pending_restructure_offer is None
        assert "Cannot build restructure offer" in caplog.text

    def test_propose_terms_raises_without_lenders(self, engine: LoanDistressEngine, store: FinanceDataStore) -> None:
        """Test the builder error."""
        for lender_id in list(store.lenders):
            store.set_lender_blacklist(lender_id, True)

        with pytest.raises(NoLenderAvailableError):
            engine.offers.propose_terms(Decimal("12500"))

    def test_decision_warning_queued(
        self, engine: LoanDistressEngine, store: FinanceDataStore, forced_loan: Loan
    ) -> None:
        """Test the player is asked to decide."""
        offer = engine.restructure_forced_loans_if_needed()
        warning = store.loan_warnings[offer.offer_id]

        assert warning.loan_id is None
        assert warning.severity == WarningSeverity.CRITICAL
        assert warning.warning_type == WarningType.FORCED_LOAN_RESTRUCTURE
        assert warning.decision == {"offer_id": offer.offer_id, "actions": ["accept", "decline"]}
        assert "loan.restructureOffer" in codes(store)

    def test_same_offer_not_rebuilt(
        self, engine: LoanDistressEngine, store: FinanceDataStore, forced_loan: Loan
    ) -> None:
        """Test a pending offer for the same loans is returned as is."""
        first = engine.restructure_forced_loans_if_needed()
        second = engine.restructure_forced_loans_if_needed()

        assert second is first
        assert codes(store).count("loan.restructureOffer") == 1

    def test_stale_offer_cleared_when_loans_gone(
        self, engine: LoanDistressEngine, store: FinanceDataStore, forced_loan: Loan
    ) -> None:
        """Test the offer is dropped once no forced loans remain."""
        offer = engine.restructure_forced_loans_if_needed()
        store.update_loan(forced_loan.loan_id, remaining_balance=Decimal("0"), status=LoanStatus.PAID_OFF)

        assert engine.restructure_forced_loans_if_needed() is None
        assert store.pending_restructure_offer is None
        assert offer.offer_id not in store.loan_warnings


class TestAcceptRestructure:
    """Tests for accepting an offer."""

    def test_accept_with_consolidation(
        self, engine: LoanDistressEngine, store: FinanceDataStore, forced_loan: Loan
    ) -> None:
        """Test liquidation, payoff and a consolidated loan."""
        offer = engine.restructure_forced_loans_if_needed()

        result = engine.accept_forced_loan_restructure(offer.offer_id)
        old = store.get_loan("loan-forced")
        new = result.consolidated_loan

        assert result.success is True
        assert result.proceeds == Decimal("7500")
        assert result.paid_off_loan_ids == ["loan-forced"]
        assert old.status == LoanStatus.PAID_OFF
        assert old.is_forced is False
        assert old.remaining_balance == Decimal("0")

        assert new.category == LoanCategory.RESTRUCTURED
        assert new.is_forced is False
        assert new.lender_id == "lender-bank"
        assert new.principal_amount == Decimal("12500")
        assert new.remaining_balance == new.principal_amount + new.origination_fee
        assert new.effective_interest_rate == offer.proposed_terms.effective_interest_rate

        assert store.wine_batches["wb-premium"].quantity == 500
        # Proceeds come in and go straight to the lenders; no principal is disbursed
        assert store.company.money == Decimal("10000")
        assert not any(
            t.category == TransactionCategory.LOAN_RECEIVED for t in store.transactions
        )

    def test_accept_side_effects(self, engine: LoanDistressEngine, store: FinanceDataStore, forced_loan: Loan) -> None:
        """Test prestige, work, notices and cleanup."""
        offer = engine.restructure_forced_loans_if_needed()

        engine.accept_forced_loan_restructure(offer.offer_id)

        assert store.prestige_events[-1].amount_base == -35.0
        assert store.prestige_events[-1].source_id == offer.offer_id
        assert store.company.loan_penalty_work == 22
        assert store.pending_restructure_offer is None
        assert store.loan_warnings == {}
        assert codes(store)[-1] == "loan.restructureCompleted"

    def test_accept_without_consolidation(
        self, store: FinanceDataStore, forced_loan: Loan
    ) -> None:
        """Test proceeds covering all forced debt leave no new loan."""
        config = EngineConfig(
            seed=42,
            restructure=RestructureConfig(
                cellar_step_percent_of_debt=Decimal("1.5"),
                max_seizure_percent_of_debt=Decimal("2"),
                sale_penalty_rate=Decimal("0"),
            ),
        )
        engine = LoanDistressEngine(store, config)
        offer = engine.restructure_forced_loans_if_needed()
        assert offer.consolidated_principal_estimate == Decimal("0")
        assert offer.proposed_terms is None

        result = engine.accept_forced_loan_restructure(offer.offer_id)

        assert result.success is True
        assert result.consolidated_loan is None
        assert list(store.loans) == ["loan-forced"]
        assert store.get_loan("loan-forced").status == LoanStatus.PAID_OFF
        # 25000 of wine sold, 20000 applied to the forced debt
        assert store.company.money == Decimal("15000")

    def test_wrong_offer_id(self, engine: LoanDistressEngine, store: FinanceDataStore, forced_loan: Loan) -> None:
        """Test an unknown id changes nothing."""
        engine.restructure_forced_loans_if_needed()

        with pytest.raises(RestructureOfferError):
            engine.accept_forced_loan_restructure("restructure-2024-000000000000")

        assert store.get_loan("loan-forced").is_forced is True
        assert store.pending_restructure_offer is not None

    def test_no_pending_offer(self, engine: LoanDistressEngine) -> None:
        """Test accepting when nothing is pending."""
        with pytest.raises(RestructureOfferError, match="No restructure offer"):
            engine.accept_forced_loan_restructure("restructure-2024-000000000000")

    def test_expired_offer(self, engine: LoanDistressEngine, store: FinanceDataStore, forced_loan: Loan) -> None:
        """Test an offer cannot be accepted after the next year starts."""
        offer = engine.restructure_forced_loans_if_needed()
        store.company.current_date = GameDate(1, Season.SPRING, 2025)

        with pytest.raises(RestructureOfferError, match="expired"):
            engine.accept_forced_loan_restructure(offer.offer_id)

    def test_failure_keeps_forced_loans(
        self, engine: LoanDistressEngine, store: FinanceDataStore, forced_loan: Loan
    ) -> None:
        """Test a failed consolidation reports failure and keeps the loans."""
        offer = engine.restructure_forced_loans_if_needed()

        with patch.object(engine.executor.loan_service, "originate_loan", side_effect=RuntimeError("ledger locked")):
            result = engine.accept_forced_loan_restructure(offer.offer_id)

        loan = store.get_loan("loan-forced")
        assert result.success is False
        assert "ledger locked" in result.message
        assert loan.is_forced is True
        assert loan.status == LoanStatus.ACTIVE
        assert store.wine_batches["wb-premium"].quantity == 1000
        assert store.company.money == Decimal("10000")
        assert store.pending_restructure_offer is offer
        assert codes(store)[-1] == "loan.restructureFailed"

    def test_missing_lender_sells_nothing(self, store: FinanceDataStore, forced_loan: Loan) -> None:
        """Test a shrunken cellar without consolidation terms leaves assets alone."""
        config = EngineConfig(
            seed=42,
            restructure=RestructureConfig(
                cellar_step_percent_of_debt=Decimal("1.5"),
                max_seizure_percent_of_debt=Decimal("2"),
                sale_penalty_rate=Decimal("0"),
            ),
        )
        engine = LoanDistressEngine(store, config)
        offer = engine.restructure_forced_loans_if_needed()
        assert offer.proposed_terms is None
        store.remove_bottles("wb-premium", 900)

        result = engine.accept_forced_loan_restructure(offer.offer_id)

        assert result.success is False
        assert "no consolidation lender" in result.message
        assert store.wine_batches["wb-premium"].quantity == 100
        assert store.wine_batches["wb-table"].quantity == 500
        assert set(store.vineyards) == {"vy-small", "vy-mid", "vy-large"}
        assert store.company.money == Decimal("10000")
        assert store.get_loan("loan-forced").remaining_balance == Decimal("20000")
        assert store.pending_restructure_offer is offer


class TestDeclineRestructure:
    """Tests for declining an offer."""

    def test_decline(self, engine: LoanDistressEngine, store: FinanceDataStore, forced_loan: Loan) -> None:
        """Test forced loans stay on the normal ladder."""
        offer = engine.restructure_forced_loans_if_needed()

        engine.decline_forced_loan_restructure(offer.offer_id)
        loan = store.get_loan("loan-forced")

        assert store.pending_restructure_offer is None
        assert offer.offer_id not in store.loan_warnings
        assert loan.is_forced is True
        assert loan.remaining_balance == Decimal("20000")
        assert codes(store)[-1] == "loan.restructureDeclined"

    def test_decline_wrong_id(self, engine: LoanDistressEngine, forced_loan: Loan) -> None:
        """Test declining a stale offer."""
        engine.restructure_forced_loans_if_needed()

        with pytest.raises(RestructureOfferError):
            engine.decline_forced_loan_restructure("restructure-2023-000000000000")
