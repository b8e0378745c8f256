"""Tests for the missed-payment escalation ladder."""

from decimal import Decimal

import pytest

from winery_finance.config import EngineConfig
from winery_finance.engine import EscalationLadder
from winery_finance.exceptions import InvalidEntityStateError
from winery_finance.models.finance import (
    LoanStatus,
    TransactionCategory,
    WarningSeverity,
    WarningType,
)
from winery_finance.store.finance import FinanceDataStore


@pytest.fixture
def ladder(store: FinanceDataStore, config: EngineConfig) -> EscalationLadder:
    """Escalation ladder on the shared store."""
    return EscalationLadder(store, config)


class TestEscalationDispatch:
    """Tests for tier selection."""

    def test_no_missed_payments_rejected(self, ladder: EscalationLadder, make_loan) -> None:
        """Test escalating a loan in good standing."""
        make_loan()

        with pytest.raises(InvalidEntityStateError, match="no missed payments"):
            ladder.escalate("loan-001")

    def test_newer_warning_replaces_older(self, ladder: EscalationLadder, store: FinanceDataStore, make_loan) -> None:
        """Test one warning per loan."""
        loan = make_loan(missed_payments=1)
        ladder.escalate(loan.loan_id)
        store.update_loan(loan.loan_id, missed_payments=2)
        ladder.escalate(loan.loan_id)

        assert len(store.loan_warnings) == 1
        assert store.loan_warnings["loan-001"].missed_payments == 2


class TestWarningTwo:
    """Tests for the second missed payment."""

    def test_rate_increase_and_surcharge(self, ladder: EscalationLadder, store: FinanceDataStore, make_loan) -> None:
        """Test rate bump, balance penalty and prestige hit."""
        make_loan(missed_payments=2)

        warning = ladder.escalate("loan-001")
        loan = store.get_loan("loan-001")
        event = store.prestige_events[-1]

        assert loan.effective_interest_rate == Decimal("0.055")
        assert loan.remaining_balance == Decimal("105000")
        assert loan.seasonal_payment == Decimal("10000")
        assert warning.severity == WarningSeverity.ERROR
        assert warning.penalties["balance_penalty"] == Decimal("5000")
        assert event.amount_base == -25.0
        assert event.source_id == "loan-001"
        assert event.payload["reason"] == "Loan Payment Missed (Warning #2)"
        assert event.payload["lender_type"] == "Bank"
        assert store.company.prestige == -25.0
        assert store.company.loan_penalty_work == 50


class TestWarningThree:
    """Tests for asset seizure on the third missed payment."""

    def test_seizes_cellar_then_vineyards(
        self, ladder: EscalationLadder, store: FinanceDataStore, make_loan
    ) -> None:
        """Test cellar sale, vineyard seizure and cash sweep."""
        make_loan(missed_payments=3)
        store.company.money = Decimal("0")

        warning = ladder.escalate("loan-001")
        loan = store.get_loan("loan-001")

        # Cellar budget 20000 takes the premium batch whole (15000 after penalty).
        # Vineyards worth 40000 and 60000 reach half the portfolio (75000 after penalty).
        assert "wb-premium" not in store.wine_batches
        assert store.wine_batches["wb-table"].quantity == 500
        assert list(store.vineyards) == ["vy-large"]
        assert loan.remaining_balance == Decimal("10000")
        assert store.company.money == Decimal("0")

        assert warning.severity == WarningSeverity.CRITICAL
        assert warning.penalties["bottles_sold"] == 1000
        assert warning.penalties["vineyards_seized"] == 2
        assert warning.penalties["vineyard_names"] == ["Dubois Clos", "Martin Hill"]
        assert warning.penalties["value_recovered"] == Decimal("120000")
        assert warning.penalties["sale_proceeds"] == Decimal("90000")
        assert warning.penalties["cash_applied"] == Decimal("90000")

    def test_sale_transactions_posted(self, ladder: EscalationLadder, store: FinanceDataStore, make_loan) -> None:
        """Test proceeds are booked before the sweep."""
        make_loan(missed_payments=3)
        store.company.money = Decimal("0")

        ladder.escalate("loan-001")
        by_category = {}
        for transaction in store.transactions:
            by_category.setdefault(transaction.category, []).append(transaction.amount)

        assert by_category[TransactionCategory.WINE_SALES] == [Decimal("15000.00")]
        assert by_category[TransactionCategory.VINEYARD_SALE] == [Decimal("30000.00"), Decimal("45000.00")]
        assert by_category[TransactionCategory.LOAN_PAYMENT] == [Decimal("-90000.00")]
        assert [n.code for n in store.notifications][-1] == "loan.missedPayment3"

    def test_no_vineyards_left(self, ladder: EscalationLadder, store: FinanceDataStore, make_loan) -> None:
        """Test seizure with an empty portfolio."""
        store.delete_vineyards(list(store.vineyards))
        make_loan(missed_payments=3)

        warning = ladder.escalate("loan-001")

        assert warning.penalties["vineyards_seized"] == 0
        assert "none available" in warning.details

    def test_cash_sweep_capped_at_balance(self, ladder: EscalationLadder, store: FinanceDataStore, make_loan) -> None:
        """Test surplus cash stays with the company."""
        make_loan(missed_payments=3, remaining_balance=Decimal("5000"))

        warning = ladder.escalate("loan-001")

        assert store.get_loan("loan-001").remaining_balance == Decimal("0")
        assert warning.penalties["cash_applied"] == Decimal("5000")
        assert store.company.money > 0


class TestDefault:
    """Tests for loan default."""

    def test_default_blacklists_lender(self, ladder: EscalationLadder, store: FinanceDataStore, make_loan) -> None:
        """Test the fourth missed payment."""
        make_loan(missed_payments=4)
        store.company.money = Decimal("0")

        warning = ladder.escalate("loan-001")
        loan = store.get_loan("loan-001")

        assert loan.status == LoanStatus.DEFAULTED
        assert loan.missed_payments == 4
        assert store.get_lender("lender-bank").blacklisted is True
        assert warning.warning_type == WarningType.DEFAULT
        assert warning.severity == WarningSeverity.CRITICAL
        assert store.prestige_events[-1].amount_base == -75.0
        assert store.loan_warnings["loan-001"] is warning
        assert [n.code for n in store.notifications][-1] == "loan.default"

    def test_default_runs_seizure_first(self, ladder: EscalationLadder, store: FinanceDataStore, make_loan) -> None:
        """Test default includes the tier three effects."""
        make_loan(missed_payments=5)
        store.company.money = Decimal("0")

        ladder.escalate("loan-001")

        assert "loan.missedPayment3" in [n.code for n in store.notifications]
        assert len(store.vineyards) == 1
