"""Pytest configuration and fixtures."""

from decimal import Decimal
from typing import Any, Callable

import pytest

from winery_finance.config import EngineConfig
from winery_finance.engine import LoanDistressEngine
from winery_finance.models.base import GameDate, Season
from winery_finance.models.finance import (
    Company,
    Lender,
    LenderType,
    Loan,
    LoanCategory,
    OriginationFeeConfig,
    Vineyard,
    WineBatch,
    WineBatchState,
)
from winery_finance.store.finance import FinanceDataStore


@pytest.fixture
def seed() -> int:
    """Fixed seed for reproducible tests."""
    return 42


@pytest.fixture
def today() -> GameDate:
    """Current game date: first week of Summer 2024."""
    return GameDate(1, Season.SUMMER, 2024)


@pytest.fixture
def company(today: GameDate) -> Company:
    """Company with modest cash and an average credit rating."""
    return Company(
        company_id="co-001",
        name="Test Wines",
        money=Decimal("10000"),
        current_date=today,
        credit_rating=0.5,
    )


@pytest.fixture
def bank_lender() -> Lender:
    """Bank lending 10k-500k over 4-120 seasons."""
    return Lender(
        lender_id="lender-bank",
        name="Valley Bank",
        lender_type=LenderType.BANK,
        base_interest_rate=Decimal("0.05"),
        risk_tolerance=0.3,
        flexibility=0.6,
        market_presence=0.5,
        min_loan_amount=Decimal("10000"),
        max_loan_amount=Decimal("500000"),
        min_duration_seasons=4,
        max_duration_seasons=120,
        origination_fee=OriginationFeeConfig(
            base_percent=Decimal("0.02"),
            min_fee=Decimal("1000"),
            max_fee=Decimal("15000"),
            credit_rating_modifier=Decimal("0.7"),
            duration_modifier=Decimal("1.1"),
        ),
    )


@pytest.fixture
def fund_lender() -> Lender:
    """Investment fund lending 50k-1M over 4-240 seasons."""
    return Lender(
        lender_id="lender-fund",
        name="Harvest Capital",
        lender_type=LenderType.INVESTMENT_FUND,
        base_interest_rate=Decimal("0.07"),
        risk_tolerance=0.5,
        flexibility=0.7,
        market_presence=0.4,
        min_loan_amount=Decimal("50000"),
        max_loan_amount=Decimal("1000000"),
        min_duration_seasons=4,
        max_duration_seasons=240,
        origination_fee=OriginationFeeConfig(
            base_percent=Decimal("0.03"),
            min_fee=Decimal("2000"),
            max_fee=Decimal("30000"),
            credit_rating_modifier=Decimal("0.8"),
            duration_modifier=Decimal("1.2"),
        ),
    )


@pytest.fixture
def quick_lender() -> Lender:
    """QuickLoan provider lending 5k-75k over 4-8 seasons."""
    return Lender(
        lender_id="lender-quick",
        name="FlashBridge Finance",
        lender_type=LenderType.QUICK_LOAN,
        base_interest_rate=Decimal("0.15"),
        risk_tolerance=0.2,
        flexibility=0.6,
        market_presence=0.1,
        min_loan_amount=Decimal("5000"),
        max_loan_amount=Decimal("75000"),
        min_duration_seasons=4,
        max_duration_seasons=8,
        origination_fee=OriginationFeeConfig(
            base_percent=Decimal("0.08"),
            min_fee=Decimal("500"),
            max_fee=Decimal("8000"),
            credit_rating_modifier=Decimal("1.3"),
            duration_modifier=Decimal("1.0"),
        ),
    )


@pytest.fixture
def vineyards() -> list[Vineyard]:
    """Three vineyards worth 200k in total."""
    return [
        Vineyard("vy-small", "Dubois Clos", "Jura", 1.0, Decimal("40000"), Decimal("40000")),
        Vineyard("vy-mid", "Martin Hill", "Rioja", 2.0, Decimal("30000"), Decimal("60000")),
        Vineyard("vy-large", "Rossi Estate", "Tuscany", 1.0, Decimal("100000"), Decimal("100000")),
    ]


@pytest.fixture
def wine_batches() -> list[WineBatch]:
    """Two bottled batches worth 25k and one batch still in the vat."""
    return [
        WineBatch("wb-premium", "vy-large", "Rossi Estate", "Sangiovese", WineBatchState.BOTTLED,
                  1000, Decimal("20"), vintage=2023),
        WineBatch("wb-table", "vy-mid", "Martin Hill", "Tempranillo", WineBatchState.BOTTLED,
                  500, Decimal("8"), asking_price=Decimal("10"), vintage=2023),
        WineBatch("wb-must", "vy-small", "Dubois Clos", "Chardonnay", WineBatchState.MUST_FERMENTING,
                  800, Decimal("15")),
    ]


@pytest.fixture
def store(
    company: Company,
    bank_lender: Lender,
    fund_lender: Lender,
    quick_lender: Lender,
    vineyards: list[Vineyard],
    wine_batches: list[WineBatch],
) -> FinanceDataStore:
    """Store with lenders, vineyards and cellar inventory but no loans."""
    store = FinanceDataStore(company=company, start_year=2024)
    for lender in (bank_lender, fund_lender, quick_lender):
        store.add_lender(lender)
    for vineyard in vineyards:
        store.add_vineyard(vineyard)
    for batch in wine_batches:
        store.add_wine_batch(batch)
    return store


@pytest.fixture
def make_loan(store: FinanceDataStore, today: GameDate) -> Callable[..., Loan]:
    """Factory adding a loan to the store; keyword arguments override defaults."""

    def _make(**overrides: Any) -> Loan:
        lender = store.get_lender(overrides.pop("lender_id", "lender-bank"))
        values: dict[str, Any] = {
            "loan_id": "loan-001",
            "lender_id": lender.lender_id,
            "lender_name": lender.name,
            "lender_type": lender.lender_type,
            "principal_amount": Decimal("100000"),
            "base_interest_rate": lender.base_interest_rate,
            "effective_interest_rate": Decimal("0.05"),
            "origination_fee": Decimal("2000"),
            "remaining_balance": Decimal("100000"),
            "seasonal_payment": Decimal("10000"),
            "seasons_remaining": 12,
            "total_seasons": 12,
            "start_date": GameDate(1, Season.SPRING, 2024),
            "next_payment_due": today,
        }
        values.update(overrides)
        loan = Loan(**values)
        store.add_loan(loan)
        return loan

    return _make


@pytest.fixture
def forced_loan(make_loan: Callable[..., Loan]) -> Loan:
    """Emergency quick loan awaiting consolidation (20k balance)."""
    return make_loan(
        loan_id="loan-forced",
        lender_id="lender-quick",
        principal_amount=Decimal("20000"),
        remaining_balance=Decimal("20000"),
        seasonal_payment=Decimal("3500"),
        seasons_remaining=8,
        total_seasons=8,
        is_forced=True,
        category=LoanCategory.EMERGENCY,
        next_payment_due=GameDate(1, Season.FALL, 2024),
    )


@pytest.fixture
def config() -> EngineConfig:
    """Default engine configuration with a fixed seed."""
    return EngineConfig(seed=42)


@pytest.fixture
def engine(store: FinanceDataStore, config: EngineConfig) -> LoanDistressEngine:
    """Engine wired to the shared store."""
    return LoanDistressEngine(store, config)
