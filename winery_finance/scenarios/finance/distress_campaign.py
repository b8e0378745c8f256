"""Distress campaign scenario: a winery sliding into debt over several years."""

from __future__ import annotations

import logging
import random
from collections import Counter
from decimal import Decimal
from typing import Any

from faker import Faker

from winery_finance.config import EngineConfig
from winery_finance.engine import FinanceTickHandler, LoanDistressEngine, RestructureResult, TickReport
from winery_finance.generators.finance import LenderGenerator, VineyardGenerator, WineBatchGenerator
from winery_finance.models.base import GameDate, Season
from winery_finance.models.finance import (
    Company,
    ForcedLoanRestructureOffer,
    Lender,
    LenderType,
    LoanCategory,
    TransactionCategory,
)
from winery_finance.store.finance import FinanceDataStore

logger = logging.getLogger(__name__)


class DistressCampaignScenario:
    """Run a seeded company through weekly ticks until its loans go bad.

    This scenario creates:
    - A company with little cash and a lender catalog
    - Vineyards and bottled cellar inventory that can be seized
    - An opening bank loan
    - Weekly staff wages that drain cash, so payments are missed, emergency
      quick loans are forced and restructure offers come up each year
    """

    def __init__(
        self,
        weeks: int = 144,
        num_vineyards: int = 4,
        batches_per_vineyard: int = 2,
        num_lenders: int | None = None,
        starting_money: Decimal = Decimal("25000"),
        opening_loan_amount: Decimal = Decimal("120000"),
        opening_loan_seasons: int = 24,
        weekly_wages: Decimal = Decimal("4500"),
        auto_accept_restructure: bool = True,
        seed: int | None = None,
        *,
        config: EngineConfig | None = None,
    ) -> None:
        """Initialize distress campaign scenario.

        Parameters
        ----------
        weeks : int
            Number of weeks to simulate.
        num_vineyards : int
            Vineyards owned at the start.
        batches_per_vineyard : int
            Bottled wine batches per vineyard.
        num_lenders : int | None
            Lender catalog size (random when None).
        starting_money : Decimal
            Opening cash.
        opening_loan_amount : Decimal
            Principal of the opening bank loan.
        opening_loan_seasons : int
            Requested term of the opening loan.
        weekly_wages : Decimal
            Cash spent every week.
        auto_accept_restructure : bool
            Accept restructure offers as soon as they are made; otherwise
            decline them.
        seed : int | None
            Random seed for reproducibility. Falls back to ``config.seed``.
        config : EngineConfig | None
            Engine configuration.
        """
        self.config = config or EngineConfig()
        self.seed = seed if seed is not None else self.config.seed
        self.config.seed = self.seed

        self.weeks = weeks
        self.num_vineyards = num_vineyards
        self.batches_per_vineyard = batches_per_vineyard
        self.num_lenders = num_lenders
        self.starting_money = starting_money
        self.opening_loan_amount = opening_loan_amount
        self.opening_loan_seasons = opening_loan_seasons
        self.weekly_wages = weekly_wages
        self.auto_accept_restructure = auto_accept_restructure

        self._fake = Faker("en_US")
        if self.seed is not None:
            self._fake.seed_instance(self.seed)
            random.seed(self.seed)

        self._lender_gen = LenderGenerator(seed=self.seed)
        self._vineyard_gen = VineyardGenerator(seed=self.seed)
        self._batch_gen = WineBatchGenerator(seed=self.seed)

        self.store = FinanceDataStore(company=self._create_company(), start_year=self.config.start_year)
        self.engine = LoanDistressEngine(self.store, self.config, random.Random(self.seed))
        self.ticker = FinanceTickHandler(self.engine)

        self.reports: list[TickReport] = []
        self.offers: list[ForcedLoanRestructureOffer] = []
        self.restructures: list[RestructureResult] = []

    def _create_company(self) -> Company:
        return Company(
            company_id=self._fake.uuid4(),
            name=f"{self._fake.last_name()} Wines",
            money=self.starting_money,
            current_date=GameDate(1, Season.SPRING, self.config.start_year),
            founded_year=self.config.start_year,
        )

    def setup(self) -> FinanceDataStore:
        """Populate lenders, assets and the opening loan.

        Returns
        -------
        FinanceDataStore
            Store ready for the weekly simulation.
        """
        for lender in self._lender_gen.generate_catalog(self.num_lenders):
            self.store.add_lender(lender)

        vintage = self.config.start_year - 1
        for _ in range(self.num_vineyards):
            vineyard = self._vineyard_gen.generate()
            self.store.add_vineyard(vineyard)
            for _ in range(self.batches_per_vineyard):
                self.store.add_wine_batch(self._batch_gen.generate(vineyard, vintage=vintage))

        lender = self._opening_lender()
        if lender is not None:
            seasons = min(max(self.opening_loan_seasons, lender.min_duration_seasons), lender.max_duration_seasons)
            self.engine.loans.originate_loan(lender, self.opening_loan_amount, seasons)
        else:
            logger.warning("No bank lends %s; campaign starts without an opening loan", self.opening_loan_amount)

        logger.info(
            "Campaign setup: %d lenders, %d vineyards, %d wine batches, cash %s",
            len(self.store.lenders),
            len(self.store.vineyards),
            len(self.store.wine_batches),
            self.store.company.money,
        )
        return self.store

    def _opening_lender(self) -> Lender | None:
        banks = [
            lender
            for lender in self.store.lenders.values()
            if lender.lender_type == LenderType.BANK and lender.accepts_amount(self.opening_loan_amount)
        ]
        if not banks:
            return None
        return min(banks, key=lambda lender: (lender.base_interest_rate, lender.lender_id))

    def generate(self) -> FinanceDataStore:
        """Set up the company and simulate the configured number of weeks.

        Returns
        -------
        FinanceDataStore
            Store containing the full campaign history.
        """
        logger.info("Starting distress campaign: %d weeks, seed=%s", self.weeks, self.seed)
        self.setup()

        for _ in range(self.weeks):
            self.store.add_transaction(
                -self.weekly_wages,
                "Weekly staff wages",
                TransactionCategory.STAFF_WAGES,
            )
            report = self.ticker.advance_week()
            self.reports.append(report)

            if report.restructure_offer is not None:
                self._decide(report.restructure_offer)

        logger.info(
            "Campaign finished on %s: cash %s, %d loans, %d notifications",
            self.store.company.current_date,
            self.store.company.money,
            len(self.store.loans),
            len(self.store.notifications),
        )
        return self.store

    def _decide(self, offer: ForcedLoanRestructureOffer) -> None:
        self.offers.append(offer)
        if self.auto_accept_restructure:
            self.restructures.append(self.engine.accept_forced_loan_restructure(offer.offer_id))
        else:
            self.engine.decline_forced_loan_restructure(offer.offer_id)

    def export(self, sinks: list[Any]) -> None:
        """Export campaign records to sinks.

        Parameters
        ----------
        sinks : list[Any]
            List of sink instances (ConsoleSink, JsonFileSink, KafkaSink).
        """
        for sink in sinks:
            sink.write_batch("lenders", list(self.store.lenders.values()))
            sink.write_batch("loans", list(self.store.loans.values()))
            sink.write_batch("transactions", self.store.transactions)
            sink.write_batch("prestige_events", self.store.prestige_events)
            sink.write_batch("notifications", self.store.notifications)
            sink.write_batch("loan_warnings", list(self.store.loan_warnings.values()))
            sink.write_batch("restructure_offers", self.offers)

        logger.info("Exported distress campaign to %d sinks", len(sinks))

    def get_summary(self) -> dict[str, Any]:
        """Get summary statistics for the campaign.

        Returns
        -------
        dict[str, Any]
            Campaign summary statistics.
        """
        loans = list(self.store.loans.values())
        company = self.store.company

        return {
            "company": company.name,
            "weeks_simulated": len(self.reports),
            "final_date": str(company.current_date),
            "money": float(company.money),
            "prestige": round(company.prestige, 2),
            "loan_penalty_work": company.loan_penalty_work,
            "loan_status_distribution": dict(Counter(loan.status.value for loan in loans)),
            "loan_category_distribution": dict(Counter(loan.category.value for loan in loans)),
            "emergency_loans": sum(1 for loan in loans if loan.category == LoanCategory.EMERGENCY),
            "blacklisted_lenders": sum(1 for lender in self.store.lenders.values() if lender.blacklisted),
            "restructure_offers": len(self.offers),
            "restructures_accepted": sum(1 for result in self.restructures if result.success),
            "vineyards_remaining": len(self.store.vineyards),
            "wine_batches_remaining": len(self.store.wine_batches),
            "notification_codes": dict(Counter(n.code for n in self.store.notifications)),
            "outstanding_balance": float(self.store.total_outstanding_balance()),
        }
