"""Tests for the distress campaign scenario."""

import json
from pathlib import Path

import pytest

from winery_finance.models.finance import LoanCategory, TransactionCategory
from winery_finance.scenarios.finance import DistressCampaignScenario
from winery_finance.sinks.json_file import JsonFileSink


@pytest.fixture
def campaign(seed: int) -> DistressCampaignScenario:
    """Seeded campaign run for 60 weeks."""
    scenario = DistressCampaignScenario(weeks=60, num_lenders=12, seed=seed)
    scenario.generate()
    return scenario


class TestDistressCampaignScenario:
    """Tests for DistressCampaignScenario."""

    def test_setup(self, seed: int) -> None:
        """Test setup creates the catalog, assets and opening loan."""
        scenario = DistressCampaignScenario(num_vineyards=3, batches_per_vineyard=2, num_lenders=8, seed=seed)
        store = scenario.setup()

        assert len(store.lenders) == 8
        assert len(store.vineyards) == 3
        assert len(store.wine_batches) == 6
        assert len(store.loans) == 1
        opening = next(iter(store.loans.values()))
        assert opening.category == LoanCategory.STANDARD
        assert not opening.is_forced
        assert any(t.category == TransactionCategory.LOAN_RECEIVED for t in store.transactions)

    def test_generate(self, campaign: DistressCampaignScenario) -> None:
        """Test the campaign drains cash into forced loans and an offer."""
        summary = campaign.get_summary()

        assert summary["weeks_simulated"] == 60
        assert summary["emergency_loans"] >= 1
        assert summary["restructure_offers"] >= 1
        assert len(campaign.store.transactions) > 60

    def test_offers_are_accepted(self, campaign: DistressCampaignScenario) -> None:
        """Test the default policy accepts every offer."""
        assert len(campaign.restructures) == len(campaign.offers)

    def test_decline_policy(self, seed: int) -> None:
        """Test offers can be declined instead."""
        scenario = DistressCampaignScenario(weeks=60, num_lenders=12, auto_accept_restructure=False, seed=seed)
        scenario.generate()

        assert len(scenario.offers) >= 1
        assert scenario.restructures == []
        assert scenario.get_summary()["restructures_accepted"] == 0

    def test_reproducible(self, seed: int) -> None:
        """Test the same seed gives the same campaign."""
        first = DistressCampaignScenario(weeks=20, num_lenders=10, seed=seed)
        second = DistressCampaignScenario(weeks=20, num_lenders=10, seed=seed)
        first.generate()
        second.generate()

        assert first.store.company.money == second.store.company.money
        assert len(first.store.transactions) == len(second.store.transactions)

    def test_export(self, campaign: DistressCampaignScenario, tmp_path: Path) -> None:
        """Test export writes one file per record type."""
        campaign.export([JsonFileSink(tmp_path)])

        for name in ("lenders", "loans", "transactions", "prestige_events", "notifications", "restructure_offers"):
            assert (tmp_path / f"{name}.json").exists()

        loans = json.loads((tmp_path / "loans.json").read_text(encoding="utf-8"))
        assert len(loans) == len(campaign.store.loans)
