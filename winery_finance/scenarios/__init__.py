"""Scenarios for simulating company finance over many weeks."""

from winery_finance.scenarios.finance import DistressCampaignScenario

__all__ = ["DistressCampaignScenario"]
