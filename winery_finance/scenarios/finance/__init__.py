"""Finance scenarios for the winery management game."""

from winery_finance.scenarios.finance.distress_campaign import DistressCampaignScenario

__all__ = ["DistressCampaignScenario"]
