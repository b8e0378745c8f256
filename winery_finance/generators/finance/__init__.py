"""Finance domain generators."""

from winery_finance.generators.finance.asset import VineyardGenerator, WineBatchGenerator
from winery_finance.generators.finance.lender import LenderGenerator

__all__ = [
    "LenderGenerator",
    "VineyardGenerator",
    "WineBatchGenerator",
]
