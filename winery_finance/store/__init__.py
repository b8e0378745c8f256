"""In-memory data store standing in for the game database."""

from winery_finance.store.finance import FinanceDataStore

__all__ = ["FinanceDataStore"]
