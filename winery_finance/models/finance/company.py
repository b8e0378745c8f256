"""Company financial state."""

from dataclasses import dataclass
from decimal import Decimal

from winery_finance.models.base import GameDate
from winery_finance.models.finance.enums import EconomyPhase


@dataclass
class Company:
    """Player company as seen by the finance services."""

    company_id: str
    name: str
    money: Decimal
    current_date: GameDate
    credit_rating: float = 0.5  # 0-1 scale, 0.5 = BBB-
    prestige: float = 0.0
    economy_phase: EconomyPhase = EconomyPhase.STABLE
    loan_penalty_work: int = 0  # Extra work units for the next bookkeeping task
    founded_year: int = 2024
