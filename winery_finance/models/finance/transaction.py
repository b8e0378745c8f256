"""Ledger records produced by the finance services."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any

from winery_finance.models.base import GameDate
from winery_finance.models.finance.enums import NotificationCategory, TransactionCategory


@dataclass
class Transaction:
    """Cash movement on the company account (positive = income)."""

    transaction_id: str
    amount: Decimal
    description: str
    category: TransactionCategory
    game_date: GameDate
    absolute_week: int
    loan_id: str | None = None
    created_at: datetime | None = None


@dataclass
class PrestigeEvent:
    """Company prestige change that decays weekly by ``decay_rate``."""

    event_id: str
    event_type: str  # company_finance
    amount_base: float
    created_game_week: int
    decay_rate: float
    source_id: str | None = None
    payload: dict[str, Any] = field(default_factory=dict)
    created_at: datetime | None = None


@dataclass
class Notification:
    """Message for the player's notification center."""

    notification_id: str
    code: str  # e.g. loan.missedPayment1
    title: str
    message: str
    category: NotificationCategory
    game_week: int
    created_at: datetime | None = None
