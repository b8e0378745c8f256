"""Seizable company assets: vineyards and cellar inventory."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from winery_finance.models.finance.enums import WineBatchState


@dataclass
class Vineyard:
    """Vineyard owned by the company."""

    vineyard_id: str
    name: str
    region: str
    hectares: float
    land_value: Decimal  # Per hectare
    total_value: Decimal  # land_value * hectares, kept as booked
    created_at: datetime | None = None


@dataclass
class WineBatch:
    """Wine batch in the winery or cellar."""

    batch_id: str
    vineyard_id: str
    vineyard_name: str
    grape: str
    state: WineBatchState
    quantity: int  # Bottles once bottled
    final_price: Decimal  # Per bottle
    asking_price: Decimal | None = None
    vintage: int | None = None
    created_at: datetime | None = None

    @property
    def is_bottled(self) -> bool:
        return self.state == WineBatchState.BOTTLED

    @property
    def unit_price(self) -> Decimal:
        """Per-bottle book value: the asking price when the player set one."""
        return self.asking_price if self.asking_price is not None else self.final_price

    @property
    def total_value(self) -> Decimal:
        return self.unit_price * self.quantity

    @property
    def label(self) -> str:
        vintage = f" {self.vintage}" if self.vintage else ""
        return f"{self.vineyard_name} {self.grape}{vintage}"
