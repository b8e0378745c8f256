"""Vineyard and wine batch generators."""

import random
from decimal import Decimal

from winery_finance.generators.base import BaseGenerator
from winery_finance.models.finance import Vineyard, WineBatch, WineBatchState


class VineyardGenerator(BaseGenerator):
    """Generate vineyards with region-based land prices."""

    # Price per hectare in euros
    REGION_PRICE_RANGES = {
        "Bordeaux": (100_000, 1_000_000),
        "Rhone Valley": (30_000, 120_000),
        "Jura": (25_000, 45_000),
        "Napa Valley": (300_000, 1_000_000),
        "Finger Lakes": (10_000, 50_000),
        "Tuscany": (80_000, 1_000_000),
        "Puglia": (5_000, 30_000),
        "Mosel": (30_000, 150_000),
        "Rioja": (30_000, 100_000),
        "La Mancha": (5_000, 30_000),
    }

    NAME_SUFFIXES = ["Estate", "Vineyard", "Hill", "Terrace", "Slope", "Clos"]

    def generate(self, region: str | None = None) -> Vineyard:
        """Generate a vineyard.

        Parameters
        ----------
        region : str | None
            Region to place the vineyard in. Random when omitted.

        Returns
        -------
        Vineyard
            Generated vineyard.
        """
        if region is None:
            region = random.choice(list(self.REGION_PRICE_RANGES))
        low, high = self.REGION_PRICE_RANGES[region]

        hectares = round(random.uniform(0.5, 5.0), 2)
        land_value = Decimal(random.randint(low // 1000, high // 1000) * 1000)

        return Vineyard(
            vineyard_id=self.fake.uuid4(),
            name=f"{self.fake.last_name()} {random.choice(self.NAME_SUFFIXES)}",
            region=region,
            hectares=hectares,
            land_value=land_value,
            total_value=(land_value * Decimal(str(hectares))).quantize(Decimal("1")),
        )


class WineBatchGenerator(BaseGenerator):
    """Generate cellar inventory for a vineyard."""

    GRAPES = ["Chardonnay", "Pinot Noir", "Sangiovese", "Tempranillo", "Barbera", "Primitivo", "Sauvignon Blanc"]

    def generate(
        self,
        vineyard: Vineyard,
        state: WineBatchState = WineBatchState.BOTTLED,
        vintage: int | None = None,
    ) -> WineBatch:
        """Generate a wine batch from a vineyard.

        Parameters
        ----------
        vineyard : Vineyard
            Source vineyard.
        state : WineBatchState
            Production stage of the batch.
        vintage : int | None
            Harvest year.

        Returns
        -------
        WineBatch
            Generated batch.
        """
        final_price = Decimal(str(round(random.uniform(8, 60), 2)))
        # Players price above the computed value about a third of the time
        asking_price = None
        if random.random() < 0.33:
            asking_price = Decimal(str(round(float(final_price) * random.uniform(1.0, 1.4), 2)))

        return WineBatch(
            batch_id=self.fake.uuid4(),
            vineyard_id=vineyard.vineyard_id,
            vineyard_name=vineyard.name,
            grape=random.choice(self.GRAPES),
            state=state,
            quantity=random.randint(200, 3000),
            final_price=final_price,
            asking_price=asking_price,
            vintage=vintage,
        )
