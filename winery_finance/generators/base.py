"""Base generator class for all data generators."""

from __future__ import annotations

import random
from abc import ABC
from decimal import Decimal

from faker import Faker


class BaseGenerator(ABC):
    """Base class for all data generators.

    Provides common initialization: Faker instance creation and seed-based
    reproducibility for both Faker and the ``random`` module.

    Parameters
    ----------
    seed : int | None
        Random seed for reproducibility.
    locale : str
        Faker locale (default ``en_US``).
    """

    def __init__(self, seed: int | None = None, locale: str = "en_US") -> None:
        self.fake = Faker(locale)
        if seed is not None:
            self.fake.seed_instance(seed)
            random.seed(seed)

    @staticmethod
    def uniform_decimal(low: float, high: float, places: int = 4) -> Decimal:
        """Random value in [low, high] as a Decimal rounded to ``places``."""
        return Decimal(str(round(random.uniform(low, high), places)))
