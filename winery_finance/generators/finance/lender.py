"""Lender catalog generator."""

import random
from decimal import Decimal

from winery_finance.generators.base import BaseGenerator
from winery_finance.models.finance import Lender, LenderType, OriginationFeeConfig

BANK_NAMES = [
    "First National", "Capital Trust", "Premier Banking", "Heritage Financial",
    "Vineyard Bank", "Agricultural Savings", "Rural Development Bank",
    "Community First", "Growers Credit", "Estate Finance", "Valley Bank",
]

FUND_NAMES = [
    "Growth Capital Partners", "Vineyard Ventures", "Agricultural Investment Fund",
    "Premium Asset Management", "Strategic Growth Fund", "Heritage Capital",
    "Land & Asset Partners", "Rural Investment Group", "Estate Development Fund",
    "Harvest Capital", "Terravest Partners", "Vintage Growth Fund",
]

QUICK_LOAN_NAMES = [
    "FlashBridge Finance", "Rapid Relief Loans", "SwiftLine Funding",
    "Express Capital Group", "Lightning Credit Partners", "QuickHarvest Lending",
    "Momentum Microloans",
]

PRIVATE_LENDER_SUFFIXES = [
    "Lending", "Capital", "Finance", "Loans", "Credit Services",
    "Private Funding", "Financial Solutions",
]


class LenderGenerator(BaseGenerator):
    """Generate lenders with type-based terms."""

    TYPE_DISTRIBUTION = {
        LenderType.BANK: 0.25,
        LenderType.INVESTMENT_FUND: 0.25,
        LenderType.PRIVATE_LENDER: 0.40,
        LenderType.QUICK_LOAN: 0.10,
    }

    MIN_LENDERS = 25
    MAX_LENDERS = 65

    # Ranges per lender type (seasonal rates, amounts in euros, durations in seasons)
    PARAMS = {
        LenderType.BANK: {
            "base_interest": (0.04, 0.08),
            "loan_amount": (50_000, 500_000),
            "duration": (4, 120),
            "risk_tolerance": (0.3, 0.6),
            "flexibility": (0.5, 0.8),
            "fee": {
                "base_percent": (0.015, 0.025),
                "min_fee": (800, 1500),
                "max_fee": (12_000, 20_000),
                "credit_rating_modifier": (0.6, 0.8),
                "duration_modifier": (1.0, 1.2),
            },
        },
        LenderType.INVESTMENT_FUND: {
            "base_interest": (0.05, 0.10),
            "loan_amount": (50_000, 1_000_000),
            "duration": (4, 240),
            "risk_tolerance": (0.4, 0.7),
            "flexibility": (0.6, 0.9),
            "fee": {
                "base_percent": (0.025, 0.035),
                "min_fee": (1500, 3000),
                "max_fee": (25_000, 40_000),
                "credit_rating_modifier": (0.7, 0.9),
                "duration_modifier": (1.0, 1.3),
            },
        },
        LenderType.PRIVATE_LENDER: {
            "base_interest": (0.08, 0.15),
            "loan_amount": (5_000, 50_000),
            "duration": (4, 60),
            "risk_tolerance": (0.5, 0.9),
            "flexibility": (0.3, 0.7),
            "fee": {
                "base_percent": (0.045, 0.07),
                "min_fee": (400, 1000),
                "max_fee": (7_000, 12_000),
                "credit_rating_modifier": (0.85, 1.25),
                "duration_modifier": (0.95, 1.45),
            },
        },
        LenderType.QUICK_LOAN: {
            "base_interest": (0.12, 0.20),
            "loan_amount": (5_000, 75_000),
            "duration": (4, 8),
            "risk_tolerance": (0.15, 0.35),
            "flexibility": (0.5, 0.8),
            "fee": {
                "base_percent": (0.06, 0.10),
                "min_fee": (400, 1500),
                "max_fee": (5_000, 10_000),
                "credit_rating_modifier": (1.15, 1.45),
                "duration_modifier": (0.9, 1.15),
            },
        },
    }

    def generate(self, lender_type: LenderType | None = None) -> Lender:
        """Generate a single lender.

        Parameters
        ----------
        lender_type : LenderType | None
            Type to generate. Drawn from ``TYPE_DISTRIBUTION`` when omitted.

        Returns
        -------
        Lender
            Generated lender.
        """
        if lender_type is None:
            lender_type = random.choices(
                list(self.TYPE_DISTRIBUTION),
                weights=list(self.TYPE_DISTRIBUTION.values()),
            )[0]
        params = self.PARAMS[lender_type]
        fee = params["fee"]

        return Lender(
            lender_id=self.fake.uuid4(),
            name=self._name(lender_type),
            lender_type=lender_type,
            base_interest_rate=self.uniform_decimal(*params["base_interest"]),
            risk_tolerance=round(random.uniform(*params["risk_tolerance"]), 3),
            flexibility=round(random.uniform(*params["flexibility"]), 3),
            # Skewed toward small players
            market_presence=round(random.random() ** 2, 3),
            min_loan_amount=Decimal(params["loan_amount"][0]),
            max_loan_amount=Decimal(params["loan_amount"][1]),
            min_duration_seasons=params["duration"][0],
            max_duration_seasons=params["duration"][1],
            origination_fee=OriginationFeeConfig(
                base_percent=self.uniform_decimal(*fee["base_percent"]),
                min_fee=self.uniform_decimal(*fee["min_fee"], places=0),
                max_fee=self.uniform_decimal(*fee["max_fee"], places=0),
                credit_rating_modifier=self.uniform_decimal(*fee["credit_rating_modifier"], places=3),
                duration_modifier=self.uniform_decimal(*fee["duration_modifier"], places=3),
            ),
        )

    def generate_catalog(self, count: int | None = None) -> list[Lender]:
        """Generate a lender catalog with at least one lender of each type.

        Parameters
        ----------
        count : int | None
            Number of lenders. Random between ``MIN_LENDERS`` and
            ``MAX_LENDERS`` when omitted.

        Returns
        -------
        list[Lender]
            Generated lenders.
        """
        if count is None:
            count = random.randint(self.MIN_LENDERS, self.MAX_LENDERS)

        # One of each type first so every flow has a candidate lender
        lenders = [self.generate(lender_type) for lender_type in LenderType][:count]
        lenders.extend(self.generate() for _ in range(count - len(lenders)))
        return lenders

    def _name(self, lender_type: LenderType) -> str:
        if lender_type == LenderType.BANK:
            return random.choice(BANK_NAMES)
        if lender_type == LenderType.INVESTMENT_FUND:
            return random.choice(FUND_NAMES)
        if lender_type == LenderType.QUICK_LOAN:
            return random.choice(QUICK_LOAN_NAMES)
        return f"{self.fake.last_name()} {random.choice(PRIVATE_LENDER_SUFFIXES)}"
