"""Interest, payment and fee calculations for loans."""

from dataclasses import dataclass
from decimal import Decimal

from winery_finance.engine.money import round_money, round_whole, to_decimal
from winery_finance.models.finance import EconomyPhase, Lender, LenderType, Loan

ECONOMY_INTEREST_MULTIPLIERS: dict[EconomyPhase, Decimal] = {
    EconomyPhase.CRASH: Decimal("1.5"),
    EconomyPhase.RECESSION: Decimal("1.2"),
    EconomyPhase.STABLE: Decimal("1.0"),
    EconomyPhase.EXPANSION: Decimal("0.9"),
    EconomyPhase.BOOM: Decimal("0.8"),
}

LENDER_TYPE_MULTIPLIERS: dict[LenderType, Decimal] = {
    LenderType.BANK: Decimal("0.9"),
    LenderType.INVESTMENT_FUND: Decimal("1.1"),
    LenderType.PRIVATE_LENDER: Decimal("1.4"),
    LenderType.QUICK_LOAN: Decimal("1.6"),
}

# (max seasons, modifier); anything longer gets VERY_LONG_TERM_MODIFIER
DURATION_INTEREST_MODIFIERS: list[tuple[int, Decimal]] = [
    (16, Decimal("1.0")),
    (40, Decimal("0.95")),
    (80, Decimal("0.90")),
]
VERY_LONG_TERM_MODIFIER = Decimal("0.85")

# Prestige can lower a lender's credit requirement by at most this much
MAX_PRESTIGE_REQUIREMENT_BONUS = 0.2
PRESTIGE_NORMALIZATION_SCALE = 1000.0


def calculate_credit_rating_modifier(credit_rating: float) -> Decimal:
    """Interest multiplier for a 0-1 credit rating: 0.8 at AAA, 1.5 at C."""
    return Decimal("0.8") + Decimal("0.7") * (1 - to_decimal(credit_rating))


def calculate_duration_modifier(duration_seasons: int | None) -> Decimal:
    if not duration_seasons:
        return Decimal("1.0")
    for max_seasons, modifier in DURATION_INTEREST_MODIFIERS:
        if duration_seasons <= max_seasons:
            return modifier
    return VERY_LONG_TERM_MODIFIER


def calculate_effective_interest_rate(
    base_rate: Decimal,
    economy_phase: EconomyPhase,
    lender_type: LenderType,
    credit_rating: float,
    duration_seasons: int | None = None,
) -> Decimal:
    """Apply economy, lender type, credit and duration modifiers to a base rate."""
    return (
        base_rate
        * ECONOMY_INTEREST_MULTIPLIERS[economy_phase]
        * LENDER_TYPE_MULTIPLIERS[lender_type]
        * calculate_credit_rating_modifier(credit_rating)
        * calculate_duration_modifier(duration_seasons)
    )


def calculate_seasonal_payment(principal: Decimal, rate: Decimal, seasons: int) -> Decimal:
    """Fixed seasonal payment of an amortized loan."""
    if seasons <= 0:
        raise ValueError("Loan duration must be at least one season")
    if rate == 0:
        return round_money(principal / seasons)

    growth = (1 + rate) ** seasons
    return round_money(principal * (rate * growth) / (growth - 1))


def calculate_origination_fee(
    principal: Decimal,
    lender: Lender,
    credit_rating: float,
    duration_seasons: int,
) -> Decimal:
    """Origination fee from the lender's fee table, clamped to its min/max."""
    fee_config = lender.origination_fee
    base_fee = principal * fee_config.base_percent
    rating_modifier = fee_config.credit_rating_modifier

    if credit_rating >= 0.8:
        credit_modifier = rating_modifier
    elif credit_rating >= 0.6:
        credit_modifier = Decimal("0.9") + (rating_modifier - Decimal("0.9")) * Decimal("0.5")
    elif credit_rating >= 0.4:
        credit_modifier = Decimal("1.0")
    elif credit_rating >= 0.2:
        credit_modifier = 1 + (Decimal("1.5") - rating_modifier) * Decimal("0.3")
    else:
        credit_modifier = 1 + (Decimal("1.5") - rating_modifier) * Decimal("0.6")

    term_modifier = fee_config.duration_modifier
    if duration_seasons <= 16:
        duration_modifier = Decimal("0.9") + (term_modifier - 1) * Decimal("0.1")
    elif duration_seasons <= 40:
        duration_modifier = Decimal("1.0")
    elif duration_seasons <= 80:
        duration_modifier = 1 + (term_modifier - 1) * Decimal("0.5")
    else:
        duration_modifier = term_modifier

    fee = base_fee * credit_modifier * duration_modifier
    fee = max(fee_config.min_fee, min(fee_config.max_fee, fee))
    return round_whole(fee)


@dataclass
class LoanTerms:
    """Quoted terms for a prospective loan."""

    effective_interest_rate: Decimal
    seasonal_payment: Decimal
    total_repayment: Decimal
    total_interest: Decimal
    origination_fee: Decimal
    total_expenses: Decimal


def calculate_loan_terms(
    lender: Lender,
    principal: Decimal,
    duration_seasons: int,
    credit_rating: float,
    economy_phase: EconomyPhase,
) -> LoanTerms:
    """Quote rate, payment, interest and fees for a lender and amount."""
    rate = calculate_effective_interest_rate(
        lender.base_interest_rate,
        economy_phase,
        lender.lender_type,
        credit_rating,
        duration_seasons,
    )
    payment = calculate_seasonal_payment(principal, rate, duration_seasons)
    total_repayment = payment * duration_seasons
    total_interest = total_repayment - principal
    fee = calculate_origination_fee(principal, lender, credit_rating, duration_seasons)

    return LoanTerms(
        effective_interest_rate=rate,
        seasonal_payment=payment,
        total_repayment=total_repayment,
        total_interest=total_interest,
        origination_fee=fee,
        total_expenses=fee + total_interest,
    )


def calculate_remaining_interest(loan: Loan) -> Decimal:
    """Scheduled interest still to be paid if the loan runs to term."""
    remaining = loan.seasonal_payment * loan.seasons_remaining - loan.remaining_balance
    return max(Decimal("0"), remaining)


def normalize_prestige(prestige: float) -> float:
    """Map prestige onto 0-1 with a long tail."""
    if prestige <= 0:
        return 0.0
    return prestige / (prestige + PRESTIGE_NORMALIZATION_SCALE)


@dataclass
class LenderAvailability:
    """Whether a lender would accept the company right now."""

    is_available: bool
    base_requirement: float
    prestige_bonus: float
    adjusted_requirement: float
    normalized_prestige: float


def calculate_lender_availability(
    lender: Lender,
    credit_rating: float,
    company_prestige: float = 0.0,
) -> LenderAvailability:
    """Compare the credit rating with the lender's risk tolerance.

    Prestige lowers the requirement by up to ``MAX_PRESTIGE_REQUIREMENT_BONUS``.
    Blacklisted lenders are never available.
    """
    normalized = normalize_prestige(company_prestige)
    bonus = normalized * MAX_PRESTIGE_REQUIREMENT_BONUS
    adjusted = lender.risk_tolerance - bonus

    return LenderAvailability(
        is_available=credit_rating >= adjusted and not lender.blacklisted,
        base_requirement=lender.risk_tolerance,
        prestige_bonus=bonus,
        adjusted_requirement=adjusted,
        normalized_prestige=normalized,
    )
