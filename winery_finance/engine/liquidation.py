"""Asset liquidation planning for seizures and forced restructures.

Planning functions work on copies of the cellar and vineyard lists and never
touch the store. ``apply_liquidation_plan`` commits a plan: it removes the
bottles and vineyards and posts the sale transactions.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from decimal import ROUND_FLOOR, Decimal

from winery_finance.engine.money import ZERO, format_money, round_money
from winery_finance.models.finance import (
    CellarLot,
    LiquidationKind,
    LiquidationStep,
    TransactionCategory,
    Vineyard,
    WineBatch,
)
from winery_finance.store.finance import FinanceDataStore

logger = logging.getLogger(__name__)

MAX_EMPTY_STEPS = 2


@dataclass
class LiquidationPlan:
    """Ordered liquidation steps with their totals."""

    steps: list[LiquidationStep] = field(default_factory=list)
    total_recovered_value: Decimal = ZERO
    total_proceeds: Decimal = ZERO

    def add_step(self, step: LiquidationStep) -> None:
        self.steps.append(step)
        self.total_recovered_value += step.recovered_value
        self.total_proceeds += step.proceeds

    @property
    def cellar_lots(self) -> list[CellarLot]:
        return [lot for step in self.steps for lot in step.lots]

    @property
    def vineyard_ids(self) -> list[str]:
        return [s.vineyard_id for s in self.steps if s.vineyard_id is not None]

    @property
    def vineyard_names(self) -> list[str]:
        return [s.vineyard_name for s in self.steps if s.vineyard_name is not None]


def apply_sale_penalty(value: Decimal, sale_penalty_rate: Decimal) -> Decimal:
    """Cash received for assets sold at a forced-sale haircut."""
    return round_money(value * (1 - sale_penalty_rate))


def select_cellar_lots(batches: list[WineBatch], budget: Decimal) -> list[CellarLot]:
    """Pick bottled wine worth up to ``budget``, highest-value batches first.

    A batch that does not fit whole is sold partially, in whole bottles.
    """
    lots: list[CellarLot] = []
    remaining = budget

    candidates = [b for b in batches if b.is_bottled and b.quantity > 0 and b.unit_price > 0]
    for batch in sorted(candidates, key=lambda b: b.total_value, reverse=True):
        if remaining <= 0:
            break

        if batch.total_value <= remaining:
            bottles = batch.quantity
        else:
            bottles = int((remaining / batch.unit_price).to_integral_value(rounding=ROUND_FLOOR))
        if bottles <= 0:
            continue

        value = batch.unit_price * bottles
        lots.append(
            CellarLot(
                batch_id=batch.batch_id,
                label=batch.label,
                bottles=bottles,
                unit_price=batch.unit_price,
                value=value,
                whole_batch=bottles == batch.quantity,
            )
        )
        remaining -= value

    return lots


def _take_lots(batches: list[WineBatch], lots: list[CellarLot]) -> list[WineBatch]:
    """Return the working cellar with the given lots removed."""
    taken = {lot.batch_id: lot.bottles for lot in lots}
    left = []
    for batch in batches:
        batch.quantity -= taken.get(batch.batch_id, 0)
        if batch.quantity > 0:
            left.append(batch)
    return left


def _cellar_step(step_number: int, lots: list[CellarLot], sale_penalty_rate: Decimal) -> LiquidationStep:
    recovered = sum((lot.value for lot in lots), ZERO)
    return LiquidationStep(
        step_number=step_number,
        kind=LiquidationKind.CELLAR_SALE,
        recovered_value=recovered,
        proceeds=apply_sale_penalty(recovered, sale_penalty_rate),
        lots=lots,
    )


def _vineyard_step(step_number: int, vineyard: Vineyard, sale_penalty_rate: Decimal) -> LiquidationStep:
    return LiquidationStep(
        step_number=step_number,
        kind=LiquidationKind.VINEYARD_SEIZURE,
        recovered_value=vineyard.total_value,
        proceeds=apply_sale_penalty(vineyard.total_value, sale_penalty_rate),
        vineyard_id=vineyard.vineyard_id,
        vineyard_name=vineyard.name,
    )


def plan_liquidation(
    batches: list[WineBatch],
    vineyards: list[Vineyard],
    allowance: Decimal,
    total_debt: Decimal,
    cellar_step_percent: Decimal,
    sale_penalty_rate: Decimal,
    epsilon: Decimal = Decimal("0.01"),
) -> LiquidationPlan:
    """Plan alternating cellar sales and vineyard seizures within a cap.

    Odd passes sell the most valuable bottled wine up to
    ``min(total_debt * cellar_step_percent, remaining allowance)``. Even
    passes seize the cheapest vineyard whose value still fits the remaining
    allowance. Planning stops once the allowance is used up (within
    ``epsilon``) or two passes in a row recover nothing.

    Parameters
    ----------
    batches : list[WineBatch]
        Cellar contents. Not modified.
    vineyards : list[Vineyard]
        Vineyard portfolio. Not modified.
    allowance : Decimal
        Maximum book value to take.
    total_debt : Decimal
        Debt the liquidation is meant to cover.
    cellar_step_percent : Decimal
        Share of the debt a single cellar pass may sell.
    sale_penalty_rate : Decimal
        Forced-sale haircut applied to every recovery.
    epsilon : Decimal
        Remaining allowance treated as exhausted.

    Returns
    -------
    LiquidationPlan
        Steps that recovered something, in execution order.
    """
    work_batches = copy.deepcopy(batches)
    work_vineyards = copy.deepcopy(vineyards)
    cellar_step_cap = total_debt * cellar_step_percent

    plan = LiquidationPlan()
    remaining = allowance
    empty_steps = 0
    pass_number = 0

    while remaining > epsilon and empty_steps < MAX_EMPTY_STEPS:
        pass_number += 1
        step: LiquidationStep | None = None

        if pass_number % 2 == 1:
            lots = select_cellar_lots(work_batches, min(cellar_step_cap, remaining))
            if lots:
                work_batches = _take_lots(work_batches, lots)
                step = _cellar_step(len(plan.steps) + 1, lots, sale_penalty_rate)
        else:
            fitting = [v for v in work_vineyards if 0 < v.total_value <= remaining]
            if fitting:
                vineyard = min(fitting, key=lambda v: v.total_value)
                work_vineyards.remove(vineyard)
                step = _vineyard_step(len(plan.steps) + 1, vineyard, sale_penalty_rate)

        if step is None or step.recovered_value <= 0:
            empty_steps += 1
            continue

        empty_steps = 0
        remaining -= step.recovered_value
        plan.add_step(step)

    return plan


def plan_loan_seizure(
    batches: list[WineBatch],
    vineyards: list[Vineyard],
    loan_balance: Decimal,
    cellar_percent_of_balance: Decimal,
    portfolio_percent: Decimal,
    sale_penalty_rate: Decimal,
) -> LiquidationPlan:
    """Plan the asset seizure of a third missed payment.

    Sells bottled wine up to ``loan_balance * cellar_percent_of_balance``,
    then seizes vineyards cheapest first until the seized value reaches
    ``portfolio_percent`` of the portfolio. The last vineyard may push the
    total past that target.
    """
    plan = LiquidationPlan()

    lots = select_cellar_lots(batches, loan_balance * cellar_percent_of_balance)
    if lots:
        plan.add_step(_cellar_step(1, lots, sale_penalty_rate))

    portfolio_value = sum((v.total_value for v in vineyards), ZERO)
    target = portfolio_value * portfolio_percent
    seized = ZERO
    for vineyard in sorted(vineyards, key=lambda v: v.total_value):
        if seized >= target:
            break
        plan.add_step(_vineyard_step(len(plan.steps) + 1, vineyard, sale_penalty_rate))
        seized += vineyard.total_value

    return plan


def apply_liquidation_plan(store: FinanceDataStore, plan: LiquidationPlan, creditor: str) -> Decimal:
    """Remove planned assets from the store and book the sale proceeds.

    Returns the cash raised.
    """
    raised = ZERO
    for step in plan.steps:
        if step.kind == LiquidationKind.CELLAR_SALE:
            for lot in step.lots:
                store.remove_bottles(lot.batch_id, lot.bottles)
            bottles = sum(lot.bottles for lot in step.lots)
            description = (
                f"Forced cellar sale by {creditor} - {bottles} bottles "
                f"({format_money(step.recovered_value)} value, "
                f"{format_money(step.proceeds)} after penalty)"
            )
            category = TransactionCategory.WINE_SALES
        else:
            store.delete_vineyards([step.vineyard_id])
            description = (
                f"Forced vineyard sale by {creditor} - {step.vineyard_name} "
                f"({format_money(step.recovered_value)} value, "
                f"{format_money(step.proceeds)} after penalty)"
            )
            category = TransactionCategory.VINEYARD_SALE

        if step.proceeds > 0:
            store.add_transaction(step.proceeds, description, category)
        raised += step.proceeds
        logger.debug("Applied liquidation step %d (%s): %s", step.step_number, step.kind.value, step.proceeds)

    return raised
