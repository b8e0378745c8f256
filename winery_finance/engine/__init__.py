"""Loan distress engine: payments, penalties, emergency loans and restructures."""

from winery_finance.engine.distress import LoanDistressEngine
from winery_finance.engine.emergency import EmergencyLoanInjector
from winery_finance.engine.escalation import EscalationLadder
from winery_finance.engine.liquidation import (
    LiquidationPlan,
    apply_liquidation_plan,
    plan_liquidation,
    plan_loan_seizure,
)
from winery_finance.engine.origination import LoanActionResult, LoanService, calculate_borrowing_limit
from winery_finance.engine.payments import LoanPaymentResult, PaymentProcessor, is_payment_due
from winery_finance.engine.restructure import (
    RestructureExecutor,
    RestructureOfferBuilder,
    RestructureResult,
    make_offer_id,
)
from winery_finance.engine.tick import FinanceTickHandler, TickReport

__all__ = [
    "EmergencyLoanInjector",
    "EscalationLadder",
    "FinanceTickHandler",
    "LiquidationPlan",
    "LoanActionResult",
    "LoanDistressEngine",
    "LoanPaymentResult",
    "LoanService",
    "PaymentProcessor",
    "RestructureExecutor",
    "RestructureOfferBuilder",
    "RestructureResult",
    "TickReport",
    "apply_liquidation_plan",
    "calculate_borrowing_limit",
    "is_payment_due",
    "make_offer_id",
    "plan_liquidation",
    "plan_loan_seizure",
]
