"""Finance domain models."""

from winery_finance.models.finance.asset import Vineyard, WineBatch
from winery_finance.models.finance.company import Company
from winery_finance.models.finance.enums import (
    EconomyPhase,
    LenderType,
    LiquidationKind,
    LoanCategory,
    LoanStatus,
    NotificationCategory,
    PaymentOutcome,
    TransactionCategory,
    WarningSeverity,
    WarningType,
    WineBatchState,
)
from winery_finance.models.finance.lender import Lender, OriginationFeeConfig
from winery_finance.models.finance.loan import Loan, PendingLoanWarning
from winery_finance.models.finance.restructure import (
    CellarLot,
    ForcedLoanRestructureOffer,
    LiquidationStep,
    ProposedLoanTerms,
)
from winery_finance.models.finance.transaction import (
    Notification,
    PrestigeEvent,
    Transaction,
)

__all__ = [
    "CellarLot",
    "Company",
    "EconomyPhase",
    "ForcedLoanRestructureOffer",
    "Lender",
    "LenderType",
    "LiquidationKind",
    "LiquidationStep",
    "Loan",
    "LoanCategory",
    "LoanStatus",
    "Notification",
    "NotificationCategory",
    "OriginationFeeConfig",
    "PaymentOutcome",
    "PendingLoanWarning",
    "PrestigeEvent",
    "ProposedLoanTerms",
    "Transaction",
    "TransactionCategory",
    "Vineyard",
    "WarningSeverity",
    "WarningType",
    "WineBatch",
    "WineBatchState",
]
