"""Enumeration types for finance domain entities."""

from enum import Enum


class LenderType(str, Enum):
    BANK = "Bank"
    INVESTMENT_FUND = "Investment Fund"
    PRIVATE_LENDER = "Private Lender"
    QUICK_LOAN = "QuickLoan"


class LoanStatus(str, Enum):
    ACTIVE = "active"
    PAID_OFF = "paid_off"
    DEFAULTED = "defaulted"


class LoanCategory(str, Enum):
    STANDARD = "standard"
    EMERGENCY = "emergency"
    RESTRUCTURED = "restructured"


class EconomyPhase(str, Enum):
    CRASH = "Crash"
    RECESSION = "Recession"
    STABLE = "Stable"
    EXPANSION = "Expansion"
    BOOM = "Boom"


class WarningSeverity(str, Enum):
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class WarningType(str, Enum):
    MISSED_PAYMENT = "missedPayment"
    DEFAULT = "default"
    FORCED_LOAN_RESTRUCTURE = "forcedLoanRestructure"


class TransactionCategory(str, Enum):
    LOAN_RECEIVED = "Loan Received"
    LOAN_PAYMENT = "Loan Payment"
    LOAN_ORIGINATION_FEE = "Loan Origination Fee"
    LOAN_EXTRA_PAYMENT_FEE = "Loan Extra Payment Fee"
    LOAN_PREPAYMENT_FEE = "Loan Prepayment Fee"
    VINEYARD_SALE = "Vineyard Sale"
    WINE_SALES = "Wine Sales"
    STAFF_WAGES = "Staff Wages"


class NotificationCategory(str, Enum):
    FINANCE = "finance"
    ADMINISTRATION = "administration"


class WineBatchState(str, Enum):
    GRAPES = "grapes"
    MUST_READY = "must_ready"
    MUST_FERMENTING = "must_fermenting"
    BOTTLED = "bottled"


class LiquidationKind(str, Enum):
    CELLAR_SALE = "cellar_sale"
    VINEYARD_SEIZURE = "vineyard_seizure"


class PaymentOutcome(str, Enum):
    PAID = "paid"
    PAID_OFF = "paid_off"
    PARTIAL = "partial"
    MISSED = "missed"
