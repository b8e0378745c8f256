"""Finance data store with referential integrity."""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Callable

from winery_finance.exceptions import (
    EntityNotFoundError,
    InvalidEntityStateError,
    ReferentialIntegrityError,
)
from winery_finance.models.finance import (
    Company,
    ForcedLoanRestructureOffer,
    Lender,
    Loan,
    LoanStatus,
    Notification,
    NotificationCategory,
    PendingLoanWarning,
    PrestigeEvent,
    Transaction,
    TransactionCategory,
    Vineyard,
    WineBatch,
)


def _new_id() -> str:
    return uuid.uuid4().hex


@dataclass
class FinanceDataStore:
    """In-memory store for one company's finance entities.

    Every service reads and writes through this store; it stands in for the
    game's database layer. Writes are applied immediately and one at a time,
    so a failure part-way through an operation leaves earlier writes in place.
    """

    company: Company

    # Primary entities
    lenders: dict[str, Lender] = field(default_factory=dict)
    loans: dict[str, Loan] = field(default_factory=dict)
    vineyards: dict[str, Vineyard] = field(default_factory=dict)
    wine_batches: dict[str, WineBatch] = field(default_factory=dict)

    # Ledger records
    transactions: list[Transaction] = field(default_factory=list)
    prestige_events: list[PrestigeEvent] = field(default_factory=list)
    notifications: list[Notification] = field(default_factory=list)

    # Player-facing queue
    loan_warnings: dict[str, PendingLoanWarning] = field(default_factory=dict)
    pending_restructure_offer: ForcedLoanRestructureOffer | None = None

    # UI refresh signal
    update_count: int = 0
    start_year: int | None = None  # Defaults to the company's founding year
    _listeners: list[Callable[[], None]] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.start_year is None:
            self.start_year = self.company.founded_year

    @property
    def current_game_week(self) -> int:
        return self.company.current_date.absolute_weeks(self.start_year)

    # Lenders
    def add_lender(self, lender: Lender) -> None:
        """Add a lender to the catalog."""
        self.lenders[lender.lender_id] = lender

    def get_lender(self, lender_id: str) -> Lender:
        """Get a lender by id."""
        try:
            return self.lenders[lender_id]
        except KeyError:
            raise EntityNotFoundError(f"Lender {lender_id} not found") from None

    def set_lender_blacklist(self, lender_id: str, blacklisted: bool) -> None:
        """Toggle the blacklist flag of a lender."""
        self.get_lender(lender_id).blacklisted = blacklisted

    # Loans
    def add_loan(self, loan: Loan) -> None:
        """Add a loan to the store."""
        if loan.lender_id not in self.lenders:
            raise ReferentialIntegrityError(f"Lender {loan.lender_id} not found")
        if loan.remaining_balance < 0:
            raise InvalidEntityStateError(f"Loan {loan.loan_id} has a negative balance")

        if loan.created_at is None:
            loan.created_at = datetime.now()
        self.loans[loan.loan_id] = loan

    def get_loan(self, loan_id: str) -> Loan:
        """Get a loan by id."""
        try:
            return self.loans[loan_id]
        except KeyError:
            raise EntityNotFoundError(f"Loan {loan_id} not found") from None

    def update_loan(self, loan_id: str, **changes: Any) -> Loan:
        """Apply field changes to a stored loan and return it."""
        loan = self.get_loan(loan_id)
        for name in changes:
            if not hasattr(loan, name):
                raise AttributeError(f"Loan has no field {name!r}")

        balance = changes.get("remaining_balance")
        if balance is not None and balance < 0:
            raise InvalidEntityStateError(f"Loan {loan_id} balance cannot become negative ({balance})")

        for name, value in changes.items():
            setattr(loan, name, value)
        loan.updated_at = datetime.now()
        return loan

    def get_active_loans(self) -> list[Loan]:
        """Get all active loans."""
        return [loan for loan in self.loans.values() if loan.status == LoanStatus.ACTIVE]

    def get_forced_loans(self) -> list[Loan]:
        """Get forced loans that still carry a balance."""
        return [
            loan
            for loan in self.loans.values()
            if loan.is_forced and loan.status != LoanStatus.PAID_OFF and loan.remaining_balance > 0
        ]

    def total_outstanding_balance(self) -> Decimal:
        return sum((loan.remaining_balance for loan in self.get_active_loans()), Decimal("0"))

    # Assets
    def add_vineyard(self, vineyard: Vineyard) -> None:
        """Add a vineyard to the store."""
        if vineyard.created_at is None:
            vineyard.created_at = datetime.now()
        self.vineyards[vineyard.vineyard_id] = vineyard

    def delete_vineyards(self, vineyard_ids: list[str]) -> None:
        """Remove vineyards (sold or seized)."""
        missing = [vid for vid in vineyard_ids if vid not in self.vineyards]
        if missing:
            raise EntityNotFoundError(f"Vineyards not found: {', '.join(missing)}")
        for vineyard_id in vineyard_ids:
            del self.vineyards[vineyard_id]

    def total_vineyard_value(self) -> Decimal:
        return sum((v.total_value for v in self.vineyards.values()), Decimal("0"))

    def add_wine_batch(self, batch: WineBatch) -> None:
        """Add a wine batch to the store."""
        if batch.vineyard_id not in self.vineyards:
            raise ReferentialIntegrityError(f"Vineyard {batch.vineyard_id} not found")
        if batch.created_at is None:
            batch.created_at = datetime.now()
        self.wine_batches[batch.batch_id] = batch

    def get_bottled_batches(self) -> list[WineBatch]:
        """Get cellar batches that can be sold."""
        return [b for b in self.wine_batches.values() if b.is_bottled and b.quantity > 0]

    def remove_bottles(self, batch_id: str, bottles: int) -> WineBatch:
        """Take bottles out of a batch, deleting the batch once empty."""
        batch = self.wine_batches.get(batch_id)
        if batch is None:
            raise EntityNotFoundError(f"Wine batch {batch_id} not found")
        if bottles > batch.quantity:
            raise InvalidEntityStateError(
                f"Wine batch {batch_id} holds {batch.quantity} bottles, cannot remove {bottles}"
            )

        batch.quantity -= bottles
        if batch.quantity == 0:
            del self.wine_batches[batch_id]
        return batch

    def total_cellar_value(self) -> Decimal:
        return sum((b.total_value for b in self.get_bottled_batches()), Decimal("0"))

    # Ledger
    def add_transaction(
        self,
        amount: Decimal,
        description: str,
        category: TransactionCategory,
        loan_id: str | None = None,
    ) -> Transaction:
        """Record a cash movement and apply it to the company balance."""
        date = self.company.current_date
        transaction = Transaction(
            transaction_id=_new_id(),
            amount=amount,
            description=description,
            category=category,
            game_date=date,
            absolute_week=self.current_game_week,
            loan_id=loan_id,
            created_at=datetime.now(),
        )
        self.transactions.append(transaction)
        self.company.money += amount
        return transaction

    def add_prestige_event(
        self,
        amount: float,
        decay_rate: float,
        payload: dict[str, Any],
        event_type: str = "company_finance",
        source_id: str | None = None,
    ) -> PrestigeEvent:
        """Record a prestige event and apply its base amount."""
        event = PrestigeEvent(
            event_id=_new_id(),
            event_type=event_type,
            amount_base=amount,
            created_game_week=self.current_game_week,
            decay_rate=decay_rate,
            source_id=source_id,
            payload=payload,
            created_at=datetime.now(),
        )
        self.prestige_events.append(event)
        self.company.prestige += amount
        return event

    def add_notification(
        self,
        message: str,
        code: str,
        title: str,
        category: NotificationCategory = NotificationCategory.FINANCE,
    ) -> Notification:
        """Post a message to the notification center."""
        notification = Notification(
            notification_id=_new_id(),
            code=code,
            title=title,
            message=message,
            category=category,
            game_week=self.current_game_week,
            created_at=datetime.now(),
        )
        self.notifications.append(notification)
        return notification

    def queue_penalty_work(self, work_units: int) -> int:
        """Add work units to the next bookkeeping task and return the total."""
        self.company.loan_penalty_work += work_units
        return self.company.loan_penalty_work

    # Warning queue
    def set_loan_warning(self, warning: PendingLoanWarning) -> None:
        """Store a warning, replacing any earlier one under the same key."""
        if warning.created_at is None:
            warning.created_at = datetime.now()
        warning.created_game_week = self.current_game_week
        warning.acknowledged = False
        self.loan_warnings[warning.key] = warning

    def clear_loan_warning(self, key: str) -> None:
        self.loan_warnings.pop(key, None)

    def acknowledge_loan_warning(self, key: str) -> None:
        """Mark a warning as seen by the player."""
        warning = self.loan_warnings.get(key)
        if warning is None:
            raise EntityNotFoundError(f"No pending warning for {key}")
        warning.acknowledged = True

    def get_unacknowledged_warnings(self) -> list[PendingLoanWarning]:
        """Get unacknowledged warnings, oldest first."""
        pending = [w for w in self.loan_warnings.values() if not w.acknowledged]
        return sorted(pending, key=lambda w: (w.created_game_week, w.created_at or datetime.min))

    def get_first_unacknowledged_warning(self) -> PendingLoanWarning | None:
        pending = self.get_unacknowledged_warnings()
        return pending[0] if pending else None

    # Restructure offers
    def save_restructure_offer(self, offer: ForcedLoanRestructureOffer) -> None:
        if offer.created_at is None:
            offer.created_at = datetime.now()
        self.pending_restructure_offer = offer

    def clear_restructure_offer(self) -> None:
        """Drop the pending offer and its decision notice."""
        offer = self.pending_restructure_offer
        if offer is not None:
            self.clear_loan_warning(offer.offer_id)
        self.pending_restructure_offer = None

    # UI refresh
    def subscribe(self, listener: Callable[[], None]) -> None:
        """Register a callback run on every ``trigger_update``."""
        self._listeners.append(listener)

    def trigger_update(self) -> None:
        """Signal listeners that finance state changed."""
        self.update_count += 1
        for listener in self._listeners:
            listener()

    def summary(self) -> dict[str, Any]:
        """Return summary counts and balances."""
        return {
            "money": self.company.money,
            "prestige": self.company.prestige,
            "lenders": len(self.lenders),
            "loans": len(self.loans),
            "active_loans": len(self.get_active_loans()),
            "forced_loans": len(self.get_forced_loans()),
            "vineyards": len(self.vineyards),
            "wine_batches": len(self.wine_batches),
            "transactions": len(self.transactions),
            "prestige_events": len(self.prestige_events),
            "notifications": len(self.notifications),
            "pending_warnings": len(self.get_unacknowledged_warnings()),
            "pending_restructure_offer": self.pending_restructure_offer is not None,
        }
