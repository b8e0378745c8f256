"""Custom exception hierarchy for winery-finance."""


class WineryFinanceError(Exception):
    """Base exception for all winery-finance errors."""


class EntityNotFoundError(WineryFinanceError):
    """Raised when a referenced entity does not exist."""


class ReferentialIntegrityError(EntityNotFoundError):
    """Raised when a foreign key reference is violated."""


class InvalidEntityStateError(WineryFinanceError):
    """Raised when an entity is in an invalid state for the operation."""


class ConfigurationError(WineryFinanceError):
    """Raised when configuration is invalid or missing."""


class SinkError(WineryFinanceError):
    """Raised when a sink operation fails."""


class LenderUnavailableError(InvalidEntityStateError):
    """Raised when a lender refuses a loan application."""


class NoLenderAvailableError(WineryFinanceError):
    """Raised when no lender in the catalog can carry a loan."""


class RestructureOfferError(InvalidEntityStateError):
    """Raised when a restructure offer id is unknown, stale or expired."""
