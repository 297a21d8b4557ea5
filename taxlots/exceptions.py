"""Custom exceptions for the tax-lot engine."""

from datetime import date
from decimal import Decimal


class TaxComputationError(Exception):
    """Base exception for tax-lot computation errors."""


class MalformedTransactionError(TaxComputationError):
    """Raised when a transaction's fields violate its kind-dependent shape."""

    def __init__(self, transaction_id: str, message: str):
        self.transaction_id = transaction_id
        super().__init__(f"Malformed transaction {transaction_id}: {message}")


class InsufficientLotsError(TaxComputationError):
    """Raised when a sale requires more shares than are open for the ticker."""

    def __init__(self, transaction_id: str, ticker: str, requested: Decimal, available: Decimal):
        self.transaction_id = transaction_id
        self.ticker = ticker
        self.requested = requested
        self.available = available
        self.shortfall = requested - available
        super().__init__(
            f"Insufficient lots for sale {transaction_id} ({ticker}): "
            f"requested={requested}, available={available}, shortfall={self.shortfall}"
        )


class AmbiguousSpecificLotError(TaxComputationError):
    """Raised when a specific-lot sale has no explicit, fully covering selection."""

    def __init__(self, transaction_id: str, message: str):
        self.transaction_id = transaction_id
        super().__init__(f"Ambiguous specific-lot sale {transaction_id}: {message}")


class LotNotFoundError(AmbiguousSpecificLotError):
    """Raised when a lot selection references a lot that is not open."""

    def __init__(self, transaction_id: str, lot_id: str):
        self.lot_id = lot_id
        super().__init__(transaction_id, f"lot not found or already closed: {lot_id}")


class InvalidDateOrderingError(TaxComputationError):
    """Raised when transactions are not sorted ascending by date."""

    def __init__(self, transaction_id: str, previous_date: date, current_date: date):
        self.transaction_id = transaction_id
        self.previous_date = previous_date
        self.current_date = current_date
        super().__init__(
            f"Transaction {transaction_id} dated {current_date} follows a transaction "
            f"dated {previous_date}; transactions must be sorted ascending by date"
        )


class DataValidationError(TaxComputationError):
    """Raised when input data fails validation."""

    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(f"Validation error on '{field}': {message}")
