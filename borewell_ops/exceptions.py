"""
Borewell Ops Exceptions

Custom exception classes for billing, inventory, and invoicing errors.
"""

from typing import Any, Dict, List, Optional


class BorewellOpsError(Exception):
    """Base exception for all borewell ops errors"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class InvalidAmountError(BorewellOpsError, ValueError):
    """Exception for negative, non-finite or non-numeric amounts"""
    pass


class RecordNotFoundError(BorewellOpsError):
    """Exception for lookups of unknown customers or inventory items"""
    pass


class InsufficientStockError(BorewellOpsError):
    """Exception for stock decrements larger than the quantity on hand"""
    pass


class StockValidationError(BorewellOpsError):
    """Exception raised at intake when selected items are out of stock"""

    def __init__(self, violations: List[Any]):
        names = ", ".join(v.item_name for v in violations)
        super().__init__(
            f"Selected items are out of stock: {names}",
            details={"violations": [v.model_dump() for v in violations]},
        )
        self.violations = violations


class InvoiceBuildError(BorewellOpsError):
    """Exception for customer data that cannot be rendered into an invoice"""
    pass

