"""
Domain exceptions for cart quoting and confirmation

Every error the quote/confirm core can report derives from QuoterError.
Each carries the HTTP status the API layer should answer with and a
client-safe message; internal details stay in the server logs.
"""
from dataclasses import dataclass
from typing import List, Optional


class QuoterError(Exception):
    """Base exception for all quoting and confirmation errors"""

    status_code: int = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class InvalidIdentifierError(QuoterError):
    """Raised when a product id is not a well-formed UUID"""

    status_code = 400

    def __init__(self, value: str):
        self.value = value
        super().__init__(
            f"Invalid product id '{value}'. "
            "UUID must be in format: xxxxxxxx-xxxx-xxxx-xxxx-xxxxxxxxxxxx"
        )


class ProductNotFoundError(QuoterError):
    """Raised when a cart references a product missing from the catalog"""

    status_code = 404

    def __init__(self, product_id):
        self.product_id = str(product_id)
        super().__init__(f"Product not found: {self.product_id}")


@dataclass(frozen=True)
class StockShortage:
    """One cart entry that cannot be fully reserved"""
    product_id: str
    product_name: str
    requested: int
    available: int

    def describe(self) -> str:
        return f"{self.product_name} (requested: {self.requested}, available: {self.available})"

    def to_dict(self) -> dict:
        return {
            "productId": self.product_id,
            "productName": self.product_name,
            "requested": self.requested,
            "available": self.available,
        }


class InsufficientStockError(QuoterError):
    """Raised when one or more cart entries exceed available stock"""

    status_code = 409

    def __init__(self, shortages: List[StockShortage]):
        self.shortages = list(shortages)
        details = ", ".join(shortage.describe() for shortage in self.shortages)
        super().__init__(f"Insufficient stock for items: {details}")


class CatalogConflictError(QuoterError):
    """Raised when a catalog entry would duplicate an existing one"""

    status_code = 409


class CatalogValidationError(QuoterError):
    """Raised when a catalog entry is missing fields required by its type"""

    status_code = 400


class PersistenceError(QuoterError):
    """Raised when the storage layer fails during a unit of work"""

    status_code = 500

    def __init__(self, message: str = "Failed to confirm cart", original_error: Optional[Exception] = None):
        self.original_error = original_error
        super().__init__(message)


class ConfirmTimeoutError(PersistenceError):
    """Raised when a unit of work exceeds its execution budget"""

    def __init__(self, budget_seconds: float):
        self.budget_seconds = budget_seconds
        super().__init__(f"Cart confirmation exceeded its {budget_seconds:g}s budget")


class DuplicateIdempotencyKeyError(QuoterError):
    """
    Raised inside a confirmation when another request already stored an
    order under the same idempotency key.

    Never reaches the caller: the coordinator rolls back and answers with
    the order carried here.
    """

    status_code = 409

    def __init__(self, idempotency_key: str, existing_order=None):
        self.idempotency_key = idempotency_key
        self.existing_order = existing_order
        super().__init__(f"Idempotency key already used: {idempotency_key}")
