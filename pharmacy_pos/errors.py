"""
Sale transaction errors.

Every expected business condition of the POS flow has its own exception
type carrying the data a caller needs to recover. ``recoverable`` tells
whether the caller can fix things locally (adjust the cart, re-fetch stock,
retry) or whether the sale needs manual reconciliation.
"""

from typing import Any, Optional


class SaleError(Exception):
    """Base exception for POS sale errors"""

    code = "sale_error"
    recoverable = True
    user_message = "The sale could not be completed."

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.user_message)

    def details(self) -> dict[str, Any]:
        """Structured fields for API responses"""
        return {}

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "message": str(self), **self.details()}


class InsufficientStock(SaleError):
    code = "insufficient_stock"
    user_message = "Not enough stock available."

    def __init__(self, product_id: str, requested: int, available: int):
        self.product_id = product_id
        self.requested = requested
        self.available = available
        super().__init__(
            f"Not enough stock for {product_id}: requested={requested}, available={available}"
        )

    def details(self) -> dict[str, Any]:
        return {
            "product_id": self.product_id,
            "requested": self.requested,
            "available": self.available,
        }


class StockChanged(SaleError):
    """Stock dropped below the cart quantity since the catalog was loaded"""

    code = "stock_changed"
    user_message = "Stock has changed since the cart was built. Please review the cart."

    def __init__(self, violations: list):
        self.violations = list(violations)
        summary = ", ".join(f"{v.product_id} (max {v.max_allowed})" for v in self.violations)
        super().__init__(f"Stock changed for: {summary}")

    @property
    def product_id(self) -> str:
        return self.violations[0].product_id

    @property
    def available(self) -> int:
        return self.violations[0].max_allowed

    def details(self) -> dict[str, Any]:
        return {
            "violations": [
                {"product_id": v.product_id, "requested": v.requested, "max_allowed": v.max_allowed}
                for v in self.violations
            ]
        }


class EmptyCart(SaleError):
    code = "empty_cart"
    user_message = "Cart is empty."


class InvalidPaymentMethod(SaleError):
    code = "invalid_payment_method"
    user_message = "Choose cash, card or mobile payment."

    def __init__(self, payment_method: str):
        self.payment_method = payment_method
        super().__init__(f"Unknown payment method: {payment_method}")

    def details(self) -> dict[str, Any]:
        return {"payment_method": self.payment_method}


class CommitAlreadyInProgress(SaleError):
    code = "commit_in_progress"
    user_message = "A sale is already being processed for this cart."


class CartLocked(SaleError):
    """The cart is in a state that forbids changes until it is cleared"""

    code = "cart_locked"
    user_message = "This cart needs attention before it can be used again. Clear it to continue."

    def __init__(self, state: str):
        self.state = state
        super().__init__(f"Cart is locked in state {state}")

    def details(self) -> dict[str, Any]:
        return {"state": self.state}


class ProductNotFound(SaleError):
    code = "product_not_found"
    user_message = "Product not found."

    def __init__(self, product_id: str):
        self.product_id = product_id
        super().__init__(f"Product {product_id} is not in the sellable catalog")

    def details(self) -> dict[str, Any]:
        return {"product_id": self.product_id}


class NotAuthenticated(SaleError):
    code = "not_authenticated"
    user_message = "Please log in to process sales."


class CatalogUnavailable(SaleError):
    code = "catalog_unavailable"
    user_message = "The catalog is unavailable. Cart changes are blocked until it loads."


class StockCheckFailed(SaleError):
    code = "stock_check_failed"
    user_message = "Could not verify current stock. Nothing was saved; please retry."


class SaleWriteFailed(SaleError):
    """The sale header could not be written; nothing was persisted"""

    code = "sale_write_failed"
    user_message = "Failed to process sale. Nothing was saved; please retry."


class PartialCommit(SaleError):
    """
    The sale was only partly persisted.

    ``stage`` is ``"lines"`` when the header exists without lines, or
    ``"stock"`` when lines exist but only ``applied_product_ids`` had their
    stock decremented.
    """

    code = "partial_commit"
    recoverable = False
    user_message = "The sale may be incomplete. Do not retry; contact support."

    def __init__(self, sale_id: str, stage: str, applied_product_ids: tuple[str, ...] = ()):
        self.sale_id = sale_id
        self.stage = stage
        self.applied_product_ids = tuple(applied_product_ids)
        super().__init__(
            f"Sale {sale_id} partially committed at stage {stage} "
            f"(stock applied: {list(self.applied_product_ids)})"
        )

    def details(self) -> dict[str, Any]:
        return {
            "sale_id": self.sale_id,
            "stage": self.stage,
            "applied_product_ids": list(self.applied_product_ids),
        }
